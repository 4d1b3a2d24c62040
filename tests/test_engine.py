"""Tests for the engine facade."""
import pytest

from repointel.application.engine import RepositoryIntelligenceEngine
from repointel.config import EngineSettings
from repointel.domain.analyzer_interface import ICodeAnalyzer
from repointel.domain.models import CombinationRequest, Framework, RecommendationPreferences
from conftest import FakeGitHubClient, make_repo, page_of


class SuggestingAnalyzer(ICodeAnalyzer):
    async def analyze(self, summary):
        return {"overallQuality": 80, "suggestions": ["Add integration tests", "Pin dependency versions"]}


def _engine(client=None, analyzer=None, **settings) -> RepositoryIntelligenceEngine:
    return RepositoryIntelligenceEngine.from_settings(
        EngineSettings(min_request_interval=0, enrich_results=False, **settings),
        github_client=client or FakeGitHubClient(),
        analyzer=analyzer
    )


@pytest.mark.asyncio
async def test_search_through_engine_applies_exclusions():
    """Test that configured exclusions reach the query."""
    client = FakeGitHubClient([page_of([make_repo()])])
    engine = _engine(client, excluded_users=("bot",))

    result = await engine.search("cli")

    assert client.search_calls[0][0] == "cli -user:bot"
    assert len(result.repositories) == 1
    assert engine.query_builder.exclusions == ["bot"]


@pytest.mark.asyncio
async def test_recommend_through_engine():
    """Test that recommendations search by the preferred language."""
    client = FakeGitHubClient([page_of([make_repo(1), make_repo(2, "seen")])])
    engine = _engine(client)

    recommended = await engine.recommend([make_repo(2, "seen")], RecommendationPreferences(languages=("Go",)))

    assert client.search_calls[0][0] == "language:Go stars:>=10"
    assert [repo.id for repo in recommended] == [1]


@pytest.mark.asyncio
async def test_page_size_setting_reaches_client():
    """Test that the configured page size is requested."""
    client = FakeGitHubClient([page_of([])])

    await _engine(client, page_size=20).search("cli")

    assert client.search_calls[0][3] == 20


@pytest.mark.asyncio
async def test_compatibility_without_analyzer():
    """Test the plain compatibility report."""
    report = await _engine().analyze_compatibility([make_repo(1, "react-a"), make_repo(2, "react-b")])

    assert report.score == 100
    assert "Add integration tests" not in report.suggestions


@pytest.mark.asyncio
async def test_compatibility_with_analyzer_adds_suggestions():
    """Test that analyzer suggestions are appended once."""
    engine = _engine(analyzer=SuggestingAnalyzer())

    report = await engine.analyze_compatibility([make_repo(1, "react-a"), make_repo(2, "react-b")])

    assert report.suggestions.count("Add integration tests") == 1
    assert "Pin dependency versions" in report.suggestions
    assert len(report.suggestions) <= 8


@pytest.mark.asyncio
async def test_single_repository_compatibility_skips_analyzer():
    """Test that insufficient input returns the neutral report unchanged."""
    report = await _engine(analyzer=SuggestingAnalyzer()).analyze_compatibility([make_repo()])

    assert report.score == 100
    assert not report.sufficient_input
    assert "Add integration tests" not in report.suggestions


@pytest.mark.asyncio
async def test_analyze_repository_without_analyzer_degrades():
    """Test that code analysis never fails without a collaborator."""
    outcome = await _engine().analyze_repository(make_repo())

    assert outcome.is_degraded


def test_combinations_are_retrievable():
    """Test combining and listing through the engine."""
    engine = _engine()
    result = engine.combine(CombinationRequest([make_repo(1, "vue-a"), make_repo(2, "vue-b")], "Vue Suite"))

    assert result.strategy.target_framework == Framework.VUE
    assert engine.get_combination(result.id) == result
    assert engine.list_combinations() == [result]


@pytest.mark.asyncio
async def test_close_closes_client():
    """Test that closing the engine closes the GitHub client."""
    client = FakeGitHubClient()

    await _engine(client).close()

    assert client.closed
