"""Tests for domain models."""
import json
from repointel.domain.models import (
    Degraded,
    Ok,
    QualityBucket,
    RepositoryEnrichment,
    SearchFilters,
    SortKey,
)
from conftest import make_repo


def test_repository_creation():
    """Test creating an immutable Repository entity."""
    repo = make_repo(42, "react", "facebook", stars=200000)

    assert repo.owner.login == "facebook"
    assert repo.name == "react"
    assert repo.full_name == "facebook/react"
    assert repo.stars == 200000
    assert repo.quality_score is None


def test_repository_with_quality_score():
    """Test attaching a score to a repository."""
    repo = make_repo(42, "react", "facebook")

    scored = repo.with_quality_score(87)

    assert scored.quality_score == 87
    assert scored.id == repo.id
    assert repo.quality_score is None  # Original unchanged (immutability)


def test_repository_with_enrichment():
    """Test attaching languages and contributor count."""
    repo = make_repo()

    enriched = repo.with_enrichment(["Python", "Shell"], 7)

    assert enriched.languages == ("Python", "Shell")
    assert enriched.contributor_count == 7
    assert repo.contributor_count is None


def test_repository_topics_deduplicated():
    """Test that topics behave like a set while keeping order."""
    repo = make_repo(topics=("react", "ui", "react"))

    assert repo.topics == ("react", "ui")


def test_filters_cache_token_is_order_independent():
    """Test that equivalent filters serialize identically."""
    first = SearchFilters(topics=("ui", "react"), licenses=("mit", "apache-2.0"))
    second = SearchFilters(topics=("react", "ui", "ui"), licenses=("apache-2.0", "mit"))

    assert first.cache_token() == second.cache_token()


def test_filters_cache_token_distinguishes_values():
    """Test that different filters give different tokens."""
    base = SearchFilters(language="python")

    assert base.cache_token() != SearchFilters(language="go").cache_token()
    assert base.cache_token() != SearchFilters(language="python", sort_by=SortKey.FORKS).cache_token()


def test_filters_cache_token_serializes_enums():
    """Test that enum fields are stored by value."""
    token = json.loads(SearchFilters(code_quality=QualityBucket.GOOD).cache_token())

    assert token["code_quality"] == "good"
    assert token["sort_by"] == "stars"


def test_enrichment_degraded_flag():
    """Test that any degraded lookup marks the enrichment degraded."""
    healthy = RepositoryEnrichment(languages=Ok({"Go": 10}), contributors=Ok(3))
    partial = RepositoryEnrichment(languages=Ok({"Go": 10}), contributors=Degraded(0, "timeout"))

    assert not healthy.is_degraded
    assert partial.is_degraded
    assert partial.contributors.value == 0
