"""Repository Intelligence Engine: the service object handed to request handlers."""
import logging
from typing import List, Optional
from repointel.application.code_analysis_service import CodeAnalysisService
from repointel.application.combination_service import CombinationService
from repointel.application.compatibility_service import MAX_SUGGESTIONS, CompatibilityService
from repointel.application.query_builder import QueryBuilder
from repointel.application.search_service import SearchService
from repointel.config import EngineSettings
from repointel.domain.analyzer_interface import ICodeAnalyzer
from repointel.domain.github_interface import IGitHubClient
from repointel.domain.models import (
    CodeAnalysis,
    CombinationRequest,
    CombinationResult,
    CompatibilityReport,
    Outcome,
    RecommendationPreferences,
    Repository,
    SearchFilters,
    SearchResult,
    Timeframe,
    TrendingAnalysis,
)
from repointel.infrastructure.github_client import GitHubClient
from repointel.infrastructure.memory_combination_storage import InMemoryCombinationStorage
from repointel.infrastructure.rate_limiter import RateLimiter
from repointel.infrastructure.result_cache import ResultCache


logger = logging.getLogger(__name__)


class RepositoryIntelligenceEngine:
    """Facade over search, compatibility analysis and project combination.

    Construct one per process and pass it to handlers. The rate limiter,
    cache and combination storage it owns are shared by every request.
    """

    def __init__(
        self,
        github_client: IGitHubClient,
        search_service: SearchService,
        compatibility_service: CompatibilityService,
        combination_service: CombinationService,
        code_analysis_service: CodeAnalysisService
    ):
        self._github_client = github_client
        self._search = search_service
        self._compatibility = compatibility_service
        self._combination = combination_service
        self._code_analysis = code_analysis_service

    @classmethod
    def from_settings(
        cls,
        settings: EngineSettings,
        github_client: Optional[IGitHubClient] = None,
        analyzer: Optional[ICodeAnalyzer] = None
    ) -> 'RepositoryIntelligenceEngine':
        """Wire the engine from settings.

        Args:
            settings: Engine settings
            github_client: Client override; defaults to the real GitHub client
            analyzer: Optional LLM analyzer
        """
        client = github_client or GitHubClient(
            settings.github_token,
            timeout_seconds=settings.request_timeout_seconds
        )
        search_service = SearchService(
            github_client=client,
            query_builder=QueryBuilder(settings.excluded_users),
            rate_limiter=RateLimiter(
                max_quota=settings.max_quota,
                low_water_mark=settings.low_water_mark,
                min_interval=settings.min_request_interval
            ),
            cache=ResultCache(settings.cache_ttl_seconds),
            page_size=settings.page_size,
            enrich_results=settings.enrich_results,
            enrichment_limiter=RateLimiter(
                max_quota=settings.max_quota,
                low_water_mark=settings.low_water_mark,
                min_interval=settings.min_request_interval
            )
        )
        return cls(
            github_client=client,
            search_service=search_service,
            compatibility_service=CompatibilityService(),
            combination_service=CombinationService(InMemoryCombinationStorage()),
            code_analysis_service=CodeAnalysisService(analyzer)
        )

    @property
    def query_builder(self) -> QueryBuilder:
        """Owner of the persistent exclusion list."""
        return self._search.query_builder

    async def search(
        self,
        query: str,
        filters: Optional[SearchFilters] = None,
        page: int = 1,
        timeout: Optional[float] = None
    ) -> SearchResult:
        return await self._search.search(query, filters, page, timeout)

    async def get_trending(
        self,
        timeframe: Timeframe = Timeframe.WEEKLY,
        language: Optional[str] = None
    ) -> TrendingAnalysis:
        return await self._search.get_trending(timeframe, language)

    async def find_similar(self, repo: Repository) -> List[Repository]:
        return await self._search.find_similar(repo)

    async def recommend(
        self,
        history: List[Repository],
        preferences: Optional[RecommendationPreferences] = None
    ) -> List[Repository]:
        return await self._search.recommend(history, preferences)

    async def analyze_repository(self, repo: Repository) -> Outcome[CodeAnalysis]:
        return await self._code_analysis.analyze(repo)

    async def analyze_compatibility(self, repositories: List[Repository]) -> CompatibilityReport:
        """Compatibility report, extended with LLM suggestions when available."""
        report = self._compatibility.analyze(repositories)
        if not report.sufficient_input or not self._code_analysis.available:
            return report

        suggestions = list(report.suggestions)
        for repo in repositories:
            outcome = await self._code_analysis.analyze(repo)
            if outcome.is_degraded:
                continue
            suggestions.extend(s for s in outcome.value.suggestions if s not in suggestions)

        return CompatibilityReport(
            score=report.score,
            conflicts=report.conflicts,
            suggestions=suggestions[:MAX_SUGGESTIONS],
            frameworks=report.frameworks,
            sufficient_input=report.sufficient_input
        )

    def combine(self, request: CombinationRequest) -> CombinationResult:
        return self._combination.combine(request)

    def get_combination(self, combination_id: str) -> Optional[CombinationResult]:
        return self._combination.get(combination_id)

    def list_combinations(self) -> List[CombinationResult]:
        return self._combination.list_all()

    async def close(self) -> None:
        """Close connections."""
        await self._github_client.close()
