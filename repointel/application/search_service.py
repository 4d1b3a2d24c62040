"""Search service orchestrating query building, rate limiting, caching and scoring."""
import asyncio
import calendar
import logging
import time
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, List, Optional, Tuple, TypeVar
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
)
from repointel.application import quality_scorer
from repointel.application.query_builder import QueryBuilder
from repointel.domain.exceptions import EnrichmentFailed, RateLimitExceeded, SearchFailed
from repointel.domain.github_interface import IGitHubClient
from repointel.domain.models import (
    Degraded,
    LanguageCount,
    Ok,
    Outcome,
    QualityBucket,
    RecommendationPreferences,
    Repository,
    RepositoryEnrichment,
    SearchFilters,
    SearchPage,
    SearchResult,
    SortKey,
    SortOrder,
    Timeframe,
    TopicMomentum,
    TrendingAnalysis,
    TrendingInsights,
)
from repointel.infrastructure.rate_limiter import RateLimiter
from repointel.infrastructure.result_cache import ResultCache


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50
TRENDING_LIMIT = 30
SIMILAR_LIMIT = 10
RECOMMENDATION_LIMIT = 20
RECOMMENDATION_MIN_STARS = 10
# Ranking score for a candidate that was never scored.
RECOMMENDATION_DEFAULT_SCORE = 50
MAX_RECOMMENDED_LANGUAGES = 3
MAX_RECOMMENDED_TOPICS = 2

QUALITY_THRESHOLDS = {
    QualityBucket.EXCELLENT: 85,
    QualityBucket.GOOD: 70,
    QualityBucket.FAIR: 55,
    QualityBucket.POOR: 0,
}

# Used when a 403/429 response carries no reset header.
FALLBACK_RESET_SECONDS = 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def date_threshold(timeframe: Timeframe, now: datetime) -> str:
    """Return the YYYY-MM-DD date one timeframe before ``now``."""
    if timeframe == Timeframe.DAILY:
        threshold = now - timedelta(days=1)
    elif timeframe == Timeframe.WEEKLY:
        threshold = now - timedelta(days=7)
    else:
        year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
        day = min(now.day, calendar.monthrange(year, month)[1])
        threshold = now.replace(year=year, month=month, day=day)
    return threshold.strftime("%Y-%m-%d")


def analyze_trends(repositories: List[Repository]) -> TrendingInsights:
    """Summarize languages, topics, popularity and community size of a result page."""
    if not repositories:
        return TrendingInsights(
            top_languages=[],
            emerging_topics=[],
            average_stars=0.0,
            average_quality=0.0,
            average_contributors=0.0
        )

    languages = Counter(repo.language for repo in repositories if repo.language)
    topics = Counter(topic for repo in repositories for topic in repo.topics)
    contributor_counts = [
        repo.contributor_count for repo in repositories if repo.contributor_count is not None
    ]
    total = len(repositories)

    return TrendingInsights(
        top_languages=[LanguageCount(language, count) for language, count in languages.most_common(5)],
        emerging_topics=[TopicMomentum(topic, count) for topic, count in topics.most_common(10)],
        average_stars=round(sum(repo.stars for repo in repositories) / total, 1),
        average_quality=round(sum(repo.quality_score or 0 for repo in repositories) / total, 1),
        average_contributors=(
            round(sum(contributor_counts) / len(contributor_counts), 1)
            if contributor_counts else 0.0
        )
    )


class SearchService:
    """Application service for searching and ranking GitHub repositories.

    Composes the query builder, the shared rate limiter and result cache,
    and the GitHub client. Holds no per-request state.
    """

    def __init__(
        self,
        github_client: IGitHubClient,
        query_builder: QueryBuilder,
        rate_limiter: RateLimiter,
        cache: ResultCache,
        page_size: int = DEFAULT_PAGE_SIZE,
        enrich_results: bool = True,
        enrichment_limiter: Optional[RateLimiter] = None,
        clock: Callable[[], datetime] = _utcnow
    ):
        """Initialize search service.

        Args:
            github_client: GitHub API client implementation
            query_builder: Builds query strings and owns the exclusion list
            rate_limiter: Shared limiter for search calls, fed by the search quota headers
            cache: Shared result cache
            page_size: Items requested per search page
            enrich_results: Fetch languages and contributors before scoring
            enrichment_limiter: Separate limiter for the GraphQL lookups, whose quota
                is independent of the search quota; None leaves them unthrottled
            clock: Returns the current aware datetime
        """
        self._github_client = github_client
        self._query_builder = query_builder
        self._rate_limiter = rate_limiter
        self._cache = cache
        self._page_size = page_size
        self._enrich_results = enrich_results
        self._enrichment_limiter = enrichment_limiter
        self._clock = clock

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def query_builder(self) -> QueryBuilder:
        return self._query_builder

    def cache_key(self, query: str, filters: SearchFilters, page: int) -> str:
        """Canonical cache key for a search request."""
        exclusions = ",".join(sorted(self._query_builder.exclusions))
        return f"search|{query}|{filters.cache_token()}|{exclusions}|{page}"

    async def search(
        self,
        query: str,
        filters: Optional[SearchFilters] = None,
        page: int = 1,
        timeout: Optional[float] = None
    ) -> SearchResult:
        """Search, score and post-filter one page of repositories.

        Args:
            query: Free-text query
            filters: Structured constraints
            page: 1-based page number
            timeout: Overall limit in seconds for the rate-limit waits, the
                search call and enrichment; None waits indefinitely

        Returns:
            SearchResult for the page

        Raises:
            SearchFailed: When the search call fails, times out or stays rate limited
        """
        filters = filters or SearchFilters()
        cache_key = self.cache_key(query, filters, page)

        cached = self._cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for {cache_key}")
            return cached

        try:
            search_page, repositories = await asyncio.wait_for(
                self._fetch_and_score(query, filters, page),
                timeout
            )
        except RateLimitExceeded as e:
            logger.error(f"Search rate limit did not recover: {e}")
            raise SearchFailed("GitHub search rate limit did not recover") from e
        except asyncio.TimeoutError as e:
            logger.error(f"Search timed out after {timeout} seconds")
            raise SearchFailed(f"GitHub search timed out after {timeout} seconds") from e

        filtered = self._apply_post_filters(repositories, filters)

        has_more = search_page.item_count == self._page_size
        result = SearchResult(
            repositories=filtered,
            total_count=search_page.total_count,
            has_more=has_more,
            next_page=page + 1 if has_more else None
        )

        self._cache.set(cache_key, result)
        logger.info(
            f"Search returned {len(filtered)}/{search_page.item_count} repositories "
            f"(total {search_page.total_count}, page {page})"
        )
        return result

    async def _fetch_and_score(
        self,
        query: str,
        filters: SearchFilters,
        page: int
    ) -> Tuple[SearchPage, List[Repository]]:
        search_page = await self._fetch_page(query, filters, page)
        return search_page, await self._score_all(search_page.repositories)

    @retry(
        retry=retry_if_exception_type(RateLimitExceeded),
        stop=stop_after_attempt(3),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True
    )
    async def _fetch_page(self, query: str, filters: SearchFilters, page: int) -> SearchPage:
        """Issue one rate-limited search call.

        A RateLimitExceeded response pushes its reset time into the rate
        limiter, so the retry waits there until the quota window reopens.
        """
        await self._rate_limiter.wait_if_needed()
        search_query = self._query_builder.build(query, filters)
        logger.info(f"Searching GitHub: {search_query!r} (page {page})")

        try:
            search_page = await self._github_client.search_repositories(
                search_query,
                filters.sort_by,
                filters.order,
                self._page_size,
                page
            )
        except RateLimitExceeded as e:
            reset_at = e.reset_at or time.time() + FALLBACK_RESET_SECONDS
            self._rate_limiter.update_limits(0, reset_at)
            raise

        if search_page.rate_limit is not None:
            self._rate_limiter.update_limits(
                search_page.rate_limit.remaining,
                search_page.rate_limit.reset
            )
        return search_page

    async def _score_all(self, repositories: List[Repository]) -> List[Repository]:
        if not self._enrich_results:
            return [self._score(repo, None) for repo in repositories]

        enrichments = await asyncio.gather(*(self._enrich(repo) for repo in repositories))
        return [
            self._score(repo, enrichment)
            for repo, enrichment in zip(repositories, enrichments)
        ]

    async def _enrich(self, repo: Repository) -> RepositoryEnrichment:
        languages, contributors = await asyncio.gather(
            self._lookup(self._github_client.fetch_languages, repo, {}),
            self._lookup(self._github_client.fetch_contributor_count, repo, 0)
        )
        return RepositoryEnrichment(languages=languages, contributors=contributors)

    async def _lookup(
        self,
        fetch: Callable[[str], Awaitable[T]],
        repo: Repository,
        default: T
    ) -> Outcome[T]:
        if self._enrichment_limiter is not None:
            await self._enrichment_limiter.wait_if_needed()
        try:
            return Ok(await fetch(repo.full_name))
        except EnrichmentFailed as e:
            logger.warning(f"Enrichment degraded for {repo.full_name}: {e}")
            return Degraded(default, str(e))

    def _score(self, repo: Repository, enrichment: Optional[RepositoryEnrichment]) -> Repository:
        try:
            value = quality_scorer.score(repo, enrichment, self._clock())
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning(f"Scoring failed for {repo.full_name}, using neutral score: {e!r}")
            value = quality_scorer.NEUTRAL_SCORE

        if enrichment is not None:
            repo = repo.with_enrichment(
                list(enrichment.languages.value),
                enrichment.contributors.value
            )
        return repo.with_quality_score(value)

    @staticmethod
    def _apply_post_filters(repositories: List[Repository], filters: SearchFilters) -> List[Repository]:
        """Apply constraints the query string cannot express."""
        result = []
        for repo in repositories:
            if filters.code_quality is not None:
                if (repo.quality_score or 0) < QUALITY_THRESHOLDS[filters.code_quality]:
                    continue
            if filters.enforce_star_range:
                if filters.min_stars is not None and repo.stars < filters.min_stars:
                    continue
                if filters.max_stars is not None and repo.stars > filters.max_stars:
                    continue
            result.append(repo)
        return result

    async def get_trending(
        self,
        timeframe: Timeframe = Timeframe.WEEKLY,
        language: Optional[str] = None
    ) -> TrendingAnalysis:
        """Repositories created within the timeframe, ranked by stars, with insights."""
        cache_key = f"trending-{timeframe.value}-{language or 'all'}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        threshold = date_threshold(timeframe, self._clock())
        result = await self.search(
            f"created:>{threshold} stars:>5",
            SearchFilters(
                language=language,
                sort_by=SortKey.STARS,
                order=SortOrder.DESC,
                archived=False,
                fork=False
            )
        )

        analysis = TrendingAnalysis(
            repositories=result.repositories[:TRENDING_LIMIT],
            insights=analyze_trends(result.repositories)
        )
        self._cache.set(cache_key, analysis)
        return analysis

    async def find_similar(self, repo: Repository) -> List[Repository]:
        """Find repositories sharing language, topics and description terms."""
        description_terms = " ".join((repo.description or "").split()[:3])
        search_terms = [repo.language or "", *repo.topics[:3], description_terms]
        query = " ".join(term for term in search_terms if term)

        result = await self.search(
            query,
            SearchFilters(
                language=repo.language,
                min_stars=int(max(repo.stars / 10, 5)),
                topics=repo.topics[:2]
            )
        )
        similar = [candidate for candidate in result.repositories if candidate.id != repo.id]
        return similar[:SIMILAR_LIMIT]

    async def recommend(
        self,
        history: List[Repository],
        preferences: Optional[RecommendationPreferences] = None
    ) -> List[Repository]:
        """Recommend repositories matching a user's languages and topics.

        Preferred languages and topics come first, followed by the most
        common ones in the user's history. Each runs as its own search; the
        merged candidates are deduplicated by id, keeping the first
        occurrence, and repositories already in the history are dropped.

        Args:
            history: Repositories the user has already viewed or starred
            preferences: Explicit languages, topics and star floor

        Returns:
            Up to RECOMMENDATION_LIMIT repositories ranked by quality score

        Raises:
            SearchFailed: When every underlying search fails
        """
        preferences = preferences or RecommendationPreferences()
        history_languages = Counter(repo.language for repo in history if repo.language)
        history_topics = Counter(topic for repo in history for topic in repo.topics)

        languages = list(dict.fromkeys(
            [*preferences.languages, *(language for language, _ in history_languages.most_common())]
        ))[:MAX_RECOMMENDED_LANGUAGES]
        topics = list(dict.fromkeys(
            [*preferences.topics, *(topic for topic, _ in history_topics.most_common())]
        ))[:MAX_RECOMMENDED_TOPICS]
        if not languages and not topics:
            logger.info("No languages or topics to recommend from")
            return []

        min_stars = (
            RECOMMENDATION_MIN_STARS if preferences.min_stars is None else preferences.min_stars
        )
        searches = [SearchFilters(language=language, min_stars=min_stars) for language in languages]
        searches.extend(SearchFilters(topics=(topic,), min_stars=min_stars) for topic in topics)

        outcomes = await asyncio.gather(
            *(self.search("", filters) for filters in searches),
            return_exceptions=True
        )

        seen = {repo.id for repo in history}
        candidates = []
        failures = 0
        for filters, outcome in zip(searches, outcomes):
            if isinstance(outcome, SearchFailed):
                failures += 1
                logger.warning(f"Recommendation search {filters.cache_token()} failed: {outcome}")
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            for repo in outcome.repositories:
                if repo.id not in seen:
                    seen.add(repo.id)
                    candidates.append(repo)

        if failures == len(searches):
            raise SearchFailed("Every recommendation search failed")

        candidates.sort(
            key=lambda repo: (
                RECOMMENDATION_DEFAULT_SCORE if repo.quality_score is None else repo.quality_score
            ),
            reverse=True
        )
        logger.info(
            f"Recommending {min(len(candidates), RECOMMENDATION_LIMIT)} of {len(candidates)} "
            f"candidates for languages {languages} and topics {topics}"
        )
        return candidates[:RECOMMENDATION_LIMIT]
