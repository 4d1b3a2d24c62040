"""Builds GitHub search query strings from free text and filters."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional
from repointel.domain.models import ActivityBucket, SearchFilters, SizeBucket


logger = logging.getLogger(__name__)

SIZE_TERMS = {
    SizeBucket.SMALL: "size:<1000",
    SizeBucket.MEDIUM: "size:1000..10000",
    SizeBucket.LARGE: "size:>10000",
}

ACTIVITY_DAYS = {
    ActivityBucket.ACTIVE: 30,
    ActivityBucket.MAINTAINED: 90,
    ActivityBucket.STALE: 365,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _presence_term(qualifier: str, value: Optional[bool]) -> str:
    if value is None:
        return ""
    return f"has:{qualifier}" if value else f"-has:{qualifier}"


def _boolean_term(qualifier: str, value: Optional[bool]) -> str:
    if value is None:
        return ""
    return f"{qualifier}:{'true' if value else 'false'}"


class QueryBuilder:
    """Turns a query plus SearchFilters into GitHub's search dialect.

    Output is a pure function of the query, the filters, the exclusion list
    and the current date, so it can be used in cache keys.
    """

    def __init__(
        self,
        excluded_users: Iterable[str] = (),
        clock: Callable[[], datetime] = _utcnow
    ):
        """Initialize query builder.

        Args:
            excluded_users: Account names always excluded from results
            clock: Returns the current aware datetime
        """
        self._exclusions: List[str] = []
        self._clock = clock
        for user in excluded_users:
            self.add_exclusion(user)

    @property
    def exclusions(self) -> List[str]:
        """Copy of the current exclusion list."""
        return list(self._exclusions)

    def add_exclusion(self, username: str) -> None:
        if username and username not in self._exclusions:
            self._exclusions.append(username)
            logger.info(f"Excluding user {username} from searches")

    def remove_exclusion(self, username: str) -> None:
        self._exclusions = [user for user in self._exclusions if user != username]

    def build(self, query: str, filters: Optional[SearchFilters] = None) -> str:
        """Build the search query string.

        Args:
            query: Free-text query, passed through verbatim
            filters: Structured constraints; None means unconstrained

        Returns:
            Space-separated search terms
        """
        filters = filters or SearchFilters()
        parts = [query]

        parts.extend(f"-user:{user}" for user in self._exclusions)

        if filters.language:
            parts.append(f"language:{filters.language}")
        if filters.min_stars is not None:
            parts.append(f"stars:>={filters.min_stars}")
        if filters.max_stars is not None:
            parts.append(f"stars:<={filters.max_stars}")

        parts.extend(f"topic:{topic}" for topic in filters.topics)

        parts.append(_presence_term("issues", filters.has_issues))
        parts.append(_presence_term("wiki", filters.has_wiki))
        parts.append(_presence_term("pages", filters.has_pages))
        parts.append(_boolean_term("archived", filters.archived))
        parts.append(_boolean_term("fork", filters.fork))

        parts.extend(f"license:{license_key}" for license_key in filters.licenses)

        if filters.size is not None:
            parts.append(SIZE_TERMS[filters.size])
        if filters.activity is not None:
            parts.append(self._activity_term(filters.activity))

        return " ".join(part for part in parts if part)

    def _activity_term(self, activity: ActivityBucket) -> str:
        threshold = self._clock() - timedelta(days=ACTIVITY_DAYS[activity])
        date = threshold.strftime("%Y-%m-%d")
        if activity == ActivityBucket.STALE:
            return f"pushed:<{date}"
        return f"pushed:>{date}"
