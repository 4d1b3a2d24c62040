"""GitHub API client: REST search plus GraphQL enrichment lookups."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional
import aiohttp
from gql import gql, Client
from gql.client import AsyncClientSession
from gql.transport.aiohttp import AIOHTTPTransport
from gql.transport.exceptions import TransportError
from repointel.domain.exceptions import EnrichmentFailed, RateLimitExceeded, SearchFailed
from repointel.domain.github_interface import IGitHubClient
from repointel.domain.models import (
    RateLimitSnapshot,
    Repository,
    RepositoryOwner,
    SearchPage,
    SortKey,
    SortOrder,
)


logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
GRAPHQL_URL = "https://api.github.com/graphql"


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a GitHub ISO-8601 timestamp into an aware UTC datetime."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_rate_limit_headers(headers: Mapping[str, str]) -> Optional[RateLimitSnapshot]:
    """Read the quota GitHub reports in ``x-ratelimit-*`` headers."""
    remaining = headers.get("x-ratelimit-remaining")
    reset = headers.get("x-ratelimit-reset")
    if remaining is None or reset is None:
        return None
    try:
        return RateLimitSnapshot(remaining=int(remaining), reset=float(reset))
    except ValueError:
        logger.warning(f"Ignoring unparsable rate limit headers: {remaining!r}, {reset!r}")
        return None


def repository_from_api(item: Dict[str, Any]) -> Repository:
    """Transform a REST search item into a Repository domain entity.

    Any score present in the payload is ignored; scores are always recomputed.

    Raises:
        KeyError, TypeError, ValueError: When the item is malformed
    """
    owner = item["owner"]
    license_info = item.get("license") or {}
    return Repository(
        id=int(item["id"]),
        name=item["name"],
        full_name=item["full_name"],
        html_url=item["html_url"],
        owner=RepositoryOwner(
            login=owner["login"],
            avatar_url=owner.get("avatar_url") or ""
        ),
        updated_at=parse_timestamp(item["updated_at"]),
        created_at=parse_timestamp(item["created_at"]),
        description=item.get("description"),
        language=item.get("language"),
        stars=int(item.get("stargazers_count") or 0),
        forks=int(item.get("forks_count") or 0),
        open_issues=int(item.get("open_issues_count") or 0),
        topics=tuple(item.get("topics") or ()),
        pushed_at=parse_timestamp(item.get("pushed_at")),
        license=license_info.get("name"),
    )


class GitHubClient(IGitHubClient):
    """GitHub API client implementing the IGitHubClient port.

    Searches go through the REST endpoint, which supports page numbers and
    reports quota in response headers. Language and contributor lookups go
    through the GraphQL endpoint.
    """

    LANGUAGES_QUERY = gql("""
        query RepositoryLanguages($owner: String!, $name: String!) {
            repository(owner: $owner, name: $name) {
                languages(first: 20, orderBy: {field: SIZE, direction: DESC}) {
                    edges {
                        size
                        node {
                            name
                        }
                    }
                }
            }
        }
    """)

    # Stands in for the REST top-10 contributors listing.
    CONTRIBUTORS_QUERY = gql("""
        query RepositoryContributors($owner: String!, $name: String!) {
            repository(owner: $owner, name: $name) {
                mentionableUsers(first: 10) {
                    nodes {
                        login
                    }
                }
            }
        }
    """)

    def __init__(
        self,
        access_token: Optional[str] = None,
        timeout_seconds: float = 30.0,
        api_url: str = API_URL,
        graphql_url: str = GRAPHQL_URL
    ):
        """Initialize GitHub client.

        Args:
            access_token: GitHub personal access token (optional for search,
                required by the GraphQL enrichment lookups)
            timeout_seconds: Transport timeout for every call
            api_url: REST API base URL (GitHub Enterprise uses a different host)
            graphql_url: GraphQL endpoint URL
        """
        self._access_token = access_token
        self._timeout_seconds = timeout_seconds
        self._api_url = api_url.rstrip("/")
        self._graphql_url = graphql_url
        self._session: Optional[aiohttp.ClientSession] = None
        self._transport: Optional[AIOHTTPTransport] = None
        self._client: Optional[Client] = None
        self._gql_session: Optional[AsyncClientSession] = None
        self._gql_lock = asyncio.Lock()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    async def _get_session(self) -> aiohttp.ClientSession:
        """Initialize the REST session (lazy initialization)."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self._headers(),
                timeout=aiohttp.ClientTimeout(total=self._timeout_seconds)
            )
        return self._session

    async def _get_gql_session(self) -> AsyncClientSession:
        """Initialize the GraphQL client (lazy initialization)."""
        async with self._gql_lock:
            if self._gql_session is None:
                self._transport = AIOHTTPTransport(
                    url=self._graphql_url,
                    headers=self._headers(),
                    timeout=int(self._timeout_seconds)
                )
                self._client = Client(
                    transport=self._transport,
                    fetch_schema_from_transport=False,
                    execute_timeout=self._timeout_seconds
                )
                self._gql_session = await self._client.connect_async()
            return self._gql_session

    async def search_repositories(
        self,
        query: str,
        sort: SortKey,
        order: SortOrder,
        per_page: int,
        page: int
    ) -> SearchPage:
        """Search repositories through the REST search endpoint.

        Args:
            query: Query string in GitHub's search dialect
            sort: Sort key (``name`` leaves the API's best-match order)
            order: Sort order
            per_page: Page size (GitHub caps it at 100)
            page: 1-based page number

        Returns:
            SearchPage with domain repositories and reported quota

        Raises:
            RateLimitExceeded: When GitHub refuses the call for quota
            SearchFailed: On transport errors, HTTP errors or malformed payloads
        """
        params = {
            "q": query,
            "order": order.value,
            "per_page": str(min(per_page, 100)),
            "page": str(page),
        }
        if sort != SortKey.NAME:
            params["sort"] = sort.value

        session = await self._get_session()
        try:
            async with session.get(f"{self._api_url}/search/repositories", params=params) as response:
                snapshot = parse_rate_limit_headers(response.headers)
                if response.status in (403, 429) and (
                    snapshot is None or snapshot.remaining == 0
                ):
                    raise RateLimitExceeded(
                        f"GitHub search rate limited (HTTP {response.status})",
                        reset_at=snapshot.reset if snapshot else None
                    )
                if response.status >= 400:
                    body = await response.text()
                    raise SearchFailed(
                        f"GitHub search returned HTTP {response.status}: {body[:200]}"
                    )
                payload = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Error executing GitHub search: {e!r}")
            raise SearchFailed(f"GitHub search request failed: {e!r}") from e

        return self._to_search_page(payload, snapshot)

    @staticmethod
    def _to_search_page(payload: Any, snapshot: Optional[RateLimitSnapshot]) -> SearchPage:
        """Transform a search response body into a SearchPage."""
        try:
            items = payload["items"]
            total_count = int(payload["total_count"])
            if not isinstance(items, list):
                raise TypeError(f"items is {type(items).__name__}, expected list")
            repositories = [repository_from_api(item) for item in items]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed GitHub search response: {e!r}")
            raise SearchFailed(f"Malformed GitHub search response: {e!r}") from e

        return SearchPage(
            repositories=repositories,
            total_count=total_count,
            rate_limit=snapshot
        )

    async def _execute_repository_query(self, document, full_name: str) -> Dict[str, Any]:
        owner, _, name = full_name.partition("/")
        if not owner or not name:
            raise EnrichmentFailed(f"Invalid repository name: {full_name!r}")
        try:
            session = await self._get_gql_session()
            result = await session.execute(
                document,
                variable_values={"owner": owner, "name": name}
            )
        except (TransportError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise EnrichmentFailed(f"GraphQL lookup for {full_name} failed: {e!r}") from e

        repository = result.get("repository")
        if not repository:
            raise EnrichmentFailed(f"Repository {full_name} not found")
        return repository

    async def fetch_languages(self, full_name: str) -> Dict[str, int]:
        repository = await self._execute_repository_query(self.LANGUAGES_QUERY, full_name)
        try:
            edges = (repository.get("languages") or {}).get("edges") or []
            return {edge["node"]["name"]: int(edge["size"]) for edge in edges}
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise EnrichmentFailed(f"Malformed languages for {full_name}: {e!r}") from e

    async def fetch_contributor_count(self, full_name: str) -> int:
        repository = await self._execute_repository_query(self.CONTRIBUTORS_QUERY, full_name)
        try:
            nodes = (repository.get("mentionableUsers") or {}).get("nodes") or []
            return len(nodes)
        except (AttributeError, TypeError) as e:
            raise EnrichmentFailed(f"Malformed contributors for {full_name}: {e!r}") from e

    async def close(self) -> None:
        """Close the REST session and the GraphQL client."""
        if self._session is not None:
            await self._session.close()
            self._session = None
        if self._client is not None and self._gql_session is not None:
            await self._client.close_async()
        self._gql_session = None
        self._client = None
        self._transport = None
