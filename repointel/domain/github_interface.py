"""GitHub API interface (port) for searching and enriching repositories.

This is the anti-corruption layer that shields the domain from GitHub API specifics.
"""
from abc import ABC, abstractmethod
from typing import Dict
from repointel.domain.models import SearchPage, SortKey, SortOrder


class IGitHubClient(ABC):
    """Abstract interface for GitHub API operations."""

    @abstractmethod
    async def search_repositories(
        self,
        query: str,
        sort: SortKey,
        order: SortOrder,
        per_page: int,
        page: int
    ) -> SearchPage:
        """Run a repository search.

        Args:
            query: Query string in GitHub's search dialect
            sort: Sort key
            order: Sort order
            per_page: Page size
            page: 1-based page number

        Returns:
            SearchPage with domain repositories and header-reported quota

        Raises:
            RateLimitExceeded: When GitHub refuses the call for quota
            SearchFailed: On any other failure or malformed payload
        """
        pass

    @abstractmethod
    async def fetch_languages(self, full_name: str) -> Dict[str, int]:
        """Fetch the language breakdown (language -> bytes) of a repository.

        Raises:
            EnrichmentFailed: When the lookup fails
        """
        pass

    @abstractmethod
    async def fetch_contributor_count(self, full_name: str) -> int:
        """Count the top contributors of a repository (at most 10).

        Raises:
            EnrichmentFailed: When the lookup fails
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        pass
