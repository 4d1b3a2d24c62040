"""Shared fixtures and fakes for the test suite."""
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from repointel.domain.exceptions import EnrichmentFailed
from repointel.domain.github_interface import IGitHubClient
from repointel.domain.models import (
    RateLimitSnapshot,
    Repository,
    RepositoryOwner,
    SearchPage,
)


NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_repo(repo_id: int = 1, name: str = "project", owner: str = "octocat", **overrides) -> Repository:
    """Build a Repository with sensible defaults for tests."""
    fields = dict(
        id=repo_id,
        name=name,
        full_name=f"{owner}/{name}",
        html_url=f"https://github.com/{owner}/{name}",
        owner=RepositoryOwner(login=owner),
        updated_at=NOW,
        created_at=NOW,
    )
    fields.update(overrides)
    return Repository(**fields)


class FakeClock:
    """Manually advanced epoch clock with a matching sleep coroutine."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeGitHubClient(IGitHubClient):
    """Scripted IGitHubClient recording every call it receives.

    ``search_responses`` is consumed in order; an exception instance in the
    list is raised instead of returned. Once exhausted the last entry repeats.
    """

    def __init__(
        self,
        search_responses: Optional[list] = None,
        languages: Optional[Dict[str, Dict[str, int]]] = None,
        contributors: Optional[Dict[str, int]] = None,
        failing_enrichment: bool = False
    ):
        self.search_responses = list(search_responses or [SearchPage([], 0)])
        self.languages = languages or {}
        self.contributors = contributors or {}
        self.failing_enrichment = failing_enrichment
        self.search_calls: List[tuple] = []
        self.enrichment_calls: List[str] = []
        self.closed = False

    async def search_repositories(self, query, sort, order, per_page, page):
        self.search_calls.append((query, sort, order, per_page, page))
        index = min(len(self.search_calls) - 1, len(self.search_responses) - 1)
        response = self.search_responses[index]
        if isinstance(response, Exception):
            raise response
        return response

    async def fetch_languages(self, full_name):
        self.enrichment_calls.append(full_name)
        if self.failing_enrichment:
            raise EnrichmentFailed(f"languages unavailable for {full_name}")
        return self.languages.get(full_name, {})

    async def fetch_contributor_count(self, full_name):
        self.enrichment_calls.append(full_name)
        if self.failing_enrichment:
            raise EnrichmentFailed(f"contributors unavailable for {full_name}")
        return self.contributors.get(full_name, 0)

    async def close(self):
        self.closed = True


def page_of(repositories: List[Repository], total_count: Optional[int] = None,
            rate_limit: Optional[RateLimitSnapshot] = None) -> SearchPage:
    return SearchPage(
        repositories=repositories,
        total_count=len(repositories) if total_count is None else total_count,
        rate_limit=rate_limit
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()
