"""Repository quality scoring (0-100).

Two variants exist. The standard score is a weighted sum of five capped
sub-scores computed from search metadata alone. The enhanced score, used
when language and contributor lookups were attempted, sums its capped
components directly without weights.

The only time-dependent input is the number of days since ``updated_at``,
so scores drift downward between runs when a repository is not updated.
"""
import math
from datetime import datetime, timezone
from typing import Dict, Optional
from repointel.domain.models import Repository, RepositoryEnrichment


STANDARD_WEIGHTS = {
    "stars": 0.3,
    "forks": 0.2,
    "updates": 0.2,
    "documentation": 0.2,
    "issues": 0.1,
}

NEUTRAL_SCORE = 50


def days_since_update(repo: Repository, now: Optional[datetime] = None) -> float:
    now = now or datetime.now(timezone.utc)
    delta = (now - repo.updated_at).total_seconds() / 86400
    return max(delta, 0.0)


def _issue_health(repo: Repository) -> float:
    issue_ratio = repo.open_issues / (repo.stars + 1)
    return max(10 - issue_ratio * 50, 0)


def standard_score(repo: Repository, now: Optional[datetime] = None) -> int:
    """Weighted quality score from search metadata only."""
    star_score = min(math.log10(repo.stars + 1) * 10, 30)
    fork_score = min(math.log10(repo.forks + 1) * 10, 20)
    activity_score = max(20 - days_since_update(repo, now) / 30, 0)

    has_long_description = len(repo.description or "") > 50
    doc_score = (15 if has_long_description else 0) + (5 if repo.topics else 0)

    score = (
        star_score * STANDARD_WEIGHTS["stars"]
        + fork_score * STANDARD_WEIGHTS["forks"]
        + activity_score * STANDARD_WEIGHTS["updates"]
        + doc_score * STANDARD_WEIGHTS["documentation"]
        + _issue_health(repo) * STANDARD_WEIGHTS["issues"]
    )
    return round(min(score, 100))


def enhanced_score(
    repo: Repository,
    languages: Dict[str, int],
    contributor_count: int,
    now: Optional[datetime] = None
) -> int:
    """Unweighted quality score including community and language data."""
    score = 0.0
    # Stars, max 25
    score += min(math.log10(repo.stars + 1) * 5, 25)
    # Activity, max 20
    score += max(20 - days_since_update(repo, now) / 7, 0)
    # Documentation, max 15
    if len(repo.description or "") > 20:
        score += 10
    if repo.topics:
        score += 5
    # Community, max 20
    score += min(contributor_count * 2, 15)
    score += min(repo.forks / 10, 5)
    # Language diversity, max 10
    score += min(len(languages) * 2, 10)
    # Issue management, max 10
    score += _issue_health(repo)

    return round(min(score, 100))


def score(
    repo: Repository,
    enrichment: Optional[RepositoryEnrichment] = None,
    now: Optional[datetime] = None
) -> int:
    """Score a repository, using the enhanced variant when enrichment is given.

    Degraded enrichment contributes its empty defaults.
    """
    if enrichment is None:
        return standard_score(repo, now)
    return enhanced_score(
        repo,
        enrichment.languages.value,
        enrichment.contributors.value,
        now
    )
