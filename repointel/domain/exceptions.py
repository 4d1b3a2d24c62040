"""Error taxonomy shared by every layer of the engine."""
from typing import Optional


class RepositoryIntelligenceError(Exception):
    """Base class for engine errors."""
    pass


class RateLimitExceeded(RepositoryIntelligenceError):
    """Raised by the GitHub client when the API refuses a call for quota.

    Recovered internally by waiting for the reset; callers never see it.
    """

    def __init__(self, message: str, reset_at: Optional[float] = None):
        super().__init__(message)
        self.reset_at = reset_at


class SearchFailed(RepositoryIntelligenceError):
    """The primary search call failed or returned a malformed payload."""
    pass


class EnrichmentFailed(RepositoryIntelligenceError):
    """A language or contributor lookup failed."""
    pass


class AnalysisUnavailable(RepositoryIntelligenceError):
    """The LLM collaborator failed or returned unparsable output."""
    pass


class InsufficientInput(RepositoryIntelligenceError):
    """Fewer than two repositories were supplied for comparison."""
    pass
