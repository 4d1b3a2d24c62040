"""Engine settings loaded from environment variables."""
import os
from dataclasses import dataclass
from typing import Optional, Tuple
from dotenv import load_dotenv


@dataclass(frozen=True)
class EngineSettings:
    github_token: Optional[str] = None
    page_size: int = 50
    cache_ttl_seconds: float = 15 * 60
    max_quota: int = 5000
    low_water_mark: int = 100
    min_request_interval: float = 0.1
    request_timeout_seconds: float = 30.0
    enrich_results: bool = True
    excluded_users: Tuple[str, ...] = ()


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> EngineSettings:
    """Build settings from the environment, reading .env or env first."""
    # Load environment variables from .env or env file
    load_dotenv('.env') or load_dotenv('env')

    excluded = os.getenv("EXCLUDED_USERS", "")
    return EngineSettings(
        github_token=os.getenv("GITHUB_TOKEN") or None,
        page_size=int(os.getenv("SEARCH_PAGE_SIZE", "50")),
        cache_ttl_seconds=float(os.getenv("CACHE_TTL_SECONDS", "900")),
        max_quota=int(os.getenv("RATE_LIMIT_MAX_QUOTA", "5000")),
        low_water_mark=int(os.getenv("RATE_LIMIT_LOW_WATER", "100")),
        min_request_interval=int(os.getenv("RATE_LIMIT_MIN_INTERVAL_MS", "100")) / 1000,
        request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30")),
        enrich_results=_env_flag("ENRICH_RESULTS", True),
        excluded_users=tuple(user.strip() for user in excluded.split(",") if user.strip()),
    )
