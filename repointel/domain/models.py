"""Domain models representing core business entities."""
import json
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Generic, List, Optional, Tuple, TypeVar, Union


T = TypeVar("T")


class Framework(str, Enum):
    """Frameworks the engine can detect from repository metadata."""
    NEXTJS = "nextjs"
    REMIX = "remix"
    REACT = "react"
    VUE = "vue"
    ANGULAR = "angular"
    EXPRESS = "express"
    FASTAPI = "fastapi"
    DJANGO = "django"
    UNKNOWN = "unknown"


class ConflictResolution(str, Enum):
    OVERWRITE = "overwrite"
    MERGE = "merge"
    SMART_MERGE = "smart-merge"


class ComponentMerging(str, Enum):
    ALL = "all"
    SELECTIVE = "selective"
    BEST_OF_BREED = "best-of-breed"


class DependencyStrategy(str, Enum):
    UNIFIED = "unified"
    SEPARATE = "separate"
    MICRO_FRONTEND = "micro-frontend"


class MergeType(str, Enum):
    SIMPLE = "simple"
    INTELLIGENT = "intelligent"
    CUSTOM = "custom"


class DeploymentPlatform(str, Enum):
    VERCEL = "vercel"
    NETLIFY = "netlify"
    RAILWAY = "railway"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ConflictType(str, Enum):
    FRAMEWORK = "framework"
    DEPENDENCY = "dependency"
    ARCHITECTURE = "architecture"
    LICENSE = "license"


class FileType(str, Enum):
    COMPONENT = "component"
    CONFIG = "config"
    STYLE = "style"
    API = "api"
    UTILITY = "utility"
    TEST = "test"


class SortKey(str, Enum):
    STARS = "stars"
    FORKS = "forks"
    UPDATED = "updated"
    CREATED = "created"
    NAME = "name"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SizeBucket(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class ActivityBucket(str, Enum):
    ACTIVE = "active"
    MAINTAINED = "maintained"
    STALE = "stale"


class QualityBucket(str, Enum):
    """Minimum quality score buckets applied after scoring."""
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class Timeframe(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Result of an operation that fully succeeded."""
    value: T

    @property
    def is_degraded(self) -> bool:
        return False


@dataclass(frozen=True)
class Degraded(Generic[T]):
    """Result carrying a default value because the real operation failed."""
    value: T
    reason: str

    @property
    def is_degraded(self) -> bool:
        return True


Outcome = Union[Ok[T], Degraded[T]]


@dataclass(frozen=True)
class RepositoryOwner:
    login: str
    avatar_url: str = ""


@dataclass(frozen=True)
class Repository:
    """Immutable domain entity representing a GitHub repository.

    The numeric id is the only identity key. ``quality_score`` is derived
    by the scorer and is never read from API payloads.
    """
    id: int
    name: str
    full_name: str
    html_url: str
    owner: RepositoryOwner
    updated_at: datetime
    created_at: datetime
    description: Optional[str] = None
    language: Optional[str] = None
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    topics: Tuple[str, ...] = ()
    pushed_at: Optional[datetime] = None
    quality_score: Optional[int] = None
    languages: Tuple[str, ...] = ()
    contributor_count: Optional[int] = None
    license: Optional[str] = None

    def __post_init__(self):
        # Topics are a set semantically; keep first-seen order for display.
        object.__setattr__(self, "topics", tuple(dict.fromkeys(self.topics)))

    def with_quality_score(self, score: int) -> 'Repository':
        """Returns a new Repository instance carrying the given score."""
        return replace(self, quality_score=score)

    def with_enrichment(self, languages: List[str], contributor_count: int) -> 'Repository':
        """Returns a new Repository instance with enrichment data attached."""
        return replace(
            self,
            languages=tuple(languages),
            contributor_count=contributor_count
        )


@dataclass(frozen=True)
class SearchFilters:
    """Optional search constraints. ``None`` means unconstrained."""
    language: Optional[str] = None
    min_stars: Optional[int] = None
    max_stars: Optional[int] = None
    topics: Tuple[str, ...] = ()
    has_issues: Optional[bool] = None
    has_wiki: Optional[bool] = None
    has_pages: Optional[bool] = None
    archived: Optional[bool] = None
    fork: Optional[bool] = None
    licenses: Tuple[str, ...] = ()
    size: Optional[SizeBucket] = None
    activity: Optional[ActivityBucket] = None
    code_quality: Optional[QualityBucket] = None
    enforce_star_range: bool = False
    sort_by: SortKey = SortKey.STARS
    order: SortOrder = SortOrder.DESC

    def __post_init__(self):
        object.__setattr__(self, "topics", tuple(sorted(set(self.topics))))
        object.__setattr__(self, "licenses", tuple(sorted(set(self.licenses))))

    def cache_token(self) -> str:
        """Canonical serialization used in cache keys."""
        payload = {}
        for name, value in self.__dict__.items():
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, tuple):
                value = list(value)
            payload[name] = value
        return json.dumps(payload, sort_keys=True, separators=(",", ":"))


@dataclass(frozen=True)
class RateLimitSnapshot:
    """Quota as reported by the last response headers."""
    remaining: int
    reset: float


@dataclass(frozen=True)
class SearchPage:
    """A single page returned by the search API."""
    repositories: List[Repository]
    total_count: int
    rate_limit: Optional[RateLimitSnapshot] = None

    @property
    def item_count(self) -> int:
        return len(self.repositories)


@dataclass(frozen=True)
class SearchResult:
    repositories: List[Repository]
    total_count: int
    has_more: bool
    next_page: Optional[int] = None


@dataclass(frozen=True)
class RepositoryEnrichment:
    """Language breakdown and contributor lookups for one repository."""
    languages: Outcome[Dict[str, int]]
    contributors: Outcome[int]

    @property
    def is_degraded(self) -> bool:
        return self.languages.is_degraded or self.contributors.is_degraded


@dataclass(frozen=True)
class LanguageCount:
    language: str
    count: int


@dataclass(frozen=True)
class TopicMomentum:
    topic: str
    momentum: int


@dataclass(frozen=True)
class TrendingInsights:
    top_languages: List[LanguageCount]
    emerging_topics: List[TopicMomentum]
    average_stars: float
    average_quality: float
    average_contributors: float


@dataclass(frozen=True)
class TrendingAnalysis:
    repositories: List[Repository]
    insights: TrendingInsights


@dataclass(frozen=True)
class RecommendationPreferences:
    """Explicit interests that seed recommendations next to the user's history."""
    languages: Tuple[str, ...] = ()
    topics: Tuple[str, ...] = ()
    min_stars: Optional[int] = None


@dataclass(frozen=True)
class ProjectStructure:
    folders: Tuple[str, ...]
    entry_points: Tuple[str, ...]
    config_files: Tuple[str, ...]
    asset_folders: Tuple[str, ...]


@dataclass(frozen=True)
class RepositoryAnalysis:
    """Metadata-only analysis of a single repository."""
    repository: Repository
    framework: Framework
    components: Tuple[str, ...]
    dependencies: Tuple[str, ...]
    features: Tuple[str, ...]
    structure: ProjectStructure
    quality_score: int


@dataclass(frozen=True)
class MergeStrategy:
    target_framework: Framework
    conflict_resolution: ConflictResolution = ConflictResolution.SMART_MERGE
    component_merging: ComponentMerging = ComponentMerging.SELECTIVE
    dependency_strategy: DependencyStrategy = DependencyStrategy.UNIFIED
    type: MergeType = MergeType.INTELLIGENT


@dataclass(frozen=True)
class Conflict:
    type: ConflictType
    description: str
    severity: Severity


@dataclass(frozen=True)
class CompatibilityReport:
    score: int
    conflicts: List[Conflict]
    suggestions: List[str]
    frameworks: List[Framework] = field(default_factory=list)
    sufficient_input: bool = True


@dataclass(frozen=True)
class GeneratedFile:
    path: str
    content: str
    type: FileType
    source: str


@dataclass(frozen=True)
class DeploymentConfig:
    platform: DeploymentPlatform
    env_vars: Tuple[str, ...]
    build_command: str
    output_directory: str


@dataclass(frozen=True)
class CombinationRequest:
    repositories: List[Repository]
    project_name: str
    description: Optional[str] = None
    target_framework: Optional[Framework] = None
    features: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CombinationResult:
    id: str
    name: str
    description: str
    strategy: MergeStrategy
    structure: ProjectStructure
    files: List[GeneratedFile]
    dependencies: List[str]
    scripts: Dict[str, str]
    deployment_config: DeploymentConfig
    instructions: List[str]
    repository_ids: Tuple[int, ...]
    created_at: datetime


@dataclass(frozen=True)
class CodeIssue:
    type: str
    severity: str
    file: str
    description: str
    line: Optional[int] = None
    suggestion: Optional[str] = None


@dataclass(frozen=True)
class CodeAnalysis:
    overall_quality: int
    issues: List[CodeIssue]
    suggestions: List[str]
    security_score: int
    maintainability_score: int
