"""Compatibility analysis across a set of repositories."""
import logging
from itertools import combinations
from typing import List, Set, Tuple
from repointel.application.repository_analyzer import analyze_repository, dominant_framework
from repointel.domain.exceptions import InsufficientInput
from repointel.domain.models import (
    CompatibilityReport,
    Conflict,
    ConflictType,
    Framework,
    Repository,
    RepositoryAnalysis,
    Severity,
)


logger = logging.getLogger(__name__)

WEIGHTS = {
    "framework": 0.4,
    "dependency": 0.4,
    "architecture": 0.2,
}

FRAMEWORK_FAMILIES = {
    Framework.NEXTJS: "react",
    Framework.REMIX: "react",
    Framework.REACT: "react",
    Framework.VUE: "vue",
    Framework.ANGULAR: "angular",
    Framework.EXPRESS: "node",
    Framework.FASTAPI: "python",
    Framework.DJANGO: "python",
    Framework.UNKNOWN: "unknown",
}

FRAMEWORK_RUNTIMES = {
    Framework.NEXTJS: "Node.js",
    Framework.REMIX: "Node.js",
    Framework.REACT: "Node.js",
    Framework.VUE: "Node.js",
    Framework.ANGULAR: "Node.js",
    Framework.EXPRESS: "Node.js",
    Framework.FASTAPI: "Python",
    Framework.DJANGO: "Python",
}

INCOMPATIBLE_DEPENDENCIES: List[Tuple[str, str, Severity, str]] = [
    ("react", "vue", Severity.HIGH, "React and Vue cannot share one component tree"),
    ("react", "@angular/core", Severity.HIGH, "React and Angular cannot share one component tree"),
    ("vue", "@angular/core", Severity.HIGH, "Vue and Angular cannot share one component tree"),
    ("next", "@remix-run/react", Severity.HIGH, "Next.js and Remix both own routing and rendering"),
    ("fastapi", "django", Severity.MEDIUM, "FastAPI and Django are competing web frameworks"),
]

FRAMEWORK_PENALTY = 25
FAMILY_PENALTY = 15
DEPENDENCY_PENALTY = 25
LOW_ARCHITECTURE_SCORE = 30
MAX_SUGGESTIONS = 8

NEED_MORE_DATA = "Add more repositories to analyze compatibility"


def framework_score(frameworks: List[Framework]) -> int:
    """100 for a single framework, lower for every extra framework and family."""
    distinct = set(frameworks)
    if len(distinct) <= 1:
        return 100
    families = {FRAMEWORK_FAMILIES[framework] for framework in distinct}
    score = 100 - FRAMEWORK_PENALTY * (len(distinct) - 1) - FAMILY_PENALTY * (len(families) - 1)
    return max(score, 0)


def target_runtimes(analyses: List[RepositoryAnalysis]) -> List[str]:
    return sorted({
        FRAMEWORK_RUNTIMES[analysis.framework]
        for analysis in analyses if analysis.framework in FRAMEWORK_RUNTIMES
    })


def dependency_conflicts(analyses: List[RepositoryAnalysis]) -> List[Conflict]:
    """Known-incompatible dependency pairs and mixed runtimes."""
    all_deps: Set[str] = {dep for analysis in analyses for dep in analysis.dependencies}
    conflicts = [
        Conflict(ConflictType.DEPENDENCY, f"{first} vs {second}: {reason}", severity)
        for first, second, severity, reason in INCOMPATIBLE_DEPENDENCIES
        if first in all_deps and second in all_deps
    ]

    runtimes = target_runtimes(analyses)
    if len(runtimes) > 1:
        conflicts.append(Conflict(
            ConflictType.DEPENDENCY,
            f"Repositories target different runtimes: {', '.join(runtimes)}",
            Severity.HIGH
        ))
    return conflicts


def dependency_score(conflicts: List[Conflict]) -> int:
    return max(100 - DEPENDENCY_PENALTY * len(conflicts), 0)


def architecture_score(analyses: List[RepositoryAnalysis]) -> int:
    """Mean pairwise Jaccard similarity of the repositories' folder layouts."""
    similarities = []
    for first, second in combinations(analyses, 2):
        left, right = set(first.structure.folders), set(second.structure.folders)
        union = left | right
        similarities.append(len(left & right) / len(union) if union else 1.0)
    return round(100 * sum(similarities) / len(similarities))


def compatibility_score(analyses: List[RepositoryAnalysis]) -> int:
    """Weighted compatibility score for two or more analyzed repositories.

    Raises:
        InsufficientInput: When fewer than two analyses are given
    """
    if len(analyses) < 2:
        raise InsufficientInput(f"Need at least two repositories, got {len(analyses)}")

    frameworks = [analysis.framework for analysis in analyses]
    score = (
        framework_score(frameworks) * WEIGHTS["framework"]
        + dependency_score(dependency_conflicts(analyses)) * WEIGHTS["dependency"]
        + architecture_score(analyses) * WEIGHTS["architecture"]
    )
    return round(score)


class CompatibilityService:
    """Estimates how well several repositories can be combined."""

    def analyze(self, repositories: List[Repository]) -> CompatibilityReport:
        """Score compatibility and list conflicts and suggestions.

        Fewer than two repositories yield a neutral report with score 100.
        """
        analyses = [analyze_repository(repo) for repo in repositories]
        try:
            score = compatibility_score(analyses)
        except InsufficientInput as e:
            logger.info(f"Compatibility not analyzed: {e}")
            return CompatibilityReport(
                score=100,
                conflicts=[],
                suggestions=[NEED_MORE_DATA],
                frameworks=[analysis.framework for analysis in analyses],
                sufficient_input=False
            )

        frameworks = [analysis.framework for analysis in analyses]
        conflicts = self._framework_conflicts(frameworks) + dependency_conflicts(analyses)
        arch_score = architecture_score(analyses)
        if arch_score < LOW_ARCHITECTURE_SCORE:
            conflicts.append(Conflict(
                ConflictType.ARCHITECTURE,
                f"Project layouts differ substantially (similarity {arch_score}%)",
                Severity.LOW
            ))
        conflicts.extend(self._license_conflicts(repositories))

        logger.info(
            f"Compatibility of {len(repositories)} repositories: {score} "
            f"({len(conflicts)} conflicts)"
        )
        return CompatibilityReport(
            score=score,
            conflicts=conflicts,
            suggestions=self._suggestions(analyses, conflicts),
            frameworks=frameworks
        )

    @staticmethod
    def _framework_conflicts(frameworks: List[Framework]) -> List[Conflict]:
        distinct = list(dict.fromkeys(frameworks))
        if len(distinct) <= 1:
            return []
        families = {FRAMEWORK_FAMILIES[framework] for framework in distinct}
        return [Conflict(
            ConflictType.FRAMEWORK,
            f"Multiple frameworks detected: {', '.join(f.value for f in distinct)}",
            Severity.MEDIUM if len(families) == 1 else Severity.HIGH
        )]

    @staticmethod
    def _license_conflicts(repositories: List[Repository]) -> List[Conflict]:
        # Placeholder signal only; license terms are not evaluated.
        licenses = sorted({repo.license for repo in repositories if repo.license})
        if len(licenses) <= 1:
            return []
        return [Conflict(
            ConflictType.LICENSE,
            f"Repositories use different licenses ({', '.join(licenses)}); review terms manually",
            Severity.LOW
        )]

    @staticmethod
    def _suggestions(
        analyses: List[RepositoryAnalysis],
        conflicts: List[Conflict]
    ) -> List[str]:
        suggestions = []
        frameworks = [analysis.framework for analysis in analyses]
        distinct = set(frameworks)
        dominant = dominant_framework(frameworks)
        if len(distinct) == 1 and dominant != Framework.UNKNOWN:
            suggestions.append(
                f"All repositories use {dominant.value}; merge them into a single {dominant.value} project"
            )
        elif len(distinct) > 1:
            suggestions.append(
                f"Standardize on {dominant.value} and port features from the other repositories"
            )

        all_deps = {dep for analysis in analyses for dep in analysis.dependencies}
        for first, second, _, _ in INCOMPATIBLE_DEPENDENCIES:
            if first in all_deps and second in all_deps:
                suggestions.append(f"Keep only one of {first} and {second}")
        if len(target_runtimes(analyses)) > 1:
            suggestions.append("Keep frontend and backend as separate packages in one workspace")

        if not conflicts:
            suggestions.append("Projects appear to be compatible")
        return suggestions[:MAX_SUGGESTIONS]
