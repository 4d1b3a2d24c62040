"""LLM-backed code analysis with a documented fallback record."""
import json
import logging
import re
from typing import Any, Dict, Optional
from repointel.domain.analyzer_interface import ICodeAnalyzer
from repointel.domain.exceptions import AnalysisUnavailable
from repointel.domain.models import CodeAnalysis, CodeIssue, Degraded, Ok, Outcome, Repository


logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

DEFAULT_OVERALL_QUALITY = 75
DEFAULT_SECURITY_SCORE = 70
DEFAULT_MAINTAINABILITY_SCORE = 75


def fallback_analysis(repo: Repository) -> CodeAnalysis:
    """Record returned whenever the analyzer is missing or unusable."""
    return CodeAnalysis(
        overall_quality=repo.quality_score or 60,
        issues=[CodeIssue(
            type="maintainability",
            severity="medium",
            file="unknown",
            description="Analysis temporarily unavailable"
        )],
        suggestions=["Repository analysis will be available shortly"],
        security_score=70,
        maintainability_score=65
    )


def repository_summary(repo: Repository) -> Dict[str, Any]:
    return {
        "fullName": repo.full_name,
        "description": repo.description,
        "language": repo.language,
        "topics": list(repo.topics),
        "stars": repo.stars,
        "forks": repo.forks,
        "openIssues": repo.open_issues,
        "updatedAt": repo.updated_at.isoformat(),
        "qualityScore": repo.quality_score,
        "languages": list(repo.languages),
        "contributorCount": repo.contributor_count,
        "license": repo.license,
    }


def _score_field(data: Dict[str, Any], key: str, default: int) -> int:
    value = data.get(key)
    return default if value is None else int(value)


def parse_analysis(reply: Any) -> CodeAnalysis:
    """Decode the collaborator's reply, filling missing fields with defaults.

    Raises:
        AnalysisUnavailable: When no JSON object can be extracted or a field has the wrong type
    """
    if isinstance(reply, dict):
        data = reply
    else:
        match = _JSON_OBJECT_RE.search(reply or "")
        if not match:
            raise AnalysisUnavailable("Reply contains no JSON object")
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise AnalysisUnavailable(f"Reply JSON is malformed: {e}") from e
        if not isinstance(data, dict):
            raise AnalysisUnavailable("Reply JSON is not an object")

    try:
        issues = [
            CodeIssue(
                type=str(issue.get("type", "maintainability")),
                severity=str(issue.get("severity", "low")),
                file=str(issue.get("file", "unknown")),
                description=str(issue.get("description", "")),
                line=int(issue["line"]) if issue.get("line") is not None else None,
                suggestion=issue.get("suggestion")
            )
            for issue in data.get("issues") or []
        ]
        return CodeAnalysis(
            overall_quality=_score_field(data, "overallQuality", DEFAULT_OVERALL_QUALITY),
            issues=issues,
            suggestions=[str(s) for s in data.get("suggestions") or []],
            security_score=_score_field(data, "securityScore", DEFAULT_SECURITY_SCORE),
            maintainability_score=_score_field(data, "maintainabilityScore", DEFAULT_MAINTAINABILITY_SCORE)
        )
    except (AttributeError, TypeError, ValueError) as e:
        raise AnalysisUnavailable(f"Reply has unexpected field types: {e!r}") from e


class CodeAnalysisService:
    """Wraps the optional LLM analyzer; never fails the caller's request."""

    def __init__(self, analyzer: Optional[ICodeAnalyzer] = None):
        self._analyzer = analyzer
        self._cache: Dict[str, CodeAnalysis] = {}

    @property
    def available(self) -> bool:
        return self._analyzer is not None

    async def analyze(self, repo: Repository) -> Outcome[CodeAnalysis]:
        """Analyze a repository, degrading to the fallback record on any failure."""
        cache_key = f"{repo.full_name}-{repo.updated_at.isoformat()}"
        cached = self._cache.get(cache_key)
        if cached is not None:
            return Ok(cached)

        if self._analyzer is None:
            return Degraded(fallback_analysis(repo), "Code analyzer not configured")

        try:
            reply = await self._analyzer.analyze(repository_summary(repo))
            analysis = parse_analysis(reply)
        except AnalysisUnavailable as e:
            logger.warning(f"Code analysis unavailable for {repo.full_name}: {e}")
            return Degraded(fallback_analysis(repo), str(e))
        except Exception as e:
            # The collaborator is opaque; any failure it raises degrades the same way.
            logger.warning(f"Code analyzer failed for {repo.full_name}: {e!r}")
            return Degraded(fallback_analysis(repo), f"Code analyzer failed: {e!r}")

        self._cache[cache_key] = analysis
        return Ok(analysis)
