"""Code analyzer interface (port) for the external LLM analysis service."""
from abc import ABC, abstractmethod
from typing import Any, Dict, Union


class ICodeAnalyzer(ABC):
    """Opaque scorer that reviews a repository summary."""

    @abstractmethod
    async def analyze(self, summary: Dict[str, Any]) -> Union[str, Dict[str, Any]]:
        """Analyze a repository summary.

        Args:
            summary: Plain record describing the repository

        Returns:
            Either the raw model reply (expected to contain a JSON object with
            overallQuality, issues, suggestions, securityScore and
            maintainabilityScore) or the already decoded object
        """
        pass
