"""Combination storage interface (port).

This is the port in hexagonal architecture that the infrastructure layer implements.
"""
from abc import ABC, abstractmethod
from typing import List, Optional
from repointel.domain.models import CombinationResult


class ICombinationStorage(ABC):
    """Abstract interface for combination result storage."""

    @abstractmethod
    def save(self, result: CombinationResult) -> None:
        """Store a combination result under its id, replacing any previous one."""
        pass

    @abstractmethod
    def get(self, combination_id: str) -> Optional[CombinationResult]:
        """Get a combination by id, or None when unknown."""
        pass

    @abstractmethod
    def list_all(self) -> List[CombinationResult]:
        """List stored combinations in insertion order."""
        pass
