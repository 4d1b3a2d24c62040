"""In-memory storage for combination results."""
import logging
import threading
from typing import Dict, List, Optional
from repointel.domain.combination_interface import ICombinationStorage
from repointel.domain.models import CombinationResult


logger = logging.getLogger(__name__)


class InMemoryCombinationStorage(ICombinationStorage):
    """Process-lifetime map of combination results keyed by id.

    There is no eviction; results live as long as the engine does.
    """

    def __init__(self):
        self._combinations: Dict[str, CombinationResult] = {}
        self._lock = threading.Lock()

    def save(self, result: CombinationResult) -> None:
        with self._lock:
            self._combinations[result.id] = result
        logger.info(f"Stored combination {result.id} ({len(self._combinations)} total)")

    def get(self, combination_id: str) -> Optional[CombinationResult]:
        return self._combinations.get(combination_id)

    def list_all(self) -> List[CombinationResult]:
        with self._lock:
            return list(self._combinations.values())
