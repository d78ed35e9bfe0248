"""
Persistence Gateway - Contract for storing normalized reviews.

The orchestrator needs two things from storage:
- get_profile(team_id, platform): which business a team's platform profile maps to
- save_reviews(business_id, records): store normalized records

Database schema and write semantics (dedupe, upsert) belong to the
implementation. InMemoryPersistenceGateway backs tests and CLI dry runs.
"""
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .platforms import Platform

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BusinessProfileLookup:
    """Result of resolving a team's business profile for a platform."""
    success: bool
    business_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def found(cls, business_id: str) -> "BusinessProfileLookup":
        return cls(success=True, business_id=business_id)

    @classmethod
    def missing(cls, error: str = "Business profile not found") -> "BusinessProfileLookup":
        return cls(success=False, error=error)


class PersistenceGateway(ABC):
    """Storage for normalized reviews of one or more platforms."""

    @abstractmethod
    def get_profile(self, team_id: str, platform: Platform) -> BusinessProfileLookup:
        """Resolve the business profile for a team on a platform."""
        pass

    @abstractmethod
    def save_reviews(self, business_id: str, records: List[Dict[str, Any]]) -> None:
        """
        Store normalized records for a business.

        Raises:
            Exception: Any storage failure; the orchestrator reports it as PERSISTENCE
        """
        pass


class InMemoryPersistenceGateway(PersistenceGateway):
    """Dict-backed gateway."""

    def __init__(self, profiles: Optional[Dict[Tuple[str, Platform], str]] = None):
        self._profiles: Dict[Tuple[str, Platform], str] = dict(profiles or {})
        self._reviews: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def register_profile(self, team_id: str, platform: Platform, business_id: str) -> None:
        with self._lock:
            self._profiles[(team_id, platform)] = business_id

    def get_profile(self, team_id: str, platform: Platform) -> BusinessProfileLookup:
        with self._lock:
            business_id = self._profiles.get((team_id, platform))
        if business_id is None:
            return BusinessProfileLookup.missing(
                f"No {platform.value} business profile for team {team_id}"
            )
        return BusinessProfileLookup.found(business_id)

    def save_reviews(self, business_id: str, records: List[Dict[str, Any]]) -> None:
        with self._lock:
            self._reviews.setdefault(business_id, []).extend(records)
        logger.info(f"Stored {len(records)} reviews for business {business_id}")

    def reviews_for(self, business_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._reviews.get(business_id, []))
