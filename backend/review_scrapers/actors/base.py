"""
Base Actor - Abstract template for platform review actors.

Provides common functionality:
- Canonical input construction from job fields
- Memory estimation for admission control
- Single-run execution against the extraction service
- Error mapping to JobResult values (execute never raises)

Two input shapes are involved:
- canonical input: what build_input produces and validate_input checks
  ({"jobId", "maxReviews", "placeIds" | "pageId" | ...})
- actor payload: the platform actor's own Apify input schema, produced by
  to_actor_payload right before the remote call
"""
import math
import time
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..apify_client import ApifyAPIError, ApifyNoDatasetError
from ..errors import ActorInputError, RemoteExecutionError, ScrapeJobError
from ..models.job import Job
from ..models.result import JobResult
from ..platforms import Platform, get_platform_profile

logger = logging.getLogger(__name__)

INIT_MAX_REVIEWS = 1000
POLL_MAX_REVIEWS = 100


def default_max_reviews(job: Job) -> int:
    """Requested review volume: explicit max, else 1000 for init and 100 for polls."""
    if job.max_reviews:
        return job.max_reviews
    return INIT_MAX_REVIEWS if job.is_initialization else POLL_MAX_REVIEWS


def is_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith("http")


class BaseActor(ABC):
    """
    Abstract base class for platform actors.

    Subclasses must implement:
    - identifier_input(): Map the job identifier to canonical input fields
    - validate_input(): Platform validity rule for canonical input
    - to_actor_payload(): Translate canonical input to the Apify input schema

    Subclasses should set class attributes:
    - PLATFORM: Platform served by this actor
    """

    # Override in subclass
    PLATFORM: Platform = None

    def __init__(
        self,
        client=None,
        actor_id: Optional[str] = None,
        memory_estimate_mb: Optional[int] = None,
    ):
        """
        Initialize actor.

        Args:
            client: ApifyClient (or compatible object with run_actor)
            actor_id: Apify actor id. Defaults to the platform's built-in id.
            memory_estimate_mb: Baseline memory. Defaults to the platform profile.
        """
        self.profile = get_platform_profile(self.PLATFORM)
        self.client = client
        self.actor_id = actor_id or self.profile.default_actor_id
        self.memory_estimate_mb = memory_estimate_mb or self.profile.memory_baseline_mb

    @property
    def platform(self) -> Platform:
        return self.PLATFORM

    # =========================================================================
    # Input
    # =========================================================================

    @abstractmethod
    def identifier_input(self, identifier: str) -> Dict[str, Any]:
        """
        Map a job identifier to platform input fields.

        Args:
            identifier: Place id, page id, URL, ...

        Returns:
            Dict of canonical input fields for this platform
        """
        pass

    @abstractmethod
    def validate_input(self, actor_input: Dict[str, Any]) -> bool:
        """Return True if canonical input satisfies the platform rule."""
        pass

    @abstractmethod
    def to_actor_payload(self, actor_input: Dict[str, Any]) -> Dict[str, Any]:
        """
        Translate canonical input to the platform actor's input schema.

        Raises:
            ActorInputError: If the input cannot be expressed for this actor
        """
        pass

    def build_input(self, job: Job) -> Dict[str, Any]:
        """Build canonical actor input from job fields."""
        actor_input = {
            "jobId": job.id,
            "maxReviews": default_max_reviews(job),
        }
        actor_input.update(self.identifier_input(job.identifier))
        return actor_input

    def prepare_payload(self, actor_input: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate canonical input and translate it to the actor payload.

        Raises:
            ActorInputError: On invalid input
        """
        if not isinstance(actor_input, dict) or not self.validate_input(actor_input):
            raise ActorInputError(f"Invalid input for {self.platform.value} actor")
        return self.to_actor_payload(actor_input)

    # =========================================================================
    # Memory
    # =========================================================================

    @staticmethod
    def requested_volume(actor_input: Dict[str, Any]) -> int:
        """Review volume from maxReviews, falling back to maxItemsPerQuery."""
        if not isinstance(actor_input, dict):
            return 0
        value = actor_input.get("maxReviews")
        if value is None:
            value = actor_input.get("maxItemsPerQuery")
        try:
            return max(int(value or 0), 0)
        except (TypeError, ValueError):
            return 0

    def get_memory_estimate(self, actor_input: Dict[str, Any]) -> int:
        """
        Estimate memory for a run.

        baseline + ceil(volume / 100) * step, capped per platform.
        """
        volume = self.requested_volume(actor_input)
        estimate = self.memory_estimate_mb + math.ceil(volume / 100) * self.profile.memory_step_mb
        return min(estimate, self.profile.memory_cap_mb)

    # =========================================================================
    # Execution
    # =========================================================================

    def run(self, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Make the extraction call for a translated payload.

        Raises:
            RemoteExecutionError: On any extraction service failure
        """
        if self.client is None:
            raise RemoteExecutionError(f"No extraction client configured for {self.platform.value}")
        try:
            return self.client.run_actor(self.actor_id, payload)
        except ApifyNoDatasetError as e:
            raise RemoteExecutionError(f"No dataset produced: {e}")
        except ApifyAPIError as e:
            raise RemoteExecutionError(str(e))

    def execute(self, actor_input: Dict[str, Any]) -> JobResult:
        """
        Execute one extraction run.

        Args:
            actor_input: Canonical input from build_input

        Returns:
            JobResult with raw records on success; VALIDATION or
            REMOTE_EXECUTION failure otherwise
        """
        start_time = time.time()
        job_id = str(actor_input.get("jobId", "")) if isinstance(actor_input, dict) else ""

        def elapsed_ms() -> int:
            return int((time.time() - start_time) * 1000)

        try:
            payload = self.prepare_payload(actor_input)
            logger.info(f"[{self.platform.value}] Running actor {self.actor_id} for job {job_id}")
            items = self.run(payload)
        except ScrapeJobError as e:
            logger.error(f"[{self.platform.value}] Job {job_id} failed: {e}")
            return JobResult.from_exception(job_id, self.platform, e, elapsed_ms())
        except Exception as e:
            logger.exception(f"[{self.platform.value}] Unexpected error in job {job_id}")
            return JobResult.from_exception(job_id, self.platform, e, elapsed_ms())

        logger.info(f"[{self.platform.value}] Job {job_id}: {len(items)} raw records")
        return JobResult.ok(job_id, self.platform, items, elapsed_ms())

    def __repr__(self):
        return f"<{type(self).__name__} {self.actor_id} {self.memory_estimate_mb}MB>"
