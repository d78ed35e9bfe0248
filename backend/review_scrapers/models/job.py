"""
Scrape Job Model - Lifecycle tracking for review scrape jobs.

Tracks:
- Job lifecycle (pending -> running -> completed/failed/cancelled)
- Retry bookkeeping (retry_count <= max_retries)
- Error message and error classification of the last failure

RETRYING is not a separate status: a retried job is PENDING with
retry_count > 0 (see Job.is_retrying).

Status fields are only changed through the transition methods below,
which the orchestrator calls while holding its lock.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional
from uuid import uuid4

from ..errors import ErrorKind, InvalidTransitionError, is_retryable
from ..platforms import Platform

DEFAULT_MAX_RETRIES = 3


def _utcnow() -> datetime:
    """Get current UTC time (timezone-aware)."""
    return datetime.now(timezone.utc)


class JobStatus(str, Enum):
    """Scrape job status."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class JobPriority(str, Enum):
    """Scheduling priority for pending jobs."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Sort key (lower = runs first)."""
        return {"high": 1, "medium": 2, "low": 3}[self.value]


# Allowed transitions: from_status -> set of to_status
TRANSITIONS: Dict[JobStatus, FrozenSet[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.RUNNING, JobStatus.FAILED, JobStatus.CANCELLED}),
    JobStatus.RUNNING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED}),
    JobStatus.FAILED: frozenset({JobStatus.PENDING}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.CANCELLED})
ACTIVE_STATUSES = frozenset({JobStatus.PENDING, JobStatus.RUNNING})


@dataclass
class JobOptions:
    """Optional parameters for create_job."""
    is_initialization: bool = False
    max_reviews: Optional[int] = None
    priority: JobPriority = JobPriority.MEDIUM
    max_retries: int = DEFAULT_MAX_RETRIES

    def __post_init__(self):
        self.priority = JobPriority(self.priority)
        if self.max_reviews is not None and self.max_reviews <= 0:
            raise ValueError("max_reviews must be positive")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")


@dataclass
class Job:
    """One scrape request for a team, platform and identifier."""
    platform: Platform
    team_id: str
    identifier: str
    id: str = field(default_factory=lambda: str(uuid4()))
    is_initialization: bool = False
    max_reviews: Optional[int] = None
    priority: JobPriority = JobPriority.MEDIUM
    status: JobStatus = JobStatus.PENDING
    created_at: datetime = field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None
    error_type: Optional[ErrorKind] = None
    retry_count: int = 0
    max_retries: int = DEFAULT_MAX_RETRIES

    def __post_init__(self):
        self.priority = JobPriority(self.priority)

    @classmethod
    def create(
        cls,
        platform: Platform,
        team_id: str,
        identifier: str,
        options: Optional[JobOptions] = None,
    ) -> "Job":
        """Build a new PENDING job from create_job arguments."""
        options = options or JobOptions()
        return cls(
            platform=platform,
            team_id=team_id,
            identifier=identifier,
            is_initialization=options.is_initialization,
            max_reviews=options.max_reviews,
            priority=options.priority,
            max_retries=options.max_retries,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _transition(self, new_status: JobStatus) -> None:
        if new_status not in TRANSITIONS[self.status]:
            raise InvalidTransitionError(
                f"Job {self.id}: {self.status.value} -> {new_status.value} is not allowed"
            )
        self.status = new_status

    def start(self) -> None:
        """Mark job as running."""
        self._transition(JobStatus.RUNNING)
        self.started_at = _utcnow()

    def complete(self) -> None:
        """Mark job as completed."""
        self._transition(JobStatus.COMPLETED)
        self.completed_at = _utcnow()

    def fail(self, message: str, kind: ErrorKind = ErrorKind.INTERNAL) -> None:
        """Mark job as failed with error."""
        self._transition(JobStatus.FAILED)
        self.completed_at = _utcnow()
        self.error_message = message
        self.error_type = kind

    def cancel(self) -> None:
        """Mark job as cancelled."""
        self._transition(JobStatus.CANCELLED)
        self.completed_at = _utcnow()

    def requeue(self) -> None:
        """Move a failed job back to pending for another attempt."""
        if self.retry_count >= self.max_retries:
            raise InvalidTransitionError(
                f"Job {self.id}: retry limit reached ({self.retry_count}/{self.max_retries})"
            )
        self._transition(JobStatus.PENDING)
        self.retry_count += 1
        self.error_message = None
        self.error_type = None
        self.started_at = None
        self.completed_at = None

    # =========================================================================
    # Derived state
    # =========================================================================

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_retrying(self) -> bool:
        """Logical RETRYING state: pending again after a failure."""
        return self.status == JobStatus.PENDING and self.retry_count > 0

    @property
    def can_retry(self) -> bool:
        """FAILED below the retry limit with a retryable error kind."""
        return (
            self.status == JobStatus.FAILED
            and self.retry_count < self.max_retries
            and (self.error_type is None or is_retryable(self.error_type))
        )

    @property
    def duration_ms(self) -> Optional[int]:
        """Execution duration in milliseconds if both timestamps present."""
        if self.started_at and self.completed_at:
            delta = self.completed_at - self.started_at
            return int(delta.total_seconds() * 1000)
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "platform": self.platform.value,
            "team_id": self.team_id,
            "identifier": self.identifier,
            "is_initialization": self.is_initialization,
            "max_reviews": self.max_reviews,
            "priority": self.priority.value,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "error_message": self.error_message,
            "error_type": self.error_type.value if self.error_type else None,
            "retry_count": self.retry_count,
            "max_retries": self.max_retries,
        }

    def __repr__(self):
        return f"<Job {self.id[:8]} {self.platform.value} {self.status.value}>"
