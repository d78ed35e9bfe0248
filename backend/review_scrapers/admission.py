"""
Admission Controller - Concurrency and memory budget for running jobs.

A job may start only if:
    running_count < max_concurrent_jobs
    memory_in_use_mb + estimate_mb <= memory_limit_mb

Reservations are keyed by job id. try_admit checks and reserves in one
critical section; release frees exactly what was reserved and is a no-op
for unknown ids, so success, failure and cancellation paths may all call it.

Limit changes apply to future admissions only; running jobs keep their
reservation even if the new limits are lower.
"""
import logging
import threading
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_JOBS = 5
DEFAULT_MEMORY_LIMIT_MB = 32768


class AdmissionController:
    """Budget gate for actor runs."""

    def __init__(
        self,
        max_concurrent_jobs: int = DEFAULT_MAX_CONCURRENT_JOBS,
        memory_limit_mb: int = DEFAULT_MEMORY_LIMIT_MB,
    ):
        self._validate_positive("max_concurrent_jobs", max_concurrent_jobs)
        self._validate_positive("memory_limit_mb", memory_limit_mb)
        self._max_concurrent_jobs = max_concurrent_jobs
        self._memory_limit_mb = memory_limit_mb
        self._reservations: Dict[str, int] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _validate_positive(name: str, value: int) -> None:
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError(f"{name} must be a positive integer, got {value!r}")

    # =========================================================================
    # Limits
    # =========================================================================

    @property
    def max_concurrent_jobs(self) -> int:
        return self._max_concurrent_jobs

    @property
    def memory_limit_mb(self) -> int:
        return self._memory_limit_mb

    def set_max_concurrent_jobs(self, value: int) -> None:
        self._validate_positive("max_concurrent_jobs", value)
        with self._lock:
            self._max_concurrent_jobs = value
        logger.info(f"Max concurrent jobs set to {value}")

    def set_memory_limit(self, value_mb: int) -> None:
        self._validate_positive("memory_limit_mb", value_mb)
        with self._lock:
            self._memory_limit_mb = value_mb
        logger.info(f"Memory limit set to {value_mb}MB")

    # =========================================================================
    # Reservations
    # =========================================================================

    @property
    def running_count(self) -> int:
        with self._lock:
            return len(self._reservations)

    @property
    def memory_in_use_mb(self) -> int:
        with self._lock:
            return sum(self._reservations.values())

    def reservation_for(self, job_id: str) -> Optional[int]:
        with self._lock:
            return self._reservations.get(job_id)

    def _fits(self, estimate_mb: int) -> bool:
        return (
            len(self._reservations) < self._max_concurrent_jobs
            and sum(self._reservations.values()) + estimate_mb <= self._memory_limit_mb
        )

    def can_run(self, actor, actor_input: Dict[str, Any]) -> bool:
        """Check budgets for an actor input without reserving."""
        estimate = actor.get_memory_estimate(actor_input)
        with self._lock:
            return self._fits(estimate)

    def try_admit(self, job_id: str, estimate_mb: int) -> bool:
        """
        Reserve a slot and memory for a job if both budgets allow.

        Returns:
            True if admitted (or already holding a reservation)
        """
        with self._lock:
            if job_id in self._reservations:
                return True
            if not self._fits(estimate_mb):
                logger.warning(
                    f"Admission refused for job {job_id}: "
                    f"running={len(self._reservations)}/{self._max_concurrent_jobs}, "
                    f"memory={sum(self._reservations.values())}+{estimate_mb}/{self._memory_limit_mb}MB"
                )
                return False
            self._reservations[job_id] = estimate_mb
            logger.debug(f"Reserved {estimate_mb}MB for job {job_id}")
            return True

    def release(self, job_id: str) -> int:
        """
        Free a job's reservation.

        Returns:
            MB released (0 if the job held no reservation)
        """
        with self._lock:
            released = self._reservations.pop(job_id, 0)
        if released:
            logger.debug(f"Released {released}MB for job {job_id}")
        return released

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return {
                "running_jobs": len(self._reservations),
                "memory_in_use_mb": sum(self._reservations.values()),
                "max_concurrent_jobs": self._max_concurrent_jobs,
                "memory_limit_mb": self._memory_limit_mb,
            }
