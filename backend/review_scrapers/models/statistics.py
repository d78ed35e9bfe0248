"""
Job Statistics - Read-only aggregate over the job registry.

Computed on demand from job records; never stored or updated independently.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable

from ..platforms import Platform
from .job import Job, JobStatus


@dataclass(frozen=True)
class JobStatistics:
    """Aggregate counts and rates for operational dashboards."""
    total_jobs: int = 0
    pending_jobs: int = 0
    running_jobs: int = 0
    completed_jobs: int = 0
    failed_jobs: int = 0
    cancelled_jobs: int = 0
    retrying_jobs: int = 0
    average_processing_time_ms: float = 0.0
    success_rate: float = 0.0  # Percentage of all jobs that completed
    platform_breakdown: Dict[str, int] = field(default_factory=dict)
    memory_in_use_mb: int = 0
    memory_limit_mb: int = 0
    max_concurrent_jobs: int = 0

    @classmethod
    def from_jobs(
        cls,
        jobs: Iterable[Job],
        memory_in_use_mb: int = 0,
        memory_limit_mb: int = 0,
        max_concurrent_jobs: int = 0,
    ) -> "JobStatistics":
        """
        Compute statistics from a snapshot of jobs.

        Average processing time covers completed jobs only.
        """
        jobs = list(jobs)
        counts = {status: 0 for status in JobStatus}
        breakdown = {platform.value: 0 for platform in Platform}
        retrying = 0
        durations = []

        for job in jobs:
            counts[job.status] += 1
            breakdown[job.platform.value] = breakdown.get(job.platform.value, 0) + 1
            if job.is_retrying:
                retrying += 1
            if job.status == JobStatus.COMPLETED:
                durations.append(job.duration_ms or 0)

        total = len(jobs)
        return cls(
            total_jobs=total,
            pending_jobs=counts[JobStatus.PENDING],
            running_jobs=counts[JobStatus.RUNNING],
            completed_jobs=counts[JobStatus.COMPLETED],
            failed_jobs=counts[JobStatus.FAILED],
            cancelled_jobs=counts[JobStatus.CANCELLED],
            retrying_jobs=retrying,
            average_processing_time_ms=sum(durations) / len(durations) if durations else 0.0,
            success_rate=(counts[JobStatus.COMPLETED] / total) * 100 if total else 0.0,
            platform_breakdown=breakdown,
            memory_in_use_mb=memory_in_use_mb,
            memory_limit_mb=memory_limit_mb,
            max_concurrent_jobs=max_concurrent_jobs,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_jobs": self.total_jobs,
            "pending_jobs": self.pending_jobs,
            "running_jobs": self.running_jobs,
            "completed_jobs": self.completed_jobs,
            "failed_jobs": self.failed_jobs,
            "cancelled_jobs": self.cancelled_jobs,
            "retrying_jobs": self.retrying_jobs,
            "average_processing_time_ms": round(self.average_processing_time_ms, 1),
            "success_rate": round(self.success_rate, 2),
            "platform_breakdown": dict(self.platform_breakdown),
            "memory_in_use_mb": self.memory_in_use_mb,
            "memory_limit_mb": self.memory_limit_mb,
            "max_concurrent_jobs": self.max_concurrent_jobs,
        }
