"""
Job Registry - In-memory store of scrape jobs.

Single-instance, at-most-once: jobs live only in this process. The registry
does no locking of its own; the orchestrator guards every call with its lock.
"""
from typing import Dict, Iterable, List, Optional

from .errors import DuplicateJobError
from .models.job import Job, JobStatus
from .platforms import Platform


class JobRegistry:
    """Job id -> Job mapping with simple queries."""

    def __init__(self):
        self._jobs: Dict[str, Job] = {}

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs

    def add(self, job: Job) -> Job:
        """
        Register a job.

        Re-adding the same object is a no-op.

        Raises:
            DuplicateJobError: If a different job already uses this id
        """
        existing = self._jobs.get(job.id)
        if existing is not None and existing is not job:
            raise DuplicateJobError(f"Job id {job.id} is already registered")
        self._jobs[job.id] = job
        return job

    def add_many(self, jobs: Iterable[Job]) -> List[Job]:
        """Register several jobs; nothing is added if any id collides."""
        jobs = list(jobs)
        seen: Dict[str, Job] = {}
        for job in jobs:
            other = seen.get(job.id) or self._jobs.get(job.id)
            if other is not None and other is not job:
                raise DuplicateJobError(f"Job id {job.id} is already registered")
            seen[job.id] = job
        self._jobs.update(seen)
        return jobs

    def get(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def all(self) -> List[Job]:
        return list(self._jobs.values())

    def by_team(self, team_id: str) -> List[Job]:
        return [job for job in self._jobs.values() if job.team_id == team_id]

    def by_platform(self, platform: Platform) -> List[Job]:
        return [job for job in self._jobs.values() if job.platform == platform]

    def active(self) -> List[Job]:
        return [job for job in self._jobs.values() if job.is_active]

    def pending_by_priority(self) -> List[Job]:
        """PENDING jobs, HIGH before MEDIUM before LOW, oldest first within a priority."""
        pending = [job for job in self._jobs.values() if job.status == JobStatus.PENDING]
        return sorted(pending, key=lambda job: (job.priority.rank, job.created_at))
