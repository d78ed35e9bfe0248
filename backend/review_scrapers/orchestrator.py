"""
Review Scrape Orchestrator - Coordinates actors, admission, normalization and persistence.

Responsibilities:
1. Owns the job registry (the only writer of job state)
2. Admits jobs under concurrency and memory budgets
3. Runs platform actors and normalizes their output
4. Hands normalized records to the platform's persistence gateway
5. Explicit retry and cancellation

Concurrency: execute_job runs in the caller's thread. Registry reads and
writes, admission and every status transition happen under one RLock; the
actor's network call happens outside it. Cancelling a RUNNING job frees its
reservation immediately and discards the remote result at the next
checkpoint; the remote run itself is not interrupted.

Jobs returned by this class are the registry's own records. Treat them as
read-only and change them only through orchestrator methods.
"""
import logging
import threading
import time
from typing import Iterable, List, Optional, Tuple

from .actors import build_default_actors
from .actors.base import BaseActor
from .admission import AdmissionController
from .capabilities import CapabilityRegistry
from .config import ScraperSettings
from .data_processor import ReviewDataProcessor
from .errors import (
    ActorInputError,
    DataFormatError,
    ErrorKind,
    JobCancelledError,
    PersistenceError,
    ScrapeJobError,
)
from .job_registry import JobRegistry
from .models.job import DEFAULT_MAX_RETRIES, Job, JobOptions, JobPriority, JobStatus
from .models.result import JobResult
from .models.statistics import JobStatistics
from .persistence import PersistenceGateway
from .platforms import Platform, parse_platform

logger = logging.getLogger(__name__)


class ReviewScrapeOrchestrator:
    """
    Main orchestrator for review scrape jobs.

    Example:
        orchestrator = ReviewScrapeOrchestrator.from_settings(settings, client, gateway)
        job = orchestrator.create_job(Platform.GOOGLE_MAPS, team_id, place_id)
        result = orchestrator.execute_job(job)
    """

    def __init__(
        self,
        capabilities: Optional[CapabilityRegistry] = None,
        processor: Optional[ReviewDataProcessor] = None,
        admission: Optional[AdmissionController] = None,
        default_max_retries: int = DEFAULT_MAX_RETRIES,
    ):
        self._capabilities = capabilities or CapabilityRegistry()
        self._processor = processor or ReviewDataProcessor()
        self._admission = admission or AdmissionController()
        self._registry = JobRegistry()
        self._default_max_retries = default_max_retries
        self._lock = threading.RLock()

    @classmethod
    def from_settings(
        cls,
        settings: ScraperSettings,
        client=None,
        gateway: Optional[PersistenceGateway] = None,
    ) -> "ReviewScrapeOrchestrator":
        """
        Build an orchestrator with one actor per platform.

        Args:
            settings: Resolved configuration
            client: ApifyClient shared by all actors
            gateway: Persistence gateway used for every platform
        """
        capabilities = CapabilityRegistry()
        for platform, actor in build_default_actors(client, settings).items():
            capabilities.register(platform, actor, gateway)
        return cls(
            capabilities=capabilities,
            admission=AdmissionController(settings.max_concurrent_jobs, settings.memory_limit_mb),
            default_max_retries=settings.default_max_retries,
        )

    def register_platform(
        self,
        platform: Platform,
        actor: BaseActor,
        gateway: Optional[PersistenceGateway] = None,
    ) -> None:
        """Register (or replace) the actor and gateway for a platform."""
        with self._lock:
            self._capabilities.register(platform, actor, gateway)
        logger.info(f"Registered actor {actor.actor_id} for {platform.value}")

    # =========================================================================
    # Job creation
    # =========================================================================

    def create_job(
        self,
        platform,
        team_id: str,
        identifier: str,
        options: Optional[JobOptions] = None,
    ) -> Job:
        """
        Create and register a PENDING job.

        Does not check that an actor exists for the platform; that surfaces
        as UNSUPPORTED_PLATFORM when the job is executed.

        Args:
            platform: Platform or platform name/alias
            team_id: Owning team
            identifier: Place id, page id or URL
            options: JobOptions (defaults use the configured max_retries)
        """
        platform = parse_platform(platform)
        options = options or JobOptions(max_retries=self._default_max_retries)
        job = Job.create(platform, team_id, identifier, options)
        with self._lock:
            self._registry.add(job)
        logger.info(
            f"Created job {job.id} ({platform.value}, team={team_id}, "
            f"priority={job.priority.value}, init={job.is_initialization})"
        )
        return job

    def schedule_batch_jobs(self, jobs: Iterable[Job]) -> List[Job]:
        """
        Register jobs without executing them.

        Raises:
            DuplicateJobError: If any id belongs to a different registered job
        """
        with self._lock:
            scheduled = self._registry.add_many(jobs)
        logger.info(f"Scheduled {len(scheduled)} jobs")
        return scheduled

    # =========================================================================
    # Execution
    # =========================================================================

    def execute_job(self, job: Job) -> JobResult:
        """
        Run one PENDING job to completion.

        Never raises for expected failures. Unregistered jobs are registered
        first.

        Returns:
            JobResult. RESOURCE_EXHAUSTED leaves the job PENDING;
            INVALID_STATE leaves it untouched; other failures mark it FAILED.
        """
        start_time = time.time()

        def elapsed_ms() -> int:
            return int((time.time() - start_time) * 1000)

        admitted, refusal = self._admit(job)
        if refusal is not None:
            refusal.processing_time_ms = elapsed_ms()
            return refusal

        job, actor, actor_input = admitted
        try:
            result = actor.execute(actor_input)
            if not result.success:
                self._finish(job, error=result.error, kind=result.error_type)
                return JobResult.failure(
                    job.id, job.platform, result.error, result.error_type, elapsed_ms()
                )

            records = self._store(job, result.data or [])
            self._finish(job)
        except ScrapeJobError as e:
            return self._fail_running(job, e, elapsed_ms())
        except Exception as e:
            logger.exception(f"Unexpected error executing job {job.id}")
            return self._fail_running(job, e, elapsed_ms())
        finally:
            self._admission.release(job.id)

        logger.info(
            f"Job {job.id} completed: {len(records)} reviews in {elapsed_ms()}ms"
        )
        return JobResult.ok(job.id, job.platform, records, elapsed_ms())

    def _admit(self, job: Job) -> Tuple[Optional[Tuple[Job, BaseActor, dict]], Optional[JobResult]]:
        """Pre-flight checks, admission and the PENDING -> RUNNING transition."""
        with self._lock:
            registered = self._registry.get(job.id)
            if registered is None:
                registered = self._registry.add(job)
            job = registered

            if job.status != JobStatus.PENDING:
                return None, JobResult.failure(
                    job.id, job.platform,
                    f"Job {job.id} is {job.status.value}, expected pending",
                    ErrorKind.INVALID_STATE,
                )

            actor = self._capabilities.actor_for(job.platform)
            if actor is None:
                message = f"No actor registered for platform {job.platform.value}"
                job.fail(message, ErrorKind.UNSUPPORTED_PLATFORM)
                logger.error(f"Job {job.id} failed: {message}")
                return None, JobResult.failure(job.id, job.platform, message, ErrorKind.UNSUPPORTED_PLATFORM)

            try:
                actor_input = actor.build_input(job)
                actor.prepare_payload(actor_input)
                estimate = actor.get_memory_estimate(actor_input)
            except ActorInputError as e:
                job.fail(str(e), e.kind)
                logger.error(f"Job {job.id} failed validation: {e}")
                return None, JobResult.from_exception(job.id, job.platform, e)
            except Exception as e:
                logger.exception(f"Unexpected error preparing job {job.id}")
                result = JobResult.from_exception(job.id, job.platform, e)
                job.fail(result.error, result.error_type)
                return None, result

            if not self._admission.try_admit(job.id, estimate):
                return None, JobResult.failure(
                    job.id, job.platform,
                    "Insufficient resources to run job",
                    ErrorKind.RESOURCE_EXHAUSTED,
                )

            job.start()
            logger.info(f"Job {job.id} admitted ({estimate}MB, actor {actor.actor_id})")
            return (job, actor, actor_input), None

    def _check_not_cancelled(self, job: Job) -> None:
        with self._lock:
            if job.status == JobStatus.CANCELLED:
                raise JobCancelledError(f"Job {job.id} was cancelled; result discarded")

    def _store(self, job: Job, raw_records: List[dict]) -> List[dict]:
        """
        Normalize and persist raw records.

        Returns:
            Normalized records (empty if the actor returned nothing)

        Raises:
            JobCancelledError, DataFormatError, PersistenceError
        """
        self._check_not_cancelled(job)
        if not raw_records:
            logger.info(f"Job {job.id}: actor returned no reviews")
            return []

        normalized = self._processor.transform_review_data(raw_records, job.platform)
        if not normalized.success:
            raise DataFormatError(normalized.error)
        records = normalized.records

        gateway = self._capabilities.gateway_for(job.platform)
        if gateway is None:
            logger.warning(f"Job {job.id}: no persistence gateway for {job.platform.value}, skipping save")
            return records

        try:
            lookup = gateway.get_profile(job.team_id, job.platform)
        except Exception as e:
            raise PersistenceError(f"Business profile lookup failed: {e}")
        if not lookup.success or not lookup.business_id:
            logger.warning(
                f"Job {job.id}: no business profile for team {job.team_id} "
                f"on {job.platform.value}, skipping save ({lookup.error})"
            )
            return records

        self._check_not_cancelled(job)
        try:
            gateway.save_reviews(lookup.business_id, records)
        except Exception as e:
            raise PersistenceError(f"Failed to save reviews: {e}")
        logger.debug(f"Job {job.id}: saved {len(records)} reviews for business {lookup.business_id}")
        return records

    def _finish(self, job: Job, error: Optional[str] = None, kind: Optional[ErrorKind] = None) -> None:
        """Final RUNNING -> COMPLETED/FAILED transition, unless cancelled meanwhile."""
        with self._lock:
            if job.status == JobStatus.CANCELLED:
                raise JobCancelledError(f"Job {job.id} was cancelled; result discarded")
            if error is None:
                job.complete()
            else:
                job.fail(error, kind or ErrorKind.INTERNAL)
                logger.error(f"Job {job.id} failed ({job.error_type.value}): {error}")

    def _fail_running(self, job: Job, exc: Exception, processing_time_ms: int) -> JobResult:
        result = JobResult.from_exception(job.id, job.platform, exc, processing_time_ms)
        if isinstance(exc, JobCancelledError):
            logger.warning(str(exc))
            return result
        with self._lock:
            if job.status == JobStatus.RUNNING:
                job.fail(result.error, result.error_type)
                logger.error(f"Job {job.id} failed ({result.error_type.value}): {result.error}")
        return result

    def execute_batch_jobs(self, jobs: Iterable[Job]) -> List[JobResult]:
        """Execute jobs sequentially; one result per job, failures do not stop the batch."""
        results = []
        for job in jobs:
            try:
                results.append(self.execute_job(job))
            except Exception as e:
                logger.exception(f"Batch job {job.id} raised")
                results.append(JobResult.from_exception(job.id, job.platform, e))
        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Batch complete: {succeeded}/{len(results)} succeeded")
        return results

    def execute_pending_jobs(self, limit: Optional[int] = None) -> List[JobResult]:
        """
        Execute PENDING jobs in priority order.

        HIGH before MEDIUM before LOW, oldest first within a priority. Stops
        at the first admission refusal; refused and skipped jobs stay PENDING
        and are not included in the results.
        """
        with self._lock:
            queue = self._registry.pending_by_priority()

        results: List[JobResult] = []
        for job in queue:
            if limit is not None and len(results) >= limit:
                break
            result = self.execute_job(job)
            if result.error_type == ErrorKind.RESOURCE_EXHAUSTED:
                logger.info(f"Admission refused, stopping queue drain after {len(results)} jobs")
                break
            if result.error_type == ErrorKind.INVALID_STATE:
                continue
            results.append(result)
        return results

    # =========================================================================
    # Retry / cancel
    # =========================================================================

    def retry_job(self, job_id: str) -> bool:
        """
        Move a FAILED job back to PENDING.

        Returns:
            True if requeued. False (no-op) for unknown ids, jobs that are not
            FAILED, jobs at their retry limit and permanent failures
            (UNSUPPORTED_PLATFORM, VALIDATION)
        """
        with self._lock:
            job = self._registry.get(job_id)
            if job is None:
                logger.warning(f"Retry ignored: unknown job {job_id}")
                return False
            if not job.can_retry:
                logger.warning(
                    f"Retry ignored for job {job_id}: status={job.status.value}, "
                    f"error_type={job.error_type.value if job.error_type else None}, "
                    f"retries={job.retry_count}/{job.max_retries}"
                )
                return False
            job.requeue()
        logger.info(f"Job {job_id} requeued (retry {job.retry_count}/{job.max_retries})")
        return True

    def cancel_job(self, job_id: str) -> bool:
        """
        Cancel a PENDING or RUNNING job.

        Returns:
            True if the job was cancelled by this call; False for unknown ids
            and jobs already finished
        """
        with self._lock:
            job = self._registry.get(job_id)
            if job is None or job.status not in (JobStatus.PENDING, JobStatus.RUNNING):
                logger.debug(f"Cancel ignored for job {job_id}")
                return False
            was_running = job.status == JobStatus.RUNNING
            job.cancel()
            self._admission.release(job_id)
        logger.info(f"Job {job_id} cancelled{' while running' if was_running else ''}")
        return True

    # =========================================================================
    # Queries
    # =========================================================================

    def get_job_status(self, job_id: str) -> Optional[Job]:
        with self._lock:
            return self._registry.get(job_id)

    def get_jobs_by_team(self, team_id: str) -> List[Job]:
        with self._lock:
            return self._registry.by_team(team_id)

    def get_jobs_by_platform(self, platform) -> List[Job]:
        platform = parse_platform(platform)
        with self._lock:
            return self._registry.by_platform(platform)

    def get_active_jobs(self) -> List[Job]:
        """PENDING and RUNNING jobs."""
        with self._lock:
            return self._registry.active()

    def get_job_statistics(self) -> JobStatistics:
        with self._lock:
            return JobStatistics.from_jobs(
                self._registry.all(),
                memory_in_use_mb=self._admission.memory_in_use_mb,
                memory_limit_mb=self._admission.memory_limit_mb,
                max_concurrent_jobs=self._admission.max_concurrent_jobs,
            )

    # =========================================================================
    # Settings
    # =========================================================================

    def set_job_priority(self, job_id: str, priority: JobPriority) -> bool:
        """Change the priority of a PENDING job. Returns False otherwise."""
        priority = JobPriority(priority)
        with self._lock:
            job = self._registry.get(job_id)
            if job is None or job.status != JobStatus.PENDING:
                return False
            job.priority = priority
        logger.info(f"Job {job_id} priority set to {priority.value}")
        return True

    def set_max_concurrent_jobs(self, value: int) -> None:
        """Raises ValueError if value is not a positive integer."""
        self._admission.set_max_concurrent_jobs(value)

    def set_memory_limit(self, value_mb: int) -> None:
        """Raises ValueError if value_mb is not a positive integer."""
        self._admission.set_memory_limit(value_mb)

    @property
    def admission(self) -> AdmissionController:
        return self._admission

    @property
    def capabilities(self) -> CapabilityRegistry:
        return self._capabilities
