"""
Error taxonomy for the review scrape orchestrator.

Every expected failure mode has a typed exception carrying:
- kind: ErrorKind code surfaced on JobResult.error_type
- retryable: whether an explicit retry_job can be expected to help

Exceptions are raised inside components and caught at the public
boundaries (Actor.execute, ReviewDataProcessor.transform_review_data,
ReviewScrapeOrchestrator.execute_job), which turn them into result values.
"""
from enum import Enum


class ErrorKind(str, Enum):
    """Machine-readable failure classification."""
    VALIDATION = "validation"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    UNSUPPORTED_PLATFORM = "unsupported_platform"
    REMOTE_EXECUTION = "remote_execution"
    DATA_FORMAT = "data_format"
    PERSISTENCE = "persistence"
    INVALID_STATE = "invalid_state"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


class ScrapeJobError(Exception):
    """Base exception for scrape job failures."""

    kind: ErrorKind = ErrorKind.INTERNAL
    retryable: bool = True


class ActorInputError(ScrapeJobError):
    """Actor input failed platform validation. Never reaches the network."""

    kind = ErrorKind.VALIDATION
    retryable = False


class ResourceExhaustedError(ScrapeJobError):
    """Admission refused: concurrency or memory budget exhausted."""

    kind = ErrorKind.RESOURCE_EXHAUSTED


class UnsupportedPlatformError(ScrapeJobError):
    """No actor registered for the job's platform."""

    kind = ErrorKind.UNSUPPORTED_PLATFORM
    retryable = False


class RemoteExecutionError(ScrapeJobError):
    """The extraction service call failed or produced no dataset."""

    kind = ErrorKind.REMOTE_EXECUTION


class DataFormatError(ScrapeJobError):
    """Remote results did not pass review data validation."""

    kind = ErrorKind.DATA_FORMAT


class PersistenceError(ScrapeJobError):
    """The persistence gateway failed while storing normalized reviews."""

    kind = ErrorKind.PERSISTENCE


class InvalidJobStateError(ScrapeJobError):
    """Operation not allowed in the job's current status."""

    kind = ErrorKind.INVALID_STATE
    retryable = False


class JobCancelledError(ScrapeJobError):
    """The job was cancelled before its result could be applied."""

    kind = ErrorKind.CANCELLED
    retryable = False


class InvalidTransitionError(Exception):
    """Illegal job state transition (programming error)."""
    pass


class DuplicateJobError(Exception):
    """A different job with the same id is already registered."""
    pass


class ConfigError(Exception):
    """Configuration validation error."""
    pass


RETRYABLE_BY_KIND = {
    error_class.kind: error_class.retryable
    for error_class in ScrapeJobError.__subclasses__()
}


def is_retryable(kind: ErrorKind) -> bool:
    """Whether a job that failed with this kind may be requeued by retry_job."""
    return RETRYABLE_BY_KIND.get(kind, ScrapeJobError.retryable)
