"""
Result values returned across the public boundaries of the core.

JobResult: outcome of one Actor.execute / Orchestrator.execute_job call
NormalizationResult: outcome of ReviewDataProcessor.transform_review_data

Rule: `data`/`records` only on success, `error`/`error_type` only on failure.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import ErrorKind, ScrapeJobError
from ..platforms import Platform


@dataclass
class JobResult:
    """Outcome of executing a scrape job."""
    success: bool
    job_id: str
    platform: Platform
    reviews_processed: int = 0
    data: Optional[List[Dict[str, Any]]] = None
    error: Optional[str] = None
    error_type: Optional[ErrorKind] = None
    processing_time_ms: int = 0

    def __post_init__(self):
        if self.success and (self.error is not None or self.error_type is not None):
            raise ValueError("Successful JobResult cannot carry an error")
        if not self.success and self.data is not None:
            raise ValueError("Failed JobResult cannot carry data")

    @classmethod
    def ok(
        cls,
        job_id: str,
        platform: Platform,
        data: List[Dict[str, Any]],
        processing_time_ms: int = 0,
        reviews_processed: Optional[int] = None,
    ) -> "JobResult":
        """Create a successful result."""
        return cls(
            success=True,
            job_id=job_id,
            platform=platform,
            reviews_processed=len(data) if reviews_processed is None else reviews_processed,
            data=data,
            processing_time_ms=processing_time_ms,
        )

    @classmethod
    def failure(
        cls,
        job_id: str,
        platform: Platform,
        error: str,
        error_type: ErrorKind = ErrorKind.INTERNAL,
        processing_time_ms: int = 0,
    ) -> "JobResult":
        """Create a failed result."""
        return cls(
            success=False,
            job_id=job_id,
            platform=platform,
            error=error,
            error_type=error_type,
            processing_time_ms=processing_time_ms,
        )

    @classmethod
    def from_exception(
        cls,
        job_id: str,
        platform: Platform,
        exc: Exception,
        processing_time_ms: int = 0,
    ) -> "JobResult":
        """Create a failed result from a raised exception."""
        kind = exc.kind if isinstance(exc, ScrapeJobError) else ErrorKind.INTERNAL
        return cls.failure(job_id, platform, str(exc) or type(exc).__name__, kind, processing_time_ms)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output (raw data omitted)."""
        return {
            "success": self.success,
            "job_id": self.job_id,
            "platform": self.platform.value,
            "reviews_processed": self.reviews_processed,
            "error": self.error,
            "error_type": self.error_type.value if self.error_type else None,
            "processing_time_ms": self.processing_time_ms,
        }


@dataclass
class NormalizationResult:
    """Outcome of validating and normalizing raw review records."""
    success: bool
    records: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[ErrorKind] = None

    @classmethod
    def ok(cls, records: List[Dict[str, Any]]) -> "NormalizationResult":
        return cls(success=True, records=records)

    @classmethod
    def failure(cls, error: str, error_type: ErrorKind = ErrorKind.DATA_FORMAT) -> "NormalizationResult":
        return cls(success=False, error=error, error_type=error_type)
