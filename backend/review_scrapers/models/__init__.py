"""Scrape job models."""

from .job import (
    DEFAULT_MAX_RETRIES,
    Job,
    JobOptions,
    JobPriority,
    JobStatus,
    TRANSITIONS,
)
from .result import JobResult, NormalizationResult
from .statistics import JobStatistics

__all__ = [
    "DEFAULT_MAX_RETRIES",
    "Job",
    "JobOptions",
    "JobPriority",
    "JobStatus",
    "TRANSITIONS",
    "JobResult",
    "NormalizationResult",
    "JobStatistics",
]
