"""
Review scrape orchestration core.

Pulls reviews for a business from Google Maps, Facebook, TripAdvisor and
Booking.com through Apify actors, under concurrency and memory budgets,
and hands normalized records to a persistence gateway.

Usage:
    from review_scrapers import ReviewScrapeOrchestrator, load_settings

    orchestrator = ReviewScrapeOrchestrator.from_settings(load_settings(), client, gateway)
"""
from .admission import AdmissionController
from .capabilities import CapabilityRegistry, PlatformCapability
from .config import ScraperSettings, load_settings
from .data_processor import ReviewDataProcessor
from .errors import ErrorKind, ScrapeJobError
from .models import Job, JobOptions, JobPriority, JobResult, JobStatistics, JobStatus, NormalizationResult
from .orchestrator import ReviewScrapeOrchestrator
from .persistence import BusinessProfileLookup, InMemoryPersistenceGateway, PersistenceGateway
from .platforms import Platform

__all__ = [
    "AdmissionController",
    "BusinessProfileLookup",
    "CapabilityRegistry",
    "ErrorKind",
    "InMemoryPersistenceGateway",
    "Job",
    "JobOptions",
    "JobPriority",
    "JobResult",
    "JobStatistics",
    "JobStatus",
    "NormalizationResult",
    "PersistenceGateway",
    "Platform",
    "PlatformCapability",
    "ReviewDataProcessor",
    "ReviewScrapeOrchestrator",
    "ScrapeJobError",
    "ScraperSettings",
    "load_settings",
]
