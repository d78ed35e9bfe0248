"""
Root pytest configuration for backend tests.

Provides:
- backend/ on sys.path so `import review_scrapers` works without install
- Shared fixtures (raw review samples, fake extraction client, orchestrator)
"""

import sys
from pathlib import Path
from unittest.mock import Mock

# Add backend directory to Python path so imports like
# `from review_scrapers.orchestrator import ...` work
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

import pytest

from review_scrapers.actors import build_default_actors
from review_scrapers.admission import AdmissionController
from review_scrapers.capabilities import CapabilityRegistry
from review_scrapers.orchestrator import ReviewScrapeOrchestrator
from review_scrapers.persistence import InMemoryPersistenceGateway
from review_scrapers.platforms import Platform

GOOGLE_PLACE_ID = "ChIJN1t_tDeuEmsRUsoyG83frY4"
BOOKING_URL = "https://www.booking.com/hotel/gb/the-savoy.html"
TRIPADVISOR_URL = "https://www.tripadvisor.com/Hotel_Review-g186338-d188961-Reviews-The_Savoy.html"


@pytest.fixture(autouse=True)
def clean_scraper_env(request, monkeypatch):
    """Keep a developer's .env / shell settings out of unit tests."""
    if request.node.get_closest_marker("integration"):
        return
    for name in (
        "APIFY_TOKEN",
        "APIFY_BASE_URL",
        "APIFY_RUN_TIMEOUT_SECS",
        "SCRAPER_MAX_CONCURRENT_JOBS",
        "SCRAPER_MEMORY_LIMIT_MB",
        "SCRAPER_DEFAULT_MAX_RETRIES",
        "SCRAPER_CONFIG_PATH",
        "APIFY_GOOGLE_REVIEWS_ACTOR_ID",
        "APIFY_FACEBOOK_REVIEWS_ACTOR_ID",
        "APIFY_TRIPADVISOR_REVIEWS_ACTOR_ID",
        "APIFY_BOOKING_REVIEWS_ACTOR_ID",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def google_raw_reviews():
    """Raw items as returned by the Google Maps reviews actor."""
    return [
        {
            "reviewerId": "113",
            "name": "Alice",
            "text": "Great coffee",
            "stars": 5,
            "publishedAtDate": "2024-03-01T10:00:00.000Z",
            "placeId": GOOGLE_PLACE_ID,
            "reviewUrl": "https://maps.google.com/review/1",
        },
        {
            "reviewerId": "114",
            "name": "Bob",
            "text": "Slow service",
            "stars": 2,
            "publishedAtDate": "2024-03-02T12:30:00.000Z",
            "placeId": GOOGLE_PLACE_ID,
        },
    ]


@pytest.fixture
def fake_client(google_raw_reviews):
    """Extraction client stub; run_actor returns the Google sample by default."""
    client = Mock()
    client.run_actor.return_value = google_raw_reviews
    return client


@pytest.fixture
def gateway():
    """In-memory gateway with a Google profile for team-1."""
    gw = InMemoryPersistenceGateway()
    gw.register_profile("team-1", Platform.GOOGLE_MAPS, "biz-1")
    return gw


@pytest.fixture
def make_orchestrator(fake_client, gateway):
    """Factory for orchestrators wired with real actors and the fake client."""

    def _make(client=None, max_concurrent_jobs=5, memory_limit_mb=32768, platforms=None):
        capabilities = CapabilityRegistry()
        actors = build_default_actors(client or fake_client)
        for platform in (list(Platform) if platforms is None else platforms):
            capabilities.register(platform, actors[platform], gateway)
        return ReviewScrapeOrchestrator(
            capabilities=capabilities,
            admission=AdmissionController(max_concurrent_jobs, memory_limit_mb),
        )

    return _make


@pytest.fixture
def orchestrator(make_orchestrator):
    return make_orchestrator()
