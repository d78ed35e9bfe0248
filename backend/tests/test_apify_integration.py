"""
Live smoke test against Apify.

Run with: pytest backend/tests/test_apify_integration.py -v --run-integration
Skipped without APIFY_TOKEN. Starts one small Google Maps reviews run (billed).
"""

import pytest

from review_scrapers.apify_client import ApifyClient
from review_scrapers.config import load_settings
from review_scrapers.models.job import JobOptions, JobStatus
from review_scrapers.orchestrator import ReviewScrapeOrchestrator
from review_scrapers.persistence import InMemoryPersistenceGateway
from review_scrapers.platforms import Platform

PLACE_ID = "ChIJN1t_tDeuEmsRUsoyG83frY4"


@pytest.mark.integration
def test_google_reviews_end_to_end():
    gateway = InMemoryPersistenceGateway()
    gateway.register_profile("smoke-team", Platform.GOOGLE_MAPS, "smoke-business")
    orchestrator = ReviewScrapeOrchestrator.from_settings(
        load_settings(), ApifyClient(run_timeout_secs=300), gateway
    )

    job = orchestrator.create_job("google", "smoke-team", PLACE_ID, JobOptions(max_reviews=5))
    result = orchestrator.execute_job(job)

    assert result.success, result.error
    assert job.status == JobStatus.COMPLETED
    assert len(gateway.reviews_for("smoke-business")) == result.reviews_processed