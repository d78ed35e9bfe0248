"""
TripAdvisor Reviews Actor

Canonical input: {"jobId", "maxReviews", "locationId"[, "tripAdvisorUrl"]}
Actor schema:    startUrls [{url, method}], maxItemsPerQuery, scrapeReviewerInfo,
                 reviewRatings, reviewsLanguages

A bare locationId validates, but the actor only accepts full URLs, so
translation fails with ActorInputError before any network call.
"""
from typing import Any, Dict

from ..errors import ActorInputError
from ..platforms import Platform
from .base import BaseActor, is_url

MIN_LOCATION_ID_LENGTH = 3


class TripAdvisorReviewsActor(BaseActor):
    """TripAdvisor location reviews."""

    PLATFORM = Platform.TRIPADVISOR

    def identifier_input(self, identifier: str) -> Dict[str, Any]:
        actor_input = {"locationId": identifier}
        if is_url(identifier):
            actor_input["tripAdvisorUrl"] = identifier
        return actor_input

    def validate_input(self, actor_input: Dict[str, Any]) -> bool:
        location_id = actor_input.get("locationId")
        url = actor_input.get("tripAdvisorUrl")
        if isinstance(location_id, str) and len(location_id) >= MIN_LOCATION_ID_LENGTH:
            return True
        return isinstance(url, str) and "tripadvisor.com" in url

    def to_actor_payload(self, actor_input: Dict[str, Any]) -> Dict[str, Any]:
        url = actor_input.get("tripAdvisorUrl")
        if not url:
            raise ActorInputError("TripAdvisor URL is required for scraping")
        return {
            "startUrls": [{"url": url, "method": "GET"}],
            "maxItemsPerQuery": self.requested_volume(actor_input),
            "scrapeReviewerInfo": True,
            "reviewRatings": ["ALL_REVIEW_RATINGS"],
            "reviewsLanguages": ["ALL_REVIEW_LANGUAGES"],
        }
