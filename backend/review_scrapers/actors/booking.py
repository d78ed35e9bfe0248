"""
Booking.com Reviews Actor

Canonical input: {"jobId", "maxReviews", "bookingUrl"}
Actor schema:    startUrls [{url}], maxReviewsPerHotel, sortReviewsBy,
                 reviewScores, language, proxyConfiguration
"""
from typing import Any, Dict

from ..platforms import Platform
from .base import BaseActor


class BookingReviewsActor(BaseActor):
    """Booking.com hotel reviews."""

    PLATFORM = Platform.BOOKING

    def identifier_input(self, identifier: str) -> Dict[str, Any]:
        return {"bookingUrl": identifier}

    def validate_input(self, actor_input: Dict[str, Any]) -> bool:
        url = actor_input.get("bookingUrl")
        return isinstance(url, str) and "booking.com" in url

    def to_actor_payload(self, actor_input: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "startUrls": [{"url": actor_input["bookingUrl"]}],
            "maxReviewsPerHotel": self.requested_volume(actor_input),
            "sortReviewsBy": "f_relevance",
            "reviewScores": ["ALL"],
            "language": "en-us",
            "proxyConfiguration": {"useApifyProxy": True},
        }
