"""
Google Maps Reviews Actor

Canonical input: {"jobId", "maxReviews", "placeIds": [place_id, ...]}
Actor schema:    placeIds, maxReviews, reviewsSort, language, reviewsOrigin, personalData
"""
from typing import Any, Dict

from ..platforms import Platform
from .base import BaseActor

MIN_PLACE_ID_LENGTH = 10


class GoogleReviewsActor(BaseActor):
    """Google Maps place reviews."""

    PLATFORM = Platform.GOOGLE_MAPS

    def identifier_input(self, identifier: str) -> Dict[str, Any]:
        return {"placeIds": [identifier]}

    def validate_input(self, actor_input: Dict[str, Any]) -> bool:
        place_ids = actor_input.get("placeIds")
        if not isinstance(place_ids, list) or not place_ids:
            return False
        return all(
            isinstance(place_id, str) and len(place_id) >= MIN_PLACE_ID_LENGTH
            for place_id in place_ids
        )

    def to_actor_payload(self, actor_input: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "placeIds": list(actor_input["placeIds"]),
            "maxReviews": self.requested_volume(actor_input),
            "reviewsSort": "newest",
            "language": "en",
            "reviewsOrigin": "all",
            "personalData": True,
        }
