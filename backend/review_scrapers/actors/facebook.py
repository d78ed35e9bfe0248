"""
Facebook Page Reviews Actor

Canonical input: {"jobId", "maxReviews", "pageId"[, "pageUrl"]}
Actor schema:    startUrls [{url}], resultsLimit, proxy, maxRequestRetries

The actor needs the page's /reviews URL; it is derived from pageUrl when
given, else from pageId.
"""
from typing import Any, Dict

from ..platforms import Platform
from .base import BaseActor, is_url

MIN_PAGE_ID_LENGTH = 3


def reviews_url(actor_input: Dict[str, Any]) -> str:
    """Facebook reviews URL for a page."""
    page_url = actor_input.get("pageUrl")
    if page_url:
        if "/reviews" in page_url:
            return page_url
        return page_url.rstrip("/") + "/reviews"
    return f"https://www.facebook.com/{actor_input['pageId']}/reviews"


class FacebookReviewsActor(BaseActor):
    """Facebook page recommendations and reviews."""

    PLATFORM = Platform.FACEBOOK

    def identifier_input(self, identifier: str) -> Dict[str, Any]:
        actor_input = {"pageId": identifier}
        if is_url(identifier):
            actor_input["pageUrl"] = identifier
        return actor_input

    def validate_input(self, actor_input: Dict[str, Any]) -> bool:
        page_id = actor_input.get("pageId")
        page_url = actor_input.get("pageUrl")
        if isinstance(page_id, str) and len(page_id) >= MIN_PAGE_ID_LENGTH:
            return True
        return isinstance(page_url, str) and "facebook.com" in page_url

    def to_actor_payload(self, actor_input: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "startUrls": [{"url": reviews_url(actor_input)}],
            "resultsLimit": self.requested_volume(actor_input),
            "proxy": {"useApifyProxy": True},
            "maxRequestRetries": 3,
        }
