"""
Platform actors.

Usage:
    from review_scrapers.actors import build_default_actors

    actors = build_default_actors(client, settings)
"""
from typing import Dict, Optional

from ..platforms import Platform
from .base import BaseActor
from .booking import BookingReviewsActor
from .facebook import FacebookReviewsActor
from .google import GoogleReviewsActor
from .tripadvisor import TripAdvisorReviewsActor

ACTOR_CLASSES = {
    Platform.GOOGLE_MAPS: GoogleReviewsActor,
    Platform.FACEBOOK: FacebookReviewsActor,
    Platform.TRIPADVISOR: TripAdvisorReviewsActor,
    Platform.BOOKING: BookingReviewsActor,
}


def build_default_actors(client=None, settings=None) -> Dict[Platform, BaseActor]:
    """
    Instantiate one actor per platform.

    Args:
        client: ApifyClient shared by all actors
        settings: Optional ScraperSettings with actor id / memory overrides

    Returns:
        Dict of platform -> actor
    """
    actors = {}
    for platform, actor_class in ACTOR_CLASSES.items():
        actor_id: Optional[str] = None
        memory: Optional[int] = None
        if settings is not None:
            actor_settings = settings.actor_settings(platform)
            actor_id = actor_settings.actor_id
            memory = actor_settings.memory_estimate_mb
        actors[platform] = actor_class(client=client, actor_id=actor_id, memory_estimate_mb=memory)
    return actors


__all__ = [
    "ACTOR_CLASSES",
    "BaseActor",
    "BookingReviewsActor",
    "FacebookReviewsActor",
    "GoogleReviewsActor",
    "TripAdvisorReviewsActor",
    "build_default_actors",
]
