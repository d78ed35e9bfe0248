"""
Review Platform System - Per-platform constants for actor dispatch.

GOOGLE_MAPS: Google Maps place reviews (place ids)
FACEBOOK:    Facebook page reviews (page id or page URL)
TRIPADVISOR: TripAdvisor location reviews (location id or URL)
BOOKING:     Booking.com hotel reviews (hotel URL)

Memory figures drive admission control:
    estimate = baseline + ceil(volume / 100) * step, capped at memory_cap_mb
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict


class Platform(str, Enum):
    """External review platform."""
    GOOGLE_MAPS = "GOOGLE_MAPS"
    FACEBOOK = "FACEBOOK"
    TRIPADVISOR = "TRIPADVISOR"
    BOOKING = "BOOKING"


@dataclass(frozen=True)
class PlatformProfile:
    """Static configuration for a review platform."""
    platform: Platform
    default_actor_id: str
    actor_id_env: str
    memory_baseline_mb: int
    memory_step_mb: int  # Added per 100 requested reviews
    memory_cap_mb: int
    description: str


PLATFORM_PROFILES: Dict[Platform, PlatformProfile] = {
    Platform.GOOGLE_MAPS: PlatformProfile(
        platform=Platform.GOOGLE_MAPS,
        default_actor_id="Xb8osYTtOjlsgI6k9",
        actor_id_env="APIFY_GOOGLE_REVIEWS_ACTOR_ID",
        memory_baseline_mb=512,
        memory_step_mb=50,
        memory_cap_mb=2048,
        description="Google Maps Reviews Scraper",
    ),
    Platform.FACEBOOK: PlatformProfile(
        platform=Platform.FACEBOOK,
        default_actor_id="dX3d80hsNMilEwjXG",
        actor_id_env="APIFY_FACEBOOK_REVIEWS_ACTOR_ID",
        memory_baseline_mb=256,
        memory_step_mb=25,
        memory_cap_mb=1024,
        description="Facebook Reviews Scraper",
    ),
    Platform.TRIPADVISOR: PlatformProfile(
        platform=Platform.TRIPADVISOR,
        default_actor_id="Hvp4YfFGyLM635Q2F",
        actor_id_env="APIFY_TRIPADVISOR_REVIEWS_ACTOR_ID",
        memory_baseline_mb=512,
        memory_step_mb=50,
        memory_cap_mb=2048,
        description="TripAdvisor Reviews Scraper",
    ),
    Platform.BOOKING: PlatformProfile(
        platform=Platform.BOOKING,
        default_actor_id="PbMHke3jW25J6hSOA",
        actor_id_env="APIFY_BOOKING_REVIEWS_ACTOR_ID",
        memory_baseline_mb=512,
        memory_step_mb=25,
        memory_cap_mb=1024,
        description="Booking.com Reviews Scraper",
    ),
}


# Accepted spellings for CLI / config input
PLATFORM_ALIASES: Dict[str, Platform] = {
    "google": Platform.GOOGLE_MAPS,
    "google_maps": Platform.GOOGLE_MAPS,
    "google_reviews": Platform.GOOGLE_MAPS,
    "facebook": Platform.FACEBOOK,
    "tripadvisor": Platform.TRIPADVISOR,
    "booking": Platform.BOOKING,
}


def get_platform_profile(platform: Platform) -> PlatformProfile:
    """
    Get static configuration for a platform.

    Args:
        platform: Review platform

    Returns:
        PlatformProfile: Configuration dataclass
    """
    return PLATFORM_PROFILES[platform]


def parse_platform(value) -> Platform:
    """
    Parse a platform from an enum member, enum value or alias.

    Args:
        value: Platform, 'GOOGLE_MAPS', 'google', 'booking', ...

    Returns:
        Platform

    Raises:
        ValueError: If the value names no known platform
    """
    if isinstance(value, Platform):
        return value
    text = str(value).strip()
    try:
        return Platform(text.upper())
    except ValueError:
        pass
    platform = PLATFORM_ALIASES.get(text.lower())
    if platform is None:
        raise ValueError(f"Unknown platform: {value}")
    return platform
