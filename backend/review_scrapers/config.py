"""
Scraper Configuration - Environment and YAML settings for the orchestrator.

Precedence (lowest to highest):
1. In-code defaults (platforms.PLATFORM_PROFILES, DEFAULT_* below)
2. YAML file at SCRAPER_CONFIG_PATH (backend/config/scraper_jobs.yaml)
3. Environment variables (.env loaded via python-dotenv)

YAML layout:
    limits:
      max_concurrent_jobs: 5
      memory_limit_mb: 32768
      default_max_retries: 3
      run_timeout_secs: 600
    actors:
      google_maps:
        actor_id: Xb8osYTtOjlsgI6k9
        memory_estimate_mb: 512
"""
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from .errors import ConfigError
from .platforms import PLATFORM_PROFILES, Platform, parse_platform

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENT_JOBS = 5
DEFAULT_MEMORY_LIMIT_MB = 32768
DEFAULT_MAX_RETRIES = 3
DEFAULT_RUN_TIMEOUT_SECS = 600
DEFAULT_APIFY_BASE_URL = "https://api.apify.com"


def default_config_path() -> str:
    """Get default YAML config path."""
    return str(Path(__file__).parent.parent / "config" / "scraper_jobs.yaml")


@dataclass(frozen=True)
class ActorSettings:
    """Resolved per-platform actor settings."""
    actor_id: str
    memory_estimate_mb: int


@dataclass(frozen=True)
class ScraperSettings:
    """Resolved orchestrator configuration."""
    apify_token: Optional[str] = None
    apify_base_url: str = DEFAULT_APIFY_BASE_URL
    run_timeout_secs: int = DEFAULT_RUN_TIMEOUT_SECS
    max_concurrent_jobs: int = DEFAULT_MAX_CONCURRENT_JOBS
    memory_limit_mb: int = DEFAULT_MEMORY_LIMIT_MB
    default_max_retries: int = DEFAULT_MAX_RETRIES
    actors: Dict[Platform, ActorSettings] = field(default_factory=dict)

    def actor_settings(self, platform: Platform) -> ActorSettings:
        """Settings for a platform, falling back to built-in defaults."""
        if platform in self.actors:
            return self.actors[platform]
        profile = PLATFORM_PROFILES[platform]
        return ActorSettings(profile.default_actor_id, profile.memory_baseline_mb)


# =============================================================================
# Loading
# =============================================================================

def _load_yaml(path: str) -> Dict[str, Any]:
    """Load YAML config, returning {} when the file is missing."""
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.debug(f"Scraper config not found at {path}, using defaults")
        return {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}")

    if not isinstance(data, dict):
        raise ConfigError(f"Scraper config {path} must be a mapping")
    logger.info(f"Loaded scraper config from {path}")
    return data


def _positive_int(name: str, value: Any, allow_zero: bool = False) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if number < 0 or (number == 0 and not allow_zero):
        raise ConfigError(f"{name} must be {'>= 0' if allow_zero else 'positive'}, got {number}")
    return number


def _resolve(env_name: str, yaml_value: Any, default: Any) -> Any:
    env_value = os.getenv(env_name)
    if env_value not in (None, ""):
        return env_value
    if yaml_value is not None:
        return yaml_value
    return default


def _resolve_actors(actors_section: Dict[str, Any]) -> Dict[Platform, ActorSettings]:
    overrides: Dict[Platform, Dict[str, Any]] = {}
    for key, values in (actors_section or {}).items():
        try:
            platform = parse_platform(key)
        except ValueError as e:
            raise ConfigError(str(e))
        if not isinstance(values, dict):
            raise ConfigError(f"actors.{key} must be a mapping")
        overrides[platform] = values

    resolved = {}
    for platform, profile in PLATFORM_PROFILES.items():
        values = overrides.get(platform, {})
        actor_id = _resolve(profile.actor_id_env, values.get("actor_id"), profile.default_actor_id)
        memory = _positive_int(
            f"actors.{platform.value.lower()}.memory_estimate_mb",
            values.get("memory_estimate_mb", profile.memory_baseline_mb),
        )
        if memory > profile.memory_cap_mb:
            raise ConfigError(
                f"actors.{platform.value.lower()}.memory_estimate_mb ({memory}) "
                f"exceeds the {profile.memory_cap_mb}MB cap"
            )
        resolved[platform] = ActorSettings(actor_id=str(actor_id), memory_estimate_mb=memory)
    return resolved


def load_settings(config_path: Optional[str] = None) -> ScraperSettings:
    """
    Build settings from defaults, YAML and environment.

    Args:
        config_path: YAML path. Defaults to SCRAPER_CONFIG_PATH or
                     backend/config/scraper_jobs.yaml

    Returns:
        ScraperSettings

    Raises:
        ConfigError: On malformed YAML or non-positive limits
    """
    path = config_path or os.getenv("SCRAPER_CONFIG_PATH") or default_config_path()
    data = _load_yaml(path)
    limits = data.get("limits") or {}
    if not isinstance(limits, dict):
        raise ConfigError("limits must be a mapping")

    return ScraperSettings(
        apify_token=os.getenv("APIFY_TOKEN") or None,
        apify_base_url=_resolve("APIFY_BASE_URL", data.get("apify_base_url"), DEFAULT_APIFY_BASE_URL),
        run_timeout_secs=_positive_int(
            "APIFY_RUN_TIMEOUT_SECS",
            _resolve("APIFY_RUN_TIMEOUT_SECS", limits.get("run_timeout_secs"), DEFAULT_RUN_TIMEOUT_SECS),
        ),
        max_concurrent_jobs=_positive_int(
            "SCRAPER_MAX_CONCURRENT_JOBS",
            _resolve("SCRAPER_MAX_CONCURRENT_JOBS", limits.get("max_concurrent_jobs"), DEFAULT_MAX_CONCURRENT_JOBS),
        ),
        memory_limit_mb=_positive_int(
            "SCRAPER_MEMORY_LIMIT_MB",
            _resolve("SCRAPER_MEMORY_LIMIT_MB", limits.get("memory_limit_mb"), DEFAULT_MEMORY_LIMIT_MB),
        ),
        default_max_retries=_positive_int(
            "SCRAPER_DEFAULT_MAX_RETRIES",
            _resolve("SCRAPER_DEFAULT_MAX_RETRIES", limits.get("default_max_retries"), DEFAULT_MAX_RETRIES),
            allow_zero=True,
        ),
        actors=_resolve_actors(data.get("actors") or {}),
    )
