"""
Tests for scraper settings: defaults, YAML overrides, env precedence.
"""

import pytest

from review_scrapers.config import (
    DEFAULT_MAX_CONCURRENT_JOBS,
    DEFAULT_MEMORY_LIMIT_MB,
    default_config_path,
    load_settings,
)
from review_scrapers.errors import ConfigError
from review_scrapers.platforms import PLATFORM_PROFILES, Platform


@pytest.fixture
def write_config(tmp_path):
    def _write(text):
        path = tmp_path / "scraper_jobs.yaml"
        path.write_text(text)
        return str(path)
    return _write


class TestDefaults:
    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_settings(str(tmp_path / "missing.yaml"))
        assert settings.max_concurrent_jobs == DEFAULT_MAX_CONCURRENT_JOBS
        assert settings.memory_limit_mb == DEFAULT_MEMORY_LIMIT_MB
        assert settings.default_max_retries == 3
        assert settings.run_timeout_secs == 600
        assert settings.apify_base_url == "https://api.apify.com"
        assert settings.apify_token is None

    def test_actor_defaults_come_from_profiles(self, tmp_path):
        settings = load_settings(str(tmp_path / "missing.yaml"))
        for platform, profile in PLATFORM_PROFILES.items():
            actor = settings.actor_settings(platform)
            assert actor.actor_id == profile.default_actor_id
            assert actor.memory_estimate_mb == profile.memory_baseline_mb

    def test_shipped_config_matches_defaults(self):
        settings = load_settings(default_config_path())
        assert settings.max_concurrent_jobs == 5
        assert settings.memory_limit_mb == 32768
        assert settings.actor_settings(Platform.FACEBOOK).actor_id == "dX3d80hsNMilEwjXG"

    def test_empty_file(self, write_config):
        settings = load_settings(write_config(""))
        assert settings.max_concurrent_jobs == DEFAULT_MAX_CONCURRENT_JOBS


class TestYamlOverrides:
    def test_limits(self, write_config):
        path = write_config(
            "limits:\n"
            "  max_concurrent_jobs: 2\n"
            "  memory_limit_mb: 4096\n"
            "  default_max_retries: 0\n"
            "  run_timeout_secs: 120\n"
        )
        settings = load_settings(path)
        assert settings.max_concurrent_jobs == 2
        assert settings.memory_limit_mb == 4096
        assert settings.default_max_retries == 0
        assert settings.run_timeout_secs == 120

    def test_actor_override_by_alias(self, write_config):
        path = write_config(
            "actors:\n"
            "  google:\n"
            "    actor_id: me/custom-google\n"
            "    memory_estimate_mb: 1024\n"
        )
        settings = load_settings(path)
        google = settings.actor_settings(Platform.GOOGLE_MAPS)
        assert google.actor_id == "me/custom-google"
        assert google.memory_estimate_mb == 1024
        assert settings.actor_settings(Platform.BOOKING).actor_id == "PbMHke3jW25J6hSOA"

    def test_config_path_from_env(self, write_config, monkeypatch):
        monkeypatch.setenv("SCRAPER_CONFIG_PATH", write_config("limits:\n  max_concurrent_jobs: 7\n"))
        assert load_settings().max_concurrent_jobs == 7


class TestEnvPrecedence:
    def test_env_beats_yaml(self, write_config, monkeypatch):
        path = write_config("limits:\n  max_concurrent_jobs: 2\n")
        monkeypatch.setenv("SCRAPER_MAX_CONCURRENT_JOBS", "9")
        assert load_settings(path).max_concurrent_jobs == 9

    def test_actor_id_env(self, write_config, monkeypatch):
        path = write_config("actors:\n  booking:\n    actor_id: from-yaml\n")
        monkeypatch.setenv("APIFY_BOOKING_REVIEWS_ACTOR_ID", "from-env")
        assert load_settings(path).actor_settings(Platform.BOOKING).actor_id == "from-env"

    def test_token_and_base_url(self, tmp_path, monkeypatch):
        monkeypatch.setenv("APIFY_TOKEN", "secret")
        monkeypatch.setenv("APIFY_BASE_URL", "http://localhost:9000")
        settings = load_settings(str(tmp_path / "missing.yaml"))
        assert settings.apify_token == "secret"
        assert settings.apify_base_url == "http://localhost:9000"

    def test_empty_env_value_ignored(self, write_config, monkeypatch):
        path = write_config("limits:\n  memory_limit_mb: 2048\n")
        monkeypatch.setenv("SCRAPER_MEMORY_LIMIT_MB", "")
        assert load_settings(path).memory_limit_mb == 2048


class TestInvalidConfig:
    @pytest.mark.parametrize("value", ["0", "-1", "abc"])
    def test_bad_memory_limit(self, tmp_path, monkeypatch, value):
        monkeypatch.setenv("SCRAPER_MEMORY_LIMIT_MB", value)
        with pytest.raises(ConfigError, match="SCRAPER_MEMORY_LIMIT_MB"):
            load_settings(str(tmp_path / "missing.yaml"))

    def test_negative_retries(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SCRAPER_DEFAULT_MAX_RETRIES", "-1")
        with pytest.raises(ConfigError):
            load_settings(str(tmp_path / "missing.yaml"))

    def test_malformed_yaml(self, write_config):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(write_config("limits: [unclosed\n"))

    def test_non_mapping_root(self, write_config):
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_settings(write_config("- a\n- b\n"))

    def test_unknown_actor_platform(self, write_config):
        with pytest.raises(ConfigError):
            load_settings(write_config("actors:\n  yelp:\n    actor_id: x\n"))

    def test_bad_actor_memory(self, write_config):
        with pytest.raises(ConfigError, match="memory_estimate_mb"):
            load_settings(write_config("actors:\n  facebook:\n    memory_estimate_mb: 0\n"))

    def test_actor_memory_above_platform_cap(self, write_config):
        with pytest.raises(ConfigError, match="2048MB cap"):
            load_settings(write_config("actors:\n  google:\n    memory_estimate_mb: 4096\n"))
