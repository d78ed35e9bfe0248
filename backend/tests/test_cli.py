"""
Tests for the review-scrapers CLI (click CliRunner, no network).
"""

import json

import pytest
from click.testing import CliRunner
from unittest.mock import patch

from review_scrapers.apify_client import ApifyRunFailedError
from review_scrapers.cli import cli

PLACE_ID = "ChIJN1t_tDeuEmsRUsoyG83frY4"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def missing_config(tmp_path):
    return str(tmp_path / "missing.yaml")


class TestValidateCommand:
    def test_valid_google(self, runner, missing_config):
        result = runner.invoke(cli, ["--config", missing_config, "validate", "google", PLACE_ID], obj={})
        assert result.exit_code == 0
        assert "Valid" in result.output
        assert '"reviewsSort": "newest"' in result.output

    def test_short_place_id(self, runner, missing_config):
        result = runner.invoke(cli, ["--config", missing_config, "validate", "google", "abc"], obj={})
        assert result.exit_code == 1
        assert "Invalid" in result.output

    def test_tripadvisor_without_url(self, runner, missing_config):
        result = runner.invoke(cli, ["--config", missing_config, "validate", "tripadvisor", "d188961"], obj={})
        assert result.exit_code == 1
        assert "TripAdvisor URL is required" in result.output

    def test_unknown_platform(self, runner):
        result = runner.invoke(cli, ["validate", "yelp", "x"], obj={})
        assert result.exit_code == 2

    def test_bad_config(self, runner, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("limits: [unclosed\n")
        result = runner.invoke(cli, ["--config", str(path), "validate", "google", PLACE_ID], obj={})
        assert result.exit_code == 1
        assert "Config error" in result.output


class TestEstimateCommand:
    def test_google_500(self, runner, missing_config):
        result = runner.invoke(
            cli, ["--config", missing_config, "estimate", "google", PLACE_ID, "--max-reviews", "500"], obj={}
        )
        assert result.exit_code == 0
        assert "762MB" in result.output
        assert "32768MB / 5 jobs" in result.output

    def test_init_default_volume(self, runner, missing_config):
        result = runner.invoke(
            cli, ["--config", missing_config, "estimate", "booking", "https://www.booking.com/hotel/x.html", "--init"],
            obj={},
        )
        assert result.exit_code == 0
        assert "Max reviews: 1000" in result.output
        assert "762MB" in result.output


class TestRunCommand:
    def test_missing_token(self, runner, missing_config):
        result = runner.invoke(cli, ["--config", missing_config, "run", "google", "team-1", PLACE_ID], obj={})
        assert result.exit_code == 1
        assert "APIFY_TOKEN" in result.output

    def test_json_success(self, runner, missing_config, google_raw_reviews):
        with patch("review_scrapers.cli.ApifyClient") as client_class:
            client_class.return_value.run_actor.return_value = google_raw_reviews
            result = runner.invoke(
                cli,
                ["--config", missing_config, "run", "google", "team-1", PLACE_ID,
                 "--business-id", "biz-1", "--json"],
                obj={},
            )

        assert result.exit_code == 0
        output = json.loads(result.stdout)
        assert output["result"]["success"] is True
        assert output["result"]["reviews_processed"] == 2
        assert output["job"]["status"] == "completed"
        assert output["statistics"]["completed_jobs"] == 1

    def test_text_failure(self, runner, missing_config):
        with patch("review_scrapers.cli.ApifyClient") as client_class:
            client_class.return_value.run_actor.side_effect = ApifyRunFailedError("run ended FAILED")
            result = runner.invoke(
                cli, ["--config", missing_config, "run", "google", "team-1", PLACE_ID], obj={}
            )

        assert result.exit_code == 1
        assert "remote_execution" in result.output
        assert "run ended FAILED" in result.output
