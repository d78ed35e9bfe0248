"""
Tests for Apify API Client

These tests mock requests.Session to avoid hitting the real API.
The live smoke test lives in test_apify_integration.py.
"""

import itertools

import pytest
import requests
from unittest.mock import MagicMock, Mock, patch

from review_scrapers.apify_client import (
    ApifyAPIError,
    ApifyClient,
    ApifyNoDatasetError,
    ApifyRun,
    ApifyRunFailedError,
    ApifyTimeoutError,
    MAX_RETRIES,
)


# =============================================================================
# Fixtures
# =============================================================================

def _response(status_code=200, payload=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = text
    return response


def _run_payload(status, dataset_id="ds-1", run_id="run-1"):
    return {"data": {"id": run_id, "status": status, "defaultDatasetId": dataset_id}}


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(session):
    return ApifyClient(token="test-token", session=session, run_timeout_secs=600)


# =============================================================================
# Construction
# =============================================================================

class TestClientInit:
    """Tests for token handling."""

    def test_missing_token_raises(self):
        with pytest.raises(ApifyAPIError, match="APIFY_TOKEN"):
            ApifyClient(session=MagicMock())

    def test_token_from_env(self, monkeypatch):
        monkeypatch.setenv("APIFY_TOKEN", "env-token")
        client = ApifyClient(session=MagicMock())
        assert client.token == "env-token"

    def test_bearer_header(self, session):
        ApifyClient(token="abc", session=session)
        headers = session.headers.update.call_args[0][0]
        assert headers["Authorization"] == "Bearer abc"

    def test_base_url_from_env(self, monkeypatch):
        monkeypatch.setenv("APIFY_BASE_URL", "http://localhost:8080/")
        client = ApifyClient(token="abc", session=MagicMock())
        assert client.base_url == "http://localhost:8080"


# =============================================================================
# start_run
# =============================================================================

class TestStartRun:
    """Starting runs is never retried."""

    def test_posts_input(self, client, session):
        session.post.return_value = _response(201, _run_payload("READY"))
        run = client.start_run("Xb8osYTtOjlsgI6k9", {"placeIds": ["x"]})

        assert run.id == "run-1"
        assert run.status == "READY"
        url = session.post.call_args[0][0]
        kwargs = session.post.call_args[1]
        assert url == "https://api.apify.com/v2/acts/Xb8osYTtOjlsgI6k9/runs"
        assert kwargs["json"] == {"placeIds": ["x"]}
        assert kwargs["params"] == {"timeout": 600}

    def test_username_actor_id_uses_tilde(self, client, session):
        session.post.return_value = _response(201, _run_payload("READY"))
        client.start_run("compass/google-maps-reviews-scraper", {})
        assert session.post.call_args[0][0].endswith("/acts/compass~google-maps-reviews-scraper/runs")

    def test_unauthorized(self, client, session):
        session.post.return_value = _response(401, text="unauthorized")
        with pytest.raises(ApifyAPIError, match="Invalid Apify token") as exc_info:
            client.start_run("a", {})
        assert exc_info.value.status_code == 401

    def test_http_error_carries_status(self, client, session):
        session.post.return_value = _response(400, text="bad input")
        with pytest.raises(ApifyAPIError) as exc_info:
            client.start_run("a", {})
        assert exc_info.value.status_code == 400
        assert "bad input" in str(exc_info.value)

    def test_transport_error_not_retried(self, client, session):
        session.post.side_effect = requests.exceptions.ConnectionError("reset")
        with pytest.raises(ApifyAPIError, match="Failed to start actor"):
            client.start_run("a", {})
        assert session.post.call_count == 1


# =============================================================================
# Polling and timeouts
# =============================================================================

class TestWaitForRun:
    def test_polls_until_terminal(self, client, session):
        session.get.side_effect = [
            _response(200, _run_payload("RUNNING")),
            _response(200, _run_payload("SUCCEEDED")),
        ]
        run = client.wait_for_run(ApifyRun(id="run-1", actor_id="a", status="READY"))
        assert run.succeeded
        assert session.get.call_count == 2
        assert session.get.call_args[1]["params"]["waitForFinish"] <= 60

    def test_terminal_run_is_not_polled(self, client, session):
        run = client.wait_for_run(ApifyRun(id="run-1", actor_id="a", status="FAILED"))
        assert run.status == "FAILED"
        session.get.assert_not_called()

    def test_deadline_aborts_run(self, client, session):
        session.get.return_value = _response(200, _run_payload("RUNNING"))
        session.post.return_value = _response(200, _run_payload("ABORTING"))
        clock = itertools.chain([0.0, 0.0, 30.0], itertools.repeat(700.0))

        with patch("review_scrapers.apify_client.time.monotonic", side_effect=clock):
            with pytest.raises(ApifyTimeoutError):
                client.wait_for_run(ApifyRun(id="run-1", actor_id="a", status="READY"))

        assert session.get.call_count == 2
        assert session.post.call_args[0][0].endswith("/actor-runs/run-1/abort")

    def test_abort_failure_is_logged_not_raised(self, client, session):
        session.post.side_effect = requests.exceptions.Timeout("slow")
        client.abort_run("run-1")


# =============================================================================
# GET retries
# =============================================================================

class TestGetRetries:
    def test_retries_server_errors(self, client, session):
        session.get.side_effect = [
            _response(503, text="busy"),
            _response(200, [{"text": "ok"}]),
        ]
        with patch("review_scrapers.apify_client.time.sleep") as sleep:
            items = client.list_dataset_items("ds-1")
        assert items == [{"text": "ok"}]
        sleep.assert_called_once()

    def test_gives_up_after_max_retries(self, client, session):
        session.get.side_effect = requests.exceptions.ConnectionError("down")
        with patch("review_scrapers.apify_client.time.sleep"):
            with pytest.raises(ApifyAPIError, match="failed after"):
                client.list_dataset_items("ds-1")
        assert session.get.call_count == MAX_RETRIES

    def test_client_error_not_retried(self, client, session):
        session.get.return_value = _response(404, text="not found")
        with pytest.raises(ApifyAPIError) as exc_info:
            client.list_dataset_items("ds-1")
        assert exc_info.value.status_code == 404
        assert session.get.call_count == 1

    def test_non_list_dataset(self, client, session):
        session.get.return_value = _response(200, {"error": "nope"})
        with pytest.raises(ApifyAPIError, match="Unexpected dataset payload"):
            client.list_dataset_items("ds-1")


# =============================================================================
# run_actor
# =============================================================================

class TestRunActor:
    """End-to-end composition with a mocked session."""

    def test_success(self, client, session):
        session.post.return_value = _response(201, _run_payload("READY"))
        session.get.side_effect = [
            _response(200, _run_payload("SUCCEEDED", dataset_id="ds-9")),
            _response(200, [{"text": "a"}, {"text": "b"}]),
        ]
        items = client.run_actor("a", {"x": 1})
        assert items == [{"text": "a"}, {"text": "b"}]
        assert session.get.call_args_list[1][0][0].endswith("/datasets/ds-9/items")
        assert session.post.call_count == 1

    @pytest.mark.parametrize("status", ["FAILED", "TIMED-OUT", "ABORTED"])
    def test_unsuccessful_terminal_status(self, client, session, status):
        session.post.return_value = _response(201, _run_payload(status))
        with pytest.raises(ApifyRunFailedError, match=status):
            client.run_actor("a", {})

    def test_no_dataset(self, client, session):
        session.post.return_value = _response(201, _run_payload("SUCCEEDED", dataset_id=None))
        with pytest.raises(ApifyNoDatasetError):
            client.run_actor("a", {})

    def test_error_hierarchy(self):
        assert issubclass(ApifyRunFailedError, ApifyAPIError)
        assert issubclass(ApifyTimeoutError, ApifyAPIError)
        assert issubclass(ApifyNoDatasetError, ApifyAPIError)
