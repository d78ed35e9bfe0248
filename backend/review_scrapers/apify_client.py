"""
Apify API Client - Actor runs for review extraction

Apify API Documentation: https://docs.apify.com/api/v2

Authentication:
- API token via APIFY_TOKEN env var, sent as a Bearer token

Endpoints:
- Start run:     POST /v2/acts/{actorId}/runs?timeout={secs}
- Run status:    GET  /v2/actor-runs/{runId}?waitForFinish={secs<=60}
- Dataset items: GET  /v2/datasets/{datasetId}/items?format=json&clean=true
- Abort run:     POST /v2/actor-runs/{runId}/abort

One job execution starts exactly one actor run. Only the idempotent GET
calls (status polling, dataset reads) are retried with backoff; starting
a run is never retried, so a transport error there never spawns a second
remote run.

Usage:
    from review_scrapers.apify_client import ApifyClient

    client = ApifyClient()
    items = client.run_actor("Xb8osYTtOjlsgI6k9", {"placeIds": [...], "maxReviews": 100})
"""

import os
import time
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

DEFAULT_BASE_URL = "https://api.apify.com"

# Retry configuration (GET requests only)
MAX_RETRIES = 3
INITIAL_BACKOFF_SECONDS = 1.0
BACKOFF_MULTIPLIER = 2.0

# Apify caps waitForFinish at 60 seconds per request
MAX_WAIT_FOR_FINISH_SECONDS = 60
DEFAULT_RUN_TIMEOUT_SECONDS = 600

RUN_STATUS_SUCCEEDED = "SUCCEEDED"
TERMINAL_RUN_STATUSES = frozenset({"SUCCEEDED", "FAILED", "TIMED-OUT", "ABORTED"})


@dataclass
class ApifyRun:
    """Snapshot of an actor run as reported by Apify."""
    id: str
    actor_id: str
    status: str
    default_dataset_id: Optional[str] = None
    status_message: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_RUN_STATUSES

    @property
    def succeeded(self) -> bool:
        return self.status == RUN_STATUS_SUCCEEDED

    @classmethod
    def from_response(cls, actor_id: str, payload: Dict[str, Any]) -> "ApifyRun":
        data = payload.get("data", payload) if isinstance(payload, dict) else {}
        return cls(
            id=data.get("id", ""),
            actor_id=actor_id,
            status=data.get("status", "UNKNOWN"),
            default_dataset_id=data.get("defaultDatasetId"),
            status_message=data.get("statusMessage"),
            raw=data,
        )


class ApifyAPIError(Exception):
    """Base exception for Apify API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ApifyRunFailedError(ApifyAPIError):
    """Actor run finished in a non-successful terminal status."""
    pass


class ApifyTimeoutError(ApifyAPIError):
    """Actor run did not finish before the client deadline."""
    pass


class ApifyNoDatasetError(ApifyAPIError):
    """Actor run finished without producing a dataset."""
    pass


def _actor_path_id(actor_id: str) -> str:
    """Apify addresses 'username/actor-name' ids as 'username~actor-name'."""
    return actor_id.replace("/", "~")


class ApifyClient:
    """
    Apify REST API client for running review extraction actors.

    Features:
    - Single run start per call (never retried)
    - Deadline-bounded polling with remote abort on timeout
    - Retry with exponential backoff for status and dataset reads

    Example:
        client = ApifyClient(run_timeout_secs=300)
        items = client.run_actor(actor_id, actor_input)
        print(f"{len(items)} items")
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        run_timeout_secs: int = DEFAULT_RUN_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Apify API client.

        Args:
            token: Apify API token. Defaults to APIFY_TOKEN env var.
            base_url: API base URL. Defaults to APIFY_BASE_URL or https://api.apify.com
            run_timeout_secs: Deadline for a single actor run
            session: Optional pre-configured requests session
        """
        self.token = token or os.environ.get("APIFY_TOKEN")
        if not self.token:
            raise ApifyAPIError(
                "APIFY_TOKEN not found. Set APIFY_TOKEN environment variable "
                "or pass token to constructor."
            )
        self.base_url = (base_url or os.environ.get("APIFY_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.run_timeout_secs = run_timeout_secs

        self._session = session or requests.Session()
        self._session.headers.update({
            "Authorization": f"Bearer {self.token}",
            "User-Agent": "ReviewScrapers/1.0 (review orchestration)",
        })

        logger.info("Apify API client initialized")

    # =========================================================================
    # HTTP helpers
    # =========================================================================

    def _url(self, path: str) -> str:
        return f"{self.base_url}/v2/{path.lstrip('/')}"

    def _check_response(self, response: requests.Response, action: str) -> None:
        if response.status_code == 401:
            raise ApifyAPIError("Invalid Apify token - check APIFY_TOKEN", status_code=401)
        if response.status_code >= 400:
            detail = response.text[:300] if response.text else ""
            raise ApifyAPIError(
                f"Apify {action} failed with HTTP {response.status_code}: {detail}",
                status_code=response.status_code,
            )

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None, timeout: float = 90) -> Any:
        """GET with retry on transport errors and 5xx responses."""
        for attempt in range(MAX_RETRIES):
            try:
                response = self._session.get(self._url(path), params=params, timeout=timeout)
                if response.status_code >= 500 and attempt < MAX_RETRIES - 1:
                    raise requests.exceptions.HTTPError(f"HTTP {response.status_code}")
                self._check_response(response, f"GET {path}")
                return response.json()
            except requests.exceptions.RequestException as e:
                backoff = INITIAL_BACKOFF_SECONDS * (BACKOFF_MULTIPLIER ** attempt)
                logger.warning(
                    f"GET {path} attempt {attempt + 1}/{MAX_RETRIES} failed: {e}. "
                    f"Retrying in {backoff:.1f}s"
                )
                if attempt < MAX_RETRIES - 1:
                    time.sleep(backoff)
                else:
                    raise ApifyAPIError(f"GET {path} failed after {MAX_RETRIES} attempts: {e}")

    # =========================================================================
    # Runs
    # =========================================================================

    def start_run(self, actor_id: str, run_input: Dict[str, Any]) -> ApifyRun:
        """
        Start an actor run without waiting for it.

        Raises:
            ApifyAPIError: On transport errors or non-2xx responses.
        """
        path = f"acts/{_actor_path_id(actor_id)}/runs"
        try:
            response = self._session.post(
                self._url(path),
                params={"timeout": self.run_timeout_secs},
                json=run_input,
                timeout=60,
            )
        except requests.exceptions.RequestException as e:
            raise ApifyAPIError(f"Failed to start actor {actor_id}: {e}")

        self._check_response(response, f"start of actor {actor_id}")
        run = ApifyRun.from_response(actor_id, response.json())
        logger.info(f"Started Apify run {run.id} for actor {actor_id}")
        return run

    def get_run(self, actor_id: str, run_id: str, wait_secs: int = 0) -> ApifyRun:
        """Fetch run status, optionally blocking server-side up to wait_secs."""
        params = {"waitForFinish": wait_secs} if wait_secs else None
        payload = self._get_json(f"actor-runs/{run_id}", params=params, timeout=wait_secs + 30)
        return ApifyRun.from_response(actor_id, payload)

    def abort_run(self, run_id: str) -> None:
        """Abort a run. Best-effort: failures are logged, not raised."""
        try:
            response = self._session.post(self._url(f"actor-runs/{run_id}/abort"), timeout=30)
            self._check_response(response, f"abort of run {run_id}")
            logger.info(f"Aborted Apify run {run_id}")
        except (requests.exceptions.RequestException, ApifyAPIError) as e:
            logger.warning(f"Failed to abort Apify run {run_id}: {e}")

    def wait_for_run(self, run: ApifyRun, timeout_secs: Optional[int] = None) -> ApifyRun:
        """
        Poll a run until it reaches a terminal status.

        Args:
            run: Run returned by start_run
            timeout_secs: Client-side deadline. Defaults to run_timeout_secs.

        Raises:
            ApifyTimeoutError: Deadline passed; the remote run is aborted first.
        """
        timeout_secs = timeout_secs or self.run_timeout_secs
        deadline = time.monotonic() + timeout_secs

        while not run.is_terminal:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self.abort_run(run.id)
                raise ApifyTimeoutError(
                    f"Apify run {run.id} did not finish within {timeout_secs}s"
                )
            wait = int(min(MAX_WAIT_FOR_FINISH_SECONDS, max(1, remaining)))
            run = self.get_run(run.actor_id, run.id, wait_secs=wait)
            logger.debug(f"Apify run {run.id} status={run.status}")

        return run

    # =========================================================================
    # Datasets
    # =========================================================================

    def list_dataset_items(self, dataset_id: str) -> List[Dict[str, Any]]:
        """
        Read all items of a dataset.

        Raises:
            ApifyAPIError: If the dataset cannot be read or is not a list.
        """
        items = self._get_json(
            f"datasets/{dataset_id}/items",
            params={"format": "json", "clean": "true"},
        )
        if not isinstance(items, list):
            raise ApifyAPIError(f"Unexpected dataset payload for {dataset_id}: {type(items).__name__}")
        return items

    # =========================================================================
    # Composite
    # =========================================================================

    def run_actor(self, actor_id: str, run_input: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Run an actor to completion and return its dataset items.

        Returns:
            List of raw records (may be empty).

        Raises:
            ApifyRunFailedError: Run ended FAILED / TIMED-OUT / ABORTED.
            ApifyTimeoutError: Client deadline passed.
            ApifyNoDatasetError: Run succeeded but produced no dataset.
            ApifyAPIError: Transport or HTTP errors.
        """
        start_time = time.time()
        run = self.wait_for_run(self.start_run(actor_id, run_input))

        if not run.succeeded:
            message = f"Apify run {run.id} ended with status {run.status}"
            if run.status_message:
                message += f": {run.status_message}"
            raise ApifyRunFailedError(message)

        if not run.default_dataset_id:
            raise ApifyNoDatasetError(f"Apify run {run.id} produced no dataset")

        items = self.list_dataset_items(run.default_dataset_id)
        duration = time.time() - start_time
        logger.info(
            f"Apify run {run.id}: {len(items)} items from dataset "
            f"{run.default_dataset_id} in {duration:.2f}s"
        )
        return items
