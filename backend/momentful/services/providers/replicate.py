"""Replicate prediction provider.

Talks to the Replicate HTTP API directly:
  POST /predictions (or /models/{owner}/{name}/predictions) → create
  GET  /predictions/{id} → status, polled via services.poller

Prediction statuses: starting, processing, succeeded, failed, canceled, aborted.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from momentful.config import get_settings
from momentful.errors import ConfigurationError, ProviderHTTPError
from momentful.services.poller import JobState, JobStatus, ProgressCallback, poll_job

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 120  # ~4 minutes at the default interval
DEFAULT_INTERVAL = 2.0

_STATE_MAP = {
    "starting": JobState.PENDING,
    "processing": JobState.PROCESSING,
    "succeeded": JobState.SUCCEEDED,
    "failed": JobState.FAILED,
    "canceled": JobState.CANCELED,
    "aborted": JobState.CANCELED,
}

_client: httpx.AsyncClient | None = None


def get_client() -> httpx.AsyncClient:
    """Lazy-init the module-level Replicate HTTP client."""
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.REPLICATE_API_TOKEN:
            raise ConfigurationError("REPLICATE_API_TOKEN is not configured")
        _client = httpx.AsyncClient(
            base_url=settings.REPLICATE_API_BASE,
            headers={
                "Authorization": f"Bearer {settings.REPLICATE_API_TOKEN}",
                "Content-Type": "application/json",
            },
            timeout=settings.PROVIDER_TIMEOUT,
        )
    return _client


async def close_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


def _raise_for_status(resp: httpx.Response) -> None:
    if not resp.is_error:
        return
    title = detail = None
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        title = data.get("title")
        detail = data.get("detail")
    raise ProviderHTTPError(
        resp.status_code,
        resp.reason_phrase,
        resp.text,
        title=title,
        detail=detail,
    )


async def create_prediction(
    version: str,
    input: dict[str, Any],
    *,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Create a prediction.

    ``version`` is either a bare version hash, ``owner/name:hash`` or an
    official ``owner/name`` model (which has no pinned version).
    """
    client = http_client or get_client()

    if ":" in version:
        path, body = "/predictions", {"version": version.split(":", 1)[1], "input": input}
    elif "/" in version:
        path, body = f"/models/{version}/predictions", {"input": input}
    else:
        path, body = "/predictions", {"version": version, "input": input}

    resp = await client.post(path, json=body)
    _raise_for_status(resp)
    prediction = resp.json()
    logger.info("Replicate prediction created: %s (model=%s)", prediction.get("id"), version)
    return prediction


async def get_prediction(
    prediction_id: str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    client = http_client or get_client()
    resp = await client.get(f"/predictions/{prediction_id}")
    _raise_for_status(resp)
    return resp.json()


def to_job_status(payload: dict[str, Any]) -> JobStatus:
    raw = str(payload.get("status") or "")
    error = payload.get("error")
    return JobStatus(
        job_id=str(payload.get("id") or ""),
        state=_STATE_MAP.get(raw, JobState.PROCESSING),
        raw_status=raw,
        output=payload.get("output"),
        error=error if isinstance(error, str) and error else None,
        payload=payload,
    )


async def wait_for_prediction(
    prediction_id: str,
    *,
    on_progress: ProgressCallback | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    interval: float = DEFAULT_INTERVAL,
    http_client: httpx.AsyncClient | None = None,
) -> JobStatus:
    """Poll a prediction until it succeeds; raises on failure/cancel/timeout."""

    async def fetch(job_id: str) -> JobStatus:
        return to_job_status(await get_prediction(job_id, http_client=http_client))

    return await poll_job(
        prediction_id,
        fetch,
        on_progress=on_progress,
        max_attempts=max_attempts,
        interval=interval,
    )
