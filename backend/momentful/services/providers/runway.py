"""Runway generation provider.

Supports:
- image-to-video and text-to-video (default model veo3.1_fast, 1280:720, 4s)
- text-to-image with a source reference image (gen4_image family)

Tasks are retrieved from GET /tasks/{id}; statuses are PENDING, THROTTLED,
RUNNING, SUCCEEDED, FAILED and CANCELLED.
"""

from __future__ import annotations

import logging
from typing import Any, Literal

import httpx

from momentful.config import get_settings
from momentful.errors import ConfigurationError, ProviderHTTPError
from momentful.services.poller import JobState, JobStatus, ProgressCallback, poll_job
from momentful.services.providers.models import (
    DEFAULT_IMAGE_MODEL,
    DEFAULT_IMAGE_RATIO,
    DEFAULT_VIDEO_DURATION,
    DEFAULT_VIDEO_MODEL,
    DEFAULT_VIDEO_RATIO,
    SUPPORTED_IMAGE_MODELS,
    SUPPORTED_IMAGE_RATIOS,
)

logger = logging.getLogger(__name__)

Mode = Literal["image-to-video", "text-to-video", "image-generation"]

DEFAULT_MAX_ATTEMPTS = 60
DEFAULT_INTERVAL = 2.0

_STATE_MAP = {
    "PENDING": JobState.PENDING,
    "THROTTLED": JobState.PENDING,
    "RUNNING": JobState.PROCESSING,
    "SUCCEEDED": JobState.SUCCEEDED,
    "FAILED": JobState.FAILED,
    "CANCELLED": JobState.CANCELED,
    "CANCELED": JobState.CANCELED,
}

_client: httpx.AsyncClient | None = None


def get_client() -> httpx.AsyncClient:
    """Lazy-init the module-level Runway HTTP client."""
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.RUNWAY_API_KEY:
            raise ConfigurationError(
                "RUNWAY_API_KEY not configured. Please set your Runway API key."
            )
        _client = httpx.AsyncClient(
            base_url=settings.RUNWAY_API_BASE,
            headers={
                "Authorization": f"Bearer {settings.RUNWAY_API_KEY}",
                "X-Runway-Version": settings.RUNWAY_API_VERSION,
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


async def _post(client: httpx.AsyncClient, path: str, body: dict[str, Any]) -> dict[str, Any]:
    resp = await client.post(path, json=body)
    if resp.is_error:
        raise ProviderHTTPError(resp.status_code, resp.reason_phrase, resp.text)
    return resp.json()


async def create_video_task(
    *,
    mode: Mode,
    prompt_text: str | None = None,
    prompt_image: str | None = None,
    model: str | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Create an image-to-video or text-to-video task.

    ``model`` is accepted for parity with the image endpoint; video tasks
    always run on the default video model.
    """
    client = http_client or get_client()

    if mode == "image-to-video":
        if not prompt_image:
            raise ValueError("promptImage required")
        body: dict[str, Any] = {
            "model": DEFAULT_VIDEO_MODEL,
            "promptImage": prompt_image,
            "ratio": DEFAULT_VIDEO_RATIO,
            "duration": DEFAULT_VIDEO_DURATION,
        }
        if prompt_text:
            body["promptText"] = prompt_text
        task = await _post(client, "/image_to_video", body)
    elif mode == "text-to-video":
        if not prompt_text:
            raise ValueError("promptText required")
        task = await _post(client, "/text_to_video", {
            "model": DEFAULT_VIDEO_MODEL,
            "promptText": prompt_text,
            "ratio": DEFAULT_VIDEO_RATIO,
            "duration": DEFAULT_VIDEO_DURATION,
        })
    else:
        raise ValueError(f"Unsupported mode: {mode}")

    logger.info("Runway %s task created: %s (requested model=%s)", mode, task.get("id"), model)
    return task


async def create_image_task(
    *,
    prompt_image: str,
    prompt_text: str,
    model: str | None = None,
    ratio: str | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Create a text-to-image task referencing ``prompt_image`` as the source.

    Unsupported models or ratios fall back to the defaults.
    """
    if not prompt_image:
        raise ValueError("promptImage required")
    if not prompt_text:
        raise ValueError("promptText required")

    client = http_client or get_client()
    model_name = model if model in SUPPORTED_IMAGE_MODELS else DEFAULT_IMAGE_MODEL
    ratio_value = ratio if ratio in SUPPORTED_IMAGE_RATIOS else DEFAULT_IMAGE_RATIO

    task = await _post(client, "/text_to_image", {
        "model": model_name,
        "promptText": prompt_text,
        "ratio": ratio_value,
        "referenceImages": [{"uri": prompt_image, "tag": "source"}],
    })
    logger.info("Runway image task created: %s (model=%s)", task.get("id"), model_name)
    return task


async def get_task(
    task_id: str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    client = http_client or get_client()
    resp = await client.get(f"/tasks/{task_id}")
    if resp.is_error:
        raise ProviderHTTPError(resp.status_code, resp.reason_phrase, resp.text)
    return resp.json()


def to_job_status(payload: dict[str, Any]) -> JobStatus:
    raw = str(payload.get("status") or "")
    progress = payload.get("progress")
    return JobStatus(
        job_id=str(payload.get("id") or ""),
        state=_STATE_MAP.get(raw.upper(), JobState.PROCESSING),
        raw_status=raw,
        progress=progress if isinstance(progress, (int, float)) else None,
        output=payload.get("output"),
        error=payload.get("failure") or None,
        payload=payload,
    )


async def wait_for_task(
    task_id: str,
    *,
    on_progress: ProgressCallback | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    interval: float = DEFAULT_INTERVAL,
    http_client: httpx.AsyncClient | None = None,
) -> JobStatus:
    """Poll a Runway task until it succeeds; raises on failure/cancel/timeout."""

    async def fetch(job_id: str) -> JobStatus:
        return to_job_status(await get_task(job_id, http_client=http_client))

    return await poll_job(
        task_id,
        fetch,
        on_progress=on_progress,
        max_attempts=max_attempts,
        interval=interval,
    )
