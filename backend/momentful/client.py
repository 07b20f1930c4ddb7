from __future__ import annotations
"""Async HTTP client for the Momentful API.

Wraps the API's endpoints and drives job polling with the same poller and
status mapping the server uses for the providers.

Usage::

    async with MomentfulClient("http://localhost:8000") as api:
        job = await api.create_runway_job({"mode": "image-to-video", ...})
        status = await api.wait_for_runway_job(job["taskId"])
"""

import json
import logging
import re
from typing import Any

import httpx
from pydantic import BaseModel

from momentful.services.poller import JobStatus, ProgressCallback, poll_job
from momentful.services.providers import replicate, runway
from momentful.services.providers.models import ReplicateModels

logger = logging.getLogger(__name__)

# Runway-style ratios → Flux Kontext aspect ratios
FLUX_RATIO_MAP = {
    "1280:720": "16:9",
    "720:1280": "9:16",
    "1024:1024": "1:1",
    "1920:1080": "16:9",
    "1080:1920": "9:16",
}

_NESTED_JSON_RE = re.compile(r"\{.*\}", re.DOTALL)

_VIDEO_STATUS_MAP = {"SUCCEEDED": "completed", "FAILED": "failed"}


class ApiClientError(RuntimeError):
    """Non-2xx response from the Momentful API."""

    def __init__(self, message: str, status_code: int, payload: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


def parse_runway_error(payload: Any) -> str | None:
    """Message from a Runway error body.

    Handles the nested form ``{"error": "400 {\\"error\\":\\"...\\"}"}`` as
    well as plain ``error`` and ``message`` fields.
    """
    if not isinstance(payload, dict):
        return None

    error = payload.get("error")
    if error:
        if isinstance(error, str) and '{"error":' in error:
            match = _NESTED_JSON_RE.search(error)
            if match:
                try:
                    nested = json.loads(match.group(0))
                except ValueError:
                    nested = None
                if isinstance(nested, dict) and nested.get("error"):
                    return str(nested["error"])
        if isinstance(error, str):
            return error

    if payload.get("message"):
        return str(payload["message"])
    return None


def _json_or_none(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None


class MomentfulClient:
    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        access_token: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else None
        self._own_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url, headers=headers, timeout=timeout,
        )

    async def aclose(self) -> None:
        if self._own_client:
            await self._client.aclose()

    async def __aenter__(self) -> "MomentfulClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        default_error: str,
        *,
        runway_errors: bool = False,
        **kwargs: Any,
    ) -> Any:
        resp = await self._client.request(method, path, **kwargs)
        if resp.is_success:
            return None if resp.status_code == 204 else resp.json()

        payload = _json_or_none(resp)
        fallback = f"HTTP {resp.status_code}: {resp.reason_phrase}"
        if runway_errors:
            message = parse_runway_error(payload) or fallback
        elif isinstance(payload, dict):
            message = payload.get("error") or payload.get("detail") or default_error
        else:
            message = default_error
        raise ApiClientError(str(message), resp.status_code, payload)

    # ------------------------------------------------------------------
    # Replicate
    # ------------------------------------------------------------------

    async def create_prediction(
        self,
        version: str,
        input: dict[str, Any],
        *,
        user_id: str | None = None,
        project_id: str | None = None,
        prompt: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"version": version, "input": input}
        for key, value in (("userId", user_id), ("projectId", project_id), ("prompt", prompt)):
            if value is not None:
                body[key] = value
        return await self._request(
            "POST", "/api/replicate/predictions", "Failed to create prediction", json=body,
        )

    async def get_prediction(self, prediction_id: str, **query: str) -> dict[str, Any]:
        """Prediction status; ``query`` carries userId/projectId/prompt/... metadata."""
        return await self._request(
            "GET",
            f"/api/replicate/predictions/{prediction_id}",
            "Failed to get prediction status",
            params={k: v for k, v in query.items() if v is not None} or None,
        )

    async def create_replicate_image_job(
        self,
        image_url: str,
        prompt: str,
        aspect_ratio: str | None = None,
    ) -> dict[str, Any]:
        """Image-to-image edit with Flux Kontext Pro."""
        model_input: dict[str, Any] = {"prompt": prompt, "input_image": image_url}
        if aspect_ratio and aspect_ratio in FLUX_RATIO_MAP:
            model_input["aspect_ratio"] = FLUX_RATIO_MAP[aspect_ratio]
        return await self.create_prediction(ReplicateModels.FLUX_PRO, model_input)

    async def wait_for_prediction(
        self,
        prediction_id: str,
        *,
        on_progress: ProgressCallback | None = None,
        max_attempts: int = replicate.DEFAULT_MAX_ATTEMPTS,
        interval: float = replicate.DEFAULT_INTERVAL,
        **query: str,
    ) -> JobStatus:
        async def fetch(job_id: str) -> JobStatus:
            try:
                payload = await self.get_prediction(job_id, **query)
            except ApiClientError as e:
                # The server reports a failed prediction as 500 {"detail": <error>}.
                if e.status_code == 500 and isinstance(e.payload, dict) and e.payload.get("detail"):
                    payload = {"id": job_id, "status": "failed", "error": str(e.payload["detail"])}
                else:
                    raise
            return replicate.to_job_status(payload)

        return await poll_job(
            prediction_id, fetch,
            on_progress=on_progress, max_attempts=max_attempts, interval=interval,
        )

    # ------------------------------------------------------------------
    # Runway
    # ------------------------------------------------------------------

    async def create_runway_job(self, job: BaseModel | dict[str, Any]) -> dict[str, Any]:
        if isinstance(job, BaseModel):
            body = job.model_dump(by_alias=True, exclude_none=True)
        else:
            body = {k: v for k, v in job.items() if v is not None}
        return await self._request(
            "POST", "/api/runway/jobs", "Failed to create job",
            runway_errors=True, json=body,
        )

    async def get_runway_job(self, task_id: str) -> dict[str, Any]:
        try:
            return await self._request(
                "GET", f"/api/runway/jobs/{task_id}", "Failed to get job status",
                runway_errors=True,
            )
        except ApiClientError as e:
            if e.status_code == 404:
                raise ApiClientError("Task not found", 404, e.payload) from e
            raise

    async def wait_for_runway_job(
        self,
        task_id: str,
        *,
        on_progress: ProgressCallback | None = None,
        max_attempts: int = runway.DEFAULT_MAX_ATTEMPTS,
        interval: float = runway.DEFAULT_INTERVAL,
    ) -> JobStatus:
        async def fetch(job_id: str) -> JobStatus:
            return runway.to_job_status(await self.get_runway_job(job_id))

        return await poll_job(
            task_id, fetch,
            on_progress=on_progress, max_attempts=max_attempts, interval=interval,
        )

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    async def list_generated_videos(self, project_id: str) -> list[dict[str, Any]]:
        return await self._request(
            "GET", "/api/generated-videos", "Failed to fetch project videos",
            params={"projectId": project_id},
        )

    async def update_generated_video(self, video_id: str, values: dict[str, Any]) -> dict[str, Any]:
        return await self._request(
            "PATCH", f"/api/generated-videos/{video_id}", "Failed to update video",
            json=values,
        )

    async def update_project_video_statuses(self, project_id: str) -> int:
        """Sync every Runway-backed video in a project with its task status.

        Fetching a task's status lets the server finalize finished videos;
        rows whose status still differs afterwards are patched here. A failure
        on one video is logged and does not stop the others. Returns the
        number of rows patched.
        """
        videos = [v for v in await self.list_generated_videos(project_id) if v.get("runway_task_id")]
        if not videos:
            logger.info("No videos with Runway task IDs found for project %s", project_id)
            return 0

        updated = 0
        for video in videos:
            try:
                job = await self.get_runway_job(video["runway_task_id"])
                if "videoId" in job or "uploadError" in job:
                    continue
                status = _VIDEO_STATUS_MAP.get(str(job.get("status")).upper(), "processing")
                if video.get("status") != status:
                    await self.update_generated_video(video["id"], {"status": status})
                    updated += 1
            except (ApiClientError, httpx.HTTPError) as e:
                logger.error("Failed to update status for video %s: %s", video.get("id"), e)
        return updated

    # ------------------------------------------------------------------
    # Storage & limits
    # ------------------------------------------------------------------

    async def create_signed_url(
        self,
        bucket: str,
        path: str,
        expires_in: int | None = None,
        *,
        external: bool = False,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"bucket": bucket, "path": path}
        if expires_in is not None:
            body["expiresIn"] = expires_in
        endpoint = "/api/signed-urls/external" if external else "/api/signed-urls"
        return await self._request("POST", endpoint, "Failed to create signed URL", json=body)

    async def get_generation_limits(self, user_id: str) -> dict[str, int]:
        return await self._request(
            "GET", "/api/generation-limits", "Failed to fetch generation limits",
            params={"userId": user_id},
        )
