from __future__ import annotations
"""Runway job endpoints for image generation and image-to-video."""

import logging
from typing import Any

from fastapi import APIRouter, Body

from momentful.api.deps import normalize_provider_error
from momentful.errors import ApiError
from momentful.schemas.runway import CreateJobRequest, JobCreatedResponse
from momentful.services import generation_limits, records
from momentful.services.poller import JobState, extract_output_url
from momentful.services.providers import runway
from momentful.services.signed_urls import convert_storage_paths_to_signed_urls
from momentful.services.storage import GENERATED_VIDEOS_BUCKET, upload_from_external_url
from momentful.services.validation import parse_create_job

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

async def _create_video_record(job: CreateJobRequest, task_id: str) -> None:
    try:
        video = await records.create_generated_video({
            "project_id": job.project_id,
            "user_id": job.user_id,
            "name": job.name,
            "ai_model": job.ai_model,
            "aspect_ratio": job.aspect_ratio,
            "camera_movement": job.camera_movement,
            "runway_task_id": task_id,
            "status": records.VIDEO_PROCESSING,
            "lineage_id": job.lineage_id,
        })
    except Exception as e:
        logger.error("Failed to create generated video record for task %s: %s", task_id, e)
        return

    if job.source_ids:
        try:
            await records.add_video_sources(
                video["id"], [source.model_dump() for source in job.source_ids],
            )
        except Exception as e:
            logger.error("Failed to create video sources for %s: %s", video["id"], e)


@router.post("/jobs", response_model=JobCreatedResponse)
async def create_job(body: Any = Body(...)):
    """Create a Runway task and return its id for polling."""
    job, validation = parse_create_job(body)
    if job is None:
        raise ApiError(400, "Invalid request", details=validation.error)
    # Checked here so a rejected request never spends a video credit.
    if job.mode == "image-to-video" and not job.prompt_image:
        raise ApiError(400, "promptImage required")

    prompt_image = job.prompt_image
    if prompt_image:
        prompt_image = await convert_storage_paths_to_signed_urls(prompt_image)

    try:
        if job.mode == "image-generation":
            task = await runway.create_image_task(
                prompt_image=prompt_image,
                prompt_text=job.prompt_text,
                model=job.model,
                ratio=job.ratio,
            )
        else:
            if job.user_id:
                await generation_limits.consume_credit(job.user_id, "video")
            task = await runway.create_video_task(
                mode=job.mode,
                prompt_text=job.prompt_text,
                prompt_image=prompt_image,
                model=job.model,
            )
    except ApiError:
        raise
    except ValueError as e:
        raise ApiError(400, str(e))
    except Exception as e:
        logger.error("Runway job creation failed: %s", e)
        raise normalize_provider_error(e, "Failed to create job")

    task_id = task["id"]
    if job.mode != "image-generation" and job.wants_video_record:
        await _create_video_record(job, task_id)

    return JobCreatedResponse(taskId=task_id)


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

async def _complete_video(task_id: str, output_url: str | None) -> dict[str, Any]:
    """Store a finished video and mark its record completed."""
    try:
        video = await records.find_processing_video(task_id)
    except Exception as e:
        logger.error("Failed to look up video record for task %s: %s", task_id, e)
        return {}
    if video is None or not output_url:
        return {}

    try:
        upload = await upload_from_external_url(
            GENERATED_VIDEOS_BUCKET,
            output_url,
            video["user_id"],
            video["project_id"],
            "video",
        )
        await records.update_generated_video(video["id"], {
            "storage_path": upload.storage_path,
            "status": records.VIDEO_COMPLETED,
            "completed_at": records.utcnow_iso(),
        })
    except Exception as e:
        logger.error("Failed to store video for task %s: %s", task_id, e)
        try:
            await records.update_generated_video(video["id"], {"status": records.VIDEO_FAILED})
        except Exception as update_error:
            logger.error("Failed to mark video %s failed: %s", video["id"], update_error)
        return {"uploadError": str(e)}

    return {
        "storagePath": upload.storage_path,
        "thumbnailPath": None,
        "videoId": video["id"],
    }


async def _fail_video(task_id: str) -> None:
    try:
        video = await records.find_processing_video(task_id)
        if video is not None:
            await records.update_generated_video(video["id"], {"status": records.VIDEO_FAILED})
    except Exception as e:
        logger.error("Failed to mark video for task %s failed: %s", task_id, e)


@router.get("/jobs/{task_id}")
async def get_job(task_id: str):
    """Current task status; finalizes the video record on a terminal state."""
    try:
        task = await runway.get_task(task_id)
    except Exception as e:
        logger.error("Runway status error for %s: %s", task_id, e)
        raise normalize_provider_error(e, "Failed to get job status")

    status = runway.to_job_status(task)
    response: dict[str, Any] = {
        "id": task.get("id", task_id),
        "status": task.get("status"),
        "output": task.get("output"),
        "progress": task.get("progress"),
        "failure": task.get("failure"),
        "failureCode": task.get("failureCode"),
        "createdAt": task.get("createdAt"),
    }

    if status.state is JobState.SUCCEEDED:
        response.update(await _complete_video(task_id, extract_output_url(status.output)))
    elif status.state is JobState.FAILED:
        await _fail_video(task_id)

    return response
