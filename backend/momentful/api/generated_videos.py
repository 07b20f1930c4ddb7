from __future__ import annotations
"""Generated video CRUD API endpoints."""

import logging

from fastapi import APIRouter, Query, Response

from momentful.errors import ApiError
from momentful.schemas.generated_video import GeneratedVideoCreate, GeneratedVideoUpdate
from momentful.services import records

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_generated_videos(project_id: str = Query(..., alias="projectId")):
    """List a project's generated videos (newest first)."""
    return await records.list_generated_videos(project_id)


@router.post("", status_code=201)
async def create_generated_video(data: GeneratedVideoCreate):
    values = data.model_dump(exclude_none=True)
    values.setdefault("status", records.VIDEO_PROCESSING)
    return await records.create_generated_video(values)


@router.get("/{video_id}")
async def get_generated_video(video_id: str):
    try:
        return await records.get_generated_video(video_id)
    except records.RecordNotFound:
        raise ApiError(404, "Generated video not found")


@router.patch("/{video_id}")
async def update_generated_video(video_id: str, data: GeneratedVideoUpdate):
    """Update only the fields present in the request body."""
    values = data.model_dump(exclude_unset=True)
    if not values:
        raise ApiError(400, "No fields to update")
    try:
        return await records.update_generated_video(video_id, values)
    except records.RecordNotFound:
        raise ApiError(404, "Generated video not found")


@router.delete("/{video_id}", status_code=204)
async def delete_generated_video(video_id: str):
    await records.delete_generated_video(video_id)
    logger.info("Deleted generated video %s", video_id)
    return Response(status_code=204)
