from __future__ import annotations
"""Table access for generated videos, their sources and edited images.

Thin wrappers over the Supabase query builder. Each coroutine runs the
synchronous client in a worker thread.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any

from momentful.database import get_supabase

logger = logging.getLogger(__name__)

GENERATED_VIDEOS = "generated_videos"
VIDEO_SOURCES = "video_sources"
EDITED_IMAGES = "edited_images"

VIDEO_PROCESSING = "processing"
VIDEO_COMPLETED = "completed"
VIDEO_FAILED = "failed"


class RecordNotFound(LookupError):
    pass


def _first(data: list[dict[str, Any]] | None) -> dict[str, Any] | None:
    return data[0] if data else None


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# generated_videos
# ---------------------------------------------------------------------------

async def list_generated_videos(project_id: str) -> list[dict[str, Any]]:
    def _query() -> list[dict[str, Any]]:
        result = (
            get_supabase().table(GENERATED_VIDEOS)
            .select("*")
            .eq("project_id", project_id)
            .order("created_at", desc=True)
            .execute()
        )
        return result.data or []

    return await asyncio.to_thread(_query)


async def get_generated_video(video_id: str) -> dict[str, Any]:
    def _query() -> dict[str, Any] | None:
        result = get_supabase().table(GENERATED_VIDEOS).select("*").eq("id", video_id).limit(1).execute()
        return _first(result.data)

    row = await asyncio.to_thread(_query)
    if row is None:
        raise RecordNotFound(f"Generated video {video_id} not found")
    return row


async def create_generated_video(values: dict[str, Any]) -> dict[str, Any]:
    def _insert() -> dict[str, Any] | None:
        return _first(get_supabase().table(GENERATED_VIDEOS).insert(values).execute().data)

    row = await asyncio.to_thread(_insert)
    if row is None:
        raise RuntimeError("Insert into generated_videos returned no row")
    return row


async def update_generated_video(video_id: str, values: dict[str, Any]) -> dict[str, Any]:
    def _update() -> dict[str, Any] | None:
        result = get_supabase().table(GENERATED_VIDEOS).update(values).eq("id", video_id).execute()
        return _first(result.data)

    row = await asyncio.to_thread(_update)
    if row is None:
        raise RecordNotFound(f"Generated video {video_id} not found")
    return row


async def delete_generated_video(video_id: str) -> None:
    def _delete() -> None:
        get_supabase().table(GENERATED_VIDEOS).delete().eq("id", video_id).execute()

    await asyncio.to_thread(_delete)


async def find_processing_video(task_id: str) -> dict[str, Any] | None:
    """The still-processing video row created for a Runway task, if any."""
    def _query() -> dict[str, Any] | None:
        result = (
            get_supabase().table(GENERATED_VIDEOS)
            .select("*")
            .eq("runway_task_id", task_id)
            .eq("status", VIDEO_PROCESSING)
            .limit(1)
            .execute()
        )
        return _first(result.data)

    return await asyncio.to_thread(_query)


async def add_video_sources(video_id: str, sources: list[dict[str, str]]) -> None:
    """Record which media the video was generated from, in order."""
    if not sources:
        return
    rows = [
        {
            "video_id": video_id,
            "source_type": source["type"],
            "source_id": source["id"],
            "sort_order": index,
        }
        for index, source in enumerate(sources)
    ]

    def _insert() -> None:
        get_supabase().table(VIDEO_SOURCES).insert(rows).execute()

    await asyncio.to_thread(_insert)


# ---------------------------------------------------------------------------
# edited_images
# ---------------------------------------------------------------------------

async def create_edited_image(values: dict[str, Any]) -> dict[str, Any] | None:
    def _insert() -> dict[str, Any] | None:
        return _first(get_supabase().table(EDITED_IMAGES).insert(values).execute().data)

    return await asyncio.to_thread(_insert)
