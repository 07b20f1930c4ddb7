from __future__ import annotations
"""Per-user image/video generation credits (user_generation_limits table)."""

import asyncio
import logging
from typing import Any, Literal

from momentful.database import get_supabase
from momentful.errors import ApiError

logger = logging.getLogger(__name__)

TABLE = "user_generation_limits"
DEFAULT_IMAGE_LIMIT = 10
DEFAULT_VIDEO_LIMIT = 5

CreditKind = Literal["image", "video"]

_LIMIT_MESSAGE = (
    "You've maxed out your {kind} credits :(\n"
    "Message the Momentful crew at hello@momentful.ai to unlock more."
)


class GenerationLimitReached(ApiError):
    def __init__(self, kind: CreditKind) -> None:
        super().__init__(
            403,
            f"{kind.capitalize()} generation limit reached",
            message=_LIMIT_MESSAGE.format(kind=kind),
        )
        self.kind = kind


def _fetch_or_create(user_id: str) -> dict[str, Any]:
    client = get_supabase()
    result = client.table(TABLE).select("*").eq("user_id", user_id).limit(1).execute()
    if result.data:
        return result.data[0]

    created = client.table(TABLE).insert({
        "user_id": user_id,
        "images_remaining": DEFAULT_IMAGE_LIMIT,
        "videos_remaining": DEFAULT_VIDEO_LIMIT,
        "images_limit": DEFAULT_IMAGE_LIMIT,
        "videos_limit": DEFAULT_VIDEO_LIMIT,
    }).execute()
    if not created.data:
        raise RuntimeError(f"Failed to create generation limits for user {user_id}")
    logger.info("Created default generation limits for user %s", user_id)
    return created.data[0]


async def get_or_create_limits(user_id: str) -> dict[str, Any]:
    """The user's limits row, inserting the defaults on first access."""
    return await asyncio.to_thread(_fetch_or_create, user_id)


def to_response(row: dict[str, Any]) -> dict[str, int]:
    return {
        "imagesRemaining": row["images_remaining"],
        "videosRemaining": row["videos_remaining"],
        "imagesLimit": row["images_limit"],
        "videosLimit": row["videos_limit"],
    }


async def consume_credit(user_id: str, kind: CreditKind) -> int | None:
    """Take one credit of ``kind`` before a generation starts.

    Returns the remaining count, or None when the limits table could not be
    read or updated; in that case the generation is allowed to proceed.

    Raises:
        GenerationLimitReached: no credits of ``kind`` are left.
    """
    column = "images_remaining" if kind == "image" else "videos_remaining"
    try:
        row = await get_or_create_limits(user_id)
    except Exception as e:
        logger.error("Error during %s generation limit check for %s: %s", kind, user_id, e)
        return None

    remaining = int(row.get(column) or 0)
    if remaining <= 0:
        raise GenerationLimitReached(kind)

    def _decrement() -> None:
        get_supabase().table(TABLE).update({column: remaining - 1}).eq("user_id", user_id).execute()

    try:
        await asyncio.to_thread(_decrement)
    except Exception as e:
        logger.error("Failed to decrement %s generation limit for %s: %s", kind, user_id, e)
    return remaining - 1
