from __future__ import annotations
"""Generation credit lookup."""

import logging

from fastapi import APIRouter, Query

from momentful.api.deps import debug_details
from momentful.errors import ApiError
from momentful.schemas.limits import GenerationLimitsResponse
from momentful.services.generation_limits import get_or_create_limits, to_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=GenerationLimitsResponse)
async def get_generation_limits(user_id: str = Query(..., alias="userId")):
    try:
        row = await get_or_create_limits(user_id)
    except Exception as e:
        logger.error("Failed to load generation limits for %s: %s", user_id, e)
        raise ApiError(500, "Failed to fetch generation limits", details=debug_details(e))
    return to_response(row)
