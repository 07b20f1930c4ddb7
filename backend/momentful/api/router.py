from __future__ import annotations
"""Master API router, mounts all sub-routers."""

from fastapi import APIRouter

from momentful.api.generated_videos import router as generated_videos_router
from momentful.api.generation_limits import router as generation_limits_router
from momentful.api.replicate import router as replicate_router
from momentful.api.runway import router as runway_router
from momentful.api.signed_urls import router as signed_urls_router

api_router = APIRouter(prefix="/api", redirect_slashes=False)

api_router.include_router(replicate_router, prefix="/replicate", tags=["Replicate"])
api_router.include_router(runway_router, prefix="/runway", tags=["Runway"])
api_router.include_router(signed_urls_router, prefix="/signed-urls", tags=["Signed URLs"])
api_router.include_router(generated_videos_router, prefix="/generated-videos", tags=["Generated Videos"])
api_router.include_router(generation_limits_router, prefix="/generation-limits", tags=["Generation Limits"])
