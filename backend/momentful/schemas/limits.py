from __future__ import annotations
"""Pydantic v2 schemas for generation limits."""

from pydantic import BaseModel


class GenerationLimitsResponse(BaseModel):
    imagesRemaining: int
    videosRemaining: int
    imagesLimit: int
    videosLimit: int
