from __future__ import annotations
"""Pydantic v2 schemas for generated_videos rows."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

VideoStatus = Literal["processing", "completed", "failed"]


class GeneratedVideoCreate(BaseModel):
    """Schema for inserting a generated video record."""

    model_config = ConfigDict(extra="ignore")

    project_id: str
    user_id: str
    name: str | None = None
    ai_model: str | None = None
    aspect_ratio: str | None = None
    camera_movement: str | None = None
    runway_task_id: str | None = None
    storage_path: str | None = None
    thumbnail_url: str | None = None
    status: VideoStatus | None = None
    lineage_id: str | None = None
    duration: float | None = None

    @field_validator("project_id", "user_id")
    @classmethod
    def _not_blank(cls, v: str, info) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name} is required and cannot be empty")
        return v


class GeneratedVideoUpdate(BaseModel):
    """Schema for patching a generated video; only set fields are written."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    ai_model: str | None = None
    aspect_ratio: str | None = None
    camera_movement: str | None = None
    storage_path: str | None = None
    thumbnail_url: str | None = None
    status: VideoStatus | None = None
    lineage_id: str | None = None
    duration: float | None = None
    completed_at: str | None = None
