from __future__ import annotations
"""Pydantic v2 schemas for Runway jobs."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from pydantic.alias_generators import to_camel

from momentful.schemas.replicate import is_url_or_storage_path
from momentful.services.providers.models import SUPPORTED_IMAGE_RATIOS


class VideoSourceRef(BaseModel):
    type: str
    id: str


class CreateJobRequest(BaseModel):
    """Body of POST /api/runway/jobs (camelCase on the wire).

    The user/project/name fields are optional metadata used to create the
    generated_videos record for video jobs.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    mode: Literal["image-to-video", "image-generation"]
    prompt_text: str | None = None
    prompt_image: str | None = None
    model: str | None = None
    ratio: str | None = None

    user_id: str | None = None
    project_id: str | None = None
    name: str | None = None
    ai_model: str | None = None
    aspect_ratio: str | None = None
    camera_movement: str | None = None
    lineage_id: str | None = None
    source_ids: list[VideoSourceRef] | None = None

    @field_validator("prompt_image")
    @classmethod
    def _prompt_image_url(cls, v: str | None) -> str | None:
        if v is not None and not is_url_or_storage_path(v):
            raise ValueError("Invalid url")
        return v

    @field_validator("ratio")
    @classmethod
    def _supported_ratio(cls, v: str | None) -> str | None:
        if v is not None and v not in SUPPORTED_IMAGE_RATIOS:
            raise ValueError(f"Unsupported ratio: {v}")
        return v

    @model_validator(mode="after")
    def _image_generation_fields(self) -> "CreateJobRequest":
        if self.mode == "image-generation" and not (
            self.prompt_text and self.prompt_image and self.ratio
        ):
            raise ValueError(
                "promptText, promptImage, and ratio are required for image-generation mode"
            )
        return self

    @property
    def wants_video_record(self) -> bool:
        return bool(
            self.user_id and self.project_id and self.name
            and self.ai_model and self.aspect_ratio
        )


class JobCreatedResponse(BaseModel):
    taskId: str
    status: str = "processing"

