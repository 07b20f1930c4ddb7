from __future__ import annotations
"""Pydantic v2 schemas for Replicate predictions."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr, field_validator

FluxAspectRatio = Literal[
    "match_input_image",
    "1:1", "16:9", "9:16", "4:3", "3:4", "3:2", "2:3",
    "4:5", "5:4", "21:9", "9:21", "2:1", "1:2",
]


def is_url_or_storage_path(value: str) -> bool:
    """Absolute http(s) URL, or a bucket key that will be signed before use."""
    if value.startswith(("http://", "https://")):
        return len(value.split("://", 1)[1]) > 0
    return value.count("/") >= 2 and "://" not in value


class FluxKontextProInput(BaseModel):
    """Input for black-forest-labs/flux-kontext-pro.

    Unknown keys are passed through to the model untouched.
    """

    model_config = ConfigDict(extra="allow")

    prompt: StrictStr
    input_image: StrictStr | None = None
    aspect_ratio: FluxAspectRatio | None = None
    seed: StrictInt | None = None
    output_format: Literal["jpg", "png"] | None = None
    safety_tolerance: StrictInt | None = Field(None, ge=0, le=6)
    prompt_upsampling: StrictBool | None = None

    @field_validator("prompt")
    @classmethod
    def _prompt_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Prompt is required")
        return v

    @field_validator("input_image")
    @classmethod
    def _input_image_url(cls, v: str | None) -> str | None:
        if v is not None and not is_url_or_storage_path(v):
            raise ValueError("Invalid url")
        return v
