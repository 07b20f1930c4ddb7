"""Pydantic v2 schemas package."""

from momentful.schemas.generated_video import GeneratedVideoCreate, GeneratedVideoUpdate
from momentful.schemas.limits import GenerationLimitsResponse
from momentful.schemas.replicate import FluxKontextProInput
from momentful.schemas.runway import CreateJobRequest, JobCreatedResponse, VideoSourceRef
from momentful.schemas.signed_urls import SignedUrlRequest, SignedUrlResponse

__all__ = [
    "GeneratedVideoCreate",
    "GeneratedVideoUpdate",
    "GenerationLimitsResponse",
    "FluxKontextProInput",
    "CreateJobRequest",
    "JobCreatedResponse",
    "VideoSourceRef",
    "SignedUrlRequest",
    "SignedUrlResponse",
]
