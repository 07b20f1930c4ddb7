from __future__ import annotations
"""Pydantic v2 schemas for signed URL endpoints."""

from pydantic import BaseModel


class SignedUrlRequest(BaseModel):
    bucket: str
    path: str
    expiresIn: int | None = None


class SignedUrlResponse(BaseModel):
    signedUrl: str
    expiresAt: str
    expiresIn: int
