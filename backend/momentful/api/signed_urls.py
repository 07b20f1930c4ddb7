from __future__ import annotations
"""Signed URL endpoints for private storage objects."""

import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends

from momentful.api.deps import get_current_user_id
from momentful.config import get_settings
from momentful.errors import ApiError, SignedUrlNotFound, StorageError
from momentful.schemas.signed_urls import SignedUrlRequest, SignedUrlResponse
from momentful.services.storage import ALLOWED_BUCKETS, create_signed_url, handle_storage_error
from momentful.services.validation import validate_storage_path

logger = logging.getLogger(__name__)

router = APIRouter()


def _check_request(req: SignedUrlRequest, max_expiry: int, default_expiry: int) -> int:
    if req.bucket not in ALLOWED_BUCKETS:
        raise ApiError(400, f"Invalid bucket: {req.bucket}")
    if not req.path:
        raise ApiError(400, "Path is required")
    expires_in = default_expiry if req.expiresIn is None else req.expiresIn
    if expires_in <= 0 or expires_in > max_expiry:
        raise ApiError(400, f"Invalid expiry time. Must be between 1 and {max_expiry} seconds")
    return expires_in


async def _sign(bucket: str, path: str, expires_in: int) -> SignedUrlResponse:
    try:
        url = await create_signed_url(bucket, path, expires_in)
    except SignedUrlNotFound:
        logger.warning("No signed URL returned for %s/%s", bucket, path)
        raise ApiError(404, "File not found or access denied")
    except StorageError as e:
        result = handle_storage_error(e, "create signed URL")
        raise ApiError(500, result.error, retryable=result.retryable)

    expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    return SignedUrlResponse(
        signedUrl=url,
        expiresAt=expires_at.isoformat(),
        expiresIn=expires_in,
    )


@router.post("", response_model=SignedUrlResponse)
async def create_user_signed_url(
    req: SignedUrlRequest,
    user_id: str = Depends(get_current_user_id),
):
    """Sign a path owned by the authenticated caller."""
    settings = get_settings()
    expires_in = _check_request(req, settings.SIGNED_URL_MAX_EXPIRY, settings.SIGNED_URL_EXPIRY)

    ownership = validate_storage_path(user_id, req.path)
    if not ownership.valid:
        logger.warning("User %s denied signed URL for %s: %s", user_id, req.path, ownership.error)
        raise ApiError(403, ownership.error)

    return await _sign(req.bucket, req.path, expires_in)


@router.post("/external", response_model=SignedUrlResponse)
async def create_external_signed_url(req: SignedUrlRequest):
    """Short-lived URL for handing an object to an external provider."""
    settings = get_settings()
    expires_in = _check_request(
        req,
        settings.EXTERNAL_SIGNED_URL_MAX_EXPIRY,
        settings.EXTERNAL_SIGNED_URL_EXPIRY,
    )
    return await _sign(req.bucket, req.path, expires_in)
