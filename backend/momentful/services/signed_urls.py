from __future__ import annotations
"""Replace storage paths inside request payloads with signed URLs.

External providers cannot read private buckets, so any ``user/project/file``
style string in a payload is swapped for a short-lived signed URL before the
payload leaves the service.
"""

import logging
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from momentful.services.storage import USER_UPLOADS_BUCKET, generate_external_signed_url

logger = logging.getLogger(__name__)

# userId/projectId/filename → at least two separators
MIN_PATH_SEPARATORS = 2

Signer = Callable[[str, str, "int | None"], Awaitable[str]]


def is_storage_path(value: str) -> bool:
    """True for bucket-relative keys; absolute URLs are never storage paths."""
    if not value or value.startswith(("http://", "https://")):
        return False
    return value.count("/") >= MIN_PATH_SEPARATORS


async def convert_storage_paths_to_signed_urls(
    value: Any,
    *,
    bucket: str = USER_UPLOADS_BUCKET,
    expires_in: int | None = None,
    signer: Signer = generate_external_signed_url,
) -> Any:
    """Walk ``value`` depth-first and sign every storage-path string.

    Lists and dicts are rebuilt with the same shape; other values pass
    through. A path that fails to sign is kept as-is so one bad entry does not
    break the whole payload. Already-absolute URLs are skipped, so running
    this twice is a no-op on the second pass.
    """
    if isinstance(value, str):
        if not is_storage_path(value):
            return value
        try:
            return await signer(bucket, value, expires_in)
        except Exception as e:
            logger.error("Failed to convert storage path to signed URL: %s (%s)", value, e)
            return value

    if isinstance(value, BaseModel):
        value = value.model_dump(by_alias=True)

    if isinstance(value, (list, tuple)):
        return [
            await convert_storage_paths_to_signed_urls(
                item, bucket=bucket, expires_in=expires_in, signer=signer
            )
            for item in value
        ]

    if isinstance(value, dict):
        return {
            key: await convert_storage_paths_to_signed_urls(
                item, bucket=bucket, expires_in=expires_in, signer=signer
            )
            for key, item in value.items()
        }

    return value
