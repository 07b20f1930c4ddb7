from __future__ import annotations
"""Storage bucket management, signed URLs and provider-output uploads."""

import asyncio
import io
import logging
import mimetypes
import uuid
from dataclasses import dataclass, field
from typing import Any

import httpx
from PIL import Image, UnidentifiedImageError

from momentful.config import get_settings
from momentful.database import get_supabase
from momentful.errors import SignedUrlNotFound, StorageError

logger = logging.getLogger(__name__)

USER_UPLOADS_BUCKET = "user-uploads"
EDITED_IMAGES_BUCKET = "edited-images"
GENERATED_VIDEOS_BUCKET = "generated-videos"
THUMBNAILS_BUCKET = "thumbnails"

ALLOWED_BUCKETS: tuple[str, ...] = (
    USER_UPLOADS_BUCKET,
    EDITED_IMAGES_BUCKET,
    GENERATED_VIDEOS_BUCKET,
    THUMBNAILS_BUCKET,
)


@dataclass(frozen=True)
class BucketConfig:
    id: str
    public: bool = False
    file_size_limit: int | None = None
    allowed_mime_types: tuple[str, ...] = ()


REQUIRED_BUCKETS: tuple[BucketConfig, ...] = (
    BucketConfig(
        id=USER_UPLOADS_BUCKET,
        file_size_limit=100 * 1024 * 1024,
        allowed_mime_types=(
            "image/jpeg", "image/png", "image/webp", "image/gif",
            "video/mp4", "video/quicktime", "video/webm",
        ),
    ),
    BucketConfig(
        id=EDITED_IMAGES_BUCKET,
        file_size_limit=50 * 1024 * 1024,
        allowed_mime_types=("image/jpeg", "image/png", "image/webp"),
    ),
    BucketConfig(
        id=GENERATED_VIDEOS_BUCKET,
        file_size_limit=200 * 1024 * 1024,
        allowed_mime_types=("video/mp4", "video/webm"),
    ),
    BucketConfig(
        id=THUMBNAILS_BUCKET,
        file_size_limit=5 * 1024 * 1024,
        allowed_mime_types=("image/jpeg", "image/png", "image/webp"),
    ),
)


@dataclass
class BucketSetupResult:
    success: bool
    created: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


@dataclass
class StorageErrorResult:
    error: str
    retryable: bool
    success: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "error": self.error, "retryable": self.retryable}


@dataclass
class UploadResult:
    storage_path: str
    content_type: str
    width: int | None = None
    height: int | None = None


# ---------------------------------------------------------------------------
# Buckets
# ---------------------------------------------------------------------------

def _list_bucket_ids() -> set[str]:
    return {bucket.id for bucket in get_supabase().storage.list_buckets()}


def bucket_exists(bucket_id: str) -> bool:
    try:
        return bucket_id in _list_bucket_ids()
    except Exception as e:
        logger.error("Error checking bucket %s: %s", bucket_id, e)
        return False


def create_bucket(config: BucketConfig) -> tuple[bool, str | None]:
    """Create ``config.id`` unless it already exists. Returns (success, error)."""
    if bucket_exists(config.id):
        return True, None
    options: dict[str, Any] = {"public": config.public}
    if config.file_size_limit is not None:
        options["file_size_limit"] = config.file_size_limit
    if config.allowed_mime_types:
        options["allowed_mime_types"] = list(config.allowed_mime_types)
    try:
        get_supabase().storage.create_bucket(config.id, options=options)
    except Exception as e:
        logger.error("Error creating bucket %s: %s", config.id, e)
        return False, _error_fields(e)[0]
    logger.info("Created bucket: %s", config.id)
    return True, None


def get_missing_buckets() -> list[str]:
    try:
        existing = _list_bucket_ids()
    except Exception as e:
        logger.error("Error listing buckets: %s", e)
        existing = set()
    return [b.id for b in REQUIRED_BUCKETS if b.id not in existing]


def ensure_buckets_exist() -> BucketSetupResult:
    """Create any missing required bucket. Only new buckets count as created."""
    missing = set(get_missing_buckets())
    result = BucketSetupResult(success=True)
    for config in REQUIRED_BUCKETS:
        if config.id not in missing:
            continue
        ok, error = create_bucket(config)
        if ok:
            result.created.append(config.id)
        else:
            result.errors.append(f"{config.id}: {error}")
    result.success = not result.errors
    return result


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

def _error_fields(error: Any) -> tuple[str, int | None]:
    """(message, status code) from a storage exception or error dict."""
    data: dict[str, Any] = {}
    if isinstance(error, dict):
        data = error
    elif getattr(error, "args", None) and isinstance(error.args[0], dict):
        data = error.args[0]

    message = data.get("message") or getattr(error, "message", None)
    if not isinstance(message, str) or not message:
        message = str(error) if isinstance(error, Exception) and str(error) else "Unknown storage error"

    status: Any = None
    for key in ("statusCode", "status_code", "status"):
        status = data.get(key) if data else getattr(error, key, None)
        if status is not None:
            break
    try:
        status_code = int(status) if status is not None else None
    except (TypeError, ValueError):
        status_code = None
    return message, status_code


def handle_storage_error(error: Any, operation: str) -> StorageErrorResult:
    """Map a storage failure onto a user-facing message and retry hint."""
    message, status_code = _error_fields(error)
    logger.error("Storage %s error: %s (status=%s)", operation, message, status_code)

    if status_code == 404:
        if "Bucket not found" in message:
            return StorageErrorResult("Storage bucket not found. Please contact support.", False)
        return StorageErrorResult("File not found", False)
    if status_code == 403:
        return StorageErrorResult("Access denied to storage", False)
    if status_code == 413:
        return StorageErrorResult("File too large for upload", False)
    if status_code == 429:
        return StorageErrorResult("Too many requests. Please try again later.", True)
    if status_code in (500, 502, 503, 504):
        return StorageErrorResult("Storage service temporarily unavailable. Please try again.", True)
    if "network" in message or "timeout" in message:
        return StorageErrorResult("Network error. Please check your connection and try again.", True)
    return StorageErrorResult("Storage operation failed", False)


# ---------------------------------------------------------------------------
# Signed URLs
# ---------------------------------------------------------------------------

def _create_signed_url_sync(bucket: str, path: str, expires_in: int) -> str:
    try:
        data = get_supabase().storage.from_(bucket).create_signed_url(path, expires_in)
    except Exception as e:
        message, status_code = _error_fields(e)
        raise StorageError(f"Failed to generate signed URL: {message}", status_code) from e
    url = (data or {}).get("signedUrl") or (data or {}).get("signedURL")
    if not url:
        raise SignedUrlNotFound()
    return url


async def create_signed_url(bucket: str, path: str, expires_in: int) -> str:
    """Signed URL for ``bucket/path`` valid for ``expires_in`` seconds."""
    return await asyncio.to_thread(_create_signed_url_sync, bucket, path, expires_in)


async def generate_external_signed_url(
    bucket: str,
    path: str,
    expires_in: int | None = None,
) -> str:
    """Short-lived signed URL handed to an external generation provider."""
    settings = get_settings()
    if expires_in is None:
        expires_in = settings.EXTERNAL_SIGNED_URL_EXPIRY
    if bucket not in ALLOWED_BUCKETS:
        raise StorageError(f"Invalid bucket for external access: {bucket}")
    if expires_in <= 0 or expires_in > settings.EXTERNAL_SIGNED_URL_MAX_EXPIRY:
        raise StorageError(f"Invalid expiry time: {expires_in}")
    return await create_signed_url(bucket, path, expires_in)


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------

_DEFAULT_EXTENSIONS = {"image": "png", "video": "mp4"}
_KNOWN_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
}


def _extension_for(content_type: str, kind: str) -> str:
    if content_type in _KNOWN_EXTENSIONS:
        return _KNOWN_EXTENSIONS[content_type]
    ext = mimetypes.guess_extension(content_type) if content_type else None
    if not ext:
        return _DEFAULT_EXTENSIONS.get(kind, "bin")
    return ext.lstrip(".")


def _image_size(content: bytes) -> tuple[int | None, int | None]:
    try:
        with Image.open(io.BytesIO(content)) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Could not read image dimensions: %s", e)
        return None, None


async def upload_from_external_url(
    bucket: str,
    url: str,
    user_id: str,
    project_id: str,
    kind: str,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> UploadResult:
    """Download a provider output and store it under ``user/project/kind-<uuid>.ext``."""
    client = http_client or httpx.AsyncClient(timeout=120.0, follow_redirects=True)
    own_client = http_client is None
    try:
        resp = await client.get(url)
        resp.raise_for_status()
    finally:
        if own_client:
            await client.aclose()

    content = resp.content
    content_type = resp.headers.get("content-type", "").split(";")[0].strip()
    if not content_type:
        content_type = "image/png" if kind == "image" else "video/mp4"

    storage_path = f"{user_id}/{project_id}/{kind}-{uuid.uuid4().hex}.{_extension_for(content_type, kind)}"

    def _upload() -> None:
        get_supabase().storage.from_(bucket).upload(
            storage_path, content, {"content-type": content_type}
        )

    try:
        await asyncio.to_thread(_upload)
    except Exception as e:
        message, status_code = _error_fields(e)
        raise StorageError(f"Failed to upload to {bucket}: {message}", status_code) from e

    width = height = None
    if kind == "image":
        width, height = _image_size(content)

    logger.info("Uploaded %s (%d bytes) to %s/%s", kind, len(content), bucket, storage_path)
    return UploadResult(
        storage_path=storage_path,
        content_type=content_type,
        width=width,
        height=height,
    )
