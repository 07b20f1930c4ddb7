from __future__ import annotations
"""Exception types and upstream error-message normalization."""

import json
import re
from typing import Any


class ConfigurationError(RuntimeError):
    """Required configuration is missing; the process cannot serve requests."""


class ApiError(Exception):
    """An error that maps directly onto a JSON HTTP response.

    Rendered by the exception handler in main.py as ``{"error": ..., **extra}``.
    """

    def __init__(self, status_code: int, error: str, **extra: Any) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.extra = {k: v for k, v in extra.items() if v is not None}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, **self.extra}


class ProviderHTTPError(RuntimeError):
    """Non-2xx response from a generation provider.

    The string form follows ``HTTP <code>: <reason> - <body>`` so that
    extract_error_message / get_status_code_from_error can classify it.
    """

    def __init__(
        self,
        status_code: int,
        reason: str = "",
        body: str = "",
        *,
        title: str | None = None,
        detail: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        self.title = title
        self.detail = detail
        message = f"HTTP {status_code}: {reason}".rstrip()
        if body:
            message = f"{message} - {body}"
        super().__init__(message)


class StorageError(RuntimeError):
    """Signed URL / upload failure in the storage backend."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SignedUrlNotFound(StorageError):
    """The storage backend answered without a signed URL."""

    def __init__(self, message: str = "Signed URL generation failed - no URL returned") -> None:
        super().__init__(message, 404)


class JobError(RuntimeError):
    """Base class for terminal job outcomes other than success."""

    def __init__(self, message: str, job_id: str | None = None) -> None:
        super().__init__(message)
        self.job_id = job_id


class JobFailedError(JobError):
    pass


class JobCanceledError(JobError):
    pass


class JobTimeoutError(JobError):
    pass


_HTTP_PREFIX_RE = re.compile(r"HTTP \d+: ([^{]*)")
_HTTP_STRIP_RE = re.compile(r"HTTP \d+: ")
_TRAILING_DASH_RE = re.compile(r"\s*-\s*$")
_JSON_FRAGMENT_RE = re.compile(r"\{.*\}", re.DOTALL)


def extract_error_message(error_message: str, default_message: str = "Operation failed") -> str:
    """Pull a human-readable message out of a provider error string.

    Handles plain messages, ``HTTP 400: Bad Request - {"error": "..."}`` and
    strings embedding a JSON fragment with an ``error`` or ``message`` key.
    """
    if "HTTP" not in error_message and "{" not in error_message and '"' not in error_message:
        return error_message

    if "HTTP" in error_message:
        match = _HTTP_PREFIX_RE.search(error_message)
        if match and match.group(1):
            extracted = _TRAILING_DASH_RE.sub("", match.group(1).strip())
            if extracted:
                return extracted

    fragment = _JSON_FRAGMENT_RE.search(error_message)
    if fragment:
        try:
            parsed = json.loads(fragment.group(0))
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            if parsed.get("error"):
                return str(parsed["error"])
            if parsed.get("message"):
                return str(parsed["message"])

    cleaned = _HTTP_STRIP_RE.sub("", error_message, count=1).strip()
    return cleaned if cleaned and cleaned != ":" else default_message


def get_status_code_from_error(error_message: str) -> int:
    """Coarse HTTP status class for a provider error string."""
    if "HTTP 4" in error_message:
        return 400
    if "HTTP 5" in error_message:
        return 500
    return 500
