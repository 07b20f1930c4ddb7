from __future__ import annotations
"""Shared FastAPI dependencies."""

import asyncio
import logging

from fastapi import Header

from momentful.config import get_settings
from momentful.database import get_supabase
from momentful.errors import (
    ApiError,
    ProviderHTTPError,
    extract_error_message,
    get_status_code_from_error,
)

logger = logging.getLogger(__name__)


def debug_details(exc: BaseException) -> str | None:
    """Raw error text for responses, withheld in production."""
    return None if get_settings().is_production else str(exc)


def normalize_provider_error(
    exc: Exception,
    default_message: str,
    *,
    forward_status: bool = False,
) -> ApiError:
    """Turn an upstream failure into a JSON error response.

    With ``forward_status`` the provider's own HTTP status is kept; otherwise
    the status is classified from the error text (4xx → 400, else 500).
    """
    raw = str(exc)
    if forward_status and isinstance(exc, ProviderHTTPError):
        status_code = exc.status_code
    else:
        status_code = get_status_code_from_error(raw)
    return ApiError(
        status_code,
        extract_error_message(raw, default_message),
        details=debug_details(exc),
    )


async def get_current_user_id(authorization: str | None = Header(None)) -> str:
    """Resolve the caller's user id from a ``Bearer`` access token.

    Raises:
        ApiError 401: header missing/malformed or the token is rejected.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise ApiError(401, "Authentication required. Missing or invalid Authorization header.")

    token = authorization[len("Bearer "):].strip()
    try:
        response = await asyncio.to_thread(get_supabase().auth.get_user, token)
    except Exception as e:
        logger.warning("Auth error: %s", e)
        raise ApiError(401, "Authentication required")

    user = getattr(response, "user", None)
    if user is None:
        raise ApiError(401, "Authentication required")
    return user.id
