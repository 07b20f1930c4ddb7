from __future__ import annotations
"""Supabase client for server-side routes.

Uses the service role (secret) key, which bypasses row level security, so it
must never be handed to browsers. The client is synchronous; async callers go
through ``asyncio.to_thread``.
"""

import logging

from supabase import Client, ClientOptions, create_client

from momentful.config import get_settings
from momentful.errors import ConfigurationError

logger = logging.getLogger(__name__)

_client: Client | None = None


def get_supabase() -> Client:
    """Lazy-init the module-level service-role Supabase client."""
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.SUPABASE_SECRET_KEY:
            raise ConfigurationError(
                "SUPABASE_SECRET_KEY is required for server-side API routes. "
                "This key should never be exposed to the client side."
            )
        if not settings.SUPABASE_URL:
            raise ConfigurationError("SUPABASE_URL is required for server-side API routes.")
        _client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SECRET_KEY,
            options=ClientOptions(auto_refresh_token=False, persist_session=False),
        )
        logger.info("Supabase client initialized for %s", settings.SUPABASE_URL)
    return _client


def close_supabase() -> None:
    global _client
    _client = None
