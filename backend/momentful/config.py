from __future__ import annotations
"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Momentful API settings.

    Loaded from environment variables or .env file.
    """

    # --- Application ---
    APP_NAME: str = "Momentful"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

    # --- Supabase (Postgres + Storage) ---
    SUPABASE_URL: str = ""
    SUPABASE_SECRET_KEY: str = ""  # service role key, server-side only
    SUPABASE_PUBLISHABLE_KEY: str = ""
    ENSURE_BUCKETS_ON_STARTUP: bool = False

    # --- Replicate (image editing) ---
    REPLICATE_API_TOKEN: str = ""
    REPLICATE_API_BASE: str = "https://api.replicate.com/v1"

    # --- Runway (image + video generation) ---
    RUNWAY_API_KEY: str = ""
    RUNWAY_API_BASE: str = "https://api.dev.runwayml.com/v1"
    RUNWAY_API_VERSION: str = "2024-11-06"

    PROVIDER_TIMEOUT: float = 30.0

    # --- Signed URLs (seconds) ---
    SIGNED_URL_EXPIRY: int = 3600
    SIGNED_URL_MAX_EXPIRY: int = 24 * 60 * 60
    EXTERNAL_SIGNED_URL_EXPIRY: int = 300
    EXTERNAL_SIGNED_URL_MAX_EXPIRY: int = 10 * 60

    # --- CORS ---
    CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    def missing_required(self) -> list[str]:
        """Names of required settings that are unset."""
        required = (
            "SUPABASE_URL",
            "SUPABASE_SECRET_KEY",
            "REPLICATE_API_TOKEN",
            "RUNWAY_API_KEY",
        )
        return [name for name in required if not getattr(self, name)]


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings singleton."""
    return Settings()
