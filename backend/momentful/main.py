from __future__ import annotations
"""Momentful API: FastAPI application entry point.

Mounts the API routes, configures CORS and JSON error handling, and checks the
required configuration on startup.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from momentful import __version__
from momentful.api.router import api_router
from momentful.config import get_settings
from momentful.database import close_supabase
from momentful.errors import ApiError, ConfigurationError
from momentful.services.providers import replicate, runway
from momentful.services.storage import ensure_buckets_exist
from momentful.services.validation import format_validation_error

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: validate config on startup, close clients on shutdown."""
    logger.info("%s starting up (environment=%s)", settings.APP_NAME, settings.ENVIRONMENT)

    missing = settings.missing_required()
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    if settings.ENSURE_BUCKETS_ON_STARTUP:
        result = await asyncio.to_thread(ensure_buckets_exist)
        if result.created:
            logger.info("Created storage buckets: %s", ", ".join(result.created))
        for error in result.errors:
            logger.warning("Bucket setup: %s", error)

    yield

    await replicate.close_client()
    await runway.close_client()
    close_supabase()
    logger.info("%s shut down", settings.APP_NAME)


app = FastAPI(
    title="Momentful API",
    description="Image editing and video generation backed by Replicate, Runway and Supabase",
    version=__version__,
    lifespan=lifespan,
    redirect_slashes=False,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": format_validation_error(exc)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    content = {"error": "Internal server error"}
    if not get_settings().is_production:
        content["details"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# Mount API routes
app.include_router(api_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"service": settings.APP_NAME, "status": "running", "version": __version__}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "missing_config": settings.missing_required(),
    }
