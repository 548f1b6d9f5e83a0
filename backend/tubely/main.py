"""
Tubely API - FastAPI Application.

Builds the FastAPI application for the Tubely media backend:
- CORS middleware for the frontend origin(s)
- Upload size limit on the request stream (declared and actual bytes)
- Request logging middleware with timing headers
- One exception handler turning TubelyError subclasses into JSON errors
- The v1 API router under /api/v1
- Health check endpoint and the /assets static mount for thumbnails
- Lifespan handling for logging setup and the MongoDB connection
"""

import logging
import re
import time

from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from tubely import __app_name__, __version__
from tubely.api.v1 import api_router
from tubely.config import get_settings
from tubely.core.database import close_db, init_db
from tubely.core.exceptions import (
    AuthorizationError,
    InvalidCredentialsError,
    ProcessingError,
    StoreError,
    TubelyError,
    UnsupportedMediaTypeError,
    UploadTooLargeError,
    UploadValidationError,
    VideoNotFoundError,
)
from tubely.core.upload_limits import UploadSizeLimitMiddleware
from tubely.utils.logger import setup_logging


logger = logging.getLogger(__name__)

HTTP_ERROR_THRESHOLD = 400

API_PREFIX = "/api/v1"

_VIDEO_UPLOAD_PATH = re.compile(rf"^{API_PREFIX}/video_upload/[^/]+/?$")
_THUMBNAIL_UPLOAD_PATH = re.compile(rf"^{API_PREFIX}/thumbnail_upload/[^/]+/?$")

# Most specific first
ERROR_STATUS_CODES: list[tuple[type[TubelyError], int]] = [
    (UploadTooLargeError, status.HTTP_413_REQUEST_ENTITY_TOO_LARGE),
    (UnsupportedMediaTypeError, status.HTTP_415_UNSUPPORTED_MEDIA_TYPE),
    (UploadValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidCredentialsError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (VideoNotFoundError, status.HTTP_404_NOT_FOUND),
    (ProcessingError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (StoreError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_code_for(error: TubelyError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": code, "message": message})


def upload_ceiling_for(path: str) -> int | None:
    """Size ceiling in bytes for an upload endpoint path, None for other paths."""
    settings = get_settings()
    if _VIDEO_UPLOAD_PATH.match(path):
        return settings.max_video_upload_bytes
    if _THUMBNAIL_UPLOAD_PATH.match(path):
        return settings.max_thumbnail_upload_bytes
    return None


# =============================================================================
# Application Lifespan Management
# =============================================================================


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Startup: configure logging, connect to MongoDB, create the assets directory.
    Shutdown: close the MongoDB connection.
    """
    settings = get_settings()
    setup_logging(settings.log_level, json_logs=settings.json_logs)

    logger.info(
        f"{settings.app_name} API starting",
        extra={"environment": settings.app_env, "host": settings.host, "port": settings.port},
    )

    try:
        await init_db(settings)
    except Exception as e:
        logger.exception("Failed to initialize MongoDB")
        raise RuntimeError(f"MongoDB initialization failed: {e}") from e

    Path(settings.assets_root).mkdir(parents=True, exist_ok=True)

    logger.info(f"{settings.app_name} API ready to accept requests")

    yield

    await close_db()
    logger.info(f"{settings.app_name} API shutdown complete")


# =============================================================================
# FastAPI Application Instance
# =============================================================================

_settings = get_settings()

app = FastAPI(
    title=f"{__app_name__} API",
    description="Video upload backend: orientation-partitioned S3 storage with signed playback URLs.",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    debug=_settings.debug,
)


# =============================================================================
# Middleware Configuration
# =============================================================================

# Added first so CORS headers also reach 413 responses from the size limit
app.add_middleware(UploadSizeLimitMiddleware, ceiling_for=upload_ceiling_for)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Process-Time"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next) -> Response:
    """Log each request and add X-Process-Time and X-Request-ID headers."""
    request_id = f"{time.time_ns()}"
    start_time = time.perf_counter()

    logger.debug(f"Request started: {request.method} {request.url.path} [Request-ID: {request_id}]")

    response = await call_next(request)

    process_time_ms = round((time.perf_counter() - start_time) * 1000, 2)
    response.headers["X-Process-Time"] = f"{process_time_ms}ms"
    response.headers["X-Request-ID"] = request_id

    log_level = logging.DEBUG if response.status_code < HTTP_ERROR_THRESHOLD else logging.WARNING
    logger.log(
        log_level,
        f"Request completed: {request.method} {request.url.path} "
        f"[Status: {response.status_code}] [Time: {process_time_ms}ms] "
        f"[Request-ID: {request_id}]",
    )

    return response


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(TubelyError)
async def tubely_error_handler(request: Request, exc: TubelyError) -> JSONResponse:
    """Map a TubelyError to its status code and the JSON error envelope."""
    status_code = status_code_for(exc)
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
            exc_info=exc,
        )
    else:
        logger.info(
            f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}"
        )
    return error_response(status_code, exc.error_code, exc.message)


@app.exception_handler(Exception)
async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected errors and return a generic 500 without internal details."""
    logger.error(
        f"Internal server error on {request.method} {request.url.path}: {exc!s}",
        exc_info=exc,
    )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "internal_error",
        "An unexpected error occurred. Please try again later.",
    )


# =============================================================================
# Routes
# =============================================================================

app.include_router(api_router, prefix=API_PREFIX)


@app.get("/health", tags=["health"], summary="Health Check")
async def health_check() -> dict[str, Any]:
    """Liveness probe; does not check MongoDB or S3."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": __version__,
        "service": f"{__app_name__} API",
    }


app.mount(
    "/assets",
    StaticFiles(directory=_settings.assets_root, check_dir=False),
    name="assets",
)
