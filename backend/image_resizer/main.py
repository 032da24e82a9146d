"""
FastAPI Application Entry Point

Image Resizer - shrink images to fit a bounding box and return them as base64 WebP.

This module provides:
- Application initialization and lifecycle management
- CORS and middleware configuration
- Health check and root endpoints
- Request logging and timing
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable

import PIL
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from PIL import features
from starlette.middleware.base import BaseHTTPMiddleware

from image_resizer.config import settings
from image_resizer.api.routes import router
from image_resizer.models.schemas import ErrorResponse, HealthResponse
from image_resizer.utils.helpers import format_bytes

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format=settings.LOG_FORMAT,
)
logger = logging.getLogger(__name__)

# Track startup time for stats
startup_time: float = 0.0
startup_datetime: datetime = None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all incoming requests with timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        logger.info(f"{request.method} {request.url.path}")

        try:
            response = await call_next(request)

            process_time = (time.time() - start_time) * 1000

            logger.info(
                f"{request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Time: {process_time:.2f}ms"
            )

            response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
            response.headers["X-Request-ID"] = str(int(time.time() * 1000000))

            return response

        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"{request.method} {request.url.path} - "
                f"Error: {str(e)} - "
                f"Time: {process_time:.2f}ms"
            )
            raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events for startup and shutdown."""
    global startup_time, startup_datetime

    # ============================================================
    # STARTUP
    # ============================================================
    startup_time = time.time()
    startup_datetime = datetime.now(timezone.utc)

    logger.info("Starting Image Resizer API...")
    logger.info(f"Pillow: {PIL.__version__}")
    logger.info(f"CORS Origins: {settings.CORS_ORIGINS}")
    logger.info(f"Max File Size: {format_bytes(settings.MAX_FILE_SIZE)}")
    logger.info(f"Max Image Pixels: {settings.MAX_IMAGE_PIXELS:,}")
    logger.info(
        f"Default bounding box: {settings.DEFAULT_MAX_WIDTH}x{settings.DEFAULT_MAX_HEIGHT}"
    )
    logger.info(
        f"WebP: quality={settings.WEBP_QUALITY} lossless={settings.WEBP_LOSSLESS} "
        f"method={settings.WEBP_METHOD}"
    )

    if not features.check("webp"):
        logger.warning("Pillow was built without WebP support; resizing will fail")

    logger.info(f"Server ready at http://{settings.HOST}:{settings.PORT}")
    logger.info(f"API Documentation: http://{settings.HOST}:{settings.PORT}/docs")

    yield

    # ============================================================
    # SHUTDOWN
    # ============================================================
    uptime = time.time() - startup_time
    hours = int(uptime // 3600)
    minutes = int((uptime % 3600) // 60)
    seconds = int(uptime % 60)

    logger.info(
        f"Shutting down Image Resizer API... "
        f"(uptime: {hours}h {minutes}m {seconds}s)"
    )


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title="Image Resizer",
    description="""
## Image Resizing API

Shrink images to fit a bounding box and return them as base64 encoded WebP.

### Features
- **Base64 input**: Resize a base64 encoded image (data URLs accepted)
- **File upload**: Resize an uploaded image file
- **Aspect ratio**: Output always fits within max_width x max_height; images are never enlarged
- **WebP output**: Lossy (adjustable quality) or lossless encoding

### Supported Input Formats
Anything Pillow can decode, including JPEG, PNG, WebP, GIF (first frame), BMP and TIFF.
    """,
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(RequestLoggingMiddleware)

# Configure CORS
origins = settings.CORS_ORIGINS.split(",") if settings.CORS_ORIGINS else []
origins = list(dict.fromkeys(o.strip() for o in origins if o.strip()))

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Process-Time", "X-Request-ID"],
)

app.include_router(router, prefix=settings.API_PREFIX)


# ============================================================================
# Root Endpoints
# ============================================================================

@app.get("/", tags=["root"])
async def root():
    """
    Root endpoint with API information and links.
    """
    return {
        "name": "Image Resizer API",
        "version": "0.1.0",
        "description": "Resize images to fit a bounding box and return base64 WebP",
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc",
            "openapi": "/openapi.json",
        },
        "endpoints": {
            "health": "/health",
            "resize": f"{settings.API_PREFIX}/resize",
            "resize_upload": f"{settings.API_PREFIX}/resize/upload",
            "formats": f"{settings.API_PREFIX}/formats",
        },
    }


@app.get("/health", tags=["health"], response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns server status, Pillow version and WebP codec availability.
    Use this endpoint for load balancer health checks.
    """
    uptime = time.time() - startup_time if startup_time else 0
    webp_supported = bool(features.check("webp"))

    return HealthResponse(
        status="healthy" if webp_supported else "degraded",
        pillow_version=PIL.__version__,
        webp_supported=webp_supported,
        uptime_seconds=round(uptime, 2),
        started_at=startup_datetime.isoformat() if startup_datetime else None,
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if settings.DEBUG else "An unexpected error occurred",
        ).model_dump(),
    )


# ============================================================================
# Development Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "image_resizer.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=settings.WORKERS,
        log_level=settings.LOG_LEVEL.lower(),
    )
