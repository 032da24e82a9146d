"""
API Routes
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Request, UploadFile, File, Form, HTTPException
from fastapi.concurrency import run_in_threadpool
from PIL import features

from image_resizer.models.schemas import (
    EncodeOptions,
    FormatInfo,
    FormatsResponse,
    ResizeRequest,
    ResizeResponse,
)
from image_resizer.services.resizer_service import (
    DecodeError,
    EncodeError,
    resizer_service,
)
from image_resizer.api.dependencies import (
    validate_base64_size,
    validate_request_size,
    validate_upload,
)
from image_resizer.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["resize"])


def _raise_for_resize_error(e: Exception, source: str) -> None:
    """Translate resizer errors into HTTP errors."""
    if isinstance(e, DecodeError):
        raise HTTPException(status_code=400, detail=f"Could not decode image: {e}") from e
    if isinstance(e, EncodeError):
        logger.error(f"Encoding failed for {source}: {e}")
        raise HTTPException(status_code=500, detail=f"Error encoding image: {e}") from e
    raise HTTPException(status_code=400, detail=str(e)) from e


@router.post("/resize", response_model=ResizeResponse)
async def resize_base64_image(request: ResizeRequest, http_request: Request):
    """
    Resize a base64 encoded image to fit within max_width x max_height.

    Returns the result as base64 encoded WebP.
    """
    await validate_request_size(http_request)
    validate_base64_size(request.image_base64)
    options = EncodeOptions.from_settings(lossless=request.lossless, quality=request.quality)

    start_time = time.time()
    try:
        result = await run_in_threadpool(
            resizer_service.resize_base64,
            request.image_base64,
            request.max_width,
            request.max_height,
            options,
        )
    except ValueError as e:
        _raise_for_resize_error(e, "base64 payload")

    return ResizeResponse.from_result(result, (time.time() - start_time) * 1000)


@router.post("/resize/upload", response_model=ResizeResponse)
async def resize_uploaded_image(
    file: UploadFile = File(..., description="Image file to resize"),
    max_width: int = Form(
        settings.DEFAULT_MAX_WIDTH, gt=0, le=settings.MAX_TARGET_DIMENSION,
    ),
    max_height: int = Form(
        settings.DEFAULT_MAX_HEIGHT, gt=0, le=settings.MAX_TARGET_DIMENSION,
    ),
    lossless: Optional[bool] = Form(None),
    quality: Optional[int] = Form(None, ge=1, le=100),
):
    """
    Resize an uploaded image file to fit within max_width x max_height.

    Returns the result as base64 encoded WebP.
    """
    image_data = await validate_upload(file)
    options = EncodeOptions.from_settings(lossless=lossless, quality=quality)

    start_time = time.time()
    try:
        result = await run_in_threadpool(
            resizer_service.resize, image_data, max_width, max_height, options
        )
    except ValueError as e:
        _raise_for_resize_error(e, file.filename)

    return ResizeResponse.from_result(
        result, (time.time() - start_time) * 1000, filename=file.filename
    )


@router.get("/formats", response_model=FormatsResponse)
async def list_formats():
    """List output formats and encoder defaults."""
    return FormatsResponse(
        formats=[
            FormatInfo(
                format="WEBP",
                mime_type="image/webp",
                supported=bool(features.check("webp")),
                lossy=True,
                lossless=True,
            ),
        ],
        default_quality=settings.WEBP_QUALITY,
        default_lossless=settings.WEBP_LOSSLESS,
    )
