"""
API Dependencies - Input Validation Utilities

This module validates resize inputs before they reach the resizer service:
- File type validation (extension and content type)
- File size limits (max 10MB by default)
- Base64 payload size limits
- Request size limits
"""

import os

from fastapi import UploadFile, HTTPException, Request

from image_resizer.config import settings
from image_resizer.utils.helpers import format_bytes


ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/gif",
    "image/bmp",
    "image/tiff",
}


def validate_image_file(file: UploadFile) -> None:
    """
    Validate uploaded image file type and extension.

    Args:
        file: FastAPI UploadFile object

    Raises:
        HTTPException: If file type is invalid
    """
    if not file.filename:
        raise HTTPException(
            status_code=400,
            detail="Filename is required"
        )

    ext = os.path.splitext(file.filename)[1].lower()
    if ext not in settings.ALLOWED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid file type '{ext}'. Allowed: {', '.join(sorted(settings.ALLOWED_EXTENSIONS))}"
        )

    # Content type is optional; some clients send image/jpg or a vendor type
    if file.content_type:
        content_type = file.content_type.lower()
        if content_type not in ALLOWED_MIME_TYPES and not content_type.startswith("image/"):
            raise HTTPException(
                status_code=400,
                detail=f"Invalid content type '{file.content_type}'. File must be an image."
            )


def check_payload_size(size: int, label: str = "File") -> None:
    """
    Reject empty or oversized payloads.

    Raises:
        HTTPException: 400 when empty, 413 when above MAX_FILE_SIZE
    """
    if size == 0:
        raise HTTPException(
            status_code=400,
            detail=f"Empty {label.lower()} uploaded"
        )

    if size > settings.MAX_FILE_SIZE:
        raise HTTPException(
            status_code=413,
            detail=f"{label} too large ({format_bytes(size)}). Maximum size: {format_bytes(settings.MAX_FILE_SIZE)}"
        )


async def validate_file_size(file: UploadFile) -> bytes:
    """
    Read and validate file size.

    Args:
        file: FastAPI UploadFile object

    Returns:
        Raw image bytes

    Raises:
        HTTPException: If file is empty or too large
    """
    content = await file.read()
    check_payload_size(len(content), "File")
    return content


def validate_base64_size(base64_string: str) -> None:
    """
    Validate the decoded size of a base64 payload without decoding it.

    Args:
        base64_string: Base64 image text, optionally with a data URL prefix

    Raises:
        HTTPException: If the payload is empty or decodes to more than MAX_FILE_SIZE
    """
    payload = base64_string.split(",", 1)[1] if "," in base64_string else base64_string
    payload = "".join(payload.split())
    # Every 4 base64 characters carry 3 bytes
    estimated = (len(payload) * 3) // 4 - payload[-2:].count("=")
    check_payload_size(max(estimated, 0), "Image")


async def validate_upload(file: UploadFile) -> bytes:
    """
    Complete validation pipeline for a single image upload.

    Performs:
    1. File type validation
    2. File size validation

    Args:
        file: FastAPI UploadFile object

    Returns:
        Raw image bytes

    Raises:
        HTTPException: If any validation fails
    """
    validate_image_file(file)
    return await validate_file_size(file)


async def validate_request_size(request: Request, max_size: int = None) -> None:
    """
    Validate total request body size.

    Args:
        request: FastAPI Request object
        max_size: Maximum allowed size in bytes (defaults to settings)

    Raises:
        HTTPException: If request is too large
    """
    if max_size is None:
        # Base64 inflates payloads by a third, plus room for the JSON envelope
        max_size = settings.MAX_FILE_SIZE * 4 // 3 + 64 * 1024

    content_length = request.headers.get("content-length")
    if content_length:
        try:
            size = int(content_length)
        except ValueError:
            return  # Invalid content-length header, ignore

        if size > max_size:
            raise HTTPException(
                status_code=413,
                detail=f"Request too large ({format_bytes(size)}). Maximum: {format_bytes(max_size)}"
            )
