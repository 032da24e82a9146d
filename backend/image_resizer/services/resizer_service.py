"""
Resizer Service - Fit-Within-Box Image Resizing with WebP Output

This module decodes images from base64 strings or uploaded files, shrinks them
to fit a bounding box while keeping their aspect ratio, and re-encodes them as
WebP (lossy or lossless). Decoding, resampling and encoding are done by Pillow;
failures are reported as DecodeError or EncodeError and never retried.
"""

import binascii
import io
import logging
import time
from typing import Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from PIL import Image, ImageOps

from image_resizer.config import settings
from image_resizer.models.schemas import EncodeOptions, ResizeResult
from image_resizer.utils.helpers import (
    decode_base64_image,
    encode_bytes_to_base64,
    format_bytes,
)

logger = logging.getLogger(__name__)


OUTPUT_FORMAT = "WEBP"

# Pillow raises a grab bag of exception types for unreadable or truncated data
DECODE_EXCEPTIONS = (OSError, SyntaxError, ValueError, Image.DecompressionBombError)
ENCODE_EXCEPTIONS = (OSError, ValueError, KeyError)


# ============================================================================
# Errors
# ============================================================================

class ResizeError(ValueError):
    """Base class for resize failures."""


class DecodeError(ResizeError):
    """Input is not a recognizable image."""


class EncodeError(ResizeError):
    """The resized image could not be encoded."""


# ============================================================================
# Image Processing Utilities
# ============================================================================

def calculate_fit_size(
    width: int,
    height: int,
    max_width: int,
    max_height: int,
) -> Tuple[int, int]:
    """
    Calculate the largest size that fits inside a bounding box.

    The image is scaled uniformly by the smaller of the two axis ratios. Images
    already inside the box keep their size; they are never enlarged.

    Args:
        width: Source width in pixels
        height: Source height in pixels
        max_width: Bounding box width
        max_height: Bounding box height

    Returns:
        Tuple of (new_width, new_height)

    Raises:
        ValueError: If any dimension is not positive
    """
    if max_width <= 0 or max_height <= 0:
        raise ValueError(
            f"Bounding box must be positive, got {max_width}x{max_height}"
        )
    if width <= 0 or height <= 0:
        raise ValueError(f"Image has invalid size {width}x{height}")

    ratio = min(max_width / width, max_height / height)
    if ratio >= 1:
        return width, height

    new_width = min(max_width, max(1, round(width * ratio)))
    new_height = min(max_height, max(1, round(height * ratio)))
    return new_width, new_height


def load_image(image_data: bytes) -> Image.Image:
    """
    Decode image bytes into a fully loaded PIL Image.

    Args:
        image_data: Raw image bytes in any format Pillow can read

    Returns:
        Decoded PIL Image (first frame for animated formats)

    Raises:
        DecodeError: If the bytes are empty or not a readable image
    """
    if not image_data:
        raise DecodeError("Image data is empty")

    Image.MAX_IMAGE_PIXELS = settings.MAX_IMAGE_PIXELS
    try:
        image = Image.open(io.BytesIO(image_data))
        image.load()
    except DECODE_EXCEPTIONS as e:
        logger.warning(f"Failed to decode image ({len(image_data)} bytes): {e}")
        raise DecodeError(f"Failed to load image: {e}") from e

    if settings.AUTO_ORIENT:
        image = ImageOps.exif_transpose(image)

    return image


def base64_to_bytes(base64_string: str) -> bytes:
    """Decode base64 image text, raising DecodeError on malformed input."""
    try:
        return decode_base64_image(base64_string)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Rejected malformed base64 input: {e}")
        raise DecodeError(f"Invalid base64 image data: {e}") from e


def base64_to_image(base64_string: str) -> Image.Image:
    """
    Decode a base64 string into a PIL Image.

    Raises:
        DecodeError: If the string is not valid base64 or not an image
    """
    return load_image(base64_to_bytes(base64_string))


def to_webp_mode(image: Image.Image) -> Image.Image:
    """Convert an image to RGB, or RGBA when it carries transparency."""
    if image.mode in ("RGB", "RGBA"):
        return image

    target = "RGBA" if image.has_transparency_data else "RGB"
    try:
        return image.convert(target)
    except ValueError as e:
        raise EncodeError(f"Cannot convert {image.mode} image to {target}: {e}") from e


def resize_image(image: Image.Image, max_width: int, max_height: int) -> Image.Image:
    """
    Resize an image to fit within max_width x max_height, keeping aspect ratio.

    Returns the same image object when no shrinking is needed.
    """
    new_size = calculate_fit_size(image.width, image.height, max_width, max_height)
    if new_size == image.size:
        return image
    return image.resize(new_size, Image.Resampling.LANCZOS)


def encode_image(image: Image.Image, options: Optional[EncodeOptions] = None) -> bytes:
    """
    Encode an image as WebP.

    Args:
        image: PIL Image to encode
        options: Encoder options (defaults from settings)

    Returns:
        WebP bytes

    Raises:
        EncodeError: If Pillow fails to encode the image
    """
    if options is None:
        options = EncodeOptions.from_settings()

    output = io.BytesIO()
    try:
        to_webp_mode(image).save(
            output,
            format=OUTPUT_FORMAT,
            lossless=options.lossless,
            quality=options.quality,
            method=options.method,
        )
    except ENCODE_EXCEPTIONS as e:
        logger.warning(f"Failed to encode {image.width}x{image.height} image: {e}")
        raise EncodeError(f"Failed to encode image as WebP: {e}") from e

    return output.getvalue()


def image_to_base64(image: Image.Image, options: Optional[EncodeOptions] = None) -> str:
    """Encode an image as WebP and return it as a base64 string."""
    return encode_bytes_to_base64(encode_image(image, options))


def resize_to_fit(
    image_data: bytes,
    max_width: int,
    max_height: int,
    options: Optional[EncodeOptions] = None,
) -> bytes:
    """
    Decode, shrink to fit the bounding box, and encode as WebP.

    Args:
        image_data: Raw source image bytes
        max_width: Maximum output width
        max_height: Maximum output height
        options: Encoder options (defaults from settings)

    Returns:
        WebP bytes no larger than max_width x max_height
    """
    return resizer_service.resize(image_data, max_width, max_height, options).data


# ============================================================================
# Resizer Service Class
# ============================================================================

class ImageResizer:
    """
    Resizes images from base64 strings or uploads into base64 WebP.

    Both entry points share ``resize``; the Pillow work runs in the threadpool
    so request handlers stay responsive.
    """

    def __init__(self, options: Optional[EncodeOptions] = None):
        self.default_options: Optional[EncodeOptions] = options

    def _options(self, options: Optional[EncodeOptions]) -> EncodeOptions:
        if options is not None:
            return options
        if self.default_options is not None:
            return self.default_options
        return EncodeOptions.from_settings()

    def resize(
        self,
        image_data: bytes,
        max_width: int,
        max_height: int,
        options: Optional[EncodeOptions] = None,
    ) -> ResizeResult:
        """
        Resize raw image bytes and report source and output dimensions.

        Raises:
            DecodeError: If the input is not an image
            EncodeError: If WebP encoding fails
            ValueError: If the bounding box is not positive
        """
        options = self._options(options)
        start_time = time.time()

        image = load_image(image_data)
        original_width, original_height = image.size

        resized = resize_image(to_webp_mode(image), max_width, max_height)
        data = encode_image(resized, options)

        logger.debug(
            f"Resized {original_width}x{original_height} -> "
            f"{resized.width}x{resized.height} "
            f"({'lossless' if options.lossless else f'q={options.quality}'}, "
            f"{format_bytes(len(data))}, {(time.time() - start_time) * 1000:.2f}ms)"
        )

        return ResizeResult(
            data=data,
            width=resized.width,
            height=resized.height,
            original_width=original_width,
            original_height=original_height,
            format=OUTPUT_FORMAT,
            lossless=options.lossless,
        )

    def resize_base64(
        self,
        base64_image: str,
        max_width: int,
        max_height: int,
        options: Optional[EncodeOptions] = None,
    ) -> ResizeResult:
        """Resize a base64 encoded image."""
        return self.resize(base64_to_bytes(base64_image), max_width, max_height, options)

    async def resize_image_async(
        self,
        base64_image: str,
        max_width: int,
        max_height: int,
        options: Optional[EncodeOptions] = None,
    ) -> str:
        """
        Resize a base64 encoded image, keeping its aspect ratio.

        Args:
            base64_image: Base64 image data (data URL prefix allowed)
            max_width: Maximum output width
            max_height: Maximum output height
            options: Encoder options (defaults from settings)

        Returns:
            Base64 encoded WebP image
        """
        result = await run_in_threadpool(
            self.resize_base64, base64_image, max_width, max_height, options
        )
        return result.to_base64()

    async def resize_upload_async(
        self,
        file,
        max_width: int,
        max_height: int,
        options: Optional[EncodeOptions] = None,
    ) -> str:
        """
        Resize an uploaded image file, keeping its aspect ratio.

        Args:
            file: FastAPI UploadFile (or any object with an async ``read``)
            max_width: Maximum output width
            max_height: Maximum output height
            options: Encoder options (defaults from settings)

        Returns:
            Base64 encoded WebP image
        """
        image_data = await file.read()
        result = await run_in_threadpool(
            self.resize, image_data, max_width, max_height, options
        )
        return result.to_base64()


# ============================================================================
# Singleton Instance
# ============================================================================

resizer_service = ImageResizer()
