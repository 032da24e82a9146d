"""
Shared Test Fixtures and Configuration

This module provides reusable pytest fixtures for all tests including:
- Test client configuration
- Image generation utilities
- Base64 payload helpers
"""

import base64
import io
import os
import sys
from typing import Tuple

import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Add the backend directory to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from image_resizer.main import app


# ============================================================================
# Test Client Fixtures
# ============================================================================

@pytest.fixture
def client() -> TestClient:
    """Create a FastAPI test client."""
    return TestClient(app)


# ============================================================================
# Image Generation Helpers
# ============================================================================

def create_test_image(
    width: int = 256,
    height: int = 256,
    color="red",
    mode: str = "RGB",
    format: str = "JPEG"
) -> bytes:
    """
    Helper function to create test images with custom parameters.

    Args:
        width: Image width in pixels
        height: Image height in pixels
        color: Fill color (name, hex or tuple)
        mode: Image mode (RGB, RGBA, L, etc.)
        format: Output format (JPEG, PNG, WEBP, GIF, BMP)

    Returns:
        Image bytes
    """
    img = Image.new(mode, (width, height), color=color if mode != "L" else 128)

    buffer = io.BytesIO()
    save_kwargs = {}
    if format in ("JPEG", "WEBP"):
        save_kwargs["quality"] = 85

    img.save(buffer, format=format, **save_kwargs)
    return buffer.getvalue()


def to_base64(data: bytes) -> str:
    """Base64 encode bytes as text."""
    return base64.b64encode(data).decode("ascii")


def open_base64_image(encoded: str) -> Image.Image:
    """Decode a base64 string returned by the service into a PIL Image."""
    return Image.open(io.BytesIO(base64.b64decode(encoded)))


def image_size(data: bytes) -> Tuple[int, int]:
    """Get (width, height) of encoded image bytes."""
    with Image.open(io.BytesIO(data)) as img:
        return img.size


# ============================================================================
# Image Fixtures
# ============================================================================

@pytest.fixture
def valid_jpeg_bytes() -> bytes:
    """Create a valid JPEG image in memory."""
    return create_test_image(100, 100, "red", format="JPEG")


@pytest.fixture
def valid_png_bytes() -> bytes:
    """Create a valid PNG image in memory."""
    return create_test_image(100, 100, "blue", format="PNG")


@pytest.fixture
def valid_webp_bytes() -> bytes:
    """Create a valid WebP image in memory."""
    return create_test_image(100, 100, "green", format="WEBP")


@pytest.fixture
def landscape_jpeg_bytes() -> bytes:
    """Create a 400x200 landscape JPEG."""
    return create_test_image(400, 200, "orange", format="JPEG")


@pytest.fixture
def portrait_png_bytes() -> bytes:
    """Create a 300x600 portrait PNG."""
    return create_test_image(300, 600, "purple", format="PNG")


@pytest.fixture
def rgba_image_bytes() -> bytes:
    """Create a semi-transparent RGBA PNG."""
    return create_test_image(200, 100, (255, 0, 0, 128), mode="RGBA", format="PNG")


@pytest.fixture
def grayscale_image_bytes() -> bytes:
    """Create a grayscale JPEG."""
    return create_test_image(120, 80, mode="L", format="JPEG")


@pytest.fixture
def animated_gif_bytes() -> bytes:
    """Create a two-frame animated GIF (160x80)."""
    frames = [
        Image.new("RGB", (160, 80), color="red"),
        Image.new("RGB", (160, 80), color="blue"),
    ]
    buffer = io.BytesIO()
    frames[0].save(
        buffer, format="GIF", save_all=True, append_images=frames[1:], duration=100, loop=0
    )
    return buffer.getvalue()


@pytest.fixture
def landscape_base64(landscape_jpeg_bytes) -> str:
    """Base64 text of the landscape JPEG."""
    return to_base64(landscape_jpeg_bytes)
