"""
Pydantic Schema Tests

Tests for request/response models and service value objects including:
- Field validation
- Default values
- Settings-backed defaults
- Serialization
"""

import base64

import pytest
from unittest.mock import patch

from image_resizer.config import settings
from image_resizer.models.schemas import (
    EncodeOptions,
    ErrorResponse,
    FormatInfo,
    FormatsResponse,
    HealthResponse,
    ResizeRequest,
    ResizeResponse,
    ResizeResult,
)


class TestEncodeOptions:
    """Tests for EncodeOptions model."""

    def test_defaults(self):
        options = EncodeOptions()
        assert options.lossless is False
        assert options.quality == 80
        assert options.method == 4

    def test_quality_bounds(self):
        assert EncodeOptions(quality=1).quality == 1
        assert EncodeOptions(quality=100).quality == 100

    def test_quality_above_maximum_fails(self):
        with pytest.raises(ValueError):
            EncodeOptions(quality=101)

    def test_quality_below_minimum_fails(self):
        with pytest.raises(ValueError):
            EncodeOptions(quality=0)

    def test_method_out_of_range_fails(self):
        with pytest.raises(ValueError):
            EncodeOptions(method=7)

    def test_from_settings(self):
        with patch.object(settings, "WEBP_QUALITY", 42), \
                patch.object(settings, "WEBP_LOSSLESS", True):
            options = EncodeOptions.from_settings()

        assert options.quality == 42
        assert options.lossless is True

    def test_from_settings_overrides(self):
        options = EncodeOptions.from_settings(lossless=True, quality=10)
        assert options.lossless is True
        assert options.quality == 10

    def test_from_settings_ignores_none(self):
        options = EncodeOptions.from_settings(lossless=None, quality=None)
        assert options.lossless == settings.WEBP_LOSSLESS
        assert options.quality == settings.WEBP_QUALITY


class TestResizeResult:
    """Tests for ResizeResult model."""

    def test_derived_fields(self):
        result = ResizeResult(
            data=b"RIFFdata",
            width=100,
            height=50,
            original_width=400,
            original_height=200,
        )

        assert result.format == "WEBP"
        assert result.mime_type == "image/webp"
        assert result.size_bytes == 8
        assert base64.b64decode(result.to_base64()) == b"RIFFdata"


class TestResizeRequest:
    """Tests for ResizeRequest model."""

    def test_defaults_from_settings(self):
        request = ResizeRequest(image_base64="abcd")
        assert request.max_width == settings.DEFAULT_MAX_WIDTH
        assert request.max_height == settings.DEFAULT_MAX_HEIGHT
        assert request.lossless is None
        assert request.quality is None

    def test_image_required(self):
        with pytest.raises(ValueError):
            ResizeRequest()

    def test_empty_image_rejected(self):
        with pytest.raises(ValueError):
            ResizeRequest(image_base64="")

    @pytest.mark.parametrize("field,value", [
        ("max_width", 0),
        ("max_height", -1),
        ("max_width", settings.MAX_TARGET_DIMENSION + 1),
        ("quality", 0),
        ("quality", 101),
    ])
    def test_out_of_range_rejected(self, field, value):
        with pytest.raises(ValueError):
            ResizeRequest(image_base64="abcd", **{field: value})


class TestResizeResponse:
    """Tests for ResizeResponse model."""

    def test_from_result(self):
        result = ResizeResult(
            data=b"webp-bytes",
            width=10,
            height=5,
            original_width=20,
            original_height=10,
            lossless=True,
        )

        response = ResizeResponse.from_result(result, 12.3456, filename="a.png")

        assert response.success is True
        assert response.filename == "a.png"
        assert base64.b64decode(response.image_base64) == b"webp-bytes"
        assert response.mime_type == "image/webp"
        assert (response.width, response.height) == (10, 5)
        assert (response.original_width, response.original_height) == (20, 10)
        assert response.lossless is True
        assert response.size_bytes == len(b"webp-bytes")
        assert response.processing_time_ms == 12.35

    def test_serialization(self):
        result = ResizeResult(data=b"x", width=1, height=1, original_width=1, original_height=1)
        data = ResizeResponse.from_result(result, 1.0).model_dump()

        assert data["filename"] is None
        assert data["format"] == "WEBP"


class TestOtherResponses:
    """Tests for health, formats and error models."""

    def test_health_response(self):
        health = HealthResponse(
            status="healthy", pillow_version="11.0.0", webp_supported=True, uptime_seconds=1.5
        )
        assert health.started_at is None

    def test_formats_response(self):
        formats = FormatsResponse(
            formats=[FormatInfo(
                format="WEBP", mime_type="image/webp", supported=True, lossy=True, lossless=True
            )],
            default_quality=80,
            default_lossless=False,
        )
        assert formats.formats[0].format == "WEBP"

    def test_error_response_defaults(self):
        error = ErrorResponse(error="Internal server error")
        assert error.success is False
        assert error.detail is None
