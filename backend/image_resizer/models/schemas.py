"""
Pydantic Schemas

Request/response models for the HTTP API and the value objects passed between
the API layer and the resizer service.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from image_resizer.config import settings
from image_resizer.utils.helpers import encode_bytes_to_base64


# ============================================================================
# Service Value Objects
# ============================================================================

class EncodeOptions(BaseModel):
    """WebP encoder options chosen by the caller."""

    lossless: bool = Field(default=False, description="Use lossless WebP encoding")
    quality: int = Field(
        default=80,
        ge=1,
        le=100,
        description="Lossy quality, or compression effort when lossless",
    )
    method: int = Field(default=4, ge=0, le=6, description="Encoder speed/size trade-off")

    @classmethod
    def from_settings(cls, **overrides) -> "EncodeOptions":
        """Build options from configured defaults, ignoring ``None`` overrides."""
        values = {
            "lossless": settings.WEBP_LOSSLESS,
            "quality": settings.WEBP_QUALITY,
            "method": settings.WEBP_METHOD,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


class ResizeResult(BaseModel):
    """Encoded output of a resize together with source and output dimensions."""

    data: bytes
    width: int
    height: int
    original_width: int
    original_height: int
    format: str = "WEBP"
    lossless: bool = False

    @property
    def mime_type(self) -> str:
        return f"image/{self.format.lower()}"

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    def to_base64(self) -> str:
        return encode_bytes_to_base64(self.data)


# ============================================================================
# API Request/Response Models
# ============================================================================

class ResizeRequest(BaseModel):
    """Resize a base64 encoded image."""

    image_base64: str = Field(
        ...,
        min_length=1,
        description="Base64 image data, optionally with a data URL prefix",
    )
    max_width: int = Field(
        default_factory=lambda: settings.DEFAULT_MAX_WIDTH,
        gt=0,
        le=settings.MAX_TARGET_DIMENSION,
        description="Maximum output width in pixels",
    )
    max_height: int = Field(
        default_factory=lambda: settings.DEFAULT_MAX_HEIGHT,
        gt=0,
        le=settings.MAX_TARGET_DIMENSION,
        description="Maximum output height in pixels",
    )
    lossless: Optional[bool] = Field(default=None, description="Override lossless encoding")
    quality: Optional[int] = Field(default=None, ge=1, le=100, description="Override quality")


class ResizeResponse(BaseModel):
    """Result of a resize request."""

    success: bool
    filename: Optional[str] = None
    image_base64: str
    format: str = "WEBP"
    mime_type: str = "image/webp"
    width: int
    height: int
    original_width: int
    original_height: int
    lossless: bool
    size_bytes: int
    processing_time_ms: float

    @classmethod
    def from_result(
        cls,
        result: ResizeResult,
        processing_time_ms: float,
        filename: Optional[str] = None,
    ) -> "ResizeResponse":
        return cls(
            success=True,
            filename=filename,
            image_base64=result.to_base64(),
            format=result.format,
            mime_type=result.mime_type,
            width=result.width,
            height=result.height,
            original_width=result.original_width,
            original_height=result.original_height,
            lossless=result.lossless,
            size_bytes=result.size_bytes,
            processing_time_ms=round(processing_time_ms, 2),
        )


class FormatInfo(BaseModel):
    """Capabilities of an output format."""

    format: str
    mime_type: str
    supported: bool
    lossy: bool
    lossless: bool


class FormatsResponse(BaseModel):
    """Output formats and encoder defaults."""

    formats: List[FormatInfo]
    default_quality: int
    default_lossless: bool


class HealthResponse(BaseModel):
    """Health check payload."""

    status: str
    pillow_version: str
    webp_supported: bool
    uptime_seconds: float
    started_at: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error payload returned by the global exception handler."""

    success: bool = False
    error: str
    detail: Optional[str] = None
