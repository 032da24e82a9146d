"""
Application Configuration
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    WORKERS: int = 1
    DEBUG: bool = False

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # API Configuration
    API_PREFIX: str = "/api/v1"
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    # Upload Configuration
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_EXTENSIONS: set = {".jpg", ".jpeg", ".png", ".webp", ".gif", ".bmp", ".tif", ".tiff"}

    # Resize Configuration
    DEFAULT_MAX_WIDTH: int = 1024
    DEFAULT_MAX_HEIGHT: int = 1024
    MAX_TARGET_DIMENSION: int = 10000
    AUTO_ORIENT: bool = False
    MAX_IMAGE_PIXELS: int = 89_478_485  # Pillow's default bomb threshold

    # WebP Encoder Configuration
    WEBP_QUALITY: int = 80
    WEBP_LOSSLESS: bool = False
    WEBP_METHOD: int = 4


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
