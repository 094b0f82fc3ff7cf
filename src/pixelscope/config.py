"""Environment-based configuration for PixelScope."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from PIXELSCOPE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PIXELSCOPE_",
        case_sensitive=False,
    )

    # Server
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8083
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Authentication (None = disabled)
    api_key: str | None = None

    # Input limits
    supported_formats: list[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/webp", "image/gif"],
        min_length=1,
    )
    max_file_size: int = Field(default=10 * 1024 * 1024, ge=1)
    max_image_pixels: int = Field(default=16_777_216, ge=1)

    # Concurrency
    max_concurrent: int = Field(default=2, ge=1)
    queue_timeout: float = Field(default=5.0, gt=0)
    analysis_timeout: float = Field(default=30.0, gt=0)


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()
