"""Configuration settings for the photo pipeline using Pydantic."""

from functools import lru_cache
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Tunables for preview generation, blur hashing and uploads.

    This class uses Pydantic's BaseSettings which allows for configuration via environment
    variables and/or direct assignment. Environment variables take precedence over defaults.

    Environment Variables:
        PHOTO_PIPELINE_JPEG_QUALITY: JPEG quality used for the preview renditions
        PHOTO_PIPELINE_BLUR_HASH_SAMPLE_WIDTH: Width of the derivative the blur hash is computed from
        PHOTO_PIPELINE_MAX_UPLOAD_BYTES: Upper bound for a single upload request
    """

    model_config = SettingsConfigDict(
        env_prefix="PHOTO_PIPELINE_",
        case_sensitive=False,
        extra="allow",
    )

    photos_bucket: str = "photos"

    # Preview encoding
    jpeg_quality: int = 90

    # Blur hash placeholder
    blur_hash_sample_width: int = 32
    blur_hash_components_x: int = 4
    blur_hash_components_y: int = 3

    # 100 MB per request
    max_upload_bytes: int = 100 << 20


settings = PipelineSettings()


@lru_cache()
def get_settings() -> PipelineSettings:
    """Get the global settings instance.

    Returns:
        PipelineSettings: The global settings instance.

    Note:
        This function is cached to avoid re-reading environment variables.
        To refresh settings, call get_settings.cache_clear()
    """
    return settings


def configure_settings(**kwargs: Any) -> None:
    """Configure global settings with overrides.

    Args:
        **kwargs: Keyword arguments to override default settings.

    Example:
        >>> configure_settings(jpeg_quality=85, blur_hash_sample_width=24)
    """
    global settings
    settings = PipelineSettings(**kwargs)
    get_settings.cache_clear()
