import pytest
from pydantic import ValidationError

from photo_pipeline.config import PipelineSettings, configure_settings, get_settings


def test_defaults():
    settings = PipelineSettings()

    assert settings.jpeg_quality == 90
    assert settings.blur_hash_sample_width == 32
    assert (settings.blur_hash_components_x, settings.blur_hash_components_y) == (4, 3)
    assert settings.max_upload_bytes == 100 * 1024 * 1024


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PHOTO_PIPELINE_JPEG_QUALITY", "75")
    monkeypatch.setenv("PHOTO_PIPELINE_PHOTOS_BUCKET", "gallery")

    settings = PipelineSettings()

    assert settings.jpeg_quality == 75
    assert settings.photos_bucket == "gallery"


def test_configure_settings_replaces_global():
    original = get_settings()
    try:
        configure_settings(jpeg_quality=60)
        assert get_settings().jpeg_quality == 60
    finally:
        configure_settings(**original.model_dump())


def test_invalid_override_keeps_previous_settings():
    original = get_settings()

    with pytest.raises(ValidationError):
        configure_settings(jpeg_quality="sharp")

    assert get_settings() is original
