"""Decode, resize and encode helpers shared by the preview and metadata activities."""

from io import BytesIO
from typing import Tuple

from PIL import Image, UnidentifiedImageError
from PIL.Image import Resampling

from photo_pipeline.common.exceptions import InvalidImageError
from photo_pipeline.observability.logger_adaptor import get_logger

logger = get_logger(__name__)

# Modes JPEG can store directly
JPEG_MODES = ("RGB", "L", "CMYK")


def decode_image(content: bytes) -> Image.Image:
    """Fully decode ``content`` into a Pillow image.

    Raises:
        InvalidImageError: If the bytes are not a recognizable image.
        OSError: For other decode failures (truncated data, resource
            exhaustion); callers treat these as retryable.
    """
    try:
        image = Image.open(BytesIO(content))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise InvalidImageError(f"Failed to decode image: {e}") from e
    return image


def resize_to_width(image: Image.Image, width: int) -> Image.Image:
    """Resize ``image`` to exactly ``width`` pixels wide, preserving aspect ratio."""
    if width <= 0:
        raise ValueError(f"Target width must be positive, got {width}")

    src_width, src_height = image.size
    height = max(1, round(src_height * width / src_width))
    return image.resize((width, height), resample=Resampling.LANCZOS)


def encode_jpeg(image: Image.Image, quality: int = 90) -> bytes:
    """Encode ``image`` as JPEG, flattening modes JPEG cannot hold."""
    if image.mode not in JPEG_MODES:
        image = image.convert("RGB")

    buffer = BytesIO()
    image.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def build_preview(content: bytes, width: int, quality: int = 90) -> Tuple[bytes, int, int]:
    """Decode ``content`` and return ``(jpeg_bytes, width, height)`` of the preview."""
    original = decode_image(content)
    resized = resize_to_width(original, width)
    logger.debug(
        f"Resized {original.size[0]}x{original.size[1]} to {resized.size[0]}x{resized.size[1]}"
    )
    return encode_jpeg(resized, quality), resized.size[0], resized.size[1]
