"""Blur hash placeholders for progressive loading."""

import blurhash
from PIL import Image

from photo_pipeline.imaging.previews import resize_to_width


def compute_blur_hash(
    image: Image.Image,
    components_x: int = 4,
    components_y: int = 3,
    sample_width: int = 32,
) -> str:
    """Encode a compact blur hash for ``image``.

    The hash is computed from a ``sample_width`` pixel wide derivative, which
    is plenty for a 4x3 component grid and keeps encoding cheap.
    """
    tiny = resize_to_width(image, sample_width).convert("RGB")
    width, height = tiny.size
    pixels = tiny.load()
    rows = [[pixels[x, y] for x in range(width)] for y in range(height)]
    return blurhash.encode(rows, components_x=components_x, components_y=components_y)
