"""Best-effort camera metadata extraction.

Every field is optional. A missing Exif block, an unreadable tag or an odd
value type degrades to an empty field and a log line; nothing here raises.
"""

import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from PIL import ExifTags, Image

from photo_pipeline.observability.logger_adaptor import get_logger

logger = get_logger(__name__)


@dataclass
class CameraMetadata:
    lens: Optional[str] = None
    aperture: Optional[str] = None
    shutter_speed: Optional[str] = None
    iso: Optional[str] = None
    focal_length: Optional[str] = None
    focal_length_35mm: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)


def apex_to_aperture(value: float) -> str:
    """Convert an APEX aperture value to an f-number, ``f = 2^(value/2)``.

    >>> apex_to_aperture(4.0)
    'f/4.0'
    """
    return f"f/{math.pow(2, value / 2):.1f}"


def apex_to_shutter_speed(value: float) -> str:
    """Convert an APEX shutter speed value to exposure time, ``t = 2^(-value)``.

    Exposures of a second or longer render as whole (``"2s"``) or fractional
    (``"2.5s"``) seconds, shorter ones as ``"1/N"`` with ``N`` rounded to the
    nearest integer.

    >>> apex_to_shutter_speed(0)
    '1s'
    >>> apex_to_shutter_speed(3)
    '1/8'
    """
    speed = math.pow(2, -value)
    if speed >= 1:
        if speed == int(speed):
            return f"{int(speed)}s"
        return f"{speed:.1f}s"
    return f"1/{int(1 / speed + 0.5)}"


def clean_lens_name(model: str, make: Optional[str] = None) -> str:
    """Tidy a lens model string and prefix the lens make when it is missing."""
    lens = model.strip().strip('"').strip()

    # Trailing technical codes such as "B061"
    idx = lens.rfind(" B")
    if idx > 0:
        lens = lens[:idx].strip()

    if make:
        make = make.strip().strip('"').strip()
        if make and make.lower() not in lens.lower():
            lens = f"{make} {lens}"
    return lens


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = str(value).replace("\x00", "").strip()
    return text or None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, (tuple, list)):
        if len(value) == 2 and not isinstance(value[0], (tuple, list)):
            value = value[0] / value[1] if value[1] else float("nan")
        else:
            value = value[0]
    number = float(value)
    return number if math.isfinite(number) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, (tuple, list)):
        value = value[0]
    return int(value)


class _TagReader:
    """Looks tags up in the Exif sub-IFD first and falls back to IFD0."""

    def __init__(self, image: Image.Image):
        self.exif = image.getexif()
        self.exif_ifd = self.exif.get_ifd(ExifTags.IFD.Exif)

    def __bool__(self) -> bool:
        return bool(self.exif) or bool(self.exif_ifd)

    def get(self, tag: ExifTags.Base) -> Any:
        if tag in self.exif_ifd:
            return self.exif_ifd[tag]
        return self.exif.get(tag)


def _read_field(name: str, reader: _TagReader, tag: ExifTags.Base, convert) -> Optional[str]:
    raw = reader.get(tag)
    if raw is None:
        return None
    try:
        return convert(raw)
    except (TypeError, ValueError, IndexError, ZeroDivisionError, OverflowError) as e:
        logger.info(f"Ignoring unparseable {name} value {raw!r}: {e}")
        return None


def _focal_length(raw: Any) -> Optional[str]:
    value = _as_float(raw)
    return None if value is None else f"{int(value)}mm"


def _focal_length_35mm(raw: Any) -> Optional[str]:
    return f"{_as_int(raw)}mm"


def _aperture(raw: Any) -> Optional[str]:
    value = _as_float(raw)
    return None if value is None else apex_to_aperture(value)


def _shutter_speed(raw: Any) -> Optional[str]:
    value = _as_float(raw)
    return None if value is None else apex_to_shutter_speed(value)


def _iso(raw: Any) -> Optional[str]:
    return str(_as_int(raw))


def extract_camera_metadata(image: Image.Image, photo_id: Optional[str] = None) -> CameraMetadata:
    """Read focal lengths, lens, aperture, shutter speed and ISO from ``image``."""
    metadata = CameraMetadata()
    try:
        reader = _TagReader(image)
    except Exception as e:
        logger.info(f"No EXIF data available for image: {e}", extra={"photo_id": photo_id})
        return metadata

    if not reader:
        logger.info("No EXIF data available for image", extra={"photo_id": photo_id})
        return metadata

    metadata.focal_length = _read_field(
        "focal length", reader, ExifTags.Base.FocalLength, _focal_length
    )
    metadata.focal_length_35mm = _read_field(
        "35mm focal length",
        reader,
        ExifTags.Base.FocalLengthIn35mmFilm,
        _focal_length_35mm,
    )
    metadata.aperture = _read_field(
        "aperture", reader, ExifTags.Base.ApertureValue, _aperture
    )
    metadata.shutter_speed = _read_field(
        "shutter speed", reader, ExifTags.Base.ShutterSpeedValue, _shutter_speed
    )
    metadata.iso = _read_field("ISO", reader, ExifTags.Base.ISOSpeedRatings, _iso)

    lens_model = _as_text(reader.get(ExifTags.Base.LensModel) or "")
    if lens_model:
        lens_make = _as_text(reader.get(ExifTags.Base.LensMake) or "")
        metadata.lens = clean_lens_name(lens_model, lens_make)

    return metadata
