"""Payloads exchanged between the photo upload workflow and its activities.

Temporal carries these as plain dicts; each side validates them back into the
models below.
"""

from typing import Optional

from pydantic import BaseModel


class PreviewRequest(BaseModel):
    photo_id: str
    original_object: str
    size_name: str
    width: int


class PreviewResult(BaseModel):
    photo_id: str
    size_name: str
    width: int
    height: int
    object_name: str
    size: int


class MetadataRequest(BaseModel):
    photo_id: str
    original_object: str


class PhotoMetadata(BaseModel):
    """Dimensions, blur hash and camera settings of an original."""

    width: int
    height: int
    blur_hash: str
    lens: Optional[str] = None
    aperture: Optional[str] = None
    shutter_speed: Optional[str] = None
    iso: Optional[str] = None
    focal_length: Optional[str] = None
    focal_length_35mm: Optional[str] = None


class CatalogEntry(PhotoMetadata):
    photo_id: str
    original_name: str


class CatalogWriteResult(BaseModel):
    photo_id: str
    created: bool


class PhotoUploadArgs(BaseModel):
    """Input of one photo upload workflow run."""

    workflow_id: str
    photo_id: str
    original_object: str
    original_name: str
