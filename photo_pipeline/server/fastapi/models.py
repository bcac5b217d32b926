# Request/Response DTOs for the photo API

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from photo_pipeline.handlers.photos import UploadResult


class PhotoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    blur_hash: str
    width: int
    height: int
    lens: Optional[str] = None
    aperture: Optional[str] = None
    shutter_speed: Optional[str] = None
    iso: Optional[str] = None
    focal_length: Optional[str] = None
    focal_length_35mm: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PhotoDetailResponse(BaseModel):
    success: bool
    data: PhotoResponse


class PhotoListResponse(BaseModel):
    success: bool
    data: List[PhotoResponse]


class UploadResponse(BaseModel):
    success: bool = Field(..., description="True when every file was accepted")
    message: str
    data: List[UploadResult]


class DeletePhotoResponse(BaseModel):
    success: bool
    message: str


class WorkflowStatusResponse(BaseModel):
    success: bool
    message: str
    data: Dict[str, Any]
