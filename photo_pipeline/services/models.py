"""Models for the photo catalog."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from photo_pipeline.services.database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Photo(Base):
    __tablename__ = "photos"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    blur_hash = Column(String, nullable=False)
    width = Column(Integer, nullable=False)
    height = Column(Integer, nullable=False)

    lens = Column(String, nullable=True)
    aperture = Column(String, nullable=True)
    shutter_speed = Column(String, nullable=True)
    iso = Column(String, nullable=True)
    focal_length = Column(String, nullable=True)
    focal_length_35mm = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "blur_hash": self.blur_hash,
            "width": self.width,
            "height": self.height,
            "lens": self.lens,
            "aperture": self.aperture,
            "shutter_speed": self.shutter_speed,
            "iso": self.iso,
            "focal_length": self.focal_length,
            "focal_length_35mm": self.focal_length_35mm,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
