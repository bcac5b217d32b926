"""SQL catalog of fully processed photos."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from photo_pipeline.activities.common.models import CatalogEntry
from photo_pipeline.observability.logger_adaptor import get_logger
from photo_pipeline.services.database import Base, get_session_factory
from photo_pipeline.services.models import Photo

logger = get_logger(__name__)

METADATA_FIELDS = (
    "blur_hash",
    "width",
    "height",
    "lens",
    "aperture",
    "shutter_speed",
    "iso",
    "focal_length",
    "focal_length_35mm",
)


class PhotoCatalog:
    """Reads and writes catalog rows.

    The write path is an upsert keyed by photo id, so the catalog activity
    can be retried any number of times and still leave exactly one row.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = get_session_factory(engine)

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @staticmethod
    def _apply(photo: Photo, entry: CatalogEntry) -> None:
        photo.name = entry.original_name
        for field in METADATA_FIELDS:
            value = getattr(entry, field)
            # Empty metadata is stored as NULL
            setattr(photo, field, value if value != "" else None)

    def upsert_photo(self, entry: CatalogEntry) -> bool:
        """Insert or update the row for ``entry.photo_id``.

        Returns:
            bool: True if a new row was inserted, False if an existing row
            was updated.
        """
        with self.session_factory() as session:
            photo = session.get(Photo, entry.photo_id)
            created = photo is None
            if created:
                photo = Photo(id=entry.photo_id)
                session.add(photo)
            self._apply(photo, entry)
            try:
                session.commit()
                logger.info(
                    f"{'Inserted' if created else 'Updated'} catalog row for photo {entry.photo_id}"
                )
                return created
            except IntegrityError:
                session.rollback()
                if not created:
                    raise
                logger.info(
                    f"Catalog row for photo {entry.photo_id} was written concurrently, updating it"
                )

        # A concurrent insert won the race; the row exists now
        with self.session_factory() as session:
            photo = session.get(Photo, entry.photo_id)
            self._apply(photo, entry)
            session.commit()
        return False

    def get_photo(self, photo_id: str) -> Optional[Photo]:
        with self.session_factory() as session:
            return session.get(Photo, photo_id)

    def photo_exists(self, photo_id: str) -> bool:
        return self.get_photo(photo_id) is not None

    def list_photos(self) -> List[Photo]:
        """Return every catalogued photo, newest first."""
        with self.session_factory() as session:
            stmt = select(Photo).order_by(Photo.created_at.desc(), Photo.id)
            return list(session.scalars(stmt))

    def delete_photo(self, photo_id: str) -> bool:
        with self.session_factory() as session:
            photo = session.get(Photo, photo_id)
            if photo is None:
                return False
            session.delete(photo)
            session.commit()
        logger.info(f"Deleted catalog row for photo {photo_id}")
        return True
