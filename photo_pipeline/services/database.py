import json
from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from photo_pipeline.constants import DATABASE_CONNECT_ARGS, DATABASE_URL


def create_catalog_engine(
    database_url: str = DATABASE_URL, connect_args: str = DATABASE_CONNECT_ARGS
) -> Engine:
    """Create the engine backing the photo catalog."""
    return create_engine(
        database_url,
        connect_args=json.loads(connect_args) if database_url.startswith("sqlite") else {},
        pool_pre_ping=True,
    )


@lru_cache(maxsize=None)
def get_engine() -> Engine:
    """Get the process-wide database engine."""
    return create_catalog_engine()


def get_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
    )


Base = declarative_base()
