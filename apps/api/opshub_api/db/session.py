"""Database session management."""

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from opshub_api.settings import get_settings


@lru_cache()
def get_engine() -> Engine:
    """Create the process-wide engine on first use."""
    url = get_settings().database_url_computed
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


def SessionLocal():
    """Open a new session bound to the process-wide engine."""
    return _session_factory()()


@lru_cache()
def _session_factory() -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
