"""Database connection and session management."""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Generator

from linkhub.config.settings import settings


def _engine_options(url: str) -> dict:
    """Pool options for the configured backend (SQLite has no connection pool)."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_recycle": 300,  # Recycle connections after 5 minutes
        "pool_timeout": 30,
    }


# Create database engine
engine = create_engine(
    settings.database_url,
    echo=False,  # Set to True for SQL debugging
    **_engine_options(settings.database_url),
)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Get database session.

    Yields:
        Database session

    Usage:
        db = next(get_db())
        try:
            # Use db
        finally:
            db.close()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Initialize database (create all tables).

    Call this after importing all models.
    """
    # Import all models here to ensure they're registered
    from linkhub.models import (  # noqa: F401
        post,
        social_account,
        oauth_state,
        notification,
        service_run,
    )

    Base.metadata.create_all(bind=engine)
