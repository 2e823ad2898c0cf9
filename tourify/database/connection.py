"""Database connection and session management."""

from typing import Generator
import logging
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.exc import SQLAlchemyError

from tourify.core.config import get_settings
from .base import Base

logger = logging.getLogger(__name__)


def get_engine(database_url: str = None) -> Engine:
    """Create SQLAlchemy engine with configuration."""
    settings = get_settings()
    url = database_url or settings.DATABASE_URL
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    if url.startswith("sqlite"):
        # SQLite rejects pool sizing; the busy timeout lets concurrent writers queue
        return create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": 30}
        )
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW
    )


# Create engine and session factory
engine = get_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = None):
    """Initialize database schema."""
    # Register every model on Base.metadata
    import tourify.models  # noqa: F401

    try:
        Base.metadata.create_all(bind=bind or engine)
        logger.info("Database schema created successfully")
    except SQLAlchemyError as e:
        logger.error(f"Error creating database schema: {str(e)}")
        raise


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
