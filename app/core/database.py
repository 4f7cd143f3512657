"""
Database connection and session management
Using SQLAlchemy with PostgreSQL
"""

from contextlib import contextmanager
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Callable, Generator
import logging

from app.core.config import settings
from app.core.exceptions import EngineError, PersistenceError

logger = logging.getLogger(__name__)


def engine_options(url: str) -> dict:
    """Pool options for the configured backend (SQLite manages its own pool)"""
    if make_url(url).get_backend_name() == "sqlite":
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_pre_ping": True,  # Verify connections before using
    }


# Create SQLAlchemy engine
engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,  # Log SQL queries in debug mode
    **engine_options(settings.DATABASE_URL),
)

# Session factory. Objects stay readable after commit so services can
# build their results once the unit of work has closed.
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine
)

# Base class for ORM models
Base = declarative_base()


@contextmanager
def session_scope(session_factory: Callable[[], Session] = SessionLocal) -> Generator[Session, None, None]:
    """
    One unit of work: commit on success, roll back on any failure.

    Domain errors pass through unchanged; database errors surface as
    PersistenceError so callers only ever see the engine's error taxonomy.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except EngineError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Unit of work rolled back: {e}")
        raise PersistenceError(str(e)) from e
    except BaseException:
        session.rollback()
        raise
    finally:
        session.close()


# Event listeners for monitoring
@event.listens_for(engine, "connect")
def receive_connect(dbapi_conn, connection_record):
    """Log database connections"""
    logger.debug("Database connection established")


def init_db(bind=None):
    """
    Initialize database tables
    Called during application startup
    """
    import app.models  # noqa: F401  registers every mapped table

    logger.info("Initializing database tables...")
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created successfully")


def check_db_connection() -> bool:
    """
    Check if database connection is healthy
    Returns True if connection is successful
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection check: SUCCESS")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database connection check: FAILED - {e}")
        return False


# Export
__all__ = [
    "engine",
    "engine_options",
    "SessionLocal",
    "Base",
    "session_scope",
    "init_db",
    "check_db_connection",
]
