"""
Database Configuration and Session Management
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.config import settings
import logging

logger = logging.getLogger(__name__)

# Create SQLAlchemy engine
engine = None
SessionLocal = None


def normalize_database_url(url: str) -> str:
    # psycopg3 driver
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def init_db():
    """Initialize database connection"""
    global engine, SessionLocal

    if not settings.database_url:
        logger.warning("DATABASE_URL not configured - database features disabled")
        return

    logger.info("Connecting to database...")
    url = normalize_database_url(settings.database_url)
    if url.startswith("sqlite"):
        engine = create_engine(url, connect_args={"check_same_thread": False})
    else:
        engine = create_engine(
            url,
            pool_pre_ping=True,  # Verify connections before using them
            pool_size=5,
            max_overflow=10
        )

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    logger.info("Database connection established")


def get_session_factory():
    """
    Return the configured sessionmaker, initializing lazily.

    Dramatiq workers never run the FastAPI startup hook, so the first
    actor invocation initializes the connection here.
    """
    if SessionLocal is None:
        init_db()
    return SessionLocal


# Base class for all models
Base = declarative_base()
