"""
Database configuration and session management
"""
import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Generator

from venue_api.core.config import settings

logger = logging.getLogger(__name__)

# Convert async URL to sync URL
database_url = settings.DATABASE_URL.replace("postgresql+asyncpg://", "postgresql://")

engine_options = {"echo": settings.DEBUG, "pool_pre_ping": True}
if database_url.startswith("sqlite"):
    engine_options["connect_args"] = {"check_same_thread": False}
else:
    engine_options["pool_size"] = settings.DATABASE_POOL_SIZE
    engine_options["max_overflow"] = settings.DATABASE_MAX_OVERFLOW

# Create sync engine
engine = create_engine(database_url, **engine_options)

# Create session factory
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

# Create declarative base for models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function to get database session

    Usage:
        @app.get("/")
        def read_data(db: Session = Depends(get_db)):
            # Use db session here
    """
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        db.rollback()
        logger.error(f"Database error in get_db: {e}")
        raise
    finally:
        db.close()


def test_connection() -> bool:
    """Return True when the database answers a trivial query"""
    from sqlalchemy import text

    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection check failed: {e}")
        return False


def init_db():
    """Initialize database tables (for development only)"""
    # Models must be imported so they register on Base.metadata
    import venue_api.models  # noqa: F401

    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating tables: {e}")
        raise
