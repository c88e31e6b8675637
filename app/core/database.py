from datetime import datetime, timezone

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.core.config import settings

# SQLite (local development) does not accept the pool sizing arguments
if settings.DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
    )
else:
    engine = create_engine(
        settings.DATABASE_URL,
        pool_pre_ping=True,  # Verify connections before using them
        pool_size=10,  # Connection pool size
        max_overflow=20  # Allow up to 20 connections beyond pool_size
    )

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create Base class for models
Base = declarative_base()


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime.

    All timestamps are stored as naive UTC so comparisons behave the same
    on PostgreSQL and on the SQLite test database.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def get_db():
    """
    Dependency function to get database session.
    Used in FastAPI endpoints with Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """
    Initialize database.

    Imports every model so it is registered on Base.metadata, then creates
    any missing tables.
    """
    from app.models import report, alert, email_verification, feedback, push_subscription, system_settings  # noqa: F401
    Base.metadata.create_all(bind=engine)
