"""Database connection and session management."""

from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session

from leadgen_pipeline.config import settings

# Base class for models
Base = declarative_base()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Create the engine on first use so importing models never needs a driver."""
    # Convert legacy postgres:// URLs
    database_url = settings.DATABASE_URL.replace("postgres://", "postgresql://", 1)

    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=settings.LOG_LEVEL == "DEBUG",
            connect_args={"check_same_thread": False}
        )

    return create_engine(
        database_url,
        echo=settings.LOG_LEVEL == "DEBUG",
        pool_pre_ping=True,
        pool_size=20,
        max_overflow=10
    )


def get_session_factory() -> sessionmaker:
    """Session factory bound to the configured engine."""
    return sessionmaker(
        bind=get_engine(),
        class_=Session,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False
    )


def get_db():
    """Dependency to get database session."""
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()


def init_db(engine: Engine = None) -> None:
    """Create all tables (development / tests)."""
    from leadgen_pipeline import models  # noqa: F401  register mappers

    Base.metadata.create_all(engine or get_engine())
