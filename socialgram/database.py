"""Database layer utilities for the locally persisted auth state."""
from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import get_settings

settings = get_settings()

engine: Engine = create_engine(settings.session_database_url, pool_pre_ping=True, future=True)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
    expire_on_commit=False,
)

Base = declarative_base()


def create_session() -> Session:
    """Return a new SQLAlchemy session outside of a request scope."""
    return SessionLocal()


def init_db(bind: Engine | None = None) -> None:
    """Create the auth state table when missing."""
    # Import models to ensure they are registered on the metadata before create_all runs.
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


__all__ = [
    "Base",
    "SessionLocal",
    "create_session",
    "init_db",
]
