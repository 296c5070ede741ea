"""Database configuration and session management."""

from __future__ import annotations

from collections.abc import Generator
from functools import lru_cache

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import get_settings


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url``.

    In-memory SQLite databases share a single connection so every session sees
    the same tables.
    """

    if database_url.startswith("sqlite"):
        options: dict[str, object] = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in {"sqlite://", "sqlite:///"}:
            options["poolclass"] = StaticPool
        return create_engine(database_url, **options)
    return create_engine(database_url, pool_pre_ping=True)


@lru_cache
def get_engine() -> Engine:
    """Return the engine configured through ``DATABASE_URL``."""

    settings = get_settings()
    return build_engine(settings.database_url)


@lru_cache
def get_session_factory() -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def reset_database_cache() -> None:
    """Dispose the cached engine so the next call picks up new settings."""

    if get_engine.cache_info().currsize:
        get_engine().dispose()
    get_session_factory.cache_clear()
    get_engine.cache_clear()


def initialize_database(engine: Engine | None = None) -> None:
    """Ensure all ORM models have corresponding database tables."""

    from app.infrastructure import models  # noqa: F401  # ensure models are imported

    target = engine or get_engine()
    Base.metadata.create_all(bind=target, checkfirst=True)
    logger.debug("Database tables ensured on %s", target.url.render_as_string())


def get_db() -> Generator[Session, None, None]:
    """Yield a database session and close it afterwards."""

    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
