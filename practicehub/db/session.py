"""Session forge."""

from __future__ import annotations

import logging
import os
import time

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from practicehub.core.config import get_settings
from practicehub.db.base import Base, import_models

settings = get_settings()
logger = logging.getLogger("db.session")


def build_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine with dialect-appropriate connection arguments."""
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        # In-memory databases live per connection; share one across threads
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        sqlite_engine = create_engine(url, echo=echo, **kwargs)

        # SQLite ignores foreign keys unless asked per connection
        @event.listens_for(sqlite_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return sqlite_engine

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "5")),
        pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "5")),
        pool_recycle=300,
        echo=echo,
    )


runtime_url = settings.get_database_url()
if not runtime_url:
    raise RuntimeError("DATABASE_URL not configured")

engine = build_engine(runtime_url, echo=settings.debug)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine | None = None) -> None:
    """Create all tables (schema migrations are out of scope)."""
    import_models()
    Base.metadata.create_all(bind=bind or engine)


def get_db():
    t0 = time.perf_counter()
    db = SessionLocal()
    acquire_ms = int((time.perf_counter() - t0) * 1000)
    if acquire_ms > 50:
        logger.warning("db_acquire_ms=%d", acquire_ms)
    try:
        yield db
    finally:
        db.close()
