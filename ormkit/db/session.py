"""Database engine and session management."""

import logging
import time
from collections.abc import Generator
from typing import Annotated, Any, Optional

from fastapi import Depends
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ormkit.core.config import settings

logger = logging.getLogger(__name__)


def create_db_engine(url: Optional[str] = None, **overrides: Any) -> Engine:
    """Create an engine configured from settings.

    ``overrides`` are passed to ``create_engine`` and win over the defaults.
    """
    url = url or settings.database_url
    connect_args = {}

    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
        pool_config = {
            "pool_pre_ping": True,
            "pool_recycle": settings.db_pool_recycle,
        }
    else:
        pool_config = {
            "pool_size": settings.db_pool_size,
            "max_overflow": settings.db_max_overflow,
            "pool_pre_ping": True,
            "pool_recycle": settings.db_pool_recycle,
        }

    options = {"connect_args": connect_args, "echo": settings.debug, **pool_config}
    options.update(overrides)
    engine = create_engine(url, **options)

    # Enable foreign key enforcement for SQLite
    if url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    if settings.slow_query_threshold > 0:
        _install_slow_query_logging(engine, settings.slow_query_threshold)

    return engine


def _install_slow_query_logging(engine: Engine, threshold: float) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        conn.info.setdefault("query_start_time", []).append(time.monotonic())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        total = time.monotonic() - conn.info["query_start_time"].pop()
        if total > threshold:
            logger.warning(f"Slow query ({total:.2f}s): {statement[:200]}")


engine = create_db_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Get database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Type alias for dependency injection
DbSession = Annotated[Session, Depends(get_db)]
