"""
Database configuration and connection management.

Builds the SQLAlchemy engine backing the local store. SQLite is the
default embedded store; PostgreSQL URLs are accepted as well.
"""

import logging
import time
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from .config import settings
from .models import Base

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None

# SQLite lower() only folds ASCII
SQLITE_LOWER_FUNCTION = "py_lower"


def get_connect_args(db_url: str) -> dict:
    """
    Get database-specific connection arguments.

    Args:
        db_url: Database connection URL

    Returns:
        Connection arguments dict
    """
    if db_url.startswith("sqlite"):
        # Writes run on worker threads
        return {"check_same_thread": False}
    return {}


def _is_memory_sqlite(db_url: str) -> bool:
    return db_url.startswith("sqlite") and (
        ":memory:" in db_url or db_url.rstrip("/") in ("sqlite:", "sqlite:/")
    )


def create_store_engine(db_url: str) -> Engine:
    """
    Create an engine for the local store.

    In-memory SQLite databases use a single shared connection so every
    thread sees the same data. File databases are switched to WAL mode
    so readers are not blocked by the writer.

    Args:
        db_url: SQLAlchemy database URL

    Returns:
        Configured engine
    """
    safe_url = db_url.split("@")[-1] if "@" in db_url else db_url
    logger.info(f"Using database: {safe_url}")

    if _is_memory_sqlite(db_url):
        engine = create_engine(
            db_url,
            connect_args=get_connect_args(db_url),
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            db_url,
            connect_args=get_connect_args(db_url),
            pool_pre_ping=True,
        )

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _register_sqlite_functions)
        if not _is_memory_sqlite(db_url):
            event.listen(engine, "connect", _set_sqlite_pragmas)

    return engine


def _register_sqlite_functions(dbapi_connection, connection_record):
    """Register a Unicode-aware lowercase function on new SQLite connections."""
    dbapi_connection.create_function(
        SQLITE_LOWER_FUNCTION, 1, _lower_or_none, deterministic=True
    )


def _lower_or_none(value):
    return value.lower() if isinstance(value, str) else value


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    """Enable WAL journaling on new SQLite connections."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


# Query performance tracking
@event.listens_for(Engine, "before_cursor_execute")
def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Track query start time."""
    conn.info.setdefault("query_start_time", []).append(time.time())


@event.listens_for(Engine, "after_cursor_execute")
def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    """Log slow queries."""
    start_times = conn.info.get("query_start_time")
    if not start_times:
        return
    total_time_ms = (time.time() - start_times.pop()) * 1000

    if total_time_ms > settings.QUERY_LOG_THRESHOLD_MS:
        logger.warning(
            f"Slow query detected: {total_time_ms:.2f}ms",
            extra={
                "query_time_ms": total_time_ms,
                "statement": statement[:200],
                "executemany": executemany,
            },
        )


def init_db(engine: Engine) -> None:
    """
    Initialize database tables.

    Uses checkfirst=True to safely handle existing tables.
    """
    logger.info("Initializing database tables...")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Database initialized successfully")


def get_engine() -> Engine:
    """
    Get the process-wide engine, creating it from settings on first use.

    Returns:
        SQLAlchemy engine for the local store
    """
    global _engine
    if _engine is None:
        _engine = create_store_engine(settings.DATABASE_URL)
    return _engine


def dispose_engine() -> None:
    """Dispose the process-wide engine and its connection pool."""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
