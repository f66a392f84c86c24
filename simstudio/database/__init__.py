"""
Database engine, session factory, and metadata shared across the application.
"""

from __future__ import annotations

from datetime import datetime
import logging
import random
import time
from typing import Any, Callable, Generator, TypeVar

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from simstudio.core.config import settings
from simstudio.core.exceptions import UpstreamServiceException

logger = logging.getLogger(__name__)

# Engine tuning for the hosted Postgres pooler:
# - pool_pre_ping + pool_recycle drop stale pooled connections after pooler restarts.
# - statement_timeout caps runaway queries so the API layer recovers quickly.
_POSTGRES_CONNECT_ARGS: dict[str, Any] = {
    "keepalives": 1,
    "keepalives_idle": 15,
    "keepalives_interval": 5,
    "keepalives_count": 3,
    "options": "-c statement_timeout=15000",
    "connect_timeout": 5,
    "application_name": "simstudio_api",
}


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    """Pick pool and connect arguments for the configured backend."""
    if _is_sqlite(db_url):
        kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        # In-memory databases live on a single connection
        if db_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs

    return {
        "poolclass": QueuePool,
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_timeout": settings.database_pool_timeout,
        "pool_recycle": 30,
        "pool_pre_ping": True,
        "pool_use_lifo": True,
        "connect_args": dict(_POSTGRES_CONNECT_ARGS),
    }


def build_engine(db_url: str) -> Engine:
    """Create an engine for ``db_url`` with the project's pool settings."""
    created = create_engine(db_url, echo=settings.database_echo, **_build_engine_kwargs(db_url))

    if _is_sqlite(db_url):

        @event.listens_for(created, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    @event.listens_for(created, "connect")
    def receive_connect(dbapi_connection: Any, connection_record: Any) -> None:
        connection_record.info["connect_time"] = datetime.now()
        logger.debug("Database connection established")

    return created


db_url = settings.get_database_url()
engine: Engine = build_engine(db_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Get database session with proper cleanup."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


T = TypeVar("T")
# Only target the transient disconnect errors the hosted pooler emits on restarts.
_RETRYABLE_ERROR_SNIPPETS = (
    "server closed the connection",
    "ssl connection has been closed unexpectedly",
    "connection reset by peer",
    "could not connect to server",
)


def _is_retryable_db_error(exc: OperationalError) -> bool:
    if getattr(exc, "connection_invalidated", False):
        return True
    message = str(exc).lower()
    return any(snippet in message for snippet in _RETRYABLE_ERROR_SNIPPETS)


def _retry_delay(attempt: int) -> float:
    base = 0.1 * (2 ** (attempt - 1))
    return base + random.uniform(0, 0.05 * attempt)


def with_db_retry(op_name: str, func: Callable[[], T], *, max_attempts: int | None = None) -> T:
    """
    Execute a DB operation, retrying transient disconnects with backoff.

    Non-transient errors propagate unchanged. A transient error that survives
    every attempt surfaces as UpstreamServiceException.
    """
    attempts = max_attempts or settings.db_retry_attempts
    attempt = 1
    while True:
        try:
            return func()
        except OperationalError as exc:
            if not _is_retryable_db_error(exc):
                raise
            if attempt >= attempts:
                logger.error(
                    "Transient DB failure persisted",
                    extra={"event": "db_retry_exhausted", "op": op_name, "attempt": attempt},
                )
                raise UpstreamServiceException(
                    "The database is temporarily unavailable. Please retry.",
                    code="DATABASE_UNAVAILABLE",
                    details={"operation": op_name},
                ) from exc

            delay = _retry_delay(attempt)
            logger.warning(
                "Transient DB failure detected, retrying",
                extra={
                    "event": "db_retry",
                    "op": op_name,
                    "attempt": attempt,
                    "delay": delay,
                    "error": str(exc),
                },
            )
            time.sleep(delay)
            attempt += 1


__all__ = [
    "Base",
    "SessionLocal",
    "build_engine",
    "engine",
    "get_db",
    "with_db_retry",
]
