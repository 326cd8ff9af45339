"""Database engine and session factory.

The engine is built at import time from ``settings.DATABASE_URL``. In local
development an unreachable server is replaced by a SQLite file so the API can
boot without Postgres.
"""

from __future__ import annotations

import logging
import os
import time
from time import perf_counter
from typing import Any, Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from lexify.core.config import settings

logger = logging.getLogger(__name__)

SQLITE_FALLBACK_URL = "sqlite:///./lexify_local.db"

# Populated by ``configure_database``.
engine: Engine
SessionLocal: sessionmaker


def _engine_kwargs(url: str) -> dict[str, Any]:
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True}

    kwargs: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if parsed.database in (None, "", ":memory:"):
        # A single shared connection, otherwise every checkout sees an empty database.
        kwargs["poolclass"] = StaticPool
    return kwargs


def _should_enable_sqlite_fallback() -> bool:
    if os.getenv("DISABLE_SQLITE_FALLBACK") == "1":
        return False
    return (settings.ENVIRONMENT or "").lower() in {"development", "local"}


def _install_slow_query_logger(target: Engine) -> None:
    """Warn when a statement runs longer than SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS."""

    threshold_ms = max(settings.SQLALCHEMY_SLOW_QUERY_THRESHOLD_MS or 0, 0)
    if threshold_ms == 0:
        return

    @event.listens_for(target, "before_cursor_execute")
    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._lexify_query_start = perf_counter()

    @event.listens_for(target, "after_cursor_execute")
    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        start = getattr(context, "_lexify_query_start", None)
        if start is None:
            return

        elapsed_ms = (perf_counter() - start) * 1000.0
        if elapsed_ms < threshold_ms:
            return

        snippet = " ".join(str(statement).split())
        if len(snippet) > 200:
            snippet = snippet[:197] + "..."
        logger.warning("Slow SQL (%.1f ms) - %s", elapsed_ms, snippet)


def _verify_database_connection(target: Engine) -> None:
    """Run ``SELECT 1`` with exponential backoff between attempts."""

    if target.dialect.name == "sqlite":
        with target.connect() as connection:
            connection.execute(text("SELECT 1"))
        return

    max_retries = max(settings.DATABASE_CONNECTION_MAX_RETRIES, 1)
    backoff = max(settings.DATABASE_CONNECTION_RETRY_BACKOFF_SECONDS, 0.1)
    last_exc: Optional[Exception] = None

    for attempt in range(1, max_retries + 1):
        try:
            with target.connect() as connection:
                connection.execute(text("SELECT 1"))
            return
        except (OperationalError, OSError) as exc:
            last_exc = exc
            if attempt == max_retries:
                break
            delay = min(30.0, backoff * (2 ** (attempt - 1)))
            logger.warning(
                "Database connection failed (attempt %s/%s): %s. Retrying in %.1f s.",
                attempt,
                max_retries,
                exc,
                delay,
            )
            time.sleep(delay)

    if last_exc is not None:
        raise last_exc


def configure_database(database_url: str | None = None, *, allow_fallback: bool = True) -> None:
    """Build the engine and the session factory for ``database_url``."""

    global engine, SessionLocal

    target_url = str(database_url or settings.DATABASE_URL)
    logger.info("Configuring database: %s", make_url(target_url).render_as_string(hide_password=True))

    candidate = create_engine(target_url, **_engine_kwargs(target_url))
    _install_slow_query_logger(candidate)

    try:
        _verify_database_connection(candidate)
    except (OperationalError, OSError) as exc:
        candidate.dispose()
        if allow_fallback and _should_enable_sqlite_fallback():
            logger.warning("Database unreachable (%s). Falling back to SQLite.", exc)
            configure_database(SQLITE_FALLBACK_URL, allow_fallback=False)
            return
        logger.error("Database connection failed: %s", exc)
        raise

    engine = candidate
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


configure_database()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
