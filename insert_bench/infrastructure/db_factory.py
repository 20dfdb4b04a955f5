"""
Database connection factory for the insert pathway benchmark.

The benchmark is single-threaded and sequential, so it needs exactly one
connection per session; there is no pool. Connections are opened in
autocommit mode: the runner opens explicit `connection.transaction()` blocks,
which then map one-to-one onto server transactions.

Includes retry logic for transient connection failures using tenacity.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Optional

import psycopg
from psycopg import Connection
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from insert_bench.config import get_settings
from insert_bench.errors import BackendUnavailable
from insert_bench.utils.logging import get_logger

log = get_logger(__name__)


def build_dsn() -> str:
    """Compose a DSN string from settings."""
    settings = get_settings()
    return (
        f"postgresql://{settings.db_user}:{settings.db_password}"
        f"@{settings.db_host}:{settings.db_port}/{settings.db_name}"
    )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((psycopg.OperationalError, psycopg.InterfaceError)),
)
def _connect(dsn: str, connect_timeout: int) -> Connection:
    return psycopg.connect(dsn, autocommit=True, connect_timeout=connect_timeout)


def get_sync_connection(dsn_override: Optional[str] = None) -> Connection:
    """
    Open an autocommit connection, retrying transient failures.

    Retries up to 3 times with exponential backoff.

    Raises
    ------
    BackendUnavailable
        If the connection still fails after all retry attempts.
    """
    dsn = dsn_override or build_dsn()
    try:
        return _connect(dsn, get_settings().db_connect_timeout)
    except RetryError as exc:
        cause = exc.last_attempt.exception()
        log.error("Could not connect to backend", extra={"error": str(cause)})
        raise BackendUnavailable(f"could not connect to backend: {cause}") from cause


@contextmanager
def connection_scope(dsn_override: Optional[str] = None) -> Generator[Connection, None, None]:
    """
    Context manager yielding a connection that is closed on exit.

    Example
    -------
        with connection_scope() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
    """
    conn = get_sync_connection(dsn_override)
    try:
        yield conn
    finally:
        conn.close()


__all__ = [
    "build_dsn",
    "connection_scope",
    "get_sync_connection",
]
