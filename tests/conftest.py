"""
Pytest configuration for the insert pathway benchmark.

Provides fixtures for:
- Database connection management
- Schema provisioning and per-test table cleanup
- Settings override for integration tests
"""

from __future__ import annotations

import os
from typing import Generator

import psycopg
import pytest

from insert_bench.config import Settings
from insert_bench.infrastructure.schema import (
    COMPILED_MEMORY_TABLE,
    DISK_TABLE,
    MEMORY_TABLE,
    provision,
    truncate,
)

BENCHMARK_TABLES = (DISK_TABLE, MEMORY_TABLE, COMPILED_MEMORY_TABLE)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "insert_bench"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped autocommit connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn, autocommit=True)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_provisioned(db_connection: psycopg.Connection) -> bool:
    """
    Recreate the benchmark schemas once per session.
    """
    provision(db_connection, reset=True)
    return True


@pytest.fixture(scope="function")
def clean_tables(db_connection: psycopg.Connection, db_schema_provisioned: bool):
    """
    Empty every benchmark table before and after each test function.
    """
    for table in BENCHMARK_TABLES:
        truncate(db_connection, table)
    yield
    for table in BENCHMARK_TABLES:
        truncate(db_connection, table)
