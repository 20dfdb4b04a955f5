"""
In-process stand-in for a psycopg connection.

`FakeBackend` keeps the three benchmark tables as lists and understands the
handful of statements the benchmark issues: procedure CALLs, the
provisioning check, and row counts. Transaction blocks stage rows and only
publish them on a clean exit, so atomicity can be asserted without Postgres.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

import psycopg
import pytest
from psycopg import errors as pg_errors

from insert_bench.infrastructure import schema

_PROCEDURE_TABLES = {
    schema.DISK_INSERT_PROCEDURE: schema.DISK_TABLE,
    schema.MEMORY_INSERT_PROCEDURE: schema.MEMORY_TABLE,
    schema.COMPILED_MEMORY_BATCH_PROCEDURE: schema.COMPILED_MEMORY_TABLE,
}


class FakeBackend:
    def __init__(self) -> None:
        self.tables: Dict[str, List[tuple]] = {table: [] for table in _PROCEDURE_TABLES.values()}
        self.procedures: Dict[str, str] = dict(_PROCEDURE_TABLES)
        self.reject_call: Optional[int] = None
        self.error_factory = lambda: pg_errors.CheckViolation("row violates check constraint")
        self.executed: List[tuple[str, Any]] = []
        self.commits = 0
        self.rollbacks = 0
        self.isolation_levels: List[Any] = []

    def drop(self, table: str) -> None:
        del self.tables[table]
        for procedure, target in list(self.procedures.items()):
            if target == table:
                del self.procedures[procedure]


class _FakeTransaction:
    def __init__(self, conn: FakeConnection) -> None:
        self._conn = conn

    def __enter__(self) -> _FakeTransaction:
        backend = self._conn.backend
        backend.isolation_levels.append(self._conn.isolation_level)
        self._conn.staged = {table: [] for table in backend.tables}
        self._conn.calls_in_transaction = 0
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        del exc, tb
        backend = self._conn.backend
        if exc_type is None:
            for table, rows in self._conn.staged.items():
                backend.tables[table].extend(rows)
            backend.commits += 1
        else:
            backend.rollbacks += 1
        self._conn.staged = None
        return False


class FakeCursor:
    def __init__(self, conn: FakeConnection) -> None:
        self._conn = conn
        self._result: Optional[tuple] = None

    def _call(self, sql: str, params: tuple) -> None:
        backend = self._conn.backend
        procedure = sql[len("CALL ") : sql.index("(")]
        if procedure not in backend.procedures:
            raise pg_errors.UndefinedFunction(f"procedure {procedure} does not exist")
        table = backend.procedures[procedure]

        call_index = self._conn.calls_in_transaction
        self._conn.calls_in_transaction += 1
        if backend.reject_call is not None and call_index == backend.reject_call:
            raise backend.error_factory()

        if len(params) == 4:
            rows = [tuple(params)]
        else:
            (row_count,) = params
            rows = [
                (
                    schema.TEMPLATE_REGISTRATION_NUMBER,
                    datetime.now(),
                    schema.TEMPLATE_LONGITUDE,
                    schema.TEMPLATE_LATITUDE,
                )
                for _ in range(row_count)
            ]
        target = (
            self._conn.staged[table] if self._conn.staged is not None else backend.tables[table]
        )
        target.extend(rows)

    def execute(self, sql: str, params: Optional[tuple] = None) -> None:
        backend = self._conn.backend
        backend.executed.append((sql, params))
        if sql.startswith("CALL "):
            self._call(sql, params or ())
        elif "to_regclass" in sql:
            table, procedure = params  # type: ignore[misc]
            self._result = (table in backend.tables, procedure in backend.procedures)
        elif sql.startswith("SELECT count(*) FROM "):
            table = sql.split()[-1]
            if table not in backend.tables:
                raise pg_errors.UndefinedTable(f"relation {table} does not exist")
            self._result = (len(backend.tables[table]),)
        else:
            raise AssertionError(f"unexpected statement: {sql}")

    def fetchone(self) -> Optional[tuple]:
        return self._result

    def __enter__(self) -> FakeCursor:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        del exc_type, exc, tb
        return False


class FakeConnection:
    def __init__(self, backend: FakeBackend) -> None:
        self.backend = backend
        self.dropped = False
        self._isolation_level = None
        self.staged: Optional[Dict[str, List[tuple]]] = None
        self.calls_in_transaction = 0
        self.closed = False

    @property
    def isolation_level(self):
        return self._isolation_level

    @isolation_level.setter
    def isolation_level(self, value) -> None:
        # psycopg refuses the change once the session status is UNKNOWN.
        if self.dropped:
            raise psycopg.ProgrammingError(
                "can't change 'isolation_level' now: connection in transaction status UNKNOWN"
            )
        self._isolation_level = value

    def transaction(self) -> _FakeTransaction:
        return _FakeTransaction(self)

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def fake_conn(fake_backend: FakeBackend) -> FakeConnection:
    return FakeConnection(fake_backend)
