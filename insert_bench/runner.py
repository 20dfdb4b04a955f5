"""
Benchmark runner: one pathway, one row count, one transaction, one timing.

State machine:

    IDLE -> RUNNING -> COMMITTED
                    -> ABORTED

A runner in a terminal state may start another run. The whole workload sits
inside a single `connection.transaction()` block, which commits when the
block exits cleanly and rolls back on any exception, so a run either inserts
every row or none.

Usage:
    from insert_bench.runner import BenchmarkRunner
    from insert_bench.pathways import DiskPathway

    runner = BenchmarkRunner(conn)
    result = runner.run(DiskPathway(), 50_000)
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, FrozenSet, Generator, Optional

import psycopg
from psycopg import IsolationLevel

from insert_bench.domain.generator import RecordGenerator
from insert_bench.domain.models import BenchmarkResult, RunState
from insert_bench.errors import translate_backend_error
from insert_bench.pathways.abstract import InsertPathway, PathwayKind
from insert_bench.utils.logging import get_logger
from insert_bench.utils.profiler import ProfileStats, profile_block

log = get_logger(__name__)

_TRANSITIONS: Dict[RunState, FrozenSet[RunState]] = {
    RunState.IDLE: frozenset({RunState.RUNNING}),
    RunState.RUNNING: frozenset({RunState.COMMITTED, RunState.ABORTED}),
    RunState.COMMITTED: frozenset({RunState.RUNNING}),
    RunState.ABORTED: frozenset({RunState.RUNNING}),
}


@contextmanager
def _isolation(
    conn: psycopg.Connection, level: Optional[IsolationLevel]
) -> Generator[None, None, None]:
    """
    Apply a transaction isolation level for the duration of the block.

    Restoring the previous level can fail once the session is lost; that is
    logged so the error raised inside the block still reaches the caller.
    """
    if level is None:
        yield
        return
    previous = conn.isolation_level
    conn.isolation_level = level
    try:
        yield
    finally:
        try:
            conn.isolation_level = previous
        except psycopg.Error as exc:
            log.warning(
                "Could not restore isolation level",
                extra={"isolation_level": str(previous), "error": str(exc)},
            )


class BenchmarkRunner:
    """
    Drive a workload through a pathway and time it.

    Parameters
    ----------
    conn : psycopg.Connection
        Autocommit connection; the runner opens its own transaction block and
        is the only component that may begin or end it.
    generator : RecordGenerator, optional
        Record source for per-row pathways.
    """

    def __init__(
        self, conn: psycopg.Connection, generator: Optional[RecordGenerator] = None
    ) -> None:
        self._conn = conn
        self._generator = generator or RecordGenerator()
        self._state = RunState.IDLE

    @property
    def state(self) -> RunState:
        return self._state

    def _transition(self, target: RunState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise RuntimeError(
                f"Invalid run state transition {self._state.value} -> {target.value}"
            )
        log.debug(
            "Run state %s -> %s", self._state.value, target.value, extra={"state": target.value}
        )
        self._state = target

    def _insert_rows(self, cur: psycopg.Cursor, pathway: InsertPathway, row_count: int) -> None:
        for counter in range(row_count):
            record = self._generator.generate(counter)
            try:
                pathway.insert_one(cur, record)  # type: ignore[attr-defined]
            except psycopg.Error as exc:
                raise translate_backend_error(exc, pathway.name, counter=counter) from exc

    def _insert_batch(self, cur: psycopg.Cursor, pathway: InsertPathway, row_count: int) -> None:
        try:
            pathway.insert_fixed_batch(cur, row_count)  # type: ignore[attr-defined]
        except psycopg.Error as exc:
            raise translate_backend_error(exc, pathway.name) from exc

    def _execute(self, pathway: InsertPathway, row_count: int) -> None:
        with _isolation(self._conn, pathway.isolation_level):
            with self._conn.transaction():
                with self._conn.cursor() as cur:
                    if pathway.kind is PathwayKind.PER_ROW:
                        self._insert_rows(cur, pathway, row_count)
                    elif pathway.kind is PathwayKind.FIXED_BATCH:
                        self._insert_batch(cur, pathway, row_count)
                    else:
                        raise ValueError(f"Unsupported pathway kind: {pathway.kind!r}")

    def run(self, pathway: InsertPathway, row_count: int) -> BenchmarkResult:
        """
        Insert `row_count` rows through `pathway` in one transaction.

        Returns
        -------
        BenchmarkResult
            Only for a committed run.

        Raises
        ------
        ValueError
            If `row_count` is negative.
        BenchmarkError
            Translated backend failure; the transaction has been rolled back.
        """
        if row_count < 0:
            raise ValueError(f"row_count must be non-negative, got {row_count}")

        self._transition(RunState.RUNNING)
        stats: Optional[ProfileStats] = None
        try:
            with profile_block(pathway.name) as stats:
                try:
                    self._execute(pathway, row_count)
                except psycopg.Error as exc:
                    # Raised while opening or committing the transaction block.
                    raise translate_backend_error(exc, pathway.name) from exc
        except BaseException as exc:
            self._transition(RunState.ABORTED)
            log.warning(
                "Run aborted",
                extra={
                    "pathway": pathway.name,
                    "rows": row_count,
                    "error_type": type(exc).__name__,
                    "elapsed_ms": round(stats.elapsed_ms, 2) if stats else None,
                    "counter": getattr(exc, "counter", None),
                },
            )
            raise
        self._transition(RunState.COMMITTED)

        elapsed_ms = stats.elapsed_ms
        throughput = row_count / stats.duration_seconds if stats.duration_seconds > 0 else 0.0
        return BenchmarkResult(
            pathway=pathway.name,
            rows=row_count,
            elapsed_ms=round(elapsed_ms, 2),
            throughput_rows_per_sec=round(throughput, 2),
            cpu_percent=round(stats.cpu_percent, 1) if stats.cpu_percent is not None else None,
            rss_bytes=stats.rss_bytes,
        )


__all__ = ["BenchmarkRunner"]
