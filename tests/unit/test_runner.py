from __future__ import annotations

import random
from datetime import datetime
from decimal import Decimal

import pytest
from psycopg import IsolationLevel
from psycopg import errors as pg_errors

from insert_bench.domain.generator import RecordGenerator
from insert_bench.domain.models import RunState
from insert_bench.errors import BackendUnavailable, InsertRejected, ProvisioningError
from insert_bench.infrastructure import schema
from insert_bench.pathways import CompiledMemoryPathway, DiskPathway, MemoryPathway
from insert_bench.runner import BenchmarkRunner

ROW_COUNT = 120
REJECT_AT = 37
FIXED_NOW = datetime(2024, 5, 6, 7, 8, 9, 987_654)


@pytest.fixture
def runner(fake_conn) -> BenchmarkRunner:
    generator = RecordGenerator(clock=lambda: FIXED_NOW, rng=random.Random(11))
    return BenchmarkRunner(fake_conn, generator=generator)


@pytest.mark.parametrize("pathway_cls", [DiskPathway, MemoryPathway, CompiledMemoryPathway])
def test_run_inserts_exactly_row_count_rows(runner, fake_backend, pathway_cls) -> None:
    pathway = pathway_cls()
    before = len(fake_backend.tables[pathway.table])

    result = runner.run(pathway, ROW_COUNT)

    assert len(fake_backend.tables[pathway.table]) - before == ROW_COUNT
    assert result["pathway"] == pathway.name
    assert result["rows"] == ROW_COUNT
    assert result["elapsed_ms"] >= 0
    assert runner.state is RunState.COMMITTED
    assert fake_backend.commits == 1
    assert fake_backend.rollbacks == 0


@pytest.mark.parametrize("pathway_cls", [DiskPathway, MemoryPathway, CompiledMemoryPathway])
def test_zero_row_run_commits_empty_transaction(runner, fake_backend, pathway_cls) -> None:
    pathway = pathway_cls()

    result = runner.run(pathway, 0)

    assert result["rows"] == 0
    assert result["elapsed_ms"] >= 0
    assert fake_backend.tables[pathway.table] == []
    assert runner.state is RunState.COMMITTED


def test_per_row_pathway_inserts_in_counter_order(runner, fake_backend) -> None:
    runner.run(DiskPathway(), ROW_COUNT)

    rows = fake_backend.tables[schema.DISK_TABLE]
    assert [row[0] for row in rows] == [f"EA{i % 100:03d}-GL" for i in range(ROW_COUNT)]
    assert all(row[1] == datetime(2024, 5, 6, 7, 8, 9, 980_000) for row in rows)
    assert all(Decimal("0") <= row[2] < Decimal("100") for row in rows)


def test_per_row_pathway_issues_one_call_per_row(runner, fake_backend) -> None:
    runner.run(MemoryPathway(), ROW_COUNT)

    calls = [sql for sql, _ in fake_backend.executed if sql.startswith("CALL")]
    assert len(calls) == ROW_COUNT
    assert set(calls) == {f"CALL {schema.MEMORY_INSERT_PROCEDURE}(%s, %s, %s, %s)"}


def test_compiled_pathway_calls_routine_once_and_skips_generator(fake_conn, fake_backend) -> None:
    class _ExplodingGenerator(RecordGenerator):
        def generate(self, counter: int):
            raise AssertionError("compiled pathway must not use the record generator")

    runner = BenchmarkRunner(fake_conn, generator=_ExplodingGenerator())

    runner.run(CompiledMemoryPathway(), ROW_COUNT)

    assert fake_backend.executed == [
        (f"CALL {schema.COMPILED_MEMORY_BATCH_PROCEDURE}(%s)", (ROW_COUNT,))
    ]


def test_compiled_pathway_single_row_uses_fixed_template(runner, fake_backend) -> None:
    for _ in range(3):
        runner.run(CompiledMemoryPathway(), 1)

    rows = fake_backend.tables[schema.COMPILED_MEMORY_TABLE]
    assert len(rows) == 3
    for registration, _, longitude, latitude in rows:
        assert registration == "EA-232-JB"
        assert longitude == Decimal("125.4")
        assert latitude == Decimal("132.7")


def test_rejected_row_aborts_whole_run(runner, fake_backend) -> None:
    fake_backend.tables[schema.DISK_TABLE].append(("EA999-GL", FIXED_NOW, Decimal(1), Decimal(1)))
    fake_backend.reject_call = REJECT_AT

    with pytest.raises(InsertRejected) as excinfo:
        runner.run(DiskPathway(), ROW_COUNT)

    assert excinfo.value.counter == REJECT_AT
    assert excinfo.value.pathway == "disk"
    assert isinstance(excinfo.value.__cause__, pg_errors.CheckViolation)
    assert len(fake_backend.tables[schema.DISK_TABLE]) == 1
    assert fake_backend.rollbacks == 1
    assert fake_backend.commits == 0
    assert runner.state is RunState.ABORTED


def test_rejected_batch_has_no_counter(runner, fake_backend) -> None:
    fake_backend.reject_call = 0

    with pytest.raises(InsertRejected) as excinfo:
        runner.run(CompiledMemoryPathway(), ROW_COUNT)

    assert excinfo.value.counter is None
    assert fake_backend.tables[schema.COMPILED_MEMORY_TABLE] == []


def test_connection_loss_surfaces_as_backend_unavailable(runner, fake_backend) -> None:
    fake_backend.reject_call = 3
    fake_backend.error_factory = lambda: pg_errors.AdminShutdown("terminating connection")

    with pytest.raises(BackendUnavailable):
        runner.run(MemoryPathway(), ROW_COUNT)

    assert fake_backend.tables[schema.MEMORY_TABLE] == []
    assert runner.state is RunState.ABORTED


def test_missing_procedure_surfaces_as_provisioning_error(runner, fake_backend) -> None:
    del fake_backend.procedures[schema.DISK_INSERT_PROCEDURE]

    with pytest.raises(ProvisioningError):
        runner.run(DiskPathway(), 5)


def test_runner_can_run_again_after_abort(runner, fake_backend) -> None:
    fake_backend.reject_call = 0
    with pytest.raises(InsertRejected):
        runner.run(DiskPathway(), 10)

    fake_backend.reject_call = None
    result = runner.run(DiskPathway(), 10)

    assert result["rows"] == 10
    assert runner.state is RunState.COMMITTED
    assert len(fake_backend.tables[schema.DISK_TABLE]) == 10


def test_negative_row_count_is_rejected_before_running(runner, fake_backend) -> None:
    with pytest.raises(ValueError, match="non-negative"):
        runner.run(DiskPathway(), -1)

    assert runner.state is RunState.IDLE
    assert fake_backend.executed == []


def test_new_runner_starts_idle(fake_conn) -> None:
    assert BenchmarkRunner(fake_conn).state is RunState.IDLE


def test_memory_pathways_run_under_snapshot_isolation(runner, fake_conn, fake_backend) -> None:
    runner.run(DiskPathway(), 1)
    runner.run(MemoryPathway(), 1)
    runner.run(CompiledMemoryPathway(), 1)

    assert fake_backend.isolation_levels == [
        None,
        IsolationLevel.REPEATABLE_READ,
        IsolationLevel.REPEATABLE_READ,
    ]
    assert fake_conn.isolation_level is None


def test_isolation_level_restored_after_abort(runner, fake_conn, fake_backend) -> None:
    fake_backend.reject_call = 0

    with pytest.raises(InsertRejected):
        runner.run(MemoryPathway(), 3)

    assert fake_conn.isolation_level is None


def test_connection_loss_is_not_masked_by_isolation_restore(fake_conn, fake_backend) -> None:
    def drop_session():
        fake_conn.dropped = True
        return pg_errors.AdminShutdown("terminating connection")

    fake_backend.reject_call = 3
    fake_backend.error_factory = drop_session
    runner = BenchmarkRunner(fake_conn, generator=RecordGenerator(rng=random.Random(3)))

    with pytest.raises(BackendUnavailable):
        runner.run(MemoryPathway(), 10)

    assert fake_backend.tables[schema.MEMORY_TABLE] == []
    assert runner.state is RunState.ABORTED
