"""
Orchestrator for running insert pathways back to back and persisting results.

Usage (example from CLI):
    from insert_bench.orchestrator import RunConfig, run_pathways

    results = run_pathways(RunConfig(pathway_names=["disk", "memory"], row_count=10_000))
    print(results)

Pathways run strictly one after another on a single connection. Every
selected pathway is checked for provisioning before the first run starts.

Outputs are saved to `results/` by default:
- `results/latest.json` (last run)
- `results/run-<timestamp>.json` (timestamped archive)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Sequence

import psycopg

from insert_bench.config import get_settings
from insert_bench.domain.generator import RecordGenerator
from insert_bench.domain.models import BenchmarkResult
from insert_bench.errors import BenchmarkError, translate_backend_error
from insert_bench.infrastructure.db_factory import connection_scope
from insert_bench.infrastructure.schema import count_rows, verify_provisioned
from insert_bench.pathways import InsertPathway, available_pathways, resolve_pathway
from insert_bench.reporter import ReportEmitter
from insert_bench.runner import BenchmarkRunner
from insert_bench.utils.logging import get_logger

log = get_logger(__name__)

FailurePolicy = Literal["tolerant", "strict"]


@dataclass(frozen=True)
class RunConfig:
    """
    Parameters for one orchestrated benchmark session.

    Attributes
    ----------
    pathway_names : sequence of str
        Pathways to run, in order. ["all"] runs every registered pathway.
    row_count : int | None
        Rows per pathway. Defaults to settings.benchmark_rows.
    results_dir : Path | str | None
        Directory for JSON artifacts. Defaults to settings.results_dir.
    persist : bool
        Whether to write results to disk.
    failure_policy : "tolerant" | "strict"
        Tolerant logs a failed run and moves on; strict re-raises it.
    """

    pathway_names: Sequence[str] = field(default_factory=lambda: ["all"])
    row_count: Optional[int] = None
    results_dir: Optional[Path | str] = None
    persist: bool = True
    failure_policy: FailurePolicy = "tolerant"


def _expand_names(names: Sequence[str]) -> List[str]:
    if list(names) == ["all"]:
        return available_pathways()
    expanded: List[str] = []
    for name in names:
        if name not in expanded:
            expanded.append(name)
    return expanded


def _count(conn: psycopg.Connection, pathway: InsertPathway) -> int:
    try:
        return count_rows(conn, pathway.table)
    except psycopg.Error as exc:
        raise translate_backend_error(exc, pathway.name) from exc


def _persist_results(payload: dict, results_dir: Path) -> None:
    results_dir.mkdir(parents=True, exist_ok=True)
    latest_path = results_dir / "latest.json"
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    archive_path = results_dir / f"run-{timestamp}.json"

    for path in (latest_path, archive_path):
        with path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, sort_keys=True)

    log.info("Results persisted", extra={"latest": str(latest_path), "archive": str(archive_path)})


def _run_one(
    conn: psycopg.Connection,
    runner: BenchmarkRunner,
    pathway: InsertPathway,
    row_count: int,
) -> BenchmarkResult:
    log.info(f"[PATHWAY START] {pathway.name}", extra={"pathway": pathway.name, "rows": row_count})
    before = _count(conn, pathway)
    result = runner.run(pathway, row_count)
    try:
        inserted = _count(conn, pathway) - before
    except BenchmarkError as exc:
        # The run has committed; only the delta check is lost.
        log.warning(
            f"[ROW COUNT UNVERIFIED] {pathway.name}",
            extra={"pathway": pathway.name, "expected": row_count, "error": str(exc)},
        )
    else:
        if inserted != row_count:
            log.warning(
                f"[ROW COUNT MISMATCH] {pathway.name}",
                extra={"pathway": pathway.name, "expected": row_count, "inserted": inserted},
            )
    log.info(
        f"[PATHWAY COMMITTED] {pathway.name}",
        extra={
            "pathway": pathway.name,
            "rows": result["rows"],
            "elapsed_ms": result["elapsed_ms"],
        },
    )
    return result


def _run_all(
    conn: psycopg.Connection,
    pathways: List[InsertPathway],
    row_count: int,
    config: RunConfig,
    emitter: ReportEmitter,
    generator: Optional[RecordGenerator],
) -> tuple[List[BenchmarkResult], List[Dict[str, Any]]]:
    for pathway in pathways:
        try:
            verify_provisioned(conn, pathway)
        except psycopg.Error as exc:
            raise translate_backend_error(exc, pathway.name) from exc

    runner = BenchmarkRunner(conn, generator=generator)
    results: List[BenchmarkResult] = []
    failures: List[Dict[str, Any]] = []
    for pathway in pathways:
        try:
            result = _run_one(conn, runner, pathway, row_count)
        except BenchmarkError as exc:
            log.exception(f"[PATHWAY FAILED] {pathway.name}", extra={"pathway": pathway.name})
            if config.failure_policy == "strict":
                raise
            failures.append(
                {
                    "pathway": pathway.name,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                    "counter": getattr(exc, "counter", None),
                }
            )
            continue
        emitter.emit(result)
        results.append(result)
    return results, failures


def run_pathways(
    config: Optional[RunConfig] = None,
    conn: Optional[psycopg.Connection] = None,
    emitter: Optional[ReportEmitter] = None,
    generator: Optional[RecordGenerator] = None,
) -> List[BenchmarkResult]:
    """
    Run the selected pathways sequentially and optionally persist the results.

    Parameters
    ----------
    config : RunConfig | None
        Session parameters. Defaults to every pathway at the configured row count.
    conn : psycopg.Connection | None
        Autocommit connection to use. If None, one is opened and closed here.
    emitter : ReportEmitter | None
        Receives each committed result as soon as it exists.
    generator : RecordGenerator | None
        Record source for per-row pathways.

    Returns
    -------
    List[BenchmarkResult]
        One entry per committed run, in run order. Failed runs have no entry.

    Raises
    ------
    ValueError
        Unknown pathway name or negative row count.
    ProvisioningError
        A selected pathway is not provisioned; nothing has run.
    BenchmarkError
        Under the strict failure policy, the first failed run.
    """
    config = config or RunConfig()
    settings = get_settings()
    row_count = config.row_count if config.row_count is not None else settings.benchmark_rows
    if row_count < 0:
        raise ValueError(f"row_count must be non-negative, got {row_count}")

    names = _expand_names(config.pathway_names)
    pathways = [resolve_pathway(name) for name in names]
    emitter = emitter or ReportEmitter()

    if conn is None:
        with connection_scope() as owned:
            results, failures = _run_all(owned, pathways, row_count, config, emitter, generator)
    else:
        results, failures = _run_all(conn, pathways, row_count, config, emitter, generator)

    if config.persist:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "row_count": row_count,
            "pathways": names,
            "results": results,
            "failures": failures,
        }
        _persist_results(payload, Path(config.results_dir or settings.results_dir))

    log.info(
        f"[ORCHESTRATOR COMPLETE] {len(results)}/{len(names)} pathway(s) committed",
        extra={"pathways": names, "failed": [f["pathway"] for f in failures]},
    )

    return results


__all__ = [
    "RunConfig",
    "available_pathways",
    "run_pathways",
]
