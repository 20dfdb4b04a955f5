"""
Insert Pathway Benchmark - insert throughput across PostgreSQL execution paths.

Times the same logical workload (insert N synthetic vehicle location rows in
one transaction) through three structurally different paths:

- Disk: WAL-logged table, interpreted procedure call per row
- Memory: unlogged table, pre-parsed procedure call per row
- Compiled memory: unlogged table, one set-based routine for all rows

The comparison isolates the cost of durable vs. in-memory storage and of
per-row dispatch vs. a single precompiled unit.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from insert_bench.config import Settings, get_settings
from insert_bench.domain import BenchmarkResult, LocationRecord, RecordGenerator, RunState
from insert_bench.errors import (
    BackendError,
    BackendUnavailable,
    BenchmarkError,
    InsertRejected,
    ProvisioningError,
)
from insert_bench.orchestrator import RunConfig, run_pathways
from insert_bench.pathways import (
    CompiledMemoryPathway,
    DiskPathway,
    InsertPathway,
    MemoryPathway,
    PathwayKind,
    available_pathways,
)
from insert_bench.reporter import ReportEmitter, print_results
from insert_bench.runner import BenchmarkRunner
from insert_bench.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "BenchmarkResult",
    "LocationRecord",
    "RecordGenerator",
    "RunState",
    # Errors
    "BackendError",
    "BackendUnavailable",
    "BenchmarkError",
    "InsertRejected",
    "ProvisioningError",
    # Pathways
    "CompiledMemoryPathway",
    "DiskPathway",
    "InsertPathway",
    "MemoryPathway",
    "PathwayKind",
    "available_pathways",
    # Running and reporting
    "BenchmarkRunner",
    "ReportEmitter",
    "RunConfig",
    "print_results",
    "run_pathways",
    # Logging
    "configure_logging",
    "get_logger",
]
