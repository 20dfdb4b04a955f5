"""
Infrastructure package for the insert pathway benchmark.

Centralizes database connectivity and schema provisioning. Keep this layer
focused on I/O and resource management, decoupled from runner/orchestrator
logic.
"""

from insert_bench.infrastructure.db_factory import (
    build_dsn,
    connection_scope,
    get_sync_connection,
)
from insert_bench.infrastructure.schema import (
    count_rows,
    provision,
    truncate,
    verify_provisioned,
)

__all__ = [
    "build_dsn",
    "connection_scope",
    "count_rows",
    "get_sync_connection",
    "provision",
    "truncate",
    "verify_provisioned",
]
