"""
Compiled memory pathway: the whole workload runs inside one backend routine.

The routine inserts a fixed literal row (`EA-232-JB`, now, 125.4, 132.7)
`row_count` times with a single set-based statement. It does not use the
record generator, so its timing reflects execution-path cost only.
"""

from __future__ import annotations

from psycopg import IsolationLevel

from insert_bench.infrastructure import schema
from insert_bench.pathways.abstract import FixedBatchInsertPathway


class CompiledMemoryPathway(FixedBatchInsertPathway):
    name: str = "compiled_memory"
    description: str = "Unlogged table, one BEGIN ATOMIC procedure inserting every row."
    table: str = schema.COMPILED_MEMORY_TABLE
    procedure: str = schema.COMPILED_MEMORY_BATCH_PROCEDURE
    isolation_level = IsolationLevel.REPEATABLE_READ


__all__ = ["CompiledMemoryPathway"]
