"""
Memory pathway: unlogged table, one pre-parsed SQL procedure call per row.
"""

from __future__ import annotations

from psycopg import IsolationLevel

from insert_bench.infrastructure import schema
from insert_bench.pathways.abstract import RowInsertPathway


class MemoryPathway(RowInsertPathway):
    """
    The procedure body is bound at creation time, but each row still crosses
    the client/server boundary, so dispatch cost is paid per row. Runs under
    REPEATABLE READ, PostgreSQL's snapshot isolation.
    """

    name: str = "memory"
    description: str = "Unlogged table, BEGIN ATOMIC SQL procedure called once per row."
    table: str = schema.MEMORY_TABLE
    procedure: str = schema.MEMORY_INSERT_PROCEDURE
    isolation_level = IsolationLevel.REPEATABLE_READ


__all__ = ["MemoryPathway"]
