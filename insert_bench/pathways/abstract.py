"""
Insert pathway interfaces for the benchmark.

A pathway is a configured way of getting rows into one table. Two shapes
exist and the runner dispatches on `kind`:

- `PathwayKind.PER_ROW`: the caller generates each record and calls
  `insert_one` once per row.
- `PathwayKind.FIXED_BATCH`: the caller calls `insert_fixed_batch` once and
  the backend routine generates and inserts every row itself.

Pathways hold no per-call state and never begin or end transactions; the
runner owns the transaction block around them.
"""

from __future__ import annotations

import abc
from enum import Enum
from typing import Optional, Protocol, runtime_checkable

import psycopg
from psycopg import IsolationLevel

from insert_bench.domain.models import LocationRecord


class PathwayKind(str, Enum):
    PER_ROW = "per_row"
    FIXED_BATCH = "fixed_batch"


@runtime_checkable
class InsertPathway(Protocol):
    """
    Common attributes every pathway exposes.

    Attributes
    ----------
    name : str
        A short machine-friendly identifier.
    description : str
        A human-friendly summary of the execution path.
    kind : PathwayKind
        Which insert operation the runner must call.
    table : str
        Schema-qualified target table, owned by this pathway alone.
    procedure : str
        Schema-qualified backend procedure the pathway calls.
    isolation_level : IsolationLevel | None
        Isolation for the enclosing transaction; None keeps the server default.
    """

    name: str
    description: str
    kind: PathwayKind
    table: str
    procedure: str
    isolation_level: Optional[IsolationLevel]


class RowInsertPathway(abc.ABC):
    """Base for pathways that insert one caller-supplied record per call."""

    name: str
    description: str
    table: str
    procedure: str
    kind: PathwayKind = PathwayKind.PER_ROW
    isolation_level: Optional[IsolationLevel] = None

    @property
    def call_sql(self) -> str:
        return f"CALL {self.procedure}(%s, %s, %s, %s)"

    def insert_one(self, cursor: psycopg.Cursor, record: LocationRecord) -> None:
        """
        Insert a single record through the pathway's procedure.

        Raises
        ------
        psycopg.Error
            Whatever the backend raises; the runner translates it.
        """
        cursor.execute(self.call_sql, record.as_params())


class FixedBatchInsertPathway(abc.ABC):
    """Base for pathways whose backend routine generates every row itself."""

    name: str
    description: str
    table: str
    procedure: str
    kind: PathwayKind = PathwayKind.FIXED_BATCH
    isolation_level: Optional[IsolationLevel] = None

    @property
    def call_sql(self) -> str:
        return f"CALL {self.procedure}(%s)"

    def insert_fixed_batch(self, cursor: psycopg.Cursor, row_count: int) -> None:
        """
        Insert `row_count` copies of the routine's fixed template row.

        Raises
        ------
        psycopg.Error
            Whatever the backend raises; the runner translates it.
        """
        cursor.execute(self.call_sql, (row_count,))


__all__ = [
    "FixedBatchInsertPathway",
    "InsertPathway",
    "PathwayKind",
    "RowInsertPathway",
]
