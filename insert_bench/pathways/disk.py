"""
Disk pathway: WAL-logged table, one interpreted procedure call per row.

This is the baseline the two memory pathways are measured against. Rows are
written through PL/pgSQL, so every call pays for the interpreter as well as
for durable storage at commit.
"""

from __future__ import annotations

from insert_bench.infrastructure import schema
from insert_bench.pathways.abstract import RowInsertPathway


class DiskPathway(RowInsertPathway):
    name: str = "disk"
    description: str = "Logged table, PL/pgSQL procedure called once per row."
    table: str = schema.DISK_TABLE
    procedure: str = schema.DISK_INSERT_PROCEDURE


__all__ = ["DiskPathway"]
