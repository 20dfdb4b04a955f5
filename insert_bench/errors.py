"""
Benchmark error hierarchy and translation from psycopg exceptions.

The runner never swallows a backend failure: it translates it with
`translate_backend_error` and re-raises inside the transaction block so the
block rolls back.
"""

from __future__ import annotations

from typing import Optional

import psycopg
from psycopg import errors as pg_errors


class BenchmarkError(Exception):
    """Base class for every failure surfaced by the benchmark."""

    def __init__(self, message: str, pathway: Optional[str] = None) -> None:
        super().__init__(message)
        self.pathway = pathway


class ProvisioningError(BenchmarkError):
    """Schema, table or procedure for a pathway is missing."""


class BackendUnavailable(BenchmarkError):
    """Connection lost, refused, or timed out."""


class BackendError(BenchmarkError):
    """Any other backend failure."""


class InsertRejected(BenchmarkError):
    """
    The backend refused a row.

    `counter` is the index of the offending row for per-row pathways and
    None when the failure cannot be tied to one row (batch insert, commit).
    """

    def __init__(
        self, message: str, pathway: Optional[str] = None, counter: Optional[int] = None
    ) -> None:
        super().__init__(message, pathway=pathway)
        self.counter = counter


_PROVISIONING_ERRORS = (
    pg_errors.UndefinedTable,
    pg_errors.UndefinedFunction,
    pg_errors.InvalidSchemaName,
)
_REJECTION_ERRORS = (psycopg.IntegrityError, psycopg.DataError)
_UNAVAILABLE_ERRORS = (psycopg.OperationalError, psycopg.InterfaceError)


def translate_backend_error(
    exc: psycopg.Error, pathway: str, counter: Optional[int] = None
) -> BenchmarkError:
    """Map a psycopg exception onto the benchmark error kinds."""
    detail = str(exc).strip() or type(exc).__name__
    if isinstance(exc, _PROVISIONING_ERRORS):
        return ProvisioningError(f"{pathway}: backend object missing: {detail}", pathway=pathway)
    if isinstance(exc, _REJECTION_ERRORS):
        where = f" at row {counter}" if counter is not None else ""
        return InsertRejected(
            f"{pathway}: insert rejected{where}: {detail}", pathway=pathway, counter=counter
        )
    if isinstance(exc, _UNAVAILABLE_ERRORS):
        return BackendUnavailable(f"{pathway}: backend unavailable: {detail}", pathway=pathway)
    return BackendError(f"{pathway}: {detail}", pathway=pathway)


__all__ = [
    "BackendError",
    "BackendUnavailable",
    "BenchmarkError",
    "InsertRejected",
    "ProvisioningError",
    "translate_backend_error",
]
