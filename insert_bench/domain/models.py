"""
Domain models for the insert pathway benchmark.

`LocationRecord` mirrors the `vehicle_locations` tables created by
`insert_bench.infrastructure.schema`, minus the identity column that the
backend assigns on insert. `BenchmarkResult` is the metrics contract a
committed run hands to the reporter.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, TypedDict

from pydantic import BaseModel, Field


class LocationRecord(BaseModel):
    """
    One synthetic vehicle location row.
    """

    registration_number: str = Field(..., max_length=20, description="Vehicle registration.")
    tracked_when: datetime = Field(..., description="Capture time, centisecond precision.")
    longitude: Decimal = Field(..., max_digits=18, decimal_places=4)
    latitude: Decimal = Field(..., max_digits=18, decimal_places=4)

    model_config = {
        "frozen": True,
        "populate_by_name": True,
    }

    def as_params(self) -> tuple[str, datetime, Decimal, Decimal]:
        """Positional parameters in column order."""
        return (self.registration_number, self.tracked_when, self.longitude, self.latitude)


class BenchmarkResult(TypedDict, total=False):
    """
    Metrics for one committed run.

    `pathway`, `rows` and `elapsed_ms` are always present; the rest are
    best-effort client-side measurements.
    """

    pathway: str
    rows: int
    elapsed_ms: float
    throughput_rows_per_sec: float
    cpu_percent: Optional[float]
    rss_bytes: Optional[int]


class RunState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMMITTED = "committed"
    ABORTED = "aborted"


__all__ = ["BenchmarkResult", "LocationRecord", "RunState"]
