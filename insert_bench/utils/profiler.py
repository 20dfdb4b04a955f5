"""
Profiling utilities for the insert pathway benchmark.

`profile_block` brackets a block of code and records:
- Wall-clock time (perf_counter)
- CPU usage of this process (psutil)
- Resident set size at the end of the block (psutil)

Only the client process is observed; backend-side cost shows up in the
wall-clock duration alone.

Usage:
    from insert_bench.utils.profiler import profile_block

    with profile_block("disk") as stats:
        run_workload()

    print(stats.duration_seconds, stats.elapsed_ms, stats.rss_bytes)
"""

from __future__ import annotations

import contextlib
import time
from dataclasses import dataclass, field
from typing import Any, Generator, Optional

import psutil


@dataclass
class ProfileStats:
    """
    Container for profiling measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    rss_bytes: Optional[int] = field(default=None)
    cpu_percent: Optional[float] = field(default=None)
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def elapsed_ms(self) -> float:
        return self.duration_seconds * 1000.0


@contextlib.contextmanager
def profile_block(label: str) -> Generator[ProfileStats, None, None]:
    """
    Context manager to time a block of code.

    The stats object is filled in on exit, including when the block raises,
    so callers can log how long a failed run took before it aborted.

    Parameters
    ----------
    label : str
        Human-friendly label for the profiled block.
    """
    stats = ProfileStats(label=label)
    process = psutil.Process()

    # CPU percent needs a priming call
    process.cpu_percent(interval=None)

    stats.start_ts = time.perf_counter()
    try:
        yield stats
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = max(stats.end_ts - stats.start_ts, 0.0)
        stats.cpu_percent = process.cpu_percent(interval=None)
        stats.rss_bytes = process.memory_info().rss


__all__ = ["ProfileStats", "profile_block"]
