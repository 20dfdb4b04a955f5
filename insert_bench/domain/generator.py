"""
Synthetic vehicle location records.

Registration numbers are a pure function of the counter; the timestamp and
coordinates come from an injectable clock and random source so tests can
pin them down.
"""

from __future__ import annotations

import random
from datetime import datetime
from decimal import ROUND_DOWN, Decimal
from typing import Callable, Iterator, Optional

from insert_bench.domain.models import LocationRecord

_COORDINATE_SCALE = Decimal("0.0001")
_COORDINATE_RANGE = 100


def registration_number(counter: int) -> str:
    """`EA` + counter mod 100 zero-padded to 3 digits + `-GL`."""
    return f"EA{counter % 100:03d}-GL"


def truncate_to_centiseconds(value: datetime) -> datetime:
    return value.replace(microsecond=(value.microsecond // 10_000) * 10_000)


class RecordGenerator:
    """
    Produce `LocationRecord`s indexed by a non-negative counter.

    Parameters
    ----------
    clock : callable, optional
        Returns the current wall-clock time. Defaults to `datetime.now`.
    rng : random.Random, optional
        Source for coordinates. Defaults to an unseeded generator.
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._clock = clock or datetime.now
        self._rng = rng or random.Random()

    def _coordinate(self) -> Decimal:
        # Round down so 99.99999... never becomes 100.0000.
        raw = Decimal(repr(self._rng.random() * _COORDINATE_RANGE))
        return raw.quantize(_COORDINATE_SCALE, rounding=ROUND_DOWN)

    def generate(self, counter: int) -> LocationRecord:
        if counter < 0:
            raise ValueError(f"counter must be non-negative, got {counter}")
        return LocationRecord(
            registration_number=registration_number(counter),
            tracked_when=truncate_to_centiseconds(self._clock()),
            longitude=self._coordinate(),
            latitude=self._coordinate(),
        )

    def iter_records(self, row_count: int) -> Iterator[LocationRecord]:
        """Yield records for counters 0 .. row_count - 1."""
        for counter in range(row_count):
            yield self.generate(counter)


__all__ = ["RecordGenerator", "registration_number", "truncate_to_centiseconds"]
