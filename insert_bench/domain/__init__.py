"""
Domain package for the insert pathway benchmark.

Exports the record model, the run result contract, and the synthetic record
generator. Keep this package free of database I/O.
"""

from insert_bench.domain.generator import RecordGenerator, registration_number
from insert_bench.domain.models import BenchmarkResult, LocationRecord, RunState

__all__ = [
    "BenchmarkResult",
    "LocationRecord",
    "RecordGenerator",
    "RunState",
    "registration_number",
]
