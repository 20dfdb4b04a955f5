"""
Pathways package for the insert pathway benchmark.

Re-exports the pathway interfaces and concrete pathways, and holds the
registry the orchestrator resolves names against. Registry order is the
canonical run and report order: disk, memory, compiled_memory.
"""

from typing import Callable, Dict, List

from insert_bench.pathways.abstract import (
    FixedBatchInsertPathway,
    InsertPathway,
    PathwayKind,
    RowInsertPathway,
)
from insert_bench.pathways.compiled_memory import CompiledMemoryPathway
from insert_bench.pathways.disk import DiskPathway
from insert_bench.pathways.memory import MemoryPathway


def pathway_factories() -> Dict[str, Callable[[], InsertPathway]]:
    """Registry of available pathways, in run order."""
    return {
        DiskPathway.name: DiskPathway,
        MemoryPathway.name: MemoryPathway,
        CompiledMemoryPathway.name: CompiledMemoryPathway,
    }


def available_pathways() -> List[str]:
    """List available pathway names in run order."""
    return list(pathway_factories().keys())


def resolve_pathway(name: str) -> InsertPathway:
    factories = pathway_factories()
    if name not in factories:
        raise ValueError(f"Unknown pathway '{name}'. Available: {', '.join(factories)}")
    return factories[name]()


__all__ = [
    # Abstracts
    "FixedBatchInsertPathway",
    "InsertPathway",
    "PathwayKind",
    "RowInsertPathway",
    # Concrete pathways
    "CompiledMemoryPathway",
    "DiskPathway",
    "MemoryPathway",
    # Registry
    "available_pathways",
    "pathway_factories",
    "resolve_pathway",
]
