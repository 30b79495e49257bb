"""Domain port definitions for adapters."""

from __future__ import annotations

from .persistence import LabelScan, MappingStore, NonAssociationStore
from .unit_of_work import MappingRepositories, MappingUnitOfWork

__all__ = [
    "LabelScan",
    "MappingRepositories",
    "MappingStore",
    "MappingUnitOfWork",
    "NonAssociationStore",
]
