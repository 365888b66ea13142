"""Relation graph — typed, counted edges between type identities.

Public API:
    RelationGraph: single-writer builder
    GraphSnapshot: immutable view handed to renderers
    Relation, RelationKind
"""

from .graph import GraphSnapshot, RelationGraph
from .models import STRUCTURAL_KINDS, USAGE_KINDS, Relation, RelationKind

__all__ = [
    "RelationGraph",
    "GraphSnapshot",
    "Relation",
    "RelationKind",
    "USAGE_KINDS",
    "STRUCTURAL_KINDS",
]
