"""RelationGraph — deduplicating, counting edge store.

Built once by a single writer (the extractor), then frozen into a
GraphSnapshot that renderers read. The builder keeps both views of the
same insertions: aggregated counts per distinct relation, and the raw
occurrence list (needed for per-occurrence Mermaid output).
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, List, Set, Tuple

from .models import Relation, RelationKind


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable, read-only view of a completed relation graph.

    Attributes:
        scope: Label of the extraction scope (usually the project name).
        nodes: Every identity that appeared as an edge endpoint.
        counted: Distinct relations with their occurrence counts, in
            first-insertion order.
        occurrences: Every accepted insertion, in insertion order.
    """
    scope: str
    nodes: FrozenSet[str]
    counted: Tuple[Tuple[Relation, int], ...]
    occurrences: Tuple[Relation, ...]

    def counted_edges(self) -> Iterator[Tuple[Relation, int]]:
        return iter(self.counted)

    def edges(self) -> Iterator[Relation]:
        return iter(self.occurrences)

    def count_of(self, source: str, target: str, kind: RelationKind) -> int:
        """Occurrence count of one relation, 0 when absent."""
        wanted = Relation(source, target, kind)
        for relation, count in self.counted:
            if relation == wanted:
                return count
        return 0

    @property
    def total_occurrences(self) -> int:
        return len(self.occurrences)

    def to_json(self) -> dict:
        return {
            "scope": self.scope,
            "context": {
                "total_nodes": len(self.nodes),
                "total_edges": len(self.counted),
                "total_occurrences": len(self.occurrences),
            },
            "nodes": sorted(self.nodes),
            "edges": [
                {**relation.to_dict(), "count": count}
                for relation, count in self.counted
            ],
        }


class RelationGraph:
    """A set of type-identity nodes plus a multiset of typed edges.

    Invariants:
        - no edge has source == target;
        - both endpoints of every counted edge are in the node set;
        - each distinct relation is stored once, with count >= 1.
    """

    def __init__(self, scope: str = ""):
        self.scope = scope
        self._nodes: Set[str] = set()
        # dict preserves first-insertion order of distinct relations
        self._edge_counts: Dict[Relation, int] = {}
        self._occurrences: List[Relation] = []

    def add_edge(self, source: str, target: str, kind: RelationKind) -> None:
        """Record one occurrence of source -> target of the given kind.

        Self-loops are dropped silently.
        """
        if source == target:
            return
        self._nodes.add(source)
        self._nodes.add(target)

        relation = Relation(source, target, kind)
        self._edge_counts[relation] = self._edge_counts.get(relation, 0) + 1
        self._occurrences.append(relation)

    def nodes(self) -> Set[str]:
        """Identities seen as an edge endpoint, in no guaranteed order."""
        return set(self._nodes)

    def counted_edges(self) -> List[Tuple[Relation, int]]:
        """Distinct relations paired with their occurrence counts."""
        return list(self._edge_counts.items())

    def edges(self) -> List[Relation]:
        """Every accepted insertion, duplicates included."""
        return list(self._occurrences)

    def __len__(self) -> int:
        return len(self._edge_counts)

    def snapshot(self) -> GraphSnapshot:
        """Freeze the current contents into an immutable view."""
        return GraphSnapshot(
            scope=self.scope,
            nodes=frozenset(self._nodes),
            counted=tuple(self._edge_counts.items()),
            occurrences=tuple(self._occurrences),
        )
