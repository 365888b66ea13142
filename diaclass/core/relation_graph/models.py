"""Relation graph data models.

Edge kinds and the (source, target, kind) relation key. Pure data
containers; aggregation lives in graph.py.
"""

from dataclasses import dataclass
from enum import Enum


class RelationKind(Enum):
    """Category of a directed relation between two type identities."""
    INHERITS = "Inherits"
    IMPLEMENTS = "Implements"
    FIELD_USES = "FieldUses"
    PROPERTY_USES = "PropertyUses"
    METHOD_RETURNS = "MethodReturns"
    METHOD_PARAMETER = "MethodParameter"
    CONTAINS = "Contains"

    @classmethod
    def from_name(cls, name: str) -> "RelationKind":
        """Look up a kind by its value ("FieldUses") or member name ("FIELD_USES")."""
        for kind in cls:
            if name in (kind.value, kind.name):
                return kind
        raise ValueError(
            f"Unknown relation kind: {name}. "
            f"Supported: {[k.value for k in cls]}"
        )


# Member-usage kinds; everything else is structural.
USAGE_KINDS = frozenset({
    RelationKind.FIELD_USES,
    RelationKind.PROPERTY_USES,
    RelationKind.METHOD_RETURNS,
    RelationKind.METHOD_PARAMETER,
})

STRUCTURAL_KINDS = frozenset({
    RelationKind.INHERITS,
    RelationKind.IMPLEMENTS,
    RelationKind.CONTAINS,
})


@dataclass(frozen=True)
class Relation:
    """A directed, typed edge between two type identities.

    Two relations are the same edge iff source, target and kind all match;
    identities compare as plain (ordinal) strings.

    Attributes:
        source: Identity of the type the edge starts at.
        target: Identity of the type the edge points to.
        kind: The relation category.
    """
    source: str
    target: str
    kind: RelationKind

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "target": self.target,
            "kind": self.kind.value,
        }
