"""RelationExtractor — one pass over a ProjectModel into a RelationGraph.

Per type T:
1. Containment:     enclosing type C        -> (C -> T, Contains)
2. Inheritance:     explicit base B         -> (T -> B, Inherits)
3. Implementation:  every interface I       -> (T -> I, Implements)
4. Member usage:    field / property type   -> FieldUses / PropertyUses
                    method return type      -> MethodReturns (not accessors)
                    method parameter types  -> MethodParameter

Every candidate type passes the scope filter independently at its own
emission site. Nothing here raises for a single type or member: an
unresolvable or out-of-scope reference simply produces no edge.
"""

import logging
from enum import Enum
from typing import Callable, Dict, Iterator, Optional, Tuple

from ..code_model.models import (
    OBJECT_SPECIAL,
    MemberKind,
    ProjectModel,
    TypeRef,
    TypeSymbol,
)
from ..exceptions import NoCompilationError
from ..relation_graph import GraphSnapshot, RelationGraph, RelationKind

logger = logging.getLogger(__name__)


class Scope(Enum):
    """Which referenced types may become edge endpoints."""
    INTERNAL = "internal"  # only types compiled into the analysed project
    ALL = "all"            # any named, non-primitive type


class UsageSite(Enum):
    """Where a candidate type was found; decides the edge kind and direction."""
    FIELD = "field"
    PROPERTY = "property"
    METHOD_RETURN = "method_return"
    METHOD_PARAMETER = "method_parameter"
    BASE_TYPE = "base_type"
    INTERFACE = "interface"
    ENCLOSING_TYPE = "enclosing_type"


_SITE_KINDS: Dict[UsageSite, RelationKind] = {
    UsageSite.FIELD: RelationKind.FIELD_USES,
    UsageSite.PROPERTY: RelationKind.PROPERTY_USES,
    UsageSite.METHOD_RETURN: RelationKind.METHOD_RETURNS,
    UsageSite.METHOD_PARAMETER: RelationKind.METHOD_PARAMETER,
    UsageSite.BASE_TYPE: RelationKind.INHERITS,
    UsageSite.INTERFACE: RelationKind.IMPLEMENTS,
    UsageSite.ENCLOSING_TYPE: RelationKind.CONTAINS,
}

# Sites whose edge points from the candidate to the type being visited
_INBOUND_SITES = frozenset({UsageSite.ENCLOSING_TYPE})

SiteRef = Tuple[UsageSite, TypeRef]


# ── Member sites ─────────────────────────────────────────────────────


def _field_sites(member) -> Iterator[SiteRef]:
    yield UsageSite.FIELD, member.type


def _property_sites(member) -> Iterator[SiteRef]:
    yield UsageSite.PROPERTY, member.type


def _method_sites(member) -> Iterator[SiteRef]:
    # Accessor return types are covered by the property's own edge
    if not member.returns_void and not member.is_accessor:
        yield UsageSite.METHOD_RETURN, member.return_type
    for parameter in member.parameters:
        yield UsageSite.METHOD_PARAMETER, parameter.type


_MEMBER_SITES: Dict[MemberKind, Callable[[object], Iterator[SiteRef]]] = {
    MemberKind.FIELD: _field_sites,
    MemberKind.PROPERTY: _property_sites,
    MemberKind.METHOD: _method_sites,
}


# ── Extractor ────────────────────────────────────────────────────────


class RelationExtractor:
    """Populates one RelationGraph from one project's symbol model."""

    def __init__(self, project: Optional[ProjectModel], scope: Scope = Scope.INTERNAL):
        if project is None:
            raise NoCompilationError("<unknown>", "no code model was provided")
        self.project = project
        self.scope = scope

    def include_type(self, candidate: Optional[TypeRef]) -> bool:
        """Scope filter: named, not built-in, and (internal scope) in this assembly."""
        if candidate is None or not candidate.is_named or candidate.is_special:
            return False
        if self.scope == Scope.INTERNAL:
            return self.project.is_in_assembly(candidate)
        return True

    def extract(self) -> GraphSnapshot:
        """Run the single extraction pass and freeze the result."""
        graph = RelationGraph(scope=self.project.name)
        for symbol in self.project.types:
            self._extract_type(symbol, graph)

        snapshot = graph.snapshot()
        logger.info(
            f"Extracted {len(snapshot.counted)} relations "
            f"({snapshot.total_occurrences} occurrences) between "
            f"{len(snapshot.nodes)} types from '{self.project.name}'"
        )
        return snapshot

    def sites_of(self, symbol: TypeSymbol) -> Iterator[SiteRef]:
        """Every candidate type referenced by a type, tagged with its site."""
        if symbol.containing_type is not None:
            yield UsageSite.ENCLOSING_TYPE, symbol.containing_type

        base = symbol.base_type
        if symbol.is_class_or_struct and base is not None and base.special != OBJECT_SPECIAL:
            yield UsageSite.BASE_TYPE, base

        for iface in self.project.all_interfaces(symbol):
            yield UsageSite.INTERFACE, iface

        for member in symbol.members:
            yield from _MEMBER_SITES[member.member_kind](member)

    def _extract_type(self, symbol: TypeSymbol, graph: RelationGraph) -> None:
        identity = symbol.identity
        for site, candidate in self.sites_of(symbol):
            self._emit(graph, site, identity, candidate)

    def _emit(self, graph: RelationGraph, site: UsageSite, identity: str, candidate: TypeRef) -> None:
        candidate = candidate.unwrap_nullable()
        if not self.include_type(candidate):
            return
        kind = _SITE_KINDS[site]
        if site in _INBOUND_SITES:
            graph.add_edge(candidate.display_name, identity, kind)
        else:
            graph.add_edge(identity, candidate.display_name, kind)


def extract_relations(project: ProjectModel, scope: Scope = Scope.INTERNAL) -> GraphSnapshot:
    """Convenience wrapper: extract one project's relation graph."""
    return RelationExtractor(project, scope).extract()
