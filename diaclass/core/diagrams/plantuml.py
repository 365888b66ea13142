"""Deterministic PlantUML generators for relation graphs.

Two projections of a completed GraphSnapshot:
- to_plantuml: class diagram with optional package grouping, kind
  filtering, short display names and usage-count annotations.
- to_plantuml_overview: nodes collapsed into groups, one summary arrow
  per (from-group, to-group[, kind]) with the total occurrence count.

Both are pure functions; an empty graph yields an empty-bodied document.
"""

from typing import Callable, Dict, Iterable, List, Optional, Tuple

from ..constants import (
    COUNT_SIGN,
    DEFAULT_ARROW,
    PLANTUML_ARROWS,
    REVERSED_KINDS,
    USAGE_LABELS,
)
from ..relation_graph import GraphSnapshot, Relation, RelationKind, USAGE_KINDS
from .naming import OTHER_GROUP, GroupOf, build_aliases, default_short_name

_HEADER = [
    "@startuml",
    "skinparam classAttributeIconSize 0",
    "skinparam dpi 160",
]
_FOOTER = "@enduml"


def to_plantuml(
    graph: GraphSnapshot,
    include_kinds: Optional[Iterable[RelationKind]] = None,
    short_name: Optional[Callable[[str], str]] = None,
    group_of: Optional[GroupOf] = None,
    show_counts: bool = True,
) -> str:
    """Render a class diagram.

    Args:
        graph: Completed relation graph
        include_kinds: Relation kinds to draw (default: all)
        short_name: Display name for an identity (default: last two segments)
        group_of: Identity -> package label, or None for "no package".
            Without it every class is declared flat.
        show_counts: Append "×N" to usage labels whose count exceeds 1

    Returns:
        PlantUML document text
    """
    kinds = frozenset(include_kinds) if include_kinds is not None else frozenset(RelationKind)
    short_name = short_name or default_short_name

    nodes = sorted(graph.nodes)
    aliases = build_aliases(nodes)
    lines = list(_HEADER)

    if group_of is None:
        lines.extend(_class_line(n, aliases[n], short_name) for n in nodes)
    else:
        packages: Dict[str, List[str]] = {}
        ungrouped: List[str] = []
        for node in nodes:
            label = group_of(node)
            if label:
                packages.setdefault(label, []).append(node)
            else:
                ungrouped.append(node)

        for label in sorted(packages):
            lines.append(f'package "{label}" {{')
            lines.extend("  " + _class_line(n, aliases[n], short_name) for n in packages[label])
            lines.append("}")
        lines.extend(_class_line(n, aliases[n], short_name) for n in ungrouped)

    for relation, count in graph.counted_edges():
        if relation.kind not in kinds:
            continue
        lines.append(_edge_line(relation, count, aliases, show_counts))

    lines.append(_FOOTER)
    return "\n".join(lines) + "\n"


def to_plantuml_overview(
    graph: GraphSnapshot,
    context_of: GroupOf,
    uses_only: bool = True,
    show_counts: bool = True,
) -> str:
    """Render the inter-group overview.

    Every node is replaced by its group label; edges inside one group are
    dropped and the rest are summed per (from-group, to-group), or per
    (from-group, to-group, kind) when uses_only is off. Identities without
    a group are collected under OTHER_GROUP.
    """
    totals: Dict[Tuple[str, str, Optional[RelationKind]], int] = {}
    for relation, count in graph.counted_edges():
        if uses_only and relation.kind not in USAGE_KINDS:
            continue
        source = context_of(relation.source) or OTHER_GROUP
        target = context_of(relation.target) or OTHER_GROUP
        if source == target:
            continue
        key = (source, target, None if uses_only else relation.kind)
        totals[key] = totals.get(key, 0) + count

    groups = sorted({g for key in totals for g in key[:2]})
    aliases = build_aliases(groups)

    lines = ["@startuml"]
    lines.extend(f'rectangle "{g}" as {aliases[g]}' for g in groups)

    ordered = sorted(totals.items(), key=lambda item: (item[0][0], item[0][1], _kind_sort(item[0][2])))
    for (source, target, kind), total in ordered:
        label = _overview_label(kind, total, show_counts)
        suffix = f" : {label}" if label else ""
        lines.append(f"{aliases[source]} {DEFAULT_ARROW} {aliases[target]}{suffix}")

    lines.append(_FOOTER)
    return "\n".join(lines) + "\n"


# =============================================================================
# Helpers
# =============================================================================


def _class_line(identity: str, alias: str, short_name: Callable[[str], str]) -> str:
    return f'class "{short_name(identity)}" as {alias}'


def _edge_line(relation: Relation, count: int, aliases: Dict[str, str], show_counts: bool) -> str:
    arrow = PLANTUML_ARROWS.get(relation.kind, DEFAULT_ARROW)
    source = aliases[relation.source]
    target = aliases[relation.target]

    if relation.kind in REVERSED_KINDS:
        return f"{target} {arrow} {source}"
    if relation.kind == RelationKind.CONTAINS:
        return f"{source} {arrow} {target}"

    label = USAGE_LABELS.get(relation.kind)
    if label is None:
        return f"{source} {arrow} {target}"
    if show_counts and count > 1:
        label = f"{label} {COUNT_SIGN}{count}"
    return f"{source} {arrow} {target} : {label}"


def _overview_label(kind: Optional[RelationKind], total: int, show_counts: bool) -> str:
    count = f"{COUNT_SIGN}{total}" if show_counts else ""
    if kind is None:
        return count
    return f"{kind.value} {count}".rstrip()


def _kind_sort(kind: Optional[RelationKind]) -> str:
    return kind.value if kind is not None else ""
