"""Mermaid class-diagram generator.

Flat and unfiltered: every node is declared, then every stored edge
occurrence is drawn, duplicates included. Identifiers use the same
escaping as the PlantUML aliases.
"""

from ..constants import DEFAULT_ARROW, MERMAID_ARROWS, REVERSED_KINDS, USAGE_LABELS
from ..relation_graph import GraphSnapshot
from .naming import build_aliases


def to_mermaid(graph: GraphSnapshot) -> str:
    """Render every node and every edge occurrence as a Mermaid classDiagram."""
    nodes = sorted(graph.nodes)
    aliases = build_aliases(nodes)

    lines = ["classDiagram"]
    lines.extend(f"  class {aliases[n]}" for n in nodes)

    for relation in graph.edges():
        arrow = MERMAID_ARROWS.get(relation.kind, DEFAULT_ARROW)
        source = aliases[relation.source]
        target = aliases[relation.target]
        if relation.kind in REVERSED_KINDS:
            lines.append(f"  {target} {arrow} {source}")
            continue
        label = USAGE_LABELS.get(relation.kind)
        suffix = f" : {label}" if label else ""
        lines.append(f"  {source} {arrow} {target}{suffix}")

    return "\n".join(lines) + "\n"
