"""Diagram renderers for relation graphs."""

from .mermaid import to_mermaid
from .naming import (
    OTHER_GROUP,
    alias_for,
    build_aliases,
    context_grouping,
    default_short_name,
    folder_grouping,
    namespace_grouping,
)
from .plantuml import to_plantuml, to_plantuml_overview

__all__ = [
    "OTHER_GROUP",
    "alias_for",
    "build_aliases",
    "context_grouping",
    "default_short_name",
    "folder_grouping",
    "namespace_grouping",
    "to_mermaid",
    "to_plantuml",
    "to_plantuml_overview",
]
