"""Relation extraction: symbol model in, relation graph out.

Public API:
    RelationExtractor(project, scope).extract() → GraphSnapshot
    extract_relations(project, scope) → GraphSnapshot
"""

from .extractor import RelationExtractor, Scope, UsageSite, extract_relations

__all__ = ["RelationExtractor", "Scope", "UsageSite", "extract_relations"]
