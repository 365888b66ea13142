"""Tests for the Mermaid class-diagram renderer."""

from diaclass.core.diagrams import to_mermaid
from diaclass.core.relation_graph import RelationGraph, RelationKind


def _make_snapshot(*edges):
    graph = RelationGraph()
    for source, target, kind in edges:
        graph.add_edge(source, target, kind)
    return graph.snapshot()


def _lines(document):
    return [line.strip() for line in document.splitlines()]


class TestMermaid:
    def test_example_scenario(self):
        snapshot = _make_snapshot(
            ("A", "Base", RelationKind.INHERITS),
            ("A", "Used", RelationKind.FIELD_USES),
            ("A", "A.Inner", RelationKind.CONTAINS),
        )
        lines = _lines(to_mermaid(snapshot))

        assert lines[0] == "classDiagram"
        assert lines[1:5] == ["class A", "class A_Inner", "class Base", "class Used"]
        assert "A *-- A_Inner" in lines
        assert "Base <|-- A" in lines
        assert "A ..> Used : field" in lines
        assert len(lines) == 8

    def test_every_occurrence_is_drawn(self):
        snapshot = _make_snapshot(
            ("A", "B", RelationKind.METHOD_PARAMETER),
            ("A", "B", RelationKind.METHOD_PARAMETER),
        )
        assert _lines(to_mermaid(snapshot)).count("A ..> B : param") == 2

    def test_implements_is_reversed(self):
        snapshot = _make_snapshot(("Shop.Order", "Shop.IEntity", RelationKind.IMPLEMENTS))
        assert "Shop_IEntity <|.. Shop_Order" in _lines(to_mermaid(snapshot))

    def test_usage_labels_without_counts(self):
        snapshot = _make_snapshot(
            ("A", "P", RelationKind.PROPERTY_USES),
            ("A", "R", RelationKind.METHOD_RETURNS),
        )
        lines = _lines(to_mermaid(snapshot))
        assert "A ..> P : property" in lines
        assert "A ..> R : returns" in lines
        assert not any("×" in line for line in lines)

    def test_identifiers_use_alias_escaping(self):
        snapshot = _make_snapshot(("Store", "Repo<Shop.Order>", RelationKind.FIELD_USES))
        assert "class Repo_Shop_Order_" in _lines(to_mermaid(snapshot))

    def test_empty_graph(self):
        assert to_mermaid(_make_snapshot()) == "classDiagram\n"

    def test_deterministic(self):
        snapshot = _make_snapshot(
            ("C", "A", RelationKind.FIELD_USES),
            ("B", "A", RelationKind.FIELD_USES),
        )
        assert to_mermaid(snapshot) == to_mermaid(snapshot)
        assert _lines(to_mermaid(snapshot))[1:4] == ["class A", "class B", "class C"]
