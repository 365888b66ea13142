"""Tests for the PlantUML class diagram and inter-group overview."""

from diaclass.core.diagrams import context_grouping, namespace_grouping, to_plantuml, to_plantuml_overview
from diaclass.core.relation_graph import RelationGraph, RelationKind


# =========================================================================
# Fixtures
# =========================================================================

def _make_snapshot(*edges):
    graph = RelationGraph(scope="Shop")
    for source, target, kind in edges:
        graph.add_edge(source, target, kind)
    return graph.snapshot()


def _example_snapshot():
    return _make_snapshot(
        ("A", "Base", RelationKind.INHERITS),
        ("A", "Used", RelationKind.FIELD_USES),
        ("A", "A.Inner", RelationKind.CONTAINS),
    )


def _body(document):
    lines = document.splitlines()
    return [line for line in lines if not line.startswith(("@", "skinparam"))]


CONTEXT_RULES = {
    "Domain": ["*.Domain.*", "*.Domain"],
    "Application": ["*.Application.*"],
    "Infrastructure": ["*.Infrastructure.*"],
}


def _layered_snapshot():
    return _make_snapshot(
        ("Shop.Domain.Order", "Shop.Domain.Customer", RelationKind.FIELD_USES),
        ("Shop.Domain.Order", "Shop.Domain.Customer", RelationKind.FIELD_USES),
        ("Shop.Application.OrderService", "Shop.Domain.Order", RelationKind.FIELD_USES),
        ("Shop.Application.OrderService", "Shop.Domain.Order", RelationKind.FIELD_USES),
        ("Shop.Application.OrderService", "Shop.Domain.Order", RelationKind.FIELD_USES),
        ("Shop.Application.OrderService", "Shop.Domain.Customer", RelationKind.METHOD_PARAMETER),
        ("Shop.Application.OrderService", "Shop.Domain.Entity", RelationKind.INHERITS),
        ("Shop.Infrastructure.Db", "Shop.Domain.Order", RelationKind.METHOD_RETURNS),
    )


# =========================================================================
# Tests: Document structure
# =========================================================================

class TestDocument:
    def test_example_scenario(self):
        assert to_plantuml(_example_snapshot()) == "\n".join([
            "@startuml",
            "skinparam classAttributeIconSize 0",
            "skinparam dpi 160",
            'class "A" as A',
            'class "A.Inner" as A_Inner',
            'class "Base" as Base',
            'class "Used" as Used',
            "Base <|-- A",
            "A ..> Used : field",
            "A *-- A_Inner",
            "@enduml",
        ]) + "\n"

    def test_empty_graph_is_a_valid_document(self):
        document = to_plantuml(_make_snapshot())
        lines = document.splitlines()
        assert lines[0] == "@startuml"
        assert lines[-1] == "@enduml"
        assert _body(document) == []

    def test_rendering_is_deterministic(self):
        forward = _make_snapshot(
            ("Shop.B", "Shop.C", RelationKind.FIELD_USES),
            ("Shop.A", "Shop.C", RelationKind.PROPERTY_USES),
        )
        assert to_plantuml(forward) == to_plantuml(forward)
        grouping = namespace_grouping()
        assert to_plantuml(forward, group_of=grouping) == to_plantuml(forward, group_of=grouping)

    def test_class_declarations_sorted(self):
        snapshot = _make_snapshot(
            ("Zeta", "Alpha", RelationKind.FIELD_USES),
            ("Mid", "Alpha", RelationKind.FIELD_USES),
        )
        classes = [line for line in _body(to_plantuml(snapshot)) if line.startswith("class")]
        assert classes == ['class "Alpha" as Alpha', 'class "Mid" as Mid', 'class "Zeta" as Zeta']


# =========================================================================
# Tests: Arrows and labels
# =========================================================================

class TestArrows:
    def test_every_kind(self):
        snapshot = _make_snapshot(
            ("A", "B", RelationKind.INHERITS),
            ("A", "I", RelationKind.IMPLEMENTS),
            ("A", "N", RelationKind.CONTAINS),
            ("A", "F", RelationKind.FIELD_USES),
            ("A", "P", RelationKind.PROPERTY_USES),
            ("A", "R", RelationKind.METHOD_RETURNS),
            ("A", "M", RelationKind.METHOD_PARAMETER),
        )
        edges = [line for line in _body(to_plantuml(snapshot)) if not line.startswith("class")]
        assert edges == [
            "B <|-- A",
            "I <|.. A",
            "A *-- N",
            "A ..> F : field",
            "A ..> P : property",
            "A ..> R : returns",
            "A ..> M : param",
        ]

    def test_count_shown_above_one(self):
        snapshot = _make_snapshot(
            ("A", "B", RelationKind.FIELD_USES),
            ("A", "B", RelationKind.FIELD_USES),
            ("A", "C", RelationKind.FIELD_USES),
        )
        body = _body(to_plantuml(snapshot))
        assert "A ..> B : field ×2" in body
        assert "A ..> C : field" in body

    def test_counts_can_be_disabled(self):
        snapshot = _make_snapshot(
            ("A", "B", RelationKind.METHOD_PARAMETER),
            ("A", "B", RelationKind.METHOD_PARAMETER),
        )
        assert "A ..> B : param" in _body(to_plantuml(snapshot, show_counts=False))

    def test_structural_edges_never_show_counts(self):
        snapshot = _make_snapshot(
            ("A", "I", RelationKind.IMPLEMENTS),
            ("A", "I", RelationKind.IMPLEMENTS),
        )
        assert "I <|.. A" in _body(to_plantuml(snapshot))

    def test_kind_filter(self):
        body = _body(to_plantuml(_example_snapshot(), include_kinds=[RelationKind.INHERITS]))
        assert "Base <|-- A" in body
        assert not any("..>" in line or "*--" in line for line in body)
        # nodes are still declared
        assert 'class "Used" as Used' in body


# =========================================================================
# Tests: Names, aliases and grouping
# =========================================================================

class TestNames:
    def test_default_short_name(self):
        snapshot = _make_snapshot(("Shop.Domain.Order", "Shop.Domain.Line", RelationKind.FIELD_USES))
        body = _body(to_plantuml(snapshot))
        assert 'class "Domain.Order" as Shop_Domain_Order' in body
        assert "Shop_Domain_Order ..> Shop_Domain_Line : field" in body

    def test_custom_short_name(self):
        snapshot = _make_snapshot(("Shop.Domain.Order", "Shop.Domain.Line", RelationKind.FIELD_USES))
        body = _body(to_plantuml(snapshot, short_name=str))
        assert 'class "Shop.Domain.Order" as Shop_Domain_Order' in body

    def test_generic_alias_is_escaped(self):
        snapshot = _make_snapshot(("Store", "Repo<Order, Line>", RelationKind.FIELD_USES))
        assert "Store ..> Repo_Order__Line_ : field" in _body(to_plantuml(snapshot))

    def test_aliases_stay_injective(self):
        snapshot = _make_snapshot(("A.B", "A_B", RelationKind.FIELD_USES))
        assert "A_B ..> A_B_2 : field" in _body(to_plantuml(snapshot))

    def test_grouping_into_packages(self):
        snapshot = _make_snapshot(
            ("Shop.Web.Page", "Shop.Domain.Order", RelationKind.FIELD_USES),
            ("Shop.Web.Page", "Loose", RelationKind.FIELD_USES),
        )
        body = _body(to_plantuml(snapshot, group_of=namespace_grouping()))
        assert body[:7] == [
            'package "Shop.Domain" {',
            '  class "Domain.Order" as Shop_Domain_Order',
            "}",
            'package "Shop.Web" {',
            '  class "Web.Page" as Shop_Web_Page',
            "}",
            'class "Loose" as Loose',
        ]

    def test_grouping_depth(self):
        snapshot = _make_snapshot(("Shop.Web.Page", "Shop.Domain.Order", RelationKind.FIELD_USES))
        body = _body(to_plantuml(snapshot, group_of=namespace_grouping(depth=1)))
        assert body.count('package "Shop" {') == 1


# =========================================================================
# Tests: Overview
# =========================================================================

class TestOverview:
    def test_usage_edges_aggregated_per_group_pair(self):
        document = to_plantuml_overview(_layered_snapshot(), context_grouping(CONTEXT_RULES))
        assert document == "\n".join([
            "@startuml",
            'rectangle "Application" as Application',
            'rectangle "Domain" as Domain',
            'rectangle "Infrastructure" as Infrastructure',
            "Application ..> Domain : ×4",
            "Infrastructure ..> Domain : ×1",
            "@enduml",
        ]) + "\n"

    def test_all_kinds_split_by_kind(self):
        document = to_plantuml_overview(
            _layered_snapshot(), context_grouping(CONTEXT_RULES), uses_only=False
        )
        lines = document.splitlines()
        assert lines[4:8] == [
            "Application ..> Domain : FieldUses ×3",
            "Application ..> Domain : Inherits ×1",
            "Application ..> Domain : MethodParameter ×1",
            "Infrastructure ..> Domain : MethodReturns ×1",
        ]

    def test_without_counts(self):
        document = to_plantuml_overview(
            _layered_snapshot(), context_grouping(CONTEXT_RULES), show_counts=False
        )
        assert "Application ..> Domain" in document.splitlines()

    def test_same_group_edges_only(self):
        snapshot = _make_snapshot(("Shop.Domain.Order", "Shop.Domain.Line", RelationKind.FIELD_USES))
        document = to_plantuml_overview(snapshot, context_grouping(CONTEXT_RULES))
        assert document == "@startuml\n@enduml\n"

    def test_group_labels_are_escaped(self):
        snapshot = _make_snapshot(("Shop.Web.Page", "Shop.Data.Db", RelationKind.FIELD_USES))
        document = to_plantuml_overview(snapshot, namespace_grouping())
        assert 'rectangle "Shop.Web" as Shop_Web' in document
        assert "Shop_Web ..> Shop_Data : ×1" in document

    def test_unmatched_global_type_gets_a_legal_alias(self):
        snapshot = _make_snapshot(("Shop.Domain.Order", "GlobalThing", RelationKind.FIELD_USES))
        lines = to_plantuml_overview(snapshot, context_grouping({"Domain": ["*.Domain.*"]})).splitlines()
        assert 'rectangle "(other)" as _other_' in lines
        assert "Domain ..> _other_ : ×1" in lines
        assert not any("as (other)" in line for line in lines)

    def test_ungrouped_identities_collected_as_other(self):
        snapshot = _make_snapshot(
            ("Shop.Web.Page", "GlobalThing", RelationKind.FIELD_USES),
            ("Loose", "Shop.Web.Page", RelationKind.METHOD_PARAMETER),
        )
        lines = to_plantuml_overview(snapshot, namespace_grouping()).splitlines()
        assert lines[1:3] == ['rectangle "(other)" as _other_', 'rectangle "Shop.Web" as Shop_Web']
        assert "Shop_Web ..> _other_ : ×1" in lines
        assert "_other_ ..> Shop_Web : ×1" in lines
