"""Tests for RelationExtractor: edge rules, scope filter and directions."""

import pytest

from diaclass.core.code_model import (
    FieldSymbol,
    MethodKind,
    MethodSymbol,
    ParameterSymbol,
    ProjectModel,
    TypeKind,
    TypeRef,
    TypeSymbol,
    load_sources,
)
from diaclass.core.exceptions import NoCompilationError
from diaclass.core.extractor import RelationExtractor, Scope, UsageSite, extract_relations
from diaclass.core.relation_graph import Relation, RelationKind


# =========================================================================
# Fixtures
# =========================================================================

EXAMPLE = '''
public class Base { }
public class Used { }

public class A : Base
{
    private Used _used;

    public class Inner { }
}
'''

ORDERS = '''
namespace Shop
{
    public struct Money { }
    public class Customer { }
    public class Line { }

    public class Order
    {
        private int _count;
        private string _name;
        private Money? _total;
        private Order _self;
        public Customer Customer { get; set; }
        public Line First() => null;
        public void Add(Line line, Line other) { }
        public void Touch() { }
    }
}
'''

HIERARCHY = '''
namespace Shop
{
    public interface IEntity { }
    public interface IAggregate : IEntity { }
    public interface IRepository<T> { }
    public interface IOrderRepository : IRepository<Order> { }

    public class Entity : IAggregate { }
    public class Order : Entity, System.IDisposable { }
    public class OrderRepository : IOrderRepository { }
    public class Plain : object { }
}
'''


def _extract(*sources, scope=Scope.INTERNAL):
    model = load_sources({f"File{i}.cs": s for i, s in enumerate(sources)}, name="Shop")
    return RelationExtractor(model, scope).extract()


def _ref(name, kind=TypeKind.CLASS, assembly="Shop", **kwargs) -> TypeRef:
    return TypeRef(name=name, kind=kind, namespace="Shop", assembly=assembly, **kwargs)


def _make_model(*types) -> ProjectModel:
    return ProjectModel(name="Shop", assembly="Shop", types=list(types))


def _edges(snapshot):
    return {(r.source, r.target, r.kind): count for r, count in snapshot.counted_edges()}


# =========================================================================
# Tests: Example scenario
# =========================================================================

class TestExampleScenario:
    def test_three_edges(self):
        snapshot = _extract(EXAMPLE)
        assert _edges(snapshot) == {
            ("A", "A.Inner", RelationKind.CONTAINS): 1,
            ("A", "Base", RelationKind.INHERITS): 1,
            ("A", "Used", RelationKind.FIELD_USES): 1,
        }
        assert snapshot.nodes == frozenset({"A", "A.Inner", "Base", "Used"})

    def test_containment_points_from_enclosing_type(self):
        snapshot = _extract(EXAMPLE)
        assert snapshot.count_of("A", "A.Inner", RelationKind.CONTAINS) == 1
        assert snapshot.count_of("A.Inner", "A", RelationKind.CONTAINS) == 0

    def test_scope_is_the_project_name(self):
        assert _extract(EXAMPLE).scope == "Shop"


# =========================================================================
# Tests: Member usage
# =========================================================================

class TestMemberUsage:
    def test_primitives_produce_no_edges(self):
        edges = _edges(_extract(ORDERS))
        targets = {target for (_, target, _) in edges}
        assert "int" not in targets
        assert "string" not in targets

    def test_nullable_is_unwrapped(self):
        snapshot = _extract(ORDERS)
        assert snapshot.count_of("Shop.Order", "Shop.Money", RelationKind.FIELD_USES) == 1
        assert "Shop.Money?" not in snapshot.nodes

    def test_self_reference_is_dropped(self):
        edges = _edges(_extract(ORDERS))
        assert not any(source == target for (source, target, _) in edges)

    def test_property_edge_and_no_accessor_return_edge(self):
        snapshot = _extract(ORDERS)
        assert snapshot.count_of("Shop.Order", "Shop.Customer", RelationKind.PROPERTY_USES) == 1
        assert snapshot.count_of("Shop.Order", "Shop.Customer", RelationKind.METHOD_RETURNS) == 0

    def test_setter_value_parameter(self):
        snapshot = _extract(ORDERS)
        assert snapshot.count_of("Shop.Order", "Shop.Customer", RelationKind.METHOD_PARAMETER) == 1

    def test_return_and_parameter_counts(self):
        snapshot = _extract(ORDERS)
        assert snapshot.count_of("Shop.Order", "Shop.Line", RelationKind.METHOD_RETURNS) == 1
        assert snapshot.count_of("Shop.Order", "Shop.Line", RelationKind.METHOD_PARAMETER) == 2

    def test_constructed_generic_and_type_parameters(self):
        snapshot = _extract('''
            public class Order { }
            public class Repo<T> { private T _item; public T Get() => default; }
            public class Store { private Repo<Order> _orders; }
        ''')
        edges = _edges(snapshot)
        assert ("Store", "Repo<Order>", RelationKind.FIELD_USES) in edges
        assert not any(source == "Repo<T>" for (source, _, _) in edges)


# =========================================================================
# Tests: Inheritance and interfaces
# =========================================================================

class TestInheritance:
    def test_transitive_interfaces(self):
        edges = _edges(_extract(HIERARCHY))
        assert ("Shop.Entity", "Shop.IAggregate", RelationKind.IMPLEMENTS) in edges
        assert ("Shop.Entity", "Shop.IEntity", RelationKind.IMPLEMENTS) in edges
        assert ("Shop.Order", "Shop.IAggregate", RelationKind.IMPLEMENTS) in edges
        assert ("Shop.Order", "Shop.IEntity", RelationKind.IMPLEMENTS) in edges
        assert ("Shop.IAggregate", "Shop.IEntity", RelationKind.IMPLEMENTS) in edges

    def test_generic_interface_substitution(self):
        edges = _edges(_extract(HIERARCHY))
        assert ("Shop.OrderRepository", "Shop.IRepository<Shop.Order>", RelationKind.IMPLEMENTS) in edges
        assert ("Shop.OrderRepository", "Shop.IOrderRepository", RelationKind.IMPLEMENTS) in edges

    def test_base_class_edge(self):
        edges = _edges(_extract(HIERARCHY))
        assert edges[("Shop.Order", "Shop.Entity", RelationKind.INHERITS)] == 1

    def test_object_and_framework_bases_are_skipped(self):
        edges = _edges(_extract(HIERARCHY))
        assert not any(source == "Shop.Plain" for (source, _, _) in edges)
        assert not any("IDisposable" in target for (_, target, _) in edges)

    def test_interface_base_is_not_inheritance(self):
        edges = _edges(_extract(HIERARCHY))
        assert not any(
            kind == RelationKind.INHERITS and source.startswith("Shop.I")
            for (source, _, kind) in edges
        )


# =========================================================================
# Tests: Scope filter
# =========================================================================

class TestScopeFilter:
    def test_internal_scope_excludes_unresolved_types(self):
        snapshot = _extract("public class C { private Logger _log; }")
        assert snapshot.nodes == frozenset()

    def test_all_scope_includes_named_external_types(self):
        snapshot = _extract("public class C { private Logger _log; }", scope=Scope.ALL)
        assert snapshot.count_of("C", "Logger", RelationKind.FIELD_USES) == 1

    def test_all_scope_still_excludes_specials(self):
        snapshot = _extract(
            "using System.Collections.Generic; public class C { private IEnumerable<C> _all; private int _n; }",
            scope=Scope.ALL,
        )
        assert snapshot.nodes == frozenset()

    def test_other_assembly_is_excluded(self):
        foreign = _ref("Helper", assembly="Lib")
        local = _ref("Local")
        owner = TypeSymbol(
            ref=_ref("Owner"),
            members=[FieldSymbol("_helper", foreign), FieldSymbol("_local", local)],
        )
        extractor = RelationExtractor(_make_model(owner, TypeSymbol(ref=local)))

        assert not extractor.include_type(foreign)
        assert extractor.include_type(local)
        assert _edges(extractor.extract()) == {("Shop.Owner", "Shop.Local", RelationKind.FIELD_USES): 1}

    def test_enclosing_type_is_filtered_too(self):
        outer = _ref("Outer", assembly="Lib")
        inner = TypeSymbol(ref=_ref("Inner", containing=("Outer",)), containing_type=outer)
        snapshot = RelationExtractor(_make_model(inner)).extract()
        assert snapshot.nodes == frozenset()

    def test_type_parameters_and_specials_are_excluded(self):
        extractor = RelationExtractor(_make_model())
        assert not extractor.include_type(TypeRef(name="T", kind=TypeKind.TYPE_PARAMETER))
        assert not extractor.include_type(
            TypeRef(name="int", kind=TypeKind.STRUCT, special="System.Int32", assembly="Shop")
        )
        assert not extractor.include_type(None)


# =========================================================================
# Tests: Usage sites
# =========================================================================

class TestUsageSites:
    def test_sites_are_tagged(self):
        line = _ref("Line")
        method = MethodSymbol("Add", line, [ParameterSymbol("other", line)])
        getter = MethodSymbol("get_Line", line, [], MethodKind.PROPERTY_GET)
        symbol = TypeSymbol(ref=_ref("Order"), members=[method, getter])

        sites = [site for site, _ in RelationExtractor(_make_model(symbol)).sites_of(symbol)]
        assert sites == [UsageSite.METHOD_RETURN, UsageSite.METHOD_PARAMETER]

    def test_structural_sites_come_first(self):
        base = _ref("Base")
        iface = _ref("IThing", kind=TypeKind.INTERFACE)
        symbol = TypeSymbol(
            ref=_ref("Thing", containing=("Outer",)),
            containing_type=_ref("Outer"),
            base_type=base,
            interfaces=[iface],
            members=[FieldSymbol("_base", base)],
        )
        sites = [site for site, _ in RelationExtractor(_make_model(symbol)).sites_of(symbol)]
        assert sites == [
            UsageSite.ENCLOSING_TYPE,
            UsageSite.BASE_TYPE,
            UsageSite.INTERFACE,
            UsageSite.FIELD,
        ]


# =========================================================================
# Tests: Failure semantics
# =========================================================================

class TestFailures:
    def test_missing_model_is_a_configuration_error(self):
        with pytest.raises(NoCompilationError):
            RelationExtractor(None)

    def test_empty_project_yields_empty_graph(self):
        snapshot = extract_relations(_make_model())
        assert snapshot.nodes == frozenset()
        assert snapshot.counted == ()

    def test_relation_keys_use_identities(self):
        snapshot = _extract(EXAMPLE)
        assert Relation("A", "Used", RelationKind.FIELD_USES) in dict(snapshot.counted_edges())
