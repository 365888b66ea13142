"""Resolved symbol model for one project.

Language-neutral view of a project's types and members, with every type
reference already resolved. Produced by the loader, consumed by the
relation extractor. These are pure data containers plus the two
queries the extractor needs (interface closure and the assembly test).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Dict, List, Optional, Tuple


class TypeKind(Enum):
    """What a type reference or declaration denotes."""
    CLASS = "class"
    STRUCT = "struct"
    INTERFACE = "interface"
    ENUM = "enum"
    RECORD = "record"
    RECORD_STRUCT = "record_struct"
    DELEGATE = "delegate"
    TYPE_PARAMETER = "type_parameter"
    ARRAY = "array"
    POINTER = "pointer"
    TUPLE = "tuple"
    UNKNOWN = "unknown"  # named, but not declared in any analysed source


NAMED_KINDS = frozenset({
    TypeKind.CLASS,
    TypeKind.STRUCT,
    TypeKind.INTERFACE,
    TypeKind.ENUM,
    TypeKind.RECORD,
    TypeKind.RECORD_STRUCT,
    TypeKind.DELEGATE,
    TypeKind.UNKNOWN,
})

VALUE_KINDS = frozenset({TypeKind.STRUCT, TypeKind.ENUM, TypeKind.RECORD_STRUCT})

# Kinds that take part in class inheritance
CLASS_OR_STRUCT_KINDS = frozenset({
    TypeKind.CLASS,
    TypeKind.STRUCT,
    TypeKind.RECORD,
    TypeKind.RECORD_STRUCT,
})

NULLABLE_SPECIAL = "System.Nullable`1"
OBJECT_SPECIAL = "System.Object"


class MethodKind(Enum):
    ORDINARY = "ordinary"
    CONSTRUCTOR = "constructor"
    OPERATOR = "operator"
    CONVERSION = "conversion"
    DELEGATE_INVOKE = "delegate_invoke"
    PROPERTY_GET = "property_get"
    PROPERTY_SET = "property_set"
    PROPERTY_INIT = "property_init"


ACCESSOR_KINDS = frozenset({
    MethodKind.PROPERTY_GET,
    MethodKind.PROPERTY_SET,
    MethodKind.PROPERTY_INIT,
})


class MemberKind(Enum):
    FIELD = "field"
    PROPERTY = "property"
    METHOD = "method"


@dataclass(frozen=True)
class TypeRef:
    """A resolved reference to a type.

    Attributes:
        name: Simple name ("Order"), keyword for built-ins ("int"),
            or the rank specifier for arrays ("[]").
        kind: What the reference denotes.
        namespace: Dotted namespace, "" for the global namespace.
        containing: Display names of the enclosing types, outermost first.
        type_args: Generic arguments (type parameters for open declarations).
        assembly: Assembly that declares the type; None when unknown.
        special: CLR name of a primitive/built-in type ("System.Int32").
        element: Element type of an array or pointer.
    """
    name: str
    kind: TypeKind = TypeKind.UNKNOWN
    namespace: str = ""
    containing: Tuple[str, ...] = ()
    type_args: Tuple["TypeRef", ...] = ()
    assembly: Optional[str] = None
    special: Optional[str] = None
    element: Optional["TypeRef"] = None

    @property
    def is_named(self) -> bool:
        return self.kind in NAMED_KINDS

    @property
    def is_special(self) -> bool:
        return self.special is not None

    @property
    def is_value_type(self) -> bool:
        return self.kind in VALUE_KINDS

    @property
    def is_nullable_wrapper(self) -> bool:
        return self.special == NULLABLE_SPECIAL and len(self.type_args) == 1

    def unwrap_nullable(self) -> "TypeRef":
        """Return the underlying type of a Nullable<T> wrapper, else self."""
        if self.is_nullable_wrapper:
            return self.type_args[0]
        return self

    @property
    def qualified_name(self) -> str:
        """Namespace + enclosing types + simple name, without generics."""
        parts = []
        if self.namespace:
            parts.append(self.namespace)
        parts.extend(self.containing)
        parts.append(self.name)
        return ".".join(parts)

    @property
    def definition_key(self) -> str:
        """Lookup key of the declaring type: qualified name plus generic arity."""
        key = self.qualified_name
        if self.type_args:
            key += f"`{len(self.type_args)}"
        return key

    @property
    def display_name(self) -> str:
        """Deterministic identity string used as a graph node."""
        if self.is_nullable_wrapper:
            return f"{self.type_args[0].display_name}?"
        if self.kind == TypeKind.ARRAY and self.element is not None:
            return f"{self.element.display_name}{self.name}"
        if self.kind == TypeKind.POINTER and self.element is not None:
            return f"{self.element.display_name}*"
        if self.kind == TypeKind.TUPLE:
            return "(" + ", ".join(a.display_name for a in self.type_args) + ")"
        if self.is_special or self.kind == TypeKind.TYPE_PARAMETER:
            return self.name

        text = self.qualified_name
        if self.type_args:
            text += "<" + ", ".join(a.display_name for a in self.type_args) + ">"
        return text

    def __str__(self) -> str:
        return self.display_name


@dataclass
class ParameterSymbol:
    name: str
    type: TypeRef


@dataclass
class FieldSymbol:
    name: str
    type: TypeRef
    member_kind: ClassVar[MemberKind] = MemberKind.FIELD


@dataclass
class PropertySymbol:
    name: str
    type: TypeRef
    parameters: List[ParameterSymbol] = field(default_factory=list)  # indexers only
    member_kind: ClassVar[MemberKind] = MemberKind.PROPERTY


@dataclass
class MethodSymbol:
    name: str
    return_type: Optional[TypeRef]  # None for void / constructors
    parameters: List[ParameterSymbol] = field(default_factory=list)
    method_kind: MethodKind = MethodKind.ORDINARY
    member_kind: ClassVar[MemberKind] = MemberKind.METHOD

    @property
    def returns_void(self) -> bool:
        return self.return_type is None

    @property
    def is_accessor(self) -> bool:
        return self.method_kind in ACCESSOR_KINDS


@dataclass
class TypeSymbol:
    """A type declared in the analysed project.

    Attributes:
        ref: Reference to this type (type parameters as arguments).
        containing_type: Enclosing type for nested declarations.
        base_type: Explicit base class, None when implicit.
        interfaces: Directly implemented (or, for interfaces, extended) interfaces.
        members: Fields, properties and methods in declaration order.
    """
    ref: TypeRef
    containing_type: Optional[TypeRef] = None
    base_type: Optional[TypeRef] = None
    interfaces: List[TypeRef] = field(default_factory=list)
    members: List[object] = field(default_factory=list)
    type_parameters: List[str] = field(default_factory=list)
    modifiers: List[str] = field(default_factory=list)
    accessibility: str = "internal"
    file_path: str = ""

    @property
    def kind(self) -> TypeKind:
        return self.ref.kind

    @property
    def name(self) -> str:
        return self.ref.name

    @property
    def identity(self) -> str:
        return self.ref.display_name

    @property
    def is_class_or_struct(self) -> bool:
        return self.ref.kind in CLASS_OR_STRUCT_KINDS

    @property
    def folder(self) -> str:
        """Directory of the declaring file, relative to the project root."""
        normalized = self.file_path.replace("\\", "/")
        return normalized.rsplit("/", 1)[0] if "/" in normalized else ""


@dataclass
class ProjectModel:
    """All types declared by one project, with resolved references."""
    name: str
    assembly: str
    types: List[TypeSymbol] = field(default_factory=list)
    root: str = ""
    file_count: int = 0
    warnings: List[str] = field(default_factory=list)

    def __post_init__(self):
        self._by_key: Dict[str, TypeSymbol] = {}
        for t in self.types:
            self._by_key.setdefault(t.ref.definition_key, t)

    def find_type(self, ref: TypeRef) -> Optional[TypeSymbol]:
        """Find the declaration behind a (possibly constructed) reference."""
        if not self.is_in_assembly(ref):
            return None
        return self._by_key.get(ref.definition_key)

    def is_in_assembly(self, ref: TypeRef) -> bool:
        return ref.assembly is not None and ref.assembly == self.assembly

    def all_interfaces(self, symbol: TypeSymbol) -> List[TypeRef]:
        """Direct and inherited interfaces of a type, deduplicated.

        Follows interface inheritance and the base-class chain for types
        declared in this project, substituting generic arguments along the
        way. Interfaces declared elsewhere contribute only themselves.
        """
        result: List[TypeRef] = []
        seen: set = set()
        self._collect_interfaces(symbol, {}, result, seen, visiting=set())
        return result

    def _collect_interfaces(
        self,
        symbol: TypeSymbol,
        bindings: Dict[str, TypeRef],
        result: List[TypeRef],
        seen: set,
        visiting: set,
    ) -> None:
        key = symbol.ref.definition_key
        if key in visiting:
            return
        visiting.add(key)

        for iface in symbol.interfaces:
            bound = substitute(iface, bindings)
            if bound.display_name in seen:
                continue
            seen.add(bound.display_name)
            result.append(bound)
            declared = self.find_type(bound)
            if declared is not None:
                self._collect_interfaces(
                    declared, bind_arguments(declared, bound), result, seen, visiting
                )

        if symbol.base_type is not None:
            base = substitute(symbol.base_type, bindings)
            declared = self.find_type(base)
            if declared is not None:
                self._collect_interfaces(
                    declared, bind_arguments(declared, base), result, seen, visiting
                )

        visiting.discard(key)


def bind_arguments(declared: TypeSymbol, constructed: TypeRef) -> Dict[str, TypeRef]:
    """Map a declaration's type parameter names to a reference's arguments."""
    if len(declared.type_parameters) != len(constructed.type_args):
        return {}
    return dict(zip(declared.type_parameters, constructed.type_args))


def substitute(ref: TypeRef, bindings: Dict[str, TypeRef]) -> TypeRef:
    """Replace type parameters in a reference according to bindings."""
    if not bindings:
        return ref
    if ref.kind == TypeKind.TYPE_PARAMETER:
        return bindings.get(ref.name, ref)
    if not ref.type_args and ref.element is None:
        return ref
    return TypeRef(
        name=ref.name,
        kind=ref.kind,
        namespace=ref.namespace,
        containing=ref.containing,
        type_args=tuple(substitute(a, bindings) for a in ref.type_args),
        assembly=ref.assembly,
        special=ref.special,
        element=substitute(ref.element, bindings) if ref.element is not None else None,
    )
