"""Shared constants: C# built-in type tables and default rendering tokens.

Kept in one place so the loader, the extractor and the renderers agree on
what counts as a primitive and how relation kinds are drawn.
"""

import re

from .relation_graph.models import RelationKind

# =============================================================================
# C# keyword types
# =============================================================================

# keyword -> CLR special type name
KEYWORD_TYPES = {
    "bool": "System.Boolean",
    "byte": "System.Byte",
    "sbyte": "System.SByte",
    "char": "System.Char",
    "decimal": "System.Decimal",
    "double": "System.Double",
    "float": "System.Single",
    "int": "System.Int32",
    "uint": "System.UInt32",
    "nint": "System.IntPtr",
    "nuint": "System.UIntPtr",
    "long": "System.Int64",
    "ulong": "System.UInt64",
    "short": "System.Int16",
    "ushort": "System.UInt16",
    "object": "System.Object",
    "string": "System.String",
    "void": "System.Void",
    "dynamic": "dynamic",
}

# Keyword types that are reference types (everything else is a value type)
REFERENCE_KEYWORDS = frozenset({"object", "string", "dynamic", "void"})

# =============================================================================
# Framework types the compiler treats as special
# =============================================================================

# Simple (or System-qualified) names that resolve to a built-in type when
# nothing in the analysed sources declares them.
SPECIAL_CLR_NAMES = frozenset({
    "Object", "String", "Boolean", "Byte", "SByte", "Char", "Decimal",
    "Double", "Single", "Int16", "Int32", "Int64", "UInt16", "UInt32",
    "UInt64", "IntPtr", "UIntPtr", "Void", "ValueType", "Enum", "Array",
    "Delegate", "MulticastDelegate", "DateTime", "IDisposable",
    "IAsyncResult", "AsyncCallback", "TypedReference", "ArgIterator",
    "RuntimeArgumentHandle", "RuntimeFieldHandle", "RuntimeMethodHandle",
    "RuntimeTypeHandle",
})

# Members of SPECIAL_CLR_NAMES that are interfaces
SPECIAL_CLR_INTERFACES = frozenset({"IDisposable", "IAsyncResult"})

# Generic framework types the compiler treats as special, by arity
SPECIAL_GENERIC_NAMES = frozenset({
    ("Nullable", 1),
    ("IEnumerable", 1),
    ("IEnumerator", 1),
    ("IList", 1),
    ("ICollection", 1),
    ("IReadOnlyList", 1),
    ("IReadOnlyCollection", 1),
})

# Value-type framework names used to decide whether T? is Nullable<T>
KNOWN_VALUE_TYPES = frozenset({
    "Boolean", "Byte", "SByte", "Char", "Decimal", "Double", "Single",
    "Int16", "Int32", "Int64", "UInt16", "UInt32", "UInt64", "IntPtr",
    "UIntPtr", "DateTime", "DateTimeOffset", "DateOnly", "TimeOnly",
    "TimeSpan", "Guid",
})

# =============================================================================
# Declaration defaults
# =============================================================================

ACCESSIBILITY_KEYWORDS = ("public", "private", "protected", "internal", "file")

DEFAULT_TOP_LEVEL_ACCESSIBILITY = "internal"
DEFAULT_NESTED_ACCESSIBILITY = "private"

# =============================================================================
# Diagram tokens
# =============================================================================

# Anything outside letters, digits and "_" is illegal in a diagram identifier
ALIAS_ILLEGAL_PATTERN = re.compile(r"\W")

PLANTUML_ARROWS = {
    RelationKind.INHERITS: "<|--",
    RelationKind.IMPLEMENTS: "<|..",
    RelationKind.CONTAINS: "*--",
    RelationKind.FIELD_USES: "..>",
    RelationKind.PROPERTY_USES: "..>",
    RelationKind.METHOD_RETURNS: "..>",
    RelationKind.METHOD_PARAMETER: "..>",
}

MERMAID_ARROWS = dict(PLANTUML_ARROWS)

DEFAULT_ARROW = "..>"

USAGE_LABELS = {
    RelationKind.FIELD_USES: "field",
    RelationKind.PROPERTY_USES: "property",
    RelationKind.METHOD_RETURNS: "returns",
    RelationKind.METHOD_PARAMETER: "param",
}

# Arrowhead points at the supertype, so the target is written first
REVERSED_KINDS = frozenset({RelationKind.INHERITS, RelationKind.IMPLEMENTS})

COUNT_SIGN = "×"
