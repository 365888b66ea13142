"""TypeResolver — turns raw type text into resolved TypeRefs.

Built once per project load from every declaration the parser found
(the project's own files plus referenced projects), then asked to
resolve each base-list entry, member type and parameter type in the
lexical context where it was written.

Resolution order for a name written inside type T:
1. Type parameters (method, T, enclosing types)
2. C# keyword types
3. Types nested in T and its enclosing types
4. The current namespace, then each outer namespace
5. using aliases (file, then global)
6. Namespaces imported by using directives (file, then global)
7. Otherwise: an external reference with no assembly
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..constants import (
    KEYWORD_TYPES,
    KNOWN_VALUE_TYPES,
    REFERENCE_KEYWORDS,
    SPECIAL_CLR_INTERFACES,
    SPECIAL_CLR_NAMES,
    SPECIAL_GENERIC_NAMES,
)
from .declarations import DeclaredType, FileUsings
from .models import NULLABLE_SPECIAL, TypeKind, TypeRef
from .type_syntax import TypeSyntax, parse_type_syntax

logger = logging.getLogger(__name__)


@dataclass
class ResolutionScope:
    """Lexical context of a type reference."""
    declaring: Optional[DeclaredType]
    namespace: str = ""
    usings: FileUsings = field(default_factory=FileUsings)
    method_type_parameters: Sequence[str] = ()

    @classmethod
    def for_type(cls, declared: DeclaredType, method_type_parameters: Sequence[str] = ()) -> "ResolutionScope":
        return cls(
            declaring=declared,
            namespace=declared.namespace,
            usings=declared.usings,
            method_type_parameters=tuple(method_type_parameters),
        )

    def type_parameters(self) -> List[str]:
        names = list(self.method_type_parameters)
        current = self.declaring
        while current is not None:
            names.extend(current.type_parameters)
            current = current.parent
        return names


class TypeResolver:
    """Resolves type syntax against all declarations visible to one project.

    Attributes:
        by_key: Declarations indexed by lookup key ("Shop.Repo`1.Entry").
        assembly_of: Assembly name per declaration key.
        global_usings: Namespaces and aliases from `global using` directives.
    """

    def __init__(
        self,
        declarations: Iterable[Tuple[DeclaredType, str]],
        global_usings: Optional[FileUsings] = None,
    ):
        self.by_key: Dict[str, DeclaredType] = {}
        self.assembly_of: Dict[str, str] = {}
        self.global_usings = global_usings or FileUsings()

        for declared, assembly in declarations:
            key = declared.lookup_key
            if key in self.by_key:
                # partial types and duplicate declarations share one identity
                continue
            self.by_key[key] = declared
            self.assembly_of[key] = assembly

    # =========================================================================
    # Declarations
    # =========================================================================

    def ref_for(self, declared: DeclaredType, type_args: Tuple[TypeRef, ...] = ()) -> TypeRef:
        """Reference to a declaration; open type parameters when no args given."""
        key = declared.lookup_key
        canonical = self.by_key.get(key, declared)
        if not type_args:
            type_args = tuple(
                TypeRef(name=p, kind=TypeKind.TYPE_PARAMETER) for p in canonical.type_parameters
            )
        return TypeRef(
            name=canonical.name,
            kind=canonical.kind,
            namespace=canonical.namespace,
            containing=tuple(t.display_segment for t in canonical.chain),
            type_args=type_args,
            assembly=self.assembly_of.get(key),
        )

    def find(self, key: str) -> Optional[DeclaredType]:
        return self.by_key.get(key)

    # =========================================================================
    # Resolution
    # =========================================================================

    def resolve_text(self, text: Optional[str], scope: ResolutionScope) -> Optional[TypeRef]:
        """Resolve raw type text; None when the text cannot be parsed."""
        syntax = parse_type_syntax(text)
        if syntax.kind == "unknown":
            if text:
                logger.debug(f"Unparseable type text: {text!r}")
            return None
        return self.resolve(syntax, scope)

    def resolve(self, syntax: TypeSyntax, scope: ResolutionScope) -> Optional[TypeRef]:
        if syntax.kind == "keyword":
            return _keyword_ref(syntax.parts[0].name)

        if syntax.kind == "nullable":
            inner = self.resolve(syntax.element, scope)
            if inner is None:
                return None
            if _is_value_type(inner):
                return _nullable_of(inner)
            # Nullable reference annotation: same type
            return inner

        if syntax.kind in ("array", "pointer"):
            element = self.resolve(syntax.element, scope)
            if element is None:
                return None
            if syntax.kind == "pointer":
                return TypeRef(name="*", kind=TypeKind.POINTER, element=element)
            return TypeRef(name="[" + "," * (syntax.rank - 1) + "]", kind=TypeKind.ARRAY, element=element)

        if syntax.kind == "tuple":
            elements = [self.resolve(e, scope) for e in syntax.elements]
            if any(e is None for e in elements):
                return None
            return TypeRef(name="ValueTuple", kind=TypeKind.TUPLE, type_args=tuple(elements))

        if syntax.kind == "name":
            return self._resolve_name(syntax, scope)

        return None

    def _resolve_name(self, syntax: TypeSyntax, scope: ResolutionScope) -> Optional[TypeRef]:
        parts = syntax.parts
        first = parts[0]

        if len(parts) == 1 and not first.args and not syntax.alias:
            if first.name in scope.type_parameters():
                return TypeRef(name=first.name, kind=TypeKind.TYPE_PARAMETER)

        args = tuple(self.resolve(a, scope) for a in parts[-1].args)
        if any(a is None for a in args):
            args = tuple(
                a if a is not None else TypeRef(name="?", kind=TypeKind.UNKNOWN) for a in args
            )

        declared = self._lookup(syntax, scope)
        if declared is not None:
            return self.ref_for(declared, args)

        alias_ref = self._resolve_alias(syntax, scope)
        if alias_ref is not None:
            return alias_ref

        declared = self._lookup_imported(syntax, scope)
        if declared is not None:
            return self.ref_for(declared, args)

        return _external_ref(syntax, args)

    def _lookup(self, syntax: TypeSyntax, scope: ResolutionScope) -> Optional[DeclaredType]:
        """Find the declaration a (possibly qualified) name refers to."""
        key = syntax.key

        if syntax.alias == "global":
            return self.by_key.get(key)

        # Nested in the declaring type or its enclosing types, innermost first
        current = scope.declaring
        while current is not None:
            found = self.by_key.get(f"{current.lookup_key}.{key}")
            if found is not None:
                return found
            current = current.parent

        # Current namespace, then each outer namespace, then global
        namespace = scope.namespace
        while namespace:
            found = self.by_key.get(f"{namespace}.{key}")
            if found is not None:
                return found
            namespace = namespace.rpartition(".")[0]
        found = self.by_key.get(key)
        if found is not None:
            return found

        # Alias as the first segment of a qualified name: using M = Shop.Models; M.Order
        if len(syntax.parts) > 1:
            target = self._alias_target(syntax.parts[0].name, scope)
            if target is not None:
                rest = ".".join(p.key for p in syntax.parts[1:])
                found = self.by_key.get(f"{target}.{rest}")
                if found is not None:
                    return found

        return None

    def _lookup_imported(self, syntax: TypeSyntax, scope: ResolutionScope) -> Optional[DeclaredType]:
        """Find a name in the namespaces imported with using directives."""
        if syntax.alias == "global":
            return None
        for imported in self._imported_namespaces(scope):
            found = self.by_key.get(f"{imported}.{syntax.key}")
            if found is not None:
                return found
        return None

    def _resolve_alias(self, syntax: TypeSyntax, scope: ResolutionScope) -> Optional[TypeRef]:
        """Aliases (using Foo = Some.Type;) apply to single-segment references only."""
        if len(syntax.parts) != 1 or syntax.parts[0].args or syntax.alias:
            return None
        target = self._alias_target(syntax.parts[0].name, scope)
        if target is None:
            return None
        # Alias targets are resolved as if fully qualified
        target_syntax = parse_type_syntax(target)
        if target_syntax.kind == "unknown":
            return None
        return self.resolve(target_syntax, ResolutionScope(declaring=None))

    def _alias_target(self, name: str, scope: ResolutionScope) -> Optional[str]:
        return scope.usings.aliases.get(name) or self.global_usings.aliases.get(name)

    def _imported_namespaces(self, scope: ResolutionScope) -> List[str]:
        return list(scope.usings.namespaces) + [
            ns for ns in self.global_usings.namespaces if ns not in scope.usings.namespaces
        ]


# =============================================================================
# Built-in and external references
# =============================================================================


def _keyword_ref(keyword: str) -> TypeRef:
    kind = TypeKind.CLASS if keyword in REFERENCE_KEYWORDS else TypeKind.STRUCT
    return TypeRef(name=keyword, kind=kind, namespace="System", special=KEYWORD_TYPES[keyword])


def _nullable_of(inner: TypeRef) -> TypeRef:
    return TypeRef(
        name="Nullable",
        kind=TypeKind.STRUCT,
        namespace="System",
        type_args=(inner,),
        special=NULLABLE_SPECIAL,
    )


def _is_value_type(ref: TypeRef) -> bool:
    if ref.is_value_type:
        return True
    return ref.kind == TypeKind.UNKNOWN and not ref.type_args and ref.name in KNOWN_VALUE_TYPES


def _external_ref(syntax: TypeSyntax, args: Tuple[TypeRef, ...]) -> TypeRef:
    """A named type not declared in any analysed source."""
    last = syntax.parts[-1]
    qualifier = ".".join(p.name for p in syntax.parts[:-1])
    is_system = qualifier in ("", "System")

    if is_system and (last.name, len(args)) == ("Nullable", 1):
        return _nullable_of(args[0])
    if is_system and not args and last.name in SPECIAL_CLR_NAMES:
        if last.name in KNOWN_VALUE_TYPES:
            kind = TypeKind.STRUCT
        elif last.name in SPECIAL_CLR_INTERFACES:
            kind = TypeKind.INTERFACE
        else:
            kind = TypeKind.CLASS
        return TypeRef(
            name=last.name,
            kind=kind,
            namespace="System",
            special=f"System.{last.name}",
        )
    if (last.name, len(args)) in SPECIAL_GENERIC_NAMES:
        return TypeRef(
            name=last.name,
            kind=TypeKind.INTERFACE,
            namespace=qualifier,
            type_args=args,
            special=f"{last.name}`{len(args)}",
        )

    return TypeRef(
        name=last.name,
        kind=TypeKind.UNKNOWN,
        namespace=qualifier,
        type_args=args,
    )
