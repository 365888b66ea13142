"""Project loader — builds a resolved ProjectModel from C# sources.

Two passes, like any name resolver:
1. Parse every file of the project (and of the projects it references)
   into raw declarations.
2. Index all declarations, then resolve every base-list entry, member
   type and parameter type into TypeRefs.

Partial types declared across several files are merged into one
TypeSymbol. Per-file failures are logged and skipped; they never abort
the load.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..constants import (
    ACCESSIBILITY_KEYWORDS,
    DEFAULT_NESTED_ACCESSIBILITY,
    DEFAULT_TOP_LEVEL_ACCESSIBILITY,
)
from .csharp_parser import CSharpParser
from .declarations import DeclaredMember, DeclaredType, FileUsings, ParseResult
from .models import (
    FieldSymbol,
    MethodKind,
    MethodSymbol,
    ParameterSymbol,
    ProjectModel,
    PropertySymbol,
    TypeKind,
    TypeRef,
    TypeSymbol,
)
from .resolver import ResolutionScope, TypeResolver
from .workspace import ProjectInfo

logger = logging.getLogger(__name__)

_INTERFACE_ONLY_BASES = (TypeKind.INTERFACE, TypeKind.STRUCT, TypeKind.RECORD_STRUCT)
_CLASS_LIKE = (TypeKind.CLASS, TypeKind.RECORD)

_SETTER_KINDS = {"set": MethodKind.PROPERTY_SET, "init": MethodKind.PROPERTY_INIT}


def load_project(
    project: ProjectInfo,
    references: Sequence[ProjectInfo] = (),
    parser: Optional[CSharpParser] = None,
) -> ProjectModel:
    """Parse and resolve one project.

    Args:
        project: The project whose types are enumerated
        references: Projects it references; their types resolve with
            their own assembly name but are not enumerated
        parser: Parser instance (a fresh CSharpParser by default)

    Returns:
        ProjectModel with every type declared by the project
    """
    parser = parser or CSharpParser()

    own_results = _parse_all(parser, project)
    reference_results = {ref.assembly: _parse_all(parser, ref) for ref in references}

    return build_model(
        name=project.name,
        assembly=project.assembly,
        results=own_results,
        reference_results=reference_results,
        root=project.root,
    )


def load_sources(
    sources: Dict[str, str],
    name: str = "Sources",
    assembly: Optional[str] = None,
    parser: Optional[CSharpParser] = None,
) -> ProjectModel:
    """Build a ProjectModel from in-memory sources ({relative path: text})."""
    parser = parser or CSharpParser()
    results = [parser.parse_source(text, path) for path, text in sources.items()]
    return build_model(name=name, assembly=assembly or name, results=results)


def build_model(
    name: str,
    assembly: str,
    results: List[ParseResult],
    reference_results: Optional[Dict[str, List[ParseResult]]] = None,
    root: str = "",
) -> ProjectModel:
    """Resolve parsed files into a ProjectModel (pass 2)."""
    reference_results = reference_results or {}
    warnings = [
        f"{e.file_path}:{e.line}: {e.message}"
        for result in results
        for e in result.errors
    ]

    own_types = [t for result in results for t in result.types]
    declarations: List[Tuple[DeclaredType, str]] = [(t, assembly) for t in own_types]
    for ref_assembly, ref_results in reference_results.items():
        declarations.extend((t, ref_assembly) for r in ref_results for t in r.types)

    resolver = TypeResolver(declarations, _merge_global_usings(results))

    groups: Dict[str, List[DeclaredType]] = {}
    for declared in own_types:
        groups.setdefault(declared.lookup_key, []).append(declared)

    types = [_build_symbol(parts, resolver) for parts in groups.values()]

    logger.info(
        f"Project '{name}': {len(results)} files, {len(types)} types"
        + (f", {len(warnings)} warnings" if warnings else "")
    )
    return ProjectModel(
        name=name,
        assembly=assembly,
        types=types,
        root=root,
        file_count=len(results),
        warnings=warnings,
    )


def _parse_all(parser: CSharpParser, project: ProjectInfo) -> List[ParseResult]:
    results = []
    for file_path in project.source_files:
        result = parser.parse_file(file_path, project.root)
        for error in result.errors:
            logger.warning(f"{project.name}: {error.file_path}: {error.message}")
        logger.debug(f"Parsed {result.file_path}: {len(result.types)} types")
        results.append(result)
    return results


def _merge_global_usings(results: Iterable[ParseResult]) -> FileUsings:
    merged = FileUsings()
    for result in results:
        for ns in result.usings.global_namespaces:
            if ns not in merged.namespaces:
                merged.namespaces.append(ns)
        merged.aliases.update(result.usings.global_aliases)
    return merged


# =============================================================================
# Symbol construction
# =============================================================================


def _build_symbol(parts: List[DeclaredType], resolver: TypeResolver) -> TypeSymbol:
    """Merge the (partial) declarations of one type into a TypeSymbol."""
    first = parts[0]
    symbol = TypeSymbol(
        ref=resolver.ref_for(first),
        containing_type=resolver.ref_for(first.parent) if first.parent is not None else None,
        type_parameters=list(first.type_parameters),
        file_path=first.file_path,
    )

    for declared in parts:
        for modifier in declared.modifiers:
            if modifier not in symbol.modifiers:
                symbol.modifiers.append(modifier)
        _resolve_bases(declared, symbol, resolver)
        for member in declared.members:
            symbol.members.extend(_resolve_member(member, declared, resolver))

    symbol.accessibility = _accessibility(symbol.modifiers, nested=first.parent is not None)
    return symbol


def _resolve_bases(declared: DeclaredType, symbol: TypeSymbol, resolver: TypeResolver) -> None:
    """Split base-list entries into the base class and interfaces."""
    scope = ResolutionScope.for_type(declared)
    known = {i.display_name for i in symbol.interfaces}

    for text in declared.base_texts:
        ref = resolver.resolve_text(text, scope)
        if ref is None:
            continue

        if symbol.kind in _INTERFACE_ONLY_BASES or _looks_like_interface(ref):
            if ref.display_name not in known:
                known.add(ref.display_name)
                symbol.interfaces.append(ref)
        elif symbol.base_type is None:
            symbol.base_type = ref
        elif ref.display_name not in known:
            # Ambiguous: only one base class is possible
            known.add(ref.display_name)
            symbol.interfaces.append(ref)


def _looks_like_interface(ref: TypeRef) -> bool:
    if ref.kind == TypeKind.INTERFACE:
        return True
    if ref.kind in _CLASS_LIKE or ref.is_special:
        return False
    # Unresolved: I + uppercase naming convention
    name = ref.name
    return len(name) >= 2 and name[0] == "I" and name[1].isupper()


def _resolve_member(member: DeclaredMember, declared: DeclaredType, resolver: TypeResolver) -> List[object]:
    scope = ResolutionScope.for_type(declared, member.type_parameters)
    parameters = _resolve_parameters(member.parameters, scope, resolver)

    if member.member_kind == "field":
        ref = resolver.resolve_text(member.type_text, scope)
        return [FieldSymbol(member.name, ref)] if ref is not None else []

    if member.member_kind == "property":
        ref = resolver.resolve_text(member.type_text, scope)
        if ref is None:
            return []
        accessor_name = "Item" if member.name == "this[]" else member.name
        symbols: List[object] = [PropertySymbol(member.name, ref, parameters)]
        for accessor in member.accessors:
            if accessor == "get":
                symbols.append(MethodSymbol(
                    f"get_{accessor_name}", ref, list(parameters), MethodKind.PROPERTY_GET
                ))
            else:
                symbols.append(MethodSymbol(
                    f"set_{accessor_name}",
                    None,
                    list(parameters) + [ParameterSymbol("value", ref)],
                    _SETTER_KINDS.get(accessor, MethodKind.PROPERTY_SET),
                ))
        return symbols

    return_type = resolver.resolve_text(member.type_text, scope) if member.type_text else None
    if return_type is not None and return_type.special == "System.Void":
        return_type = None
    return [MethodSymbol(member.name, return_type, parameters, member.method_kind)]


def _resolve_parameters(
    parameters: List[Tuple[str, str]], scope: ResolutionScope, resolver: TypeResolver
) -> List[ParameterSymbol]:
    resolved = []
    for name, type_text in parameters:
        ref = resolver.resolve_text(type_text, scope)
        if ref is not None:
            resolved.append(ParameterSymbol(name, ref))
    return resolved


def _accessibility(modifiers: List[str], nested: bool) -> str:
    words = [m for m in modifiers if m in ACCESSIBILITY_KEYWORDS]
    if words:
        return " ".join(words)
    return DEFAULT_NESTED_ACCESSIBILITY if nested else DEFAULT_TOP_LEVEL_ACCESSIBILITY
