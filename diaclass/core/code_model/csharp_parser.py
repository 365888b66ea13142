"""C# declaration parser using tree-sitter.

Walks the tree-sitter AST of one C# file and records every type
declaration (classes, structs, interfaces, enums, records, delegates,
nested types flattened) together with the members that can reference
other types: fields, properties, indexers, methods, constructors,
operators. Type references stay as raw text; resolution happens in the
loader once all files of a project are known.
"""

import logging
import re
from typing import List, Optional, Tuple

import tree_sitter
import tree_sitter_c_sharp

from .declarations import DeclaredMember, DeclaredType, FileUsings, ParseError, ParseResult
from .models import MethodKind, TypeKind

logger = logging.getLogger(__name__)

_CSHARP_LANGUAGE = tree_sitter.Language(tree_sitter_c_sharp.language())

_TYPE_DECLARATIONS = {
    "class_declaration": TypeKind.CLASS,
    "struct_declaration": TypeKind.STRUCT,
    "interface_declaration": TypeKind.INTERFACE,
    "enum_declaration": TypeKind.ENUM,
    "record_declaration": TypeKind.RECORD,
    "record_struct_declaration": TypeKind.RECORD_STRUCT,
    "delegate_declaration": TypeKind.DELEGATE,
}

_NAMESPACE_DECLARATIONS = ("namespace_declaration", "file_scoped_namespace_declaration")

_USING_RE = re.compile(
    r"^\s*(?P<global>global\s+)?using\s+(?P<static>static\s+)?"
    r"(?:(?P<alias>@?\w+)\s*=\s*)?(?P<target>[^;]+?)\s*;?\s*$",
    re.DOTALL,
)

_ACCESSOR_RE = re.compile(r"\b(get|set|init)\b")
_ACCESSOR_KEYWORDS = ("get", "set", "init")

_PARAMETER_NODES = ("parameter", "parameter_array")


class CSharpParser:
    """tree-sitter based C# declaration parser.

    Extracts:
    - Namespaces (block and file-scoped) -> DeclaredType.namespace
    - using directives (plain, global, alias) -> FileUsings
    - Type declarations, nested ones flattened with a parent link
    - Fields (one member per declarator), properties, indexers,
      methods, constructors, operators, conversion operators
    - Primary constructors and positional record parameters
    """

    def get_language(self) -> str:
        return "csharp"

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _CSHARP_LANGUAGE

    def parse_file(self, file_path: str, project_root: str = "") -> ParseResult:
        """Parse a C# file into declarations.

        Args:
            file_path: Absolute path to the source file
            project_root: Project root for computing relative paths

        Returns:
            ParseResult; unreadable files yield an empty result with an error
        """
        rel_path = _relative_path(file_path, project_root)

        try:
            with open(file_path, "r", encoding="utf-8-sig", errors="replace") as f:
                source_text = f.read()
        except OSError as e:
            return ParseResult(
                file_path=rel_path,
                types=[],
                usings=FileUsings(),
                errors=[ParseError(file_path=rel_path, line=0, message=str(e), severity="error")],
            )

        return self.parse_source(source_text, rel_path)

    def parse_source(self, source_text: str, file_path: str) -> ParseResult:
        """Parse C# source text into declarations.

        Args:
            source_text: Source code as string
            file_path: Relative file path (for metadata)
        """
        errors: List[ParseError] = []
        source_bytes = source_text.encode("utf-8")
        line_count = source_text.count("\n") + (1 if source_text and not source_text.endswith("\n") else 0)

        parser = tree_sitter.Parser(self.get_tree_sitter_language())
        tree = parser.parse(source_bytes)

        if tree.root_node.has_error:
            errors.append(
                ParseError(
                    file_path=file_path,
                    line=0,
                    message="Tree-sitter reported parse errors in file",
                    severity="warning",
                )
            )

        usings = FileUsings()
        types: List[DeclaredType] = []
        try:
            self._walk_members(tree.root_node, source_bytes, file_path, "", None, usings, types)
        except Exception as e:
            logger.error(f"Failed to extract declarations from {file_path}: {e}")
            errors.append(
                ParseError(file_path=file_path, line=0, message=f"Declaration extraction failed: {e}", severity="error")
            )

        return ParseResult(
            file_path=file_path,
            types=types,
            usings=usings,
            line_count=line_count,
            errors=errors,
        )

    # =========================================================================
    # Recursive walker
    # =========================================================================

    def _walk_members(
        self,
        node: tree_sitter.Node,
        source: bytes,
        file_path: str,
        namespace: str,
        parent: Optional[DeclaredType],
        usings: FileUsings,
        types: List[DeclaredType],
    ) -> None:
        """Walk a compilation unit, namespace body or type body."""
        current_ns = namespace
        for child in node.children:
            if child.type == "using_directive":
                self._extract_using(child, source, usings)

            elif child.type in _NAMESPACE_DECLARATIONS:
                ns_name = self._extract_namespace_name(child, source)
                full_ns = f"{namespace}.{ns_name}" if namespace and ns_name else (ns_name or namespace)
                if child.type == "file_scoped_namespace_declaration":
                    # Applies to the declarations that follow it in the file
                    current_ns = full_ns
                self._walk_members(child, source, file_path, full_ns, parent, usings, types)

            elif child.type == "declaration_list":
                self._walk_members(child, source, file_path, current_ns, parent, usings, types)

            elif child.type in _TYPE_DECLARATIONS:
                self._extract_type(child, source, file_path, current_ns, parent, usings, types)

    # =========================================================================
    # Type-level extractors
    # =========================================================================

    def _extract_type(
        self,
        node: tree_sitter.Node,
        source: bytes,
        file_path: str,
        namespace: str,
        parent: Optional[DeclaredType],
        usings: FileUsings,
        types: List[DeclaredType],
    ) -> None:
        """Extract one type declaration, its members and nested types."""
        name = self._get_child_text(node, "name", source)
        if not name:
            return

        kind = _TYPE_DECLARATIONS[node.type]
        if kind == TypeKind.RECORD and self._get_child_by_type(node, "struct") is not None:
            kind = TypeKind.RECORD_STRUCT

        declared = DeclaredType(
            name=name,
            kind=kind,
            namespace=namespace,
            file_path=file_path,
            parent=parent,
            type_parameters=self._extract_type_parameters(node, source),
            base_texts=self._extract_base_texts(node, source) if kind != TypeKind.ENUM else [],
            modifiers=self._extract_modifiers(node, source),
            usings=usings,
            line=node.start_point.row + 1,
        )
        types.append(declared)

        if kind == TypeKind.DELEGATE:
            declared.members.append(DeclaredMember(
                member_kind="method",
                name="Invoke",
                type_text=self._get_type_text(node, source, "type", "returns"),
                parameters=self._extract_parameters(node, source),
                method_kind=MethodKind.DELEGATE_INVOKE,
                line=node.start_point.row + 1,
            ))
            return

        if kind == TypeKind.ENUM:
            return

        self._extract_primary_constructor(node, source, declared)

        body = node.child_by_field_name("body") or self._get_child_by_type(node, "declaration_list")
        if body is None:
            return

        for child in body.children:
            if child.type == "field_declaration":
                declared.members.extend(self._extract_fields(child, source))

            elif child.type == "property_declaration":
                prop = self._extract_property(child, source)
                if prop:
                    declared.members.append(prop)

            elif child.type == "indexer_declaration":
                declared.members.append(self._extract_indexer(child, source))

            elif child.type == "method_declaration":
                method = self._extract_method(child, source)
                if method:
                    declared.members.append(method)

            elif child.type == "constructor_declaration":
                declared.members.append(DeclaredMember(
                    member_kind="method",
                    name=self._get_child_text(child, "name", source) or name,
                    parameters=self._extract_parameters(child, source),
                    method_kind=MethodKind.CONSTRUCTOR,
                    line=child.start_point.row + 1,
                ))

            elif child.type in ("operator_declaration", "conversion_operator_declaration"):
                declared.members.append(DeclaredMember(
                    member_kind="method",
                    name="operator",
                    type_text=self._get_type_text(child, source, "type"),
                    parameters=self._extract_parameters(child, source),
                    method_kind=(
                        MethodKind.OPERATOR if child.type == "operator_declaration" else MethodKind.CONVERSION
                    ),
                    line=child.start_point.row + 1,
                ))

            elif child.type in _TYPE_DECLARATIONS:
                self._extract_type(child, source, file_path, namespace, declared, usings, types)

    def _extract_primary_constructor(
        self, node: tree_sitter.Node, source: bytes, declared: DeclaredType
    ) -> None:
        """Primary constructor parameters; records also get positional properties."""
        param_list = node.child_by_field_name("parameters") or self._get_child_by_type(node, "parameter_list")
        if param_list is None:
            return

        parameters = self._parameters_from_list(param_list, source)
        line = param_list.start_point.row + 1

        if declared.kind in (TypeKind.RECORD, TypeKind.RECORD_STRUCT):
            readonly = "readonly" in declared.modifiers
            setter = "init" if declared.kind == TypeKind.RECORD or readonly else "set"
            for param_name, param_type in parameters:
                declared.members.append(DeclaredMember(
                    member_kind="property",
                    name=param_name,
                    type_text=param_type,
                    accessors=["get", setter],
                    line=line,
                ))

        declared.members.append(DeclaredMember(
            member_kind="method",
            name=declared.name,
            parameters=parameters,
            method_kind=MethodKind.CONSTRUCTOR,
            line=line,
        ))

    # =========================================================================
    # Member extractors
    # =========================================================================

    def _extract_fields(self, node: tree_sitter.Node, source: bytes) -> List[DeclaredMember]:
        """One member per declarator: `Foo a, b;` declares two fields."""
        declaration = self._get_child_by_type(node, "variable_declaration")
        if declaration is None:
            return []

        type_text = self._get_type_text(declaration, source, "type")
        fields = []
        for child in declaration.named_children:
            if child.type != "variable_declarator":
                continue
            name = self._get_child_text(child, "name", source) or self._first_identifier(child, source)
            fields.append(DeclaredMember(
                member_kind="field",
                name=name or "?",
                type_text=type_text,
                line=child.start_point.row + 1,
            ))
        return fields

    def _extract_property(self, node: tree_sitter.Node, source: bytes) -> Optional[DeclaredMember]:
        name = self._get_child_text(node, "name", source)
        if not name:
            return None
        return DeclaredMember(
            member_kind="property",
            name=name,
            type_text=self._get_type_text(node, source, "type"),
            accessors=self._extract_accessors(node, source),
            line=node.start_point.row + 1,
        )

    def _extract_indexer(self, node: tree_sitter.Node, source: bytes) -> DeclaredMember:
        return DeclaredMember(
            member_kind="property",
            name="this[]",
            type_text=self._get_type_text(node, source, "type"),
            parameters=self._extract_parameters(node, source),
            accessors=self._extract_accessors(node, source),
            line=node.start_point.row + 1,
        )

    def _extract_method(self, node: tree_sitter.Node, source: bytes) -> Optional[DeclaredMember]:
        name = self._get_child_text(node, "name", source)
        if not name:
            return None
        return DeclaredMember(
            member_kind="method",
            name=name,
            type_text=self._get_type_text(node, source, "returns", "type"),
            parameters=self._extract_parameters(node, source),
            type_parameters=self._extract_type_parameters(node, source),
            line=node.start_point.row + 1,
        )

    def _extract_accessors(self, node: tree_sitter.Node, source: bytes) -> List[str]:
        """Accessor keywords of a property or indexer, in source order."""
        accessor_list = node.child_by_field_name("accessors") or self._get_child_by_type(node, "accessor_list")
        if accessor_list is None:
            # Expression-bodied: `public int X => 1;`
            return ["get"]

        accessors = []
        for accessor in accessor_list.named_children:
            if accessor.type != "accessor_declaration":
                continue
            keyword = next((c.type for c in accessor.children if c.type in _ACCESSOR_KEYWORDS), None)
            if keyword is None:
                match = _ACCESSOR_RE.search(self._text(accessor, source))
                keyword = match.group(1) if match else None
            if keyword:
                accessors.append(keyword)
        return accessors

    def _extract_parameters(self, node: tree_sitter.Node, source: bytes) -> List[Tuple[str, str]]:
        param_list = node.child_by_field_name("parameters")
        if param_list is None:
            param_list = (
                self._get_child_by_type(node, "parameter_list")
                or self._get_child_by_type(node, "bracketed_parameter_list")
            )
        if param_list is None:
            return []
        return self._parameters_from_list(param_list, source)

    def _parameters_from_list(self, param_list: tree_sitter.Node, source: bytes) -> List[Tuple[str, str]]:
        parameters = []
        for child in param_list.named_children:
            if child.type not in _PARAMETER_NODES:
                continue
            type_node = child.child_by_field_name("type")
            name_node = child.child_by_field_name("name")
            if type_node is None or name_node is None:
                candidates = [
                    c for c in child.named_children
                    if c.type not in ("attribute_list", "modifier", "parameter_modifier", "equals_value_clause")
                ]
                if len(candidates) < 2:
                    continue
                type_node, name_node = candidates[0], candidates[-1]
            parameters.append((self._text(name_node, source), self._text(type_node, source)))
        return parameters

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _text(node: tree_sitter.Node, source: bytes) -> str:
        return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")

    @staticmethod
    def _get_child_text(node: tree_sitter.Node, field_name: str, source: bytes) -> Optional[str]:
        child = node.child_by_field_name(field_name)
        if child:
            return source[child.start_byte:child.end_byte].decode("utf-8", errors="replace")
        return None

    @staticmethod
    def _get_child_by_type(node: tree_sitter.Node, type_name: str) -> Optional[tree_sitter.Node]:
        for child in node.children:
            if child.type == type_name:
                return child
        return None

    def _first_identifier(self, node: tree_sitter.Node, source: bytes) -> Optional[str]:
        child = self._get_child_by_type(node, "identifier")
        return self._text(child, source) if child else None

    def _get_type_text(self, node: tree_sitter.Node, source: bytes, *field_names: str) -> Optional[str]:
        for field_name in field_names:
            text = self._get_child_text(node, field_name, source)
            if text:
                return text
        return None

    @staticmethod
    def _extract_namespace_name(node: tree_sitter.Node, source: bytes) -> str:
        name_node = node.child_by_field_name("name")
        if name_node:
            return source[name_node.start_byte:name_node.end_byte].decode("utf-8", errors="replace")
        return ""

    def _extract_using(self, node: tree_sitter.Node, source: bytes, usings: FileUsings) -> None:
        """Record a using directive; `using static` imports members only."""
        match = _USING_RE.match(self._text(node, source))
        if not match or match.group("static"):
            return
        target = match.group("target").strip()
        if target.startswith("global::"):
            target = target[len("global::"):]
        alias = match.group("alias")
        is_global = bool(match.group("global"))

        if alias:
            (usings.global_aliases if is_global else usings.aliases)[alias.lstrip("@")] = target
        else:
            (usings.global_namespaces if is_global else usings.namespaces).append(target)

    def _extract_base_texts(self, node: tree_sitter.Node, source: bytes) -> List[str]:
        """Base class / interface entries of `class Foo : Bar, IBaz`."""
        base_list = self._get_child_by_type(node, "base_list")
        if base_list is None:
            return []

        texts = []
        for child in base_list.named_children:
            if child.type == "argument_list":
                continue
            if child.type == "primary_constructor_base_type":
                type_node = child.child_by_field_name("type") or (
                    child.named_children[0] if child.named_children else None
                )
                if type_node is not None:
                    texts.append(self._text(type_node, source).strip())
                continue
            text = self._text(child, source).strip()
            if text:
                texts.append(text)
        return texts

    def _extract_type_parameters(self, node: tree_sitter.Node, source: bytes) -> List[str]:
        """Generic type parameter names: class Repo<TKey, TValue>."""
        param_list = node.child_by_field_name("type_parameters") or self._get_child_by_type(
            node, "type_parameter_list"
        )
        if param_list is None:
            return []

        names = []
        for child in param_list.named_children:
            if child.type != "type_parameter":
                continue
            name = self._get_child_text(child, "name", source) or self._first_identifier(child, source)
            if name:
                names.append(name)
        return names

    @staticmethod
    def _extract_modifiers(node: tree_sitter.Node, source: bytes) -> List[str]:
        """Extract modifier keywords (public, static, abstract, sealed, etc.)."""
        modifiers = []
        for child in node.children:
            if child.type == "modifier":
                text = source[child.start_byte:child.end_byte].decode("utf-8", errors="replace").strip()
                modifiers.append(text)
        return modifiers


def _relative_path(file_path: str, project_root: str) -> str:
    normalized = file_path.replace("\\", "/")
    root = project_root.replace("\\", "/").rstrip("/")
    if root and normalized.startswith(root + "/"):
        return normalized[len(root) + 1:]
    return normalized
