"""Unresolved declaration records produced by the C# parser.

Types and members exactly as written in source: type references are still
raw text. The loader resolves them into the symbol model in models.py.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .models import MethodKind, TypeKind


@dataclass
class DeclaredMember:
    """A field, property or method as written in source.

    Attributes:
        member_kind: "field" | "property" | "method"
        type_text: Field/property type or method return type; None for
            constructors and void-less members.
        parameters: (name, type_text) pairs.
        type_parameters: Generic parameters of a method.
    """
    member_kind: str
    name: str
    type_text: Optional[str] = None
    parameters: List[Tuple[str, str]] = field(default_factory=list)
    method_kind: MethodKind = MethodKind.ORDINARY
    type_parameters: List[str] = field(default_factory=list)
    accessors: List[str] = field(default_factory=list)  # "get" | "set" | "init"
    line: int = 0


@dataclass
class FileUsings:
    """using directives of one file."""
    namespaces: List[str] = field(default_factory=list)
    aliases: Dict[str, str] = field(default_factory=dict)
    global_namespaces: List[str] = field(default_factory=list)
    global_aliases: Dict[str, str] = field(default_factory=dict)


@dataclass
class DeclaredType:
    """A class/struct/interface/enum/record/delegate as written in source."""
    name: str
    kind: TypeKind
    namespace: str
    file_path: str
    parent: Optional["DeclaredType"] = None
    type_parameters: List[str] = field(default_factory=list)
    base_texts: List[str] = field(default_factory=list)
    members: List[DeclaredMember] = field(default_factory=list)
    modifiers: List[str] = field(default_factory=list)
    usings: FileUsings = field(default_factory=FileUsings)
    line: int = 0

    @property
    def chain(self) -> List["DeclaredType"]:
        """Enclosing declarations, outermost first, excluding self."""
        chain = []
        current = self.parent
        while current is not None:
            chain.insert(0, current)
            current = current.parent
        return chain

    @property
    def segment_key(self) -> str:
        return f"{self.name}`{len(self.type_parameters)}" if self.type_parameters else self.name

    @property
    def lookup_key(self) -> str:
        """Namespace + enclosing chain + name, with generic arity suffixes."""
        parts = [self.namespace] if self.namespace else []
        parts.extend(t.segment_key for t in self.chain)
        parts.append(self.segment_key)
        return ".".join(parts)

    @property
    def display_segment(self) -> str:
        if self.type_parameters:
            return f"{self.name}<{', '.join(self.type_parameters)}>"
        return self.name

    @property
    def qualified_name(self) -> str:
        parts = [self.namespace] if self.namespace else []
        parts.extend(t.name for t in self.chain)
        parts.append(self.name)
        return ".".join(parts)


@dataclass
class ParseError:
    """An error encountered during parsing."""

    file_path: str
    line: int
    message: str
    severity: str = "warning"  # "warning" | "error"


@dataclass
class ParseResult:
    """Complete parse output for a single file."""

    file_path: str
    types: List[DeclaredType]
    usings: FileUsings
    line_count: int = 0
    errors: List[ParseError] = field(default_factory=list)
