"""Parser for C# type text.

Turns the source text of a type ("IRepository<Order>?", "global::A.B[]",
"(int Id, Customer c)") into a small syntax tree the resolver can walk.
Unparseable text becomes an "unknown" syntax; this module never raises.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..constants import KEYWORD_TYPES

_TOKEN_RE = re.compile(r"\s*(::|@?[A-Za-z_][A-Za-z0-9_]*|[.<>,?\[\]*()])")

# Leading modifiers that can appear in a type position
_PREFIX_RE = re.compile(r"^\s*(?:(?:ref|readonly|scoped|in|out|params|this)\s+)+")


@dataclass(frozen=True)
class NamePart:
    """One dotted segment of a type name, with its generic arguments."""
    name: str
    args: Tuple["TypeSyntax", ...] = ()

    @property
    def key(self) -> str:
        return f"{self.name}`{len(self.args)}" if self.args else self.name


@dataclass(frozen=True)
class TypeSyntax:
    """Parsed form of a type expression.

    kind is one of: "name", "keyword", "nullable", "array", "pointer",
    "tuple", "unknown".
    """
    kind: str
    text: str = ""
    parts: Tuple[NamePart, ...] = ()
    alias: str = ""  # "global" for global::X
    element: Optional["TypeSyntax"] = None
    rank: int = 1
    elements: Tuple["TypeSyntax", ...] = ()

    @property
    def key(self) -> str:
        """Dotted lookup key: segment names with generic arity suffixes."""
        return ".".join(p.key for p in self.parts)

    @property
    def last(self) -> Optional[NamePart]:
        return self.parts[-1] if self.parts else None


UNKNOWN = TypeSyntax(kind="unknown")


class _Parser:
    def __init__(self, tokens: List[str]):
        self.tokens = tokens
        self.pos = 0

    def peek(self) -> Optional[str]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self, expected: Optional[str] = None) -> str:
        token = self.peek()
        if token is None or (expected is not None and token != expected):
            raise ValueError(f"expected {expected!r}, got {token!r}")
        self.pos += 1
        return token

    def parse_type(self) -> TypeSyntax:
        if self.peek() == "(":
            result = self.parse_tuple()
        else:
            result = self.parse_name()
        return self.parse_suffixes(result)

    def parse_tuple(self) -> TypeSyntax:
        self.take("(")
        elements = [self.parse_tuple_element()]
        while self.peek() == ",":
            self.take(",")
            elements.append(self.parse_tuple_element())
        self.take(")")
        return TypeSyntax(kind="tuple", elements=tuple(elements))

    def parse_tuple_element(self) -> TypeSyntax:
        element = self.parse_type()
        # Named tuple element: (int Id, string Name)
        token = self.peek()
        if token is not None and _is_identifier(token):
            self.take()
        return element

    def parse_name(self) -> TypeSyntax:
        alias = ""
        first = self.take()
        if not _is_identifier(first):
            raise ValueError(f"unexpected token {first!r}")
        if self.peek() == "::":
            self.take("::")
            alias = first
            first = self.take()
            if not _is_identifier(first):
                raise ValueError(f"unexpected token {first!r}")

        parts = [NamePart(first.lstrip("@"), self.parse_type_args())]
        while self.peek() == ".":
            self.take(".")
            name = self.take()
            if not _is_identifier(name):
                raise ValueError(f"unexpected token {name!r}")
            parts.append(NamePart(name.lstrip("@"), self.parse_type_args()))

        if not alias and len(parts) == 1 and not parts[0].args and parts[0].name in KEYWORD_TYPES:
            return TypeSyntax(kind="keyword", parts=tuple(parts))
        return TypeSyntax(kind="name", parts=tuple(parts), alias=alias)

    def parse_type_args(self) -> Tuple[TypeSyntax, ...]:
        if self.peek() != "<":
            return ()
        self.take("<")
        args = []
        # Unbound generic: Foo<> or Foo<,>
        if self.peek() in (">", ","):
            count = 1
            while self.peek() == ",":
                self.take(",")
                count += 1
            self.take(">")
            return tuple(UNKNOWN for _ in range(count))
        args.append(self.parse_type())
        while self.peek() == ",":
            self.take(",")
            args.append(self.parse_type())
        self.take(">")
        return tuple(args)

    def parse_suffixes(self, base: TypeSyntax) -> TypeSyntax:
        result = base
        while True:
            token = self.peek()
            if token == "?":
                self.take("?")
                result = TypeSyntax(kind="nullable", element=result)
            elif token == "*":
                self.take("*")
                result = TypeSyntax(kind="pointer", element=result)
            elif token == "[":
                self.take("[")
                rank = 1
                while self.peek() == ",":
                    self.take(",")
                    rank += 1
                self.take("]")
                result = TypeSyntax(kind="array", element=result, rank=rank)
            else:
                return result


def _is_identifier(token: str) -> bool:
    return bool(token) and (token[0].isalpha() or token[0] in "_@")


def _tokenize(text: str) -> Optional[List[str]]:
    tokens = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if not match:
            return None
        tokens.append(match.group(1))
        pos = match.end()
    return tokens


def parse_type_syntax(text: Optional[str]) -> TypeSyntax:
    """Parse C# type text; returns an "unknown" syntax when it cannot."""
    if not text:
        return UNKNOWN
    cleaned = _PREFIX_RE.sub("", text)
    tokens = _tokenize(cleaned)
    if not tokens:
        return TypeSyntax(kind="unknown", text=text)

    parser = _Parser(tokens)
    try:
        result = parser.parse_type()
    except ValueError:
        return TypeSyntax(kind="unknown", text=text)
    if parser.peek() is not None:
        return TypeSyntax(kind="unknown", text=text)
    return _with_text(result, text.strip())


def _with_text(syntax: TypeSyntax, text: str) -> TypeSyntax:
    return TypeSyntax(
        kind=syntax.kind,
        text=text,
        parts=syntax.parts,
        alias=syntax.alias,
        element=syntax.element,
        rank=syntax.rank,
        elements=syntax.elements,
    )
