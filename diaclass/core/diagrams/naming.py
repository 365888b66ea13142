"""Identity → diagram naming helpers.

Alias escaping shared by both renderers, display-name shortening, and
the grouping functions used for packages and the inter-group overview.
"""

from fnmatch import fnmatchcase
from typing import Callable, Dict, Iterable, List, Optional

from ..code_model.models import ProjectModel
from ..constants import ALIAS_ILLEGAL_PATTERN

GroupOf = Callable[[str], Optional[str]]

OTHER_GROUP = "(other)"


def alias_for(identity: str) -> str:
    """Replace every character that is not legal in a diagram identifier with '_'."""
    return ALIAS_ILLEGAL_PATTERN.sub("_", identity)


def build_aliases(identities: Iterable[str]) -> Dict[str, str]:
    """Map each identity to a unique diagram alias.

    Identities are processed in sorted order; when two escape to the same
    text ("A.B" and "A_B"), later ones get a numeric suffix.
    """
    aliases: Dict[str, str] = {}
    used = set()
    for identity in sorted(set(identities)):
        base = alias_for(identity) or "_"
        alias = base
        n = 2
        while alias in used:
            alias = f"{base}_{n}"
            n += 1
        used.add(alias)
        aliases[identity] = alias
    return aliases


def split_segments(identity: str) -> List[str]:
    """Split on '.' outside generic argument lists and tuples."""
    segments = []
    depth = 0
    current = []
    for char in identity:
        if char in "<(":
            depth += 1
        elif char in ">)":
            depth = max(0, depth - 1)
        if char == "." and depth == 0:
            segments.append("".join(current))
            current = []
        else:
            current.append(char)
    segments.append("".join(current))
    return segments


def default_short_name(identity: str) -> str:
    """Last two dot-separated segments: Namespace.Type."""
    parts = split_segments(identity)
    return ".".join(parts[-2:]) if len(parts) >= 2 else identity


def namespace_part(identity: str) -> str:
    """Everything before the last segment ("" for a global type)."""
    parts = split_segments(identity)
    return ".".join(parts[:-1])


def _truncate(label: str, depth: int) -> str:
    if depth <= 0 or not label:
        return label
    return ".".join(label.split(".")[:depth])


# =============================================================================
# Grouping functions
# =============================================================================


def namespace_grouping(depth: int = 0, model: Optional[ProjectModel] = None) -> GroupOf:
    """Group by namespace, optionally truncated to the first `depth` segments.

    Args:
        depth: keep this many namespace segments (0 = all)
        model: when given, declared namespaces are used for its types so
            nested types land with their enclosing type; other identities
            fall back to their dotted prefix
    """
    namespaces: Dict[str, str] = {}
    if model is not None:
        namespaces = {t.identity: t.ref.namespace for t in model.types}

    def group_of(identity: str) -> Optional[str]:
        label = namespaces.get(identity)
        if label is None:
            label = namespace_part(identity)
        return _truncate(label, depth) or None

    return group_of


def folder_grouping(model: ProjectModel) -> GroupOf:
    """Group by the folder that declares each type; types outside the model
    and types at the project root are ungrouped."""
    folders = {t.identity: t.folder for t in model.types}

    def group_of(identity: str) -> Optional[str]:
        return folders.get(identity) or None

    return group_of


def context_grouping(
    rules: Dict[str, List[str]],
    fallback: Optional[GroupOf] = None,
) -> Callable[[str], str]:
    """Map identities to context labels by fnmatch patterns.

    The first label whose pattern matches wins; otherwise the fallback
    grouping decides, and OTHER_GROUP is used as a last resort.
    """

    def context_of(identity: str) -> str:
        for label, patterns in rules.items():
            if any(fnmatchcase(identity, p) for p in patterns):
                return label
        if fallback is not None:
            label = fallback(identity)
            if label:
                return label
        return OTHER_GROUP

    return context_of
