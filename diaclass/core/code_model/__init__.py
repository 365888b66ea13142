"""DiaClass code model — resolved view of a C# project's types.

Public API:
    discover_projects(path) → List[ProjectInfo]
    load_project(project, references) → ProjectModel
    load_sources({path: text}) → ProjectModel
    check_path(path) → bool
"""

from .loader import build_model, load_project, load_sources
from .models import (
    FieldSymbol,
    MemberKind,
    MethodKind,
    MethodSymbol,
    ParameterSymbol,
    ProjectModel,
    PropertySymbol,
    TypeKind,
    TypeRef,
    TypeSymbol,
)
from .workspace import ProjectInfo, check_path, discover_projects, read_project, resolve_references

__all__ = [
    "build_model",
    "load_project",
    "load_sources",
    "check_path",
    "discover_projects",
    "read_project",
    "resolve_references",
    "ProjectInfo",
    "ProjectModel",
    "TypeSymbol",
    "TypeRef",
    "TypeKind",
    "MemberKind",
    "MethodKind",
    "FieldSymbol",
    "PropertySymbol",
    "MethodSymbol",
    "ParameterSymbol",
]
