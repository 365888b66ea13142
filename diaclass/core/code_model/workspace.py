"""Workspace discovery — solutions, projects and their source files.

Accepts a .sln/.slnx file, a .csproj file, or a directory. A directory
prefers the first solution found below it, otherwise every project file
below it; a directory holding only loose .cs files becomes a single
project named after the directory.
"""

import glob
import logging
import os
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

SOLUTION_EXTENSIONS = (".sln", ".slnx")
PROJECT_EXTENSION = ".csproj"
SOURCE_EXTENSION = ".cs"

# Directories to skip during file walking
SKIP_DIRECTORIES = frozenset({
    "bin",
    "obj",
    "packages",
    "node_modules",
    "TestResults",
})

# Project("{FAE04EC0-...}") = "Shop.Domain", "src\Shop.Domain\Shop.Domain.csproj", "{GUID}"
_SLN_PROJECT_RE = re.compile(
    r'^Project\("\{[^}]+\}"\)\s*=\s*"(?P<name>[^"]+)"\s*,\s*"(?P<path>[^"]+)"',
    re.MULTILINE,
)


@dataclass
class ProjectInfo:
    """One C# project as discovered on disk.

    Attributes:
        name: Project name (csproj file stem)
        path: Project file path, or the directory for loose sources
        root: Directory that relative source paths are computed from
        assembly: Compiled assembly name (<AssemblyName>, else the name)
        source_files: Absolute paths of the .cs files it compiles
        reference_paths: Absolute paths of referenced project files
    """
    name: str
    path: str
    root: str
    assembly: str
    source_files: List[str] = field(default_factory=list)
    reference_paths: List[str] = field(default_factory=list)


def check_path(path: Optional[str]) -> bool:
    """True if path is an existing solution, project file or directory."""
    if not path:
        return False
    if os.path.isdir(path):
        return True
    if os.path.isfile(path):
        return path.lower().endswith(SOLUTION_EXTENSIONS + (PROJECT_EXTENSION,))
    return False


def should_skip_directory(dir_name: str) -> bool:
    return dir_name in SKIP_DIRECTORIES or dir_name.startswith(".")


def discover_projects(path: str) -> List[ProjectInfo]:
    """Find the C# projects addressed by a path.

    Args:
        path: Solution file, project file or directory

    Returns:
        Projects in discovery order; empty when nothing was found
    """
    path = os.path.abspath(path)
    lower = path.lower()

    if os.path.isfile(path) and lower.endswith(SOLUTION_EXTENSIONS):
        return _projects_from_solution(path)

    if os.path.isfile(path) and lower.endswith(PROJECT_EXTENSION):
        return [read_project(path)]

    if not os.path.isdir(path):
        return []

    solution = _find_first(path, SOLUTION_EXTENSIONS)
    if solution is not None:
        logger.info(f"Using solution {solution}")
        return _projects_from_solution(solution)

    project_files = _find_all(path, (PROJECT_EXTENSION,))
    if project_files:
        return [read_project(p) for p in project_files]

    sources = collect_sources(path)
    if sources:
        name = os.path.basename(path.rstrip(os.sep)) or "Sources"
        logger.info(f"No solution or project file found; treating {path} as project '{name}'")
        return [ProjectInfo(name=name, path=path, root=path, assembly=name, source_files=sources)]

    return []


def read_project(project_path: str) -> ProjectInfo:
    """Read a .csproj: assembly name, source files and project references."""
    project_path = os.path.abspath(project_path)
    root = os.path.dirname(project_path)
    name = os.path.splitext(os.path.basename(project_path))[0]

    assembly = name
    compile_items: List[str] = []
    references: List[str] = []
    sdk_style = True

    try:
        tree = ET.parse(project_path)
        project_el = tree.getroot()
        sdk_style = "Sdk" in project_el.attrib or any(_local(el.tag) == "Sdk" for el in project_el)
        for el in project_el.iter():
            tag = _local(el.tag)
            if tag == "AssemblyName" and el.text and el.text.strip():
                assembly = el.text.strip()
            elif tag == "Compile" and el.get("Include"):
                compile_items.append(el.get("Include"))
            elif tag == "ProjectReference" and el.get("Include"):
                references.append(_join_msbuild_path(root, el.get("Include")))
    except (ET.ParseError, OSError) as e:
        logger.warning(f"Could not read project file {project_path}: {e}")

    if compile_items and not sdk_style:
        sources = _expand_compile_items(root, compile_items)
    else:
        sources = collect_sources(root)

    return ProjectInfo(
        name=name,
        path=project_path,
        root=root,
        assembly=assembly,
        source_files=sources,
        reference_paths=references,
    )


def collect_sources(root: str) -> List[str]:
    """All .cs files below root, excluding build output and nested projects."""
    sources = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(
            d for d in dirnames
            if not should_skip_directory(d) and not _has_project_file(os.path.join(dirpath, d))
        )
        for filename in sorted(filenames):
            if filename.lower().endswith(SOURCE_EXTENSION):
                sources.append(os.path.join(dirpath, filename))
    return sources


def resolve_references(project: ProjectInfo, projects: List[ProjectInfo]) -> List[ProjectInfo]:
    """Projects referenced by project, transitively, in first-seen order."""
    by_path: Dict[str, ProjectInfo] = {os.path.normcase(p.path): p for p in projects}
    result: List[ProjectInfo] = []
    seen = {os.path.normcase(project.path)}
    pending = list(project.reference_paths)

    while pending:
        ref_path = os.path.normcase(os.path.abspath(pending.pop(0)))
        if ref_path in seen:
            continue
        seen.add(ref_path)
        ref = by_path.get(ref_path)
        if ref is None and os.path.isfile(ref_path):
            ref = read_project(ref_path)
        if ref is None:
            logger.debug(f"Referenced project not found: {ref_path}")
            continue
        result.append(ref)
        pending.extend(ref.reference_paths)

    return result


# =============================================================================
# Helpers
# =============================================================================


def _projects_from_solution(solution_path: str) -> List[ProjectInfo]:
    base = os.path.dirname(solution_path)
    project_paths: List[str] = []

    if solution_path.lower().endswith(".slnx"):
        try:
            for el in ET.parse(solution_path).getroot().iter():
                if _local(el.tag) == "Project" and el.get("Path", "").lower().endswith(PROJECT_EXTENSION):
                    project_paths.append(_join_msbuild_path(base, el.get("Path")))
        except (ET.ParseError, OSError) as e:
            logger.warning(f"Could not read solution {solution_path}: {e}")
    else:
        try:
            with open(solution_path, "r", encoding="utf-8-sig", errors="replace") as f:
                text = f.read()
        except OSError as e:
            logger.warning(f"Could not read solution {solution_path}: {e}")
            text = ""
        for match in _SLN_PROJECT_RE.finditer(text):
            if match.group("path").lower().endswith(PROJECT_EXTENSION):
                project_paths.append(_join_msbuild_path(base, match.group("path")))

    projects = []
    for project_path in project_paths:
        if not os.path.isfile(project_path):
            logger.warning(f"Solution lists a missing project: {project_path}")
            continue
        projects.append(read_project(project_path))
    return projects


def _expand_compile_items(root: str, items: List[str]) -> List[str]:
    sources: List[str] = []
    for item in items:
        pattern = _join_msbuild_path(root, item)
        matches = sorted(glob.glob(pattern, recursive=True)) if any(c in item for c in "*?") else [pattern]
        for match in matches:
            if match.lower().endswith(SOURCE_EXTENSION) and os.path.isfile(match) and match not in sources:
                sources.append(match)
    return sources


def _find_first(root: str, extensions: tuple) -> Optional[str]:
    found = _find_all(root, extensions)
    return found[0] if found else None


def _find_all(root: str, extensions: tuple) -> List[str]:
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not should_skip_directory(d))
        for filename in sorted(filenames):
            if filename.lower().endswith(extensions):
                found.append(os.path.join(dirpath, filename))
    return found


def _has_project_file(directory: str) -> bool:
    try:
        return any(name.lower().endswith(PROJECT_EXTENSION) for name in os.listdir(directory))
    except OSError:
        return False


def _join_msbuild_path(base: str, relative: str) -> str:
    """Join an MSBuild (backslash) relative path onto a directory."""
    return os.path.normpath(os.path.join(base, *relative.replace("\\", "/").split("/")))


def _local(tag: str) -> str:
    """Strip an XML namespace: {http://...}Compile -> Compile."""
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""
