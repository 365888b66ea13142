"""Error taxonomy for DiaClass.

Configuration errors are fatal and raised before any graph is built.
Omission decisions (out-of-scope types, primitives, self-loops, void
returns) are never errors.
"""

from typing import Iterable, List


class DiaClassError(Exception):
    """Base class for all DiaClass errors."""


class InvalidPathError(DiaClassError):
    """The input path is not a solution, project file or directory."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Path is not valid: '{path}' "
            f"(expected a .sln, a .csproj or a directory)"
        )


class ConfigurationError(DiaClassError):
    """The extraction request cannot be satisfied as configured."""


class WorkspaceNotInitializedError(ConfigurationError):
    """An operation needs the workspace but initialize() was never called."""

    def __init__(self):
        super().__init__("Workspace is not initialized; call initialize() first")


class ProjectNotFoundError(ConfigurationError):
    """The requested project name is not among the discovered projects."""

    def __init__(self, name: str, available: Iterable[str]):
        self.name = name
        self.available: List[str] = sorted(available)
        listing = ", ".join(self.available) if self.available else "(none)"
        super().__init__(f"Project '{name}' not found. Available projects: {listing}")


class NoCompilationError(ConfigurationError):
    """The selected project has no source files to build a model from."""

    def __init__(self, project: str, reason: str = "no C# source files"):
        self.project = project
        super().__init__(f"No compilable model for project '{project}': {reason}")
