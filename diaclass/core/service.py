"""DiagramService — orchestrator for per-project relation diagrams.

Discovers the projects under a path, loads one project's code model,
runs the relation extractor and hands the frozen graph to the renderers.
Every configuration error (uninitialized workspace, unknown project, no
sources) is raised before a graph is built.
"""

import logging
from typing import Dict, List, Optional

from ..setting import Settings, get_settings
from .code_model import (
    ProjectInfo,
    ProjectModel,
    discover_projects,
    load_project,
    resolve_references,
)
from .diagrams import (
    context_grouping,
    default_short_name,
    folder_grouping,
    namespace_grouping,
    to_mermaid,
    to_plantuml,
    to_plantuml_overview,
)
from .exceptions import NoCompilationError, ProjectNotFoundError, WorkspaceNotInitializedError
from .extractor import RelationExtractor, Scope
from .relation_graph import GraphSnapshot

logger = logging.getLogger(__name__)

# format -> file name suffix
OUTPUT_SUFFIXES = {
    "plantuml": ".puml",
    "overview": ".overview.puml",
    "mermaid": ".mmd",
}


class DiagramService:
    """Builds and renders relation graphs for the projects under one path."""

    def __init__(self, path: str, settings: Optional[Settings] = None):
        """Initialize DiagramService.

        Args:
            path: Solution file, project file or directory
            settings: Settings to use (process-wide settings by default)
        """
        self.path = path
        self.settings = settings or get_settings()
        self._projects: Optional[List[ProjectInfo]] = None
        self._models: Dict[str, ProjectModel] = {}

    # =========================================================================
    # Workspace
    # =========================================================================

    def initialize(self) -> List[ProjectInfo]:
        """Discover the projects under the configured path."""
        self._projects = discover_projects(self.path)
        self._models.clear()
        logger.info(f"Found {len(self._projects)} project(s) under {self.path}")
        for project in self._projects:
            logger.debug(f"  {project.name} ({len(project.source_files)} files)")
        return list(self._projects)

    @property
    def projects(self) -> List[ProjectInfo]:
        if self._projects is None:
            raise WorkspaceNotInitializedError()
        return self._projects

    def project_names(self) -> List[str]:
        return [p.name for p in self.projects]

    def select_project(self, name: str) -> ProjectInfo:
        """Find a project by name, ignoring case."""
        wanted = name.lower()
        for project in self.projects:
            if project.name.lower() == wanted:
                return project
        raise ProjectNotFoundError(name, self.project_names())

    def load_model(self, name: str) -> ProjectModel:
        """Parse and resolve one project (cached per project)."""
        project = self.select_project(name)
        if project.name in self._models:
            return self._models[project.name]

        if not project.source_files:
            raise NoCompilationError(project.name)

        references = resolve_references(project, self.projects)
        if references:
            logger.info(f"{project.name} references: {', '.join(r.name for r in references)}")

        model = load_project(project, references)
        self._models[project.name] = model
        return model

    # =========================================================================
    # Graph and rendering
    # =========================================================================

    def build_graph(self, name: str) -> GraphSnapshot:
        """Run one extraction pass over the project and freeze the result."""
        model = self.load_model(name)
        scope = Scope(self.settings.extraction.scope)
        return RelationExtractor(model, scope).extract()

    def render_plantuml(self, name: str, graph: Optional[GraphSnapshot] = None) -> str:
        graph = graph or self.build_graph(name)
        options = self.settings.plantuml
        model = self.load_model(name)

        if options.group_by == "namespace":
            group_of = namespace_grouping(options.namespace_depth, model)
        elif options.group_by == "folder":
            group_of = folder_grouping(model)
        else:
            group_of = None

        return to_plantuml(
            graph,
            include_kinds=options.kinds(),
            short_name=default_short_name if options.short_names else str,
            group_of=group_of,
            show_counts=options.show_counts,
        )

    def render_overview(self, name: str, graph: Optional[GraphSnapshot] = None) -> str:
        graph = graph or self.build_graph(name)
        options = self.settings.overview
        context_of = context_grouping(
            options.contexts,
            fallback=namespace_grouping(options.fallback_depth, self.load_model(name)),
        )
        return to_plantuml_overview(
            graph,
            context_of,
            uses_only=options.uses_only,
            show_counts=options.show_counts,
        )

    def render_mermaid(self, name: str, graph: Optional[GraphSnapshot] = None) -> str:
        return to_mermaid(graph or self.build_graph(name))

    def documents(self, name: str, formats: Optional[List[str]] = None) -> Dict[str, str]:
        """Render the requested formats from one graph.

        Returns:
            {file name: document text}, e.g. {"Shop.puml": "@startuml..."}
        """
        formats = formats or list(self.settings.output.formats)
        project = self.select_project(name)
        graph = self.build_graph(project.name)

        renderers = {
            "plantuml": self.render_plantuml,
            "overview": self.render_overview,
            "mermaid": self.render_mermaid,
        }
        documents = {}
        for fmt in formats:
            if fmt not in renderers:
                raise ValueError(
                    f"Unknown output format '{fmt}'. "
                    f"Must be one of: {', '.join(sorted(renderers))}"
                )
            documents[project.name + OUTPUT_SUFFIXES[fmt]] = renderers[fmt](project.name, graph)
        return documents

    # =========================================================================
    # Type inventory
    # =========================================================================

    def type_inventory(self, name: str) -> Dict[str, List[Dict]]:
        """Declared types per folder, sorted by folder, then file, then name.

        Returns:
            {folder: [{kind, name, qualified_name, modifiers, accessibility, file}]}
        """
        model = self.load_model(name)
        ordered = sorted(model.types, key=lambda t: (t.folder, t.file_path, t.identity))

        inventory: Dict[str, List[Dict]] = {}
        for symbol in ordered:
            inventory.setdefault(symbol.folder, []).append({
                "kind": symbol.kind.value,
                "name": symbol.name,
                "qualified_name": symbol.identity,
                "modifiers": list(symbol.modifiers),
                "accessibility": symbol.accessibility,
                "file": symbol.file_path,
            })
        return inventory
