"""DiaClass — structural class diagrams for C# codebases.

Extracts inheritance, implementation, containment and member-usage
relations between the types of a project and renders them as PlantUML or
Mermaid class diagrams.
"""

__version__ = "0.1.0"
