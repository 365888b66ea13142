"""Application settings.

Defaults live in diaclass/config/diaclass.yaml, shipped with the package.
A different file can be selected with DIACLASS_CONFIG (or --config on the
command line); variables from a local .env file are loaded first.
"""

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Literal, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .core.exceptions import ConfigurationError
from .core.relation_graph import RelationKind

load_dotenv()

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DIACLASS_CONFIG"
LOG_LEVEL_ENV_VAR = "DIACLASS_LOG_LEVEL"

OutputFormat = Literal["plantuml", "overview", "mermaid"]


def get_config_path() -> Path:
    """Directory holding the bundled YAML configuration."""
    return Path(__file__).parent / "config"


class ExtractionSettings(BaseModel):
    """Relation extraction options."""
    scope: Literal["internal", "all"] = Field(
        "internal", description="internal: own assembly only; all: any named type"
    )


class PlantUmlSettings(BaseModel):
    """Class-diagram rendering options."""
    include_kinds: List[str] = Field(
        default_factory=lambda: [k.value for k in RelationKind],
        description="Relation kinds to draw",
    )
    group_by: Literal["namespace", "folder", "none"] = Field("namespace", description="Package grouping")
    namespace_depth: int = Field(0, ge=0, description="Namespace segments per package (0 = all)")
    short_names: bool = Field(True, description="Show Namespace.Type instead of the full identity")
    show_counts: bool = Field(True, description="Annotate repeated usage edges with ×N")

    @field_validator("include_kinds")
    @classmethod
    def _known_kinds(cls, value: List[str]) -> List[str]:
        # raises ValueError for unknown names, reported by pydantic
        return [RelationKind.from_name(name).value for name in value]

    def kinds(self) -> List[RelationKind]:
        return [RelationKind.from_name(name) for name in self.include_kinds]


class OverviewSettings(BaseModel):
    """Inter-group overview options."""
    uses_only: bool = Field(True, description="Aggregate only the four usage kinds")
    show_counts: bool = Field(True, description="Label arrows with the summed count")
    fallback_depth: int = Field(2, ge=0, description="Namespace depth for unmatched types")
    contexts: Dict[str, List[str]] = Field(
        default_factory=dict, description="Context label -> fnmatch patterns, first match wins"
    )


class OutputSettings(BaseModel):
    """Where and what the command line writes."""
    directory: str = Field("diagrams", description="Output directory")
    formats: List[OutputFormat] = Field(
        default_factory=lambda: ["plantuml", "overview", "mermaid"],
        description="Documents written per project",
    )


class Settings(BaseModel):
    """Root settings object."""
    log_level: str = Field("INFO", description="Logging level name")
    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    plantuml: PlantUmlSettings = Field(default_factory=PlantUmlSettings)
    overview: OverviewSettings = Field(default_factory=OverviewSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)

    @field_validator("log_level")
    @classmethod
    def _valid_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level


def load_settings(config_file: Optional[str] = None) -> Settings:
    """Read settings from YAML and apply environment overrides.

    Args:
        config_file: Explicit YAML path; falls back to DIACLASS_CONFIG,
            then the bundled diaclass/config/diaclass.yaml

    Raises:
        ConfigurationError: An explicitly named file is missing, or the
            file does not validate
    """
    explicit = config_file or os.getenv(CONFIG_ENV_VAR)
    path = Path(explicit) if explicit else get_config_path() / "diaclass.yaml"

    data: dict = {}
    if path.exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        logger.debug(f"Loaded settings from {path}")
    elif explicit:
        raise ConfigurationError(f"Config file not found: {path}")
    else:
        logger.warning(f"diaclass.yaml not found at {path}, using built-in defaults")

    env_level = os.getenv(LOG_LEVEL_ENV_VAR)
    if env_level:
        data["log_level"] = env_level

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, loaded once."""
    return load_settings()


def reload_settings() -> Settings:
    """Drop the cached settings and load them again."""
    get_settings.cache_clear()
    return get_settings()
