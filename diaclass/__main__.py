"""Command line entry point: python -m diaclass PATH [options]."""

import argparse
import logging
import os
import sys
from typing import List, Optional

from .core.code_model import check_path
from .core.exceptions import ConfigurationError, DiaClassError, InvalidPathError
from .core.relation_graph import RelationKind
from .core.service import DiagramService
from .setting import Settings, load_settings


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ],
        force=True,
    )


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="diaclass",
        description="Render class-relation diagrams (PlantUML / Mermaid) for C# projects",
    )
    parser.add_argument("path", help="Solution (.sln/.slnx), project (.csproj) or directory")
    parser.add_argument("--project", help="Project to render (optional when there is only one)")
    parser.add_argument("--list-projects", action="store_true", help="List discovered projects and exit")
    parser.add_argument("--list-types", action="store_true", help="List declared types per folder and exit")
    parser.add_argument(
        "--format",
        dest="formats",
        nargs="+",
        choices=["plantuml", "overview", "mermaid"],
        help="Documents to write (default: from config)",
    )
    parser.add_argument("--output", help="Output directory (default: from config)")
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument(
        "--kinds",
        nargs="+",
        metavar="KIND",
        help=f"Relation kinds to draw: {', '.join(k.value for k in RelationKind)}",
    )
    parser.add_argument("--group-by", choices=["namespace", "folder", "none"], help="Package grouping")
    parser.add_argument(
        "--include-external",
        action="store_true",
        help="Also draw named types from outside the project's assembly",
    )
    parser.add_argument("--no-counts", action="store_true", help="Do not annotate repeated edges with ×N")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Fold command line options into the loaded settings."""
    data = settings.model_dump()
    if args.log_level:
        data["log_level"] = args.log_level
    if args.include_external:
        data["extraction"]["scope"] = "all"
    if args.kinds:
        data["plantuml"]["include_kinds"] = args.kinds
    if args.group_by:
        data["plantuml"]["group_by"] = args.group_by
    if args.no_counts:
        data["plantuml"]["show_counts"] = False
        data["overview"]["show_counts"] = False
    if args.output:
        data["output"]["directory"] = args.output
    if args.formats:
        data["output"]["formats"] = args.formats

    try:
        return Settings.model_validate(data)
    except ValueError as e:
        raise ConfigurationError(f"Invalid command line option: {e}") from e


def run(args: argparse.Namespace, settings: Settings) -> int:
    if not check_path(args.path):
        raise InvalidPathError(args.path)

    service = DiagramService(args.path, settings)
    service.initialize()
    names = service.project_names()
    if not names:
        raise ConfigurationError(f"No C# projects found under {args.path}")

    if args.list_projects:
        for name in names:
            print(name)
        return 0

    if args.project:
        name = service.select_project(args.project).name
    elif len(names) == 1:
        name = names[0]
    else:
        raise ConfigurationError(
            f"Several projects found; choose one with --project: {', '.join(names)}"
        )

    if args.list_types:
        _print_inventory(service, name)
        return 0

    written = write_documents(service, name, settings.output.directory)
    logger.info(f"Wrote {len(written)} file(s) to {settings.output.directory}")
    return 0


def write_documents(service: DiagramService, name: str, directory: str) -> List[str]:
    """Render the configured formats and write them under directory."""
    os.makedirs(directory, exist_ok=True)
    written = []
    for file_name, text in service.documents(name).items():
        path = os.path.join(directory, file_name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        logger.info(f"Wrote {path}")
        written.append(path)
    return written


def _print_inventory(service: DiagramService, name: str) -> None:
    for folder, types in service.type_inventory(name).items():
        print(f"{folder or '.'}/")
        for t in types:
            access = t["accessibility"].split()
            modifiers = " ".join(m for m in t["modifiers"] if m not in access)
            detail = f" [{modifiers}]" if modifiers else ""
            print(f"  {t['accessibility']} {t['kind']} {t['qualified_name']}{detail}")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = apply_overrides(load_settings(args.config), args)
    except DiaClassError as e:
        setup_logging(args.log_level or "INFO")
        logger.error(str(e))
        return 1

    setup_logging(settings.log_level)
    try:
        return run(args, settings)
    except DiaClassError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
