"""CLI Helper Functions for the Kiro archiver.

This module provides reusable helper functions for CLI commands to reduce
code duplication and standardize behavior across all commands.

The helpers provide:
- Project context and configuration management
- Archival engine construction with consistent error handling
- Spec and archive path resolution
- Consistent table formatting for output
"""

import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, List, NoReturn, Optional, Tuple

import click
from tabulate import tabulate

from kiro_archiver.core.archival_engine import ArchivalEngine
from kiro_archiver.core.constants import KIRO_DIR_NAME
from kiro_archiver.models.archive import ArchiveIndexEntry
from kiro_archiver.services.exceptions import ArchivalError
from kiro_archiver.utils.config_manager import ConfigurationManager


def get_project_context() -> Tuple[Path, Path]:
    """Get project root and .kiro directory.

    Returns:
        Tuple of (project_root, kiro_dir)

    Note:
        Does not check if kiro_dir exists - the configuration is created on first load.
    """
    project_root = Path.cwd()
    kiro_dir = project_root / KIRO_DIR_NAME
    return project_root, kiro_dir


def exit_with_error(error: ArchivalError) -> NoReturn:
    """Print an archival error with its recovery hint and exit.

    Args:
        error: The error to report
    """
    click.echo(f"Error: {error.message}", err=True)
    if error.recovery_action:
        click.echo(f"Hint: {error.recovery_action}", err=True)
    sys.exit(1)


def get_engine() -> ArchivalEngine:
    """Initialize the archival engine for the current project.

    Returns:
        ArchivalEngine instance

    Note:
        Exits with error message if the configuration cannot be loaded.
    """
    project_root, kiro_dir = get_project_context()
    try:
        return ArchivalEngine(project_root, ConfigurationManager(kiro_dir))
    except ArchivalError as e:
        exit_with_error(e)


def _resolve_argument(value: str, fallback_root: Path) -> Path:
    # A bare name that is not in the working directory refers to fallback_root
    path = Path(value)
    if path.is_absolute():
        return path
    if len(path.parts) == 1 and not (Path.cwd() / path).exists():
        return fallback_root / value
    return Path.cwd() / path


def resolve_spec_path(engine: ArchivalEngine, spec_path: str) -> Path:
    """Resolve a spec argument given as a path or a bare spec name."""
    return _resolve_argument(spec_path, engine.specs_root)


def resolve_archive_path(engine: ArchivalEngine, archive_path: str) -> Path:
    """Resolve an archive argument given as a path or an archive directory name."""
    return _resolve_argument(archive_path, engine.archive_root)


def parse_setting_value(value: str) -> Any:
    """Interpret a command line value as JSON, falling back to the raw string.

    "true" becomes True and "30" becomes 30, while "verbose" stays a string.
    """
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def display_path(path: str, root: Optional[Path] = None) -> str:
    """Show a path relative to the project root when it lives inside it."""
    root = root or Path.cwd()
    try:
        return str(Path(path).relative_to(root))
    except ValueError:
        return path


def format_date(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "-"


def format_archive_table(entries: List[ArchiveIndexEntry],
                         headers: Optional[List[str]] = None) -> str:
    """Format archive index entries as a table with consistent styling.

    Args:
        entries: Index entries to display
        headers: Optional custom headers (defaults to standard headers)

    Returns:
        Formatted table string
    """
    if headers is None:
        headers = ["SPEC", "ARCHIVED", "COMPLETED", "TASKS", "PATH"]

    table_data = [
        [
            entry.spec_name,
            format_date(entry.archival_date),
            format_date(entry.completion_date),
            entry.total_tasks,
            display_path(entry.archive_path),
        ]
        for entry in entries
    ]

    if table_data:
        return tabulate(table_data, headers=headers, tablefmt="simple",
                        colalign=("left", "left", "left", "right", "left"))
    return tabulate(table_data, headers=headers, tablefmt="simple")


def print_table(headers: List[str], rows: List[List[Any]],
                tablefmt: str = "simple") -> None:
    """Print a table with project-wide defaults.

    Args:
        headers: Table headers
        rows: Table rows
        tablefmt: Table format (default: "simple")
    """
    table_str = tabulate(rows, headers=headers, tablefmt=tablefmt)
    click.echo(table_str)


# Re-export commonly used functions for convenience
__all__ = [
    'get_project_context',
    'exit_with_error',
    'get_engine',
    'resolve_spec_path',
    'resolve_archive_path',
    'parse_setting_value',
    'display_path',
    'format_date',
    'format_archive_table',
    'print_table',
]
