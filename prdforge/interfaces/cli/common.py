"""Shared utilities for prdforge CLI commands.

- Project and data directory resolution
- Formatted output helpers (error, success, info, warning)
- Logging setup
"""

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from prdforge.config import get_config_dir

console = Console()
err_console = Console(stderr=True)

# Reusable options
# Usage: def my_command(project: str | None = project_option) -> None:
project_option = typer.Option(
    None,
    "--project",
    "-p",
    help="Project ID (or set PRDFORGE_PROJECT env var)",
    envvar="PRDFORGE_PROJECT",
)

data_dir_option = typer.Option(
    None,
    "--data-dir",
    help="Directory holding project data (default: ~/.prdforge/projects)",
    envvar="PRDFORGE_DATA_DIR",
)


def configure_logging(verbose: bool = False) -> None:
    """Route log records through Rich. ``verbose`` enables DEBUG."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def resolve_data_dir(data_dir: Path | None) -> Path:
    return data_dir or get_config_dir() / "projects"


def require_project(project: str | None) -> str:
    """Return the project ID or exit with usage help.

    Raises:
        typer.Exit: If no project was given.
    """
    if project:
        return project

    print_error("No project specified.")
    typer.echo("")
    typer.echo("Specify a project using one of:")
    typer.echo("  1. Use -p/--project option: prdforge tasks -p my-project")
    typer.echo("  2. Set PRDFORGE_PROJECT env var: export PRDFORGE_PROJECT=my-project")
    raise typer.Exit(1)


def print_error(msg: str) -> None:
    typer.echo(typer.style(f"Error: {msg}", fg=typer.colors.RED), err=True)


def print_success(msg: str) -> None:
    typer.echo(typer.style(msg, fg=typer.colors.GREEN))


def print_info(msg: str) -> None:
    typer.echo(typer.style(msg, fg=typer.colors.BLUE))


def print_warning(msg: str) -> None:
    typer.echo(typer.style(f"Warning: {msg}", fg=typer.colors.YELLOW), err=True)


def print_header(title: str, width: int = 60) -> None:
    typer.echo("=" * width)
    typer.echo(title)
    typer.echo("=" * width)
