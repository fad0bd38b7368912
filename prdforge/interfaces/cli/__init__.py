"""CLI interface for prdforge using Typer.

Usage:
    prdforge generate PRD.md -p my-project   # Generate and store tasks
    prdforge tasks -p my-project             # List stored tasks
    prdforge personas add NAME -p my-project # Manage personas
    prdforge config set -m llama3.2          # Configure models

The CLI is structured as:
- app: Main Typer application
- commands/: Individual commands and command groups
- common.py: Shared utilities for CLI commands
- main.py: Entry point that runs the app
"""

from typing import Optional

import typer

from prdforge import __version__
from prdforge.interfaces.cli.commands import config, generate, personas, tasks

app = typer.Typer(
    name="prdforge",
    help="Turn product requirement documents into prioritized, assigned tasks",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"prdforge version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """prdforge - PRD to task generation with local models."""


app.command("generate")(generate.generate)
app.command("tasks")(tasks.list_tasks)
app.add_typer(personas.app, name="personas")
app.add_typer(config.app, name="config")
