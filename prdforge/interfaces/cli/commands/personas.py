"""Persona management commands."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from prdforge.domain.persona import Persona
from prdforge.domain.shared import Err
from prdforge.infrastructure.storage import JsonTaskStore
from prdforge.interfaces.cli.common import (
    console,
    data_dir_option,
    print_error,
    print_info,
    print_success,
    project_option,
    require_project,
    resolve_data_dir,
)

app = typer.Typer(help="Persona management commands")


@app.command("add")
def add(
    name: str = typer.Argument(..., help="Persona name"),
    role: str = typer.Option("", "--role", "-r", help="Short role, e.g. 'backend engineer'"),
    description: str = typer.Option("", "--description", "-d", help="What this persona owns"),
    default: bool = typer.Option(False, "--default", help="Receive unassigned tasks"),
    project: Optional[str] = project_option,
    data_dir: Optional[Path] = data_dir_option,
) -> None:
    """Add or replace a persona."""
    if not name.strip():
        print_error("Persona name cannot be blank")
        raise typer.Exit(1)

    project_id = require_project(project)
    store = JsonTaskStore(resolve_data_dir(data_dir))
    persona = Persona(
        project_id=project_id,
        name=name,
        role=role,
        description=description,
        is_default=default,
    )
    result = store.personas.save(project_id, persona)
    if isinstance(result, Err):
        print_error(result.error)
        raise typer.Exit(1)
    print_success(f"Saved persona '{name}'" + (" (default)" if default else ""))


@app.command("list")
def list_personas(
    project: Optional[str] = project_option,
    data_dir: Optional[Path] = data_dir_option,
) -> None:
    """List a project's personas."""
    project_id = require_project(project)
    store = JsonTaskStore(resolve_data_dir(data_dir))
    result = store.list_personas(project_id)
    if isinstance(result, Err):
        print_error(result.error)
        raise typer.Exit(1)

    if not result.value:
        print_info(f"No personas in project '{project_id}'")
        return

    table = Table(title=f"Personas - {project_id}")
    table.add_column("Name")
    table.add_column("Role")
    table.add_column("Default")
    for persona in result.value:
        table.add_row(persona.name, persona.role or "-", "yes" if persona.is_default else "")
    console.print(table)
