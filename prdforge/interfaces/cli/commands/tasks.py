"""Commands for viewing stored tasks."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from prdforge.domain.shared import Err
from prdforge.domain.task.models import Task
from prdforge.infrastructure.storage import JsonTaskStore
from prdforge.interfaces.cli.common import (
    console,
    data_dir_option,
    print_error,
    print_info,
    project_option,
    require_project,
    resolve_data_dir,
)

PRIORITY_STYLES = {"high": "red", "medium": "yellow", "low": "green"}


def list_tasks(
    project: Optional[str] = project_option,
    data_dir: Optional[Path] = data_dir_option,
    sort: str = typer.Option(
        "created_at", "--sort", "-s", help="Sort by: created_at, priority, complexity, title"
    ),
    top_level: bool = typer.Option(False, "--top-level", help="Hide sub-tasks"),
) -> None:
    """List a project's tasks."""
    project_id = require_project(project)
    if sort not in ("created_at", "priority", "complexity", "title"):
        print_error(f"Unknown sort key: {sort}")
        raise typer.Exit(1)

    store = JsonTaskStore(resolve_data_dir(data_dir))
    where = (lambda t: not t.is_subtask()) if top_level else None
    result = store.list_tasks(project_id, where=where, sort_by=sort)
    if isinstance(result, Err):
        print_error(result.error)
        raise typer.Exit(1)

    tasks = result.value
    if not tasks:
        print_info(f"No tasks in project '{project_id}'")
        return

    console.print(build_task_table(project_id, tasks))


def build_task_table(project_id: str, tasks: list[Task]) -> Table:
    titles = {t.id: t.title for t in tasks}
    table = Table(title=f"Tasks - {project_id}")
    table.add_column("Title")
    table.add_column("Priority")
    table.add_column("Cx", justify="right")
    table.add_column("Assignee")
    table.add_column("Status")

    for task in tasks:
        title = task.title
        if task.parent_task_id:
            title = f"  ↳ {title}"
            parent = titles.get(task.parent_task_id)
            if parent is None:
                title += " [dim](orphan)[/dim]"
        priority = task.priority or "-"
        table.add_row(
            title,
            f"[{PRIORITY_STYLES.get(priority, 'white')}]{priority}[/]",
            str(task.complexity) if task.complexity is not None else "-",
            task.assignee or "-",
            task.status.value,
        )
    return table
