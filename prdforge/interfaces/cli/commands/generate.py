"""Task generation command.

Runs the generation pipeline either in a plain loop that prints progress,
or inside the Textual app with ``--tui``.
"""

import time
from pathlib import Path
from typing import Optional

import typer

from prdforge.application.pipeline import GenerationPipeline
from prdforge.config import get_config_path
from prdforge.domain.generation import events, states
from prdforge.domain.project.models import slugify
from prdforge.infrastructure.storage import JsonTaskStore
from prdforge.interfaces.cli.common import (
    configure_logging,
    data_dir_option,
    print_error,
    print_info,
    print_success,
    print_warning,
    resolve_data_dir,
)

IDLE_SLEEP_SECONDS = 0.05


def generate(
    prd: Path = typer.Argument(..., help="Markdown PRD file"),
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Generation config (default: ~/.prdforge/config.json)"
    ),
    project: Optional[str] = typer.Option(
        None, "--project", "-p",
        help="Project ID (default: derived from the PRD file name)",
        envvar="PRDFORGE_PROJECT",
    ),
    data_dir: Optional[Path] = data_dir_option,
    tui: bool = typer.Option(False, "--tui", help="Show progress in the terminal UI"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Generate tasks from a PRD and store them in the project."""
    configure_logging(verbose)

    pipeline = GenerationPipeline(
        prd_path=prd,
        config_path=config or get_config_path(),
        project_id=project or slugify(prd.stem),
        store=JsonTaskStore(resolve_data_dir(data_dir)),
    )

    if tui:
        from prdforge.tui.app import GenerationApp

        GenerationApp(pipeline).run()
    else:
        run_pipeline(pipeline)

    final = pipeline.state
    if isinstance(final, states.Failed):
        print_error(final.error)
        raise typer.Exit(1)
    if isinstance(final, states.Complete):
        print_success(f"Stored {final.count} task(s) in project '{pipeline.project_id}'")
    else:
        print_warning(f"Generation stopped while {final.label.lower()}")
        raise typer.Exit(1)


def run_pipeline(pipeline: GenerationPipeline) -> None:
    """Drive the pipeline to a terminal state, printing progress."""
    last_label = None
    try:
        while True:
            keep_going = pipeline.advance()
            if pipeline.state.label != last_label:
                last_label = pipeline.state.label
                if not pipeline.state.is_terminal:
                    print_info(f"{last_label}...")

            updates = pipeline.drain_updates()
            for update in updates:
                print_update(update)

            if not keep_going:
                return
            if not updates and isinstance(
                pipeline.state, (states.GeneratingTasks, states.SavingTasks)
            ):
                time.sleep(IDLE_SLEEP_SECONDS)
    finally:
        pipeline.close()


def print_update(update: events.GenerationUpdate) -> None:
    if isinstance(update, events.TaskGenerated):
        details = ", ".join(
            part for part in (
                update.priority,
                f"complexity {update.complexity}" if update.complexity is not None else None,
                update.assignee,
            ) if part
        )
        typer.echo(f"  + {update.title}" + (f" ({details})" if details else ""))
    elif isinstance(update, events.ValidationInfo):
        print_warning(f"{update.task_title}: {update.message}")
    elif isinstance(update, events.Question):
        print_info(f"Model asks: {update.text}")
