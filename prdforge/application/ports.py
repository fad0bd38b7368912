"""Interfaces the application layer depends on."""

from collections.abc import Callable
from typing import Protocol

from prdforge.domain.generation.events import GenerationUpdate
from prdforge.domain.persona.models import Persona
from prdforge.domain.prd.models import PRD
from prdforge.domain.project.models import Project
from prdforge.domain.shared.result import Result
from prdforge.domain.task.models import Task

# Callback used by the consumer, resolver and decomposer to publish updates.
Emit = Callable[[GenerationUpdate], None]


def emit_to(emit: Emit | None, update: GenerationUpdate) -> None:
    """Publish ``update`` if a callback was given."""
    if emit is not None:
        emit(update)


class TaskStore(Protocol):
    """Persistence operations used by the generation pipeline."""

    def save_project(self, project: Project) -> Result[None, str]: ...

    def save_prd(self, prd: PRD) -> Result[None, str]: ...

    def save_task(self, project_id: str, task: Task) -> Result[None, str]: ...

    def list_tasks(
        self,
        project_id: str,
        where: Callable[[Task], bool] | None = None,
        sort_by: str = "created_at",
    ) -> Result[list[Task], str]: ...

    def list_personas(self, project_id: str) -> Result[list[Persona], str]: ...
