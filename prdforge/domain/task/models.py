"""Task domain models.

Pydantic models for the work items produced from a PRD. Tasks are created
by the JSON parser from model output, get their assignee from the resolver,
and their parent/child links from the decomposer.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

Priority = Literal["high", "medium", "low"]

PRIORITIES: tuple[str, ...] = ("high", "medium", "low")
MIN_COMPLEXITY = 1
MAX_COMPLEXITY = 10


class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DECOMPOSED = "decomposed"
    COMPLETED = "completed"
    ERRORED = "errored"


def _now() -> datetime:
    return datetime.now(UTC)


class Task(BaseModel):
    """A single actionable work item.

    ``parent_task_id`` is set only on sub-tasks produced by decomposition;
    the parent lists them in ``subtask_ids``.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    description: str = ""
    assignee: str | None = None
    priority: Priority | None = None
    complexity: int | None = Field(default=None, ge=MIN_COMPLEXITY, le=MAX_COMPLEXITY)
    parent_task_id: str | None = None
    subtask_ids: list[str] = Field(default_factory=list)
    source_prd_id: str | None = None
    status: TaskStatus = TaskStatus.TODO
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    def is_subtask(self) -> bool:
        """Check if this task was produced by decomposing another task."""
        return bool(self.parent_task_id)

    def with_subtasks(self, subtask_ids: list[str]) -> "Task":
        """Return a copy linked to the given sub-tasks and marked decomposed."""
        return self.model_copy(
            update={
                "subtask_ids": [*self.subtask_ids, *subtask_ids],
                "status": TaskStatus.DECOMPOSED,
                "updated_at": _now(),
            }
        )


def clamp_complexity(value: int) -> int:
    """Clamp a model-supplied complexity score into 1..10."""
    return max(MIN_COMPLEXITY, min(MAX_COMPLEXITY, value))


def normalize_priority(value: str | None) -> Priority:
    """Map free-form model priority text onto high/medium/low.

    Unknown values fall back to "medium".
    """
    if value is None:
        return "medium"
    lowered = value.strip().lower()
    if lowered in PRIORITIES:
        return lowered  # type: ignore[return-value]
    if lowered in ("critical", "urgent", "p0", "p1"):
        return "high"
    if lowered in ("minor", "p3", "p4"):
        return "low"
    return "medium"
