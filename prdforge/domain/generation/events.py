"""Generation update events.

Updates flow from the background generation worker (and the decomposer)
to the host loop. They are informational: the only authoritative task list
is the one carried by ``Complete``.

All events are immutable records with an id and timestamp.
"""

from datetime import UTC, datetime
from typing import Union
from uuid import uuid4

from pydantic import BaseModel, Field

from prdforge.domain.task.models import Task


class GenerationEvent(BaseModel):
    """Base class for all generation updates."""

    event_id: str = Field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"frozen": True}


class Thinking(GenerationEvent):
    """A status line or a raw fragment of the model's streamed reply."""

    text: str


class Question(GenerationEvent):
    """The model answered with a clarifying question instead of tasks."""

    text: str


class TaskGenerated(GenerationEvent):
    """A task object detected mid-stream.

    Speculative: superseded by the task list in ``Complete``.
    """

    title: str
    description: str = ""
    assignee: str | None = None
    priority: str | None = None
    complexity: int | None = None


class ValidationInfo(GenerationEvent):
    """Non-fatal validation or remediation notice about one task."""

    task_title: str
    message: str


class Complete(GenerationEvent):
    """Generation finished; carries the authoritative task list."""

    tasks: list[Task]


class Error(GenerationEvent):
    """Generation failed; the worker stops after sending this."""

    message: str


GenerationUpdate = Union[Thinking, Question, TaskGenerated, ValidationInfo, Complete, Error]  # noqa: UP007
