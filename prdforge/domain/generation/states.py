"""Processing states of the generation state machine.

Exactly one state is active per run. Transitions are linear except
``GeneratingTasks`` and ``SavingTasks``, which loop while background work
is in flight.
"""

from dataclasses import dataclass
from typing import ClassVar, Union


@dataclass(frozen=True)
class Idle:
    label: ClassVar[str] = "Idle"
    is_terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class ReadingFile:
    label: ClassVar[str] = "Reading PRD file"
    is_terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class ParsingPRD:
    label: ClassVar[str] = "Parsing PRD"
    is_terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class LoadingConfig:
    label: ClassVar[str] = "Loading configuration"
    is_terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class GeneratingTasks:
    label: ClassVar[str] = "Generating tasks"
    is_terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class SavingTasks:
    label: ClassVar[str] = "Saving tasks"
    is_terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class ReloadingTasks:
    label: ClassVar[str] = "Reloading tasks"
    is_terminal: ClassVar[bool] = False


@dataclass(frozen=True)
class Complete:
    """Run finished; ``count`` is the number of tasks reloaded from the store."""

    count: int
    label: ClassVar[str] = "Complete"
    is_terminal: ClassVar[bool] = True


@dataclass(frozen=True)
class Failed:
    """Run stopped; ``error`` is the actionable failure message."""

    error: str
    label: ClassVar[str] = "Failed"
    is_terminal: ClassVar[bool] = True


ProcessingState = Union[  # noqa: UP007
    Idle,
    ReadingFile,
    ParsingPRD,
    LoadingConfig,
    GeneratingTasks,
    SavingTasks,
    ReloadingTasks,
    Complete,
    Failed,
]
