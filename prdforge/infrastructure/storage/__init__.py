"""Storage infrastructure for prdforge.

JSON-file persistence for projects, PRDs, tasks and personas, using
Result monads for explicit error handling.
"""

from prdforge.infrastructure.storage.json_storage import JsonStorage
from prdforge.infrastructure.storage.repositories import (
    DEFAULT_DATA_DIR,
    JsonTaskStore,
    PersonaRepository,
    PRDRepository,
    ProjectRepository,
    TaskRepository,
)

__all__ = [
    "DEFAULT_DATA_DIR",
    "JsonStorage",
    "JsonTaskStore",
    "ProjectRepository",
    "PRDRepository",
    "TaskRepository",
    "PersonaRepository",
]
