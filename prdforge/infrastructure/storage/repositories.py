"""Repository implementations for the generation pipeline's store.

Each project has its own folder under the data directory:

    <data_dir>/<project_id>/project.json
    <data_dir>/<project_id>/prds/<prd_id>.json
    <data_dir>/<project_id>/tasks.json
    <data_dir>/<project_id>/personas.json

All operations return Result types; the pipeline maps any Err to a
``Failed`` state (or, for decomposition writes, logs and skips it).
"""

from collections.abc import Callable
from pathlib import Path
from threading import Lock
from typing import Literal

from pydantic import ValidationError

from prdforge.domain.persona.models import Persona
from prdforge.domain.prd.models import PRD
from prdforge.domain.project.models import Project
from prdforge.domain.shared.result import Err, Ok, Result
from prdforge.domain.task.models import Task
from prdforge.infrastructure.storage.json_storage import JsonStorage

DEFAULT_DATA_DIR = Path.home() / ".prdforge" / "projects"

TaskSortKey = Literal["created_at", "priority", "complexity", "title"]
TaskFilter = Callable[[Task], bool]

_PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}


class _ProjectFiles:
    """Resolves per-project file locations under a data directory."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = data_dir

    def project_dir(self, project_id: str) -> Path:
        return self.data_dir / project_id

    def project_file(self, project_id: str) -> Path:
        return self.project_dir(project_id) / "project.json"

    def prd_file(self, project_id: str, prd_id: str) -> Path:
        return self.project_dir(project_id) / "prds" / f"{prd_id}.json"

    def tasks_file(self, project_id: str) -> Path:
        return self.project_dir(project_id) / "tasks.json"

    def personas_file(self, project_id: str) -> Path:
        return self.project_dir(project_id) / "personas.json"


class ProjectRepository:
    """Repository for project records."""

    def __init__(self, files: _ProjectFiles, storage: JsonStorage) -> None:
        self._files = files
        self._storage = storage

    def save(self, project: Project) -> Result[None, str]:
        return self._storage.save_json(
            self._files.project_file(project.id), project.model_dump(mode="json")
        )

    def get(self, project_id: str) -> Result[Project, str]:
        result = self._storage.load_json(self._files.project_file(project_id))
        if isinstance(result, Err):
            return Err(f"Project not found: {project_id}")
        try:
            return Ok(Project(**result.value))
        except ValidationError as e:
            return Err(f"Invalid project data for {project_id}: {e}")


class PRDRepository:
    """Repository for parsed PRDs."""

    def __init__(self, files: _ProjectFiles, storage: JsonStorage) -> None:
        self._files = files
        self._storage = storage

    def save(self, prd: PRD) -> Result[None, str]:
        return self._storage.save_json(
            self._files.prd_file(prd.project_id, prd.id), prd.model_dump(mode="json")
        )

    def get(self, project_id: str, prd_id: str) -> Result[PRD, str]:
        result = self._storage.load_json(self._files.prd_file(project_id, prd_id))
        if isinstance(result, Err):
            return result
        try:
            return Ok(PRD(**result.value))
        except ValidationError as e:
            return Err(f"Invalid PRD data for {prd_id}: {e}")


class TaskRepository:
    """Repository for tasks, stored as one ``tasks.json`` per project.

    ``save`` is an upsert by task id. Writers on different threads are
    serialized so concurrent upserts never lose each other's rows.
    """

    def __init__(self, files: _ProjectFiles, storage: JsonStorage) -> None:
        self._files = files
        self._storage = storage
        self._lock = Lock()

    def save(self, project_id: str, task: Task) -> Result[None, str]:
        """Insert or replace a task by id."""
        with self._lock:
            tasks_file = self._files.tasks_file(project_id)
            result = self._storage.load_json_or(tasks_file, {"tasks": []})
            if isinstance(result, Err):
                return result

            rows = list(result.value.get("tasks", []))
            row = task.model_dump(mode="json")
            for index, existing in enumerate(rows):
                if existing.get("id") == task.id:
                    rows[index] = row
                    break
            else:
                rows.append(row)

            return self._storage.save_json(tasks_file, {"tasks": rows})

    def list(
        self,
        project_id: str,
        where: TaskFilter | None = None,
        sort_by: TaskSortKey = "created_at",
    ) -> Result[list[Task], str]:
        """List a project's tasks.

        Args:
            project_id: Project to list tasks for.
            where: Optional predicate; only matching tasks are returned.
            sort_by: Sort key; ties keep stored order.

        Returns:
            Ok(list[Task]), or Err(str) if the file is unreadable or invalid.
        """
        result = self._storage.load_json_or(self._files.tasks_file(project_id), {"tasks": []})
        if isinstance(result, Err):
            return result

        try:
            tasks = [Task(**row) for row in result.value.get("tasks", [])]
        except ValidationError as e:
            return Err(f"Invalid task data for project {project_id}: {e}")

        if where is not None:
            tasks = [t for t in tasks if where(t)]

        return Ok(sorted(tasks, key=_sort_key(sort_by)))


class PersonaRepository:
    """Repository for a project's personas."""

    def __init__(self, files: _ProjectFiles, storage: JsonStorage) -> None:
        self._files = files
        self._storage = storage

    def list(self, project_id: str) -> Result[list[Persona], str]:
        result = self._storage.load_json_or(self._files.personas_file(project_id), {"personas": []})
        if isinstance(result, Err):
            return result
        try:
            return Ok([Persona(**row) for row in result.value.get("personas", [])])
        except ValidationError as e:
            return Err(f"Invalid persona data for project {project_id}: {e}")

    def save(self, project_id: str, persona: Persona) -> Result[None, str]:
        """Insert or replace a persona by name.

        Saving a default persona clears the flag on every other persona so a
        project never has more than one default.
        """
        listed = self.list(project_id)
        if isinstance(listed, Err):
            return listed

        personas = [p for p in listed.value if p.name != persona.name]
        if persona.is_default:
            personas = [p.model_copy(update={"is_default": False}) for p in personas]
        personas.append(persona.model_copy(update={"project_id": project_id}))

        return self._storage.save_json(
            self._files.personas_file(project_id),
            {"personas": [p.model_dump(mode="json") for p in personas]},
        )


class JsonTaskStore:
    """File-backed store used by the generation pipeline.

    Aggregates the repositories behind the operations the pipeline needs:
    save project, save PRD, save task (upsert), list tasks, list personas.
    """

    def __init__(self, data_dir: Path | None = None, storage: JsonStorage | None = None) -> None:
        files = _ProjectFiles(data_dir or DEFAULT_DATA_DIR)
        storage = storage or JsonStorage()
        self.projects = ProjectRepository(files, storage)
        self.prds = PRDRepository(files, storage)
        self.tasks = TaskRepository(files, storage)
        self.personas = PersonaRepository(files, storage)

    def save_project(self, project: Project) -> Result[None, str]:
        return self.projects.save(project)

    def save_prd(self, prd: PRD) -> Result[None, str]:
        return self.prds.save(prd)

    def save_task(self, project_id: str, task: Task) -> Result[None, str]:
        return self.tasks.save(project_id, task)

    def list_tasks(
        self,
        project_id: str,
        where: TaskFilter | None = None,
        sort_by: TaskSortKey = "created_at",
    ) -> Result[list[Task], str]:
        return self.tasks.list(project_id, where=where, sort_by=sort_by)

    def list_personas(self, project_id: str) -> Result[list[Persona], str]:
        return self.personas.list(project_id)


def _sort_key(sort_by: TaskSortKey) -> Callable[[Task], object]:
    if sort_by == "priority":
        return lambda t: _PRIORITY_RANK.get(t.priority or "medium", 1)
    if sort_by == "complexity":
        return lambda t: -(t.complexity or 0)
    if sort_by == "title":
        return lambda t: t.title.lower()
    return lambda t: t.created_at
