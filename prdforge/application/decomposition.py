"""Breaking complex tasks into sub-tasks."""

import logging

from prdforge.application.assignee import AssigneeResolver
from prdforge.application.extraction import parse_tasks
from prdforge.application.ports import Emit
from prdforge.application.remediation import JsonRemediator
from prdforge.config import GenerationConfig
from prdforge.domain.persona.models import Persona
from prdforge.domain.prd.models import PRD
from prdforge.domain.shared.result import Err, Ok, Result
from prdforge.domain.task.models import Task
from prdforge.infrastructure.ai.ollama import Completer
from prdforge.infrastructure.ai.prompts import build_decomposition_prompt

logger = logging.getLogger(__name__)

DECOMPOSITION_THRESHOLD = 7
SUBTASK_DEFAULT_COMPLEXITY = 3
PRD_SNIPPET_LIMIT = 500
MIN_SUBTASKS = 3
MAX_SUBTASKS = 5


def needs_decomposition(task: Task) -> bool:
    return task.complexity is not None and task.complexity >= DECOMPOSITION_THRESHOLD


class TaskDecomposer:
    """Asks the model to split a complex task into 3-5 sub-tasks.

    Args:
        completer: Non-streaming model client.
        config: Supplies the main model for the request.
        resolver: Assignee resolver for sub-task parsing.
        remediator: JSON remediator for sub-task parsing.
    """

    def __init__(
        self,
        completer: Completer,
        config: GenerationConfig,
        resolver: AssigneeResolver,
        remediator: JsonRemediator,
    ) -> None:
        self._completer = completer
        self._config = config
        self._resolver = resolver
        self._remediator = remediator

    def decompose(
        self,
        task: Task,
        prd: PRD,
        personas: list[Persona],
        emit: Emit | None = None,
    ) -> Result[list[Task], str]:
        """Generate sub-tasks for ``task``.

        Sub-tasks point at ``task`` through ``parent_task_id``, share its
        source PRD, and never exceed its complexity. The parent itself is
        not modified here.

        Returns:
            Ok(list[Task]) with at least one sub-task, or Err(str).
        """
        if not needs_decomposition(task):
            return Err(
                f"Task '{task.title}' has complexity {task.complexity}; "
                f"decomposition starts at {DECOMPOSITION_THRESHOLD}"
            )

        prompt = build_decomposition_prompt(task, prd, personas, PRD_SNIPPET_LIMIT)
        reply = self._completer.complete(self._config.main_model, prompt)
        if isinstance(reply, Err):
            return Err(f"Decomposition request for '{task.title}' failed: {reply.error}")

        parsed = parse_tasks(
            reply.value,
            prd_id=task.source_prd_id,
            personas=personas,
            resolver=self._resolver,
            remediator=self._remediator,
            emit=emit,
            default_complexity=SUBTASK_DEFAULT_COMPLEXITY,
        )
        if isinstance(parsed, Err):
            return Err(f"Could not parse sub-tasks for '{task.title}': {parsed.error}")
        if not parsed.value:
            return Err(f"Decomposition of '{task.title}' produced no sub-tasks")

        count = len(parsed.value)
        if not MIN_SUBTASKS <= count <= MAX_SUBTASKS:
            logger.warning(
                f"Expected {MIN_SUBTASKS}-{MAX_SUBTASKS} sub-tasks for '{task.title}', got {count}"
            )

        ceiling = task.complexity or SUBTASK_DEFAULT_COMPLEXITY
        subtasks = [
            sub.model_copy(
                update={
                    "parent_task_id": task.id,
                    "source_prd_id": task.source_prd_id,
                    "complexity": min(sub.complexity or SUBTASK_DEFAULT_COMPLEXITY, ceiling),
                }
            )
            for sub in parsed.value
        ]
        logger.info(f"Decomposed '{task.title}' into {len(subtasks)} sub-task(s)")
        return Ok(subtasks)
