"""The step-wise generation state machine.

A host (CLI loop or TUI timer) calls ``advance()`` repeatedly. Each call
does one bounded unit of work and returns whether to call again:

    Idle -> ReadingFile -> ParsingPRD -> LoadingConfig -> GeneratingTasks
         -> SavingTasks -> ReloadingTasks -> Complete

Any fatal error moves to ``Failed``. ``GeneratingTasks`` consumes one
streamed update per call and ``SavingTasks`` folds one finished
decomposition per call, so the host stays responsive throughout.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path

from prdforge.application.assignee import AssigneeResolver
from prdforge.application.decomposition import TaskDecomposer, needs_decomposition
from prdforge.application.ports import TaskStore
from prdforge.application.remediation import JsonRemediator
from prdforge.application.session import GenerationSession
from prdforge.application.streaming import StreamingConsumer
from prdforge.config import GenerationConfig, parse_generation_config
from prdforge.domain.generation import events, states
from prdforge.domain.generation.events import GenerationUpdate
from prdforge.domain.generation.states import ProcessingState
from prdforge.domain.persona.models import Persona
from prdforge.domain.prd.models import PRD
from prdforge.domain.prd.parser import parse_prd_markdown
from prdforge.domain.project.models import Project
from prdforge.domain.shared.result import Err, Ok, Result
from prdforge.domain.task.models import Task
from prdforge.infrastructure.ai.ollama import OllamaClient, StreamingChatClient

logger = logging.getLogger(__name__)

DECOMPOSITION_WORKERS = 2

_DecompositionOutcome = tuple[Result[list[Task], str], list[GenerationUpdate]]


class GenerationPipeline:
    """Turns a PRD file into persisted tasks, one ``advance()`` at a time.

    Args:
        prd_path: Markdown PRD to read.
        config_path: JSON generation config to read.
        project_id: Project the PRD and tasks belong to.
        store: Persistence collaborator.
        client: Model client; defaults to an ``OllamaClient`` on the
            configured base URL.
        decomposition_workers: Threads used for decomposition requests.

    Attributes:
        state: Current processing state.
        conversation: Text pieces in arrival order (model fragments, status
            lines, questions, follow-ups). Status lines carry their own
            newlines, so joining the pieces yields a readable transcript.
        partial_tasks: Speculative previews seen while streaming.
        validation_messages: Warnings from parsing and decomposition.
        tasks: Tasks from the authoritative parse, updated as parents are
            decomposed.
        reloaded_tasks: Tasks read back from the store at the end.
    """

    def __init__(
        self,
        prd_path: Path,
        config_path: Path,
        project_id: str,
        store: TaskStore,
        client: StreamingChatClient | None = None,
        decomposition_workers: int = DECOMPOSITION_WORKERS,
    ) -> None:
        self.prd_path = prd_path
        self.config_path = config_path
        self.project_id = project_id
        self._store = store
        self._client = client
        self._decomposition_workers = decomposition_workers

        self.state: ProcessingState = states.Idle()
        self.conversation: list[str] = []
        self.partial_tasks: list[events.TaskGenerated] = []
        self.validation_messages: list[events.ValidationInfo] = []
        self.tasks: list[Task] = []
        self.reloaded_tasks: list[Task] = []

        self._pending: list[GenerationUpdate] = []
        self._raw_prd: str | None = None
        self._prd: PRD | None = None
        self._config: GenerationConfig | None = None
        self._personas: list[Persona] = []
        self._session: GenerationSession | None = None
        self._executor: ThreadPoolExecutor | None = None
        self._decompositions: list[tuple[Task, Future[_DecompositionOutcome]]] = []
        self._tasks_saved = False

    # =========================================================================
    # Host API
    # =========================================================================

    def advance(self) -> bool:
        """Perform one unit of work.

        Returns:
            True if the host should call again, False once terminal.
        """
        if self.state.is_terminal:
            return False

        step = {
            states.Idle: self._start,
            states.ReadingFile: self._read_file,
            states.ParsingPRD: self._parse_prd,
            states.LoadingConfig: self._load_config,
            states.GeneratingTasks: self._generate,
            states.SavingTasks: self._save,
            states.ReloadingTasks: self._reload,
        }[type(self.state)]
        step()
        return not self.state.is_terminal

    @property
    def transcript(self) -> str:
        return "".join(self.conversation)

    def send_follow_up(self, text: str) -> Result[None, str]:
        """Forward user text to the running generation."""
        if self._session is None or not isinstance(self.state, states.GeneratingTasks):
            return Err("No generation is running")
        sent = self._session.send_follow_up(text)
        if isinstance(sent, Ok):
            self.conversation.append(f"\n> {text}\n")
        return sent

    def drain_updates(self) -> list[GenerationUpdate]:
        """Return and clear updates folded since the last call."""
        drained, self._pending = self._pending, []
        return drained

    def close(self) -> None:
        """Cancel background work and release threads."""
        if self._session is not None:
            self._session.close()
            self._session = None
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None
        self._decompositions = []

    # =========================================================================
    # Steps
    # =========================================================================

    def _start(self) -> None:
        logger.info(f"Starting generation for {self.prd_path}")
        self.state = states.ReadingFile()

    def _read_file(self) -> None:
        try:
            self._raw_prd = self.prd_path.read_text(encoding="utf-8")
        except OSError as e:
            self._fail(f"Failed to read PRD file {self.prd_path}: {e.strerror or e}")
            return
        except UnicodeDecodeError as e:
            self._fail(f"Failed to read PRD file {self.prd_path}: not valid UTF-8 ({e.reason})")
            return
        self.state = states.ParsingPRD()

    def _parse_prd(self) -> None:
        parsed = parse_prd_markdown(self.project_id, self._raw_prd or "")
        if isinstance(parsed, Err):
            self._fail(f"Failed to parse PRD {self.prd_path}: {parsed.error}")
            return
        self._prd = parsed.value
        self.state = states.LoadingConfig()

    def _load_config(self) -> None:
        try:
            text = self.config_path.read_text(encoding="utf-8")
        except OSError as e:
            self._fail(f"Cannot read configuration {self.config_path}: {e.strerror or e}")
            return

        config = parse_generation_config(text)
        if isinstance(config, Err):
            self._fail(config.error)
            return
        self._config = config.value

        personas = self._store.list_personas(self.project_id)
        if isinstance(personas, Err):
            self._fail(f"Failed to load personas: {personas.error}")
            return
        self._personas = personas.value
        logger.info(
            f"Using {self._config.provider}/{self._config.main_model} "
            f"with {len(self._personas)} persona(s)"
        )
        self.state = states.GeneratingTasks()

    def _generate(self) -> None:
        if self._session is None:
            self._launch()
            return

        polled = self._session.poll()
        if isinstance(polled, Err):
            self._session = None
            self._fail(polled.error)
            return

        update = polled.value
        if update is None:
            return
        self._fold(update)

        if isinstance(update, events.Complete):
            self._session.close()
            self._session = None
            self.tasks = list(update.tasks)
            self.state = states.SavingTasks()
        elif isinstance(update, events.Error):
            self._session.close()
            self._session = None
            self._fail(update.message)

    def _launch(self) -> None:
        config = self._config
        if config is None or self._prd is None:
            self._fail("Generation started before the PRD and configuration were loaded")
            return
        if not config.supports_streaming:
            self._fail(
                f"Provider '{config.provider}' does not support streaming generation"
            )
            return

        client = self._client_for(config)
        resolver = AssigneeResolver(client, config.fallback_model)
        remediator = JsonRemediator(client, config.fallback_model)
        consumer = StreamingConsumer(client, config, resolver, remediator)
        self._session = GenerationSession(consumer, self._prd, self._personas)
        self._session.start()

    def _save(self) -> None:
        if not self._tasks_saved:
            self._save_generated()
            return

        if not self._decompositions:
            self._finish_decomposition()
            return

        for index, (parent, future) in enumerate(self._decompositions):
            if future.done():
                del self._decompositions[index]
                self._fold_decomposition(parent, future)
                break

    def _save_generated(self) -> None:
        prd = self._prd
        if prd is None:
            self._fail("No PRD loaded; nothing to save")
            return

        saved = self._store.save_project(Project(id=self.project_id, name=prd.title))
        if isinstance(saved, Err):
            self._fail(f"Failed to save project: {saved.error}")
            return
        saved = self._store.save_prd(prd)
        if isinstance(saved, Err):
            self._fail(f"Failed to save PRD: {saved.error}")
            return
        for task in self.tasks:
            saved = self._store.save_task(self.project_id, task)
            if isinstance(saved, Err):
                self._fail(f"Failed to save task '{task.title}': {saved.error}")
                return
        self._tasks_saved = True
        logger.info(f"Saved {len(self.tasks)} task(s)")

        complex_tasks = [t for t in self.tasks if needs_decomposition(t)]
        if not complex_tasks:
            return

        config = self._config
        if config is None:
            self._fail("No configuration loaded; cannot decompose tasks")
            return
        client = self._client_for(config)
        decomposer = TaskDecomposer(
            client,
            config,
            AssigneeResolver(client, config.fallback_model),
            JsonRemediator(client, config.fallback_model),
        )
        self._executor = ThreadPoolExecutor(
            max_workers=self._decomposition_workers,
            thread_name_prefix="prdforge-decompose",
        )
        personas = list(self._personas)
        for task in complex_tasks:
            self.conversation.append(f"Decomposing '{task.title}' (complexity {task.complexity})\n")
            future = self._executor.submit(_decompose, decomposer, task, prd, personas)
            self._decompositions.append((task, future))

    def _fold_decomposition(self, parent: Task, future: "Future[_DecompositionOutcome]") -> None:
        try:
            result, updates = future.result()
        except Exception as e:
            logger.exception(f"Decomposition of '{parent.title}' raised")
            result, updates = Err(str(e)), []

        for update in updates:
            self._fold(update)

        if isinstance(result, Err):
            self._decomposition_failed(parent, result.error)
            return

        saved_ids: list[str] = []
        for subtask in result.value:
            saved = self._store.save_task(self.project_id, subtask)
            if isinstance(saved, Err):
                logger.warning(f"Failed to save sub-task '{subtask.title}': {saved.error}")
                continue
            saved_ids.append(subtask.id)

        if not saved_ids:
            self._decomposition_failed(parent, "no sub-tasks could be saved")
            return

        updated = parent.with_subtasks(saved_ids)
        saved = self._store.save_task(self.project_id, updated)
        if isinstance(saved, Err):
            self._decomposition_failed(parent, f"failed to update parent: {saved.error}")
            return

        self.tasks = [updated if t.id == parent.id else t for t in self.tasks]
        self.conversation.append(f"Decomposed '{parent.title}' into {len(saved_ids)} sub-task(s)\n")

    def _decomposition_failed(self, parent: Task, reason: str) -> None:
        logger.warning(f"Decomposition of '{parent.title}' failed: {reason}")
        self._fold(
            events.ValidationInfo(task_title=parent.title, message=f"Decomposition failed: {reason}")
        )

    def _finish_decomposition(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
        self.state = states.ReloadingTasks()

    def _reload(self) -> None:
        prd = self._prd
        if prd is None:
            self._fail("No PRD loaded; nothing to reload")
            return
        listed = self._store.list_tasks(
            self.project_id,
            where=lambda t: t.source_prd_id == prd.id,
            sort_by="created_at",
        )
        if isinstance(listed, Err):
            self._fail(f"Failed to reload tasks: {listed.error}")
            return
        self.reloaded_tasks = listed.value
        logger.info(f"Generation complete: {len(listed.value)} task(s) stored")
        self.state = states.Complete(count=len(listed.value))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _client_for(self, config: GenerationConfig) -> StreamingChatClient:
        if self._client is None:
            self._client = OllamaClient(base_url=config.base_url)
        return self._client

    def _fold(self, update: GenerationUpdate) -> None:
        self._pending.append(update)
        if isinstance(update, events.Thinking):
            self.conversation.append(update.text)
        elif isinstance(update, events.Question):
            self.conversation.append(f"\n? {update.text}\n")
        elif isinstance(update, events.TaskGenerated):
            self.partial_tasks.append(update)
        elif isinstance(update, events.ValidationInfo):
            self.validation_messages.append(update)
        elif isinstance(update, events.Error):
            self.conversation.append(f"\nError: {update.message}\n")

    def _fail(self, error: str) -> None:
        logger.error(error)
        self.close()
        self.state = states.Failed(error=error)


def _decompose(
    decomposer: TaskDecomposer, task: Task, prd: PRD, personas: list[Persona]
) -> _DecompositionOutcome:
    # Updates are collected here and folded on the host thread.
    collected: list[GenerationUpdate] = []
    result = decomposer.decompose(task, prd, personas, emit=collected.append)
    return result, collected


