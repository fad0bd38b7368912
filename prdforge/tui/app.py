"""Textual app that shows a generation run as it happens.

The app owns no generation logic: a timer calls ``pipeline.advance()`` and
the folded updates are rendered into the log and the task table.
"""

from __future__ import annotations

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.timer import Timer
from textual.widgets import DataTable, Footer, Header, Input, Log, Static

from prdforge.application.pipeline import GenerationPipeline
from prdforge.domain.generation import events, states
from prdforge.domain.shared import Err

TICK_SECONDS = 0.05


class GenerationApp(App):
    """Runs a ``GenerationPipeline`` and displays its progress."""

    TITLE = "prdforge"
    SUB_TITLE = "PRD to tasks"

    CSS = """
    #main {
        height: 1fr;
    }

    #conversation {
        width: 60%;
        border: solid $primary;
    }

    #side {
        width: 40%;
    }

    #tasks {
        height: 1fr;
        border: solid $secondary;
    }

    #state {
        height: 1;
        padding: 0 1;
        background: $surface-darken-2;
    }

    #follow-up {
        dock: bottom;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, pipeline: GenerationPipeline) -> None:
        super().__init__()
        self.pipeline = pipeline
        self._timer: Timer | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(self.pipeline.state.label, id="state")
        with Horizontal(id="main"):
            yield Log(id="conversation", highlight=False)
            with Vertical(id="side"):
                yield DataTable(id="tasks")
        yield Input(placeholder="Follow-up for the model (Enter to send)", id="follow-up")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#tasks", DataTable)
        table.add_columns("Task", "Priority", "Cx", "Assignee")
        self._timer = self.set_interval(TICK_SECONDS, self._tick)

    def on_unmount(self) -> None:
        self.pipeline.close()

    def _tick(self) -> None:
        keep_going = self.pipeline.advance()
        self._render_updates(self.pipeline.drain_updates())
        self.query_one("#state", Static).update(self._state_text())

        if not keep_going and self._timer is not None:
            self._timer.stop()
            self._timer = None
            self._finish()

    def _render_updates(self, updates: list[events.GenerationUpdate]) -> None:
        log = self.query_one("#conversation", Log)
        table = self.query_one("#tasks", DataTable)
        for update in updates:
            if isinstance(update, events.Thinking):
                log.write(update.text)
            elif isinstance(update, events.Question):
                log.write(f"\n? {update.text}\n")
            elif isinstance(update, events.TaskGenerated):
                table.add_row(
                    update.title,
                    update.priority or "-",
                    str(update.complexity) if update.complexity is not None else "-",
                    update.assignee or "-",
                )
            elif isinstance(update, events.ValidationInfo):
                log.write(f"\n[{update.task_title}] {update.message}\n")
            elif isinstance(update, events.Error):
                log.write(f"\nError: {update.message}\n")

    def _state_text(self) -> str:
        state = self.pipeline.state
        if isinstance(state, states.Complete):
            return f"Complete: {state.count} task(s) stored (press q to quit)"
        if isinstance(state, states.Failed):
            return f"Failed: {state.error}"
        return f"{state.label}..."

    def _finish(self) -> None:
        state = self.pipeline.state
        if isinstance(state, states.Complete):
            self.notify(f"Stored {state.count} task(s)")
        elif isinstance(state, states.Failed):
            self.notify(state.error, title="Generation failed", severity="error")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        text = event.value.strip()
        event.input.value = ""
        if not text:
            return
        result = self.pipeline.send_follow_up(text)
        log = self.query_one("#conversation", Log)
        if isinstance(result, Err):
            log.write(f"\n(follow-up not sent: {result.error})\n")
        else:
            log.write(f"\n> {text}\n")
