"""Consuming a streamed model reply.

The consumer forwards every fragment as ``Thinking`` so the UI can show the
reply as it arrives, and watches the stream for complete task objects so a
``TaskGenerated`` preview appears as soon as each object closes. The task
list that gets persisted always comes from the final ``parse_tasks`` pass
over the whole reply; previews are advisory.

Status lines end in a newline so a log view can append every ``Thinking``
text as-is.
"""

import json
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from prdforge.application.assignee import AssigneeResolver
from prdforge.application.extraction import (
    ASSIGNEE_KEYS,
    COMPLEXITY_KEYS,
    DESCRIPTION_KEYS,
    PRIORITY_KEYS,
    TITLE_KEYS,
    extract_json,
    extract_number,
    extract_string,
    parse_tasks,
)
from prdforge.application.ports import Emit
from prdforge.application.remediation import JsonRemediator
from prdforge.config import GenerationConfig
from prdforge.domain.generation.events import (
    Complete,
    Error,
    Question,
    TaskGenerated,
    Thinking,
)
from prdforge.domain.persona.models import Persona
from prdforge.domain.prd.models import PRD
from prdforge.domain.shared.result import Ok, is_err
from prdforge.infrastructure.ai.ollama import OllamaStreamError, StreamingChatClient
from prdforge.infrastructure.ai.prompts import build_generation_prompt

logger = logging.getLogger(__name__)


@dataclass
class TaskObjectDetector:
    """Spots complete top-level objects inside a JSON array as text streams in.

    Brace and bracket counts are approximate: they ignore anything outside
    an object that looks like JSON, but quoted strings inside an object are
    skipped so braces in titles or descriptions do not count.
    """

    array_depth: int = 0
    object_depth: int = 0
    capturing: bool = False
    buffer: list[str] = field(default_factory=list)
    _in_string: bool = False
    _escaped: bool = False

    def feed(self, fragment: str) -> list[dict[str, Any]]:
        """Consume a fragment and return each object it completed."""
        found: list[dict[str, Any]] = []
        for ch in fragment:
            if self.capturing:
                self.buffer.append(ch)

            if self._in_string:
                if self._escaped:
                    self._escaped = False
                elif ch == "\\":
                    self._escaped = True
                elif ch == '"':
                    self._in_string = False
                continue

            if ch == '"' and self.object_depth > 0:
                self._in_string = True
            elif ch == "[":
                self.array_depth += 1
            elif ch == "]":
                self.array_depth = max(0, self.array_depth - 1)
            elif ch == "{":
                self.object_depth += 1
                if self.object_depth == 1 and self.array_depth >= 1:
                    self.capturing = True
                    self.buffer = ["{"]
            elif ch == "}":
                self.object_depth = max(0, self.object_depth - 1)
                if self.object_depth == 0 and self.capturing:
                    self.capturing = False
                    decoded = _decode_object("".join(self.buffer))
                    self.buffer = []
                    if decoded is not None:
                        found.append(decoded)
        return found


def _decode_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        logger.debug(f"Skipping undecodable streamed object: {text[:80]}")
        return None
    return value if isinstance(value, dict) else None


def preview_task(obj: dict[str, Any]) -> TaskGenerated | None:
    """Build a ``TaskGenerated`` preview, or None when the object has no title."""
    title = extract_string(obj, TITLE_KEYS)
    if title is None:
        return None
    return TaskGenerated(
        title=title,
        description=extract_string(obj, DESCRIPTION_KEYS) or "",
        assignee=extract_string(obj, ASSIGNEE_KEYS),
        priority=extract_string(obj, PRIORITY_KEYS),
        complexity=extract_number(obj, COMPLEXITY_KEYS),
    )


class StreamingConsumer:
    """Runs one streamed generation and reports it through ``emit``.

    Args:
        client: Streaming chat client.
        config: Models and sampling temperature.
        resolver: Assignee resolver for the final parse.
        remediator: JSON remediator for the final parse.
    """

    def __init__(
        self,
        client: StreamingChatClient,
        config: GenerationConfig,
        resolver: AssigneeResolver,
        remediator: JsonRemediator,
    ) -> None:
        self._client = client
        self._config = config
        self._resolver = resolver
        self._remediator = remediator

    def run(
        self,
        prd: PRD,
        personas: list[Persona],
        emit: Emit,
        cancel: threading.Event | None = None,
        follow_ups: Callable[[], list[str]] | None = None,
    ) -> None:
        """Stream a task list for ``prd``.

        Ends with exactly one ``Complete`` or ``Error`` unless cancelled, in
        which case it stops without a terminal event.
        """
        emit(Thinking(text="Analyzing PRD objectives and constraints...\n"))
        prompt = build_generation_prompt(prd, personas)
        emit(Thinking(text=f"Streaming task generation from {self._config.main_model}...\n"))

        detector = TaskObjectDetector()
        chunks: list[str] = []
        try:
            for fragment in self._client.stream_chat(
                self._config.main_model, prompt, temperature=self._config.temperature
            ):
                if cancel is not None and cancel.is_set():
                    logger.info("Generation cancelled mid-stream")
                    return

                chunks.append(fragment)
                for obj in detector.feed(fragment):
                    preview = preview_task(obj)
                    if preview is not None:
                        emit(preview)
                emit(Thinking(text=fragment))

                if follow_ups is not None:
                    for text in follow_ups():
                        emit(Thinking(text=f"\n[follow-up received: {text}]\n"))
        except OllamaStreamError as e:
            emit(Error(message=f"Stream error: {e}"))
            return

        if cancel is not None and cancel.is_set():
            return

        response = "".join(chunks)
        if not response.strip():
            emit(Error(message="Model returned an empty response"))
            return

        emit(Thinking(text="\nValidating generated tasks...\n"))
        parsed = parse_tasks(
            response,
            prd_id=prd.id,
            personas=personas,
            resolver=self._resolver,
            remediator=self._remediator,
            emit=emit,
        )
        if isinstance(parsed, Ok):
            logger.info(f"Generated {len(parsed.value)} task(s)")
            emit(Complete(tasks=parsed.value))
            return

        reply = response.strip()
        if is_err(extract_json(response)) and reply.endswith("?"):
            emit(Question(text=reply))
        emit(Error(message=parsed.error))
