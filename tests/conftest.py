"""Shared test fixtures and fakes."""

from __future__ import annotations

import json
import threading
from collections.abc import Iterator
from pathlib import Path

import pytest

from prdforge.application.assignee import AssigneeResolver
from prdforge.application.remediation import JsonRemediator
from prdforge.config import GenerationConfig
from prdforge.domain.persona.models import Persona
from prdforge.domain.prd.parser import parse_prd_markdown
from prdforge.domain.shared.result import Err, Ok, Result
from prdforge.infrastructure.ai.ollama import OllamaStreamError
from prdforge.infrastructure.storage import JsonTaskStore

PRD_MARKDOWN = """# Billing Service

## Objectives
- Charge customers monthly
- Send invoices by email

## Tech Stack
- Python
- PostgreSQL

## Constraints
1. PCI compliance
"""

GOOD_DESCRIPTION = (
    "Implement the invoice generator so that customers receive a PDF every month. "
    "Done when the integration tests pass against the staging database."
)


class FakeCompleter:
    """Returns scripted replies in order and records every call."""

    def __init__(self, replies: list[Result[str, str]] | None = None) -> None:
        self.replies = list(replies or [])
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def complete(self, model: str, prompt: str) -> Result[str, str]:
        with self._lock:
            self.calls.append((model, prompt))
            if not self.replies:
                return Err("no scripted reply")
            return self.replies.pop(0)


class FakeStreamClient(FakeCompleter):
    """Streams scripted chunks; optionally fails or waits for a gate."""

    def __init__(
        self,
        chunks: list[str] | None = None,
        replies: list[Result[str, str]] | None = None,
        fail_after: int | None = None,
        gate: threading.Event | None = None,
        gate_at: int = 1,
    ) -> None:
        super().__init__(replies)
        self.chunks = list(chunks or [])
        self.fail_after = fail_after
        self.gate = gate
        self.gate_at = gate_at
        self.stream_calls: list[tuple[str, str, float]] = []

    def stream_chat(self, model: str, prompt: str, temperature: float = 0.7) -> Iterator[str]:
        self.stream_calls.append((model, prompt, temperature))
        for index, chunk in enumerate(self.chunks):
            if self.fail_after is not None and index == self.fail_after:
                raise OllamaStreamError("HTTP request failed: connection reset")
            if self.gate is not None and index == self.gate_at:
                self.gate.wait(timeout=5)
            yield chunk


def task_json(title: str, **fields) -> dict:
    return {
        "title": title,
        "description": fields.pop("description", GOOD_DESCRIPTION),
        "priority": fields.pop("priority", "high"),
        "estimated_complexity": fields.pop("estimated_complexity", 3),
        **fields,
    }


def tasks_reply(*tasks: dict) -> str:
    return json.dumps(list(tasks))


@pytest.fixture()
def personas() -> list[Persona]:
    return [
        Persona(name="Alice", role="backend engineer"),
        Persona(name="Bob", role="frontend engineer", is_default=True),
    ]


@pytest.fixture()
def prd():
    result = parse_prd_markdown("billing", PRD_MARKDOWN)
    assert isinstance(result, Ok)
    return result.value


@pytest.fixture()
def config() -> GenerationConfig:
    return GenerationConfig(provider="ollama", main_model="llama3.2", fallback_model="qwen2.5")


@pytest.fixture()
def store(tmp_path: Path) -> JsonTaskStore:
    return JsonTaskStore(tmp_path / "projects")


@pytest.fixture()
def completer() -> FakeCompleter:
    return FakeCompleter()


@pytest.fixture()
def resolver(completer: FakeCompleter) -> AssigneeResolver:
    return AssigneeResolver(completer, "qwen2.5")


@pytest.fixture()
def remediator(completer: FakeCompleter) -> JsonRemediator:
    return JsonRemediator(completer, "qwen2.5")


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"provider": "ollama", "model": {"main": "llama3.2", "fallback": "qwen2.5"}}),
        encoding="utf-8",
    )
    return path


@pytest.fixture()
def prd_file(tmp_path: Path) -> Path:
    path = tmp_path / "billing.md"
    path.write_text(PRD_MARKDOWN, encoding="utf-8")
    return path
