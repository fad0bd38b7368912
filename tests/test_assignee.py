"""Tests for assignee resolution."""

from prdforge.application.assignee import AssigneeResolver, match_persona
from prdforge.domain.generation.events import ValidationInfo
from prdforge.domain.persona.models import Persona
from prdforge.domain.shared.result import Err, Ok

from tests.conftest import FakeCompleter


def _resolve(completer, name, personas):
    events = []
    resolved = AssigneeResolver(completer, "qwen2.5").resolve("Task", name, personas, emit=events.append)
    return resolved, [e.message for e in events if isinstance(e, ValidationInfo)]


class TestMatchPersona:
    def test_exact(self, personas):
        assert match_persona("Alice", personas).name == "Alice"

    def test_case_insensitive(self, personas):
        assert match_persona("BOB", personas).name == "Bob"

    def test_substring_either_direction(self, personas):
        assert match_persona("Alice Smith", personas).name == "Alice"
        assert match_persona("Ali", personas).name == "Alice"

    def test_roles_are_not_matched(self, personas):
        assert match_persona("frontend", personas) is None

    def test_blank_names_never_match(self):
        roster = [Persona(name=""), Persona(name="Carol")]

        assert match_persona("Carol", roster).name == "Carol"
        assert match_persona("Zed", roster) is None
        assert match_persona("", [Persona(name="Carol")]) is None

    def test_no_match(self, personas):
        assert match_persona("Zed", personas) is None


def test_direct_match_never_calls_model(personas):
    completer = FakeCompleter()

    resolved, messages = _resolve(completer, "alice", personas)

    assert resolved == "Alice"
    assert messages == []
    assert completer.calls == []


def test_unassigned_goes_to_default(personas):
    completer = FakeCompleter()

    assert _resolve(completer, "Unassigned", personas) == ("Bob", [])
    assert _resolve(completer, None, personas) == ("Bob", [])
    assert completer.calls == []


def test_first_persona_when_no_default():
    personas = [Persona(name="Carol"), Persona(name="Dan")]

    assert _resolve(FakeCompleter(), "", personas) == ("Carol", [])


def test_empty_roster_gives_none():
    assert _resolve(FakeCompleter(), "Alice", []) == (None, [])


def test_model_picks_a_persona(personas):
    completer = FakeCompleter([Ok('"alice"')])

    resolved, messages = _resolve(completer, "Database Guru", personas)

    assert resolved == "Alice"
    assert messages == [
        "Remediating assignee...",
        "Remediation successful: 'Database Guru' → 'Alice'",
    ]
    model, prompt = completer.calls[0]
    assert model == "qwen2.5"
    assert "Database Guru" in prompt


def test_model_reply_outside_roster_falls_back(personas):
    completer = FakeCompleter([Ok("Zed")])

    resolved, messages = _resolve(completer, "Database Guru", personas)

    assert resolved == "Bob"
    assert messages == [
        "Remediating assignee...",
        "Using fallback persona: 'Database Guru' → 'Bob'",
    ]


def test_model_failure_falls_back(personas):
    completer = FakeCompleter([Err("timeout")])

    resolved, messages = _resolve(completer, "Database Guru", personas)

    assert resolved == "Bob"
    assert messages == [
        "Remediating assignee...",
        "LLM remediation failed: timeout",
        "Using fallback persona: 'Database Guru' → 'Bob'",
    ]


def test_role_text_escalates_to_model(personas):
    completer = FakeCompleter([Ok("Bob")])

    resolved, messages = _resolve(completer, "backend engineer", personas)

    assert resolved == "Bob"
    assert len(completer.calls) == 1
    assert messages == [
        "Remediating assignee...",
        "Remediation successful: 'backend engineer' → 'Bob'",
    ]
