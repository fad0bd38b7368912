"""Tests for the CLI."""

import json

import pytest
from typer.testing import CliRunner

from prdforge import __version__
from prdforge.domain.task.models import Task
from prdforge.infrastructure.storage import JsonTaskStore
from prdforge.interfaces.cli import app

from tests.conftest import FakeStreamClient, task_json

runner = CliRunner()


@pytest.fixture(autouse=True)
def _isolated_home(tmp_path, monkeypatch):
    monkeypatch.setenv("PRDFORGE_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("PRDFORGE_PROJECT", raising=False)
    monkeypatch.delenv("PRDFORGE_DATA_DIR", raising=False)


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_personas_add_and_list(tmp_path):
    data = str(tmp_path / "data")

    added = runner.invoke(
        app, ["personas", "add", "Alice", "--role", "backend", "--default", "-p", "billing", "--data-dir", data]
    )
    listed = runner.invoke(app, ["personas", "list", "-p", "billing", "--data-dir", data])

    assert added.exit_code == 0, added.output
    assert "Saved persona 'Alice' (default)" in added.output
    assert listed.exit_code == 0
    assert "Alice" in listed.output
    assert "backend" in listed.output


def test_personas_add_rejects_blank_name(tmp_path):
    result = runner.invoke(app, ["personas", "add", "  ", "-p", "billing", "--data-dir", str(tmp_path)])

    assert result.exit_code == 1
    assert "Persona name cannot be blank" in result.output
    assert not (tmp_path / "billing").exists()


def test_tasks_requires_a_project():
    result = runner.invoke(app, ["tasks"])

    assert result.exit_code == 1
    assert "No project specified" in result.output


def test_tasks_lists_stored_tasks(tmp_path):
    store = JsonTaskStore(tmp_path / "data")
    store.save_task("billing", Task(title="Invoices", priority="high", complexity=4))

    result = runner.invoke(app, ["tasks", "-p", "billing", "--data-dir", str(tmp_path / "data")])

    assert result.exit_code == 0
    assert "Invoices" in result.output
    assert "high" in result.output


def test_project_and_data_dir_from_environment(tmp_path, monkeypatch):
    store = JsonTaskStore(tmp_path / "data")
    store.save_task("billing", Task(title="Refunds", priority="low", complexity=2))
    monkeypatch.setenv("PRDFORGE_PROJECT", "billing")
    monkeypatch.setenv("PRDFORGE_DATA_DIR", str(tmp_path / "data"))

    result = runner.invoke(app, ["tasks"])

    assert result.exit_code == 0, result.output
    assert "Refunds" in result.output


def test_tasks_rejects_unknown_sort(tmp_path):
    result = runner.invoke(app, ["tasks", "-p", "billing", "--sort", "colour"])

    assert result.exit_code == 1
    assert "Unknown sort key" in result.output


def test_config_set_then_show(tmp_path):
    path = str(tmp_path / "config.json")

    set_result = runner.invoke(app, ["config", "set", "-m", "llama3.2", "-c", path])
    show_result = runner.invoke(app, ["config", "show", "-c", path])

    assert set_result.exit_code == 0, set_result.output
    assert show_result.exit_code == 0
    assert "llama3.2" in show_result.output
    assert json.loads((tmp_path / "config.json").read_text())["version"] == "3.0"


def test_generate_missing_prd_exits_1(tmp_path, config_file):
    result = runner.invoke(
        app,
        ["generate", str(tmp_path / "missing.md"), "-c", str(config_file), "--data-dir", str(tmp_path / "data")],
    )

    assert result.exit_code == 1
    assert "Failed to read PRD file" in result.output


def test_generate_stores_tasks(tmp_path, prd_file, config_file, monkeypatch):
    payload = json.dumps([task_json("Invoices"), task_json("Reminders")])
    client = FakeStreamClient([payload[:40], payload[40:]])
    monkeypatch.setattr(
        "prdforge.application.pipeline.OllamaClient", lambda base_url: client
    )

    result = runner.invoke(
        app, ["generate", str(prd_file), "-c", str(config_file), "--data-dir", str(tmp_path / "data")]
    )

    assert result.exit_code == 0, result.output
    assert "+ Invoices" in result.output
    assert "Stored 2 task(s) in project 'billing'" in result.output
    stored = JsonTaskStore(tmp_path / "data").list_tasks("billing").value
    assert [t.title for t in stored] == ["Invoices", "Reminders"]
