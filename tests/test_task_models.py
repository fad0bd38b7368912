"""Tests for task domain helpers."""

import pytest
from pydantic import ValidationError

from prdforge.domain.task import Task, TaskStatus, clamp_complexity, normalize_priority


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("HIGH", "high"),
        (" low ", "low"),
        ("critical", "high"),
        ("p1", "high"),
        ("minor", "low"),
        ("whenever", "medium"),
        (None, "medium"),
    ],
)
def test_normalize_priority(raw, expected):
    assert normalize_priority(raw) == expected


def test_clamp_complexity():
    assert clamp_complexity(0) == 1
    assert clamp_complexity(7) == 7
    assert clamp_complexity(42) == 10


def test_complexity_out_of_range_is_rejected():
    with pytest.raises(ValidationError):
        Task(title="x", complexity=11)


def test_with_subtasks_marks_parent_decomposed():
    parent = Task(title="Build billing", complexity=8)

    updated = parent.with_subtasks(["a", "b"])

    assert updated.subtask_ids == ["a", "b"]
    assert updated.status == TaskStatus.DECOMPOSED
    assert updated.updated_at >= parent.updated_at
    assert parent.subtask_ids == []


def test_is_subtask():
    assert Task(title="child", parent_task_id="p").is_subtask()
    assert not Task(title="top").is_subtask()
