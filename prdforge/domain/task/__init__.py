"""Task domain - work items generated from a PRD.

Key Types:
    Task - A single actionable work item
    TaskStatus - Task lifecycle enumeration
    Priority - "high" | "medium" | "low"

Functions:
    clamp_complexity - Keep complexity scores inside 1..10
    normalize_priority - Map free-form priority text to a Priority
"""

from .models import (
    MAX_COMPLEXITY,
    MIN_COMPLEXITY,
    PRIORITIES,
    Priority,
    Task,
    TaskStatus,
    clamp_complexity,
    normalize_priority,
)

__all__ = [
    "Task",
    "TaskStatus",
    "Priority",
    "PRIORITIES",
    "MIN_COMPLEXITY",
    "MAX_COMPLEXITY",
    "clamp_complexity",
    "normalize_priority",
]
