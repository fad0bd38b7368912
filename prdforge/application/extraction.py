"""Extracting and parsing task JSON from free-form model output.

Models rarely answer with a bare JSON array. This module finds the array
in whatever came back (fenced blocks, prose around it, a lone object),
hands undecodable text to the remediator, and reads each task object with
ordered alias lists so the model's exact field vocabulary does not matter.
"""

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from prdforge.application.ports import Emit, emit_to
from prdforge.domain.generation.events import ValidationInfo
from prdforge.domain.persona.models import Persona
from prdforge.domain.shared.result import Err, Ok, Result
from prdforge.domain.task.models import Task, clamp_complexity, normalize_priority

if TYPE_CHECKING:
    from prdforge.application.assignee import AssigneeResolver
    from prdforge.application.remediation import JsonRemediator

logger = logging.getLogger(__name__)

# =============================================================================
# Field aliases (first match wins)
# =============================================================================

TITLE_KEYS = ("title", "task", "name", "summary", "action", "item")
DESCRIPTION_KEYS = ("description", "desc", "details", "detail", "content")
PRIORITY_KEYS = ("priority", "prio", "importance", "level")
COMPLEXITY_KEYS = ("estimated_complexity", "complexity", "difficulty", "effort", "score")
ASSIGNEE_KEYS = ("agent_persona", "assignee", "assigned_to", "owner", "responsible")

DEFAULT_COMPLEXITY = 5
PREVIEW_LIMIT = 500
JSON_PARSING_TITLE = "JSON Parsing"

FENCE_TAGS = ("json", "javascript", "python", "")

# =============================================================================
# Description quality heuristics
# =============================================================================

MIN_DESCRIPTION_LENGTH = 100
MIN_QUALITY_SCORE = 2

IMPLEMENTATION_KEYWORDS = (
    "implement", "create", "build", "add", "configure", "set up", "write",
    "develop", "design", "integrate", "refactor", "deploy", "define", "migrate",
)
REASONING_KEYWORDS = (
    "because", "so that", "in order to", "to ensure", "to allow", "to enable",
    "this will", "required for", "needed for", "why",
)
COMPLETION_KEYWORDS = (
    "done when", "complete when", "acceptance", "verify", "verified", "tests pass",
    "should", "must", "criteria", "until",
)

_SENTENCE_END = re.compile(r"[.!?]+(?:\s+|$)")


def extract_string(obj: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    """Return the first non-blank string (or number, stringified) among ``keys``."""
    for key in keys:
        value = obj.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, str) and value.strip():
            return value.strip()
        if isinstance(value, (int, float)):
            return str(value)
    return None


def extract_number(obj: dict[str, Any], keys: tuple[str, ...]) -> int | None:
    """Return the first non-negative integer among ``keys``.

    Integral floats and numeric strings count; anything else is skipped.
    """
    for key in keys:
        value = obj.get(key)
        if isinstance(value, bool):
            continue
        if isinstance(value, int) and value >= 0:
            return value
        if isinstance(value, float) and value.is_integer() and value >= 0:
            return int(value)
        if isinstance(value, str) and value.strip().isdigit():
            return int(value.strip())
    return None


def extract_json(response: str) -> Result[str, str]:
    """Locate a JSON array in model text.

    Tries, in order: a fenced code block, the span from the first ``[`` to
    the last ``]``, the whole text as an array, and finally a single object
    (whole text or embedded) wrapped into a one-element array.

    Args:
        response: Raw model output.

    Returns:
        Ok(str) with the candidate JSON text, or Err(str) with a preview of
        the input when no bracketed structure exists.
    """
    trimmed = response.strip()

    if "```" in trimmed:
        for tag in FENCE_TAGS:
            marker = f"```{tag}\n"
            start = trimmed.find(marker)
            if start == -1:
                continue
            body_start = start + len(marker)
            end = trimmed.find("```", body_start)
            if end != -1:
                return Ok(trimmed[body_start:end].strip())

    start = trimmed.find("[")
    end = trimmed.rfind("]")
    if start != -1 and end > start:
        return Ok(trimmed[start : end + 1])

    if trimmed.startswith("[") and trimmed.endswith("]"):
        return Ok(trimmed)

    start = trimmed.find("{")
    end = trimmed.rfind("}")
    if start != -1 and end > start:
        return Ok(f"[{trimmed[start : end + 1]}]")

    if len(response) > PREVIEW_LIMIT:
        preview = (
            f"{response[:PREVIEW_LIMIT]}... "
            f"(response truncated, total length: {len(response)} chars)"
        )
    else:
        preview = response
    return Err(
        "Could not extract JSON array from response. "
        f"Expected JSON array but got:\n\n{preview}"
    )


def assess_description(description: str) -> str | None:
    """Check a task description against the quality heuristics.

    Returns:
        A warning message, or None when the description looks complete.
    """
    text = description.strip()
    if len(text) < MIN_DESCRIPTION_LENGTH:
        return (
            f"Description is short ({len(text)} chars, want {MIN_DESCRIPTION_LENGTH}+); "
            "add what to build, why, and how to verify it"
        )

    lowered = text.lower()
    sentences = [s for s in _SENTENCE_END.split(text) if s.strip()]
    signals = [
        any(k in lowered for k in IMPLEMENTATION_KEYWORDS),
        any(k in lowered for k in REASONING_KEYWORDS),
        any(k in lowered for k in COMPLETION_KEYWORDS),
        len(sentences) >= 2,
    ]
    score = sum(signals)
    if score < MIN_QUALITY_SCORE:
        return f"Description lacks detail (quality score {score}/4)"
    return None


def parse_tasks(
    response: str,
    *,
    prd_id: str | None,
    personas: list[Persona],
    resolver: "AssigneeResolver",
    remediator: "JsonRemediator",
    emit: Emit | None = None,
    default_complexity: int = DEFAULT_COMPLEXITY,
) -> Result[list[Task], str]:
    """Turn model output into tasks.

    Args:
        response: Raw model output.
        prd_id: Source PRD id stamped on every task.
        personas: Roster used for assignee resolution.
        resolver: Assignee resolver.
        remediator: Used only when the extracted JSON does not decode.
        emit: Optional callback for ValidationInfo updates.
        default_complexity: Complexity for tasks that do not state one.

    Returns:
        Ok(list[Task]) in array order, or Err(str). Remediation failures
        carry the original parse error and the full remediation log.
    """
    extracted = extract_json(response)
    if isinstance(extracted, Err):
        return extracted
    cleaned = extracted.value

    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.info(f"Initial JSON parse failed ({e}), remediating")
        emit_to(emit, ValidationInfo(task_title=JSON_PARSING_TITLE, message="Remediating JSON..."))

        remediated = remediator.remediate(cleaned)
        if isinstance(remediated, Err):
            return Err(
                "JSON remediation failed after all attempts.\n\n"
                f"Original parse error: {e}\n\n{remediated.error}"
            )

        fixed, log = remediated.value
        emit_to(
            emit,
            ValidationInfo(
                task_title=JSON_PARSING_TITLE,
                message="Remediation succeeded! Parsing remediated JSON...",
            ),
        )
        try:
            parsed = json.loads(fixed)
        except json.JSONDecodeError as e2:
            return Err(
                f"Failed to parse remediated JSON: {e2}\n\n"
                f"Remediation log:\n{log}\n\n"
                f"Remediated JSON (first 300 chars):\n{fixed[:300]}"
            )

    if not isinstance(parsed, list):
        return Err("Expected JSON array of tasks")

    tasks: list[Task] = []
    for idx, value in enumerate(parsed):
        if not isinstance(value, dict):
            logger.warning(f"Skipping non-object at index {idx}")
            continue

        title = extract_string(value, TITLE_KEYS)
        if title is None:
            return Err(f"Missing 'title' field in task at index {idx}")

        description = extract_string(value, DESCRIPTION_KEYS) or ""
        warning = assess_description(description)
        if warning:
            emit_to(emit, ValidationInfo(task_title=title, message=warning))

        complexity = extract_number(value, COMPLEXITY_KEYS)
        assignee = resolver.resolve(
            title,
            extract_string(value, ASSIGNEE_KEYS),
            personas,
            emit=emit,
        )

        tasks.append(
            Task(
                title=title,
                description=description,
                assignee=assignee,
                priority=normalize_priority(extract_string(value, PRIORITY_KEYS)),
                complexity=clamp_complexity(
                    complexity if complexity is not None else default_complexity
                ),
                source_prd_id=prd_id,
            )
        )

    return Ok(tasks)
