"""Multi-step repair of malformed task JSON.

Remediation runs only after the extracted JSON failed to decode. Each step
is recorded in a human-readable log that is returned with the result, so a
failure can be diagnosed from the error message alone.

Steps:
    1. Strip wrapper phrases and code fences.
    2. Regex syntax fixes (trailing commas, split arrays, missing ``[``).
    3. Balance braces and brackets by count.
    4. Build parser diagnostics with a context window and caret.
    5. Ask the model to repair the JSON, then re-extract and validate.
"""

import json
import logging
import re
from dataclasses import dataclass

from prdforge.application.extraction import extract_json
from prdforge.domain.shared.result import Err, Ok, Result
from prdforge.infrastructure.ai.ollama import Completer
from prdforge.infrastructure.ai.prompts import build_json_repair_prompt

logger = logging.getLogger(__name__)

WRAPPER_PHRASES = (
    "Here is the JSON:",
    "Here's the JSON:",
    "Here is the fixed JSON:",
    "Here's the fixed JSON:",
    "Fixed JSON:",
    "Response:",
)
FENCE_MARKERS = ("```json", "```javascript", "```python", "```")

CONTEXT_RADIUS = 2
MAX_CONTEXT_WIDTH = 120
REPLY_PREVIEW_LIMIT = 200

_TRAILING_COMMA = re.compile(r",\s*([\]}])")
_SPLIT_ARRAYS = re.compile(r"\]\s*\n\s*\[")


@dataclass(frozen=True)
class JsonDiagnostics:
    """Where and why a JSON document failed to decode."""

    message: str
    line: int
    column: int
    context: str

    def render(self) -> str:
        return (
            f"Error: {self.message} at line {self.line}, column {self.column}\n"
            f"{self.context}"
        )


def describe_json_error(text: str, error: json.JSONDecodeError) -> JsonDiagnostics:
    """Build diagnostics for ``error`` raised while decoding ``text``.

    The context shows up to two lines either side of the failing line, each
    prefixed with its line number, and a caret under the failing column.
    Long lines are windowed around the column.
    """
    lines = text.splitlines() or [""]
    center = min(max(error.lineno - 1, 0), len(lines) - 1)
    first = max(0, center - CONTEXT_RADIUS)
    last = min(len(lines), center + CONTEXT_RADIUS + 1)

    rendered: list[str] = []
    for index in range(first, last):
        line = lines[index]
        offset = 0
        if len(line) > MAX_CONTEXT_WIDTH:
            if index == center:
                offset = max(0, error.colno - 1 - MAX_CONTEXT_WIDTH // 2)
            line = line[offset : offset + MAX_CONTEXT_WIDTH]
        prefix = f"{index + 1:>4} | "
        rendered.append(f"{prefix}{line}")
        if index == center:
            rendered.append(" " * (len(prefix) + max(error.colno - 1 - offset, 0)) + "^")

    return JsonDiagnostics(
        message=error.msg,
        line=error.lineno,
        column=error.colno,
        context="\n".join(rendered),
    )


def strip_wrappers(text: str) -> str:
    """Remove wrapper phrases and code fences around JSON."""
    cleaned = text.strip()
    for phrase in WRAPPER_PHRASES:
        cleaned = cleaned.replace(phrase, "")
    for marker in FENCE_MARKERS:
        cleaned = cleaned.replace(marker, "")
    return cleaned.strip()


def repair_syntax(text: str) -> tuple[str, list[str]]:
    """Apply regex syntax fixes.

    Returns:
        The repaired text and a note for each fix that changed something.
    """
    notes: list[str] = []
    fixed, count = _TRAILING_COMMA.subn(r"\1", text)
    if count:
        notes.append(f"Removed {count} trailing comma(s)")

    if fixed.startswith("["):
        fixed, count = _SPLIT_ARRAYS.subn(",", fixed)
        if count:
            notes.append(f"Merged {count + 1} newline-separated arrays")

    if not fixed.startswith("[") and "{" in fixed:
        fixed = "[" + fixed
        notes.append("Added missing opening bracket")

    return fixed, notes


def balance_delimiters(text: str) -> tuple[str, list[str]]:
    """Append missing closing braces and brackets, counted naively."""
    notes: list[str] = []
    missing_braces = text.count("{") - text.count("}")
    missing_brackets = text.count("[") - text.count("]")
    if missing_braces > 0:
        text += "}" * missing_braces
        notes.append(f"Added {missing_braces} closing brace(s)")
    if missing_brackets > 0:
        text += "]" * missing_brackets
        notes.append(f"Added {missing_brackets} closing bracket(s)")
    return text, notes


class JsonRemediator:
    """Repairs malformed task JSON, escalating to the model as a last resort.

    Args:
        completer: Non-streaming model client.
        model: Model asked to repair the JSON (the configured fallback model).
    """

    def __init__(self, completer: Completer, model: str) -> None:
        self._completer = completer
        self._model = model

    def remediate(self, text: str) -> Result[tuple[str, str], str]:
        """Repair ``text`` into decodable JSON.

        Returns:
            Ok((json_text, log)), or Err(log) with the full step log and the
            final diagnostics.
        """
        log: list[str] = ["Starting JSON remediation"]

        try:
            json.loads(text)
            log.append("✓ Input is already valid JSON")
            return Ok((text, "\n".join(log)))
        except json.JSONDecodeError:
            pass

        log.append("→ Step 1: Stripping wrapper text and code fences")
        cleaned = strip_wrappers(text)
        if cleaned != text.strip():
            log.append("  ✓ Removed wrapper text")

        log.append("→ Step 2: Applying syntax fixes")
        cleaned, notes = repair_syntax(cleaned)
        log.extend(f"  ✓ {note}" for note in notes)

        log.append("→ Step 3: Balancing braces and brackets")
        cleaned, notes = balance_delimiters(cleaned)
        log.extend(f"  ✓ {note}" for note in notes)

        try:
            json.loads(cleaned)
            log.append("✓ Local fixes produced valid JSON")
            logger.info("JSON remediated without model call")
            return Ok((cleaned, "\n".join(log)))
        except json.JSONDecodeError as e:
            log.append("→ Step 4: Building parser diagnostics")
            diagnostics = describe_json_error(cleaned, e)
            log.append(f"  ✗ {diagnostics.message} at line {diagnostics.line}, column {diagnostics.column}")

        log.append(f"→ Step 5: Asking {self._model} to repair the JSON")
        reply = self._completer.complete(
            self._model, build_json_repair_prompt(cleaned, diagnostics.render())
        )
        if isinstance(reply, Err):
            log.append(f"  ✗ LLM call failed: {reply.error}")
            return Err(self._failure(log, diagnostics))

        extracted = extract_json(reply.value)
        if isinstance(extracted, Err):
            log.append("  ✗ No JSON found in model reply")
            log.append(f"  Model reply (first {REPLY_PREVIEW_LIMIT} chars): {reply.value[:REPLY_PREVIEW_LIMIT]}")
            return Err(self._failure(log, diagnostics))

        candidate = extracted.value
        try:
            json.loads(candidate)
        except json.JSONDecodeError as e:
            final = describe_json_error(candidate, e)
            log.append("  ✗ Model output is still invalid JSON")
            log.append(f"  Remediated output (first {REPLY_PREVIEW_LIMIT} chars): {candidate[:REPLY_PREVIEW_LIMIT]}")
            return Err(self._failure(log, final))

        log.append("  ✓ Model produced valid JSON")
        logger.info(f"JSON remediated by {self._model}")
        return Ok((candidate, "\n".join(log)))

    @staticmethod
    def _failure(log: list[str], diagnostics: JsonDiagnostics) -> str:
        logger.warning("JSON remediation failed")
        return "\n".join(log) + "\n\nFinal diagnostics:\n" + diagnostics.render()
