"""Resolving a model-supplied assignee to a known persona.

Matching runs in tiers, cheapest first:

    1. exact name match
    2. case-insensitive name match
    3. name substring match in either direction
    4. ask the model to pick from the roster, then fall back to the
       default persona
"""

import logging

from prdforge.application.ports import Emit, emit_to
from prdforge.domain.generation.events import ValidationInfo
from prdforge.domain.persona.models import Persona, default_persona
from prdforge.domain.shared.result import Err
from prdforge.infrastructure.ai.ollama import Completer
from prdforge.infrastructure.ai.prompts import build_assignee_prompt

logger = logging.getLogger(__name__)

UNASSIGNED = "unassigned"
_REPLY_STRIP = " \t\n\"'`."


def match_persona(name: str, personas: list[Persona]) -> Persona | None:
    """Match ``name`` against the roster without calling the model."""
    for persona in personas:
        if persona.name == name:
            return persona

    lowered = name.lower()
    for persona in personas:
        if persona.name.lower() == lowered:
            return persona

    if not lowered.strip():
        return None

    for persona in personas:
        candidate = persona.name.strip().lower()
        if candidate and (candidate in lowered or lowered in candidate):
            return persona

    return None


class AssigneeResolver:
    """Maps free-text assignees onto persona names.

    Args:
        completer: Non-streaming model client used for the last tier.
        model: Model to ask (the configured fallback model).
    """

    def __init__(self, completer: Completer, model: str) -> None:
        self._completer = completer
        self._model = model

    def resolve(
        self,
        task_title: str,
        name: str | None,
        personas: list[Persona],
        emit: Emit | None = None,
    ) -> str | None:
        """Resolve ``name`` to a persona name.

        Missing or "unassigned" names go straight to the default persona.
        Only the model tier emits updates.

        Returns:
            A persona name, or None when the roster is empty.
        """
        if not personas:
            return None

        if name is None or not name.strip() or name.strip().lower() == UNASSIGNED:
            fallback = default_persona(personas)
            return fallback.name if fallback else None

        name = name.strip()
        matched = match_persona(name, personas)
        if matched is not None:
            return matched.name

        emit_to(emit, ValidationInfo(task_title=task_title, message="Remediating assignee..."))
        reply = self._completer.complete(self._model, build_assignee_prompt(name, personas))
        if isinstance(reply, Err):
            logger.warning(f"Assignee remediation for '{name}' failed: {reply.error}")
            emit_to(
                emit,
                ValidationInfo(task_title=task_title, message=f"LLM remediation failed: {reply.error}"),
            )
        else:
            suggestion = reply.value.strip(_REPLY_STRIP).lower()
            for persona in personas:
                if persona.name.lower() == suggestion:
                    emit_to(
                        emit,
                        ValidationInfo(
                            task_title=task_title,
                            message=f"Remediation successful: '{name}' → '{persona.name}'",
                        ),
                    )
                    return persona.name
            logger.info(f"Model suggested '{reply.value.strip()}' for '{name}', not in roster")

        fallback = default_persona(personas)
        if fallback is None:
            return None
        emit_to(
            emit,
            ValidationInfo(
                task_title=task_title,
                message=f"Using fallback persona: '{name}' → '{fallback.name}'",
            ),
        )
        return fallback.name
