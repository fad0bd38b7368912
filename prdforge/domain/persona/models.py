"""Persona domain models.

Personas are the named roles a generated task can be assigned to. They are
read-only input to assignee resolution.
"""

from uuid import uuid4

from pydantic import BaseModel, Field


class Persona(BaseModel):
    """A named role or agent eligible to be assigned tasks.

    At most one persona per project is flagged ``is_default``; it receives
    tasks the model left unassigned or assigned to an unknown name.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    project_id: str | None = None
    name: str
    role: str = ""
    description: str = ""
    is_default: bool = False


def default_persona(personas: list[Persona]) -> Persona | None:
    """Return the default persona, else the first one, else None."""
    for persona in personas:
        if persona.is_default:
            return persona
    return personas[0] if personas else None
