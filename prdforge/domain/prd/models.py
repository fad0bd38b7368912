"""PRD domain models."""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field


class PRD(BaseModel):
    """A parsed Product Requirements Document.

    Immutable once loaded for a generation run. ``raw_content`` keeps the
    original Markdown so the decomposer can quote a snippet of it.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    project_id: str
    title: str
    objectives: list[str] = Field(default_factory=list)
    tech_stack: list[str] = Field(default_factory=list)
    constraints: list[str] = Field(default_factory=list)
    raw_content: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"frozen": True}

    def snippet(self, limit: int = 500) -> str:
        """Return at most ``limit`` characters of the raw PRD text."""
        text = self.raw_content.strip()
        if len(text) <= limit:
            return text
        return text[:limit]
