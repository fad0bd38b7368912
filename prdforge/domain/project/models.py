"""Project domain models.

A project owns PRDs, personas and the tasks generated from them.
"""

import re
from datetime import UTC, datetime

from pydantic import BaseModel, Field


class Project(BaseModel):
    """A project that PRDs and tasks belong to."""

    id: str = Field(description="URL-safe slug, e.g., 'billing-service'")
    name: str = Field(description="Human-readable name")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


def slugify(name: str) -> str:
    """Convert a name to a URL-safe slug."""
    slug = name.lower()
    slug = re.sub(r"[^a-z0-9]+", "-", slug)
    slug = slug.strip("-")
    return slug or "project"
