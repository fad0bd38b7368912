"""Project domain."""

from .models import Project, slugify

__all__ = ["Project", "slugify"]
