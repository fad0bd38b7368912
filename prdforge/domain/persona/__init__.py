"""Persona domain."""

from .models import Persona, default_persona

__all__ = ["Persona", "default_persona"]
