"""PRD domain - requirements documents and their Markdown parser."""

from .models import PRD
from .parser import parse_prd_markdown

__all__ = ["PRD", "parse_prd_markdown"]
