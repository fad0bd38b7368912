"""Markdown PRD parser.

Expected layout:

    # Title

    ## Objectives
    - first objective

    ## Tech Stack
    * Python

    ## Constraints
    1. No network access at test time
"""

import re

from prdforge.domain.prd.models import PRD
from prdforge.domain.shared.result import Err, Ok, Result

OBJECTIVES_HEADER = "## Objectives"
TECH_STACK_HEADER = "## Tech Stack"
CONSTRAINTS_HEADER = "## Constraints"

# "1. item" or "12) item"
_NUMBERED_ITEM = re.compile(r"^\d{1,3}[.)]\s+(.*)$")


def parse_prd_markdown(project_id: str, content: str) -> Result[PRD, str]:
    """Parse Markdown text into a PRD.

    Args:
        project_id: Project that owns the PRD.
        content: Raw Markdown.

    Returns:
        Ok(PRD) on success, Err(str) when the content is empty or has no
        top-level ``# `` title.
    """
    if not content.strip():
        return Err("PRD content cannot be empty")

    lines = content.splitlines()
    title = _extract_title(lines)
    if title is None:
        return Err("No title (# header) found in PRD")

    return Ok(
        PRD(
            project_id=project_id,
            title=title,
            objectives=_extract_section(lines, OBJECTIVES_HEADER),
            tech_stack=_extract_section(lines, TECH_STACK_HEADER),
            constraints=_extract_section(lines, CONSTRAINTS_HEADER),
            raw_content=content,
        )
    )


def _extract_title(lines: list[str]) -> str | None:
    for line in lines:
        stripped = line.strip()
        if stripped.startswith("# ") and not stripped.startswith("##"):
            return stripped[2:].strip() or None
    return None


def _extract_section(lines: list[str], header: str) -> list[str]:
    items: list[str] = []
    in_section = False

    for line in lines:
        stripped = line.strip()
        if stripped.lower() == header.lower():
            in_section = True
            continue
        if in_section and stripped.startswith("#"):
            break
        if in_section:
            item = _extract_list_item(stripped)
            if item:
                items.append(item)

    return items


def _extract_list_item(line: str) -> str | None:
    if line.startswith(("- ", "* ")):
        return line[2:].strip()
    match = _NUMBERED_ITEM.match(line)
    if match:
        return match.group(1).strip()
    return None
