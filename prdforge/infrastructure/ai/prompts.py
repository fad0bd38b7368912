"""Prompt templates for task generation, remediation and decomposition."""

from prdforge.domain.persona.models import Persona
from prdforge.domain.prd.models import PRD
from prdforge.domain.task.models import Task

_FIELDS_WITHOUT_PERSONAS = """Each task object must have exactly these 4 fields:
- "title": string (concise task title, max 100 chars)
- "description": string (what to build, why it matters, and how to know it is done)
- "priority": string (must be exactly "high", "medium", or "low")
- "estimated_complexity": number (integer 1-10, where 10 is most complex)

EXAMPLE RESPONSE (copy this format exactly):
[{"title":"Set up project skeleton","description":"Create the package layout and dependency manifest so later tasks have a place to live. Done when the test runner starts.","priority":"high","estimated_complexity":3}]
"""

_FIELDS_WITH_PERSONAS = """Each task object must have exactly these 5 fields:
- "title": string (concise task title, max 100 chars)
- "description": string (what to build, why it matters, and how to know it is done)
- "priority": string (must be exactly "high", "medium", or "low")
- "estimated_complexity": number (integer 1-10, where 10 is most complex)
- "assignee": string (persona name from the list above, or "unassigned")

EXAMPLE RESPONSE (copy this format exactly):
[{"title":"Set up project skeleton","description":"Create the package layout and dependency manifest so later tasks have a place to live. Done when the test runner starts.","priority":"high","estimated_complexity":3,"assignee":"%s"}]
"""

_DO_NOT = """DO NOT:
- Add markdown code blocks
- Add explanations before or after the JSON
- Return anything except the JSON array

START YOUR RESPONSE WITH [ AND END WITH ]"""


def persona_roster(personas: list[Persona]) -> str:
    """Render personas as a bulleted roster."""
    lines = []
    for persona in personas:
        line = f'- "{persona.name}": {persona.role}'
        if persona.description:
            line += f" - {persona.description}"
        lines.append(line)
    return "\n".join(lines)


def build_system_prompt(personas: list[Persona]) -> str:
    prompt = (
        "You are a project management assistant. "
        "Break down Product Requirements Documents into actionable tasks.\n\n"
        "CRITICAL: You MUST respond with ONLY a valid JSON array. No other text.\n\n"
    )
    if personas:
        prompt += "AVAILABLE TEAM MEMBERS (assign tasks to these personas):\n"
        prompt += persona_roster(personas) + "\n\n"
        prompt += _FIELDS_WITH_PERSONAS % personas[0].name
    else:
        prompt += _FIELDS_WITHOUT_PERSONAS
    return prompt + "\n" + _DO_NOT


def build_generation_prompt(prd: PRD, personas: list[Persona]) -> str:
    """Build the complete task-generation prompt for a PRD."""
    parts = [build_system_prompt(personas), "", f"# PRD: {prd.title}", ""]

    for header, items in (
        ("## Objectives", prd.objectives),
        ("## Tech Stack", prd.tech_stack),
        ("## Constraints", prd.constraints),
    ):
        if items:
            parts.append(header)
            parts.extend(f"- {item}" for item in items)
            parts.append("")

    field_count = 5 if personas else 4
    parts.append("---")
    parts.append("")
    parts.append("GENERATE TASKS: Create a comprehensive task list for this PRD.")
    parts.append(
        f"RESPONSE FORMAT: Start with [ and end with ]. "
        f"Include all {field_count} required fields per task."
    )
    parts.append("YOUR RESPONSE:")
    return "\n".join(parts)


def build_json_repair_prompt(cleaned: str, diagnostics: str) -> str:
    return f"""Fix this malformed JSON and return ONLY a valid JSON array.
Each object must have: title, description, priority, estimated_complexity.

CRITICAL RULES:
- Return ONLY the JSON array, no explanations
- Start with [ and end with ]
- Use double quotes for strings
- No trailing commas
- All braces and brackets must be balanced

Parser diagnostics:
{diagnostics}

Malformed input:
{cleaned}

Fixed JSON:"""


def build_assignee_prompt(assignee: str, personas: list[Persona]) -> str:
    roster = ", ".join(f'"{p.name}" ({p.role})' for p in personas)
    return f"""A task was assigned to '{assignee}' but that name doesn't match any team member.
Available team members: {roster}

CRITICAL: Respond with ONLY the exact name of the best matching persona from the list above.
If no good match exists, respond with the word 'unassigned'.
DO NOT add explanations or extra text.
YOUR RESPONSE:"""


def build_decomposition_prompt(task: Task, prd: PRD, personas: list[Persona], snippet_limit: int) -> str:
    """Build the prompt asking for 3-5 sub-tasks of a complex task."""
    lines = [
        "You are a project management assistant specialized in breaking down complex tasks.",
        "",
        f"**Parent Task**: {task.title}",
    ]
    if task.description:
        lines.append(f"**Description**: {task.description}")
    if task.complexity is not None:
        lines.append(f"**Complexity Score**: {task.complexity} / 10")
    lines += [
        "",
        f"**Source PRD ({prd.title})**:",
        prd.snippet(snippet_limit),
        "",
    ]
    if personas:
        lines += ["**Team Members**:", persona_roster(personas), ""]

    lines += [
        "**Decomposition Guidelines**:",
        "1. Generate 3-5 subtasks that collectively achieve the parent task's objective",
        "2. Each subtask should be specific, actionable, and independently verifiable",
        "3. Order subtasks by dependency (earlier tasks are prerequisites for later ones)",
        "4. Each subtask must be simpler than the parent task",
        "",
        "Respond with ONLY a JSON array of subtask objects, each with:",
        '- "title": string',
        '- "description": string',
        '- "priority": "high" | "medium" | "low"',
        f'- "estimated_complexity": integer 1-{task.complexity or 10}',
        '- "agent_persona": string (REQUIRED: team member name best suited for the subtask)',
        "",
        "START YOUR RESPONSE WITH [ AND END WITH ]",
    ]
    return "\n".join(lines)
