"""Tests for the Markdown PRD parser."""

from prdforge.domain.prd import parse_prd_markdown
from prdforge.domain.shared.result import Err, Ok


def test_parses_title_and_sections():
    content = """# Checkout Revamp

Intro text.

## Objectives
- Faster checkout
* One-click payments
1. Saved addresses
2) Guest checkout

## Tech Stack
- React
- Go

## Constraints
- Ship by Q3
"""
    result = parse_prd_markdown("shop", content)

    assert isinstance(result, Ok)
    prd = result.value
    assert prd.title == "Checkout Revamp"
    assert prd.project_id == "shop"
    assert prd.objectives == [
        "Faster checkout",
        "One-click payments",
        "Saved addresses",
        "Guest checkout",
    ]
    assert prd.tech_stack == ["React", "Go"]
    assert prd.constraints == ["Ship by Q3"]
    assert prd.raw_content == content


def test_empty_content_is_an_error():
    result = parse_prd_markdown("shop", "   \n\n")
    assert result == Err("PRD content cannot be empty")


def test_missing_title_is_an_error():
    result = parse_prd_markdown("shop", "## Objectives\n- Something\n")
    assert result == Err("No title (# header) found in PRD")


def test_missing_sections_give_empty_lists():
    result = parse_prd_markdown("shop", "# Just a title\n\nSome prose.\n")

    assert isinstance(result, Ok)
    assert result.value.objectives == []
    assert result.value.tech_stack == []
    assert result.value.constraints == []


def test_section_stops_at_next_heading():
    content = "# T\n## Objectives\n- a\n## Other\n- not an objective\n"
    result = parse_prd_markdown("p", content)

    assert isinstance(result, Ok)
    assert result.value.objectives == ["a"]


def test_snippet_is_bounded(prd):
    assert len(prd.snippet(20)) <= 20
