from __future__ import annotations

import logging

import pytest

from novel_assist.modules.timeline_parse import parse_timeline_response
from novel_assist.modules.timeline_parse.errors import PARSE_ERROR_EMPTY_INPUT, PARSE_ERROR_NO_EVENTS_FOUND
from novel_assist.modules.timeline_parse.schemas import EVENT_CATEGORIES, ParsedEvent
from novel_assist.modules.timeline_parse.strategies import ParseStrategy, StructuredTextStrategy


class _ExplodingStrategy(ParseStrategy):
    name = "exploding"
    format_detected = "json"

    def extract_events(self, text: str) -> list[ParsedEvent]:
        raise RuntimeError("boom")


@pytest.mark.parametrize("raw", ["", "   \n\t", None, 42])
def test_parse_timeline_response_blank_input(raw: object) -> None:
    result = parse_timeline_response(raw)
    assert result.success is False
    assert result.events == ()
    assert result.format_detected == "unknown"
    assert result.warning == "empty input"
    assert result.error_kind == PARSE_ERROR_EMPTY_INPUT


def test_parse_timeline_response_json_array() -> None:
    raw = '[{"title": "Departure", "description": "Alice leaves"}, {"title": "Return", "description": "Alice comes home"}]'
    result = parse_timeline_response(raw)
    assert result.success is True
    assert result.format_detected == "json"
    assert result.warning is None
    assert [event.title for event in result.events] == ["Departure", "Return"]


def test_parse_timeline_response_prefers_json_over_markdown() -> None:
    raw = '## Heading\nSome text here.\n```json\n[{"title": "Storm", "description": "A storm hits"}]\n```'
    result = parse_timeline_response(raw)
    assert result.format_detected == "json"
    assert [event.title for event in result.events] == ["Storm"]


def test_parse_timeline_response_two_level_two_headings() -> None:
    raw = """## Alice meets Bob
The two travelers meet on the road and become friends.

## The battle at the pass
The armies clash at the mountain pass through the night.
"""
    result = parse_timeline_response(raw)
    assert result.success is True
    assert len(result.events) == 2
    assert [event.category for event in result.events] == ["character", "plot"]


def test_parse_timeline_response_level_three_headings_are_markdown() -> None:
    raw = """### Prologue
A quiet village wakes under the snow.

### The secret archive
Scholars uncover a forbidden history of the realm.
"""
    result = parse_timeline_response(raw)
    assert result.success is True
    assert result.format_detected == "markdown"
    assert result.warning
    assert result.events[0].date == "Prologue"
    assert result.events[1].category == "world"


def test_parse_timeline_response_structured_text() -> None:
    result = parse_timeline_response("1. Departure: Alice leaves the village\n2. Return: Alice comes home\n")
    assert result.success is True
    assert result.format_detected == "text"
    assert result.warning == "parsed as text (JSON format recommended)"


@pytest.mark.parametrize(
    "raw",
    [
        "Just some prose without any structure.",
        "[not json at all",
        "{{{{[[[[",
        "```json\n{broken\n```",
    ],
)
def test_parse_timeline_response_unparseable(raw: str) -> None:
    result = parse_timeline_response(raw)
    assert result.success is False
    assert result.events == ()
    assert result.format_detected == "unknown"
    assert result.warning == "could not parse"
    assert result.error_kind == PARSE_ERROR_NO_EVENTS_FOUND


def test_parse_timeline_response_skips_failing_strategy() -> None:
    raw = "- The village burns: raiders attack at dawn\n"
    result = parse_timeline_response(raw, strategies=(_ExplodingStrategy(), StructuredTextStrategy()))
    assert result.success is True
    assert result.format_detected == "text"
    assert result.events[0].title == "The village burns"


def test_parse_timeline_response_logs_selected_strategy(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="novel_assist.modules.timeline_parse.service"):
        parse_timeline_response('[{"title": "Storm", "description": "A storm hits"}]')
    assert "strategy=json" in caplog.text


@pytest.mark.parametrize(
    "raw",
    [
        '[{"title": "' + "T" * 140 + '", "description": "' + "d" * 700 + '", "category": "weird", '
        '"characterNames": ["A", "B", "C", "D", "E", "F"]}]',
        "#### 【導入】\n1. **旅立ち（第1章）**\n   - アリスが故郷の村を出発する\n",
        "## Alice meets Bob\nThe two travelers meet on the road.\n",
        "- The village burns: raiders attack at dawn\n",
    ],
)
def test_parsed_events_respect_field_invariants(raw: str) -> None:
    result = parse_timeline_response(raw)
    assert result.success is True
    for event in result.events:
        assert 0 < len(event.title) <= 100
        assert len(event.description) <= 500
        assert event.category in EVENT_CATEGORIES
        assert event.character_names is None or 1 <= len(event.character_names) <= 5
        assert event.date is None or event.date
        assert event.chapter_title is None or event.chapter_title


def test_parse_timeline_response_keeps_events_after_metadata_arrays() -> None:
    raw = 'Notes: [{"kind": "meta"}]\n[{"title": "Storm", "description": "A storm hits"}]'
    result = parse_timeline_response(raw)
    assert result.success is True
    assert result.format_detected == "json"
    assert [event.title for event in result.events] == ["Storm"]
