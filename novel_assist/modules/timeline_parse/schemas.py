from __future__ import annotations

from typing import Literal

from jsonschema import Draft202012Validator
from pydantic import BaseModel, ConfigDict, Field, field_validator

EventCategory = Literal["character", "world", "plot", "other"]
FormatDetected = Literal["json", "markdown", "text", "unknown"]

EVENT_CATEGORIES: tuple[str, ...] = ("character", "world", "plot", "other")
DEFAULT_CATEGORY: EventCategory = "plot"


def _blank_to_none(value: object) -> object:
    if isinstance(value, str) and not value.strip():
        return None
    if isinstance(value, (list, tuple)) and not value:
        return None
    return value


class ParsedEvent(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    title: str = Field(min_length=1)
    description: str = ""
    date: str | None = None
    category: EventCategory = DEFAULT_CATEGORY
    chapter_title: str | None = Field(default=None, alias="chapterTitle")
    character_names: tuple[str, ...] | None = Field(default=None, alias="characterNames", min_length=1, max_length=5)

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("date", "chapter_title", "character_names", mode="before")
    @classmethod
    def absent_not_empty(cls, value: object) -> object:
        value = _blank_to_none(value)
        if isinstance(value, str):
            return value.strip()
        return value


class ParseResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success: bool
    events: tuple[ParsedEvent, ...] = ()
    format_detected: FormatDetected = Field(default="unknown", alias="formatDetected")
    warning: str | None = None
    error_kind: str | None = Field(default=None, alias="errorKind")


class ConsistencyReport(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    has_issues: bool = Field(default=False, alias="hasIssues")
    issues: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()


TIMELINE_EVENTS_SCHEMA_NAME = "timeline_events_v1"
TIMELINE_EVENTS_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["title", "description", "category"],
        "properties": {
            "title": {"type": "string", "minLength": 1},
            "description": {"type": "string"},
            "date": {"type": "string"},
            "category": {"type": "string", "enum": list(EVENT_CATEGORIES)},
            "chapterTitle": {"type": "string"},
            "characterNames": {
                "type": "array",
                "items": {"type": "string"},
                "minItems": 1,
                "maxItems": 5,
            },
        },
    },
}

CONSISTENCY_REPORT_SCHEMA_NAME = "consistency_report_v1"
CONSISTENCY_REPORT_SCHEMA = {
    "type": "object",
    "required": ["hasIssues", "issues", "suggestions"],
    "properties": {
        "hasIssues": {"type": "boolean"},
        "issues": {"type": "array", "items": {"type": "string"}},
        "suggestions": {"type": "array", "items": {"type": "string"}},
    },
}


def schema_drift(payload: object, schema: dict) -> str | None:
    """Return the first JSON Schema violation for ``payload``, or None if it conforms."""
    error = next(iter(Draft202012Validator(schema).iter_errors(payload)), None)
    if error is None:
        return None
    location = "/".join(str(part) for part in error.absolute_path)
    return f"{location or '<root>'}: {error.message}"
