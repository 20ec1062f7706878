from __future__ import annotations

import json
import logging
from collections.abc import Mapping

from novel_assist.config import settings
from novel_assist.modules.timeline_parse.extractors import clean_text, normalize_category, truncate_text
from novel_assist.modules.timeline_parse.schemas import EventCategory, ParsedEvent

logger = logging.getLogger(__name__)

_DESCRIPTION_KEYS = ("description", "desc", "summary", "detail", "details")
_CHAPTER_KEYS = ("chapterTitle", "chapter_title", "chapter")
_CHARACTER_KEYS = ("characterNames", "character_names", "characters")
_CATEGORY_KEYS = ("category", "type")


def stringify_field(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return clean_text(json.dumps(value, ensure_ascii=False))
    return clean_text(str(value))


def _first_present(item: Mapping, keys: tuple[str, ...]) -> object:
    for key in keys:
        value = item.get(key)
        if value is None or value == "":
            continue
        return value
    return None


def _string_list(value: object) -> list[str] | None:
    if not isinstance(value, list):
        return None
    if not all(isinstance(entry, str) for entry in value):
        logger.debug("dropping non-string character list: %r", value)
        return None
    names: list[str] = []
    for entry in value:
        name = clean_text(entry)
        if name:
            names.append(name)
    return names[: settings.character_names_max] or None


def make_event(
    title: str,
    description: str,
    *,
    category: EventCategory,
    date: str | None = None,
    chapter_title: str | None = None,
    character_names: list[str] | None = None,
) -> ParsedEvent | None:
    """Build a canonical event with capped text fields; None when the title is blank."""
    names = tuple(character_names[: settings.character_names_max]) if character_names else None
    clean_title = truncate_text(clean_text(title), settings.title_max_chars, ellipsis="")
    if not clean_title:
        return None
    return ParsedEvent(
        title=clean_title,
        description=truncate_text(clean_text(description), settings.description_max_chars),
        date=clean_text(date) or None,
        category=category,
        chapter_title=clean_text(chapter_title) or None,
        character_names=names,
    )


def normalize_event(item: object) -> ParsedEvent | None:
    """Coerce one loosely typed mapping (usually decoded JSON) into a ParsedEvent."""
    if not isinstance(item, Mapping):
        return None
    return make_event(
        stringify_field(item.get("title")),
        stringify_field(_first_present(item, _DESCRIPTION_KEYS)),
        category=normalize_category(_first_present(item, _CATEGORY_KEYS)),
        date=stringify_field(item.get("date")),
        chapter_title=stringify_field(_first_present(item, _CHAPTER_KEYS)),
        character_names=_string_list(_first_present(item, _CHARACTER_KEYS)),
    )
