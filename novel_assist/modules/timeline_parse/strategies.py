"""Timeline parsing strategies.

Every strategy exposes ``attempt(text) -> ParseResult | None``. Failures stay
inside ``attempt``: a strategy that raises is logged and reported as "no match"
so the dispatcher can move on to the next one.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping

from novel_assist.config import settings
from novel_assist.modules.timeline_parse.errors import (
    PARSE_ERROR_MALFORMED_FRAGMENT,
    WARNING_MARKDOWN_FORMAT,
    WARNING_TEXT_FORMAT,
    TimelineParseError,
)
from novel_assist.modules.timeline_parse.extractors import (
    category_from_section_name,
    clean_text,
    extract_character_names,
    extract_date,
    extract_description,
    extract_labeled_character_names,
    infer_category,
    strip_bold,
    truncate_text,
)
from novel_assist.modules.timeline_parse.fragments import (
    fenced_blocks,
    find_json_value,
    load_json_fragment,
    sanitize_raw_snippet,
)
from novel_assist.modules.timeline_parse.normalizer import make_event, normalize_event, stringify_field
from novel_assist.modules.timeline_parse.schemas import (
    DEFAULT_CATEGORY,
    TIMELINE_EVENTS_SCHEMA,
    TIMELINE_EVENTS_SCHEMA_NAME,
    EventCategory,
    FormatDetected,
    ParsedEvent,
    ParseResult,
    schema_drift,
)

logger = logging.getLogger(__name__)


class ParseStrategy(ABC):
    name: str
    format_detected: FormatDetected
    warning: str | None = None

    def attempt(self, text: str) -> ParseResult | None:
        try:
            events = self.extract_events(text)
        except TimelineParseError as exc:
            logger.debug("%s strategy rejected input | kind=%s | raw=%s", self.name, exc.error_kind, exc.raw_snippet)
            return None
        except Exception as exc:  # noqa: BLE001
            logger.debug("%s strategy failed: %s | raw=%s", self.name, exc, sanitize_raw_snippet(text))
            return None
        if not events:
            return None
        return ParseResult(
            success=True,
            events=events,
            format_detected=self.format_detected,
            warning=self.warning,
        )

    @abstractmethod
    def extract_events(self, text: str) -> list[ParsedEvent]:
        pass


# --- JSON ---------------------------------------------------------------

_EVENT_LIST_KEYS = ("events", "timeline", "items")


def _is_titled(item: object) -> bool:
    return isinstance(item, Mapping) and bool(stringify_field(item.get("title")))


def _is_event_array(value: object) -> bool:
    # Untitled arrays (notes, metadata) never count as the event payload.
    return isinstance(value, list) and any(_is_titled(item) for item in value)


def _as_event_list(value: object) -> list | None:
    if isinstance(value, list):
        return value
    if isinstance(value, Mapping):
        for key in _EVENT_LIST_KEYS:
            if isinstance(value.get(key), list):
                return value[key]
        return [value]
    return None


class JsonStrategy(ParseStrategy):
    name = "json"
    format_detected = "json"

    def _locate_payload(self, text: str) -> list | None:
        for block in fenced_blocks(text, language="json"):
            try:
                payload = _as_event_list(load_json_fragment(block))
            except TimelineParseError as exc:
                logger.debug("fenced json block skipped | kind=%s | raw=%s", exc.error_kind, exc.raw_snippet)
                continue
            if payload:
                return payload

        array = find_json_value(text, "[", _is_event_array)
        if array is not None:
            return array
        obj = find_json_value(text, "{", lambda value: isinstance(value, Mapping))
        if obj is not None:
            return _as_event_list(obj)
        if "[" in text or "{" in text:
            raise TimelineParseError(
                "no decodable json event payload",
                error_kind=PARSE_ERROR_MALFORMED_FRAGMENT,
                raw_snippet=sanitize_raw_snippet(text),
            )
        return None

    def extract_events(self, text: str) -> list[ParsedEvent]:
        payload = self._locate_payload(text)
        if not payload:
            return []
        drift = schema_drift(payload, TIMELINE_EVENTS_SCHEMA)
        if drift:
            logger.debug("timeline json drifts from %s: %s", TIMELINE_EVENTS_SCHEMA_NAME, drift)

        events: list[ParsedEvent] = []
        for item in payload:
            event = normalize_event(item)
            if event is not None:
                events.append(event)
        return events


# --- vendor markdown ------------------------------------------------------

_VENDOR_SECTION_RE = re.compile(r"^[ \t]*####[ \t]*(?:【([^】\n]+)】|([^#\n][^\n]*?))[ \t]*$", re.MULTILINE)
_BOLD_ITEM_RE = re.compile(r"^([ \t]*)(?:\d+[.)）]|[*\-・•])[ \t]*\*\*([^*\n]+)\*\*([^\n]*)$", re.MULTILINE)
_EVENT_PREFIX_RE = re.compile(r"^(?:イベント|event)\s*\d+\s*[：:]\s*", re.IGNORECASE)
_TRAILING_PAREN_RE = re.compile(r"\s*[（(]([^（）()]+)[）)]\s*$")
_LEADING_PAREN_RE = re.compile(r"^\s*[（(]([^（）()]+)[）)]")
_LEADING_SEPARATOR_RE = re.compile(r"^\s*[:：\-–—]\s*")


def _split_vendor_sections(text: str) -> list[tuple[str, EventCategory]]:
    headings = list(_VENDOR_SECTION_RE.finditer(text))
    if not headings:
        return [(text, DEFAULT_CATEGORY)]

    sections: list[tuple[str, EventCategory]] = []
    preamble = text[: headings[0].start()]
    if preamble.strip():
        sections.append((preamble, DEFAULT_CATEGORY))
    for index, heading in enumerate(headings):
        end = headings[index + 1].start() if index + 1 < len(headings) else len(text)
        name = heading.group(1) or heading.group(2) or ""
        sections.append((text[heading.end() : end], category_from_section_name(name)))
    return sections


def _indent_width(indent: str) -> int:
    return len(indent.expandtabs(4))


class VendorMarkdownStrategy(ParseStrategy):
    """Heading-4 sections holding lists of ``**bold title**`` items with sub-bullet details."""

    name = "vendor_markdown"
    format_detected = "markdown"
    warning = WARNING_MARKDOWN_FORMAT

    def extract_events(self, text: str) -> list[ParsedEvent]:
        events: list[ParsedEvent] = []
        for section_text, category in _split_vendor_sections(text):
            events.extend(self._section_events(section_text, category))
        return events

    def _section_events(self, section_text: str, category: EventCategory) -> list[ParsedEvent]:
        items = list(_BOLD_ITEM_RE.finditer(section_text))
        if not items:
            return []
        # Bold items nested deeper than the outermost level are detail lines, not events.
        outer = min(_indent_width(item.group(1)) for item in items)
        boundaries = [item for item in items if _indent_width(item.group(1)) == outer]

        events: list[ParsedEvent] = []
        for index, item in enumerate(boundaries):
            end = boundaries[index + 1].start() if index + 1 < len(boundaries) else len(section_text)
            block = section_text[item.end() : end]
            event = self._build_event(item.group(2), item.group(3), block, category)
            if event is not None:
                events.append(event)
        return events

    def _build_event(self, raw_title: str, rest: str, block: str, category: EventCategory) -> ParsedEvent | None:
        if raw_title.rstrip().endswith((":", "：")) and rest.strip():
            # "**Label:** value" lines are fields, not event titles.
            return None
        title = _EVENT_PREFIX_RE.sub("", clean_text(raw_title))
        chapter_title = None
        chapter = _TRAILING_PAREN_RE.search(title)
        if chapter:
            chapter_title = chapter.group(1)
            title = title[: chapter.start()]
        else:
            chapter = _LEADING_PAREN_RE.match(rest)
            if chapter:
                chapter_title = chapter.group(1)
                rest = rest[chapter.end() :]
        title = clean_text(title).rstrip(":：").strip()

        description = extract_description(block)
        if not description:
            description = strip_bold(_LEADING_SEPARATOR_RE.sub("", rest))
        if len(title) <= 2 or len(description) <= settings.min_description_chars:
            return None

        span = f"{raw_title}{rest}\n{block}"
        return make_event(
            title,
            description,
            category=category,
            date=extract_date(span),
            chapter_title=chapter_title,
            character_names=extract_character_names(span),
        )


# --- generic markdown -----------------------------------------------------

_HEADING_RE = re.compile(r"^#{2,3}[ \t]+(.+?)[ \t]*#*[ \t]*$", re.MULTILINE)
_BULLET_MARKER_RE = re.compile(r"^(?:[-*•]\s+|・\s*|\d+[.)）]\s*)")


def _section_description(body: str) -> str:
    lines: list[str] = []
    for raw_line in body.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        line = strip_bold(_BULLET_MARKER_RE.sub("", line))
        if line:
            lines.append(line)
        if len(lines) >= settings.description_max_lines:
            break
    return truncate_text(clean_text(" ".join(lines)), settings.description_max_chars)


class MarkdownStrategy(ParseStrategy):
    name = "markdown"
    format_detected = "markdown"
    warning = WARNING_MARKDOWN_FORMAT

    def extract_events(self, text: str) -> list[ParsedEvent]:
        headings = list(_HEADING_RE.finditer(text))
        events: list[ParsedEvent] = []
        for index, heading in enumerate(headings):
            end = headings[index + 1].start() if index + 1 < len(headings) else len(text)
            body = text[heading.end() : end]
            title = strip_bold(heading.group(1))
            description = _section_description(body)
            if not title or not description:
                continue
            event = make_event(
                title,
                description,
                category=infer_category(title, description),
                date=extract_date(f"{title}\n{body}"),
                character_names=extract_labeled_character_names(body) or extract_character_names(body),
            )
            if event is not None:
                events.append(event)
        return events


# --- structured text ------------------------------------------------------

_NUMBERED_RE = re.compile(r"^[ \t]*\d+[.)）][ \t]*(.+?)[ \t]*$", re.MULTILINE)
_TITLE_LABEL_RE = re.compile(
    r"^[ \t]*(?:[-*・•][ \t]*)?(?:\*\*)?(?:タイトル|題名|イベント名|title|event)(?:\*\*)?[ \t]*[：:](?:\*\*)?[ \t]*(.+?)[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)
_DESCRIPTION_LABEL_RE = re.compile(
    r"^[ \t]*(?:[-*・•][ \t]*)?(?:\*\*)?(?:説明|概要|内容|description|summary|details?)(?:\*\*)?[ \t]*[：:](?:\*\*)?[ \t]*(.+?)[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)
_BULLET_RE = re.compile(r"^[ \t]*(?:[-*•][ \t]+|・[ \t]*)(.+?)[ \t]*$", re.MULTILINE)
_SEPARATOR_RE = re.compile(r"\s*[:：]\s*|\s+[-–—]\s+")


def _split_title_description(line: str) -> tuple[str, str]:
    parts = _SEPARATOR_RE.split(strip_bold(line), maxsplit=1)
    title = clean_text(parts[0]) or clean_text(line)
    description = clean_text(parts[1]) if len(parts) > 1 else ""
    return title, description or title


class StructuredTextStrategy(ParseStrategy):
    name = "structured_text"
    format_detected = "text"
    warning = WARNING_TEXT_FORMAT

    def extract_events(self, text: str) -> list[ParsedEvent]:
        for extract in (self._numbered_events, self._labeled_events, self._bullet_events):
            events = extract(text)
            if events:
                return events
        return []

    @staticmethod
    def _line_event(line: str) -> ParsedEvent | None:
        title, description = _split_title_description(line)
        if len(title) <= 2:
            return None
        return make_event(
            title,
            description,
            category=infer_category(title, description),
            date=extract_date(line),
            character_names=extract_character_names(line),
        )

    def _numbered_events(self, text: str) -> list[ParsedEvent]:
        events = [self._line_event(match.group(1)) for match in _NUMBERED_RE.finditer(text)]
        return [event for event in events if event is not None]

    def _labeled_events(self, text: str) -> list[ParsedEvent]:
        titles = [strip_bold(match.group(1)) for match in _TITLE_LABEL_RE.finditer(text)]
        descriptions = [strip_bold(match.group(1)) for match in _DESCRIPTION_LABEL_RE.finditer(text)]
        events: list[ParsedEvent] = []
        for index, title in enumerate(titles):
            if len(title) <= 2:
                continue
            description = descriptions[index] if index < len(descriptions) and descriptions[index] else title
            event = make_event(
                title,
                description,
                category=infer_category(title, description),
                date=extract_date(f"{title}\n{description}"),
            )
            if event is not None:
                events.append(event)
        return events

    def _bullet_events(self, text: str) -> list[ParsedEvent]:
        events: list[ParsedEvent] = []
        for match in _BULLET_RE.finditer(text):
            line = match.group(1)
            if len(line) <= settings.min_description_chars:
                continue
            event = self._line_event(line)
            if event is not None:
                events.append(event)
        return events


DEFAULT_STRATEGIES: tuple[ParseStrategy, ...] = (
    JsonStrategy(),
    VendorMarkdownStrategy(),
    MarkdownStrategy(),
    StructuredTextStrategy(),
)
