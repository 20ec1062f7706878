"""General-purpose reply parsing for outline, cast and plot prompts.

Replies are decoded as JSON when they look like JSON, otherwise scanned for a
chapter outline, character sheets or a plot summary, and finally returned as
plain text.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping

from novel_assist.config import settings
from novel_assist.modules.reply_parse.schemas import (
    ChapterOutline,
    ChapterReply,
    CharacterReply,
    CharacterSketch,
    PlotOutline,
    PlotReply,
    ReplyFormat,
    ReplyParseResult,
    TextReply,
)
from novel_assist.modules.timeline_parse.extractors import clean_text, strip_bold
from novel_assist.modules.timeline_parse.fragments import fenced_blocks, find_json_value, sanitize_raw_snippet

logger = logging.getLogger(__name__)

_INVALID_CONTENT = "invalid reply content"
_UNKNOWN_ERROR = "an unknown error occurred"

_JSON_HINTS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\s*\{[\s\S]*\}\s*$"),
    re.compile(r"^\s*\[[\s\S]*\]\s*$"),
    re.compile(r'"[\w\s]+"\s*:\s*'),
)

_CHAPTER_HINT_RE = re.compile(r"第\s*\d+\s*章|\bchapter\s+\d+", re.IGNORECASE)
_CHARACTER_HINT_RE = re.compile(r"キャラクター|登場人物|\bcharacters?\b", re.IGNORECASE)
_PLOT_HINT_RE = re.compile(r"プロット|構成|\bplot\b", re.IGNORECASE)

_CHAPTER_HEADER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^第\s*(\d+)\s*章\s*[：:]?\s*(.+)$"),
    re.compile(r"^chapter\s+(\d+)\s*[：:.\-–]?\s*(.+)$", re.IGNORECASE),
    re.compile(r"^(\d+)\.\s*(.+)$"),
)
_CHARACTER_HEADER_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^【(.+?)】"),
    re.compile(r"^・\s*(.+?)\s*[（(]"),
)
_LINE_MARKER_RE = re.compile(r"^(?:[-*•]\s+|・\s*)")
_LIST_SPLIT_RE = re.compile(r"\s*[,、，]\s*")
_UNLABELED_SKIP_RE = re.compile(r"^(?:役割|ペース|role|pace)\s*[：:]", re.IGNORECASE)


def _field(*labels: str) -> re.Pattern[str]:
    alternation = "|".join(re.escape(label) for label in labels)
    return re.compile(rf"^(?:{alternation})\s*[：:]\s*(.*)$", re.IGNORECASE)


_CHAPTER_FIELDS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("summary", _field("概要", "あらすじ", "summary")),
    ("setting", _field("設定・場所", "舞台", "場所", "setting", "location")),
    ("mood", _field("雰囲気・ムード", "雰囲気", "ムード", "mood", "tone")),
    ("key_events", _field("重要な出来事", "主な出来事", "key events")),
    ("characters", _field("登場キャラクター", "登場人物", "characters")),
)
_CHARACTER_FIELDS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("role", _field("役割", "role")),
    ("appearance", _field("外見", "appearance")),
    ("personality", _field("性格", "personality")),
    ("background", _field("背景", "background")),
)
_PLOT_FIELDS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("theme", _field("テーマ", "theme")),
    ("setting", _field("舞台", "setting")),
    ("hook", _field("フック", "hook")),
    ("protagonist_goal", _field("主人公の目標", "protagonist goal", "goal")),
    ("main_obstacle", _field("主要な障害", "main obstacle", "obstacle")),
)
_LIST_FIELDS = frozenset({"key_events", "characters"})


def _first_match(patterns: tuple[re.Pattern[str], ...], line: str) -> re.Match[str] | None:
    for pattern in patterns:
        match = pattern.match(line)
        if match:
            return match
    return None


def _match_field(line: str, table: tuple[tuple[str, re.Pattern[str]], ...]) -> tuple[str, str] | None:
    for name, pattern in table:
        match = pattern.match(line)
        if match:
            return name, clean_text(match.group(1))
    return None


def _content_lines(content: str) -> list[str]:
    lines = []
    for raw_line in content.splitlines():
        line = strip_bold(_LINE_MARKER_RE.sub("", raw_line.strip()))
        if line:
            lines.append(line)
    return lines


def detect_reply_format(content: str) -> ReplyFormat:
    looks_like_json = any(pattern.search(content) for pattern in _JSON_HINTS)
    if looks_like_json and len(content) < settings.reply_json_max_chars:
        return "json"
    return "text"


def _decode_json(content: str) -> object:
    for block in [*fenced_blocks(content, language="json"), *fenced_blocks(content)]:
        try:
            return json.loads(block)
        except json.JSONDecodeError:
            continue
    found = find_json_value(content, "{[", lambda value: True)
    if found is not None:
        return found
    return json.loads(content)


def _parse_chapters(content: str) -> ChapterReply:
    chapters: list[ChapterOutline] = []
    current: dict | None = None
    for line in _content_lines(content):
        header = _first_match(_CHAPTER_HEADER_PATTERNS, line)
        if header:
            if current is not None:
                chapters.append(ChapterOutline(**current))
            number = int(header.group(1))
            current = {"id": f"chapter_{number}", "number": number, "title": clean_text(header.group(2))}
            continue
        if current is None:
            continue
        field = _match_field(line, _CHAPTER_FIELDS)
        if field:
            name, value = field
            current[name] = [item for item in _LIST_SPLIT_RE.split(value) if item] if name in _LIST_FIELDS else value
        elif not current.get("summary") and not _UNLABELED_SKIP_RE.match(line):
            current["summary"] = line
    if current is not None:
        chapters.append(ChapterOutline(**current))
    return ChapterReply(chapters=chapters, count=len(chapters))


def _parse_characters(content: str) -> CharacterReply:
    characters: list[CharacterSketch] = []
    current: dict | None = None
    for line in content.splitlines():
        line = line.strip()
        header = _first_match(_CHARACTER_HEADER_PATTERNS, line)
        if header:
            if current is not None:
                characters.append(CharacterSketch(**current))
            current = {"id": f"character_{len(characters) + 1}", "name": clean_text(header.group(1))}
            continue
        if current is None:
            continue
        field = _match_field(strip_bold(_LINE_MARKER_RE.sub("", line)), _CHARACTER_FIELDS)
        if field:
            current[field[0]] = field[1]
    if current is not None:
        characters.append(CharacterSketch(**current))
    return CharacterReply(characters=characters, count=len(characters))


def _parse_plot(content: str) -> PlotReply:
    values: dict[str, str] = {}
    for line in _content_lines(content):
        field = _match_field(line, _PLOT_FIELDS)
        if field and field[1]:
            values[field[0]] = field[1]
    return PlotReply(plot=PlotOutline(**values))


def _parse_text(content: str) -> ReplyParseResult:
    if _CHAPTER_HINT_RE.search(content):
        data: object = _parse_chapters(content)
    elif _CHARACTER_HINT_RE.search(content):
        data = _parse_characters(content)
    elif _PLOT_HINT_RE.search(content):
        data = _parse_plot(content)
    else:
        lines = [line for line in content.splitlines() if line.strip()]
        data = TextReply(content=content, lines=lines, char_count=len(content), line_count=len(lines))
    return ReplyParseResult(success=True, data=data, raw_content=content)


def _parse_json(content: str) -> ReplyParseResult:
    try:
        payload = _decode_json(content)
    except json.JSONDecodeError as exc:
        logger.debug("reply json decode failed, falling back to text: %s | raw=%s", exc, sanitize_raw_snippet(content))
        return _parse_text(content)
    return ReplyParseResult(success=True, data=payload, raw_content=content)


def parse_reply(content: object, expected_format: ReplyFormat = "auto") -> ReplyParseResult:
    """Decode a model reply as JSON or recognizable text. Never raises."""
    if not isinstance(content, str) or not content.strip():
        return ReplyParseResult(
            success=False,
            raw_content=content if isinstance(content, str) else "",
            error=_INVALID_CONTENT,
        )

    text = content.strip()
    if expected_format == "auto":
        expected_format = detect_reply_format(text)
    try:
        if expected_format == "json":
            return _parse_json(text)
        return _parse_text(text)
    except Exception as exc:  # noqa: BLE001
        logger.warning("reply parse error: %s | raw=%s", exc, sanitize_raw_snippet(text))
        return ReplyParseResult(success=False, raw_content=text, error=describe_error(exc, "parse error"))


def validate_reply(result: ReplyParseResult) -> bool:
    if not result.success or result.data is None:
        return False
    data = result.data
    if isinstance(data, ChapterReply):
        return bool(data.chapters)
    if isinstance(data, CharacterReply):
        return bool(data.characters)
    if isinstance(data, PlotReply):
        return not data.plot.is_empty()
    return True


def describe_error(error: object, context: str = "") -> str:
    if isinstance(error, str):
        return error
    prefix = f"{context}: " if context else ""
    if isinstance(error, BaseException):
        return f"{prefix}{error}"
    message = error.get("message") if isinstance(error, Mapping) else getattr(error, "message", None)
    if message:
        return f"{prefix}{message}"
    return f"{prefix}{_UNKNOWN_ERROR}"
