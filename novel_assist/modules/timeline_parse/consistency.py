"""Consistency-check replies: JSON first, then a label-driven text scan."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from novel_assist.config import settings
from novel_assist.modules.timeline_parse.extractors import clean_text, strip_bold
from novel_assist.modules.timeline_parse.fragments import find_json_value, sanitize_raw_snippet
from novel_assist.modules.timeline_parse.normalizer import stringify_field
from novel_assist.modules.timeline_parse.schemas import (
    CONSISTENCY_REPORT_SCHEMA,
    CONSISTENCY_REPORT_SCHEMA_NAME,
    ConsistencyReport,
    schema_drift,
)

logger = logging.getLogger(__name__)

_ISSUES = "issues"
_SUGGESTIONS = "suggestions"

_SECTION_LABELS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (_ISSUES, ("問題点", "問題", "矛盾点", "矛盾", "issues found", "issues", "issue", "problems", "problem", "inconsistencies")),
    (
        _SUGGESTIONS,
        (
            "改善提案",
            "改善案",
            "改善点",
            "改善",
            "提案",
            "suggestions",
            "suggestion",
            "recommendations",
            "recommendation",
            "fixes",
        ),
    ),
)

# Tunable: explicit confirmations that nothing is wrong.
NO_ISSUE_PHRASES: tuple[str, ...] = (
    "問題なし",
    "問題ありません",
    "問題はありません",
    "問題は見つかり",
    "矛盾はありません",
    "矛盾は見つかり",
    "整合性が取れて",
    "no issues",
    "no problems",
    "no inconsistencies",
    "no contradictions",
    "is consistent",
    "are consistent",
    "looks consistent",
    "✅",
)
ISSUE_KEYWORDS: tuple[str, ...] = ("問題", "矛盾", "problem", "contradiction")
# Values that, written under an issues label, mean "nothing found".
NONE_VALUES = frozenset({"なし", "無し", "特になし", "特に無し", "ありません", "none", "nothing", "n/a"})

_FALSE_WORDS = frozenset({"", "false", "no", "0", "none", "null", "なし", "いいえ"})
_HEADING_RE = re.compile(r"^\s*#{1,6}\s")
_LINE_MARKER_RE = re.compile(r"^\s*(?:[-*・•]|\d+[.)）])\s*")


def _header_pattern() -> re.Pattern[str]:
    labels = sorted((label for _, group in _SECTION_LABELS for label in group), key=len, reverse=True)
    alternation = "|".join(re.escape(label) for label in labels)
    return re.compile(
        r"^\s*(?P<hashes>#{1,6})?\s*(?P<open>\*\*|【)?\s*"
        rf"(?P<label>{alternation})(?![a-z])"
        r"\s*(?:\*\*|】)?\s*(?P<colon>[：:])?\s*(?:\*\*)?\s*(?P<rest>.*?)\s*$",
        re.IGNORECASE,
    )


_HEADER_RE = _header_pattern()
_LABEL_KIND = {label.lower(): kind for kind, group in _SECTION_LABELS for label in group}


def _section_header(line: str) -> tuple[str, str] | None:
    match = _HEADER_RE.match(line)
    if not match:
        return None
    rest = match.group("rest")
    if not (match.group("hashes") or match.group("colon") or not rest):
        return None
    return _LABEL_KIND[match.group("label").lower()], rest


def _report_line(line: str) -> str | None:
    text = clean_text(strip_bold(_LINE_MARKER_RE.sub("", line)))
    if len(text) <= settings.min_report_line_chars:
        return None
    return text


def _is_none_value(text: str) -> bool:
    return clean_text(strip_bold(_LINE_MARKER_RE.sub("", text))).rstrip("。.").lower() in NONE_VALUES


def _coerce_flag(value: object, *, fallback: bool) -> bool:
    if value is None:
        return fallback
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_WORDS
    return bool(value)


def _string_items(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [stringify_field(item) for item in value]
    return [item for item in items if item]


def _report_from_json(raw: str) -> ConsistencyReport | None:
    payload = find_json_value(
        raw,
        "{",
        lambda value: isinstance(value, Mapping)
        and any(key in value for key in ("hasIssues", "has_issues", "issues", "suggestions")),
    )
    if payload is None:
        return None
    drift = schema_drift(payload, CONSISTENCY_REPORT_SCHEMA)
    if drift:
        logger.debug("consistency json drifts from %s: %s", CONSISTENCY_REPORT_SCHEMA_NAME, drift)
    issues = _string_items(payload.get("issues"))
    flag = payload.get("hasIssues", payload.get("has_issues"))
    return ConsistencyReport(
        has_issues=_coerce_flag(flag, fallback=bool(issues)),
        issues=issues,
        suggestions=_string_items(payload.get("suggestions")),
    )


def _report_from_text(raw: str) -> ConsistencyReport:
    sections: dict[str, list[str]] = {_ISSUES: [], _SUGGESTIONS: []}
    current: str | None = None
    none_confirmed = False
    for line in raw.splitlines():
        header = _section_header(line)
        if header is not None:
            current, rest = header
            if current == _ISSUES and _is_none_value(rest):
                none_confirmed = True
                continue
            inline = _report_line(rest)
            if inline:
                sections[current].append(inline)
            continue
        if _HEADING_RE.match(line):
            current = None
            continue
        if current is None:
            continue
        if current == _ISSUES and _is_none_value(line):
            none_confirmed = True
            continue
        item = _report_line(line)
        if item:
            sections[current].append(item)

    issues = sections[_ISSUES]
    lowered = raw.lower()
    confirmed_clean = not issues and (none_confirmed or any(phrase.lower() in lowered for phrase in NO_ISSUE_PHRASES))
    if confirmed_clean:
        has_issues = False
    else:
        has_issues = bool(issues) or any(keyword in lowered for keyword in ISSUE_KEYWORDS)
    return ConsistencyReport(has_issues=has_issues, issues=tuple(issues), suggestions=tuple(sections[_SUGGESTIONS]))


def parse_consistency_response(raw: object) -> ConsistencyReport:
    """Parse a consistency-check reply into a report. Never raises."""
    if not isinstance(raw, str) or not raw.strip():
        return ConsistencyReport()
    try:
        report = _report_from_json(raw)
    except Exception as exc:  # noqa: BLE001
        logger.debug("consistency json path failed: %s | raw=%s", exc, sanitize_raw_snippet(raw))
        report = None
    if report is not None:
        return report
    logger.debug("consistency reply has no json object, scanning labels")
    return _report_from_text(raw)
