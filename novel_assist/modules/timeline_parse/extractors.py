"""Stateless field extractors shared by every timeline parsing strategy.

Each heuristic is a declarative table of ``(pattern, outcome)`` pairs consumed
by a small lookup helper, so tables can be audited and tested on their own.
Extractors return ``None`` when nothing is found and never raise.
"""

from __future__ import annotations

import re

from novel_assist.config import settings
from novel_assist.modules.timeline_parse.schemas import DEFAULT_CATEGORY, EventCategory


def _keyword_pattern(*terms: str) -> re.Pattern[str]:
    # ASCII terms match at a word start ("meet" covers "meets"); CJK terms match anywhere.
    parts = [rf"\b{re.escape(term)}" if term.isascii() else re.escape(term) for term in terms]
    return re.compile("|".join(parts), re.IGNORECASE)


# infer_category priority: character > world > plot.
_EVENT_CATEGORY_TABLE: tuple[tuple[re.Pattern[str], EventCategory], ...] = (
    (
        _keyword_pattern(
            "出会い", "別れ", "成長", "覚醒", "決意", "対立", "和解", "関係", "キャラクター",
            "meet", "encounter", "farewell", "growth", "grows", "awaken", "resolve",
            "rivalry", "reconcil", "relationship", "betray", "friendship", "character",
        ),
        "character",
    ),
    (
        _keyword_pattern(
            "世界", "発見", "歴史", "秘密", "設定", "環境", "場所", "国", "王国", "伝説",
            "world", "discover", "history", "secret", "setting", "environment", "kingdom",
            "empire", "realm", "lore", "legend", "continent",
        ),
        "world",
    ),
    (
        _keyword_pattern(
            "開始", "終結", "戦い", "事件", "転換", "クライマックス", "決戦", "危機",
            "begin", "battle", "fight", "incident", "turning point", "climax", "conclusion",
            "showdown", "crisis",
        ),
        "plot",
    ),
)

# Section names in vendor markdown: plot > character > world.
_SECTION_CATEGORY_TABLE: tuple[tuple[re.Pattern[str], EventCategory], ...] = (
    (
        _keyword_pattern(
            "導入", "展開", "転換", "佳境", "クライマックス", "見せ場", "決戦", "危機", "葛藤",
            "introduction", "intro", "rising action", "turning point", "climax", "showdown",
            "crisis", "conflict", "resolution",
        ),
        "plot",
    ),
    (_keyword_pattern("キャラクター", "人物", "成長", "character", "growth", "protagonist", "cast"), "character"),
    (_keyword_pattern("世界", "設定", "背景", "world", "setting", "background", "lore"), "world"),
)

_CATEGORY_SYNONYM_TABLE: tuple[tuple[re.Pattern[str], EventCategory], ...] = (
    (re.compile(r"character|chara|キャラ|人物|登場", re.IGNORECASE), "character"),
    (re.compile(r"world|setting|lore|世界|設定", re.IGNORECASE), "world"),
    (re.compile(r"other|misc|その他", re.IGNORECASE), "other"),
    (re.compile(r"plot|story|event|プロット|出来事", re.IGNORECASE), "plot"),
)

# (pattern, group): the first pattern that matches wins.
_DATE_PATTERNS: tuple[tuple[re.Pattern[str], int], ...] = (
    (
        re.compile(
            r"(?<![a-z])(?:日付|時期|時間|date|time|when)(?:\*\*)?\s*[：:]\s*(.+?)\s*$",
            re.IGNORECASE | re.MULTILINE,
        ),
        1,
    ),
    (re.compile(r"（(第\d+(?:[〜~～\-－]\d+)?章[^）]*)）"), 1),
    (re.compile(r"\((chapters?\s+\d+(?:\s*[-–~]\s*\d+)?[^)]*)\)", re.IGNORECASE), 1),
    (re.compile(r"第\d+章"), 0),
    (re.compile(r"\bchapter\s+\d+\b", re.IGNORECASE), 0),
    (re.compile(r"序盤|中盤|終盤|前半|後半|冒頭|クライマックス|プロローグ|エピローグ"), 0),
    (re.compile(r"\b(?:prologue|epilogue|climax|finale)\b", re.IGNORECASE), 0),
    (re.compile(r"\b(?:early|mid|middle|late)[- ](?:story|act|chapters?|book)\b", re.IGNORECASE), 0),
    (re.compile(r"\d+(?:年|日|ヶ月|か月|週間)(?:目|後)?"), 0),
    (re.compile(r"\b(?:year|day|month|week)\s+\d+\b", re.IGNORECASE), 0),
    (re.compile(r"\b\d+\s+(?:years?|days?|months?|weeks?)\s+(?:later|after|before|ago)\b", re.IGNORECASE), 0),
)

_KATAKANA_RUN_RE = re.compile(r"[ァ-ヶー]+")
_NAME_STOPWORDS = frozenset(
    {
        "パターン",
        "プロット",
        "イベント",
        "タイトル",
        "カテゴリ",
        "カテゴリー",
        "キャラクター",
        "キャラ",
        "シーン",
        "ストーリー",
        "テーマ",
        "エピソード",
        "メイン",
        "サブ",
    }
)
_LABELED_NAMES_RE = re.compile(
    r"(?<![a-z])(?:登場人物|登場キャラクター|関連キャラクター|関連キャラ|characters?|cast)(?:\*\*)?\s*[：:]\s*(.+?)\s*$",
    re.IGNORECASE | re.MULTILINE,
)
_NAME_SPLIT_RE = re.compile(r"\s*[,、，;；/／]\s*")

_SUBLIST_RE = re.compile(r"^\s*(?:[*\-•]\s+|・\s*)(.+?)\s*$", re.MULTILINE)
_NUMBERED_LINE_RE = re.compile(r"^\d+[.)）]")
_BOLD_RE = re.compile(r"\*\*")


def clean_text(value: object) -> str:
    return " ".join(str(value or "").split()).strip()


def strip_bold(text: str) -> str:
    return _BOLD_RE.sub("", text).strip()


def truncate_text(text: str, limit: int, *, ellipsis: str = "...") -> str:
    if len(text) <= limit:
        return text
    return text[: max(0, limit - len(ellipsis))].rstrip() + ellipsis


def _lookup(table: tuple[tuple[re.Pattern[str], EventCategory], ...], text: str) -> EventCategory:
    for pattern, outcome in table:
        if pattern.search(text):
            return outcome
    return DEFAULT_CATEGORY


def infer_category(title: str, description: str) -> EventCategory:
    return _lookup(_EVENT_CATEGORY_TABLE, f"{title or ''} {description or ''}")


def category_from_section_name(section_name: str) -> EventCategory:
    return _lookup(_SECTION_CATEGORY_TABLE, section_name or "")


def normalize_category(value: object) -> EventCategory:
    """Map a loosely spelled category label onto the closed category set."""
    return _lookup(_CATEGORY_SYNONYM_TABLE, clean_text(value))


def extract_date(text: str) -> str | None:
    if not isinstance(text, str) or not text:
        return None
    for pattern, group in _DATE_PATTERNS:
        for match in pattern.finditer(text):
            value = clean_text(strip_bold(match.group(group)))
            if value:
                return value
    return None


def extract_character_names(text: str) -> list[str] | None:
    """Katakana name candidates (2-6 chars).

    Only katakana is recognized; names written in kanji or Latin script are
    not picked up. More than ``character_names_max`` candidates is treated as
    noise rather than a cast list.
    """
    if not isinstance(text, str) or not text:
        return None
    names: list[str] = []
    for run in _KATAKANA_RUN_RE.findall(text):
        if not settings.character_name_min_chars <= len(run) <= settings.character_name_max_chars:
            continue
        if not run.strip("ー") or run in _NAME_STOPWORDS or run in names:
            continue
        names.append(run)
    if not names or len(names) > settings.character_names_max:
        return None
    return names


def extract_labeled_character_names(text: str) -> list[str] | None:
    if not isinstance(text, str) or not text:
        return None
    match = _LABELED_NAMES_RE.search(text)
    if not match:
        return None
    names: list[str] = []
    for part in _NAME_SPLIT_RE.split(strip_bold(match.group(1))):
        name = clean_text(part)
        if name and name not in names:
            names.append(name)
    return names[: settings.character_names_max] or None


def extract_description(block: str) -> str:
    if not isinstance(block, str) or not block:
        return ""
    subitems = [strip_bold(match.group(1)) for match in _SUBLIST_RE.finditer(block)]
    subitems = [item for item in subitems if item]
    if subitems:
        return truncate_text(clean_text(" ".join(subitems)), settings.description_max_chars)

    lines: list[str] = []
    for raw_line in block.splitlines():
        line = strip_bold(raw_line)
        if len(line) <= settings.min_description_chars:
            continue
        if line.startswith("#") or _NUMBERED_LINE_RE.match(line):
            continue
        lines.append(line)
    return truncate_text(clean_text(" ".join(lines[: settings.description_max_lines])), settings.description_max_chars)
