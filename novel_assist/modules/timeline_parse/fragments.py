from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterator

from novel_assist.modules.timeline_parse.errors import PARSE_ERROR_MALFORMED_FRAGMENT, TimelineParseError

_FENCED_BLOCK_RE = re.compile(r"```([a-zA-Z]*)[ \t]*\n?([\s\S]*?)```")
_DECODER = json.JSONDecoder()


def sanitize_raw_snippet(raw: object, max_len: int = 200) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, (dict, list)):
        try:
            text = json.dumps(raw, ensure_ascii=False)
        except Exception:  # noqa: BLE001
            text = str(raw)
    else:
        text = str(raw)
    text = " ".join(text.split())
    if not text:
        return None
    return text[:max_len]


def fenced_blocks(raw_text: str, *, language: str | None = None) -> list[str]:
    """Bodies of ``` fenced blocks, optionally only those tagged with ``language``."""
    blocks: list[str] = []
    for match in _FENCED_BLOCK_RE.finditer(raw_text or ""):
        tag = match.group(1).strip().lower()
        if language is not None and tag != language:
            continue
        body = match.group(2).strip()
        if body:
            blocks.append(body)
    return blocks


def iter_json_values(raw_text: str, openers: str) -> Iterator[object]:
    """Decode a JSON value at every position holding one of ``openers``, skipping spans that do not parse."""
    for index, char in enumerate(raw_text):
        if char not in openers:
            continue
        try:
            value, _ = _DECODER.raw_decode(raw_text, index)
        except json.JSONDecodeError:
            continue
        yield value


def find_json_value(raw_text: str, openers: str, accept: Callable[[object], bool]) -> object | None:
    for value in iter_json_values(raw_text, openers):
        if accept(value):
            return value
    return None


def load_json_fragment(fragment: str) -> object:
    try:
        return json.loads(fragment)
    except json.JSONDecodeError as exc:
        raise TimelineParseError(
            f"json fragment parse error: {exc}",
            error_kind=PARSE_ERROR_MALFORMED_FRAGMENT,
            raw_snippet=sanitize_raw_snippet(fragment),
        ) from exc
