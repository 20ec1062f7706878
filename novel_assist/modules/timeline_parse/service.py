from __future__ import annotations

import logging
from collections.abc import Sequence

from novel_assist.modules.timeline_parse.errors import (
    PARSE_ERROR_EMPTY_INPUT,
    PARSE_ERROR_NO_EVENTS_FOUND,
    PARSE_ERROR_PARTIAL_EXTRACTION,
    WARNING_EMPTY_INPUT,
    WARNING_NO_EVENTS_FOUND,
)
from novel_assist.modules.timeline_parse.schemas import ParseResult
from novel_assist.modules.timeline_parse.strategies import DEFAULT_STRATEGIES, ParseStrategy

logger = logging.getLogger(__name__)


def _count_partial(result: ParseResult) -> int:
    return sum(
        1
        for event in result.events
        if event.date is None or event.chapter_title is None or event.character_names is None
    )


def parse_timeline_response(raw: object, *, strategies: Sequence[ParseStrategy] = DEFAULT_STRATEGIES) -> ParseResult:
    """Turn a model reply into timeline events, trying each strategy in order.

    Never raises: blank input and total failure come back as ``success=False``
    with a warning meant to be shown to the user verbatim.
    """
    if not isinstance(raw, str) or not raw.strip():
        return ParseResult(
            success=False,
            format_detected="unknown",
            warning=WARNING_EMPTY_INPUT,
            error_kind=PARSE_ERROR_EMPTY_INPUT,
        )

    for strategy in strategies:
        result = strategy.attempt(raw)
        if result is None or not result.events:
            continue
        logger.info("timeline reply parsed | strategy=%s | events=%d", strategy.name, len(result.events))
        partial = _count_partial(result)
        if partial:
            logger.debug("timeline events with absent optional fields | kind=%s | count=%d", PARSE_ERROR_PARTIAL_EXTRACTION, partial)
        return result

    logger.info("timeline reply not parsed | strategies=%d | chars=%d", len(strategies), len(raw))
    return ParseResult(
        success=False,
        format_detected="unknown",
        warning=WARNING_NO_EVENTS_FOUND,
        error_kind=PARSE_ERROR_NO_EVENTS_FOUND,
    )
