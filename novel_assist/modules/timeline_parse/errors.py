from __future__ import annotations


class TimelineParseError(ValueError):
    """Raised inside a strategy when a candidate fragment cannot be used."""

    def __init__(self, message: str, *, error_kind: str, raw_snippet: str | None = None):
        super().__init__(message)
        self.error_kind = str(error_kind)
        self.raw_snippet = raw_snippet


PARSE_ERROR_EMPTY_INPUT = "EMPTY_INPUT"
PARSE_ERROR_MALFORMED_FRAGMENT = "MALFORMED_FRAGMENT"
PARSE_ERROR_NO_EVENTS_FOUND = "NO_EVENTS_FOUND"
PARSE_ERROR_PARTIAL_EXTRACTION = "PARTIAL_EXTRACTION"

WARNING_EMPTY_INPUT = "empty input"
WARNING_NO_EVENTS_FOUND = "could not parse"
WARNING_MARKDOWN_FORMAT = "parsed as markdown (JSON format recommended)"
WARNING_TEXT_FORMAT = "parsed as text (JSON format recommended)"
