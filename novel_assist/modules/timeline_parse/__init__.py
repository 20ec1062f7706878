from novel_assist.modules.timeline_parse.consistency import parse_consistency_response
from novel_assist.modules.timeline_parse.errors import TimelineParseError
from novel_assist.modules.timeline_parse.extractors import (
    extract_character_names,
    extract_date,
    extract_description,
    infer_category,
    normalize_category,
)
from novel_assist.modules.timeline_parse.normalizer import normalize_event
from novel_assist.modules.timeline_parse.schemas import ConsistencyReport, ParsedEvent, ParseResult
from novel_assist.modules.timeline_parse.service import parse_timeline_response
from novel_assist.modules.timeline_parse.strategies import (
    DEFAULT_STRATEGIES,
    JsonStrategy,
    MarkdownStrategy,
    ParseStrategy,
    StructuredTextStrategy,
    VendorMarkdownStrategy,
)

__all__ = [
    "ConsistencyReport",
    "DEFAULT_STRATEGIES",
    "JsonStrategy",
    "MarkdownStrategy",
    "ParseResult",
    "ParseStrategy",
    "ParsedEvent",
    "StructuredTextStrategy",
    "TimelineParseError",
    "VendorMarkdownStrategy",
    "extract_character_names",
    "extract_date",
    "extract_description",
    "infer_category",
    "normalize_category",
    "normalize_event",
    "parse_consistency_response",
    "parse_timeline_response",
]
