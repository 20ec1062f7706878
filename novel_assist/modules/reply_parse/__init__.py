from novel_assist.modules.reply_parse.schemas import (
    ChapterOutline,
    ChapterReply,
    CharacterReply,
    CharacterSketch,
    PlotOutline,
    PlotReply,
    ReplyParseResult,
    TextReply,
)
from novel_assist.modules.reply_parse.service import describe_error, detect_reply_format, parse_reply, validate_reply

__all__ = [
    "ChapterOutline",
    "ChapterReply",
    "CharacterReply",
    "CharacterSketch",
    "PlotOutline",
    "PlotReply",
    "ReplyParseResult",
    "TextReply",
    "describe_error",
    "detect_reply_format",
    "parse_reply",
    "validate_reply",
]
