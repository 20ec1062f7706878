from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ReplyFormat = Literal["json", "text", "auto"]


class ChapterOutline(BaseModel):
    id: str
    number: int
    title: str
    summary: str = ""
    setting: str = ""
    mood: str = ""
    key_events: list[str] = Field(default_factory=list)
    characters: list[str] = Field(default_factory=list)


class CharacterSketch(BaseModel):
    id: str
    name: str
    role: str = ""
    appearance: str = ""
    personality: str = ""
    background: str = ""


class PlotOutline(BaseModel):
    theme: str | None = None
    setting: str | None = None
    hook: str | None = None
    protagonist_goal: str | None = None
    main_obstacle: str | None = None

    def is_empty(self) -> bool:
        return not any(self.model_dump().values())


class TextReply(BaseModel):
    type: Literal["text"] = "text"
    content: str
    lines: list[str] = Field(default_factory=list)
    char_count: int = 0
    line_count: int = 0


class ChapterReply(BaseModel):
    type: Literal["chapters"] = "chapters"
    chapters: list[ChapterOutline] = Field(default_factory=list)
    count: int = 0


class CharacterReply(BaseModel):
    type: Literal["characters"] = "characters"
    characters: list[CharacterSketch] = Field(default_factory=list)
    count: int = 0


class PlotReply(BaseModel):
    type: Literal["plot"] = "plot"
    plot: PlotOutline


class ReplyParseResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    data: Any = None
    raw_content: str = ""
    error: str | None = None
