from __future__ import annotations

import pytest

from novel_assist.config import settings
from novel_assist.modules.timeline_parse.extractors import (
    category_from_section_name,
    extract_character_names,
    extract_date,
    extract_description,
    extract_labeled_character_names,
    infer_category,
    normalize_category,
    truncate_text,
)


def test_infer_category_prefers_character_over_world_and_plot() -> None:
    assert infer_category("主人公とヒロインの出会い", "") == "character"
    assert infer_category("出会いの世界", "決戦の前夜") == "character"
    assert infer_category("Battle in the kingdom", "") == "world"
    assert infer_category("Discovery of the ancient ruins", "") == "world"
    assert infer_category("The final battle", "armies clash at dawn") == "plot"


def test_infer_category_defaults_to_plot_and_is_deterministic() -> None:
    assert infer_category("Quiet morning", "nothing happens") == "plot"
    first = [infer_category("Alice meets Bob", "they form a friendship") for _ in range(5)]
    assert first == ["character"] * 5


def test_category_from_section_name_uses_section_priority() -> None:
    assert category_from_section_name("導入") == "plot"
    assert category_from_section_name("キャラクター成長") == "character"
    assert category_from_section_name("世界観") == "world"
    assert category_from_section_name("Miscellany") == "plot"
    assert category_from_section_name("") == "plot"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Character", "character"),
        ("world-building", "world"),
        ("misc", "other"),
        ("story", "plot"),
        ("unknown-thing", "plot"),
        (None, "plot"),
    ],
)
def test_normalize_category_maps_synonyms(raw: object, expected: str) -> None:
    assert normalize_category(raw) == expected


def test_extract_date_reads_labeled_values() -> None:
    assert extract_date("日付：第3章の冒頭") == "第3章の冒頭"
    assert extract_date("**Date:** Year 3 of the war") == "Year 3 of the war"


def test_extract_date_reads_chapter_and_relative_markers() -> None:
    assert extract_date("旅立ち（第2章〜第3章）") == "第2章〜第3章"
    assert extract_date("The hero leaves in chapter 4.") == "chapter 4"
    assert extract_date("物語の終盤で仲間が裏切る") == "終盤"
    assert extract_date("5 years later, the city falls") == "5 years later"


def test_extract_date_returns_none_without_marker() -> None:
    assert extract_date("") is None
    assert extract_date("no temporal marker here") is None
    assert extract_date("Update: none") is None
    assert extract_date(None) is None  # type: ignore[arg-type]


def test_extract_character_names_collects_katakana_runs() -> None:
    assert extract_character_names("アリスとボブが出会う") == ["アリス", "ボブ"]
    assert extract_character_names("キャラクターのアリスとアリス") == ["アリス"]


def test_extract_character_names_rejects_noise() -> None:
    assert extract_character_names("no katakana at all") is None
    assert extract_character_names("アレクサンドリアンが来た") is None
    assert extract_character_names("アリス、ボブ、カール、ダン、エマ、フランク") is None


def test_extract_character_names_honors_configured_limit() -> None:
    settings.character_names_max = 1
    assert extract_character_names("アリスとボブ") is None
    assert extract_character_names("アリスだけ") == ["アリス"]


def test_extract_labeled_character_names() -> None:
    assert extract_labeled_character_names("登場人物：アリス、ボブ") == ["アリス", "ボブ"]
    assert extract_labeled_character_names("**Characters:** Alice, Bob, Carol") == ["Alice", "Bob", "Carol"]
    many = "Cast: A1, B2, C3, D4, E5, F6, G7"
    assert extract_labeled_character_names(many) == ["A1", "B2", "C3", "D4", "E5"]
    assert extract_labeled_character_names("no label here") is None


def test_extract_description_prefers_sub_bullets() -> None:
    block = "\n  - Alice leaves home\n  - She meets Bob\n"
    assert extract_description(block) == "Alice leaves home She meets Bob"


def test_extract_description_falls_back_to_first_lines() -> None:
    block = "First line of text\nSecond line here\nThird line here\nFourth line here"
    assert extract_description(block) == "First line of text Second line here Third line here"
    assert extract_description("") == ""


def test_extract_description_truncates_with_ellipsis() -> None:
    block = "- " + "x" * 600
    description = extract_description(block)
    assert len(description) == 500
    assert description.endswith("...")


def test_truncate_text() -> None:
    assert truncate_text("abcdef", 10) == "abcdef"
    assert truncate_text("abcdef", 4) == "a..."
    assert truncate_text("abcdef", 4, ellipsis="") == "abcd"
