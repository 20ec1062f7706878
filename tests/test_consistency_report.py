from __future__ import annotations

import pytest

from novel_assist.modules.timeline_parse import ConsistencyReport, parse_consistency_response


def test_consistency_json_report() -> None:
    raw = (
        "チェック結果です。\n```json\n"
        '{"hasIssues": true, "issues": ["アリスの年齢が矛盾している"], "suggestions": ["年齢を統一する"]}\n'
        "```"
    )
    report = parse_consistency_response(raw)
    assert report.has_issues is True
    assert report.issues == ("アリスの年齢が矛盾している",)
    assert report.suggestions == ("年齢を統一する",)


def test_consistency_json_flag_fallbacks() -> None:
    inferred = parse_consistency_response('{"issues": ["Timeline gap in chapter 3"]}')
    assert inferred.has_issues is True

    clean = parse_consistency_response('{"hasIssues": "false", "issues": [], "suggestions": []}')
    assert clean.has_issues is False
    assert clean.issues == ()


def test_consistency_text_sections_with_headings() -> None:
    raw = """## 問題点
- 第2章でアリスの年齢が矛盾しています
- ボブの出身地が前後で異なります

## 改善提案
- 年齢設定を第1章に合わせて統一する
"""
    report = parse_consistency_response(raw)
    assert report.has_issues is True
    assert report.issues == ("第2章でアリスの年齢が矛盾しています", "ボブの出身地が前後で異なります")
    assert report.suggestions == ("年齢設定を第1章に合わせて統一する",)


def test_consistency_text_sections_with_bold_labels() -> None:
    raw = """**Issues:**
1. Alice is 16 in chapter 1 but 18 in chapter 2.
2. Bob dies twice.

**Suggestions:**
1. Keep Alice's age consistent.
"""
    report = parse_consistency_response(raw)
    assert report.has_issues is True
    assert report.issues == ("Alice is 16 in chapter 1 but 18 in chapter 2.", "Bob dies twice.")
    assert report.suggestions == ("Keep Alice's age consistent.",)


def test_consistency_inline_header_text_counts_as_item() -> None:
    report = parse_consistency_response("問題点: 第3章の日付が前後している")
    assert report.issues == ("第3章の日付が前後している",)
    assert report.has_issues is True


def test_consistency_other_headings_close_a_section() -> None:
    raw = "## Issues\n- The timeline skips a year.\n## Overall impression\n- The pacing is lovely throughout.\n"
    report = parse_consistency_response(raw)
    assert report.issues == ("The timeline skips a year.",)
    assert report.suggestions == ()


@pytest.mark.parametrize(
    "raw",
    [
        "整合性チェックの結果、問題は見つかりませんでした。",
        "The timeline looks consistent. No issues found.",
    ],
)
def test_consistency_no_issue_phrase_wins(raw: str) -> None:
    report = parse_consistency_response(raw)
    assert report.has_issues is False
    assert report.issues == ()


def test_consistency_keyword_marks_issues_without_sections() -> None:
    report = parse_consistency_response("There is a contradiction between chapter 2 and chapter 5.")
    assert report.has_issues is True
    assert report.issues == ()


def test_consistency_malformed_json_falls_back_to_text() -> None:
    raw = '{"hasIssues": true, "issues": [\n問題点：\n- アリスの年齢が章ごとに違う\n'
    report = parse_consistency_response(raw)
    assert report.has_issues is True
    assert report.issues == ("アリスの年齢が章ごとに違う",)


@pytest.mark.parametrize("raw", ["", "   ", None])
def test_consistency_blank_input(raw: object) -> None:
    assert parse_consistency_response(raw) == ConsistencyReport()


def test_consistency_report_serializes_with_aliases() -> None:
    report = ConsistencyReport(has_issues=True, issues=["a"], suggestions=[])
    assert report.model_dump(by_alias=True) == {"hasIssues": True, "issues": ("a",), "suggestions": ()}


@pytest.mark.parametrize(
    "raw",
    [
        "問題点：なし\n改善提案：なし",
        "## 問題点\n- 特になし\n## 改善提案\n- なし",
        "**Issues:** None.",
    ],
)
def test_consistency_issues_label_with_none_value(raw: str) -> None:
    report = parse_consistency_response(raw)
    assert report.has_issues is False
    assert report.issues == ()
    assert report.suggestions == ()
