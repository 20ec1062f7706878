from __future__ import annotations

import pytest

from novel_assist.config import settings


@pytest.fixture(autouse=True)
def _reset_parse_limits() -> None:
    settings.title_max_chars = 100
    settings.description_max_chars = 500
    settings.description_max_lines = 3
    settings.min_description_chars = 5
    settings.character_names_max = 5
    settings.character_name_min_chars = 2
    settings.character_name_max_chars = 6
    settings.min_report_line_chars = 5
    settings.reply_json_max_chars = 10000
    yield
