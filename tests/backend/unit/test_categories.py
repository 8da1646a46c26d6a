import json

import pytest

from scattergories.backend.categories import load_category_pool
from scattergories.backend.errors import ConfigurationError


def test_bundled_pool_has_twenty_four_categories_in_two_groups() -> None:
    pool = load_category_pool()

    assert len(pool.names) == 24
    assert len(set(pool.names)) == 24
    groups = [entry.group for entry in pool.entries]
    assert groups.count("tech") == 12
    assert groups.count("fun") == 12
    assert "Linux Commands" in pool.names


def test_example_answers_filter_by_letter_case_insensitively() -> None:
    pool = load_category_pool()

    assert pool.example_answers("Linux Commands", letter="p") == ["pwd", "ping", "ps", "passwd", "printenv", "pkill"]
    assert pool.example_answers("Programming Languages", letter="Q") == []
    assert "Python" in pool.example_answers("Programming Languages")
    assert pool.example_answers("Unknown") == []


def test_load_category_pool_skips_blank_and_duplicate_names(tmp_path) -> None:
    source = tmp_path / "pool.json"
    source.write_text(
        json.dumps(
            {
                "categories": [
                    {"name": "Fruits", "examples": ["Apple"]},
                    {"name": "Fruits", "examples": ["Apricot"]},
                    {"name": "  "},
                    {"name": "Rivers"},
                ]
            }
        ),
        encoding="utf-8",
    )

    pool = load_category_pool(source)

    assert pool.names == ["Fruits", "Rivers"]
    assert pool.example_answers("Fruits") == ["Apple"]
    assert pool.example_answers("Rivers") == []


def test_load_category_pool_reports_unreadable_file(tmp_path) -> None:
    with pytest.raises(ConfigurationError):
        load_category_pool(tmp_path / "missing.json")
