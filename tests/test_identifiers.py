"""
Tests for SQL identifier sanitization.
"""

import pytest

from shared.database.identifiers import DEFAULT_IDENTIFIER, sanitize_identifier


@pytest.mark.parametrize("raw, expected", [
    ("books", "books"),
    ("Order_Lines2", "Order_Lines2"),
    ("my-table; DROP TABLE x", "mytableDROPTABLEx"),
    ('a"b', "ab"),
    ("café", "caf"),
])
def test_strips_characters_outside_identifier_set(raw, expected):
    assert sanitize_identifier(raw) == expected


@pytest.mark.parametrize("raw", ["", None, "!!!", "   ", "--;"])
def test_empty_result_maps_to_default(raw):
    assert sanitize_identifier(raw) == DEFAULT_IDENTIFIER


def test_is_idempotent():
    once = sanitize_identifier("a b-c")
    assert sanitize_identifier(once) == once
