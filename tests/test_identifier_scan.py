"""Tests for the caret identifier scanner and offset helpers."""

import re

import pytest

from renamepad.analysis.types import Identifier
from renamepad.widgets.code_editor.helpers import (
    codepoint_index_from_utf16_units,
    identifier_pattern,
    is_identifier_char,
    scan_identifier,
    utf16_units_for_prefix,
)

LINE = "let fooBar = 1;"


class TestScanIdentifier:
    """Boundary behaviour around a caret."""

    def test_line_start(self):
        assert scan_identifier(LINE, 0) == Identifier(row=0, start_column=0, text="let")

    @pytest.mark.parametrize("column", [4, 7, 10])
    def test_start_middle_and_end_of_name(self, column):
        ident = scan_identifier(LINE, column, row=3)
        assert ident == Identifier(row=3, start_column=4, text="fooBar")

    def test_caret_right_after_name_before_space(self):
        assert scan_identifier(LINE, 3).text == "let"

    def test_no_identifier_between_punctuation(self):
        assert scan_identifier(LINE, 12) is None

    def test_empty_line(self):
        assert scan_identifier("", 0) is None

    def test_column_beyond_line_is_clamped(self):
        ident = scan_identifier("value", 99)
        assert ident.text == "value"
        assert ident.start_column == 0

    def test_negative_column_is_clamped(self):
        assert scan_identifier("value", -5).text == "value"

    def test_dollar_and_underscore_are_identifier_chars(self):
        ident = scan_identifier("x = $el_2 + 1", 6)
        assert ident.text == "$el_2"
        assert ident.start_column == 4
        assert ident.end_column == 9

    def test_unicode_letters(self):
        ident = scan_identifier("const größe = 2", 8)
        assert ident.text == "größe"


def test_is_identifier_char():
    assert is_identifier_char("a")
    assert is_identifier_char("9")
    assert is_identifier_char("_")
    assert is_identifier_char("$")
    assert not is_identifier_char(" ")
    assert not is_identifier_char(".")
    assert not is_identifier_char("")


def test_identifier_pattern_respects_dollar_boundaries():
    regex = re.compile(identifier_pattern("foo"))
    hits = [m.start() for m in regex.finditer("foo $foo foo_ foo.bar afoo foo")]
    assert hits == [0, 14, 27]


def test_utf16_round_trip_for_astral_characters():
    text = "a\U0001F600b"
    assert utf16_units_for_prefix(text, 2) == 3
    assert codepoint_index_from_utf16_units(text, 3) == 2
    assert codepoint_index_from_utf16_units(text, 2) == 1
