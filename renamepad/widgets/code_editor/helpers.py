from __future__ import annotations

import re

from renamepad.analysis.types import Identifier

_IDENTIFIER_EXTRA_CHARS = frozenset("_$")

_EDITOR_DEFAULT_COLORS: dict[str, str] = {
    "occurrence_main": "#3A4F3B",
    "occurrence_other": "#2F3D30",
    "rename_main": "#264F78",
    "rename_other": "#3A3D41",
}


def is_identifier_char(ch: str) -> bool:
    return bool(ch) and (ch.isalnum() or ch in _IDENTIFIER_EXTRA_CHARS)


def scan_identifier(line: str, column: int, row: int = 0) -> Identifier | None:
    """Return the identifier run containing or touching the caret at ``column``.

    The caret sits between characters: column 0 is before the first one and
    ``len(line)`` is after the last one. Characters are collected forward from
    the caret and backward from the character just before it, so a caret at
    either edge of an identifier still captures the whole name. ``None`` means
    the caret has non-identifier characters (or line bounds) on both sides.
    """
    text = str(line or "")
    col = max(0, min(int(column), len(text)))

    end = col
    while end < len(text) and is_identifier_char(text[end]):
        end += 1
    start = col
    while start > 0 and is_identifier_char(text[start - 1]):
        start -= 1

    if end <= start:
        return None
    return Identifier(row=int(row), start_column=start, text=text[start:end])


def identifier_pattern(token: str) -> str:
    # \b treats "$" as a boundary, so spell the boundary out.
    return rf"(?<![\w$]){re.escape(token)}(?![\w$])"


# QTextDocument positions count UTF-16 code units; Python columns count code points.
def utf16_code_units(text: str) -> int:
    if not text:
        return 0
    return len(text.encode("utf-16-le")) // 2


def utf16_units_for_prefix(text: str, codepoint_index: int) -> int:
    if not text:
        return 0
    idx = max(0, min(len(text), int(codepoint_index)))
    return utf16_code_units(text[:idx])


def codepoint_index_from_utf16_units(text: str, utf16_units: int) -> int:
    if not text:
        return 0
    remaining = max(0, int(utf16_units))
    idx = 0
    while idx < len(text):
        units = 1 if ord(text[idx]) <= 0xFFFF else 2
        if remaining < units:
            break
        remaining -= units
        idx += 1
    return idx


__all__ = [
    "is_identifier_char",
    "scan_identifier",
    "identifier_pattern",
    "utf16_code_units",
    "utf16_units_for_prefix",
    "codepoint_index_from_utf16_units",
]
