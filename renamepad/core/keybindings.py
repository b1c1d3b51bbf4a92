"""Keybinding models, defaults and normalization for editor commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from PySide6.QtGui import QKeySequence

KeybindingScope = str

RENAME_VARIABLE_ACTION = "action.rename_variable"


@dataclass(frozen=True, slots=True)
class KeybindingAction:
    scope: KeybindingScope
    action_id: str
    action_name: str
    default_sequence: tuple[str, ...]
    menu_path: str = ""


KEYBINDING_ACTIONS: tuple[KeybindingAction, ...] = (
    KeybindingAction(
        "general",
        RENAME_VARIABLE_ACTION,
        "Rename Variable",
        ("Ctrl+Alt+R",),
        menu_path="Tools/Rename Variable",
    ),
)

_ACTION_BY_SCOPE_ID: dict[tuple[KeybindingScope, str], KeybindingAction] = {
    (entry.scope, entry.action_id): entry for entry in KEYBINDING_ACTIONS
}


def default_keybindings() -> dict[str, dict[str, list[str]]]:
    out: dict[str, dict[str, list[str]]] = {"general": {}}
    for action in KEYBINDING_ACTIONS:
        out.setdefault(action.scope, {})[action.action_id] = list(action.default_sequence)
    return out


def action_definition(scope: KeybindingScope, action_id: str) -> KeybindingAction | None:
    return _ACTION_BY_SCOPE_ID.get((str(scope or "").strip().lower(), str(action_id or "").strip()))


def _split_sequence_tokens(text: str) -> list[str]:
    raw = str(text or "").strip()
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def _split_chord(text: str) -> tuple[list[str], str]:
    parts = [part.strip() for part in str(text or "").split("+") if part.strip()]
    mods: set[str] = set()
    key_token = ""
    for part in parts:
        low = part.lower()
        if low in {"ctrl", "control"}:
            mods.add("Ctrl")
        elif low in {"alt", "option"}:
            mods.add("Alt")
        elif low == "shift":
            mods.add("Shift")
        elif low in {"meta", "cmd", "command", "super", "win"}:
            mods.add("Meta")
        else:
            key_token = part
    return [name for name in ("Ctrl", "Alt", "Shift", "Meta") if name in mods], key_token


def canonicalize_chord_text(text: str) -> str:
    """Return ``Ctrl+Alt+Shift+Meta+Key`` ordering for one chord.

    Qt names the key (``f2`` becomes ``F2``); modifier order is fixed here so
    chords compare equal whatever order the user typed them in.
    """
    mods, key_token = _split_chord(text)
    if not key_token:
        return ""
    qt_key = QKeySequence(key_token).toString(QKeySequence.PortableText).strip()
    # Qt drops names it cannot parse, and a bare "," comes back as a sequence.
    if qt_key and "," not in qt_key and "+" not in qt_key:
        key_token = qt_key
    elif len(key_token) == 1 and key_token.isalpha():
        key_token = key_token.upper()
    return "+".join([*mods, key_token])


def normalize_sequence(value: Any) -> list[str]:
    tokens: list[str] = []
    if isinstance(value, str):
        tokens.extend(_split_sequence_tokens(value))
    elif isinstance(value, (list, tuple)):
        for item in value:
            if isinstance(item, str):
                tokens.extend(_split_sequence_tokens(item))
    normalized: list[str] = []
    for token in tokens:
        text = canonicalize_chord_text(token)
        if text:
            normalized.append(text)
    return normalized


def sequence_to_text(sequence: list[str] | tuple[str, ...]) -> str:
    return ", ".join(normalize_sequence(list(sequence)))


def normalize_keybindings(raw: Any) -> dict[str, dict[str, list[str]]]:
    merged = default_keybindings()
    if not isinstance(raw, Mapping):
        return merged

    for scope_key, scope_payload in raw.items():
        scope = str(scope_key or "").strip().lower()
        if not scope or not isinstance(scope_payload, Mapping):
            continue
        scope_map = merged.setdefault(scope, {})
        for action_key, value in scope_payload.items():
            action_id = str(action_key or "").strip()
            if not action_id:
                continue
            normalized = normalize_sequence(value)
            if normalized:
                scope_map[action_id] = normalized
    return merged


def get_action_sequence(
    keybindings: Mapping[str, Mapping[str, list[str]]] | None,
    *,
    scope: KeybindingScope,
    action_id: str,
) -> list[str]:
    normalized = normalize_keybindings(keybindings)
    scope_key = str(scope or "").strip().lower()
    action_key = str(action_id or "").strip()
    from_scope = normalized.get(scope_key, {})
    if action_key in from_scope:
        return normalize_sequence(from_scope.get(action_key))
    definition = action_definition(scope_key, action_key)
    if definition is not None:
        return list(definition.default_sequence)
    return []


def qkeysequence_from_sequence(sequence: list[str] | tuple[str, ...]) -> QKeySequence:
    return QKeySequence(sequence_to_text(list(sequence)))


__all__ = [
    "KeybindingScope",
    "KeybindingAction",
    "KEYBINDING_ACTIONS",
    "RENAME_VARIABLE_ACTION",
    "default_keybindings",
    "action_definition",
    "canonicalize_chord_text",
    "normalize_sequence",
    "sequence_to_text",
    "normalize_keybindings",
    "get_action_sequence",
    "qkeysequence_from_sequence",
]
