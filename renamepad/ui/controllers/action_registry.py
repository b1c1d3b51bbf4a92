"""Central QAction/QMenu construction for the main window."""

from __future__ import annotations

from typing import Any, Mapping

from PySide6.QtGui import QAction
from PySide6.QtWidgets import QMenuBar

from renamepad.core.keybindings import (
    RENAME_VARIABLE_ACTION,
    get_action_sequence,
    normalize_keybindings,
    qkeysequence_from_sequence,
)

from .rename_refactor_controller import RenameRefactorController


class ActionRegistry:
    @staticmethod
    def _register_shortcut_action(
        window: Any,
        action: QAction,
        *,
        scope: str,
        action_ids: tuple[str, ...],
    ) -> None:
        specs = getattr(window, "_shortcut_action_specs", None)
        if not isinstance(specs, list):
            specs = []
            window._shortcut_action_specs = specs
        specs.append(
            {
                "action": action,
                "scope": str(scope or "general"),
                "action_ids": tuple(str(item or "").strip() for item in action_ids if str(item or "").strip()),
            }
        )

    @staticmethod
    def apply_keybindings(window: Any, keybindings: Mapping[str, Any] | None) -> None:
        specs = getattr(window, "_shortcut_action_specs", [])
        if not isinstance(specs, list) or not specs:
            return
        normalized = normalize_keybindings(keybindings)

        for entry in specs:
            action = entry.get("action")
            if not isinstance(action, QAction):
                continue
            scope = str(entry.get("scope") or "general")
            action_ids = tuple(entry.get("action_ids") or ())

            seen_texts: set[str] = set()
            sequences = []
            for action_id in action_ids:
                seq = get_action_sequence(normalized, scope=scope, action_id=action_id)
                qseq = qkeysequence_from_sequence(seq)
                text = qseq.toString()
                if not text or text in seen_texts:
                    continue
                seen_texts.add(text)
                sequences.append(qseq)

            if not sequences:
                action.setShortcut("")
                continue
            if len(sequences) == 1:
                action.setShortcut(sequences[0])
                continue
            action.setShortcuts(sequences)

    @staticmethod
    def create_actions(
        window: Any,
        controller: RenameRefactorController,
        keybindings: Mapping[str, Any] | None = None,
    ) -> dict[str, QAction]:
        window._shortcut_action_specs = []

        menubar = window.menuBar() if hasattr(window, "menuBar") else QMenuBar(window)
        menubar.setNativeMenuBar(False)
        actions: dict[str, QAction] = {}

        open_file = getattr(window, "open_file_dialog", None)
        save_file = getattr(window, "save_current_file", None)
        if callable(open_file) or callable(save_file):
            file_menu = menubar.addMenu("&File")
            if callable(open_file):
                act_open = QAction("Open File...", window)
                act_open.triggered.connect(open_file)
                file_menu.addAction(act_open)
                actions["action.open_file"] = act_open
            if callable(save_file):
                act_save = QAction("Save", window)
                act_save.triggered.connect(save_file)
                file_menu.addAction(act_save)
                actions["action.save"] = act_save
            file_menu.addSeparator()
            act_exit = QAction("Exit", window)
            act_exit.triggered.connect(window.close)
            file_menu.addAction(act_exit)
            actions["action.exit"] = act_exit

        tools_menu = menubar.addMenu("&Tools")
        tools_menu.addSeparator()

        act_rename = QAction("Rename Variable", window)
        act_rename.setEnabled(controller.is_rename_available())
        act_rename.triggered.connect(lambda _checked=False: controller.rename_variable())
        controller.availabilityChanged.connect(
            lambda _flags: act_rename.setEnabled(controller.is_rename_available())
        )
        ActionRegistry._register_shortcut_action(
            window,
            act_rename,
            scope="general",
            action_ids=(RENAME_VARIABLE_ACTION,),
        )
        tools_menu.addAction(act_rename)
        window._act_rename_variable = act_rename
        window.tools_menu = tools_menu
        actions[RENAME_VARIABLE_ACTION] = act_rename

        ActionRegistry.apply_keybindings(window, keybindings)
        return actions
