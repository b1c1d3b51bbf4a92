"""Qt-aware controllers used by the main editor window."""

from .action_registry import ActionRegistry
from .rename_refactor_controller import RefactorSession, RefactorState, RenameRefactorController, SessionOutcome

__all__ = [
    "ActionRegistry",
    "RefactorSession",
    "RefactorState",
    "RenameRefactorController",
    "SessionOutcome",
]
