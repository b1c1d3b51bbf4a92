"""PySide widgets used by the rename refactor editor."""

from .code_editor import CodeEditor, LinkedEditSession

__all__ = ["CodeEditor", "LinkedEditSession"]
