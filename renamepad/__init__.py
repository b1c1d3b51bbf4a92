"""Rename Variable refactoring for a PySide6 code editor."""

__version__ = "0.1.0"
