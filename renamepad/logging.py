"""structlog setup driven by the ``logging`` settings section."""

import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog

_HANDLER_TAG = "_renamepad_handler"


def resolve_level(name: Any) -> int:
    """Map a level name such as ``"debug"`` to its number; unknown names mean INFO."""
    value = logging.getLevelName(str(name or "INFO").strip().upper())
    return value if isinstance(value, int) else logging.INFO


def _processors(json_format: bool) -> list:
    chain = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    if json_format:
        chain.append(structlog.processors.JSONRenderer())
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    return chain


def _install_handlers(level: int, log_file: Optional[Path]) -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()

    # stderr keeps stdout free for anything piped to the editor.
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        setattr(handler, _HANDLER_TAG, True)
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)
    root.setLevel(level)


def setup_logging(options: Optional[Mapping[str, Any]] = None) -> int:
    """Configure structlog over stdlib logging and return the effective level.

    ``options`` is the ``logging`` settings section: ``level``, ``file`` and
    ``json``. Calling it again replaces the handlers installed earlier.
    """
    options = options or {}
    level = resolve_level(options.get("level"))
    raw_file = str(options.get("file") or "").strip()
    _install_handlers(level, Path(raw_file).expanduser() if raw_file else None)

    structlog.configure(
        processors=_processors(bool(options.get("json", False))),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    return level
