"""Logging setup for the richdoc command line and embedding applications.

Editor internals log at DEBUG for every key binding, notification and node
view event. Those loggers are listed in :data:`CHATTY_LOGGERS` and stay at
INFO under a plain ``DEBUG`` level; trace mode lets them through.
"""

from __future__ import annotations

import logging
import sys
from typing import Iterable, Optional

# Loggers that emit one record per binding, step or notification
CHATTY_LOGGERS: tuple[str, ...] = (
    "richdoc.commands.keymap",
    "richdoc.model.steps",
    "richdoc.model.transaction",
    "richdoc.view.notifications",
    "richdoc.view.node_view",
)


def resolve_log_level(log_level: int | str) -> int:
    """Return a numeric level for a level name or number (unknown names map to INFO)."""
    if isinstance(log_level, int):
        return log_level
    return getattr(logging, str(log_level).upper(), logging.INFO)


def configure_logging(
    log_level: int | str,
    log_file: Optional[str] = None,
    trace_mode: bool = False,
    chatty_loggers: Iterable[str] = CHATTY_LOGGERS,
) -> logging.Logger:
    """Configure root logging handlers for richdoc.

    Parameters
    ----------
    log_level : int | str
        Numeric logging level or string name (e.g., "INFO").
    log_file : str, optional
        Optional path to a log file for teeing log output.
    trace_mode : bool, default False
        When true, emit timestamps and logger names and let the chatty editor
        loggers log at DEBUG.
    chatty_loggers : iterable of str
        Logger names held at INFO unless ``trace_mode`` is set.

    Returns
    -------
    logging.Logger
        The configured root logger instance.

    """
    resolved_level = resolve_log_level(log_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved_level)
    root_logger.handlers.clear()

    for name in chatty_loggers:
        chatty = logging.getLogger(name)
        if trace_mode or resolved_level > logging.DEBUG:
            chatty.setLevel(logging.NOTSET)
        else:
            chatty.setLevel(logging.INFO)

    format_str = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s" if trace_mode else "%(levelname)s: %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S" if trace_mode else None
    formatter = logging.Formatter(format_str, datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(resolved_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
        except OSError as exc:
            root_logger.warning("Could not create log file %s: %s", log_file, exc)
        else:
            file_handler.setLevel(resolved_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
            root_logger.info("Logging to file: %s", log_file)

    return root_logger
