################################################################################
# STACKPORT
#
# @file:        logging.py
# @module:      stackport.helpers.logging
# @description: Logging setup with structured "extra" fields and TTY colors.
# @author:      Stackport Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
################################################################################

"""
Logging helpers for Stackport.

All modules obtain their logger through ``get_logger(__name__)``. Context such
as the image, volume or container being processed is passed via ``extra`` and
rendered by ``StructuredFormatter`` as trailing ``key=value`` pairs.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from .constants import LOG_FORMAT, LOG_DATE_FORMAT

# Attributes every LogRecord carries; anything else came in via ``extra``
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


class Colors:
    """ANSI escape codes for colored terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"

    LEVELS = {
        logging.DEBUG: DIM,
        logging.INFO: CYAN,
        logging.WARNING: YELLOW,
        logging.ERROR: RED,
        logging.CRITICAL: BOLD + RED,
    }

    @classmethod
    def for_level(cls, levelno: int) -> str:
        return cls.LEVELS.get(levelno, "")


class StructuredFormatter(logging.Formatter):
    """
    Formatter that appends ``extra`` context to the message.

    Args:
        use_colors: Colorize the level name (only sensible for TTYs)
    """

    def __init__(self, fmt: str = LOG_FORMAT, datefmt: str = LOG_DATE_FORMAT, use_colors: bool = False):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }

        original_levelname = record.levelname
        if self.use_colors:
            record.levelname = f"{Colors.for_level(record.levelno)}{record.levelname}{Colors.RESET}"
        try:
            message = super().format(record)
        finally:
            record.levelname = original_levelname

        if extras:
            context = " ".join(f"{key}={value}" for key, value in sorted(extras.items()))
            message = f"{message} [{context}]"
        return message


class LogManager:
    """Keeps track of the handlers installed by ``setup_logging``."""

    ROOT_LOGGER = "stackport"

    def __init__(self):
        self._handlers: list[logging.Handler] = []
        self.level = logging.WARNING

    def configure(
        self,
        level: Union[int, str] = logging.INFO,
        log_file: Optional[Path] = None,
        stream=None,
        console: bool = True,
    ) -> logging.Logger:
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
            if not isinstance(level, int):
                raise ValueError(f"Unknown log level: {level}")

        root = logging.getLogger(self.ROOT_LOGGER)
        self.reset()

        if console:
            stream = stream if stream is not None else sys.stderr
            console_handler = logging.StreamHandler(stream)
            console_handler.setFormatter(
                StructuredFormatter(use_colors=hasattr(stream, "isatty") and stream.isatty())
            )
            self._add(root, console_handler)

        if log_file is not None:
            log_file = Path(log_file).expanduser()
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setFormatter(StructuredFormatter())
            self._add(root, file_handler)

        if not self._handlers:
            # without any handler logging.lastResort writes warnings to stderr
            self._add(root, logging.NullHandler())

        root.setLevel(level)
        root.propagate = False
        self.level = level
        return root

    def reset(self) -> None:
        root = logging.getLogger(self.ROOT_LOGGER)
        for handler in self._handlers:
            root.removeHandler(handler)
            handler.close()
        self._handlers.clear()
        root.propagate = True

    def _add(self, logger: logging.Logger, handler: logging.Handler) -> None:
        logger.addHandler(handler)
        self._handlers.append(handler)


log_manager = LogManager()


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    stream=None,
    console: bool = True,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        level: Log level name or number
        log_file: Optional file that receives the same records (uncolored)
        stream: Console stream (defaults to stderr)
        console: Attach the console handler; without it records reach only ``log_file``

    Returns:
        The package root logger
    """
    return log_manager.configure(level=level, log_file=log_file, stream=stream, console=console)


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the ``stackport`` namespace."""
    if name != LogManager.ROOT_LOGGER and not name.startswith(LogManager.ROOT_LOGGER + "."):
        name = f"{LogManager.ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
