# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""User-facing output helpers and diagnostic log configuration.

``info``/``ok``/``warn``/``fail`` print styled one-line messages for people
running commands. Diagnostics from the engine go through the standard
:mod:`logging` module and end up in rotating files under ``<home>/logs`` and,
when requested, on standard error.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final

from rich.logging import RichHandler
from rich.text import Text

from .console import detect_tty, get_console_manager

ROOT_LOGGER_NAME: Final[str] = "asdfw"
LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
CLI_LOG_BYTES: Final[int] = 1_000_000
CLI_LOG_BACKUPS: Final[int] = 4
SHIM_LOG_BYTES: Final[int] = 100_000
SHIM_LOG_BACKUPS: Final[int] = 6
_HANDLER_MARKER: Final[str] = "_asdfw_handler"


def emoji(symbol: str, enable: bool) -> str:
    """Return *symbol* when emoji output is enabled, otherwise blank."""

    return symbol if enable else ""


def _print_line(
    msg: str,
    *,
    style: str | None,
    use_emoji: bool,
    use_color: bool | None = None,
    stderr: bool = False,
) -> None:
    color_enabled = detect_tty(stderr=stderr) if use_color is None else use_color
    console = get_console_manager().get(color=color_enabled, emoji=use_emoji, stderr=stderr)
    text = Text(msg)
    if style and color_enabled:
        text.stylize(style)
    console.print(text)


def info(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an informational message."""

    _print_line(f"{emoji('ℹ️ ', use_emoji)}{msg}", style="cyan", use_emoji=use_emoji, use_color=use_color)


def ok(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a success message."""

    _print_line(f"{emoji('✅ ', use_emoji)}{msg}", style="green", use_emoji=use_emoji, use_color=use_color)


def warn(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit a warning message on standard error."""

    _print_line(
        f"{emoji('⚠️ ', use_emoji)}{msg}",
        style="yellow",
        use_emoji=use_emoji,
        use_color=use_color,
        stderr=True,
    )


def fail(msg: str, *, use_emoji: bool, use_color: bool | None = None) -> None:
    """Emit an error message on standard error."""

    _print_line(
        f"{emoji('❌ ', use_emoji)}{msg}",
        style="red",
        use_emoji=use_emoji,
        use_color=use_color,
        stderr=True,
    )


def verbosity_to_level(verbosity: int) -> int:
    """Map the number of ``-v`` flags to a logging level."""

    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(
    log_dir: Path | None,
    *,
    level: int | str,
    basename: str = ROOT_LOGGER_NAME,
    max_bytes: int = CLI_LOG_BYTES,
    backups: int = CLI_LOG_BACKUPS,
    to_stderr: bool = False,
) -> logging.Logger:
    """Attach handlers to the ``asdfw`` logger.

    Calling this again replaces the handlers installed by a previous call, so
    tests and long-lived callers can reconfigure freely.

    Args:
        log_dir: Directory for rotating log files; ``None`` disables file logging.
        level: Logging level name or number.
        basename: File name stem of the log file.
        max_bytes: Rotation threshold in bytes.
        backups: Number of rotated files kept.
        to_stderr: Whether to also render records on standard error via Rich.

    Returns:
        logging.Logger: The configured package logger.
    """

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
    logger.propagate = False

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler: logging.Handler | None = RotatingFileHandler(
                log_dir / f"{basename}.log",
                maxBytes=max_bytes,
                backupCount=backups,
                encoding="utf-8",
            )
        except OSError:
            file_handler = None
        if file_handler is not None:
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(_mark(file_handler))

    if to_stderr:
        console = get_console_manager().get(color=detect_tty(stderr=True), emoji=False, stderr=True)
        stderr_handler = RichHandler(console=console, show_time=False, show_path=False)
        logger.addHandler(_mark(stderr_handler))
    return logger


def _mark(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_MARKER, True)
    return handler


__all__ = [
    "configure_logging",
    "emoji",
    "fail",
    "info",
    "ok",
    "verbosity_to_level",
    "warn",
]
