# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared utilities for CLI commands (state, logging, error conversion)."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

import typer

from ..config import AsdfwSettings, load_settings
from ..errors import EXIT_IO_ERROR, AsdfwError
from ..logging import CLI_LOG_BACKUPS, CLI_LOG_BYTES, configure_logging, verbosity_to_level
from ..logging import fail as core_fail
from ..logging import info as core_info
from ..logging import ok as core_ok
from ..logging import warn as core_warn


@dataclass(slots=True)
class CLILogger:
    """Adapter around the logging helpers respecting CLI emoji and colour flags."""

    use_emoji: bool
    use_color: bool | None = None

    def fail(self, message: str) -> None:
        core_fail(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def warn(self, message: str) -> None:
        core_warn(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def ok(self, message: str) -> None:
        core_ok(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def info(self, message: str) -> None:
        core_info(message, use_emoji=self.use_emoji, use_color=self.use_color)

    def echo(self, message: str) -> None:
        """Write *message* to stdout without styling, for scripting callers."""

        typer.echo(message)

    def error(self, exc: AsdfwError) -> None:
        """Report *exc* followed by its remediation hint."""

        self.fail(exc.message)
        if exc.hint:
            self.fail(f"Hint: {exc.hint}")


@dataclass(slots=True)
class CLIState:
    """Options shared by every command, captured by the application callback."""

    home: Path | None = None
    verbose: int = 0
    use_emoji: bool = True
    use_color: bool | None = None
    logger: CLILogger = field(init=False)
    _settings: AsdfwSettings | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.logger = CLILogger(use_emoji=self.use_emoji, use_color=self.use_color)

    def settings(self) -> AsdfwSettings:
        """Load settings once per invocation and configure diagnostic logging.

        Raises:
            ConfigError: If the settings are invalid.
        """

        if self._settings is None:
            settings = load_settings(home=self.home, env=os.environ)
            level = verbosity_to_level(self.verbose) if self.verbose else settings.log_level
            configure_logging(
                settings.layout.log_dir,
                level=level,
                max_bytes=CLI_LOG_BYTES,
                backups=CLI_LOG_BACKUPS,
                to_stderr=self.verbose > 0,
            )
            self._settings = settings
        return self._settings


def get_state(ctx: typer.Context) -> CLIState:
    """Return the :class:`CLIState` stored by the application callback."""

    state = ctx.find_object(CLIState)
    if state is None:
        state = CLIState()
        ctx.obj = state
    return state


@contextmanager
def reporting_errors(logger: CLILogger) -> Iterator[None]:
    """Convert :class:`AsdfwError` and :class:`OSError` into a failure message and exit code."""

    try:
        yield
    except AsdfwError as exc:
        logger.error(exc)
        raise typer.Exit(code=exc.exit_code) from exc
    except OSError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=EXIT_IO_ERROR) from exc


CommandCallable = TypeVar("CommandCallable", bound=Callable[..., Any])


def register_command(
    app: typer.Typer,
    callback: CommandCallable,
    *,
    name: str,
    passthrough: bool = False,
) -> CommandCallable:
    """Register *callback* on *app* under *name*.

    Args:
        app: Typer application receiving the command.
        callback: Command implementation.
        name: Command name shown in usage output.
        passthrough: Stop option parsing at the first positional argument so
            the remaining arguments reach the callback untouched.

    Returns:
        CommandCallable: The registered callback.
    """

    context_settings: dict[str, Any] = {}
    if passthrough:
        context_settings = {"ignore_unknown_options": True, "allow_interspersed_args": False}
    app.command(name=name, context_settings=context_settings)(callback)
    return callback


__all__ = [
    "CLILogger",
    "CLIState",
    "get_state",
    "register_command",
    "reporting_errors",
]
