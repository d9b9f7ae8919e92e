# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands and shared state."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from .commands import register_commands
from .shared import CLIState

app = typer.Typer(
    name="asdfw",
    help="Per-tool version manager driven by .tool-versions files.",
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def configure(
    ctx: typer.Context,
    home: Annotated[
        Path | None,
        typer.Option("--home", help="asdfw home directory (defaults to $ASDFW_HOME or ~/.asdfw)."),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="Increase diagnostic output; repeat for debug."),
    ] = 0,
    emoji: Annotated[bool, typer.Option("--emoji/--no-emoji", help="Toggle emoji in CLI output.")] = True,
    color: Annotated[
        bool | None,
        typer.Option("--color/--no-color", help="Force or disable coloured output."),
    ] = None,
) -> None:
    """Capture global options for the invoked command."""

    ctx.obj = CLIState(home=home, verbose=verbose, use_emoji=emoji, use_color=color)


register_commands(app)


def main() -> None:
    """Console-script entry point."""

    app()


__all__ = ["app", "main"]
