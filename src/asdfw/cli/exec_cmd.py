# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the `asdfw exec` command."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer

from ..dispatcher import Dispatcher
from .shared import get_state, reporting_errors


def exec_command(
    ctx: typer.Context,
    command: Annotated[str, typer.Argument(help="Command to run with its configured version.")],
    arguments: Annotated[
        list[str] | None,
        typer.Argument(help="Arguments passed to COMMAND unchanged."),
    ] = None,
) -> None:
    """Run COMMAND exactly as its shim would."""

    state = get_state(ctx)
    with reporting_errors(state.logger):
        dispatcher = Dispatcher.from_settings(state.settings())
        code = dispatcher.dispatch(command, arguments or [], Path.cwd(), dict(os.environ))
    raise typer.Exit(code=code)


__all__ = ["exec_command"]
