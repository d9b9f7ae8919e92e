# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the `asdfw which` command."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Annotated

import typer

from ..dispatcher import Dispatcher
from .shared import get_state, reporting_errors

LOGGER = logging.getLogger(__name__)


def which_command(
    ctx: typer.Context,
    command: Annotated[str, typer.Argument(help="Command name as invoked through a shim.")],
) -> None:
    """Print the executable a shim for COMMAND would launch here."""

    state = get_state(ctx)
    with reporting_errors(state.logger):
        settings = state.settings()
        plan = Dispatcher.from_settings(settings).prepare(command, (), Path.cwd(), os.environ)
    LOGGER.info("%s", plan.describe())
    state.logger.echo(str(plan.executable))


__all__ = ["which_command"]
