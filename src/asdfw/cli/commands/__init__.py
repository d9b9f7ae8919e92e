# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""CLI command registry."""

from __future__ import annotations

import typer

from ..exec_cmd import exec_command
from ..list_cmd import list_command
from ..reshim import reshim_command
from ..shared import register_command
from ..versions import current_command, global_command, local_command
from ..which import which_command

__all__ = ["register_commands"]


def register_commands(app: typer.Typer) -> None:
    """Register every built-in command on ``app``.

    Args:
        app: Typer application receiving command registrations.
    """

    register_command(app, reshim_command, name="reshim")
    register_command(app, which_command, name="which")
    register_command(app, global_command, name="global")
    register_command(app, local_command, name="local")
    register_command(app, current_command, name="current")
    register_command(app, list_command, name="list")
    register_command(app, exec_command, name="exec", passthrough=True)
