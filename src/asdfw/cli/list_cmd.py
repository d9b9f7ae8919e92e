# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the `asdfw list` command."""

from __future__ import annotations

from typing import Annotated

import typer

from ..installs import InstallationIndex
from ..tool_versions import normalize_tool
from .shared import get_state, reporting_errors


def list_command(
    ctx: typer.Context,
    tool: Annotated[str | None, typer.Argument(help="Only list versions of this tool.")] = None,
) -> None:
    """List installed versions, grouped by tool."""

    state = get_state(ctx)
    with reporting_errors(state.logger):
        index = InstallationIndex.from_layout(state.settings().layout)
        tools = [normalize_tool(tool)] if tool is not None else sorted(index.tool_dirs())

    if not tools:
        state.logger.info(f"No tools installed under {index.installs_dir}")
        return
    missing = False
    for name in tools:
        versions = index.versions(name)
        if not versions:
            state.logger.warn(f"No versions of {name} installed")
            missing = True
            continue
        state.logger.echo(name)
        for version in versions:
            state.logger.echo(f"  {version}")
    if missing and tool is not None:
        raise typer.Exit(code=1)


__all__ = ["list_command"]
