# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Commands that declare or report the version selected for a tool."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer

from ..errors import NoVersionConfigured
from ..paths import DECLARATION_FILENAME
from ..resolver import ResolvedVersion, VersionResolver
from ..tool_versions import normalize_tool, write_declaration
from .shared import CLILogger, get_state, reporting_errors

ToolArgument = Annotated[str, typer.Argument(help="Tool name, e.g. hugo.")]
VersionArgument = Annotated[str, typer.Argument(help="Version to select, e.g. 0.120.0.")]


def global_command(ctx: typer.Context, tool: ToolArgument, version: VersionArgument) -> None:
    """Set the user-wide default VERSION of TOOL."""

    state = get_state(ctx)
    with reporting_errors(state.logger):
        target = state.settings().layout.global_file
        previous = write_declaration(target, tool, version)
    _report_write(state.logger, target, normalize_tool(tool), version, previous)


def local_command(ctx: typer.Context, tool: ToolArgument, version: VersionArgument) -> None:
    """Pin VERSION of TOOL for the current directory tree."""

    state = get_state(ctx)
    target = Path.cwd() / DECLARATION_FILENAME
    with reporting_errors(state.logger):
        previous = write_declaration(target, tool, version)
    _report_write(state.logger, target, normalize_tool(tool), version, previous)


def current_command(ctx: typer.Context, tool: ToolArgument) -> None:
    """Show which version of TOOL applies here and where it is declared."""

    state = get_state(ctx)
    with reporting_errors(state.logger):
        resolver = VersionResolver.from_settings(state.settings(), os.environ)
        resolved = resolver.resolve(tool, Path.cwd())
        if not isinstance(resolved, ResolvedVersion):
            raise NoVersionConfigured(normalize_tool(tool))
    state.logger.echo(f"{resolved.tool} {resolved.version}\t{resolved.describe()}")


def _report_write(logger: CLILogger, target: Path, tool: str, version: str, previous: str | None) -> None:
    if previous is None:
        logger.ok(f"Declared {tool} {version} in {target}")
    elif previous == version:
        logger.info(f"{tool} {version} already declared in {target}")
    else:
        logger.ok(f"Changed {tool} {previous} -> {version} in {target}")


__all__ = ["current_command", "global_command", "local_command"]
