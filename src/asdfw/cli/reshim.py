# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Implementation of the `asdfw reshim` command."""

from __future__ import annotations

from typing import Annotated

import typer

from ..installs import InstallationIndex
from ..shims import ReconcileResult, ShimRegistry
from .shared import CLILogger, get_state, reporting_errors


def reshim_command(
    ctx: typer.Context,
    cleanup: Annotated[
        bool,
        typer.Option("--cleanup", help="Remove shims whose executable is no longer installed."),
    ] = False,
) -> None:
    """Create missing shims for every installed executable."""

    state = get_state(ctx)
    logger = state.logger
    with reporting_errors(logger):
        settings = state.settings()
        registry = ShimRegistry(
            settings.layout.shims_dir,
            interpreter=settings.shim_interpreter,
            jobs=settings.jobs,
        )
        result = registry.reconcile(InstallationIndex.from_layout(settings.layout), cleanup=cleanup)

    _report(result, logger=logger)
    raise typer.Exit(code=result.exit_code)


def _report(result: ReconcileResult, *, logger: CLILogger) -> None:
    for name, owners in sorted(result.conflicts.items()):
        logger.warn(f"{name} is provided by several tools: {', '.join(owners)}")
    for name in sorted(result.orphaned):
        logger.warn(f"Orphaned shim {name}; run 'asdfw reshim --cleanup' to remove it")
    for name in sorted(result.failures):
        logger.fail(result.failures[name].message)

    summary = (
        f"{len(result.created)} created, {len(result.updated)} updated, "
        f"{len(result.removed)} removed, {len(result.unchanged)} unchanged"
    )
    if result.failures:
        logger.fail(f"Reshim incomplete ({summary}, {len(result.failures)} failed)")
    else:
        logger.ok(f"Reshim complete ({summary})")


__all__ = ["reshim_command"]
