# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Entry point executed by every shim stub.

Invoked as ``python -m asdfw.shim <command> [args...]`` (or through the
``asdfw-shim`` console script). Arguments after the command name are never
parsed; they are handed to the target executable verbatim.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Final

from .config import load_settings
from .dispatcher import Dispatcher
from .errors import EXIT_IO_ERROR, AsdfwError
from .logging import SHIM_LOG_BACKUPS, SHIM_LOG_BYTES, configure_logging

DEBUG_VARIABLE: Final[str] = "ASDFW_DEBUG_SHIM"
ERROR_PREFIX: Final[str] = "ASDFW ERROR"
USAGE_EXIT_CODE: Final[int] = 2

LOGGER = logging.getLogger(__name__)


def run(argv: Sequence[str], *, environ: Mapping[str, str] | None = None, cwd: Path | None = None) -> int:
    """Dispatch ``argv[0]`` with the remaining arguments and return the exit code.

    Args:
        argv: Command name followed by its arguments.
        environ: Environment to resolve against and pass on; defaults to
            :data:`os.environ`.
        cwd: Directory the command runs in; defaults to the current directory.

    Returns:
        int: Exit code of the launched command, or of the asdfw failure.
    """

    env = dict(os.environ if environ is None else environ)
    if not argv:
        sys.stderr.write(f"{ERROR_PREFIX}: command to run not supplied\n")
        return USAGE_EXIT_CODE
    command, *arguments = argv
    try:
        settings = load_settings(env=env)
        if env.get(DEBUG_VARIABLE):
            configure_logging(
                settings.layout.log_dir,
                level=logging.DEBUG,
                basename=Path(command).name,
                max_bytes=SHIM_LOG_BYTES,
                backups=SHIM_LOG_BACKUPS,
            )
        dispatcher = Dispatcher.from_settings(settings)
        return dispatcher.dispatch(command, arguments, cwd or Path.cwd(), env)
    except AsdfwError as exc:
        LOGGER.debug("%s failed: %s", command, exc.kind)
        sys.stderr.write(f"{ERROR_PREFIX}: {exc.message}\n")
        if exc.hint:
            sys.stderr.write(f"  {exc.hint}\n")
        return exc.exit_code
    except OSError as exc:
        LOGGER.debug("%s failed: %s", command, exc)
        sys.stderr.write(f"{ERROR_PREFIX}: {exc}\n")
        return EXIT_IO_ERROR


def main() -> None:
    """Console-script entry point."""

    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":  # pragma: no cover - exercised by generated shims
    main()
