# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Launch resolved executables with full argument, stdio and exit-code fidelity.

Two strategies are available. ``exec_command`` replaces the current process
image, which is the normal path on POSIX: the target inherits the PID, the
standard streams and every signal directed at the shim. ``spawn_command``
starts the target as a child, relays termination signals to it and returns
its exit code; it is used where in-place replacement is unavailable.
"""

from __future__ import annotations

import logging
import os
import signal

# Bandit: subprocess usage is intentional; commands are absolute paths resolved
# from the install tree and no shell is involved.
import subprocess  # nosec B404
import sys
import threading
from collections.abc import Iterator, Mapping, Sequence
from contextlib import contextmanager
from pathlib import Path
from types import FrameType
from typing import NoReturn

from .errors import LaunchFailed

LOGGER = logging.getLogger(__name__)

SIGNAL_EXIT_BASE = 128
_RELAYED_SIGNALS: tuple[signal.Signals, ...] = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP", "SIGQUIT") if hasattr(signal, name)
)


def _launch_error(argv: Sequence[str], exc: OSError) -> LaunchFailed:
    return LaunchFailed(Path(argv[0]), exc.strerror or str(exc))


def exec_command(
    argv: Sequence[str],
    *,
    env: Mapping[str, str],
    cwd: Path | None = None,
) -> NoReturn:
    """Replace the current process with ``argv``.

    Args:
        argv: Absolute executable path followed by its arguments.
        env: Complete environment for the new image.
        cwd: Directory to switch to first, when it differs from the current one.

    Raises:
        LaunchFailed: If the operating system refuses to execute the target.
    """

    if not argv:
        raise ValueError("exec_command requires at least one argument")
    if cwd is not None and Path.cwd() != cwd:
        os.chdir(cwd)
    sys.stdout.flush()
    sys.stderr.flush()
    LOGGER.debug("exec %s", argv[0])
    try:
        os.execve(argv[0], list(argv), dict(env))
    except OSError as exc:
        raise _launch_error(argv, exc) from exc


def spawn_command(
    argv: Sequence[str],
    *,
    env: Mapping[str, str],
    cwd: Path | None = None,
) -> int:
    """Run ``argv`` as a child process and return its exit code.

    Standard streams are inherited untouched. While the child runs, ``SIGINT``
    is left to the terminal (which already delivers it to the child's process
    group) and termination signals sent to this process are forwarded to the
    child so no orphan survives the shim.

    Args:
        argv: Absolute executable path followed by its arguments.
        env: Complete environment for the child.
        cwd: Working directory for the child.

    Returns:
        int: The child's exit status; ``128 + N`` when it died from signal ``N``.

    Raises:
        LaunchFailed: If the child cannot be started.
    """

    if not argv:
        raise ValueError("spawn_command requires at least one argument")
    LOGGER.debug("spawn %s", argv[0])
    try:
        # Bandit: argument list passed directly without shell expansion.
        process = subprocess.Popen(  # nosec B603
            list(argv),
            env=dict(env),
            cwd=str(cwd) if cwd is not None else None,
        )
    except OSError as exc:
        raise _launch_error(argv, exc) from exc

    with _relay_signals(process):
        returncode = process.wait()
    LOGGER.debug("%s exited with %d", argv[0], returncode)
    return normalise_returncode(returncode)


def normalise_returncode(returncode: int) -> int:
    """Map a negative ``Popen`` return code (killed by signal) to shell convention."""

    if returncode < 0:
        return SIGNAL_EXIT_BASE - returncode
    return returncode


@contextmanager
def _relay_signals(process: subprocess.Popen[bytes]) -> Iterator[None]:
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    def _forward(signum: int, frame: FrameType | None) -> None:
        del frame
        if process.poll() is None:
            process.send_signal(signum)

    def _ignore(signum: int, frame: FrameType | None) -> None:
        del signum, frame

    previous = {signal.SIGINT: signal.signal(signal.SIGINT, _ignore)}
    for signum in _RELAYED_SIGNALS:
        previous[signum] = signal.signal(signum, _forward)
    try:
        yield
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)


__all__ = [
    "exec_command",
    "normalise_returncode",
    "spawn_command",
]
