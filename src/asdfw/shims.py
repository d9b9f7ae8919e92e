# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Reconcile the shims directory with the installed executables."""

from __future__ import annotations

import logging
import os
import shlex
import stat
import sys
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import Final

from .errors import EXIT_OK, ShimCreationError, ShimError, ShimRemovalError
from .installs import InstallationIndex

LOGGER = logging.getLogger(__name__)

SHIM_MODE: Final[int] = 0o755
SHIM_MARKER: Final[str] = "# asdfw shim"
SHIM_MODULE: Final[str] = "asdfw.shim"
CMD_SUFFIX: Final[str] = ".cmd"
DEFAULT_PATHEXT: Final[str] = ".COM;.EXE;.BAT;.CMD"


def render_cmd_shim(name: str, interpreter: Path) -> str:
    """Return the Windows batch stub that forwards *name* to the dispatcher.

    ``%*`` passes the arguments on as typed and the stub exits with the
    dispatcher's error level.
    """

    return (
        "@echo off\r\n"
        f"rem asdfw shim: {name}\r\n"
        f'"{interpreter}" -m {SHIM_MODULE} {name} %*\r\n'
        "exit /b %ERRORLEVEL%\r\n"
    )


def render_shim(name: str, interpreter: Path) -> str:
    """Return the POSIX shell stub that forwards *name* to the dispatcher.

    Args:
        name: Executable name the shim stands in for.
        interpreter: Python interpreter that has ``asdfw`` installed.

    Returns:
        str: Script contents. Arguments are forwarded untouched via ``"$@"``
        and ``exec`` keeps the shim itself out of the process tree.
    """

    return (
        "#!/bin/sh\n"
        f"{SHIM_MARKER}: {name}\n"
        f'exec {shlex.quote(str(interpreter))} -m {SHIM_MODULE} {shlex.quote(name)} "$@"\n'
    )


class ShimAction(StrEnum):
    """What reconciliation did for a single shim name."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    REMOVED = "removed"
    ORPHANED = "orphaned"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ShimOutcome:
    """Result of processing one shim name."""

    name: str
    action: ShimAction
    error: ShimError | None = None


@dataclass(slots=True)
class ReconcileResult:
    """Aggregated outcome of a reconciliation run."""

    created: set[str] = field(default_factory=set)
    updated: set[str] = field(default_factory=set)
    unchanged: set[str] = field(default_factory=set)
    removed: set[str] = field(default_factory=set)
    orphaned: set[str] = field(default_factory=set)
    failures: dict[str, ShimError] = field(default_factory=dict)
    conflicts: dict[str, tuple[str, ...]] = field(default_factory=dict)

    def record(self, outcome: ShimOutcome) -> None:
        """Fold *outcome* into the matching result set."""

        if outcome.error is not None:
            self.failures[outcome.name] = outcome.error
            return
        bucket = {
            ShimAction.CREATED: self.created,
            ShimAction.UPDATED: self.updated,
            ShimAction.UNCHANGED: self.unchanged,
            ShimAction.REMOVED: self.removed,
            ShimAction.ORPHANED: self.orphaned,
        }[outcome.action]
        bucket.add(outcome.name)

    @property
    def exit_code(self) -> int:
        """Return ``0`` when every shim was processed, else the shim error code."""

        return ShimError.exit_code if self.failures else EXIT_OK


class ShimRegistry:
    """Create, refresh and remove shim stubs in a single directory."""

    def __init__(
        self,
        shims_dir: Path,
        *,
        interpreter: Path,
        jobs: int = 1,
        platform: str = os.name,
    ) -> None:
        """Bind the registry to *shims_dir*.

        Args:
            shims_dir: Directory placed ahead of the system ``PATH``.
            interpreter: Python interpreter embedded in generated stubs.
            jobs: Maximum number of worker threads used for file operations.
            platform: ``os.name`` value selecting the stub format; ``"nt"``
                writes ``<command>.cmd`` batch stubs, anything else POSIX
                shell stubs named after the executable.
        """

        self._shims_dir = shims_dir
        self._interpreter = interpreter
        self._jobs = max(1, jobs)
        self._windows = platform == "nt"

    @property
    def shims_dir(self) -> Path:
        return self._shims_dir

    def command_name(self, executable: str) -> str | None:
        """Return the command a shim for *executable* answers to, or ``None``.

        On Windows only files with a ``PATHEXT`` suffix get a shim, named
        after their stem (``hugo.exe`` becomes ``hugo``).
        """

        if not self._windows:
            return executable
        stem, suffix = os.path.splitext(executable)
        if stem and suffix.lower() in _pathext_suffixes():
            return stem
        return None

    def shim_path(self, name: str) -> Path:
        """Return the stub file for command *name*."""

        return self._shims_dir / (f"{name}{CMD_SUFFIX}" if self._windows else name)

    def render(self, name: str) -> str:
        """Return the stub contents for command *name* on this platform."""

        if self._windows:
            return render_cmd_shim(name, self._interpreter)
        return render_shim(name, self._interpreter)

    def existing(self) -> set[str]:
        """Return the command names of the shim files currently present."""

        try:
            entries = list(self._shims_dir.iterdir())
        except FileNotFoundError:
            return set()
        names: set[str] = set()
        for entry in entries:
            if entry.name.startswith(".") or not entry.is_file():
                continue
            if not self._windows:
                names.add(entry.name)
            elif entry.name.lower().endswith(CMD_SUFFIX):
                names.add(entry.name[: -len(CMD_SUFFIX)])
        return names

    def reconcile(self, index: InstallationIndex, *, cleanup: bool = False) -> ReconcileResult:
        """Converge the shims directory on the executables known to *index*.

        Missing shims are created and stale stubs rewritten. Shims without a
        matching executable are removed when *cleanup* is true and otherwise
        only reported as orphaned. A failure on one shim is recorded and the
        remaining shims are still processed; nothing is rolled back.

        Args:
            index: Installation index providing the target executable set.
            cleanup: Whether orphaned shims should be deleted.

        Returns:
            ReconcileResult: Per-name outcomes plus executable conflicts.

        Raises:
            ShimError: If the shims directory itself cannot be created.
        """

        owners: dict[str, set[str]] = {}
        for executable, tools in index.executables().items():
            name = self.command_name(executable)
            if name is not None:
                owners.setdefault(name, set()).update(tools)
        target = set(owners)
        result = ReconcileResult(
            conflicts={name: tuple(sorted(tools)) for name, tools in sorted(owners.items()) if len(tools) > 1}
        )

        try:
            self._shims_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ShimError("*", self._shims_dir, exc.strerror or str(exc), action="prepare") from exc

        orphans = sorted(self.existing() - target)
        tasks: list[Callable[[], ShimOutcome]] = [_bind(self.ensure, name) for name in sorted(target)]
        if cleanup:
            tasks.extend(_bind(self.remove, name) for name in orphans)
        else:
            result.orphaned.update(orphans)

        for outcome in self._run(tasks):
            if outcome.error is not None:
                LOGGER.error("%s", outcome.error.message)
            result.record(outcome)

        LOGGER.info(
            "Reshim finished: %d created, %d updated, %d removed, %d failed",
            len(result.created),
            len(result.updated),
            len(result.removed),
            len(result.failures),
        )
        return result

    def ensure(self, name: str) -> ShimOutcome:
        """Create or refresh the shim for *name*."""

        path = self.shim_path(name)
        expected = self.render(name).encode("utf-8")
        action = ShimAction.CREATED
        try:
            if path.is_file():
                if _is_current(path, expected, executable=not self._windows):
                    return ShimOutcome(name, ShimAction.UNCHANGED)
                action = ShimAction.UPDATED
            elif path.exists():
                raise IsADirectoryError(f"{path} exists and is not a regular file")
            path.write_bytes(expected)
            if not self._windows:
                path.chmod(SHIM_MODE)
        except OSError as exc:
            reason = exc.strerror or str(exc)
            return ShimOutcome(name, ShimAction.FAILED, ShimCreationError(name, path, reason))
        LOGGER.debug("Shim %s %s", name, action.value)
        return ShimOutcome(name, action)

    def remove(self, name: str) -> ShimOutcome:
        """Delete the orphaned shim *name*."""

        path = self.shim_path(name)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            reason = exc.strerror or str(exc)
            return ShimOutcome(name, ShimAction.FAILED, ShimRemovalError(name, path, reason))
        LOGGER.debug("Removed orphaned shim %s", name)
        return ShimOutcome(name, ShimAction.REMOVED)

    def _run(self, tasks: Iterable[Callable[[], ShimOutcome]]) -> list[ShimOutcome]:
        pending = list(tasks)
        if self._jobs == 1 or len(pending) < 2:
            return [task() for task in pending]
        outcomes: list[ShimOutcome] = []
        with ThreadPoolExecutor(max_workers=min(self._jobs, len(pending))) as executor:
            futures = [executor.submit(task) for task in pending]
            for future in as_completed(futures):
                outcomes.append(future.result())
        return outcomes


def reconcile(
    installs_dir: Path,
    shims_dir: Path,
    *,
    cleanup: bool = False,
    interpreter: Path | None = None,
    plugins_dir: Path | None = None,
    jobs: int = 1,
) -> ReconcileResult:
    """Reconcile *shims_dir* against the executables installed under *installs_dir*."""

    registry = ShimRegistry(shims_dir, interpreter=interpreter or Path(sys.executable), jobs=jobs)
    return registry.reconcile(InstallationIndex(installs_dir, plugins_dir=plugins_dir), cleanup=cleanup)


def _bind(method: Callable[[str], ShimOutcome], name: str) -> Callable[[], ShimOutcome]:
    return lambda: method(name)


def _pathext_suffixes() -> set[str]:
    raw = os.environ.get("PATHEXT") or DEFAULT_PATHEXT
    return {suffix.lower() for suffix in raw.split(";") if suffix}


def _is_current(path: Path, expected: bytes, *, executable: bool) -> bool:
    try:
        content = path.read_bytes()
        mode = stat.S_IMODE(path.stat().st_mode)
    except OSError:
        return False
    if not executable or os.name != "posix":
        return content == expected
    return content == expected and mode & stat.S_IXUSR != 0


__all__ = [
    "ReconcileResult",
    "ShimAction",
    "ShimOutcome",
    "ShimRegistry",
    "reconcile",
    "render_cmd_shim",
    "render_shim",
]
