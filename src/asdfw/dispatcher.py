# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Turn a shim invocation into the launch of the configured executable.

Per invocation the dispatcher moves through::

    START -> RESOLVING_VERSION -> UNRESOLVED (fail) | RESOLVED
    RESOLVED -> LOCATING -> NOT_INSTALLED (fail) | LOCATED
    LOCATED -> LAUNCHING -> LAUNCH_FAILED (fail) | EXITED

Each failing terminal raises its own :class:`~asdfw.errors.AsdfwError`
subclass; ``EXITED`` is the only successful end and carries the child's exit
code (or never returns at all when the process image is replaced).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from .errors import AmbiguousCommand, ExecutableMissing, NoVersionConfigured, VersionNotInstalled
from .installs import InstallationIndex
from .process_utils import exec_command, spawn_command
from .resolver import DeclarationReader, ResolvedVersion, VersionResolver, VersionSource
from .tool_versions import normalize_tool, read_declarations

if TYPE_CHECKING:
    from .config import AsdfwSettings

LOGGER = logging.getLogger(__name__)

Launcher = Callable[..., int]


class DispatchStage(StrEnum):
    """Stages of a single dispatch, used for diagnostics."""

    START = "start"
    RESOLVING_VERSION = "resolving-version"
    RESOLVED = "resolved"
    LOCATING = "locating"
    LOCATED = "located"
    LAUNCHING = "launching"
    EXITED = "exited"


class LaunchPlan(BaseModel):
    """Fully resolved command ready to be executed."""

    model_config = ConfigDict(frozen=True)

    command: str
    tool: str
    version: str
    source: VersionSource
    origin: str
    executable: Path
    argv: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    cwd: Path

    def describe(self) -> str:
        """Return ``tool version (origin)`` for log and CLI output."""

        resolved = ResolvedVersion(self.tool, self.version, self.source, self.origin)
        return f"{self.tool} {self.version} ({resolved.describe()})"


class Dispatcher:
    """Resolve, locate and launch the executable behind a shim name."""

    def __init__(
        self,
        index: InstallationIndex,
        *,
        global_file: Path,
        ceiling: Path | None = None,
        use_exec: bool = True,
        reader: DeclarationReader = read_declarations,
        exec_launcher: Launcher = exec_command,
        spawn_launcher: Launcher = spawn_command,
    ) -> None:
        """Initialise the dispatcher.

        Args:
            index: Installation index used to locate versions.
            global_file: Global declaration file for the resolver.
            ceiling: Optional traversal ceiling for local declaration files.
            use_exec: Replace the process image instead of spawning a child.
            reader: Declaration reader injected into the resolver.
            exec_launcher: Callable performing process replacement.
            spawn_launcher: Callable spawning a child and returning its code.
        """

        self._index = index
        self._global_file = global_file
        self._ceiling = ceiling
        self._use_exec = use_exec
        self._reader = reader
        self._exec = exec_launcher
        self._spawn = spawn_launcher

    @classmethod
    def from_settings(cls, settings: AsdfwSettings) -> Dispatcher:
        """Build a dispatcher for the layout and launch mode of *settings*."""

        return cls(
            InstallationIndex.from_layout(settings.layout),
            global_file=settings.layout.global_file,
            ceiling=settings.ceiling,
            use_exec=settings.uses_exec(),
        )

    def resolver(self, environment: Mapping[str, str]) -> VersionResolver:
        """Return a resolver reading overrides from *environment*."""

        return VersionResolver(
            self._global_file,
            env=environment,
            reader=self._reader,
            ceiling=self._ceiling,
        )

    def tool_for(self, invoked_name: str) -> str:
        """Return the tool responsible for the command *invoked_name*.

        The command name maps to the tool of the same name (case-insensitive)
        when such a tool is installed. Otherwise the unique installed tool
        shipping an executable of that name is used, falling back to the
        identity mapping when no tool ships it.

        Raises:
            AmbiguousCommand: If several installed tools ship the executable.
        """

        command = Path(invoked_name).name
        candidate = normalize_tool(command)
        if candidate in self._index.tool_dirs():
            return candidate
        owners = self._index.owners(command)
        if len(owners) > 1:
            raise AmbiguousCommand(command, owners)
        if owners:
            LOGGER.debug("%s is provided by %s", command, owners[0])
            return owners[0]
        return candidate

    def prepare(
        self,
        invoked_name: str,
        arguments: Sequence[str],
        current_directory: Path,
        environment: Mapping[str, str],
    ) -> LaunchPlan:
        """Resolve everything needed to launch *invoked_name* without launching it.

        Raises:
            FormatError: If a declaration file on the lookup path is malformed.
            NoVersionConfigured: If no tier declares a version.
            VersionNotInstalled: If the declared version is not on disk.
            ExecutableMissing: If the version lacks the requested executable.
            AmbiguousCommand: If the command cannot be attributed to one tool.
        """

        command = Path(invoked_name).name
        LOGGER.debug("stage=%s command=%s cwd=%s", DispatchStage.START, command, current_directory)
        tool = self.tool_for(command)

        LOGGER.debug("stage=%s tool=%s", DispatchStage.RESOLVING_VERSION, tool)
        resolved = self.resolver(environment).resolve(tool, current_directory)
        if not isinstance(resolved, ResolvedVersion):
            raise NoVersionConfigured(tool)
        LOGGER.debug("stage=%s version=%s source=%s", DispatchStage.RESOLVED, resolved.version, resolved.describe())

        LOGGER.debug("stage=%s", DispatchStage.LOCATING)
        location = self._index.locate(tool, resolved.version)
        if location is None:
            raise VersionNotInstalled(tool, resolved.version, resolved.describe())
        executable = location.find_executable(command)
        if executable is None:
            raise ExecutableMissing(command, tool, resolved.version, location.bin_dirs)
        LOGGER.debug("stage=%s executable=%s", DispatchStage.LOCATED, executable)

        return LaunchPlan(
            command=command,
            tool=tool,
            version=resolved.version,
            source=resolved.source,
            origin=resolved.origin,
            executable=executable,
            argv=[str(executable), *arguments],
            env=location.environment(environment),
            cwd=current_directory,
        )

    def dispatch(
        self,
        invoked_name: str,
        arguments: Sequence[str],
        current_directory: Path,
        environment: Mapping[str, str],
    ) -> int:
        """Launch the configured executable for *invoked_name* and return its exit code.

        Arguments are forwarded verbatim, the environment is inherited in full
        and standard streams are left untouched. In exec mode this call does
        not return on success.

        Raises:
            AsdfwError: The kinded failure of the first stage that failed.
        """

        plan = self.prepare(invoked_name, arguments, current_directory, environment)
        LOGGER.debug("stage=%s plan=%s", DispatchStage.LAUNCHING, plan.describe())
        if self._use_exec:
            return self._exec(plan.argv, env=plan.env, cwd=plan.cwd)
        code = self._spawn(plan.argv, env=plan.env, cwd=plan.cwd)
        LOGGER.debug("stage=%s code=%d", DispatchStage.EXITED, code)
        return code


__all__ = [
    "DispatchStage",
    "Dispatcher",
    "LaunchPlan",
]
