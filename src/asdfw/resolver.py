# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Version resolution across the environment, local and global tiers.

Precedence, highest first:

1. ``ASDFW_<TOOL>_VERSION`` in the supplied environment (when non-empty).
2. The nearest ``.tool-versions`` declaring the tool, walking from the current
   directory upwards until the filesystem root or the configured ceiling.
3. The global declaration file.

Resolution is a pure function of its inputs: the environment is an injected
mapping and declaration files are read through an injected reader, so tests
can exercise the algorithm without touching the real filesystem.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Final

from .errors import DeclarationNotFound
from .paths import DECLARATION_FILENAME
from .tool_versions import env_var_name, normalize_tool, read_declarations

if TYPE_CHECKING:
    from .config import AsdfwSettings

LOGGER = logging.getLogger(__name__)

DeclarationReader = Callable[[Path], Mapping[str, str]]


class VersionSource(StrEnum):
    """Precedence tier that produced a resolved version."""

    ENVIRONMENT = "environment"
    LOCAL = "local"
    GLOBAL = "global"


@dataclass(frozen=True, slots=True)
class ResolvedVersion:
    """A version selected for a tool together with where it came from."""

    tool: str
    version: str
    source: VersionSource
    origin: str

    def describe(self) -> str:
        """Return a short human-readable description of the origin."""

        if self.source is VersionSource.ENVIRONMENT:
            return f"environment variable {self.origin}"
        return f"{self.source.value} file {self.origin}"


class _Unresolved:
    """Sentinel type returned when no tier declares a version."""

    _instance: _Unresolved | None = None

    def __new__(cls) -> _Unresolved:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNRESOLVED"


UNRESOLVED: Final[_Unresolved] = _Unresolved()
Resolution = ResolvedVersion | _Unresolved


def _normalise_dir(path: Path) -> Path:
    return Path(os.path.normpath(Path(path).absolute()))


def candidate_directories(start: Path, ceiling: Path | None = None) -> Iterator[Path]:
    """Yield *start* and its ancestors in the order local files are consulted.

    Args:
        start: Directory the lookup begins in.
        ceiling: Optional inclusive upper bound. Ignored when *start* is not
            located beneath it.

    Yields:
        Path: Directories from nearest to farthest.
    """

    current = _normalise_dir(start)
    stop_at = _normalise_dir(ceiling) if ceiling is not None else None
    if stop_at is not None and not current.is_relative_to(stop_at):
        stop_at = None
    while True:
        yield current
        if current == stop_at:
            return
        parent = current.parent
        if parent == current:
            return
        current = parent


class VersionResolver:
    """Resolve the active version of a tool for a directory."""

    def __init__(
        self,
        global_file: Path,
        *,
        env: Mapping[str, str],
        reader: DeclarationReader = read_declarations,
        ceiling: Path | None = None,
        filename: str = DECLARATION_FILENAME,
    ) -> None:
        """Initialise the resolver.

        Args:
            global_file: Path of the global declaration file.
            env: Read-only environment used for the override tier.
            reader: Callable returning the declarations of a file or raising
                :class:`DeclarationNotFound`.
            ceiling: Optional inclusive traversal ceiling for local files.
            filename: Name of local declaration files.
        """

        self._global_file = global_file
        self._env = env
        self._reader = reader
        self._ceiling = ceiling
        self._filename = filename

    @classmethod
    def from_settings(
        cls,
        settings: AsdfwSettings,
        env: Mapping[str, str],
        *,
        reader: DeclarationReader = read_declarations,
    ) -> VersionResolver:
        """Build a resolver bound to the layout and ceiling of *settings*."""

        return cls(settings.layout.global_file, env=env, reader=reader, ceiling=settings.ceiling)

    def resolve(self, tool: str, current_directory: Path) -> Resolution:
        """Return the version of *tool* that applies in *current_directory*.

        Args:
            tool: Tool name (case-insensitive).
            current_directory: Directory the command runs in.

        Returns:
            ResolvedVersion | _Unresolved: The selected version or
            :data:`UNRESOLVED` when no tier declares one.

        Raises:
            FormatError: If any declaration file consulted is malformed.
        """

        canonical = normalize_tool(tool)
        for lookup in (self.from_environment, self.from_local, self.from_global):
            found = lookup(canonical, current_directory)
            if found is not None:
                LOGGER.debug("Resolved %s to %s via %s", canonical, found.version, found.describe())
                return found
        LOGGER.debug("No version declared for %s in %s", canonical, current_directory)
        return UNRESOLVED

    def from_environment(self, tool: str, current_directory: Path | None = None) -> ResolvedVersion | None:
        """Return the override from ``ASDFW_<TOOL>_VERSION``, ignoring empty values."""

        del current_directory
        variable = env_var_name(tool)
        value = self._env.get(variable, "")
        if not value:
            return None
        return ResolvedVersion(normalize_tool(tool), value, VersionSource.ENVIRONMENT, variable)

    def from_local(self, tool: str, current_directory: Path) -> ResolvedVersion | None:
        """Return the nearest local declaration of *tool* at or above *current_directory*.

        Raises:
            FormatError: If a declaration file on the way up is malformed.
        """

        canonical = normalize_tool(tool)
        for directory in candidate_directories(current_directory, self._ceiling):
            candidate = directory / self._filename
            version = self._lookup(candidate, canonical)
            if version is not None:
                return ResolvedVersion(canonical, version, VersionSource.LOCAL, str(candidate))
        return None

    def from_global(self, tool: str, current_directory: Path | None = None) -> ResolvedVersion | None:
        """Return the version of *tool* declared in the global file, if any."""

        del current_directory
        canonical = normalize_tool(tool)
        version = self._lookup(self._global_file, canonical)
        if version is None:
            return None
        return ResolvedVersion(canonical, version, VersionSource.GLOBAL, str(self._global_file))

    def _lookup(self, path: Path, tool: str) -> str | None:
        try:
            declarations = self._reader(path)
        except DeclarationNotFound:
            return None
        return declarations.get(tool)


__all__ = [
    "UNRESOLVED",
    "DeclarationReader",
    "Resolution",
    "ResolvedVersion",
    "VersionResolver",
    "VersionSource",
    "candidate_directories",
]
