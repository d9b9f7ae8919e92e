# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Error taxonomy shared by the resolution, shim and dispatch layers.

Every user-facing failure derives from :class:`AsdfwError` and carries a
distinct ``exit_code`` so scripts wrapping ``asdfw`` can branch on the kind of
failure without parsing messages. Absence of configuration inside the
resolution layer is *not* an error; it is signalled with sentinels and only
becomes :class:`NoVersionConfigured` at the dispatch boundary.
"""

from __future__ import annotations

from pathlib import Path
from typing import ClassVar, Final

EXIT_OK: Final[int] = 0
# sysexits EX_IOERR
EXIT_IO_ERROR: Final[int] = 74


class AsdfwError(Exception):
    """Base class for failures surfaced to the user."""

    exit_code: ClassVar[int] = 1
    kind: ClassVar[str] = "error"

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        """Initialise the error with a message and optional remediation hint.

        Args:
            message: Human-readable description of the failure.
            hint: Optional remediation advice shown after the message.
        """

        super().__init__(message)
        self.message = message
        self.hint = hint


class ConfigError(AsdfwError):
    """Raised when settings or plugin metadata are invalid."""

    exit_code = 2
    kind = "config"


class FormatError(AsdfwError):
    """Raised when a version declaration file is malformed."""

    exit_code = 3
    kind = "format"

    def __init__(self, path: Path, line_number: int, line: str, reason: str) -> None:
        """Describe the offending file, line and reason.

        Args:
            path: Declaration file being parsed.
            line_number: One-based line number of the offending line.
            line: Raw line content.
            reason: Short explanation of the violated rule.
        """

        super().__init__(
            f"{path}:{line_number}: {reason}: {line!r}",
            hint="Each line must read '<tool> <version>' separated by exactly one space.",
        )
        self.path = path
        self.line_number = line_number
        self.line = line
        self.reason = reason


class DeclarationNotFound(FileNotFoundError):
    """Raised when a declaration file does not exist; callers treat it as "no declarations"."""


class NoVersionConfigured(AsdfwError):
    """Raised when no tier of the precedence chain declares a version."""

    exit_code = 4
    kind = "no-version"

    def __init__(self, tool: str) -> None:
        super().__init__(
            f"No version configured for {tool}",
            hint=f"Run 'asdfw global {tool} <version>' or 'asdfw local {tool} <version>' to configure one.",
        )
        self.tool = tool


class VersionNotInstalled(AsdfwError):
    """Raised when the configured version is absent from the install tree."""

    exit_code = 5
    kind = "not-installed"

    def __init__(self, tool: str, version: str, source: str | None = None) -> None:
        origin = f" (configured by {source})" if source else ""
        super().__init__(
            f"Version '{version}' of {tool} is configured{origin} but not installed",
            hint=f"Install {tool} {version} under the installs directory, or select an installed version.",
        )
        self.tool = tool
        self.version = version


class ExecutableMissing(AsdfwError):
    """Raised when a version is installed but lacks the requested executable."""

    exit_code = 127
    kind = "executable-missing"

    def __init__(self, command: str, tool: str, version: str, searched: tuple[Path, ...]) -> None:
        locations = ", ".join(str(path) for path in searched) or "<no bin directories>"
        super().__init__(
            f"'{command}' is not provided by {tool} {version} (searched: {locations})",
            hint=f"Run 'asdfw reshim --cleanup' if {command} was removed from {tool}.",
        )
        self.command = command
        self.searched = searched


class AmbiguousCommand(AsdfwError):
    """Raised when an executable name is shipped by more than one tool."""

    exit_code = 7
    kind = "ambiguous"

    def __init__(self, command: str, owners: tuple[str, ...]) -> None:
        super().__init__(
            f"'{command}' is provided by several tools: {', '.join(owners)}",
            hint="Remove the duplicate executable from all but one tool.",
        )
        self.command = command
        self.owners = owners


class LaunchFailed(AsdfwError):
    """Raised when the operating system refuses to start the target executable."""

    exit_code = 126
    kind = "launch-failed"

    def __init__(self, executable: Path, reason: str) -> None:
        super().__init__(f"Could not launch {executable}: {reason}")
        self.executable = executable


class ShimError(AsdfwError):
    """Per-shim failure reported by reconciliation; never aborts the batch."""

    exit_code = 6
    kind = "shim"

    def __init__(self, name: str, path: Path, reason: str, *, action: str) -> None:
        super().__init__(f"Could not {action} shim '{name}' at {path}: {reason}")
        self.name = name
        self.path = path


class ShimCreationError(ShimError):
    """Raised when a shim stub cannot be written."""

    def __init__(self, name: str, path: Path, reason: str) -> None:
        super().__init__(name, path, reason, action="create")


class ShimRemovalError(ShimError):
    """Raised when an orphaned shim cannot be deleted."""

    def __init__(self, name: str, path: Path, reason: str) -> None:
        super().__init__(name, path, reason, action="remove")


__all__ = [
    "EXIT_IO_ERROR",
    "EXIT_OK",
    "AmbiguousCommand",
    "AsdfwError",
    "ConfigError",
    "DeclarationNotFound",
    "ExecutableMissing",
    "FormatError",
    "LaunchFailed",
    "NoVersionConfigured",
    "ShimCreationError",
    "ShimError",
    "ShimRemovalError",
    "VersionNotInstalled",
]
