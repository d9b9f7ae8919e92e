# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Reading and writing ``.tool-versions`` declaration files.

A declaration file holds zero or more ``<tool> <version>`` lines separated by
exactly one space. Blank lines and ``#`` comments are ignored; every other
line must match the format exactly and a tool may only be declared once.
Writes go through a temporary sibling file that is atomically renamed into
place, so concurrent ``global``/``local`` commands never interleave.
"""

from __future__ import annotations

import logging
import os
import re
import stat
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .errors import DeclarationNotFound, FormatError

LOGGER = logging.getLogger(__name__)

COMMENT_PREFIX: Final[str] = "#"
ENV_PREFIX: Final[str] = "ASDFW_"
ENV_SUFFIX: Final[str] = "_VERSION"
DEFAULT_FILE_MODE: Final[int] = 0o644
_ENV_UNSAFE = re.compile(r"[^A-Z0-9_]")


def normalize_tool(tool: str) -> str:
    """Return the canonical (lower-case) spelling of *tool*."""

    return tool.strip().lower()


def env_var_name(tool: str) -> str:
    """Return the ``ASDFW_<TOOL>_VERSION`` override variable for *tool*.

    Characters that cannot appear in a shell variable name are replaced with
    underscores so ``my-tool`` maps to ``ASDFW_MY_TOOL_VERSION``.
    """

    return f"{ENV_PREFIX}{_ENV_UNSAFE.sub('_', normalize_tool(tool).upper())}{ENV_SUFFIX}"


def parse_line(line: str) -> tuple[str, str]:
    """Split a declaration line into ``(tool, version)``.

    Args:
        line: A single line without its line terminator.

    Returns:
        tuple[str, str]: Normalised tool name and the version verbatim.

    Raises:
        ValueError: With a short reason when the line is malformed.
    """

    if line != line.lstrip():
        raise ValueError("leading whitespace")
    if line != line.rstrip():
        raise ValueError("trailing whitespace")
    tool, separator, version = line.partition(" ")
    if not separator or not version:
        raise ValueError("missing version")
    if not tool:
        raise ValueError("missing tool name")
    if version.startswith(" "):
        raise ValueError("more than one space between tool and version")
    if any(char.isspace() for char in version) or any(char.isspace() for char in tool):
        raise ValueError("unexpected whitespace")
    return normalize_tool(tool), version


@dataclass(frozen=True, slots=True)
class _Entry:
    index: int
    tool: str
    version: str


def _parse_entries(path: Path, lines: list[str]) -> dict[str, _Entry]:
    entries: dict[str, _Entry] = {}
    for index, line in enumerate(lines):
        if not line or line.startswith(COMMENT_PREFIX):
            continue
        try:
            tool, version = parse_line(line)
        except ValueError as exc:
            raise FormatError(path, index + 1, line, str(exc)) from None
        if tool in entries:
            raise FormatError(
                path,
                index + 1,
                line,
                f"duplicate entry for {tool} (first declared on line {entries[tool].index + 1})",
            )
        entries[tool] = _Entry(index=index, tool=tool, version=version)
    return entries


def _read_text(path: Path) -> str:
    try:
        data = path.read_bytes()
    except (FileNotFoundError, NotADirectoryError, IsADirectoryError) as exc:
        raise DeclarationNotFound(f"No declaration file at {path}") from exc
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        line_number = data.count(b"\n", 0, exc.start) + 1
        line = data.split(b"\n")[line_number - 1].decode("utf-8", errors="replace")
        raise FormatError(path, line_number, line.removesuffix("\r"), "invalid UTF-8") from None


def _split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, dropping the ``\\r`` of CRLF endings."""

    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line.removesuffix("\r") for line in lines]


def read_declarations(path: Path) -> dict[str, str]:
    """Return the ``tool -> version`` mapping declared in *path*.

    Args:
        path: Declaration file to parse.

    Returns:
        dict[str, str]: Declarations keyed by normalised tool name.

    Raises:
        DeclarationNotFound: If *path* does not exist.
        FormatError: If any line is malformed or a tool repeats.
        OSError: If the file exists but cannot be read.
    """

    lines = _split_lines(_read_text(path))
    return {tool: entry.version for tool, entry in _parse_entries(path, lines).items()}


def write_declaration(path: Path, tool: str, version: str) -> str | None:
    """Upsert ``tool version`` into *path*, creating the file when needed.

    An existing line for *tool* is replaced in place; otherwise the line is
    appended. Other lines, comments and the file's line endings are preserved.

    Args:
        path: Declaration file to update.
        tool: Tool name (normalised before writing).
        version: Version token to record.

    Returns:
        str | None: The previously declared version, if any.

    Raises:
        FormatError: If the existing file is malformed or the new entry is invalid.
        OSError: If the file cannot be written; the original is left intact.
    """

    canonical = normalize_tool(tool)
    try:
        text = _read_text(path)
    except DeclarationNotFound:
        text = ""
    newline = "\r\n" if "\r\n" in text else "\n"
    lines = _split_lines(text)
    entries = _parse_entries(path, lines)

    new_line = f"{canonical} {version}"
    existing = entries.get(canonical)
    target_index = existing.index if existing is not None else len(lines)
    if canonical.startswith(COMMENT_PREFIX):
        raise FormatError(path, target_index + 1, new_line, f"tool name cannot start with '{COMMENT_PREFIX}'")
    try:
        parse_line(new_line)
    except ValueError as exc:
        raise FormatError(path, target_index + 1, new_line, str(exc)) from None

    if existing is not None:
        lines[existing.index] = new_line
        LOGGER.debug("Replacing %s %s with %s in %s", canonical, existing.version, version, path)
    else:
        lines.append(new_line)
        LOGGER.debug("Appending %s %s to %s", canonical, version, path)

    content = newline.join(lines) + newline
    path.parent.mkdir(parents=True, exist_ok=True)
    with _atomic_target(path) as temporary:
        temporary.write_bytes(content.encode("utf-8"))
    return existing.version if existing is not None else None


@contextmanager
def _atomic_target(path: Path) -> Iterator[Path]:
    """Yield a temporary sibling of *path* that replaces it on success.

    The temporary file is removed on every failure path, including
    interruption, so a half-written declaration file never becomes visible.
    """

    try:
        mode = stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        mode = DEFAULT_FILE_MODE
    handle, raw_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    os.close(handle)
    temporary = Path(raw_name)
    try:
        yield temporary
        temporary.chmod(mode)
        with temporary.open("r+b") as stream:
            os.fsync(stream.fileno())
        os.replace(temporary, path)
    except BaseException:
        temporary.unlink(missing_ok=True)
        raise


__all__ = [
    "env_var_name",
    "normalize_tool",
    "parse_line",
    "read_declarations",
    "write_declaration",
]
