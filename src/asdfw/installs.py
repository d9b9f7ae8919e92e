# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Read-only index of installed tool versions.

The install tree is laid out as ``<installs>/<tool>/<version>/<bin_dir>/<exe>``
where ``bin_dir`` defaults to ``bin`` and may be overridden per tool by a
plugin file. The filesystem is the only source of truth: every call re-reads
the tree and nothing is ever written to it.
"""

from __future__ import annotations

import logging
import os
from collections import defaultdict
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .paths import AsdfwLayout
from .plugins import DEFAULT_PLUGIN, EnvVar, PluginConfig, load_plugin
from .tool_versions import normalize_tool

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InstallRecord:
    """One installed version of one tool and the executables it ships."""

    tool: str
    version: str
    root: Path
    executables: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class InstallLocation:
    """Where an installed ``(tool, version)`` keeps its executables."""

    tool: str
    version: str
    root: Path
    bin_dirs: tuple[Path, ...]
    env_vars: tuple[EnvVar, ...] = ()

    @property
    def bin_dir(self) -> Path:
        """Return the primary bin directory."""

        return self.bin_dirs[0]

    def find_executable(self, name: str) -> Path | None:
        """Return the first file named *name* across the bin directories.

        On Windows the ``PATHEXT`` suffixes are tried as well, so ``hugo``
        finds ``hugo.exe``.
        """

        for directory in self.bin_dirs:
            for candidate_name in _candidate_names(name):
                candidate = directory / candidate_name
                if candidate.is_file():
                    return candidate
        return None

    def environment(self, environ: Mapping[str, str]) -> dict[str, str]:
        """Return *environ* extended with the variables declared by the plugin."""

        merged = dict(environ)
        for variable in self.env_vars:
            merged[variable.name] = variable.render(self.root, environ)
        return merged


def _candidate_names(name: str) -> Iterator[str]:
    yield name
    if os.name != "nt" or Path(name).suffix:
        return
    for suffix in os.environ.get("PATHEXT", ".COM;.EXE;.BAT;.CMD").split(os.pathsep):
        if suffix:
            yield f"{name}{suffix.lower()}"


def _visible_dirs(path: Path) -> list[Path]:
    try:
        entries = sorted(path.iterdir(), key=lambda entry: entry.name)
    except (FileNotFoundError, NotADirectoryError):
        return []
    return [entry for entry in entries if not entry.name.startswith(".") and entry.is_dir()]


def _executables_in(directories: Iterable[Path]) -> frozenset[str]:
    names: set[str] = set()
    for directory in directories:
        try:
            entries = list(directory.iterdir())
        except (FileNotFoundError, NotADirectoryError):
            LOGGER.debug("Bin directory %s does not exist", directory)
            continue
        names.update(entry.name for entry in entries if not entry.name.startswith(".") and entry.is_file())
    return frozenset(names)


class InstallationIndex:
    """Enumerate and locate installed ``(tool, version, executable)`` triples."""

    def __init__(self, installs_dir: Path, *, plugins_dir: Path | None = None) -> None:
        """Bind the index to an install root.

        Args:
            installs_dir: Root holding one directory per tool.
            plugins_dir: Optional directory of per-tool plugin files.
        """

        self._installs_dir = installs_dir
        self._plugins_dir = plugins_dir

    @classmethod
    def from_layout(cls, layout: AsdfwLayout) -> InstallationIndex:
        return cls(layout.installs_dir, plugins_dir=layout.plugins_dir)

    @property
    def installs_dir(self) -> Path:
        return self._installs_dir

    def plugin(self, tool: str) -> PluginConfig:
        """Return the plugin configuration for *tool* (defaults when absent)."""

        if self._plugins_dir is None:
            return DEFAULT_PLUGIN
        return load_plugin(self._plugins_dir, normalize_tool(tool))

    def tool_dirs(self) -> dict[str, Path]:
        """Return installed tool directories keyed by normalised tool name."""

        found: dict[str, Path] = {}
        for directory in _visible_dirs(self._installs_dir):
            tool = normalize_tool(directory.name)
            if tool in found:
                LOGGER.warning(
                    "Ignoring %s: tool directory %s already provides %s",
                    directory,
                    found[tool],
                    tool,
                )
                continue
            found[tool] = directory
        return found

    def scan(self) -> tuple[InstallRecord, ...]:
        """Return every installed version, ordered by tool then version.

        Returns:
            tuple[InstallRecord, ...]: Deterministically ordered records. A
            version whose bin directories are empty or missing is included
            with no executables.
        """

        records: list[InstallRecord] = []
        for tool, tool_dir in sorted(self.tool_dirs().items()):
            plugin = self.plugin(tool)
            for version_dir in _visible_dirs(tool_dir):
                executables = _executables_in(version_dir / entry for entry in plugin.bin_dirs)
                records.append(
                    InstallRecord(
                        tool=tool,
                        version=version_dir.name,
                        root=version_dir,
                        executables=executables,
                    )
                )
        LOGGER.debug("Scanned %d installed versions under %s", len(records), self._installs_dir)
        return tuple(records)

    def locate(self, tool: str, version: str) -> InstallLocation | None:
        """Return where ``tool version`` is installed, or ``None`` when it is not.

        Args:
            tool: Tool name (case-insensitive).
            version: Exact version token.

        Returns:
            InstallLocation | None: Location of the install, ``None`` meaning
            "not installed".
        """

        canonical = normalize_tool(tool)
        tool_dir = self.tool_dirs().get(canonical)
        if tool_dir is None:
            return None
        if version in {"", ".", ".."} or "/" in version or "\\" in version:
            return None
        root = tool_dir / version
        if not root.is_dir():
            return None
        plugin = self.plugin(canonical)
        return InstallLocation(
            tool=canonical,
            version=version,
            root=root,
            bin_dirs=tuple(root / entry for entry in plugin.bin_dirs),
            env_vars=plugin.env_vars,
        )

    def executables(self) -> dict[str, tuple[str, ...]]:
        """Return every executable name mapped to the tools that ship it."""

        owners: defaultdict[str, set[str]] = defaultdict(set)
        for record in self.scan():
            for name in record.executables:
                owners[name].add(record.tool)
        return {name: tuple(sorted(tools)) for name, tools in sorted(owners.items())}

    def owners(self, executable: str) -> tuple[str, ...]:
        """Return the tools shipping *executable* in any installed version."""

        return self.executables().get(executable, ())

    def versions(self, tool: str) -> tuple[str, ...]:
        """Return the installed versions of *tool* in lexicographic order."""

        tool_dir = self.tool_dirs().get(normalize_tool(tool))
        if tool_dir is None:
            return ()
        return tuple(entry.name for entry in _visible_dirs(tool_dir))


def scan(installs_dir: Path, *, plugins_dir: Path | None = None) -> tuple[InstallRecord, ...]:
    """Return :meth:`InstallationIndex.scan` for *installs_dir*."""

    return InstallationIndex(installs_dir, plugins_dir=plugins_dir).scan()


__all__ = [
    "InstallLocation",
    "InstallRecord",
    "InstallationIndex",
    "scan",
]
