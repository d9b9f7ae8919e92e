# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Filesystem layout of an asdfw home directory."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

HOME_ENV: Final[str] = "ASDFW_HOME"
DEFAULT_HOME_DIRNAME: Final[str] = ".asdfw"
INSTALLS_SUBDIR: Final[str] = "installs"
SHIMS_SUBDIR: Final[str] = "shims"
PLUGINS_SUBDIR: Final[str] = "plugins"
LOGS_SUBDIR: Final[str] = "logs"
SETTINGS_FILENAME: Final[str] = "config.toml"
DECLARATION_FILENAME: Final[str] = ".tool-versions"


@dataclass(frozen=True, slots=True)
class AsdfwLayout:
    """Well-known locations beneath the asdfw home directory."""

    home: Path

    @property
    def installs_dir(self) -> Path:
        """Return ``<home>/installs`` holding ``<tool>/<version>/bin/<exe>`` trees."""

        return self.home / INSTALLS_SUBDIR

    @property
    def shims_dir(self) -> Path:
        """Return ``<home>/shims``, the directory placed first on ``PATH``."""

        return self.home / SHIMS_SUBDIR

    @property
    def plugins_dir(self) -> Path:
        return self.home / PLUGINS_SUBDIR

    @property
    def log_dir(self) -> Path:
        return self.home / LOGS_SUBDIR

    @property
    def global_file(self) -> Path:
        """Return the global declaration file consulted after local files."""

        return self.home / DECLARATION_FILENAME

    @property
    def settings_file(self) -> Path:
        return self.home / SETTINGS_FILENAME


def default_home(env: Mapping[str, str] | None = None) -> Path:
    """Return the asdfw home directory honouring ``ASDFW_HOME``.

    Args:
        env: Environment mapping to consult; defaults to :data:`os.environ`.

    Returns:
        Path: Absolute home directory path.
    """

    source = os.environ if env is None else env
    override = source.get(HOME_ENV)
    if override:
        return Path(override).expanduser().absolute()
    return Path.home() / DEFAULT_HOME_DIRNAME


__all__ = [
    "DECLARATION_FILENAME",
    "HOME_ENV",
    "AsdfwLayout",
    "default_home",
]
