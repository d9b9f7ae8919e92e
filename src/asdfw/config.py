# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Settings model and layered loading (defaults, ``config.toml``, environment)."""

from __future__ import annotations

import math
import os
import sys
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError
from .paths import AsdfwLayout, default_home

SETTINGS_SECTION: Final[str] = "asdfw"
ENV_OVERRIDES: Final[dict[str, str]] = {
    "ASDFW_CEILING": "ceiling",
    "ASDFW_LAUNCH_MODE": "launch_mode",
    "ASDFW_JOBS": "jobs",
    "ASDFW_LOG_LEVEL": "log_level",
}

LaunchMode = Literal["auto", "exec", "spawn"]


def default_parallel_jobs() -> int:
    """Return 75% of available CPU cores (minimum of 1)."""
    cores = os.cpu_count() or 1
    return max(1, math.floor(cores * 0.75))


class AsdfwSettings(BaseModel):
    """Validated runtime settings for a single asdfw invocation."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    home: Path
    ceiling: Path | None = None
    launch_mode: LaunchMode = "auto"
    jobs: int = Field(default_factory=default_parallel_jobs, ge=1)
    shim_interpreter: Path = Field(default_factory=lambda: Path(sys.executable))
    log_level: str = "WARNING"

    @field_validator("home", "ceiling", "shim_interpreter", mode="after")
    @classmethod
    def _expand(cls, value: Path | None) -> Path | None:
        if value is None:
            return None
        return value.expanduser().absolute()

    @field_validator("log_level", mode="after")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"unknown log level {value!r}")
        return level

    @property
    def layout(self) -> AsdfwLayout:
        """Return the filesystem layout rooted at :attr:`home`."""

        return AsdfwLayout(self.home)

    def uses_exec(self) -> bool:
        """Return ``True`` when dispatch should replace the process image."""

        if self.launch_mode == "auto":
            return os.name == "posix" and hasattr(os, "execve")
        return self.launch_mode == "exec"


def load_settings(
    *,
    home: Path | None = None,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> AsdfwSettings:
    """Build settings from defaults, ``<home>/config.toml``, environment and overrides.

    Args:
        home: Explicit home directory (CLI ``--home``); wins over ``ASDFW_HOME``.
        env: Environment mapping; defaults to :data:`os.environ`.
        overrides: Highest-precedence values, typically CLI flags.

    Returns:
        AsdfwSettings: Validated settings.

    Raises:
        ConfigError: If the settings file is unreadable or values are invalid.
    """

    environ = os.environ if env is None else env
    resolved_home = home.expanduser().absolute() if home is not None else default_home(environ)
    layout = AsdfwLayout(resolved_home)

    data: dict[str, Any] = dict(_load_settings_file(layout.settings_file))
    for variable, key in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            data[key] = value
    if overrides:
        data.update({key: value for key, value in overrides.items() if value is not None})
    data["home"] = resolved_home

    try:
        return AsdfwSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid asdfw settings: {_summarise(exc)}",
            hint=f"Check {layout.settings_file} and ASDFW_* environment variables.",
        ) from exc


def _load_settings_file(path: Path) -> Mapping[str, Any]:
    if not path.is_file():
        return {}
    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Could not read settings file {path}: {exc}") from exc
    section = document.get(SETTINGS_SECTION, {})
    if not isinstance(section, Mapping):
        raise ConfigError(f"[{SETTINGS_SECTION}] in {path} must be a table")
    if "home" in section:
        raise ConfigError(f"'home' cannot be set inside {path}; use ASDFW_HOME instead")
    return section


def _summarise(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


__all__ = [
    "AsdfwSettings",
    "LaunchMode",
    "default_parallel_jobs",
    "load_settings",
]
