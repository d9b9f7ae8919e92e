# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Optional per-tool metadata stored in ``<home>/plugins/<tool>/plugin.yaml``."""

from __future__ import annotations

from collections.abc import Mapping
from functools import cache
from pathlib import Path
from typing import Final

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError

PLUGIN_FILENAME: Final[str] = "plugin.yaml"
DEFAULT_BIN_DIR: Final[str] = "bin"


class EnvVar(BaseModel):
    """Environment variable exported to a launched executable."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1)
    value: str | None = None
    relative_install_path: str | None = None
    overriding_name: str | None = None

    @model_validator(mode="after")
    def _exactly_one_value(self) -> EnvVar:
        if (self.value is None) == (self.relative_install_path is None):
            raise ValueError(f"{self.name}: set exactly one of 'value' or 'relative_install_path'")
        return self

    def render(self, install_root: Path, environ: Mapping[str, str]) -> str:
        """Return the value to export for a version installed at *install_root*."""

        if self.overriding_name and environ.get(self.overriding_name):
            return environ[self.overriding_name]
        if self.relative_install_path is not None:
            return str(install_root / self.relative_install_path)
        return self.value or ""


class PluginConfig(BaseModel):
    """Per-tool layout overrides."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    bin_dirs: tuple[str, ...] = (DEFAULT_BIN_DIR,)
    env_vars: tuple[EnvVar, ...] = ()

    @field_validator("bin_dirs", mode="before")
    @classmethod
    def _default_when_empty(cls, value: object) -> object:
        if value is None or value == [] or value == ():
            return (DEFAULT_BIN_DIR,)
        return value

    @field_validator("bin_dirs", mode="after")
    @classmethod
    def _relative_only(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for entry in value:
            candidate = Path(entry.replace("\\", "/"))
            if candidate.is_absolute() or ".." in candidate.parts:
                raise ValueError(f"bin directory {entry!r} must stay inside the install directory")
        return tuple(entry.replace("\\", "/") for entry in value)


DEFAULT_PLUGIN: Final[PluginConfig] = PluginConfig()


def load_plugin(plugins_dir: Path, tool: str) -> PluginConfig:
    """Return the plugin configuration for *tool*, or the defaults when absent.

    Args:
        plugins_dir: Directory holding one sub-directory per tool.
        tool: Normalised tool name.

    Returns:
        PluginConfig: Parsed configuration.

    Raises:
        ConfigError: If ``plugin.yaml`` exists but is not valid.
    """

    path = plugins_dir / tool / PLUGIN_FILENAME
    if not path.is_file():
        return DEFAULT_PLUGIN
    return _load_plugin_file(path, path.stat().st_mtime_ns)


@cache
def _load_plugin_file(path: Path, mtime_ns: int) -> PluginConfig:
    del mtime_ns
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Could not read plugin file {path}: {exc}") from exc
    if data is None:
        return DEFAULT_PLUGIN
    if not isinstance(data, Mapping):
        raise ConfigError(f"Plugin file {path} must contain a mapping")
    try:
        return PluginConfig.model_validate(dict(data))
    except ValidationError as exc:
        messages = "; ".join(str(error.get("msg")) for error in exc.errors())
        raise ConfigError(f"Invalid plugin file {path}: {messages}") from exc


__all__ = [
    "DEFAULT_BIN_DIR",
    "PLUGIN_FILENAME",
    "EnvVar",
    "PluginConfig",
    "load_plugin",
]
