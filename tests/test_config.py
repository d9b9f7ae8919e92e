# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for layered settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from asdfw.config import load_settings
from asdfw.errors import ConfigError


def test_defaults_follow_asdfw_home(tmp_path: Path) -> None:
    settings = load_settings(env={"ASDFW_HOME": str(tmp_path / "home")})

    assert settings.home == tmp_path / "home"
    assert settings.layout.shims_dir == tmp_path / "home" / "shims"
    assert settings.layout.global_file == tmp_path / "home" / ".tool-versions"
    assert settings.launch_mode == "auto"
    assert settings.ceiling is None
    assert settings.jobs >= 1


def test_explicit_home_beats_environment(tmp_path: Path) -> None:
    settings = load_settings(home=tmp_path / "cli", env={"ASDFW_HOME": str(tmp_path / "env")})

    assert settings.home == tmp_path / "cli"


def test_settings_file_then_environment_then_overrides(tmp_path: Path) -> None:
    (tmp_path / "config.toml").write_text(
        '[asdfw]\nlaunch_mode = "spawn"\njobs = 2\nlog_level = "info"\n',
        encoding="utf-8",
    )

    from_file = load_settings(home=tmp_path, env={})
    from_env = load_settings(home=tmp_path, env={"ASDFW_JOBS": "5"})
    from_overrides = load_settings(home=tmp_path, env={"ASDFW_JOBS": "5"}, overrides={"jobs": 7})

    assert from_file.launch_mode == "spawn"
    assert from_file.jobs == 2
    assert from_file.log_level == "INFO"
    assert from_env.jobs == 5
    assert from_overrides.jobs == 7


def test_uses_exec_respects_launch_mode(tmp_path: Path) -> None:
    assert load_settings(home=tmp_path, env={"ASDFW_LAUNCH_MODE": "exec"}).uses_exec()
    assert not load_settings(home=tmp_path, env={"ASDFW_LAUNCH_MODE": "spawn"}).uses_exec()


def test_ceiling_from_environment(tmp_path: Path) -> None:
    settings = load_settings(home=tmp_path, env={"ASDFW_CEILING": str(tmp_path / "work")})

    assert settings.ceiling == tmp_path / "work"


@pytest.mark.parametrize(
    ("content", "env"),
    [
        ("", {"ASDFW_LAUNCH_MODE": "teleport"}),
        ("", {"ASDFW_JOBS": "0"}),
        ("", {"ASDFW_LOG_LEVEL": "chatty"}),
        ('[asdfw]\nunknown = "x"\n', {}),
        ('[asdfw]\nhome = "/elsewhere"\n', {}),
        ("[asdfw\n", {}),
        ('asdfw = "flat"\n', {}),
    ],
)
def test_invalid_settings_raise_config_error(tmp_path: Path, content: str, env: dict[str, str]) -> None:
    if content:
        (tmp_path / "config.toml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError) as excinfo:
        load_settings(home=tmp_path, env=env)

    assert excinfo.value.exit_code == 2
