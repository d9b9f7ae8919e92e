# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from asdfw.paths import AsdfwLayout

InstallFactory = Callable[..., Path]


@pytest.fixture
def layout(tmp_path: Path) -> AsdfwLayout:
    """Return an empty asdfw home inside the test's temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    return AsdfwLayout(home)


@pytest.fixture
def install_tool(layout: AsdfwLayout) -> InstallFactory:
    """Return a factory creating ``installs/<tool>/<version>/<bin>/<exe>`` trees."""

    def _install(
        tool: str,
        version: str,
        *executables: str,
        bin_dir: str = "bin",
        script: str = "#!/bin/sh\nexit 0\n",
    ) -> Path:
        root = layout.installs_dir / tool / version
        bin_path = root / bin_dir
        bin_path.mkdir(parents=True, exist_ok=True)
        for name in executables:
            target = bin_path / name
            target.write_text(script, encoding="utf-8")
            target.chmod(0o755)
        return root

    return _install


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Drop ambient asdfw variables so the developer's setup never leaks in."""
    for name in list(os.environ):
        if name.startswith("ASDFW_"):
            monkeypatch.delenv(name, raising=False)
