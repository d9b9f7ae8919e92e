# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for the process launch helpers."""

from __future__ import annotations

import os
import signal
from pathlib import Path

import pytest

from asdfw import process_utils
from asdfw.errors import LaunchFailed
from asdfw.process_utils import exec_command, normalise_returncode, spawn_command

posix_only = pytest.mark.skipif(os.name != "posix", reason="requires a POSIX shell")


def _script(path: Path, body: str) -> Path:
    path.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
    path.chmod(0o755)
    return path


def test_normalise_returncode() -> None:
    assert normalise_returncode(0) == 0
    assert normalise_returncode(3) == 3
    assert normalise_returncode(-15) == 143


@posix_only
def test_spawn_returns_exit_code_and_uses_cwd(tmp_path: Path) -> None:
    script = _script(tmp_path / "tool", 'pwd > "$OUT"\nexit 3')
    workdir = tmp_path / "work"
    workdir.mkdir()
    output = tmp_path / "pwd.txt"

    code = spawn_command([str(script)], env={"OUT": str(output), "PATH": os.defpath}, cwd=workdir)

    assert code == 3
    assert Path(output.read_text(encoding="utf-8").strip()).resolve() == workdir.resolve()


@posix_only
def test_spawn_reports_signal_deaths(tmp_path: Path) -> None:
    script = _script(tmp_path / "tool", "kill -TERM $$")

    assert spawn_command([str(script)], env={"PATH": os.defpath}) == 128 + signal.SIGTERM


@posix_only
def test_spawn_restores_signal_handlers(tmp_path: Path) -> None:
    script = _script(tmp_path / "tool", "exit 0")
    before = signal.getsignal(signal.SIGTERM)

    spawn_command([str(script)], env={"PATH": os.defpath})

    assert signal.getsignal(signal.SIGTERM) == before


def test_spawn_missing_executable_raises(tmp_path: Path) -> None:
    with pytest.raises(LaunchFailed) as excinfo:
        spawn_command([str(tmp_path / "missing")], env={})

    assert excinfo.value.exit_code == 126


@posix_only
def test_exec_wraps_os_errors(tmp_path: Path) -> None:
    not_executable = tmp_path / "tool"
    not_executable.write_text("#!/bin/sh\n", encoding="utf-8")
    not_executable.chmod(0o644)

    with pytest.raises(LaunchFailed):
        exec_command([str(not_executable)], env={})


def test_exec_passes_argv_and_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, list[str], dict[str, str]]] = []

    def fake_execve(path: str, argv: list[str], env: dict[str, str]) -> None:
        calls.append((path, argv, env))
        raise SystemExit(0)

    monkeypatch.setattr(process_utils.os, "execve", fake_execve)
    monkeypatch.chdir(tmp_path)

    with pytest.raises(SystemExit):
        exec_command(["/opt/hugo", "--", ""], env={"A": "1"}, cwd=tmp_path)

    assert calls == [("/opt/hugo", ["/opt/hugo", "--", ""], {"A": "1"})]
