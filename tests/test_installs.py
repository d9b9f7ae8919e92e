# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for enumerating and locating installed tool versions."""

from __future__ import annotations

from pathlib import Path

import pytest

from asdfw.errors import ConfigError
from asdfw.installs import InstallationIndex, scan
from asdfw.paths import AsdfwLayout


def _write_plugin(layout: AsdfwLayout, tool: str, content: str) -> None:
    plugin_dir = layout.plugins_dir / tool
    plugin_dir.mkdir(parents=True, exist_ok=True)
    (plugin_dir / "plugin.yaml").write_text(content, encoding="utf-8")


def test_scan_is_sorted_and_includes_empty_versions(layout: AsdfwLayout, install_tool) -> None:
    install_tool("nodejs", "20.1.0", "node", "npm")
    install_tool("hugo", "0.120.0", "hugo")
    install_tool("hugo", "0.119.0", "hugo")
    install_tool("hugo", "0.121.0")

    records = InstallationIndex.from_layout(layout).scan()

    assert [(record.tool, record.version) for record in records] == [
        ("hugo", "0.119.0"),
        ("hugo", "0.120.0"),
        ("hugo", "0.121.0"),
        ("nodejs", "20.1.0"),
    ]
    assert records[2].executables == frozenset()
    assert records[3].executables == frozenset({"node", "npm"})


def test_scan_of_missing_install_root_is_empty(tmp_path: Path) -> None:
    assert scan(tmp_path / "missing") == ()


def test_scan_skips_hidden_entries(layout: AsdfwLayout, install_tool) -> None:
    root = install_tool("hugo", "0.120.0", "hugo", ".hidden")
    (layout.installs_dir / ".cache").mkdir()
    (root.parent / ".partial").mkdir()

    records = InstallationIndex.from_layout(layout).scan()

    assert [(record.tool, record.version, record.executables) for record in records] == [
        ("hugo", "0.120.0", frozenset({"hugo"})),
    ]


def test_locate_returns_bin_dir(layout: AsdfwLayout, install_tool) -> None:
    root = install_tool("hugo", "0.120.0", "hugo")
    index = InstallationIndex.from_layout(layout)

    location = index.locate("HUGO", "0.120.0")

    assert location is not None
    assert location.root == root
    assert location.bin_dir == root / "bin"
    assert location.find_executable("hugo") == root / "bin" / "hugo"
    assert location.find_executable("hugo-extended") is None


@pytest.mark.parametrize("version", ["0.999.0", "", ".", "..", "../nodejs", "0.120.0/bin"])
def test_locate_reports_not_installed(layout: AsdfwLayout, install_tool, version: str) -> None:
    install_tool("hugo", "0.120.0", "hugo")
    install_tool("nodejs", "20.1.0", "node")

    assert InstallationIndex.from_layout(layout).locate("hugo", version) is None


def test_locate_unknown_tool(layout: AsdfwLayout) -> None:
    assert InstallationIndex.from_layout(layout).locate("hugo", "0.120.0") is None


def test_owners_and_versions(layout: AsdfwLayout, install_tool) -> None:
    install_tool("kubectx", "0.9.5", "kubectx", "kubens")
    install_tool("hugo", "0.120.0", "hugo")
    install_tool("hugo", "0.119.0", "hugo")
    index = InstallationIndex.from_layout(layout)

    assert index.owners("kubens") == ("kubectx",)
    assert index.owners("missing") == ()
    assert index.versions("hugo") == ("0.119.0", "0.120.0")
    assert index.executables() == {"hugo": ("hugo",), "kubectx": ("kubectx",), "kubens": ("kubectx",)}


def test_plugin_bin_dirs_are_searched_in_order(layout: AsdfwLayout, install_tool) -> None:
    install_tool("nodejs", "20.1.0", "node", bin_dir="bin")
    root = install_tool("nodejs", "20.1.0", "corepack", bin_dir="lib/node_modules/.bin")
    _write_plugin(layout, "nodejs", "bin_dirs:\n  - bin\n  - lib/node_modules/.bin\n")
    index = InstallationIndex.from_layout(layout)

    location = index.locate("nodejs", "20.1.0")

    assert location is not None
    assert location.bin_dirs == (root / "bin", root / "lib" / "node_modules" / ".bin")
    assert location.find_executable("corepack") == root / "lib" / "node_modules" / ".bin" / "corepack"
    assert index.scan()[0].executables == frozenset({"node", "corepack"})


def test_plugin_env_vars_render(layout: AsdfwLayout, install_tool) -> None:
    root = install_tool("golang", "1.22.0", "go", bin_dir="go/bin")
    _write_plugin(
        layout,
        "golang",
        "bin_dirs: [go/bin]\n"
        "env_vars:\n"
        "  - name: GOROOT\n"
        "    relative_install_path: go\n"
        "  - name: GOFLAGS\n"
        "    value: -mod=mod\n"
        "    overriding_name: ASDFW_GOFLAGS\n",
    )
    location = InstallationIndex.from_layout(layout).locate("golang", "1.22.0")
    assert location is not None

    env = location.environment({"PATH": "/usr/bin"})
    overridden = location.environment({"ASDFW_GOFLAGS": "-mod=vendor"})

    assert env == {"PATH": "/usr/bin", "GOROOT": str(root / "go"), "GOFLAGS": "-mod=mod"}
    assert overridden["GOFLAGS"] == "-mod=vendor"


@pytest.mark.parametrize(
    "content",
    [
        "bin_dirs: [/usr/bin]\n",
        "bin_dirs: [../other]\n",
        "env_vars:\n  - name: X\n",
        "unknown: 1\n",
        "- not a mapping\n",
        "bin_dirs: [unclosed\n",
    ],
)
def test_invalid_plugin_raises_config_error(layout: AsdfwLayout, install_tool, content: str) -> None:
    install_tool("hugo", "0.120.0", "hugo")
    _write_plugin(layout, "hugo", content)

    with pytest.raises(ConfigError):
        InstallationIndex.from_layout(layout).locate("hugo", "0.120.0")


def test_empty_plugin_uses_defaults(layout: AsdfwLayout, install_tool) -> None:
    root = install_tool("hugo", "0.120.0", "hugo")
    _write_plugin(layout, "hugo", "bin_dirs: []\n")

    location = InstallationIndex.from_layout(layout).locate("hugo", "0.120.0")

    assert location is not None
    assert location.bin_dirs == (root / "bin",)
