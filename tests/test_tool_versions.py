# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Tests for reading and writing .tool-versions files."""

from __future__ import annotations

from pathlib import Path

import pytest

from asdfw import tool_versions
from asdfw.errors import DeclarationNotFound, FormatError
from asdfw.tool_versions import env_var_name, parse_line, read_declarations, write_declaration


def test_parse_line_accepts_single_space() -> None:
    assert parse_line("hugo 0.120.0") == ("hugo", "0.120.0")


def test_parse_line_lowercases_tool_but_keeps_version() -> None:
    assert parse_line("Hugo Extended-0.120.0") == ("hugo", "Extended-0.120.0")


@pytest.mark.parametrize(
    ("line", "reason"),
    [
        (" hugo 1.0", "leading whitespace"),
        ("hugo 1.0 ", "trailing whitespace"),
        ("hugo", "missing version"),
        ("hugo  1.0", "more than one space between tool and version"),
        ("hugo 1.0 extra", "unexpected whitespace"),
    ],
)
def test_parse_line_rejects_malformed(line: str, reason: str) -> None:
    with pytest.raises(ValueError, match=reason):
        parse_line(line)


def test_env_var_name_sanitises_tool() -> None:
    assert env_var_name("hugo") == "ASDFW_HUGO_VERSION"
    assert env_var_name("my-tool.x") == "ASDFW_MY_TOOL_X_VERSION"


def test_read_declarations_skips_comments_and_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / ".tool-versions"
    path.write_text("# pinned\n\nhugo 0.120.0\nnodejs 20.1.0\n", encoding="utf-8")

    assert read_declarations(path) == {"hugo": "0.120.0", "nodejs": "20.1.0"}


def test_read_declarations_missing_file(tmp_path: Path) -> None:
    with pytest.raises(DeclarationNotFound):
        read_declarations(tmp_path / ".tool-versions")


def test_read_declarations_reports_line_number(tmp_path: Path) -> None:
    path = tmp_path / ".tool-versions"
    path.write_text("hugo 0.120.0\nnodejs  20\n", encoding="utf-8")

    with pytest.raises(FormatError) as excinfo:
        read_declarations(path)

    assert excinfo.value.line_number == 2
    assert excinfo.value.path == path
    assert excinfo.value.exit_code == 3
    assert "more than one space" in excinfo.value.message


def test_read_declarations_rejects_duplicates(tmp_path: Path) -> None:
    path = tmp_path / ".tool-versions"
    path.write_text("hugo 0.119.0\nHUGO 0.120.0\n", encoding="utf-8")

    with pytest.raises(FormatError, match="duplicate entry for hugo"):
        read_declarations(path)


def test_write_declaration_creates_file(tmp_path: Path) -> None:
    path = tmp_path / "nested" / ".tool-versions"

    previous = write_declaration(path, "Hugo", "0.120.0")

    assert previous is None
    assert path.read_text(encoding="utf-8") == "hugo 0.120.0\n"


def test_write_declaration_replaces_in_place(tmp_path: Path) -> None:
    path = tmp_path / ".tool-versions"
    path.write_text("# tools\nhugo 0.119.0\nnodejs 20.1.0\n", encoding="utf-8")

    previous = write_declaration(path, "hugo", "0.120.0")

    assert previous == "0.119.0"
    assert path.read_text(encoding="utf-8") == "# tools\nhugo 0.120.0\nnodejs 20.1.0\n"
    assert read_declarations(path) == {"hugo": "0.120.0", "nodejs": "20.1.0"}


def test_write_declaration_appends_new_tool(tmp_path: Path) -> None:
    path = tmp_path / ".tool-versions"
    path.write_text("hugo 0.120.0", encoding="utf-8")

    write_declaration(path, "nodejs", "20.1.0")

    assert path.read_text(encoding="utf-8") == "hugo 0.120.0\nnodejs 20.1.0\n"


def test_write_declaration_preserves_crlf(tmp_path: Path) -> None:
    path = tmp_path / ".tool-versions"
    path.write_bytes(b"hugo 0.119.0\r\nnodejs 20.1.0\r\n")

    write_declaration(path, "hugo", "0.120.0")

    assert path.read_bytes() == b"hugo 0.120.0\r\nnodejs 20.1.0\r\n"


def test_write_declaration_refuses_malformed_file(tmp_path: Path) -> None:
    path = tmp_path / ".tool-versions"
    original = "hugo  0.119.0\n"
    path.write_text(original, encoding="utf-8")

    with pytest.raises(FormatError):
        write_declaration(path, "nodejs", "20.1.0")

    assert path.read_text(encoding="utf-8") == original


def test_write_declaration_rejects_invalid_version(tmp_path: Path) -> None:
    path = tmp_path / ".tool-versions"

    with pytest.raises(FormatError):
        write_declaration(path, "hugo", "1.0 beta")

    assert not path.exists()


def test_write_declaration_leaves_original_when_replace_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / ".tool-versions"
    path.write_text("hugo 0.119.0\n", encoding="utf-8")

    def broken_replace(src: object, dst: object) -> None:
        raise OSError("disk full")

    monkeypatch.setattr(tool_versions.os, "replace", broken_replace)

    with pytest.raises(OSError, match="disk full"):
        write_declaration(path, "hugo", "0.120.0")

    assert path.read_text(encoding="utf-8") == "hugo 0.119.0\n"
    assert sorted(entry.name for entry in tmp_path.iterdir()) == [".tool-versions"]


def test_read_declarations_reports_invalid_utf8_line(tmp_path: Path) -> None:
    path = tmp_path / ".tool-versions"
    path.write_bytes(b"nodejs 20.1.0\r\nhugo 0.1\xff\n")

    with pytest.raises(FormatError) as excinfo:
        read_declarations(path)

    assert excinfo.value.line_number == 2
    assert excinfo.value.reason == "invalid UTF-8"
    assert excinfo.value.exit_code == 3


def test_read_declarations_splits_on_newlines_only(tmp_path: Path) -> None:
    path = tmp_path / ".tool-versions"
    path.write_text("hugo 0.120.0\x0bnodejs 20.1.0\n", encoding="utf-8")

    with pytest.raises(FormatError) as excinfo:
        read_declarations(path)

    assert excinfo.value.line_number == 1
    assert excinfo.value.reason == "unexpected whitespace"


def test_read_declarations_accepts_crlf(tmp_path: Path) -> None:
    path = tmp_path / ".tool-versions"
    path.write_bytes(b"# pinned\r\n\r\nhugo 0.120.0\r\n")

    assert read_declarations(path) == {"hugo": "0.120.0"}


def test_write_declaration_rejects_comment_tool_name(tmp_path: Path) -> None:
    path = tmp_path / ".tool-versions"
    path.write_text("hugo 0.120.0\n", encoding="utf-8")

    with pytest.raises(FormatError, match="cannot start with '#'"):
        write_declaration(path, "#foo", "1")

    assert path.read_text(encoding="utf-8") == "hugo 0.120.0\n"
