from __future__ import annotations

import json
import os
import stat
from pathlib import Path

import pytest

from vpm_publish.platform.files import atomic_write_json, atomic_write_text, read_text_exact


def test_atomic_write_text_creates_parent(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "file.txt"
    atomic_write_text(path, "hello")
    assert path.read_text(encoding="utf-8") == "hello"


def test_atomic_write_text_keeps_line_breaks(tmp_path: Path) -> None:
    path = tmp_path / "CHANGELOG.md"
    atomic_write_text(path, "a\r\nb\rc\n")
    assert path.read_bytes() == b"a\r\nb\rc\n"
    assert read_text_exact(path) == "a\r\nb\rc\n"


def test_atomic_write_text_leaves_no_temp_files(tmp_path: Path) -> None:
    atomic_write_text(tmp_path / "out.txt", "x")
    assert [p.name for p in tmp_path.iterdir()] == ["out.txt"]


def test_atomic_write_json_ascii(tmp_path: Path) -> None:
    path = tmp_path / "vcc.json"
    atomic_write_json(path, {"name": "Café", "range": ">=1.0.0"}, ensure_ascii=True)

    text = path.read_text(encoding="utf-8")
    assert "\\u00e9" in text
    assert text.endswith("}\n")
    assert json.loads(text) == {"name": "Café", "range": ">=1.0.0"}


posix_only = pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


@posix_only
@pytest.mark.parametrize("mode", [0o644, 0o640, 0o755])
def test_atomic_write_text_keeps_existing_mode(tmp_path: Path, mode: int) -> None:
    path = tmp_path / "package.json"
    path.write_text("{}\n", encoding="utf-8")
    path.chmod(mode)

    atomic_write_text(path, '{"name": "Foo"}\n')

    assert _mode(path) == mode
    assert path.read_text(encoding="utf-8") == '{"name": "Foo"}\n'


@posix_only
def test_atomic_write_text_new_file_follows_umask(tmp_path: Path) -> None:
    previous = os.umask(0o027)
    try:
        atomic_write_text(tmp_path / "vcc.json", "{}\n")
    finally:
        os.umask(previous)

    assert _mode(tmp_path / "vcc.json") == 0o640
