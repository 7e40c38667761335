"""Filesystem helpers."""

from __future__ import annotations

import json
import os
import stat
import tempfile
from pathlib import Path

__all__ = ["atomic_write_json", "atomic_write_text", "read_text_exact"]


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace.

    Line breaks are written exactly as given (no newline translation), so a
    CRLF changelog stays CRLF.
    An existing file keeps its permission bits; a new one gets the default
    mode for the current umask.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = _target_mode(path)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def _target_mode(path: Path) -> int:
    if path.exists():
        return stat.S_IMODE(path.stat().st_mode)
    # mkstemp always creates 0600; reproduce what open() would have given.
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def atomic_write_json(path: Path, data: object, *, ensure_ascii: bool) -> None:
    """Write data as 2-space indented JSON with a trailing newline."""
    atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=ensure_ascii) + "\n")


def read_text_exact(path: Path, *, encoding: str = "utf-8") -> str:
    """Read text without translating ``\\r\\n`` or ``\\r`` into ``\\n``."""
    with path.open("r", encoding=encoding, newline="") as handle:
        return handle.read()
