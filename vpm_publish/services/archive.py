"""Package archive building and checksums.

The archive holds every file of the package tree except git bookkeeping
and whatever ``.vpmignore`` excludes. Entry names are POSIX paths relative
to the package root.

``.vpmignore`` holds one glob per line; ``#`` comments and blank lines are
skipped. A pattern excludes a file when it matches the file's relative path
or one of its parent directories. Matching is per path segment: ``*`` and
``?`` stay inside one segment and ``**`` spans any number of segments.
Comparison ignores case. A leading ``/`` anchors nothing extra since all
patterns are relative to the package root.
"""

from __future__ import annotations

import fnmatch
import hashlib
import re
from pathlib import Path
from zipfile import ZIP_DEFLATED, ZipFile

from vpm_publish.core.config import IGNORE_FILE

__all__ = [
    "ALWAYS_SKIPPED_FILES",
    "collect_package_files",
    "format_checksum_tag_message",
    "is_ignored",
    "load_ignore_patterns",
    "open_archive",
    "parse_checksum_tag_message",
    "sha256_file",
    "write_archive",
]

ALWAYS_SKIPPED_FILES = frozenset({".gitignore", ".gitkeep", ".git", IGNORE_FILE})
_SKIPPED_DIRS = frozenset({".git"})

_CHECKSUM_OPEN = "<zipSHA256>"
_CHECKSUM_CLOSE = "</zipSHA256>"
_CHECKSUM_RE = re.compile(r"<zipSHA256>([0-9a-f]{64})</zipSHA256>")


def load_ignore_patterns(package_root: Path) -> list[str]:
    path = package_root / IGNORE_FILE
    if not path.is_file():
        return []
    patterns: list[str] = []
    for line in path.read_text(encoding="utf-8-sig").splitlines():
        if line.startswith("#") or not line.strip():
            continue
        pattern = line.strip().lstrip("/").rstrip("/")
        if pattern:
            patterns.append(pattern)
    return patterns


def _candidates(rel_path: str) -> list[str]:
    # The path itself plus each parent directory ("a/b/c" -> "a", "a/b", "a/b/c").
    parts = rel_path.split("/")
    return ["/".join(parts[: i + 1]) for i in range(len(parts))]


def _match_segments(parts: list[str], pattern_parts: list[str]) -> bool:
    if not pattern_parts:
        return not parts
    head, rest = pattern_parts[0], pattern_parts[1:]
    if head == "**":
        return any(_match_segments(parts[i:], rest) for i in range(len(parts) + 1))
    return bool(parts) and fnmatch.fnmatchcase(parts[0].casefold(), head.casefold())


def _matches(candidate: str, pattern: str) -> bool:
    return _match_segments(candidate.split("/"), pattern.split("/"))


def is_ignored(rel_path: str, patterns: list[str]) -> bool:
    """Whether a package-relative POSIX path is excluded by any pattern."""
    return any(_matches(c, p) for c in _candidates(rel_path) for p in patterns)


def collect_package_files(package_root: Path, patterns: list[str]) -> list[tuple[Path, str]]:
    """Files to archive as (source path, entry name), in a stable order.

    Files of a directory come before its subdirectories; both sorted by name.
    """
    out: list[tuple[Path, str]] = []

    def walk(directory: Path, prefix: str) -> None:
        entries = sorted(directory.iterdir(), key=lambda p: p.name)
        for p in entries:
            if p.is_dir():
                continue
            if p.name in ALWAYS_SKIPPED_FILES:
                continue
            entry_name = f"{prefix}{p.name}"
            if patterns and is_ignored(entry_name, patterns):
                continue
            out.append((p, entry_name))
        for p in entries:
            if not p.is_dir() or p.name in _SKIPPED_DIRS:
                continue
            walk(p, f"{prefix}{p.name}/")

    walk(package_root, "")
    return out


def open_archive(zip_path: Path) -> ZipFile:
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    # Package files may carry mtimes before 1980, which zip cannot represent.
    return ZipFile(zip_path, "w", compression=ZIP_DEFLATED, strict_timestamps=False)


def write_archive(archive: ZipFile, files: list[tuple[Path, str]]) -> None:
    """Add files to an open archive, then close it so the file is complete."""
    for src, arc in files:
        archive.write(src, arcname=arc)
    archive.close()


def sha256_file(path: Path) -> str:
    """Lowercase hex SHA-256 of a file."""
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def format_checksum_tag_message(sha256: str) -> str:
    return f"{_CHECKSUM_OPEN}{sha256}{_CHECKSUM_CLOSE}"


def parse_checksum_tag_message(message: str) -> str | None:
    """Checksum stored in a tag annotation, or None when there is none."""
    m = _CHECKSUM_RE.search(message)
    return m.group(1) if m else None
