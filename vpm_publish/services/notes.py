from __future__ import annotations

from pathlib import Path

from vpm_publish.changelog.parser import ChangelogEntry
from vpm_publish.core.errors import PublishError
from vpm_publish.core.result import Err, Ok, Result
from vpm_publish.platform.files import atomic_write_text

__all__ = ["render_release_notes", "write_release_notes"]


def render_release_notes(
    *,
    listing_url: str,
    entry: ChangelogEntry,
    sha256: str,
) -> str:
    lines: list[str] = []
    lines.append("# Installing")
    lines.append("")
    lines.append(f"Go to the [VCC Listing]({listing_url}) page and follow the instructions there.")
    lines.append("")
    lines.append("# Changelog")
    lines.append("")
    lines.append(f"## {entry.version} - {entry.date}")
    lines.append("")
    lines.append(entry.body.rstrip("\r\n"))
    lines.append("")
    lines.append("# Zip sha256 checksum")
    lines.append("")
    lines.append(f"`{sha256}`")
    return "\n".join(lines) + "\n"


def write_release_notes(
    path: Path,
    *,
    listing_url: str,
    entry: ChangelogEntry,
    sha256: str,
) -> Result[Path, PublishError]:
    text = render_release_notes(listing_url=listing_url, entry=entry, sha256=sha256)
    try:
        atomic_write_text(path, text)
    except OSError as e:
        return Err(
            PublishError(
                kind="io_failed",
                message=f"failed to write release notes: {e}",
                hint=str(path),
            )
        )
    return Ok(path)
