"""Top-entry parser for ``CHANGELOG.md``.

The expected layout (https://common-changelog.org, with one blank line at
each boundary):

    # Changelog
    <blank>
    ## [1.0.0] - 2024-01-01
    <blank>
    Body lines, blank lines allowed in between.

    ## [0.9.0] - 2023-12-01
    ...

    [1.0.0]: https://github.com/user/repo/releases/tag/v1.0.0

The body of the top entry ends at the next line starting with ``## `` or at
the first link-reference line (starting with ``[``). Line breaks may be
``\\r\\n``, ``\\r`` or ``\\n``; offsets returned here index the original text.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import UTC, datetime

from vpm_publish.core.errors import PublishError
from vpm_publish.core.result import Err, Ok, Result
from vpm_publish.manifest.model import PackageManifest
from vpm_publish.output.console import ConsoleProtocol

__all__ = [
    "CHANGELOG_TITLE",
    "COMMON_CHANGELOG_URL",
    "ChangelogEntry",
    "Line",
    "ParsedTopEntry",
    "detect_line_break",
    "is_iso_date",
    "parse_header",
    "parse_top_entry",
    "split_lines",
    "utc_today",
    "validate_top_entry",
]

CHANGELOG_TITLE = "# Changelog"
COMMON_CHANGELOG_URL = "https://common-changelog.org"

_MALFORMED = (
    f"The changelog is malformed, please refer to {COMMON_CHANGELOG_URL} "
    "and verify your changelog."
)


@dataclass(frozen=True, slots=True)
class Line:
    """One line of a document.

    Attributes:
        text: Line content without its break.
        start: Offset of the first character.
        end: Offset just past the content (where the break begins).
        brk: The break that ends the line; empty for a final unterminated line.
    """

    text: str
    start: int
    end: int
    brk: str

    @property
    def next_start(self) -> int:
        return self.end + len(self.brk)


@dataclass(frozen=True, slots=True)
class ChangelogEntry:
    version: str
    date: str
    # Everything after the header's blank line, up to the next header or
    # link-reference block, without trailing blank lines.
    body: str


@dataclass(frozen=True, slots=True)
class ParsedTopEntry:
    """The top entry plus where its pieces sit in the source document."""

    entry: ChangelogEntry
    header_start: int
    header_end: int
    body_start: int
    body_end: int


def split_lines(text: str) -> list[Line]:
    """Split text into lines, treating ``\\r\\n``, ``\\r`` and ``\\n`` as breaks.

    A trailing break does not produce an extra empty line.
    """
    lines: list[Line] = []
    pos = 0
    size = len(text)
    while pos < size:
        end = pos
        while end < size and text[end] not in "\r\n":
            end += 1
        if end >= size:
            lines.append(Line(text[pos:end], pos, end, ""))
            break
        brk = "\r\n" if text.startswith("\r\n", end) else text[end]
        lines.append(Line(text[pos:end], pos, end, brk))
        pos = end + len(brk)
    return lines


def detect_line_break(text: str | None) -> str:
    """Most common line break in text; ties go to the one seen first.

    Returns ``\\n`` for None or text without any break.
    """
    if text is None:
        return "\n"
    counts = Counter(line.brk for line in split_lines(text) if line.brk)
    if not counts:
        return "\n"
    # Counter iterates in first-seen order and max() keeps the first maximum.
    return max(counts, key=counts.__getitem__)


def parse_header(text: str) -> tuple[str, str] | None:
    """Parse ``## [<version>] - <date>`` into (version, date)."""
    prefix = "## ["
    if not text.startswith(prefix):
        return None
    close = text.find("]", len(prefix))
    if close <= len(prefix):
        return None
    version = text[len(prefix) : close]
    rest = text[close + 1 :]
    separator = " - "
    if not rest.startswith(separator) or len(rest) == len(separator):
        return None
    return (version, rest[len(separator) :])


def _ends_body(text: str) -> bool:
    return text.startswith("## ") or text.startswith("[")


def _malformed(reason: str) -> Err[PublishError]:
    return Err(PublishError(kind="invalid_changelog", message=_MALFORMED, hint=reason))


def parse_top_entry(document: str) -> Result[ParsedTopEntry, PublishError]:
    """Extract the most recent entry and check the document's boundaries.

    Returns:
        Ok(ParsedTopEntry), or Err(PublishError) naming the structural
        problem in its hint.
    """
    lines = split_lines(document)
    # One leading line break before the title is tolerated, no more.
    i = 1 if lines and lines[0].text == "" else 0

    if i >= len(lines) or lines[i].text != CHANGELOG_TITLE:
        return _malformed(f"The changelog must start with '{CHANGELOG_TITLE}'.")

    blank = i + 1
    header_idx = i + 2
    if blank >= len(lines) or lines[blank].text != "":
        return _malformed(f"Exactly one blank line must follow '{CHANGELOG_TITLE}', found none.")
    if header_idx >= len(lines):
        return _malformed("The changelog has no entries.")
    if lines[header_idx].text == "":
        return _malformed(f"Exactly one blank line must follow '{CHANGELOG_TITLE}', found more.")

    header = lines[header_idx]
    parsed_header = parse_header(header.text)
    if parsed_header is None:
        return _malformed(
            f"The top entry header must look like '## [<version>] - <date>', got '{header.text}'."
        )
    version, date = parsed_header

    blank = header_idx + 1
    first = header_idx + 2
    if blank >= len(lines) or lines[blank].text != "":
        return _malformed("Exactly one blank line must follow the top entry header, found none.")
    if first >= len(lines):
        return _malformed("The top entry has no content.")
    if lines[first].text == "":
        return _malformed("Exactly one blank line must follow the top entry header, found more.")

    # The first body line is always content; later lines may end the body.
    stop = first + 1
    while stop < len(lines) and not _ends_body(lines[stop].text):
        stop += 1
    last = stop - 1
    while last > first and lines[last].text == "":
        last -= 1

    body_start = lines[first].start
    body_end = lines[last].next_start
    return Ok(
        ParsedTopEntry(
            entry=ChangelogEntry(version=version, date=date, body=document[body_start:body_end]),
            header_start=header.start,
            header_end=header.end,
            body_start=body_start,
            body_end=body_end,
        )
    )


def is_iso_date(text: str) -> bool:
    """True for the ``YYYY-MM-DD`` shape (digits only, no calendar check)."""
    if len(text) != 10 or text[4] != "-" or text[7] != "-":
        return False
    digits = text[:4] + text[5:7] + text[8:]
    return digits.isascii() and digits.isdigit()


def utc_today() -> str:
    """Current UTC date as ``YYYY-MM-DD``. Capture once per run."""
    return datetime.now(UTC).strftime("%Y-%m-%d")


def validate_top_entry(
    document: str,
    manifest: PackageManifest,
    expected_date: str,
    *,
    console: ConsoleProtocol | None = None,
) -> Result[ChangelogEntry, PublishError]:
    """Check that the top entry is the one being published today.

    Args:
        document: Whole changelog text.
        manifest: Manifest being published; its version must head the changelog.
        expected_date: The run's UTC date (see utc_today).
        console: Receives a progress line; None validates silently.
    """
    if console is not None:
        console.info("Validating the top changelog entry in CHANGELOG.md, its version and date.")

    parsed = parse_top_entry(document)
    if isinstance(parsed, Err):
        return parsed
    entry = parsed.value.entry

    if entry.version != manifest.version:
        return Err(
            PublishError(
                kind="invalid_changelog",
                message=(
                    f"The version of the top entry in the changelog is '{entry.version}' "
                    f"while the version in the package.json is '{manifest.version}', "
                    "which is a mismatch."
                ),
                hint=(
                    "There's a good chance you forgot to add a changelog entry for this "
                    "version. Run 'vpm-publish changelog-draft' to generate one."
                ),
            )
        )

    if not is_iso_date(entry.date):
        return Err(
            PublishError(
                kind="invalid_changelog",
                message=(
                    f"The date for the top entry in the changelog is '{entry.date}' "
                    "which does not match the ISO-8601 format YYYY-MM-DD."
                ),
            )
        )

    if entry.date != expected_date:
        return Err(
            PublishError(
                kind="invalid_changelog",
                message=(
                    f"The date for the top entry in the changelog is '{entry.date}' "
                    f"which does not match the expected date '{expected_date}'."
                ),
                hint=(
                    "Changelog dates are in UTC, so the change from one day to the next "
                    "most likely isn't at your midnight. If you generated the entry a few "
                    "minutes ago, that is probably what happened. Update the date in the "
                    "changelog, then run 'git add CHANGELOG.md' and "
                    "'git commit --amend --no-edit'."
                ),
            )
        )

    return Ok(entry)
