"""Changelog draft generation from git history.

A draft is a new top entry for the manifest's current version, filled with
the commit log since the previous release and empty Common Changelog
categories to sort those commits into. The existing changelog is kept as
is: the new entry goes right below ``# Changelog`` and the new link
reference goes in front of the existing link-reference block at the end.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from vpm_publish.changelog.parser import (
    CHANGELOG_TITLE,
    COMMON_CHANGELOG_URL,
    detect_line_break,
    parse_top_entry,
    split_lines,
)
from vpm_publish.core.errors import PublishError
from vpm_publish.core.result import Err, Ok, Result
from vpm_publish.manifest.model import PackageManifest
from vpm_publish.manifest.validate import RELEASE_HOST, UrlMismatch, match_download_url

__all__ = [
    "ChangelogDraft",
    "DraftPlan",
    "commit_log_format",
    "find_entry_insert_position",
    "find_link_insert_position",
    "format_commit_lines",
    "plan_draft",
    "synthesize_draft",
]

DRAFT_NOTE = (
    "_// TODO: Arrange the changes into their appropriate categories, combine them, "
    f"or remove them. Use {COMMON_CHANGELOG_URL} for reference. For example, "
    "the **indented list entries** for commit message bodies are **malformed**, "
    "they are only included to more easily tell what happened in the commits._"
)

DRAFT_SECTIONS = ("Changed", "Added", "Removed", "Fixed")

_BREAK_RUN_RE = re.compile(r"(?:\r\n|\r|\n){2,}")


@dataclass(frozen=True, slots=True)
class DraftPlan:
    """How a draft is merged into an existing changelog.

    Attributes:
        line_break: Break style used for every inserted line.
        last_version: Version of the existing top entry, None for a new file.
        part1: Existing content between the title block and the link block.
        part2: The existing link-reference block through the end of file.
        has_links: Whether part2 holds any link-reference lines.
    """

    line_break: str
    last_version: str | None
    part1: str
    part2: str
    has_links: bool

    @property
    def is_update(self) -> bool:
        return self.last_version is not None


@dataclass(frozen=True, slots=True)
class ChangelogDraft:
    text: str
    commit_message: str


def find_entry_insert_position(document: str) -> int | None:
    """Offset right after ``# Changelog`` and its single blank line.

    One leading line break before the title is allowed.
    """
    lines = split_lines(document)
    idx = 1 if lines and lines[0].text == "" else 0
    if idx + 1 >= len(lines):
        return None
    title, blank = lines[idx], lines[idx + 1]
    if title.text != CHANGELOG_TITLE or blank.text != "" or not blank.brk:
        return None
    return blank.next_start


def find_link_insert_position(document: str) -> tuple[int, bool] | None:
    """Offset where the trailing ``[version]: url`` block starts.

    Scans from the end of the document. The document must end with exactly
    one line break. Without any link-reference lines the position is the end
    of the document.

    Returns:
        (offset, has_links), or None if the end of the document is malformed.
    """
    lines = split_lines(document)
    if not lines or not lines[-1].brk or lines[-1].text == "":
        return None
    idx = len(lines)
    while idx > 0 and lines[idx - 1].text.startswith("["):
        idx -= 1
    if idx == len(lines):
        return (len(document), False)
    return (lines[idx].start, True)


def plan_draft(
    existing: str | None, manifest: PackageManifest
) -> Result[DraftPlan, PublishError]:
    """Work out insertion points and the previous version for a draft."""
    if existing is None:
        return Ok(DraftPlan(line_break="\n", last_version=None, part1="", part2="", has_links=False))

    parsed = parse_top_entry(existing)
    first = find_entry_insert_position(existing)
    second = find_link_insert_position(existing)
    if isinstance(parsed, Err) or first is None or second is None or second[0] < first:
        hint = parsed.error.hint if isinstance(parsed, Err) else None
        return Err(
            PublishError(
                kind="invalid_changelog",
                message=(
                    f"The changelog is malformed, please refer to {COMMON_CHANGELOG_URL} "
                    "and verify your changelog. Note that this program requires exactly "
                    "1 blank line at both the top and bottom of the changelog file."
                ),
                hint=hint,
            )
        )

    last_version = parsed.value.entry.version
    if last_version == manifest.version:
        return Err(
            PublishError(
                kind="invalid_changelog",
                message=(
                    "The changelog already contains an entry for the current version "
                    f"{manifest.version}. Cannot generate the same version entry twice."
                ),
            )
        )

    position, has_links = second
    return Ok(
        DraftPlan(
            line_break=detect_line_break(existing),
            last_version=last_version,
            part1=existing[first:position],
            part2=existing[position:],
            has_links=has_links,
        )
    )


def commit_log_format(user: str, repo: str) -> str:
    """``git log --pretty`` format: a bullet per commit, then its body."""
    commit_url = f"{RELEASE_HOST}/{user}/{repo}/commit/%H"
    return f"--pretty=- %s ([`%h`]({commit_url}))%n%b"


def format_commit_lines(lines: list[str], line_break: str) -> str:
    """Turn raw ``git log`` lines into indented changelog list entries.

    Lines starting with ``-`` are the commit subject bullets and stay as
    they are. Other non-blank lines come from commit bodies: indented ones
    get two more spaces, the rest become nested ``  - `` entries. Blank
    lines (between commits or inside bodies) are dropped.
    """
    out: list[str] = []
    for line in lines:
        if not line:
            out.append(line)
        elif line[0].isspace():
            out.append("  " + line)
        elif line[0] == "-":
            out.append(line)
        else:
            out.append("  - " + line)
    text = _BREAK_RUN_RE.sub(line_break, line_break.join(out))
    if text and not text.endswith(line_break):
        text += line_break
    return text


def _render(
    plan: DraftPlan,
    manifest: PackageManifest,
    log_text: str,
    expected_date: str,
    user: str,
    repo: str,
) -> str:
    lf = plan.line_break
    version = manifest.version
    parts = [
        lf,
        CHANGELOG_TITLE + lf,
        lf,
        f"## [{version}] - {expected_date}" + lf,
        lf,
        DRAFT_NOTE + lf,
        lf,
        "### Temp Draft" + lf,
        lf,
        log_text,
        lf,
    ]
    for section in DRAFT_SECTIONS:
        parts.append(f"### {section}" + lf)
        parts.append(lf)
    parts.append(plan.part1)
    if plan.is_update and not plan.has_links:
        # Keep a blank line between the last entry and the new link block.
        parts.append(lf)
    parts.append(f"[{version}]: {RELEASE_HOST}/{user}/{repo}/releases/tag/v{version}" + lf)
    parts.append(plan.part2)
    return "".join(parts)


def synthesize_draft(
    existing: str | None,
    manifest: PackageManifest,
    commit_lines: list[str],
    expected_date: str,
) -> Result[ChangelogDraft, PublishError]:
    """Build a changelog with a fresh draft entry for the manifest's version.

    Args:
        existing: Current changelog text, or None when there is no file yet.
        manifest: Validated manifest; its url provides the GitHub user/repo.
        commit_lines: Output lines of ``git log`` in commit_log_format, for
            commits since the previous release (or all commits).
        expected_date: The run's UTC date for the new header.

    Returns:
        Ok(ChangelogDraft) with the new document and a suggested commit
        message, or Err(PublishError) if the existing changelog cannot be
        merged into.
    """
    planned = plan_draft(existing, manifest)
    if isinstance(planned, Err):
        return planned
    plan = planned.value

    url_match = match_download_url(manifest.url)
    if isinstance(url_match, UrlMismatch):
        return Err(
            PublishError(
                kind="invalid_manifest",
                message=(
                    f'The package.json "url" must match the pattern "{url_match.pattern}", '
                    f'got "{url_match.value}".'
                ),
            )
        )

    log_text = format_commit_lines(commit_lines, plan.line_break)
    text = _render(plan, manifest, log_text, expected_date, url_match.user, url_match.repo)
    verb = "Update" if plan.is_update else "Add"
    return Ok(
        ChangelogDraft(
            text=text,
            commit_message=f"{verb} changelog for `v{manifest.version}`",
        )
    )
