from __future__ import annotations

from vpm_publish.changelog.draft import (
    DRAFT_SECTIONS,
    commit_log_format,
    find_entry_insert_position,
    find_link_insert_position,
    format_commit_lines,
    plan_draft,
    synthesize_draft,
)
from vpm_publish.changelog.parser import parse_top_entry
from vpm_publish.core.result import Err, Ok
from vpm_publish.manifest.model import PackageManifest, manifest_from_dict

from .._support import CHANGELOG_TEXT, REPO_URL, manifest_data

COMMIT_LINES = [
    f"- Fix zip layout ([`abc1234`]({REPO_URL}/commit/abc1234def))",
    "Files were nested one level too deep.",
    "  indented detail",
    "",
    f"- Add ignore file support ([`def5678`]({REPO_URL}/commit/def5678abc))",
    "",
]


def _manifest(version: str) -> PackageManifest:
    return manifest_from_dict(manifest_data(version=version)).unwrap()


def test_same_version_twice_is_refused() -> None:
    result = synthesize_draft(CHANGELOG_TEXT, _manifest("1.0.0"), COMMIT_LINES, "2024-02-02")
    assert isinstance(result, Err)
    assert "Cannot generate the same version entry twice" in result.error.message


def test_update_keeps_existing_content_verbatim() -> None:
    plan = plan_draft(CHANGELOG_TEXT, _manifest("1.0.1")).unwrap()
    assert plan.last_version == "1.0.0"
    assert plan.has_links
    assert plan.part1 == "## [1.0.0] - 2024-01-01\n\nInitial release.\n\n"
    assert plan.part2 == f"[1.0.0]: {REPO_URL}/releases/tag/v1.0.0\n"

    draft = synthesize_draft(CHANGELOG_TEXT, _manifest("1.0.1"), COMMIT_LINES, "2024-02-02")

    assert isinstance(draft, Ok)
    text = draft.value.text
    assert plan.part1 in text
    assert text.endswith(
        f"[1.0.1]: {REPO_URL}/releases/tag/v1.0.1\n" + plan.part2
    )
    assert draft.value.commit_message == "Update changelog for `v1.0.1`"


def test_draft_parses_as_new_top_entry() -> None:
    text = synthesize_draft(
        CHANGELOG_TEXT, _manifest("1.0.1"), COMMIT_LINES, "2024-02-02"
    ).unwrap().text

    entry = parse_top_entry(text).unwrap().entry

    assert entry.version == "1.0.1"
    assert entry.date == "2024-02-02"
    assert "### Temp Draft" in entry.body
    for section in DRAFT_SECTIONS:
        assert f"### {section}\n" in entry.body
    assert "  - Files were nested one level too deep.\n" in entry.body


def test_fresh_changelog() -> None:
    draft = synthesize_draft(None, _manifest("1.0.0"), COMMIT_LINES, "2024-01-01").unwrap()

    assert draft.commit_message == "Add changelog for `v1.0.0`"
    assert draft.text.endswith(
        "### Fixed\n\n" f"[1.0.0]: {REPO_URL}/releases/tag/v1.0.0\n"
    )
    assert parse_top_entry(draft.text).unwrap().entry.version == "1.0.0"


def test_existing_without_links_gets_separating_blank_line() -> None:
    existing = "# Changelog\n\n## [1.0.0] - 2024-01-01\n\nInitial release.\n"

    text = synthesize_draft(existing, _manifest("1.0.1"), [], "2024-02-02").unwrap().text

    assert text.endswith(
        "Initial release.\n\n" f"[1.0.1]: {REPO_URL}/releases/tag/v1.0.1\n"
    )


def test_crlf_document_uses_crlf_for_inserted_lines() -> None:
    existing = CHANGELOG_TEXT.replace("\n", "\r\n")

    text = synthesize_draft(existing, _manifest("1.0.1"), COMMIT_LINES, "2024-02-02").unwrap().text

    assert "\n" not in text.replace("\r\n", "")


def test_malformed_end_of_file_is_rejected() -> None:
    existing = CHANGELOG_TEXT + "\n"
    result = plan_draft(existing, _manifest("1.0.1"))
    assert isinstance(result, Err)
    assert "exactly 1 blank line" in result.error.message


def test_leading_line_breaks_agree_with_the_parser() -> None:
    one = "\n" + CHANGELOG_TEXT
    assert isinstance(parse_top_entry(one), Ok)
    assert isinstance(plan_draft(one, _manifest("1.0.1")), Ok)

    two = "\n\n" + CHANGELOG_TEXT
    assert isinstance(parse_top_entry(two), Err)
    assert isinstance(plan_draft(two, _manifest("1.0.1")), Err)
    assert find_entry_insert_position(two) is None


def test_insert_positions() -> None:
    assert find_entry_insert_position(CHANGELOG_TEXT) == len("# Changelog\n\n")
    assert find_entry_insert_position("\n# Changelog\n\nx\n") == len("\n# Changelog\n\n")
    assert find_entry_insert_position("# Changelog\nx\n") is None

    position = find_link_insert_position(CHANGELOG_TEXT)
    assert position == (CHANGELOG_TEXT.index("[1.0.0]:"), True)
    assert find_link_insert_position("# Changelog\n\nx\n") == (len("# Changelog\n\nx\n"), False)
    assert find_link_insert_position("# Changelog\n\nx") is None


def test_format_commit_lines() -> None:
    text = format_commit_lines(COMMIT_LINES, "\n")
    assert text == (
        f"- Fix zip layout ([`abc1234`]({REPO_URL}/commit/abc1234def))\n"
        "  - Files were nested one level too deep.\n"
        "    indented detail\n"
        f"- Add ignore file support ([`def5678`]({REPO_URL}/commit/def5678abc))\n"
    )
    assert format_commit_lines([], "\n") == ""


def test_commit_log_format() -> None:
    assert commit_log_format("u", "r") == (
        "--pretty=- %s ([`%h`](https://github.com/u/r/commit/%H))%n%b"
    )
