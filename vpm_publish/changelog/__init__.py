"""CHANGELOG.md parsing, validation and draft generation."""

from .draft import ChangelogDraft, DraftPlan, commit_log_format, plan_draft, synthesize_draft
from .parser import (
    ChangelogEntry,
    ParsedTopEntry,
    detect_line_break,
    parse_top_entry,
    utc_today,
    validate_top_entry,
)

__all__ = [
    # draft
    "ChangelogDraft",
    "DraftPlan",
    "commit_log_format",
    "plan_draft",
    "synthesize_draft",
    # parser
    "ChangelogEntry",
    "ParsedTopEntry",
    "detect_line_break",
    "parse_top_entry",
    "utc_today",
    "validate_top_entry",
]
