"""Exit codes and the expected-failure value shared by every entry point."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Literal

__all__ = ["ErrorCode", "PublishError", "PublishErrorKind"]


class ErrorCode(IntEnum):
    """Process exit codes for CLI commands.

    Expected failures always exit with FAILURE. Unexpected exceptions are
    not mapped here; they propagate and the interpreter picks the code.
    """

    OK = 0
    FAILURE = 1

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK


PublishErrorKind = Literal[
    "tool_missing",
    "gh_auth_required",
    "wrong_branch",
    "dirty_tree",
    "remote_unreachable",
    "missing_file",
    "invalid_manifest",
    "invalid_changelog",
    "invalid_input",
    "invalid_config",
    "tag_exists",
    "history_altered",
    "process_failed",
    "io_failed",
]


@dataclass(frozen=True, slots=True)
class PublishError:
    """An anticipated failure with a message fit for the operator.

    Attributes:
        kind: Failure category, mostly useful to tests.
        message: What was wrong and what was expected.
        hint: Optional remediation or extra detail (command output, path).
    """

    kind: PublishErrorKind
    message: str
    hint: str | None = None

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n{self.hint}"
        return self.message
