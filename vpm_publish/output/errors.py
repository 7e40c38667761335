"""Error presentation utilities.

Centralized formatting of expected failures so every entry point reports
them the same way: one ``error:`` line, then the hint (command output,
remediation) dimmed underneath.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from vpm_publish.core.errors import ErrorCode, PublishError
from vpm_publish.output.console import Style

if TYPE_CHECKING:
    from vpm_publish.output.console import ConsoleProtocol

__all__ = ["print_publish_error", "publish_error_exit_code"]


def print_publish_error(error: PublishError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.hint:
        console.print(error.hint, Style.DIM)


def publish_error_exit_code(error: PublishError) -> int:
    # Every anticipated failure maps to the same exit status.
    del error
    return int(ErrorCode.FAILURE)
