"""GitHub release host, driven through the ``gh`` CLI."""

from __future__ import annotations

from pathlib import Path

from vpm_publish.core.config import GH_TIMEOUT_SECONDS
from vpm_publish.core.errors import PublishError
from vpm_publish.core.result import Err, Ok, Result
from vpm_publish.platform.process import run as run_process
from vpm_publish.platform.process import which

__all__ = ["GitHubReleaseHost", "ensure_tools_available"]

REQUIRED_TOOLS: tuple[str, ...] = ("git", "gh")


def ensure_tools_available(tools: tuple[str, ...] = REQUIRED_TOOLS) -> Result[None, PublishError]:
    missing = [t for t in tools if which(t) is None]
    if not missing:
        return Ok(None)
    return Err(
        PublishError(
            kind="tool_missing",
            message=(
                "This program requires both git and the GitHub CLI to be installed "
                f"(missing: {', '.join(missing)})."
            ),
            hint="Install git: https://git-scm.com/ and GitHub CLI: https://cli.github.com/",
        )
    )


class GitHubReleaseHost:
    """Release operations against github.com.

    Attributes:
        cwd: Directory gh runs in; gh resolves the repository from its git remote.
    """

    def __init__(self, cwd: Path) -> None:
        self.cwd = cwd

    def ensure_auth(self) -> Result[None, PublishError]:
        cmd = ["gh", "auth", "status", "--hostname", "github.com"]
        result = run_process(cmd, cwd=self.cwd, timeout=GH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            # gh's own output explains how to log in.
            return Err(
                PublishError(
                    kind="gh_auth_required",
                    message="gh is not authenticated with github.com.",
                    hint=result.error.describe(),
                )
            )
        return Ok(None)

    def create_release(
        self, tag: str, archive: Path, notes_file: Path
    ) -> Result[None, PublishError]:
        cmd = [
            "gh",
            "release",
            "create",
            tag,
            str(archive),
            "--verify-tag",
            "--title",
            tag,
            "--notes-file",
            str(notes_file),
        ]
        result = run_process(cmd, cwd=self.cwd, timeout=GH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(
                PublishError(
                    kind="process_failed",
                    message=f"Failed to create the GitHub release {tag}.",
                    hint=result.error.describe(),
                )
            )
        return Ok(None)
