"""Git repository gateway.

Every git call the publisher makes goes through Repository. All operations
return Result types; interpreting a failure (and wording the operator
message) is left to the caller.

Usage:
    repo = Repository(package_root)

    match repo.current_branch():
        case Ok(branch):
            print(f"Branch: {branch}")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from vpm_publish.core.config import GIT_NETWORK_TIMEOUT_SECONDS, GIT_TIMEOUT_SECONDS
from vpm_publish.core.result import Err, Ok, Result
from vpm_publish.platform.process import ProcessError, output_lines
from vpm_publish.platform.process import run as run_process

__all__ = [
    "GitError",
    "Repository",
    "TagInfo",
]

_NETWORK_COMMANDS = frozenset({"fetch", "pull", "push", "clone"})


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed.
        message: Error output of git (or a fallback description).
        returncode: Process return code.
        process: The underlying process failure, for full diagnostics.
    """

    command: str
    message: str
    returncode: int = 1
    process: ProcessError | None = None

    def describe(self, prefix: str | None = None) -> str:
        if self.process is not None:
            return self.process.describe(prefix)
        return f"{prefix}\n\n{self.message}" if prefix else self.message


@dataclass(frozen=True, slots=True)
class TagInfo:
    """An annotated tag's metadata.

    Attributes:
        name: Tag name (e.g. ``v1.2.3``).
        created: Tag creation time (tagger date, or commit date for
            lightweight tags), timezone aware.
        message: The annotation message.
    """

    name: str
    created: datetime
    message: str

    @property
    def created_utc(self) -> datetime:
        return self.created.astimezone(UTC)


class Repository:
    """Git operations rooted at one directory.

    Commands run with ``git -C <path>`` so relative paths (``./package.json``
    in ``git show``) resolve against that directory, not the repo root.

    Attributes:
        path: Directory git commands run in (usually the package root).
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def current_branch(self) -> Result[str, GitError]:
        """Name of the checked out branch; empty string on a detached HEAD."""
        result = self._run(["branch", "--show-current"])
        match result:
            case Err(e):
                return Err(self._error("branch", e))
            case Ok(stdout):
                lines = output_lines(stdout)
                return Ok(lines[0].strip() if lines else "")

    def status_lines(self) -> Result[list[str], GitError]:
        """``git status --porcelain`` lines; empty for a clean working tree."""
        result = self._run(["status", "--porcelain"])
        match result:
            case Err(e):
                return Err(self._error("status", e))
            case Ok(stdout):
                return Ok([ln for ln in output_lines(stdout) if ln.strip()])

    def fetch_dry_run(self) -> Result[None, GitError]:
        """Probe the remote of the current branch without changing anything."""
        result = self._run(["fetch", "--dry-run"])
        if isinstance(result, Err):
            return Err(self._error("fetch --dry-run", result.error))
        return Ok(None)

    def list_tags(self, pattern: str = "v*") -> Result[list[str], GitError]:
        result = self._run(["tag", "--list", pattern])
        match result:
            case Err(e):
                return Err(self._error("tag --list", e))
            case Ok(stdout):
                return Ok([ln.strip() for ln in output_lines(stdout) if ln.strip()])

    def tag_exists(self, tag: str) -> Result[bool, GitError]:
        listed = self.list_tags(tag)
        if isinstance(listed, Err):
            return listed
        return Ok(tag in listed.value)

    def tag_info(self, tag: str) -> Result[TagInfo, GitError]:
        """Creation date and annotation message of a tag."""
        result = self._run(
            [
                "for-each-ref",
                "--format=%(creatordate:iso-strict)%0a%(contents)",
                f"refs/tags/{tag}",
            ]
        )
        if isinstance(result, Err):
            return Err(self._error("for-each-ref", result.error))

        date_line, _, message = result.value.partition("\n")
        if not date_line.strip():
            return Err(GitError(command="for-each-ref", message=f"tag not found: {tag}"))
        try:
            created = datetime.fromisoformat(date_line.strip())
        except ValueError:
            return Err(
                GitError(
                    command="for-each-ref",
                    message=f"unexpected tag date for {tag}: {date_line.strip()}",
                )
            )
        return Ok(TagInfo(name=tag, created=created, message=message))

    def show_file(self, rev: str, relative_path: str) -> Result[str, GitError]:
        """File content as of rev; relative_path is relative to self.path."""
        result = self._run(["show", f"{rev}:./{relative_path}"])
        if isinstance(result, Err):
            return Err(self._error("show", result.error))
        return Ok(result.value)

    def log_lines(self, pretty: str, *, since_tag: str | None = None) -> Result[list[str], GitError]:
        """``git log`` output lines, for all history or since_tag..HEAD."""
        if since_tag is None:
            args = ["log", pretty]
        else:
            # Trailing "--" makes git treat the range as a revision, so a
            # missing tag gives a clear error instead of a path lookup.
            args = ["log", f"{since_tag}..HEAD", pretty, "--"]
        result = self._run(args)
        if isinstance(result, Err):
            return Err(self._error("log", result.error))
        return Ok(output_lines(result.value))

    def create_annotated_tag(self, tag: str, message: str) -> Result[None, GitError]:
        result = self._run(["tag", "--annotate", f"--message={message}", tag])
        if isinstance(result, Err):
            return Err(self._error("tag --annotate", result.error))
        return Ok(None)

    def push(self) -> Result[None, GitError]:
        result = self._run(["push"])
        if isinstance(result, Err):
            return Err(self._error("push", result.error))
        return Ok(None)

    def push_tags(self) -> Result[None, GitError]:
        result = self._run(["push", "--tags"])
        if isinstance(result, Err):
            return Err(self._error("push --tags", result.error))
        return Ok(None)

    def commit_all(self, message: str) -> Result[None, GitError]:
        result = self._run(["commit", "-a", "-m", message])
        if isinstance(result, Err):
            return Err(self._error("commit", result.error))
        return Ok(None)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this directory."""
        command = args[0] if args else ""
        timeout = (
            GIT_NETWORK_TIMEOUT_SECONDS if command in _NETWORK_COMMANDS else GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)

    @staticmethod
    def _error(command: str, e: ProcessError) -> GitError:
        return GitError(
            command=command,
            message=e.stderr.strip() or e.stdout.strip() or f"git {command} failed",
            returncode=e.returncode,
            process=e,
        )
