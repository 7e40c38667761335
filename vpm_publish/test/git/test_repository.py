"""Tests for git/repository.py."""

from __future__ import annotations

import subprocess
from datetime import UTC, datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

from vpm_publish.core.config import GIT_NETWORK_TIMEOUT_SECONDS, GIT_TIMEOUT_SECONDS
from vpm_publish.core.result import Err, Ok
from vpm_publish.git.repository import GitError, Repository, TagInfo
from vpm_publish.platform.process import ProcessError


def make_completed_process(
    stdout: str = "",
    stderr: str = "",
    returncode: int = 0,
) -> subprocess.CompletedProcess[str]:
    """Create a mock CompletedProcess."""
    return subprocess.CompletedProcess(
        args=["git"],
        returncode=returncode,
        stdout=stdout,
        stderr=stderr,
    )


def git_args(mock_run: MagicMock, tmp_path: Path) -> list[str]:
    """Arguments after ``git -C <path>`` of the last call."""
    cmd = mock_run.call_args[0][0]
    assert cmd[:3] == ["git", "-C", str(tmp_path)]
    return cmd[3:]


class TestGitError:
    def test_describe_without_process(self) -> None:
        error = GitError(command="tag", message="tag not found: v1.0.0")
        assert error.describe() == "tag not found: v1.0.0"
        assert error.describe("Lookup failed.") == "Lookup failed.\n\ntag not found: v1.0.0"

    def test_describe_with_process(self) -> None:
        process = ProcessError(("git", "push"), 1, "", "rejected")
        error = GitError(command="push", message="rejected", process=process)
        assert "The process 'git' exited with the exit code 1." in error.describe()


class TestTagInfo:
    def test_created_utc(self) -> None:
        created = datetime(2024, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))
        info = TagInfo(name="v1.0.0", created=created, message="")
        assert info.created_utc == datetime(2024, 1, 1, 0, 0, tzinfo=UTC)


class TestRepository:
    """Tests for Repository class."""

    @patch("subprocess.run")
    def test_current_branch(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="main\n")

        result = Repository(tmp_path).current_branch()

        assert result == Ok("main")
        assert git_args(mock_run, tmp_path) == ["branch", "--show-current"]
        assert mock_run.call_args.kwargs["timeout"] == GIT_TIMEOUT_SECONDS

    @patch("subprocess.run")
    def test_current_branch_detached(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="")
        assert Repository(tmp_path).current_branch() == Ok("")

    @patch("subprocess.run")
    def test_current_branch_error(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(
            stderr="fatal: not a git repository\n", returncode=128
        )

        result = Repository(tmp_path).current_branch()

        assert isinstance(result, Err)
        assert result.error.command == "branch"
        assert result.error.message == "fatal: not a git repository"
        assert result.error.returncode == 128
        assert result.error.process is not None

    @patch("subprocess.run")
    def test_status_lines(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout=" M package.json\n?? new.txt\n\n")

        result = Repository(tmp_path).status_lines()

        assert result == Ok([" M package.json", "?? new.txt"])
        assert git_args(mock_run, tmp_path) == ["status", "--porcelain"]

    @patch("subprocess.run")
    def test_status_lines_clean(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="")
        assert Repository(tmp_path).status_lines() == Ok([])

    @patch("subprocess.run")
    def test_fetch_dry_run_uses_network_timeout(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()

        assert Repository(tmp_path).fetch_dry_run() == Ok(None)
        assert git_args(mock_run, tmp_path) == ["fetch", "--dry-run"]
        assert mock_run.call_args.kwargs["timeout"] == GIT_NETWORK_TIMEOUT_SECONDS

    @patch("subprocess.run")
    def test_list_tags(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="v1.0.0\nv1.1.0\n")

        assert Repository(tmp_path).list_tags() == Ok(["v1.0.0", "v1.1.0"])
        assert git_args(mock_run, tmp_path) == ["tag", "--list", "v*"]

    @patch("subprocess.run")
    def test_tag_exists(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="v1.0.0\n")
        repo = Repository(tmp_path)

        assert repo.tag_exists("v1.0.0") == Ok(True)
        assert git_args(mock_run, tmp_path) == ["tag", "--list", "v1.0.0"]

        mock_run.return_value = make_completed_process(stdout="")
        assert repo.tag_exists("v1.0.1") == Ok(False)

    @patch("subprocess.run")
    def test_tag_info(self, mock_run: MagicMock, tmp_path: Path) -> None:
        sha = "a" * 64
        mock_run.return_value = make_completed_process(
            stdout=f"2024-01-01T12:30:00+02:00\n<zipSHA256>{sha}</zipSHA256>\n\n"
        )

        result = Repository(tmp_path).tag_info("v1.0.0")

        assert isinstance(result, Ok)
        info = result.value
        assert info.name == "v1.0.0"
        assert info.created_utc == datetime(2024, 1, 1, 10, 30, tzinfo=UTC)
        assert f"<zipSHA256>{sha}</zipSHA256>" in info.message
        assert git_args(mock_run, tmp_path) == [
            "for-each-ref",
            "--format=%(creatordate:iso-strict)%0a%(contents)",
            "refs/tags/v1.0.0",
        ]

    @patch("subprocess.run")
    def test_tag_info_missing_tag(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="")

        result = Repository(tmp_path).tag_info("v9.9.9")

        assert isinstance(result, Err)
        assert "tag not found" in result.error.message

    @patch("subprocess.run")
    def test_show_file_is_relative_to_path(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout='{"name": "Foo"}\n')

        result = Repository(tmp_path).show_file("v1.0.0", "package.json")

        assert result == Ok('{"name": "Foo"}\n')
        assert git_args(mock_run, tmp_path) == ["show", "v1.0.0:./package.json"]

    @patch("subprocess.run")
    def test_log_lines_all_history(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="- One\n\n- Two\n")

        result = Repository(tmp_path).log_lines("--pretty=%s")

        assert result == Ok(["- One", "", "- Two"])
        assert git_args(mock_run, tmp_path) == ["log", "--pretty=%s"]

    @patch("subprocess.run")
    def test_log_lines_since_tag(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="")

        Repository(tmp_path).log_lines("--pretty=%s", since_tag="v1.0.0")

        assert git_args(mock_run, tmp_path) == ["log", "v1.0.0..HEAD", "--pretty=%s", "--"]

    @patch("subprocess.run")
    def test_create_annotated_tag(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()

        assert Repository(tmp_path).create_annotated_tag("v1.0.0", "msg") == Ok(None)
        assert git_args(mock_run, tmp_path) == ["tag", "--annotate", "--message=msg", "v1.0.0"]

    @patch("subprocess.run")
    def test_push_and_push_tags(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()
        repo = Repository(tmp_path)

        assert repo.push() == Ok(None)
        assert git_args(mock_run, tmp_path) == ["push"]
        assert repo.push_tags() == Ok(None)
        assert git_args(mock_run, tmp_path) == ["push", "--tags"]
        assert mock_run.call_args.kwargs["timeout"] == GIT_NETWORK_TIMEOUT_SECONDS

    @patch("subprocess.run")
    def test_push_failure_falls_back_to_stdout(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process(stdout="rejected", returncode=1)

        result = Repository(tmp_path).push()

        assert isinstance(result, Err)
        assert result.error.message == "rejected"

    @patch("subprocess.run")
    def test_commit_all(self, mock_run: MagicMock, tmp_path: Path) -> None:
        mock_run.return_value = make_completed_process()

        assert Repository(tmp_path).commit_all("Move to version `v1.0.1`") == Ok(None)
        assert git_args(mock_run, tmp_path) == ["commit", "-a", "-m", "Move to version `v1.0.1`"]
