"""Subprocess execution with Result-based error handling.

This is the only module that talks to ``subprocess`` directly. Output is
captured with ``subprocess.run`` so both pipes are drained while the child
runs and a chatty process can never block on a full pipe buffer.

Usage:
    result = run(["git", "branch", "--show-current"], cwd=package_root)
    match result:
        case Ok(stdout):
            print(stdout)
        case Err(error):
            print(error.describe())
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path

from vpm_publish.core.result import Err, Ok, Result

__all__ = ["ProcessError", "output_lines", "run", "which"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: The exit code of the process (-1 if it never ran).
        stdout: Standard output (may be empty).
        stderr: Standard error (contains error details).
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} failed (exit {self.returncode})"

    def describe(self, prefix: str | None = None) -> str:
        """Full operator-facing description: arguments and error output."""
        program = self.command[0] if self.command else "?"
        args = "\n".join(f"'{a}'" for a in self.command[1:])
        parts: list[str] = []
        if prefix:
            parts.append(prefix + "\n")
        parts.append(f"The process '{program}' exited with the exit code {self.returncode}.")
        parts.append(f"The arguments were:\n{args}\n")
        parts.append(f"The process had the following error output:\n{self.stderr.rstrip()}")
        return "\n".join(parts)


def which(program: str) -> str | None:
    return shutil.which(program)


def run(
    cmd: list[str],
    cwd: Path,
    env: dict[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return its stdout or a ProcessError.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Environment variables (uses current env if None).
        timeout: Maximum seconds to wait (None for no limit).

    Returns:
        Ok(stdout) on exit code 0, Err(ProcessError) otherwise.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=env,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            stdin=subprocess.DEVNULL,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout=e.stdout if isinstance(e.stdout, str) else "",
                stderr=f"Command timed out after {timeout}s",
            )
        )
    except OSError as e:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=str(e),
            )
        )

    if proc.returncode != 0:
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        )

    return Ok(proc.stdout)


def output_lines(stdout: str) -> list[str]:
    """Split captured stdout into lines, keeping interior blank lines."""
    return stdout.splitlines()
