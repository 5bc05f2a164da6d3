"""Subprocess execution with Result-based error handling.

This is the only module that talks to ``subprocess`` directly. Two entry
points:

- ``run``: execute a command, return stdout on exit 0, a ProcessError
  carrying both captured streams otherwise. Used by every git and backend
  wrapper.
- ``run_with_input``: feed bytes on stdin and capture stdout and stderr
  separately, whatever the exit status. Used by the execution gateway,
  which must inspect stdout even when the child fails.

Usage:
    result = run(["git", "rev-parse", "HEAD"], cwd=repo_root)
    match result:
        case Ok(stdout):
            print(stdout.strip())
        case Err(error):
            print(f"Failed: {error.stderr}")
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from tagcut.core.result import Err, Ok, Result

__all__ = ["CapturedProcess", "ProcessError", "run", "run_with_input"]


@dataclass(frozen=True, slots=True)
class ProcessError:
    """Error from a failed subprocess execution.

    Attributes:
        command: The command that was executed.
        returncode: Exit code, or -1 when the process could not be started
            or timed out.
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

    @property
    def output(self) -> str:
        """Best diagnostic text: stderr, else stdout, stripped."""
        return self.stderr.strip() or self.stdout.strip()


@dataclass(frozen=True, slots=True)
class CapturedProcess:
    """Both output streams of a finished child process."""

    returncode: int
    stdout: bytes
    stderr: str


def run(
    cmd: list[str],
    cwd: Path,
    env: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[str, ProcessError]:
    """Execute a command and return stdout or error.

    Args:
        cmd: Command and arguments to execute.
        cwd: Working directory for the command.
        env: Full environment for the child (inherits ours if None).
        timeout: Maximum seconds to wait (None for no limit).

    Returns:
        Ok(stdout) on exit 0, Err(ProcessError) otherwise.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            capture_output=True,
            text=True,
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
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

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


def run_with_input(
    cmd: list[str],
    cwd: Path,
    stdin: bytes,
    env: Mapping[str, str] | None = None,
    *,
    timeout: float | None = None,
) -> Result[CapturedProcess, ProcessError]:
    """Run a child, write ``stdin`` to it, and capture both streams.

    stdout and stderr are drained concurrently by ``communicate`` so neither
    pipe can fill up and block the child; both are joined after exit.
    A non-zero exit is not an error here. Only failing to start the
    process, or hitting ``timeout`` (the child is killed), returns Err.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            env=dict(env) if env is not None else None,
            input=stdin,
            capture_output=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stderr.decode("utf-8", errors="replace") if isinstance(e.stderr, bytes) else ""
        return Err(
            ProcessError(
                command=tuple(cmd),
                returncode=-1,
                stdout="",
                stderr=f"Command timed out after {timeout}s\n{partial}".rstrip(),
            )
        )
    except OSError as e:
        return Err(ProcessError(command=tuple(cmd), returncode=-1, stdout="", stderr=str(e)))

    return Ok(
        CapturedProcess(
            returncode=proc.returncode,
            stdout=proc.stdout,
            stderr=proc.stderr.decode("utf-8", errors="replace"),
        )
    )
