"""Execution gateway: run one request through an isolated handler process.

The request goes to the child's stdin as JSON. The child's stdout must
hold exactly one response object; its stderr is the diagnostic side
channel, parsed into ``logs`` and attached to the response.

A handler that reports a clean failure still exits non-zero. On a
non-zero exit the gateway therefore first tries stdout as a response and
only synthesizes a ``TransportError`` if that fails. A dispatch is
attempted once; there are no retries.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from tagcut.core.result import Err, Ok, Result
from tagcut.platform.process import run_with_input
from tagcut.protocol.logparse import parse_log_output
from tagcut.protocol.manifest import Manifest
from tagcut.protocol.messages import ReleaseRequest, ReleaseResponse

__all__ = [
    "HANDLER_DIR_ENV_VAR",
    "Dispatcher",
    "TransportError",
    "builtin_handler_command",
    "invoke",
]

HANDLER_DIR_ENV_VAR = "TAGCUT_HANDLER_DIR"


@dataclass(frozen=True, slots=True)
class TransportError:
    """The handler did not produce a usable response.

    Attributes:
        message: What went wrong
        stderr: Raw side-channel text captured from the handler
        returncode: Handler exit status (-1 if it never ran or was killed)
    """

    message: str
    stderr: str = ""
    returncode: int = -1

    def __str__(self) -> str:
        if self.stderr.strip():
            return f"{self.message}\nStderr: {self.stderr.strip()}"
        return self.message


def builtin_handler_command() -> list[str]:
    """Command line of the release handler that ships with tagcut."""
    return [sys.executable, "-m", "tagcut.handler"]


def invoke(
    command: Sequence[str],
    request: ReleaseRequest,
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> Result[ReleaseResponse, TransportError]:
    """Send ``request`` to the handler started by ``command``.

    Args:
        command: Handler executable and arguments.
        request: The request to serialize onto the handler's stdin.
        cwd: Working directory for the child (defaults to the request's).
        env: Child environment (inherits ours if None).
        timeout: Optional external cancellation; the child is killed when
            it expires. None waits indefinitely.
    """
    workdir = cwd if cwd is not None else Path(request.context.working_dir)
    run = run_with_input(list(command), workdir, request.to_json(), env, timeout=timeout)
    if isinstance(run, Err):
        return Err(
            TransportError(
                message=f"handler could not be run: {run.error.output}",
                stderr=run.error.stderr,
            )
        )

    proc = run.value
    logs = parse_log_output(proc.stderr)
    parsed = ReleaseResponse.from_json(proc.stdout) if proc.stdout.strip() else None

    if proc.returncode != 0:
        if isinstance(parsed, Ok):
            return Ok(parsed.value.with_logs(logs))
        return Err(
            TransportError(
                message=f"handler execution failed (exit {proc.returncode})",
                stderr=proc.stderr,
                returncode=proc.returncode,
            )
        )

    match parsed:
        case Ok(response):
            return Ok(response.with_logs(logs))
        case Err(reason):
            return Err(
                TransportError(
                    message=f"invalid handler response: {reason}",
                    stderr=proc.stderr,
                    returncode=proc.returncode,
                )
            )
        case None:
            return Err(
                TransportError(
                    message="handler produced no response",
                    stderr=proc.stderr,
                    returncode=proc.returncode,
                )
            )


class Dispatcher:
    """Locates installed handlers by name and invokes them.

    Layout: ``<handler_dir>/<name>/handler-<name>`` next to an optional
    ``<handler_dir>/<name>/manifest.json``.
    """

    def __init__(self, handler_dir: Path | None) -> None:
        self.handler_dir = handler_dir

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> Dispatcher:
        source = os.environ if env is None else env
        raw = source.get(HANDLER_DIR_ENV_VAR, "").strip()
        return cls(Path(raw) if raw else None)

    def find_handler(self, name: str) -> Result[Path, TransportError]:
        if self.handler_dir is None:
            return Err(TransportError(message=f"handler '{name}' not found: no handler directory"))
        path = self.handler_dir / name / f"handler-{name}"
        if not path.is_file():
            return Err(TransportError(message=f"handler '{name}' not found at {path}"))
        return Ok(path)

    def dispatch(
        self,
        name: str,
        request: ReleaseRequest,
        *,
        timeout: float | None = None,
    ) -> Result[ReleaseResponse, TransportError]:
        found = self.find_handler(name)
        if isinstance(found, Err):
            return found
        return invoke([str(found.value)], request, timeout=timeout)

    def list_manifests(self) -> list[Manifest]:
        """Manifests of installed handlers; unreadable ones are skipped."""
        if self.handler_dir is None or not self.handler_dir.is_dir():
            return []
        out: list[Manifest] = []
        for entry in sorted(self.handler_dir.iterdir()):
            manifest_path = entry / "manifest.json"
            if not entry.is_dir() or not manifest_path.is_file():
                continue
            try:
                text = manifest_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                continue
            parsed = Manifest.from_json(text)
            if isinstance(parsed, Ok):
                out.append(parsed.value)
        return out
