"""Handler process entry point: read one request, write one response."""

from __future__ import annotations

import sys
from collections.abc import Mapping
from typing import BinaryIO, TextIO

from tagcut import __version__
from tagcut.core.result import Err, Ok
from tagcut.output.console import ChannelConsole, ConsoleProtocol
from tagcut.protocol.messages import (
    ReleaseRequest,
    ReleaseResponse,
    ResponseMetadata,
    error_response,
    success_response,
)

from .commands import COMMANDS, HandlerContext, build_context
from .manifest import HANDLER_NAME

__all__ = ["handle", "main"]


def _metadata(command: str) -> ResponseMetadata:
    return ResponseMetadata(handler=HANDLER_NAME, version=__version__, command=command)


def handle(request: ReleaseRequest, ctx: HandlerContext) -> ReleaseResponse:
    """Route one request to its command and wrap the outcome as a response."""
    meta = _metadata(request.command)
    command = COMMANDS.get(request.command)
    if command is None:
        return error_response(
            meta,
            "UNKNOWN_COMMAND",
            f"unknown command: {request.command}",
            {"commands": sorted(COMMANDS)},
        )

    match command(request, ctx):
        case Ok(out):
            return success_response(meta, out.data, renderer_hint=out.renderer_hint)
        case Err(e):
            ctx.console.error(e.pretty())
            return error_response(meta, e.code, e.message, e.wire_details())


def main(
    stdin: BinaryIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
    env: Mapping[str, str] | None = None,
) -> int:
    """Run the handler; returns the process exit status (0 on success)."""
    raw = (stdin if stdin is not None else sys.stdin.buffer).read()
    out = stdout if stdout is not None else sys.stdout

    parsed = ReleaseRequest.from_json(raw)
    if isinstance(parsed, Err):
        response = error_response(_metadata(""), "PARSE_ERROR", parsed.error)
    else:
        request = parsed.value
        console: ConsoleProtocol = ChannelConsole(verbose=request.context.verbose, stream=stderr)
        response = handle(request, build_context(request, console, env))

    out.write(response.to_json() + "\n")
    out.flush()
    return 0 if response.ok else 1
