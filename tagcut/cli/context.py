from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from tagcut.core.errors import ErrorCode
from tagcut.core.result import Err, Result
from tagcut.gateway.dispatcher import Dispatcher, TransportError, builtin_handler_command, invoke
from tagcut.output.console import ConsoleProtocol, RichConsole
from tagcut.output.render import render_response
from tagcut.protocol.messages import FlagValue, ReleaseRequest, ReleaseResponse, RequestContext
from tagcut.release.errors import exit_code_for

# Set by the root callback from global options.
HANDLER_ENV_VAR = "TAGCUT_HANDLER"
VERBOSE_ENV_VAR = "TAGCUT_VERBOSE"
TIMEOUT_ENV_VAR = "TAGCUT_TIMEOUT"
WORKDIR_ENV_VAR = "TAGCUT_WORKDIR"


@dataclass(frozen=True, slots=True)
class CLIContext:
    workdir: Path
    verbose: bool
    handler: str | None
    timeout: float | None
    console: ConsoleProtocol
    dispatcher: Dispatcher


def _env_timeout(raw: str) -> float | None:
    try:
        value = float(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def build_context(env: Mapping[str, str] | None = None) -> CLIContext:
    source = os.environ if env is None else env
    verbose = source.get(VERBOSE_ENV_VAR, "") == "1"
    workdir = Path(source.get(WORKDIR_ENV_VAR) or Path.cwd())
    return CLIContext(
        workdir=workdir,
        verbose=verbose,
        handler=source.get(HANDLER_ENV_VAR) or None,
        timeout=_env_timeout(source.get(TIMEOUT_ENV_VAR, "")),
        console=RichConsole(verbose=verbose),
        dispatcher=Dispatcher.from_env(source),
    )


def make_request(
    ctx: CLIContext,
    command: str,
    *,
    args: Sequence[str] = (),
    flags: Mapping[str, FlagValue] | None = None,
) -> ReleaseRequest:
    return ReleaseRequest(
        command=command,
        context=RequestContext(
            working_dir=str(ctx.workdir),
            user=os.environ.get("USER", ""),
            verbose=ctx.verbose,
        ),
        args=tuple(args),
        flags=dict(flags or {}),
    )


def send(ctx: CLIContext, request: ReleaseRequest) -> Result[ReleaseResponse, TransportError]:
    """Run ``request`` through the selected handler (built-in unless ``--handler``)."""
    if ctx.handler:
        return ctx.dispatcher.dispatch(ctx.handler, request, timeout=ctx.timeout)
    return invoke(builtin_handler_command(), request, timeout=ctx.timeout)


def _exit(message: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {message}", err=True)
    raise typer.Exit(code=int(code))


def run_command(
    ctx: CLIContext,
    command: str,
    *,
    args: Sequence[str] = (),
    flags: Mapping[str, FlagValue] | None = None,
) -> ReleaseResponse:
    """Dispatch, render, and exit non-zero on any failure."""
    result = send(ctx, make_request(ctx, command, args=args, flags=flags))
    if isinstance(result, Err):
        _exit(str(result.error), code=ErrorCode.TRANSPORT_ERROR)

    response = result.value
    render_response(response, Console(), verbose=ctx.verbose)
    if not response.ok:
        code = response.error.code if response.error is not None else ""
        raise typer.Exit(code=int(exit_code_for(code)))
    return response
