from __future__ import annotations

import os
from pathlib import Path

import typer

from tagcut import __version__
from tagcut.cli.commands import (
    contributors,
    handlers,
    history,
    init,
    init_options,
    manifest,
    release,
    validate,
)
from tagcut.cli.context import HANDLER_ENV_VAR, TIMEOUT_ENV_VAR, VERBOSE_ENV_VAR, WORKDIR_ENV_VAR
from tagcut.core.errors import ErrorCode

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


app.command()(release)
app.command()(init)
app.command("init-options")(init_options)
app.command()(validate)
app.command()(history)
app.command()(contributors)
app.command()(manifest)
app.command()(handlers)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show verbose handler output."),
    handler: str | None = typer.Option(
        None,
        "--handler",
        help="Installed handler to use instead of the built-in one",
        show_default=False,
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        help="Kill the handler after this many seconds",
        show_default=False,
    ),
    cwd: Path | None = typer.Option(
        None,
        "--cwd",
        help="Project directory (defaults to the current directory)",
        show_default=False,
    ),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if cwd is not None:
        try:
            root = cwd.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --cwd: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        if not root.is_dir():
            typer.echo(f"error: --cwd '{root}' is not a directory", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
        os.environ[WORKDIR_ENV_VAR] = str(root)

    if verbose:
        os.environ[VERBOSE_ENV_VAR] = "1"
    if handler:
        os.environ[HANDLER_ENV_VAR] = handler
    if timeout is not None:
        os.environ[TIMEOUT_ENV_VAR] = str(timeout)


def main() -> None:
    app()
