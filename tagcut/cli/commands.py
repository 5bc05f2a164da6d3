"""Caller-side commands. Each one builds a request and hands it to the gateway."""

from __future__ import annotations

import sys
from enum import StrEnum

import typer

from tagcut.cli.context import build_context, run_command
from tagcut.core.errors import ErrorCode
from tagcut.protocol.messages import FlagValue


class ReleaseKind(StrEnum):
    major = "major"
    minor = "minor"
    patch = "patch"


class ProjectType(StrEnum):
    frontend = "frontend"
    backend = "backend"
    other = "other"


def release(
    release_type: ReleaseKind | None = typer.Argument(
        None, help="Release type (major, minor, patch)", show_default=False
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview the next version without changes"),
) -> None:
    """Cut a release: bump, commit, tag, push and publish."""
    ctx = build_context()

    kind = release_type.value if release_type is not None else None
    if kind is None and sys.stdin.isatty():
        answer = typer.prompt("Release type (major, minor, patch)", default="patch")
        try:
            kind = ReleaseKind(answer.strip().lower()).value
        except ValueError:
            typer.echo(f"error: invalid release type: {answer}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    flags: dict[str, FlagValue] = {"dry-run": dry_run}
    run_command(ctx, "release", args=(kind,) if kind else (), flags=flags)


def init(
    project_type: ProjectType = typer.Option(..., "--project-type", help="Kind of project"),
    backend: str = typer.Option(..., "--backend", help="Release backend (goreleaser, jreleaser, release-it)"),
    version: str | None = typer.Option(None, "--version", help="Initial version (default: 0.1.0)"),
    project_owner: str | None = typer.Option(None, "--owner", help="Override the detected owner"),
    project_name: str | None = typer.Option(None, "--name", help="Override the detected name"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing configuration"),
) -> None:
    """Create .tagcut.json and set up the release backend."""
    ctx = build_context()
    flags: dict[str, FlagValue] = {
        "project-type": project_type.value,
        "backend": backend,
        "force": force,
    }
    if version:
        flags["version"] = version
    if project_owner:
        flags["project-owner"] = project_owner
    if project_name:
        flags["project-name"] = project_name
    run_command(ctx, "init", flags=flags)


def init_options() -> None:
    """List init options and the recommended backend per project type."""
    run_command(build_context(), "init-options")


def validate(
    show: bool = typer.Option(False, "--show", help="Print the configuration"),
) -> None:
    """Validate .tagcut.json."""
    run_command(build_context(), "validate", flags={"show": show})


def history() -> None:
    """Release tags with the commit count of each release."""
    run_command(build_context(), "history")


def contributors() -> None:
    """Authors and their commit counts."""
    run_command(build_context(), "contributors")


def manifest() -> None:
    """Describe the active handler's commands."""
    run_command(build_context(), "manifest")


def handlers() -> None:
    """List handlers installed in the handler directory."""
    ctx = build_context()
    found = ctx.dispatcher.list_manifests()
    if not found:
        ctx.console.info("no handlers installed")
        return
    for m in found:
        ctx.console.print(f"{m.name} {m.version}  {m.description}")
