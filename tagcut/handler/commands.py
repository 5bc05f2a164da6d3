"""Command implementations of the built-in release handler.

Each command takes the decoded request plus a ``HandlerContext`` and returns
either the response payload or a ``ReleaseError``; turning those into wire
responses is ``tagcut.handler.main``'s job.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from tagcut.core.result import Err, Ok, Result
from tagcut.core.structured import StrDict
from tagcut.git.repository import Repository
from tagcut.github.releases import PlatformReleases
from tagcut.output.console import Category, ConsoleProtocol
from tagcut.protocol.messages import ReleaseRequest
from tagcut.release.backend import ReleaseToolkit, ToolkitRepo
from tagcut.release.backends import register_builtin_backends
from tagcut.release.config import (
    CONFIG_FILE_NAME,
    PROJECT_KINDS,
    ReleaseConfig,
    config_exists,
    load_config,
    save_config,
    validate_config,
)
from tagcut.release.errors import ReleaseError
from tagcut.release.guard import TagSource, VersionGuard
from tagcut.release.history import HistoryRepo, contributor_items, history_items
from tagcut.release.preflight import Preflight, PreflightRepo
from tagcut.release.registry import BackendRegistry
from tagcut.release.saga import ReleaseOutcome, ReleaseSaga

from .flags import decode_init_flags, decode_release_flags, decode_validate_flags
from .manifest import release_manifest

__all__ = [
    "COMMANDS",
    "CommandOutput",
    "HandlerContext",
    "HandlerRepo",
    "build_context",
]

RECOMMENDED_BACKENDS: dict[str, str] = {
    "frontend": "release-it",
    "backend": "jreleaser",
    "other": "goreleaser",
}

_MANAGED_FILES: dict[str, str] = {
    "release-it": "package.json, .release-it.json",
    "jreleaser": "jreleaser.yml, pom.xml / build.gradle",
    "goreleaser": ".goreleaser.yaml, git tags",
}


class HandlerRepo(ToolkitRepo, PreflightRepo, TagSource, HistoryRepo, Protocol):
    """Everything the handler asks of the repository (``Repository`` fits)."""


@dataclass(frozen=True, slots=True)
class HandlerContext:
    root: Path
    console: ConsoleProtocol
    repo: HandlerRepo
    registry: BackendRegistry


@dataclass(frozen=True, slots=True)
class CommandOutput:
    data: StrDict
    renderer_hint: str = "table"


type CommandResult = Result[CommandOutput, ReleaseError]
type Command = Callable[[ReleaseRequest, HandlerContext], CommandResult]


def build_context(
    request: ReleaseRequest,
    console: ConsoleProtocol,
    env: Mapping[str, str] | None = None,
) -> HandlerContext:
    root = Path(request.context.working_dir).resolve()
    repo = Repository(root, env=env)
    toolkit = ReleaseToolkit(repo, console, platform=PlatformReleases(env=env), env=env)
    registry = register_builtin_backends(BackendRegistry(), toolkit)
    return HandlerContext(root=root, console=console, repo=repo, registry=registry)


def _rows(pairs: list[tuple[str, str]]) -> list[StrDict]:
    return [{"property": k, "value": v} for k, v in pairs]


# -----------------------------------------------------------------------------
# init
# -----------------------------------------------------------------------------


def run_init(request: ReleaseRequest, ctx: HandlerContext) -> CommandResult:
    console = ctx.console
    console.info("Starting release initialization", category=Category.INIT)

    decoded = decode_init_flags(request.flags, ctx.registry.names())
    if isinstance(decoded, Err):
        return decoded
    flags = decoded.value

    if config_exists(ctx.root) and not flags.force:
        console.verbose("Config file already exists, force flag not set", category=Category.INIT)
        return Err(
            ReleaseError(
                kind="config_exists",
                message=f"{CONFIG_FILE_NAME} already exists",
                hint="use --force to overwrite it",
            )
        )

    owner = flags.project_owner or ""
    name = flags.project_name or ""
    if not (owner and name):
        slug = ctx.repo.remote_repo()
        if isinstance(slug, Ok):
            console.verbose(f"Detected repository: {slug.value}", category=Category.INIT)
            owner = owner or slug.value.owner
            name = name or slug.value.name
        else:
            console.warning(
                f"could not detect the repository from its remote: {slug.error.message}",
                category=Category.INIT,
            )
    name = name or ctx.root.name

    cfg = ReleaseConfig(
        project_owner=owner,
        project_name=name,
        project_kind=flags.project_kind,
        backend=flags.backend,
        version=flags.version,
    )
    checked = validate_config(cfg, ctx.registry.names())
    if isinstance(checked, Err):
        return checked

    saved = save_config(ctx.root, cfg)
    if isinstance(saved, Err):
        return saved
    console.info(f"Configuration saved to {CONFIG_FILE_NAME}", category=Category.INIT)

    backend_status = "failed"
    backend = ctx.registry.get(cfg.backend)
    if isinstance(backend, Ok):
        initialized = backend.value.initialize(cfg)
        match initialized:
            case Ok(True):
                backend_status = "generated"
            case Ok(False):
                backend_status = "already configured"
            case Err(e):
                # The config stays saved; the backend can be set up later.
                console.warning(f"{cfg.backend} initialization failed: {e.pretty()}", category=Category.INIT)

    console.success("Initialization completed", category=Category.INIT)
    next_steps = [
        "Use 'tagcut release <major|minor|patch>' to create a release",
        f"{cfg.backend} manages versions in: {_MANAGED_FILES.get(cfg.backend, CONFIG_FILE_NAME)}",
        f"The version in {CONFIG_FILE_NAME} is the single source of truth",
    ]
    return Ok(
        CommandOutput(
            data={
                "config_file": CONFIG_FILE_NAME,
                "project_owner": cfg.project_owner,
                "project_name": cfg.project_name,
                "project_type": cfg.project_kind,
                "backend": cfg.backend,
                "backend_status": backend_status,
                "version": cfg.version,
                "next_steps": next_steps,
            },
            renderer_hint="text",
        )
    )


def run_init_options(request: ReleaseRequest, ctx: HandlerContext) -> CommandResult:
    del request
    items: list[StrDict] = [
        {
            "option": "project-type",
            "values": ", ".join(PROJECT_KINDS),
            "required": True,
            "description": "Type of project being released",
        },
        {
            "option": "backend",
            "values": ", ".join(ctx.registry.names()),
            "required": True,
            "description": "Release tool to use",
        },
        {
            "option": "version",
            "values": "semver (e.g. 0.1.0)",
            "required": False,
            "description": "Initial version (default: 0.1.0)",
        },
        {
            "option": "force",
            "values": "true, false",
            "required": False,
            "description": "Overwrite existing config",
        },
    ]
    recommendations: StrDict = dict(RECOMMENDED_BACKENDS)
    return Ok(CommandOutput(data={"items": items, "recommendations": recommendations}))


# -----------------------------------------------------------------------------
# validate / history / contributors / manifest
# -----------------------------------------------------------------------------


def run_validate(request: ReleaseRequest, ctx: HandlerContext) -> CommandResult:
    ctx.console.info("Validating release configuration", category=Category.CONFIG)
    loaded = load_config(ctx.root, ctx.registry.names())
    if isinstance(loaded, Err):
        return loaded
    cfg = loaded.value
    ctx.console.info("Configuration is valid", category=Category.CONFIG)

    if decode_validate_flags(request.flags).show:
        rows = _rows(
            [
                ("Project Name", cfg.project_name),
                ("Project Owner", cfg.project_owner),
                ("Project Type", cfg.project_kind),
                ("Backend", cfg.backend),
                ("Version", cfg.version),
                ("Status", "valid"),
            ]
        )
    else:
        rows = _rows([("Configuration", CONFIG_FILE_NAME), ("Status", "valid")])
    return Ok(CommandOutput(data={"items": rows}))


def run_history(request: ReleaseRequest, ctx: HandlerContext) -> CommandResult:
    del request
    ctx.console.info("Starting release history", category=Category.EXEC)
    items = history_items(ctx.repo, ctx.console)
    if isinstance(items, Err):
        return items
    return Ok(CommandOutput(data={"items": items.value}))


def run_contributors(request: ReleaseRequest, ctx: HandlerContext) -> CommandResult:
    del request
    ctx.console.info("Collecting contributors", category=Category.EXEC)
    items = contributor_items(ctx.repo)
    if isinstance(items, Err):
        return items
    return Ok(CommandOutput(data={"items": items.value}))


def run_manifest(request: ReleaseRequest, ctx: HandlerContext) -> CommandResult:
    del request, ctx
    return Ok(CommandOutput(data=release_manifest().to_dict(), renderer_hint="text"))


# -----------------------------------------------------------------------------
# release
# -----------------------------------------------------------------------------


def _outcome_rows(release_type: str, outcome: ReleaseOutcome) -> list[StrDict]:
    if outcome.dry_run:
        return _rows(
            [
                ("Release Type", release_type),
                ("Current Version", str(outcome.previous)),
                ("New Version", str(outcome.next)),
                ("Backend", outcome.backend),
                ("Dry Run", "yes"),
                ("Status", "Preview - no changes made"),
            ]
        )
    status = "Released successfully"
    if not outcome.config_saved:
        status += f" ({CONFIG_FILE_NAME} not updated)"
    return _rows(
        [
            ("Release Type", release_type),
            ("Previous Version", str(outcome.previous)),
            ("New Version", str(outcome.next)),
            ("Backend", outcome.backend),
            ("Status", status),
        ]
    )


def run_release(request: ReleaseRequest, ctx: HandlerContext) -> CommandResult:
    decoded = decode_release_flags(request.command, request.args, request.flags)
    if isinstance(decoded, Err):
        return decoded
    flags = decoded.value
    ctx.console.info(f"Starting {flags.release_type} release", category=Category.EXEC)

    loaded = load_config(ctx.root, ctx.registry.names())
    if isinstance(loaded, Err):
        return loaded

    saga = ReleaseSaga(
        config=loaded.value,
        preflight=Preflight(ctx.repo, ctx.console),
        guard=VersionGuard(ctx.repo, ctx.console),
        registry=ctx.registry,
        console=ctx.console,
        root=ctx.root,
    )
    outcome = saga.preview(flags.release_type) if flags.dry_run else saga.run(flags.release_type)
    if isinstance(outcome, Err):
        return outcome
    return Ok(
        CommandOutput(
            data={
                "items": _outcome_rows(flags.release_type, outcome.value),
                "previous_version": str(outcome.value.previous),
                "new_version": str(outcome.value.next),
            }
        )
    )


COMMANDS: dict[str, Command] = {
    "init": run_init,
    "init-options": run_init_options,
    "validate": run_validate,
    "history": run_history,
    "contributors": run_contributors,
    "manifest": run_manifest,
    "release": run_release,
    "patch": run_release,
    "minor": run_release,
    "major": run_release,
}
