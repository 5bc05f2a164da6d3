"""Descriptor of the built-in release handler."""

from __future__ import annotations

from tagcut import __version__
from tagcut.protocol.manifest import CommandSpec, FlagSpec, Manifest
from tagcut.release.backends import BUILTIN_BACKEND_NAMES
from tagcut.release.config import DEFAULT_VERSION, PROJECT_KINDS

__all__ = ["HANDLER_NAME", "release_manifest"]

HANDLER_NAME = "release"

_DRY_RUN = FlagSpec(
    name="dry-run",
    type="bool",
    description="Preview the next version without making changes",
    default=False,
)


def _release_command(name: str, description: str) -> CommandSpec:
    return CommandSpec(name=name, description=description, flags=(_DRY_RUN,))


def release_manifest() -> Manifest:
    return Manifest(
        name=HANDLER_NAME,
        version=__version__,
        description="Semantic version release cuts with pluggable release backends",
        author="tagcut",
        commands=(
            CommandSpec(
                name="init",
                description="Create the release configuration and initialize the backend",
                outputs=("text",),
                flags=(
                    FlagSpec(
                        name="project-type",
                        type="string",
                        description=f"Project type ({', '.join(PROJECT_KINDS)})",
                        required=True,
                    ),
                    FlagSpec(
                        name="backend",
                        type="string",
                        description=f"Release backend ({', '.join(BUILTIN_BACKEND_NAMES)})",
                        required=True,
                    ),
                    FlagSpec(
                        name="version",
                        type="string",
                        description="Initial version",
                        default=DEFAULT_VERSION,
                    ),
                    FlagSpec(name="project-owner", type="string", description="Override the detected owner"),
                    FlagSpec(name="project-name", type="string", description="Override the detected name"),
                    FlagSpec(name="force", type="bool", description="Overwrite an existing config", default=False),
                ),
            ),
            CommandSpec(name="init-options", description="List init options and recommended backends"),
            CommandSpec(
                name="validate",
                description="Validate the release configuration",
                flags=(FlagSpec(name="show", type="bool", description="Show the configuration", default=False),),
            ),
            CommandSpec(
                name="release",
                description="Cut a release of the given type",
                args=("type",),
                flags=(
                    FlagSpec(name="type", type="string", description="Release type (major, minor, patch)"),
                    _DRY_RUN,
                ),
            ),
            _release_command("patch", "Cut a patch release"),
            _release_command("minor", "Cut a minor release"),
            _release_command("major", "Cut a major release"),
            CommandSpec(name="history", description="Release tags with commit counts"),
            CommandSpec(name="contributors", description="Authors with their commit counts"),
            CommandSpec(name="manifest", description="Describe this handler", outputs=("text",)),
        ),
    )
