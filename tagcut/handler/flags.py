"""Typed views of the untyped request flag map.

Flags arrive as ``{name: str | bool | int}``. Each command decodes the
ones it understands into a frozen struct here; nothing past this module
reads the raw map.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import cast

from tagcut.core.result import Err, Ok, Result
from tagcut.protocol.messages import FlagValue
from tagcut.release.config import DEFAULT_VERSION, PROJECT_KINDS, ProjectKind
from tagcut.release.errors import ReleaseError
from tagcut.release.semver import RELEASE_TYPES, ReleaseType, is_valid_version, parse_release_type

__all__ = [
    "InitFlags",
    "ReleaseFlags",
    "ValidateFlags",
    "decode_init_flags",
    "decode_release_flags",
    "decode_validate_flags",
    "flag_bool",
    "flag_str",
]

INIT_REQUIRED_FLAGS = ("project-type", "backend")
INIT_OPTIONAL_FLAGS = ("version", "project-owner", "project-name", "force")


def flag_str(flags: Mapping[str, FlagValue], name: str) -> str | None:
    value = flags.get(name)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def flag_bool(flags: Mapping[str, FlagValue], name: str) -> bool:
    value = flags.get(name)
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes")
    return False


def _invalid(message: str) -> Err[ReleaseError]:
    return Err(
        ReleaseError(
            kind="invalid_flags",
            message=message,
            details={
                "required_flags": list(INIT_REQUIRED_FLAGS),
                "optional_flags": list(INIT_OPTIONAL_FLAGS),
            },
        )
    )


@dataclass(frozen=True, slots=True)
class InitFlags:
    project_kind: ProjectKind
    backend: str
    version: str
    force: bool = False
    project_owner: str | None = None
    project_name: str | None = None


def decode_init_flags(
    flags: Mapping[str, FlagValue],
    known_backends: Sequence[str],
) -> Result[InitFlags, ReleaseError]:
    kind = flag_str(flags, "project-type")
    if kind is None:
        return _invalid(f"missing required flag: --project-type ({'|'.join(PROJECT_KINDS)})")
    if kind not in PROJECT_KINDS:
        return _invalid(f"invalid project type: {kind} (must be one of: {', '.join(PROJECT_KINDS)})")

    backend = flag_str(flags, "backend")
    if backend is None:
        return _invalid(f"missing required flag: --backend ({'|'.join(known_backends)})")
    if backend not in known_backends:
        return _invalid(f"invalid backend: {backend} (must be one of: {', '.join(known_backends)})")

    version = flag_str(flags, "version") or DEFAULT_VERSION
    if not is_valid_version(version):
        return _invalid(f"invalid version: {version} (use MAJOR.MINOR.PATCH, e.g. {DEFAULT_VERSION})")

    return Ok(
        InitFlags(
            project_kind=cast(ProjectKind, kind),
            backend=backend,
            version=version,
            force=flag_bool(flags, "force"),
            project_owner=flag_str(flags, "project-owner"),
            project_name=flag_str(flags, "project-name"),
        )
    )


@dataclass(frozen=True, slots=True)
class ReleaseFlags:
    release_type: ReleaseType
    dry_run: bool = False


def decode_release_flags(
    command: str,
    args: Sequence[str],
    flags: Mapping[str, FlagValue],
) -> Result[ReleaseFlags, ReleaseError]:
    """Resolve the release type from the command name, first argument or ``--type``."""
    raw = command if command in RELEASE_TYPES else None
    if raw is None:
        raw = args[0] if args else flag_str(flags, "type")
    if raw is None:
        return Err(
            ReleaseError(
                kind="release_type_required",
                message="release type required",
                hint=f"pass one of: {', '.join(RELEASE_TYPES)}",
            )
        )

    release_type = parse_release_type(raw)
    if release_type is None:
        return Err(
            ReleaseError(
                kind="invalid_release_type",
                message=f"invalid release type: {raw}",
                hint=f"valid release types: {', '.join(RELEASE_TYPES)}",
            )
        )
    return Ok(ReleaseFlags(release_type=release_type, dry_run=flag_bool(flags, "dry-run")))


@dataclass(frozen=True, slots=True)
class ValidateFlags:
    show: bool = False


def decode_validate_flags(flags: Mapping[str, FlagValue]) -> ValidateFlags:
    return ValidateFlags(show=flag_bool(flags, "show"))
