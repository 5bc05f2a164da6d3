"""Per-project release configuration (``.tagcut.json``).

The file records who owns the project, which backend cuts its releases and
the current version. The version in this file is the source of truth: a
successful release rewrites it.
"""

from __future__ import annotations

import json
from collections.abc import Collection
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Literal, cast

from tagcut.core.result import Err, Ok, Result
from tagcut.core.structured import StrDict, as_str_dict, get_str
from tagcut.platform.files import atomic_write_text
from tagcut.release.errors import ReleaseError
from tagcut.release.semver import Version, is_valid_version

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_VERSION",
    "PROJECT_KINDS",
    "ProjectKind",
    "ReleaseConfig",
    "config_exists",
    "config_path",
    "load_config",
    "save_config",
    "validate_config",
]

CONFIG_FILE_NAME = ".tagcut.json"
DEFAULT_VERSION = "0.1.0"

ProjectKind = Literal["frontend", "backend", "other"]
PROJECT_KINDS: tuple[ProjectKind, ...] = ("frontend", "backend", "other")


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    project_owner: str
    project_name: str
    project_kind: ProjectKind
    backend: str
    version: str

    def with_version(self, version: Version) -> ReleaseConfig:
        return replace(self, version=str(version))

    def to_dict(self) -> StrDict:
        return {
            "projectOwner": self.project_owner,
            "projectName": self.project_name,
            "projectType": self.project_kind,
            "backend": self.backend,
            "version": self.version,
        }


def config_path(root: Path) -> Path:
    return root / CONFIG_FILE_NAME


def config_exists(root: Path) -> bool:
    return config_path(root).is_file()


def validate_config(cfg: ReleaseConfig, known_backends: Collection[str]) -> Result[None, ReleaseError]:
    if cfg.project_kind not in PROJECT_KINDS:
        return Err(
            ReleaseError(
                kind="config_invalid",
                message=f"invalid project type {cfg.project_kind!r} in {CONFIG_FILE_NAME}",
                hint=f"expected one of: {', '.join(PROJECT_KINDS)}",
            )
        )
    if cfg.backend not in known_backends:
        return Err(
            ReleaseError(
                kind="config_invalid",
                message=f"unknown release backend {cfg.backend!r} in {CONFIG_FILE_NAME}",
                hint=f"expected one of: {', '.join(sorted(known_backends))}",
            )
        )
    if not cfg.version:
        return Err(
            ReleaseError(
                kind="config_invalid",
                message=f"version is missing in {CONFIG_FILE_NAME}",
            )
        )
    if not is_valid_version(cfg.version):
        return Err(
            ReleaseError(
                kind="config_invalid",
                message=f"version {cfg.version!r} is not a valid semantic version",
                hint="use MAJOR.MINOR.PATCH, e.g. 0.1.0",
            )
        )
    return Ok(None)


def load_config(root: Path, known_backends: Collection[str]) -> Result[ReleaseConfig, ReleaseError]:
    """Read and validate ``.tagcut.json`` under ``root``."""
    path = config_path(root)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(
            ReleaseError(
                kind="config_not_found",
                message=f"no {CONFIG_FILE_NAME} configuration found",
                hint="run 'tagcut init' first to create the release configuration",
            )
        )
    except UnicodeDecodeError as e:
        return Err(
            ReleaseError(kind="config_invalid", message=f"{CONFIG_FILE_NAME} is not valid UTF-8: {e}")
        )
    except OSError as e:
        return Err(
            ReleaseError(kind="config_invalid", message=f"failed to read {path}: {e}")
        )

    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(kind="config_invalid", message=f"invalid JSON in {CONFIG_FILE_NAME}: {e}")
        )

    data = as_str_dict(obj)
    if data is None:
        return Err(
            ReleaseError(
                kind="config_invalid",
                message=f"{CONFIG_FILE_NAME} root must be a JSON object",
            )
        )

    cfg = ReleaseConfig(
        project_owner=get_str(data, "projectOwner") or "",
        project_name=get_str(data, "projectName") or "",
        project_kind=cast(ProjectKind, get_str(data, "projectType") or ""),
        backend=get_str(data, "backend") or "",
        version=get_str(data, "version") or "",
    )
    checked = validate_config(cfg, known_backends)
    if isinstance(checked, Err):
        return checked
    return Ok(cfg)


def save_config(root: Path, cfg: ReleaseConfig) -> Result[None, ReleaseError]:
    """Write ``cfg`` with 2-space indentation."""
    path = config_path(root)
    try:
        atomic_write_text(path, json.dumps(cfg.to_dict(), indent=2) + "\n")
    except OSError as e:
        return Err(
            ReleaseError(kind="save_error", message=f"failed to write {path}: {e}")
        )
    return Ok(None)
