"""Release orchestration.

``ReleaseSaga.run`` drives one release:

    preflight -> guard -> resolve next version -> backend.release
        success: persist the new version (a failed write only warns)
        failure: backend.revert, then report the release failure

Preflight and guard failures happen before any side effect and are never
rolled back. An execution failure always gets exactly one rollback pass; if
that pass fails too, the rollback error is reported with the release error
as its cause.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from tagcut.core.result import Err, Ok, Result
from tagcut.output.console import Category, ConsoleProtocol
from tagcut.release.backend import Backend
from tagcut.release.config import CONFIG_FILE_NAME, ReleaseConfig, save_config
from tagcut.release.errors import ReleaseError
from tagcut.release.registry import BackendRegistry
from tagcut.release.semver import ReleaseType, Version, next_version

__all__ = ["GuardCheck", "PreflightCheck", "ReleaseOutcome", "ReleaseSaga"]


class PreflightCheck(Protocol):
    def check(self) -> Result[None, ReleaseError]: ...


class GuardCheck(Protocol):
    def check(self, config: ReleaseConfig) -> Result[Version, ReleaseError]: ...


@dataclass(frozen=True, slots=True)
class ReleaseOutcome:
    previous: Version
    next: Version
    backend: str
    dry_run: bool = False
    config_saved: bool = True


class ReleaseSaga:
    def __init__(
        self,
        *,
        config: ReleaseConfig,
        preflight: PreflightCheck,
        guard: GuardCheck,
        registry: BackendRegistry,
        console: ConsoleProtocol,
        root: Path,
    ) -> None:
        self._config = config
        self._preflight = preflight
        self._guard = guard
        self._registry = registry
        self._console = console
        self._root = root

    def preview(self, release_type: ReleaseType) -> Result[ReleaseOutcome, ReleaseError]:
        """Guard and resolve only; no side effects."""
        current = self._guard.check(self._config)
        if isinstance(current, Err):
            return current
        nxt = next_version(current.value, release_type)
        self._console.info(
            f"Dry run: {current.value} -> {nxt} ({release_type}) via {self._config.backend}",
            category=Category.EXEC,
        )
        return Ok(
            ReleaseOutcome(
                previous=current.value,
                next=nxt,
                backend=self._config.backend,
                dry_run=True,
                config_saved=False,
            )
        )

    def run(self, release_type: ReleaseType) -> Result[ReleaseOutcome, ReleaseError]:
        console = self._console

        ready = self._preflight.check()
        if isinstance(ready, Err):
            return ready

        current = self._guard.check(self._config)
        if isinstance(current, Err):
            return current

        backend = self._registry.get(self._config.backend)
        if isinstance(backend, Err):
            return backend

        nxt = next_version(current.value, release_type)
        console.info(f"Releasing {current.value} -> {nxt} ({release_type})", category=Category.EXEC)

        released = backend.value.release(nxt)
        if isinstance(released, Err):
            return Err(self._roll_back(backend.value, released.error))

        saved = save_config(self._root, self._config.with_version(nxt))
        if isinstance(saved, Err):
            console.warning(
                f"release {nxt} succeeded but {CONFIG_FILE_NAME} was not updated: {saved.error.message}",
                category=Category.CONFIG,
            )
        else:
            console.verbose(f"Updated {CONFIG_FILE_NAME} to {nxt}", category=Category.CONFIG)

        console.success(f"Released {nxt}", category=Category.EXEC)
        return Ok(
            ReleaseOutcome(
                previous=current.value,
                next=nxt,
                backend=backend.value.name,
                config_saved=isinstance(saved, Ok),
            )
        )

    def _roll_back(self, backend: Backend, failure: ReleaseError) -> ReleaseError:
        console = self._console
        console.error(failure.message, category=Category.EXEC)
        console.warning("Release failed, rolling back completed steps", category=Category.ROLLBACK)

        reverted = backend.revert()
        if isinstance(reverted, Err):
            console.error(reverted.error.message, category=Category.ROLLBACK)
            return ReleaseError(
                kind="rollback_failed",
                message=f"{reverted.error.message} (after: {failure.message})",
                hint="inspect the repository and remote; some release steps may remain",
                details=reverted.error.details,
                cause=failure,
            )

        console.info("Rollback complete", category=Category.ROLLBACK)
        return failure
