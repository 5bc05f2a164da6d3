"""Backend registry: name -> backend lookup.

A registry is an explicit value, filled once per process by
``register_builtin_backends`` and handed to whatever needs it (the saga,
the init command). Registering a name twice replaces the first backend.

Usage:
    registry = BackendRegistry()
    register_builtin_backends(registry, toolkit)

    match registry.get(config.backend):
        case Ok(backend):
            backend.release(next_version)
        case Err(e):
            print(e.message)
"""

from __future__ import annotations

from tagcut.core.result import Err, Ok, Result
from tagcut.release.backend import Backend
from tagcut.release.errors import ReleaseError

__all__ = ["BackendRegistry"]


class BackendRegistry:
    def __init__(self) -> None:
        self._backends: dict[str, Backend] = {}

    def register(self, backend: Backend) -> None:
        self._backends[backend.name] = backend

    def get(self, name: str) -> Result[Backend, ReleaseError]:
        backend = self._backends.get(name)
        if backend is None:
            known = ", ".join(self.names()) or "none registered"
            return Err(
                ReleaseError(
                    kind="backend_not_found",
                    message=f"release backend not found: {name}",
                    hint=f"available backends: {known}",
                )
            )
        return Ok(backend)

    def names(self) -> list[str]:
        return sorted(self._backends)

    def __contains__(self, name: object) -> bool:
        return name in self._backends

    def __len__(self) -> int:
        return len(self._backends)
