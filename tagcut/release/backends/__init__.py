"""Built-in release backends."""

from __future__ import annotations

from tagcut.release.backend import ReleaseToolkit
from tagcut.release.backends.goreleaser import GoReleaser
from tagcut.release.backends.jreleaser import JReleaser
from tagcut.release.backends.release_it import ReleaseIt
from tagcut.release.registry import BackendRegistry

__all__ = [
    "BUILTIN_BACKEND_NAMES",
    "GoReleaser",
    "JReleaser",
    "ReleaseIt",
    "register_builtin_backends",
]

BUILTIN_BACKEND_NAMES: tuple[str, ...] = (GoReleaser.name, JReleaser.name, ReleaseIt.name)


def register_builtin_backends(registry: BackendRegistry, toolkit: ReleaseToolkit) -> BackendRegistry:
    registry.register(GoReleaser(toolkit))
    registry.register(JReleaser(toolkit))
    registry.register(ReleaseIt(toolkit))
    return registry
