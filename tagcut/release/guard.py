"""Version guard: never release behind an already published version."""

from __future__ import annotations

from typing import Protocol

from tagcut.core.result import Err, Ok, Result
from tagcut.git.repository import GitError
from tagcut.output.console import Category, ConsoleProtocol
from tagcut.release.config import CONFIG_FILE_NAME, ReleaseConfig
from tagcut.release.errors import ReleaseError
from tagcut.release.semver import Version, parse_version

__all__ = ["TagSource", "VersionGuard", "ensure_version_is_valid"]


class TagSource(Protocol):
    def fetch(self) -> Result[str, GitError]: ...

    def latest_tag(self) -> Result[str | None, GitError]: ...


def ensure_version_is_valid(
    local: str,
    latest_tag: str | None,
    console: ConsoleProtocol,
) -> Result[Version, ReleaseError]:
    """Compare the configured version against the latest published tag.

    Fails only when ``latest_tag`` parses and is strictly greater than
    ``local``. A missing or unparsable tag skips the comparison with a
    warning.
    """
    local_ver = parse_version(local)
    if local_ver is None:
        return Err(
            ReleaseError(
                kind="version_invalid",
                message=f"version {local} in {CONFIG_FILE_NAME} is not a valid semantic version",
            )
        )

    if latest_tag is None:
        console.warning(
            f"no release tags found; treating {local_ver} as the first release",
            category=Category.GUARD,
        )
        return Ok(local_ver)

    remote_ver = parse_version(latest_tag)
    if remote_ver is None:
        console.warning(
            f"latest tag {latest_tag} is not a valid semantic version, skipping comparison",
            category=Category.GUARD,
        )
        console.verbose(f"Using local version {local_ver}", category=Category.GUARD)
        return Ok(local_ver)

    if local_ver < remote_ver:
        return Err(
            ReleaseError(
                kind="version_violation",
                message=(
                    f"version violation: local version {local_ver} is smaller "
                    f"than latest tag {remote_ver}"
                ),
                hint=f"update the version in {CONFIG_FILE_NAME} to at least {remote_ver}",
                details={"local": str(local_ver), "remote": str(remote_ver)},
            )
        )

    console.verbose(
        f"Local version {local_ver} is >= latest tag {remote_ver}, proceeding.",
        category=Category.GUARD,
    )
    return Ok(local_ver)


class VersionGuard:
    def __init__(self, repo: TagSource, console: ConsoleProtocol) -> None:
        self._repo = repo
        self._console = console

    def check(self, config: ReleaseConfig) -> Result[Version, ReleaseError]:
        """Refresh remote tags, then validate ``config.version`` against the latest."""
        self._console.verbose("Running version guard checks", category=Category.GUARD)

        fetched = self._repo.fetch()
        if isinstance(fetched, Err):
            self._console.warning(
                f"could not refresh remote tags, using local state: {fetched.error.message}",
                category=Category.GUARD,
            )

        latest = self._repo.latest_tag()
        if isinstance(latest, Err):
            return Err(
                ReleaseError(
                    kind="tag_lookup_failed",
                    message=f"could not read the latest tag: {latest.error.message}",
                )
            )

        if latest.value is not None:
            self._console.verbose(f"Latest tag: {latest.value}", category=Category.GUARD)
        return ensure_version_is_valid(config.version, latest.value, self._console)
