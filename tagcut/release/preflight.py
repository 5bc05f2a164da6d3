"""Pre-flight checks: go/no-go predicates run before any side effect.

Each predicate is its own method so it can be exercised alone; ``check``
runs them in a fixed order and stops at the first failure.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Protocol

from tagcut.core.result import Err, Ok, Result
from tagcut.git.repository import GitError, GitStatus
from tagcut.output.console import Category, ConsoleProtocol
from tagcut.release.errors import ReleaseError

__all__ = ["DEFAULT_RELEASE_BRANCHES", "Preflight", "PreflightRepo"]

DEFAULT_RELEASE_BRANCHES: tuple[str, ...] = ("main", "master")


class PreflightRepo(Protocol):
    def is_clean(self) -> Result[bool, GitError]: ...

    def current_branch(self) -> Result[str | None, GitError]: ...

    def upstream_of(self, branch: str) -> Result[str | None, GitError]: ...

    def status(self) -> Result[GitStatus, GitError]: ...


def _git_failed(what: str, e: GitError) -> ReleaseError:
    return ReleaseError(kind="git_failed", message=f"unable to {what}: {e.message}")


class Preflight:
    def __init__(
        self,
        repo: PreflightRepo,
        console: ConsoleProtocol,
        *,
        allowed_branches: Sequence[str] = DEFAULT_RELEASE_BRANCHES,
    ) -> None:
        self._repo = repo
        self._console = console
        self.allowed_branches = tuple(allowed_branches)

    def check(self) -> Result[None, ReleaseError]:
        self._console.verbose("Running pre-flight checks", category=Category.PREFLIGHT)
        steps: tuple[Callable[[], Result[None, ReleaseError]], ...] = (
            self.ensure_clean,
            self.ensure_not_detached,
            self.ensure_release_branch,
            self.ensure_upstream,
            self.ensure_up_to_date,
        )
        for step in steps:
            result = step()
            if isinstance(result, Err):
                return result
        self._console.verbose("Pre-flight checks succeeded", category=Category.PREFLIGHT)
        return Ok(None)

    def ensure_clean(self) -> Result[None, ReleaseError]:
        self._console.verbose("git status --porcelain (check working tree)", category=Category.PREFLIGHT)
        clean = self._repo.is_clean()
        if isinstance(clean, Err):
            return Err(_git_failed("check working tree", clean.error))
        if not clean.value:
            return Err(
                ReleaseError(
                    kind="uncommitted_changes",
                    message="working tree has uncommitted changes",
                    hint="commit or stash your changes before releasing",
                )
            )
        return Ok(None)

    def ensure_not_detached(self) -> Result[None, ReleaseError]:
        branch = self._repo.current_branch()
        if isinstance(branch, Err):
            return Err(_git_failed("determine current branch", branch.error))
        if branch.value is None:
            return Err(
                ReleaseError(
                    kind="detached_head",
                    message="HEAD is detached",
                    hint="check out a release branch first",
                )
            )
        return Ok(None)

    def ensure_release_branch(self) -> Result[None, ReleaseError]:
        branch = self._repo.current_branch()
        if isinstance(branch, Err):
            return Err(_git_failed("determine current branch", branch.error))
        if branch.value not in self.allowed_branches:
            allowed = ", ".join(f"'{b}'" for b in self.allowed_branches)
            return Err(
                ReleaseError(
                    kind="incorrect_branch",
                    message=(
                        f"you are on branch '{branch.value}'; "
                        f"releases are only allowed from {allowed}"
                    ),
                )
            )
        return Ok(None)

    def ensure_upstream(self) -> Result[None, ReleaseError]:
        branch = self._repo.current_branch()
        if isinstance(branch, Err):
            return Err(_git_failed("determine current branch", branch.error))
        name = branch.value or "HEAD"
        upstream = self._repo.upstream_of(name)
        if isinstance(upstream, Err):
            return Err(_git_failed("determine upstream branch", upstream.error))
        if upstream.value is None:
            return Err(
                ReleaseError(
                    kind="no_upstream_branch",
                    message=f"branch '{name}' has no upstream configured",
                    hint=f"git push -u origin {name}",
                )
            )
        self._console.verbose(f"Upstream branch: {upstream.value}", category=Category.PREFLIGHT)
        return Ok(None)

    def ensure_up_to_date(self) -> Result[None, ReleaseError]:
        status = self._repo.status()
        if isinstance(status, Err):
            return Err(_git_failed("check branch status", status.error))
        if status.value.is_behind:
            return Err(
                ReleaseError(
                    kind="branch_out_of_date",
                    message=(
                        f"branch is {status.value.behind} commit(s) behind its upstream"
                    ),
                    hint="pull the latest changes first",
                )
            )
        return Ok(None)
