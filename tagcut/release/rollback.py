"""Compensating rollback for a partially completed release.

``revert_git_release`` undoes whatever ``GitReleaseState`` says was done,
in a fixed order:

1. delete the platform release (before its tag disappears)
2. delete the local tag (best effort), then the remote tag if pushed
3. counter the release commit: revert + push when it was shared,
   hard reset to the pre-release HEAD when it was not
4. remove untracked files left behind by the release tool

Shared history is never rewritten. A pushed commit is countered by a new
commit, so a successful rollback leaves evidence rather than restoring the
repository as if nothing happened.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from tagcut.core.result import Err, Ok, Result
from tagcut.git.repository import GitError, RepoSlug
from tagcut.github.releases import PlatformError
from tagcut.output.console import Category, ConsoleProtocol
from tagcut.release.errors import ReleaseError

__all__ = [
    "GitReleaseState",
    "PlatformReleaseDeleter",
    "RollbackRepo",
    "revert_git_release",
]


@dataclass(slots=True)
class GitReleaseState:
    """Side effects completed so far by one release attempt.

    Starts empty; each field is set right after its step succeeds. Kept in
    memory only.
    """

    pre_head: str = ""
    release_head: str = ""
    tag_name: str = ""
    platform_release_tag: str = ""
    pushed_commit: bool = False
    pushed_tag: bool = False
    created_platform_release: bool = False

    @property
    def is_empty(self) -> bool:
        return not (
            self.release_head
            or self.tag_name
            or self.pushed_commit
            or self.pushed_tag
            or self.created_platform_release
        )


class RollbackRepo(Protocol):
    def remote_repo(self) -> Result[RepoSlug, GitError]: ...

    def delete_local_tag(self, tag: str) -> Result[None, GitError]: ...

    def delete_remote_tag(self, tag: str) -> Result[None, GitError]: ...

    def revert_commit(self, sha: str) -> Result[None, GitError]: ...

    def commit_empty(self, message: str) -> Result[None, GitError]: ...

    def push_head(self) -> Result[None, GitError]: ...

    def hard_reset(self, sha: str) -> Result[None, GitError]: ...

    def clean_untracked(self) -> Result[None, GitError]: ...


class PlatformReleaseDeleter(Protocol):
    def delete_release(self, repo: RepoSlug, tag: str) -> Result[bool, PlatformError]: ...


def _failed(message: str) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="rollback_failed", message=f"rollback: {message}"))


def revert_git_release(
    state: GitReleaseState,
    repo: RollbackRepo,
    platform: PlatformReleaseDeleter,
    console: ConsoleProtocol,
) -> Result[None, ReleaseError]:
    """Undo the side effects recorded in ``state``; stop at the first fatal failure."""
    cat = Category.ROLLBACK

    if state.created_platform_release and state.platform_release_tag:
        tag = state.platform_release_tag
        slug = repo.remote_repo()
        if isinstance(slug, Err):
            return _failed(f"failed deleting platform release {tag}: {slug.error.message}")
        deleted = platform.delete_release(slug.value, tag)
        if isinstance(deleted, Err):
            return _failed(f"failed deleting platform release {tag}: {deleted.error.message}")
        if deleted.value:
            console.info(f"Deleted platform release {tag}", category=cat)
        else:
            console.verbose(f"Platform release for {tag} not found (nothing to delete)", category=cat)

    if state.tag_name:
        tag = state.tag_name
        local = repo.delete_local_tag(tag)
        if isinstance(local, Err):
            console.verbose(f"Local tag {tag} not deleted: {local.error.message}", category=cat)
        else:
            console.info(f"Deleted local tag {tag}", category=cat)

        if state.pushed_tag:
            remote = repo.delete_remote_tag(tag)
            if isinstance(remote, Err):
                return _failed(f"failed deleting remote tag {tag}: {remote.error.message}")
            console.info(f"Deleted remote tag {tag}", category=cat)

    if state.release_head:
        sha = state.release_head
        if state.pushed_commit:
            reverted = repo.revert_commit(sha)
            if isinstance(reverted, Err):
                # Empty release commits have nothing to revert.
                console.verbose(
                    f"git revert {sha} failed ({reverted.error.message}); "
                    "recording an empty revert commit instead",
                    category=cat,
                )
                fallback = repo.commit_empty(f"revert {sha}")
                if isinstance(fallback, Err):
                    return _failed(f"failed creating revert commit for {sha}: {fallback.error.message}")

            pushed = repo.push_head()
            if isinstance(pushed, Err):
                return _failed(f"failed pushing revert commit: {pushed.error.message}")
            console.info(f"Pushed revert of release commit {sha}", category=cat)
        elif state.pre_head:
            reset = repo.hard_reset(state.pre_head)
            if isinstance(reset, Err):
                return _failed(f"failed hard reset to {state.pre_head}: {reset.error.message}")
            console.info(f"Reset branch to {state.pre_head}", category=cat)
        else:
            return _failed("inconsistent state (release commit exists but pre-release HEAD is missing)")

    cleaned = repo.clean_untracked()
    if isinstance(cleaned, Err):
        return _failed(f"failed cleaning untracked files: {cleaned.error.message}")

    return Ok(None)
