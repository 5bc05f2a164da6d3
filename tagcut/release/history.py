"""Release history and contributor tables."""

from __future__ import annotations

from typing import Protocol

from tagcut.core.result import Err, Ok, Result
from tagcut.core.structured import StrDict
from tagcut.git.repository import Contributor, GitError
from tagcut.output.console import Category, ConsoleProtocol
from tagcut.release.errors import ReleaseError

__all__ = ["HistoryRepo", "contributor_items", "history_items"]


class HistoryRepo(Protocol):
    def tags(self) -> Result[list[str], GitError]: ...

    def count_commits_between(self, start: str | None, end: str) -> Result[int, GitError]: ...

    def contributors(self) -> Result[list[Contributor], GitError]: ...


def _git_failed(what: str, e: GitError) -> ReleaseError:
    return ReleaseError(kind="git_failed", message=f"failed to {what}: {e.message}")


def history_items(repo: HistoryRepo, console: ConsoleProtocol) -> Result[list[StrDict], ReleaseError]:
    """One row per tag with the number of commits since the previous tag."""
    tags = repo.tags()
    if isinstance(tags, Err):
        return Err(_git_failed("list tags", tags.error))
    console.verbose(f"Found {len(tags.value)} tags", category=Category.EXEC)

    items: list[StrDict] = []
    previous: str | None = None
    for tag in tags.value:
        count = repo.count_commits_between(previous, tag)
        if isinstance(count, Err):
            return Err(_git_failed(f"count commits for {tag}", count.error))
        items.append({"version": tag, "from": previous or "", "commits": count.value})
        previous = tag
    return Ok(items)


def contributor_items(repo: HistoryRepo) -> Result[list[StrDict], ReleaseError]:
    contributors = repo.contributors()
    if isinstance(contributors, Err):
        return Err(_git_failed("collect contributors", contributors.error))
    return Ok([{"author": c.author, "commits": c.commits} for c in contributors.value])
