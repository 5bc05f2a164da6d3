"""Git operations used by releases and rollbacks.

Usage:
    from tagcut.git import Repository

    repo = Repository(Path("/path/to/repo"))
    tag = repo.latest_tag()
"""

from tagcut.git.repository import (
    Contributor,
    GitError,
    GitStatus,
    RepoSlug,
    Repository,
    StatusEntry,
    parse_remote,
)

__all__ = [
    "Contributor",
    "GitError",
    "GitStatus",
    "RepoSlug",
    "Repository",
    "StatusEntry",
    "parse_remote",
]
