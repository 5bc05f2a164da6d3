"""Release backend contract and the toolkit backends are built from.

A backend wraps one external release tool. It exposes four capabilities
(name, initialize, release, revert) and composes a ``ReleaseToolkit`` for
the shared parts: binary lookup, release commit/tag/push primitives,
token handling and the generic revert sequence.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Protocol

from tagcut.core.result import Err, Ok, Result
from tagcut.git.repository import GitError
from tagcut.github.releases import PlatformReleases, get_token
from tagcut.output.console import Category, ConsoleProtocol
from tagcut.platform.process import ProcessError
from tagcut.platform.process import run as run_process
from tagcut.release.config import ReleaseConfig
from tagcut.release.errors import ReleaseError
from tagcut.release.rollback import (
    GitReleaseState,
    PlatformReleaseDeleter,
    RollbackRepo,
    revert_git_release,
)
from tagcut.release.semver import Version

__all__ = [
    "RELEASE_COMMIT_PREFIX",
    "Backend",
    "ReleaseToolkit",
    "ToolRunner",
    "ToolkitRepo",
]

RELEASE_COMMIT_PREFIX = "chore(release):"

type ToolRunner = Callable[[list[str], Path, Mapping[str, str] | None], Result[str, ProcessError]]


def _run_tool(cmd: list[str], cwd: Path, env: Mapping[str, str] | None) -> Result[str, ProcessError]:
    return run_process(cmd, cwd, env)


class Backend(Protocol):
    """A pluggable release tool.

    ``initialize`` is idempotent: it returns Ok(False) without side effects
    when the tool's own config already exists. ``release`` records each
    completed step so that ``revert`` can undo exactly those.
    """

    name: str

    def initialize(self, config: ReleaseConfig) -> Result[bool, ReleaseError]: ...

    def release(self, version: Version) -> Result[None, ReleaseError]: ...

    def revert(self) -> Result[None, ReleaseError]: ...


class ToolkitRepo(RollbackRepo, Protocol):
    """Git operations a backend needs (``Repository`` satisfies it)."""

    path: Path
    remote: str

    def head(self) -> Result[str, GitError]: ...

    def commit_all(self, message: str) -> Result[None, GitError]: ...

    def create_tag(self, tag: str) -> Result[None, GitError]: ...

    def push_tag(self, tag: str) -> Result[None, GitError]: ...

    def has_tag(self, tag: str) -> Result[bool, GitError]: ...

    def has_remote_tag(self, tag: str) -> Result[bool, GitError]: ...

    def remote_contains(self, sha: str) -> Result[bool, GitError]: ...


def _git_failed(what: str, e: GitError) -> ReleaseError:
    return ReleaseError(kind="git_failed", message=f"failed to {what}: {e.message}")


class ReleaseToolkit:
    """Shared helpers composed into every backend."""

    def __init__(
        self,
        repo: ToolkitRepo,
        console: ConsoleProtocol,
        *,
        platform: PlatformReleaseDeleter | None = None,
        env: Mapping[str, str] | None = None,
        which: Callable[[str], str | None] = shutil.which,
        runner: ToolRunner = _run_tool,
    ) -> None:
        self.repo = repo
        self.console = console
        self.platform = platform if platform is not None else PlatformReleases(env=env)
        self._env = env
        self._which = which
        self._runner = runner

    @property
    def root(self) -> Path:
        return self.repo.path

    # -------------------------------------------------------------------------
    # Environment
    # -------------------------------------------------------------------------

    def require_binary(self, name: str) -> Result[str, ReleaseError]:
        self.console.verbose(f"Searching for {name} executable: which {name}", category=Category.INIT)
        path = self._which(name)
        if path is None:
            return Err(
                ReleaseError(
                    kind="binary_missing",
                    message=f"required dependency missing: {name}",
                    hint=f"install {name} and make sure it is on PATH",
                )
            )
        self.console.info(f"Found {name} at {path}", category=Category.INIT)
        return Ok(path)

    def token(self) -> Result[str, ReleaseError]:
        token = get_token(self._env)
        if isinstance(token, Err):
            return Err(ReleaseError(kind="token_missing", message=token.error.message))
        return token

    def tool_env(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        base = dict(os.environ if self._env is None else self._env)
        base.update(extra or {})
        return base

    def run_tool(
        self,
        cmd: list[str],
        *,
        env: Mapping[str, str] | None = None,
    ) -> Result[str, ProcessError]:
        """Run a release tool in the project root."""
        self.console.verbose(" ".join(cmd), category=Category.EXEC)
        return self._runner(cmd, self.root, env if env is not None else self._env)

    # -------------------------------------------------------------------------
    # Release primitives
    # -------------------------------------------------------------------------

    def head(self) -> Result[str, ReleaseError]:
        head = self.repo.head()
        if isinstance(head, Err):
            return Err(_git_failed("read HEAD", head.error))
        return head

    def create_release_commit(self, version: Version, state: GitReleaseState) -> Result[str, ReleaseError]:
        """Commit tracked changes as the release commit; returns its hash.

        ``state.release_head`` is set as soon as the commit exists. If its
        hash cannot be read back it holds the symbolic ``HEAD``, which is
        still enough for rollback to reset to ``state.pre_head``.
        """
        message = f"{RELEASE_COMMIT_PREFIX} {version}"
        self.console.verbose(f'git commit --allow-empty -a -m "{message}"', category=Category.EXEC)
        committed = self.repo.commit_all(message)
        if isinstance(committed, Err):
            return Err(_git_failed("create release commit", committed.error))
        state.release_head = "HEAD"
        self.console.info(f"Created release commit: {message}", category=Category.EXEC)

        head = self.head()
        if isinstance(head, Err):
            return head
        state.release_head = head.value
        return head

    def create_tag(self, version: Version) -> Result[str, ReleaseError]:
        tag = version.to_tag()
        self.console.verbose(f"git tag {tag}", category=Category.EXEC)
        created = self.repo.create_tag(tag)
        if isinstance(created, Err):
            return Err(_git_failed("create git tag", created.error))
        self.console.info(f"Created git tag: {tag}", category=Category.EXEC)
        return Ok(tag)

    def push_commits(self) -> Result[None, ReleaseError]:
        self.console.verbose(f"git push {self.repo.remote} HEAD", category=Category.EXEC)
        pushed = self.repo.push_head()
        if isinstance(pushed, Err):
            return Err(_git_failed("push release commit", pushed.error))
        self.console.info(f"Pushed release commit to {self.repo.remote}", category=Category.EXEC)
        return Ok(None)

    def push_tag(self, tag: str) -> Result[None, ReleaseError]:
        self.console.verbose(f"git push {self.repo.remote} {tag}", category=Category.EXEC)
        pushed = self.repo.push_tag(tag)
        if isinstance(pushed, Err):
            return Err(_git_failed("push git tag", pushed.error))
        self.console.info(f"Pushed git tag: {tag}", category=Category.EXEC)
        return Ok(None)

    def record_tool_side_effects(self, state: GitReleaseState, version: Version) -> None:
        """Fill ``state`` from the repository after a tool that commits, tags
        and pushes on its own stopped part way.

        Only ever sets fields; what could not be checked is left as it was
        and reported as a warning.
        """
        cat = Category.ROLLBACK
        repo = self.repo

        head = repo.head()
        if isinstance(head, Err):
            self.console.warning(f"could not read HEAD after failure: {head.error.message}", category=cat)
        elif head.value != state.pre_head:
            state.release_head = head.value

        tag = version.to_tag()
        local = repo.has_tag(tag)
        if isinstance(local, Err):
            self.console.warning(f"could not check local tag {tag}: {local.error.message}", category=cat)
        elif local.value:
            state.tag_name = tag

        remote = repo.has_remote_tag(tag)
        if isinstance(remote, Err):
            self.console.warning(f"could not check remote tag {tag}: {remote.error.message}", category=cat)
        elif remote.value:
            state.tag_name = tag
            state.pushed_tag = True

        if state.release_head and not state.pushed_commit:
            pushed = repo.remote_contains(state.release_head)
            if isinstance(pushed, Err):
                self.console.warning(
                    f"could not check whether {state.release_head} was pushed: {pushed.error.message}",
                    category=cat,
                )
            elif pushed.value:
                state.pushed_commit = True

        self.console.verbose(
            f"Recorded after failure: head={state.release_head or '-'} tag={state.tag_name or '-'} "
            f"pushed_commit={state.pushed_commit} pushed_tag={state.pushed_tag}",
            category=cat,
        )

    # -------------------------------------------------------------------------
    # Rollback
    # -------------------------------------------------------------------------

    def revert(self, state: GitReleaseState) -> Result[None, ReleaseError]:
        return revert_git_release(state, self.repo, self.platform, self.console)
