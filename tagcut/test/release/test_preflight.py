"""Tests for release/preflight.py."""

from __future__ import annotations

from tagcut.core.result import Err, Ok, Result
from tagcut.git.repository import GitError, GitStatus
from tagcut.output.console import MockConsole
from tagcut.release.preflight import Preflight


class FakeRepo:
    def __init__(
        self,
        *,
        clean: bool = True,
        branch: str | None = "main",
        upstream: str | None = "origin/main",
        behind: int = 0,
        broken: str | None = None,
    ) -> None:
        self.clean = clean
        self.branch = branch
        self.upstream = upstream
        self.behind = behind
        self.broken = broken
        self.calls: list[str] = []

    def _fail(self, name: str) -> GitError | None:
        self.calls.append(name)
        if self.broken == name:
            return GitError(command=name, message="not a git repository")
        return None

    def is_clean(self) -> Result[bool, GitError]:
        if (e := self._fail("is_clean")) is not None:
            return Err(e)
        return Ok(self.clean)

    def current_branch(self) -> Result[str | None, GitError]:
        if (e := self._fail("current_branch")) is not None:
            return Err(e)
        return Ok(self.branch)

    def upstream_of(self, branch: str) -> Result[str | None, GitError]:
        if (e := self._fail("upstream_of")) is not None:
            return Err(e)
        return Ok(self.upstream)

    def status(self) -> Result[GitStatus, GitError]:
        if (e := self._fail("status")) is not None:
            return Err(e)
        return Ok(GitStatus(branch=self.branch or "HEAD", upstream=self.upstream, behind=self.behind))


def _code(repo: FakeRepo, **kwargs: object) -> str | None:
    result = Preflight(repo, MockConsole(), **kwargs).check()  # type: ignore[arg-type]
    if isinstance(result, Err):
        return result.error.code
    return None


class TestPreflight:
    def test_all_checks_pass(self) -> None:
        assert _code(FakeRepo()) is None

    def test_dirty_tree(self) -> None:
        assert _code(FakeRepo(clean=False)) == "UNCOMMITTED_CHANGES"

    def test_detached_head(self) -> None:
        assert _code(FakeRepo(branch=None)) == "DETACHED_HEAD"

    def test_wrong_branch(self) -> None:
        result = Preflight(FakeRepo(branch="feature/x"), MockConsole()).check()

        assert isinstance(result, Err)
        assert result.error.code == "INCORRECT_BRANCH"
        assert "feature/x" in result.error.message

    def test_master_is_a_release_branch(self) -> None:
        assert _code(FakeRepo(branch="master")) is None

    def test_custom_release_branches(self) -> None:
        assert _code(FakeRepo(branch="trunk"), allowed_branches=("trunk",)) is None
        assert _code(FakeRepo(branch="main"), allowed_branches=("trunk",)) == "INCORRECT_BRANCH"

    def test_no_upstream(self) -> None:
        assert _code(FakeRepo(upstream=None)) == "NO_UPSTREAM_BRANCH"

    def test_behind_upstream(self) -> None:
        result = Preflight(FakeRepo(behind=3), MockConsole()).check()

        assert isinstance(result, Err)
        assert result.error.code == "BRANCH_OUT_OF_DATE"
        assert "3 commit(s) behind" in result.error.message

    def test_git_failure_is_git_failed(self) -> None:
        assert _code(FakeRepo(broken="is_clean")) == "GIT_FAILED"

    def test_first_failure_wins(self) -> None:
        """A dirty tree on the wrong branch reports the dirty tree."""
        repo = FakeRepo(clean=False, branch="dev", upstream=None, behind=2)

        assert _code(repo) == "UNCOMMITTED_CHANGES"
        assert repo.calls == ["is_clean"]

    def test_checks_run_in_order(self) -> None:
        repo = FakeRepo()
        Preflight(repo, MockConsole()).check()

        assert repo.calls[0] == "is_clean"
        assert repo.calls[-1] == "status"
        assert repo.calls.index("upstream_of") < repo.calls.index("status")
