"""Tests for release/guard.py."""

from __future__ import annotations

import pytest

from tagcut.core.result import Err, Ok, Result
from tagcut.git.repository import GitError
from tagcut.output.console import MockConsole
from tagcut.release.config import ReleaseConfig
from tagcut.release.guard import VersionGuard, ensure_version_is_valid
from tagcut.release.semver import Version


class FakeTags:
    def __init__(
        self,
        latest: Result[str | None, GitError],
        *,
        fetch_error: str | None = None,
    ) -> None:
        self.latest = latest
        self.fetch_error = fetch_error
        self.fetched = 0

    def fetch(self) -> Result[str, GitError]:
        self.fetched += 1
        if self.fetch_error is not None:
            return Err(GitError(command="fetch", message=self.fetch_error))
        return Ok("")

    def latest_tag(self) -> Result[str | None, GitError]:
        return self.latest


def _config(version: str) -> ReleaseConfig:
    return ReleaseConfig("acme", "widget", "other", "goreleaser", version)


class TestEnsureVersionIsValid:
    @pytest.mark.parametrize(
        ("local", "remote", "fails"),
        [
            ("1.2.2", "v1.2.2", False),
            ("1.2.3", "v1.2.2", False),
            ("2.0.0", "v1.9.9", False),
            ("1.2.2", "v1.3.0", True),
            ("1.2.2", "v1.2.3", True),
            ("1.0.0", "v1.0.0-rc.1", False),
            ("1.0.0-rc.1", "v1.0.0", True),
        ],
    )
    def test_fails_iff_local_is_behind(self, local: str, remote: str, fails: bool) -> None:
        result = ensure_version_is_valid(local, remote, MockConsole())
        assert isinstance(result, Err) is fails

    def test_violation_names_both_versions(self) -> None:
        result = ensure_version_is_valid("1.2.2", "v1.3.0", MockConsole())

        assert isinstance(result, Err)
        err = result.unwrap_err()
        assert err.code == "VERSION_VIOLATION"
        assert "1.2.2" in err.message
        assert "1.3.0" in err.message
        assert err.details == {"local": "1.2.2", "remote": "1.3.0"}

    @pytest.mark.parametrize("remote", ["nightly", "release-2024", "v1.2"])
    def test_unparsable_remote_never_fails(self, remote: str) -> None:
        console = MockConsole()
        result = ensure_version_is_valid("0.0.1", remote, console)

        assert result == Ok(Version(0, 0, 1))
        assert console.has_warning()

    def test_no_tag_is_bootstrap(self) -> None:
        console = MockConsole()
        result = ensure_version_is_valid("0.1.0", None, console)

        assert isinstance(result, Ok)
        assert console.find("first release")

    def test_invalid_local_version(self) -> None:
        result = ensure_version_is_valid("one", "v1.0.0", MockConsole())

        assert isinstance(result, Err)
        assert result.unwrap_err().kind == "version_invalid"


class TestVersionGuard:
    def test_check_fetches_then_compares(self) -> None:
        tags = FakeTags(Ok("v1.2.2"))
        result = VersionGuard(tags, MockConsole()).check(_config("1.2.2"))

        assert result == Ok(Version(1, 2, 2))
        assert tags.fetched == 1

    def test_fetch_failure_only_warns(self) -> None:
        console = MockConsole()
        tags = FakeTags(Ok("v1.0.0"), fetch_error="could not resolve host")

        result = VersionGuard(tags, console).check(_config("1.0.0"))

        assert isinstance(result, Ok)
        assert console.find("could not refresh remote tags")

    def test_tag_lookup_failure(self) -> None:
        tags = FakeTags(Err(GitError(command="describe --tags", message="fatal: bad object")))

        result = VersionGuard(tags, MockConsole()).check(_config("1.0.0"))

        assert isinstance(result, Err)
        assert result.unwrap_err().kind == "tag_lookup_failed"
