"""Tests for the JReleaser backend and its jreleaser.yml handling."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import yaml

from tagcut.core.result import Err, Ok, Result
from tagcut.git.repository import GitError, RepoSlug
from tagcut.github.releases import PlatformError
from tagcut.output.console import MockConsole
from tagcut.platform.process import ProcessError
from tagcut.release.backend import ReleaseToolkit
from tagcut.release.backends.jreleaser import (
    CONFIG_FILE,
    JReleaser,
    default_config,
    load_jreleaser_config,
    sync_version,
)
from tagcut.release.config import ReleaseConfig
from tagcut.release.semver import Version


class FakeRepo:
    remote = "origin"

    def __init__(self, path: Path, log: list[str]) -> None:
        self.path = path
        self.log = log
        self._head = "aaa111"
        self.local_tags: set[str] = set()
        self.remote_tags: set[str] = set()
        self.pushed: set[str] = set()

    def _call(self, name: str) -> Result[None, GitError]:
        self.log.append(f"git:{name}")
        return Ok(None)

    def head(self) -> Result[str, GitError]:
        return Ok(self._head)

    def commit_all(self, message: str) -> Result[None, GitError]:
        self._head = "bbb222"
        return self._call("commit_all")

    def create_tag(self, tag: str) -> Result[None, GitError]:
        return self._call("create_tag")

    def push_tag(self, tag: str) -> Result[None, GitError]:
        return self._call("push_tag")

    def push_head(self) -> Result[None, GitError]:
        self.pushed.add(self._head)
        return self._call("push_head")

    def has_tag(self, tag: str) -> Result[bool, GitError]:
        return Ok(tag in self.local_tags)

    def has_remote_tag(self, tag: str) -> Result[bool, GitError]:
        return Ok(tag in self.remote_tags)

    def remote_contains(self, sha: str) -> Result[bool, GitError]:
        return Ok(sha in self.pushed)

    def remote_repo(self) -> Result[RepoSlug, GitError]:
        return Ok(RepoSlug("acme", "widget"))

    def delete_local_tag(self, tag: str) -> Result[None, GitError]:
        return self._call("delete_local_tag")

    def delete_remote_tag(self, tag: str) -> Result[None, GitError]:
        return self._call("delete_remote_tag")

    def revert_commit(self, sha: str) -> Result[None, GitError]:
        return self._call("revert_commit")

    def commit_empty(self, message: str) -> Result[None, GitError]:
        return self._call("commit_empty")

    def hard_reset(self, sha: str) -> Result[None, GitError]:
        return self._call("hard_reset")

    def clean_untracked(self) -> Result[None, GitError]:
        return self._call("clean_untracked")


class NullPlatform:
    def delete_release(self, repo: RepoSlug, tag: str) -> Result[bool, PlatformError]:
        return Ok(True)


class Harness:
    def __init__(self, root: Path, *, installed: bool = True, failing: tuple[str, ...] = ()) -> None:
        self.log: list[str] = []
        self.envs: list[Mapping[str, str] | None] = []
        self.failing = failing
        self.console = MockConsole()
        self.repo = FakeRepo(root, self.log)
        self.toolkit = ReleaseToolkit(
            self.repo,
            self.console,
            platform=NullPlatform(),
            env={"GITHUB_TOKEN": "t0ken"},
            which=lambda name: f"/opt/bin/{name}" if installed else None,
            runner=self._run,
        )
        self.backend = JReleaser(self.toolkit)

    def _run(self, cmd: list[str], cwd: Path, env: Mapping[str, str] | None) -> Result[str, ProcessError]:
        line = " ".join(cmd)
        self.log.append(f"tool:{line}")
        self.envs.append(env)
        if line in self.failing:
            return Err(ProcessError(command=tuple(cmd), returncode=1, stdout="", stderr="jreleaser said no"))
        return Ok("")


def _config() -> ReleaseConfig:
    return ReleaseConfig("acme", "widget", "backend", "jreleaser", "1.2.2")


def _write_yaml(root: Path, data: object) -> Path:
    path = root / CONFIG_FILE
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


class TestDefaultConfig:
    def test_project_block(self) -> None:
        data = default_config(_config(), year=2025)

        project = data["project"]
        assert isinstance(project, dict)
        assert project["name"] == "widget"
        assert project["version"] == "1.2.2"
        assert project["inceptionYear"] == "2025"

    def test_release_targets_github_repo(self) -> None:
        release = default_config(_config(), year=2025)["release"]
        assert isinstance(release, dict)
        github = release["github"]

        assert github["owner"] == "acme"
        assert github["name"] == "widget"
        assert github["tagName"] == "v{{projectVersion}}"

    def test_categories_group_labels(self) -> None:
        release = default_config(_config(), year=2025)["release"]
        assert isinstance(release, dict)
        categories = release["github"]["changelog"]["categories"]

        features = next(c for c in categories if c["title"] == "Features")
        assert features["labels"] == ["feat", "feature"]


class TestSyncVersion:
    def test_sets_project_version_and_keeps_the_rest(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, {"project": {"name": "widget", "version": "1.2.2"}, "release": {"x": 1}})

        assert sync_version(path, Version(1, 3, 0)) == Ok(None)

        data = load_jreleaser_config(path).unwrap()
        assert data == {"project": {"name": "widget", "version": "1.3.0"}, "release": {"x": 1}}

    def test_missing_project_block_is_created(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, {"release": {}})

        sync_version(path, Version(0, 2, 0))

        assert load_jreleaser_config(path).unwrap()["project"] == {"version": "0.2.0"}

    def test_missing_file(self, tmp_path: Path) -> None:
        result = sync_version(tmp_path / CONFIG_FILE, Version(1, 0, 0))

        assert isinstance(result, Err)
        assert result.error.code == "BACKEND_CONFIG_INVALID"
        assert result.error.hint is not None

    def test_non_mapping_file(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, ["just", "a", "list"])

        assert isinstance(sync_version(path, Version(1, 0, 0)), Err)

    def test_non_utf8_file(self, tmp_path: Path) -> None:
        path = tmp_path / CONFIG_FILE
        path.write_bytes(b"project:\n  name: \xff\xfe\n")

        result = load_jreleaser_config(path)

        assert isinstance(result, Err)
        assert result.error.code == "BACKEND_CONFIG_INVALID"
        assert "UTF-8" in result.error.message


class TestInitialize:
    def test_writes_config_then_checks(self, tmp_path: Path) -> None:
        h = Harness(tmp_path)

        assert h.backend.initialize(_config()) == Ok(True)
        assert (tmp_path / CONFIG_FILE).is_file()
        assert h.log == ["tool:jreleaser config"]
        env = h.envs[0]
        assert env is not None
        assert env["JRELEASER_GITHUB_TOKEN"] == "t0ken"

    def test_second_initialize_is_a_no_op(self, tmp_path: Path) -> None:
        h = Harness(tmp_path)
        h.backend.initialize(_config())
        before = (tmp_path / CONFIG_FILE).read_text(encoding="utf-8")

        assert h.backend.initialize(_config()) == Ok(False)
        assert (tmp_path / CONFIG_FILE).read_text(encoding="utf-8") == before
        assert h.log == ["tool:jreleaser config"]

    def test_missing_binary(self, tmp_path: Path) -> None:
        h = Harness(tmp_path, installed=False)

        result = h.backend.initialize(_config())

        assert isinstance(result, Err)
        assert not (tmp_path / CONFIG_FILE).exists()

    def test_failed_check(self, tmp_path: Path) -> None:
        h = Harness(tmp_path, failing=("jreleaser config",))

        result = h.backend.initialize(_config())

        assert isinstance(result, Err)
        assert result.error.code == "BACKEND_CONFIG_INVALID"


class TestRelease:
    def test_step_order_and_version_sync(self, tmp_path: Path) -> None:
        _write_yaml(tmp_path, default_config(_config(), year=2025))
        h = Harness(tmp_path)

        assert h.backend.release(Version(1, 2, 3)) == Ok(None)
        assert h.log == [
            "git:commit_all",
            "git:push_head",
            "tool:jreleaser full-release --dry-run",
            "tool:jreleaser full-release",
        ]
        project = load_jreleaser_config(tmp_path / CONFIG_FILE).unwrap()["project"]
        assert isinstance(project, dict)
        assert project["version"] == "1.2.3"

    def test_state_after_success(self, tmp_path: Path) -> None:
        _write_yaml(tmp_path, default_config(_config(), year=2025))
        h = Harness(tmp_path)
        h.backend.release(Version(1, 2, 3))

        st = h.backend.state
        assert st.tag_name == "v1.2.3"
        assert st.pushed_commit and st.pushed_tag and st.created_platform_release

    def test_dry_run_failure_only_warns(self, tmp_path: Path) -> None:
        _write_yaml(tmp_path, default_config(_config(), year=2025))
        h = Harness(tmp_path, failing=("jreleaser full-release --dry-run",))

        assert h.backend.release(Version(1, 2, 3)) == Ok(None)
        assert h.console.has_warning()

    def test_full_release_failure(self, tmp_path: Path) -> None:
        _write_yaml(tmp_path, default_config(_config(), year=2025))
        h = Harness(tmp_path, failing=("jreleaser full-release",))

        result = h.backend.release(Version(1, 2, 3))

        assert isinstance(result, Err)
        assert result.error.code == "RELEASE_FAILED"
        assert "jreleaser said no" in result.error.message
        st = h.backend.state
        assert st.pushed_commit is True
        assert st.tag_name == ""
        assert st.created_platform_release is False

    def test_full_release_failure_after_tag_push_deletes_the_tag(self, tmp_path: Path) -> None:
        _write_yaml(tmp_path, default_config(_config(), year=2025))
        h = Harness(tmp_path, failing=("jreleaser full-release",))
        # jreleaser tags and pushes the tag itself before publishing
        h.repo.local_tags.add("v1.2.3")
        h.repo.remote_tags.add("v1.2.3")

        h.backend.release(Version(1, 2, 3))
        st = h.backend.state
        assert (st.tag_name, st.pushed_tag, st.pushed_commit) == ("v1.2.3", True, True)

        h.log.clear()
        assert h.backend.revert() == Ok(None)
        assert h.log == [
            "git:delete_local_tag",
            "git:delete_remote_tag",
            "git:revert_commit",
            "git:push_head",
            "git:clean_untracked",
        ]

    def test_missing_config_fails_before_commit(self, tmp_path: Path) -> None:
        h = Harness(tmp_path)

        result = h.backend.release(Version(1, 2, 3))

        assert isinstance(result, Err)
        assert h.log == []
        assert h.backend.state.release_head == ""
