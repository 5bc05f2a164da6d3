"""JReleaser backend.

``jreleaser.yml`` is generated on init and its ``project.version`` is
synced to the new version before the release commit. JReleaser itself
creates and pushes the tag and publishes the platform release
(``jreleaser full-release``), so those flags are only set once it succeeds.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path

import yaml

from tagcut.core.result import Err, Ok, Result
from tagcut.core.structured import StrDict, as_str_dict
from tagcut.output.console import Category
from tagcut.platform.files import atomic_write_text
from tagcut.release.backend import ReleaseToolkit
from tagcut.release.config import ReleaseConfig
from tagcut.release.errors import ReleaseError
from tagcut.release.rollback import GitReleaseState
from tagcut.release.semver import Version

__all__ = ["CONFIG_FILE", "JReleaser", "default_config", "load_jreleaser_config", "sync_version"]

CONFIG_FILE = "jreleaser.yml"
TOKEN_ENV_VAR = "JRELEASER_GITHUB_TOKEN"

_CHANGELOG_LABELS: tuple[tuple[str, str, int], ...] = (
    ("feat", "Features", 1),
    ("feature", "Features", 1),
    ("fix", "Bug Fixes", 2),
    ("bug", "Bug Fixes", 2),
    ("refactor", "Refactoring", 3),
    ("improvement", "Refactoring", 3),
    ("docs", "Documentation", 4),
    ("chore", "Chores", 5),
    ("test", "Tests", 6),
    ("hotfix", "Hotfixes", 7),
)


def default_config(config: ReleaseConfig, *, year: int | None = None) -> StrDict:
    """Initial ``jreleaser.yml`` content for a project."""
    categories: dict[str, StrDict] = {}
    for label, title, order in _CHANGELOG_LABELS:
        cat = categories.setdefault(title, {"title": title, "labels": [], "order": order})
        labels = cat["labels"]
        if isinstance(labels, list):
            labels.append(label)

    return {
        "project": {
            "name": config.project_name,
            "version": config.version,
            "authors": [config.project_owner] if config.project_owner else [],
            "license": "Proprietary",
            "inceptionYear": str(year if year is not None else date.today().year),
            "languages": {"java": {"groupId": f"at.{config.project_name}", "version": "25"}},
        },
        "release": {
            "github": {
                "owner": config.project_owner,
                "name": config.project_name,
                "tagName": "v{{projectVersion}}",
                "releaseName": f"{config.project_name}@{{{{projectVersion}}}}",
                "overwrite": False,
                "changelog": {
                    "enabled": True,
                    "sort": "DESC",
                    "formatted": "ALWAYS",
                    "preset": "gitmoji",
                    "skipMergeCommits": True,
                    "contributors": {"enabled": False},
                    "append": {
                        "enabled": True,
                        "title": "## [{{tagName}}]",
                        "target": "CHANGELOG.md",
                    },
                    "labelers": [
                        {"label": label, "title": f"regex:{label}", "order": order}
                        for label, _, order in _CHANGELOG_LABELS
                    ],
                    "categories": list(categories.values()),
                },
            }
        },
    }


def load_jreleaser_config(path: Path) -> Result[StrDict, ReleaseError]:
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        return Err(ReleaseError(kind="backend_config_invalid", message=f"{path.name} is not valid UTF-8: {e}"))
    except OSError as e:
        return Err(ReleaseError(kind="backend_config_invalid", message=f"failed to read {path.name}: {e}"))
    try:
        obj: object = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return Err(ReleaseError(kind="backend_config_invalid", message=f"failed to parse {path.name}: {e}"))
    data = as_str_dict(obj)
    if data is None:
        return Err(ReleaseError(kind="backend_config_invalid", message=f"{path.name} must be a mapping"))
    return Ok(data)


def _write_config(path: Path, data: StrDict) -> Result[None, ReleaseError]:
    text = yaml.safe_dump(data, sort_keys=False, default_flow_style=False, indent=2)
    try:
        atomic_write_text(path, text)
    except OSError as e:
        return Err(ReleaseError(kind="save_error", message=f"failed to write {path.name}: {e}"))
    return Ok(None)


def sync_version(path: Path, version: Version) -> Result[None, ReleaseError]:
    """Set ``project.version`` in ``jreleaser.yml``."""
    if not path.is_file():
        return Err(
            ReleaseError(
                kind="backend_config_invalid",
                message=f"{path.name} not found",
                hint="run 'tagcut init' to generate it",
            )
        )
    loaded = load_jreleaser_config(path)
    if isinstance(loaded, Err):
        return loaded
    data = loaded.value
    project = as_str_dict(data.get("project"))
    if project is None:
        project = {}
        data["project"] = project
    project["version"] = str(version)
    return _write_config(path, data)


class JReleaser:
    name = "jreleaser"

    def __init__(self, toolkit: ReleaseToolkit) -> None:
        self._kit = toolkit
        self.state = GitReleaseState()

    @property
    def config_path(self) -> Path:
        return self._kit.root / CONFIG_FILE

    def _run(self, action: list[str], token: str) -> Result[str, ReleaseError]:
        self._kit.console.verbose(
            f"{TOKEN_ENV_VAR}=***** jreleaser {' '.join(action)}", category=Category.EXEC
        )
        env = self._kit.tool_env({TOKEN_ENV_VAR: token})
        result = self._kit.run_tool(["jreleaser", *action], env=env)
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="release_failed",
                    message=f"jreleaser {' '.join(action)} failed: {result.error.output}",
                )
            )
        return Ok(result.value)

    def initialize(self, config: ReleaseConfig) -> Result[bool, ReleaseError]:
        console = self._kit.console
        binary = self._kit.require_binary(self.name)
        if isinstance(binary, Err):
            return binary

        if self.config_path.is_file():
            console.info(f"Skipping jreleaser init, {CONFIG_FILE} already exists", category=Category.INIT)
            return Ok(False)

        token = self._kit.token()
        if isinstance(token, Err):
            return token

        console.verbose("Generating JReleaser configuration", category=Category.INIT)
        written = _write_config(self.config_path, default_config(config))
        if isinstance(written, Err):
            return written

        checked = self._run(["config"], token.value)
        if isinstance(checked, Err):
            return Err(
                ReleaseError(
                    kind="backend_config_invalid",
                    message=f"JReleaser configuration check failed: {checked.error.message}",
                )
            )

        console.success(f"JReleaser configuration generated for {config.project_name}", category=Category.INIT)
        return Ok(True)

    def release(self, version: Version) -> Result[None, ReleaseError]:
        kit = self._kit
        self.state = GitReleaseState()
        st = self.state

        binary = kit.require_binary(self.name)
        if isinstance(binary, Err):
            return binary
        token = kit.token()
        if isinstance(token, Err):
            return token

        pre = kit.head()
        if isinstance(pre, Err):
            return pre
        st.pre_head = pre.value

        kit.console.verbose(f"Syncing {CONFIG_FILE} with version {version}", category=Category.EXEC)
        synced = sync_version(self.config_path, version)
        if isinstance(synced, Err):
            return synced
        kit.console.info(f"JReleaser version updated to {version}", category=Category.EXEC)

        head = kit.create_release_commit(version, st)
        if isinstance(head, Err):
            return head

        pushed = kit.push_commits()
        if isinstance(pushed, Err):
            return pushed
        st.pushed_commit = True

        dry = self._run(["full-release", "--dry-run"], token.value)
        if isinstance(dry, Err):
            kit.console.warning(
                f"JReleaser dry run failed, continuing with release: {dry.error.message}",
                category=Category.EXEC,
            )

        published = self._run(["full-release"], token.value)
        if isinstance(published, Err):
            kit.record_tool_side_effects(st, version)
            return published
        tag = version.to_tag()
        st.tag_name = tag
        st.pushed_tag = True
        st.platform_release_tag = tag
        st.created_platform_release = True

        kit.console.success("JReleaser release successful", category=Category.EXEC)
        return Ok(None)

    def revert(self) -> Result[None, ReleaseError]:
        return self._kit.revert(self.state)
