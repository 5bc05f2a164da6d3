"""release-it backend (Node.js projects).

release-it bumps ``package.json``, commits, tags, pushes and publishes the
GitHub release in one run, so the release state is only filled in once the
tool returns. If it fails part way, whatever it left behind is read back
from git so rollback counters exactly that.
"""

from __future__ import annotations

import json
from pathlib import Path

from tagcut.core.result import Err, Ok, Result
from tagcut.core.structured import StrDict
from tagcut.output.console import Category
from tagcut.platform.files import atomic_write_text
from tagcut.release.backend import RELEASE_COMMIT_PREFIX, ReleaseToolkit
from tagcut.release.config import ReleaseConfig
from tagcut.release.errors import ReleaseError
from tagcut.release.rollback import GitReleaseState
from tagcut.release.semver import Version

__all__ = ["CONFIG_FILE", "ReleaseIt", "default_config", "detect_package_manager"]

CONFIG_FILE = ".release-it.json"
SCHEMA_URL = "https://unpkg.com/release-it/schema/release-it.json"
CHANGELOG_TEMPLATE = (
    "https://raw.githubusercontent.com/release-it/release-it/main/templates/changelog-compact.hbs"
)


def detect_package_manager(root: Path) -> str:
    if (root / "bun.lock").is_file() or (root / "bun.lockb").is_file():
        return "bun"
    return "npm"


def default_config(project_name: str) -> StrDict:
    return {
        "$schema": SCHEMA_URL,
        "github": {
            "release": True,
            "releaseName": f"{project_name}@${{version}}",
        },
        "git": {
            "commit": True,
            "tag": True,
            "push": True,
            "requireCleanWorkingDir": True,
            "changelog": (
                "npx auto-changelog --stdout --commit-limit false -u "
                f"--template {CHANGELOG_TEMPLATE}"
            ),
            "commitMessage": f"{RELEASE_COMMIT_PREFIX} ${{version}}",
        },
        "hooks": {"after:bump": "npx auto-changelog -p"},
    }


class ReleaseIt:
    name = "release-it"

    def __init__(self, toolkit: ReleaseToolkit) -> None:
        self._kit = toolkit
        self.state = GitReleaseState()
        self._package_manager: str | None = None

    @property
    def package_manager(self) -> str:
        if self._package_manager is None:
            self._package_manager = detect_package_manager(self._kit.root)
            self._kit.console.verbose(
                f"Detected package manager: {self._package_manager}", category=Category.INIT
            )
        return self._package_manager

    @property
    def runner(self) -> str:
        return "bunx" if self.package_manager == "bun" else "npx"

    def _install_command(self) -> list[str]:
        if self.package_manager == "bun":
            return ["bun", "add", "-D", "release-it"]
        return ["npm", "install", "-D", "release-it"]

    def initialize(self, config: ReleaseConfig) -> Result[bool, ReleaseError]:
        kit = self._kit
        binary = kit.require_binary(self.package_manager)
        if isinstance(binary, Err):
            return binary

        config_file = kit.root / CONFIG_FILE
        if config_file.is_file():
            kit.console.info(f"Skipping release-it init, {CONFIG_FILE} already exists", category=Category.INIT)
            return Ok(False)

        if not (kit.root / "package.json").is_file():
            kit.console.warning(
                "No package.json found, this doesn't appear to be a Node.js project",
                category=Category.INIT,
            )

        installed = kit.run_tool(self._install_command())
        if isinstance(installed, Err):
            return Err(
                ReleaseError(
                    kind="backend_init_failed",
                    message=f"failed to install release-it: {installed.error.output}",
                )
            )

        text = json.dumps(default_config(config.project_name), indent=2) + "\n"
        try:
            atomic_write_text(config_file, text)
        except OSError as e:
            return Err(ReleaseError(kind="save_error", message=f"failed to write {CONFIG_FILE}: {e}"))
        kit.console.success("Initialized release-it", category=Category.INIT)

        checked = kit.run_tool([self.runner, "release-it", "-v"])
        if isinstance(checked, Err):
            return Err(
                ReleaseError(
                    kind="backend_config_invalid",
                    message=f"failed to verify release-it installation: {checked.error.output}",
                )
            )
        kit.console.info(f"release-it version {checked.value.strip()}", category=Category.INIT)
        return Ok(True)

    def release(self, version: Version) -> Result[None, ReleaseError]:
        kit = self._kit
        self.state = GitReleaseState()
        st = self.state

        binary = kit.require_binary(self.runner)
        if isinstance(binary, Err):
            return binary
        token = kit.token()
        if isinstance(token, Err):
            return token

        pre = kit.head()
        if isinstance(pre, Err):
            return pre
        st.pre_head = pre.value

        cmd = [self.runner, "release-it", str(version), "--ci", "--no-git.requireCleanWorkingDir"]
        ran = kit.run_tool(cmd, env=kit.tool_env({"GITHUB_TOKEN": token.value}))
        if isinstance(ran, Err):
            kit.record_tool_side_effects(st, version)
            return Err(
                ReleaseError(
                    kind="release_failed",
                    message=f"release-it failed: {ran.error.output}",
                )
            )

        head = kit.head()
        if isinstance(head, Err):
            return head
        tag = version.to_tag()
        st.release_head = head.value
        st.tag_name = tag
        st.pushed_commit = True
        st.pushed_tag = True
        st.platform_release_tag = tag
        st.created_platform_release = True

        kit.console.success("release-it release successful", category=Category.EXEC)
        return Ok(None)

    def revert(self) -> Result[None, ReleaseError]:
        return self._kit.revert(self.state)
