"""GoReleaser backend.

Release order: commit, tag, push commit, push tag, snapshot dry run
(warning only), ``goreleaser release --clean`` which publishes the
platform release for the pushed tag.
"""

from __future__ import annotations

from tagcut.core.result import Err, Ok, Result
from tagcut.output.console import Category
from tagcut.release.backend import ReleaseToolkit
from tagcut.release.config import ReleaseConfig
from tagcut.release.errors import ReleaseError
from tagcut.release.rollback import GitReleaseState
from tagcut.release.semver import Version

__all__ = ["GoReleaser"]

CONFIG_FILES = (".goreleaser.yaml", ".goreleaser.yml")


class GoReleaser:
    name = "goreleaser"

    def __init__(self, toolkit: ReleaseToolkit) -> None:
        self._kit = toolkit
        self.state = GitReleaseState()

    def _has_config(self) -> bool:
        return any((self._kit.root / f).is_file() for f in CONFIG_FILES)

    def initialize(self, config: ReleaseConfig) -> Result[bool, ReleaseError]:
        console = self._kit.console
        binary = self._kit.require_binary(self.name)
        if isinstance(binary, Err):
            return binary

        if self._has_config():
            console.info(
                f"Skipping goreleaser init, {CONFIG_FILES[0]} already exists",
                category=Category.INIT,
            )
            return Ok(False)

        console.verbose(f"Initializing goreleaser for {config.project_name}", category=Category.INIT)
        generated = self._kit.run_tool(["goreleaser", "init"])
        if isinstance(generated, Err):
            return Err(
                ReleaseError(
                    kind="backend_init_failed",
                    message=f"failed to initialize goreleaser: {generated.error.output}",
                )
            )

        checked = self._kit.run_tool(["goreleaser", "check"])
        if isinstance(checked, Err):
            return Err(
                ReleaseError(
                    kind="backend_config_invalid",
                    message=f"goreleaser configuration check failed: {checked.error.output}",
                )
            )

        console.success("Initialized goreleaser", category=Category.INIT)
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

        head = kit.create_release_commit(version, st)
        if isinstance(head, Err):
            return head

        tag = kit.create_tag(version)
        if isinstance(tag, Err):
            return tag
        st.tag_name = tag.value

        pushed = kit.push_commits()
        if isinstance(pushed, Err):
            return pushed
        st.pushed_commit = True

        pushed_tag = kit.push_tag(st.tag_name)
        if isinstance(pushed_tag, Err):
            return pushed_tag
        st.pushed_tag = True

        env = kit.tool_env({"GITHUB_TOKEN": token.value})
        dry = kit.run_tool(["goreleaser", "release", "--snapshot", "--clean"], env=env)
        if isinstance(dry, Err):
            kit.console.warning(
                f"GoReleaser dry run failed, continuing with release: {dry.error.output}",
                category=Category.EXEC,
            )
        else:
            kit.console.info("GoReleaser dry run successful", category=Category.EXEC)

        published = kit.run_tool(["goreleaser", "release", "--clean"], env=env)
        if isinstance(published, Err):
            return Err(
                ReleaseError(
                    kind="release_failed",
                    message=f"GoReleaser release failed: {published.error.output}",
                )
            )
        st.platform_release_tag = st.tag_name
        st.created_platform_release = True

        kit.console.success("GoReleaser release successful", category=Category.EXEC)
        return Ok(None)

    def revert(self) -> Result[None, ReleaseError]:
        return self._kit.revert(self.state)
