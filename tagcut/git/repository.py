"""Git repository abstraction.

Every git invocation used by a release goes through ``Repository``. Read
operations (status, HEAD, tags, upstream) serve the preflight checker and
the version guard; write operations (commit, tag, push, revert, reset,
clean) are the primitive side effects of a release and of its rollback.

All operations return Result types. A failed git call becomes a
``GitError`` carrying the captured diagnostic text. No call carries a
timeout: a release is cancelled by killing the handler process.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.status():
        case Ok(status):
            print(f"Branch: {status.branch}, behind {status.behind}")
        case Err(e):
            print(f"Error: {e.message}")

    match repo.create_tag("v1.2.3"):
        case Ok(_):
            state.tag_name = "v1.2.3"
        case Err(e):
            return Err(e)
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from tagcut.core.result import Err, Ok, Result
from tagcut.platform.process import ProcessError
from tagcut.platform.process import run as run_process

__all__ = [
    "Contributor",
    "GitError",
    "GitStatus",
    "RepoSlug",
    "Repository",
    "StatusEntry",
    "parse_remote",
]

DEFAULT_REMOTE = "origin"

_SSH_REMOTE = re.compile(r"git@github\.com:([^/\s]+)/([^/\s]+?)(?:\.git)?/?$")
_HTTPS_REMOTE = re.compile(r"https://(?:[^@/\s]+@)?github\.com/([^/\s]+)/([^/\s]+?)(?:\.git)?/?$")


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed (e.g. "push origin v1.2.3")
        message: Captured diagnostic text
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1

    def __str__(self) -> str:
        return f"git {self.command}: {self.message}"


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry in git status.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str

    @property
    def is_staged(self) -> bool:
        return self.xy != "??" and self.xy[0] != " "

    @property
    def is_unstaged(self) -> bool:
        return self.xy != "??" and self.xy[1] != " "

    @property
    def is_untracked(self) -> bool:
        return self.xy == "??"


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Parsed ``git status --porcelain=v1 -b``.

    Attributes:
        branch: Current branch name ("HEAD (no branch)" when detached)
        upstream: Upstream branch (e.g., "origin/main"), None if not set
        ahead: Number of commits ahead of upstream
        behind: Number of commits behind upstream
        entries: All status entries (staged, unstaged, untracked)
    """

    branch: str
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return len(self.entries) == 0

    @property
    def is_behind(self) -> bool:
        return self.behind > 0

    @property
    def untracked(self) -> list[StatusEntry]:
        return [e for e in self.entries if e.is_untracked]


@dataclass(frozen=True, slots=True)
class RepoSlug:
    """Platform coordinates of a repository (``owner/name``)."""

    owner: str
    name: str

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True, slots=True)
class Contributor:
    author: str
    commits: int


def parse_remote(url: str) -> RepoSlug | None:
    """Extract owner and name from a GitHub SSH or HTTPS remote URL."""
    s = url.strip()
    for pattern in (_SSH_REMOTE, _HTTPS_REMOTE):
        m = pattern.match(s)
        if m:
            return RepoSlug(owner=m.group(1), name=m.group(2))
    return None


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
        remote: Remote that releases are pushed to
    """

    def __init__(
        self,
        path: Path,
        *,
        remote: str = DEFAULT_REMOTE,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.path = path
        self.remote = remote
        self._env = env

    def exists(self) -> bool:
        return (self.path / ".git").exists()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def status(self) -> Result[GitStatus, GitError]:
        """Get repository status, including ahead/behind counts."""
        result = self._run(["status", "--porcelain=v1", "-b"])
        match result:
            case Err(e):
                return Err(_git_error("status", e))
            case Ok(stdout):
                return Ok(self._parse_status(stdout))

    def is_clean(self) -> Result[bool, GitError]:
        result = self._run(["status", "--porcelain"])
        match result:
            case Err(e):
                return Err(_git_error("status", e))
            case Ok(stdout):
                return Ok(stdout.strip() == "")

    def current_branch(self) -> Result[str | None, GitError]:
        """Get the current branch name; None when HEAD is detached."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Err(e):
                return Err(_git_error("rev-parse --abbrev-ref HEAD", e))
            case Ok(stdout):
                branch = stdout.strip()
                return Ok(None if branch == "HEAD" else branch)

    def upstream_of(self, branch: str) -> Result[str | None, GitError]:
        """Get the configured upstream of ``branch``, or None."""
        result = self._run(
            ["for-each-ref", "--format=%(upstream:short)", f"refs/heads/{branch}"]
        )
        match result:
            case Err(e):
                return Err(_git_error("for-each-ref", e))
            case Ok(stdout):
                return Ok(stdout.strip() or None)

    def head(self) -> Result[str, GitError]:
        """Full hash of HEAD."""
        result = self._run(["rev-parse", "HEAD"])
        match result:
            case Err(e):
                return Err(_git_error("rev-parse HEAD", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def fetch(self) -> Result[str, GitError]:
        """Refresh remote references and tags."""
        result = self._run(["fetch", "--tags", self.remote])
        match result:
            case Err(e):
                return Err(_git_error("fetch", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def latest_tag(self) -> Result[str | None, GitError]:
        """Most recent tag reachable from HEAD; None when there are no tags."""
        result = self._run(["describe", "--tags", "--abbrev=0"])
        match result:
            case Err(e):
                text = e.output.lower()
                if "no names found" in text or "no tags can describe" in text:
                    return Ok(None)
                return Err(_git_error("describe --tags", e))
            case Ok(stdout):
                return Ok(stdout.strip() or None)

    def tags(self) -> Result[list[str], GitError]:
        """All tags, oldest version first."""
        result = self._run(["tag", "--list", "--sort=v:refname"])
        match result:
            case Err(e):
                return Err(_git_error("tag --list", e))
            case Ok(stdout):
                return Ok([t.strip() for t in stdout.splitlines() if t.strip()])

    def has_tag(self, tag: str) -> Result[bool, GitError]:
        result = self._run(["tag", "--list", tag])
        match result:
            case Err(e):
                return Err(_git_error(f"tag --list {tag}", e))
            case Ok(stdout):
                return Ok(stdout.strip() == tag)

    def has_remote_tag(self, tag: str) -> Result[bool, GitError]:
        """Whether ``tag`` exists on the remote (asks the remote, not the local refs)."""
        result = self._run(["ls-remote", "--tags", self.remote, f"refs/tags/{tag}"])
        match result:
            case Err(e):
                return Err(_git_error(f"ls-remote --tags {self.remote}", e))
            case Ok(stdout):
                return Ok(stdout.strip() != "")

    def remote_contains(self, sha: str) -> Result[bool, GitError]:
        """Whether a branch on the remote contains ``sha``, after a fetch."""
        fetched = self._run(["fetch", self.remote])
        if isinstance(fetched, Err):
            return Err(_git_error(f"fetch {self.remote}", fetched.error))
        result = self._run(["branch", "-r", "--contains", sha, "--list", f"{self.remote}/*"])
        match result:
            case Err(e):
                return Err(_git_error(f"branch -r --contains {sha}", e))
            case Ok(stdout):
                return Ok(stdout.strip() != "")

    def count_commits_between(self, start: str | None, end: str) -> Result[int, GitError]:
        """Count commits in ``start..end`` (everything up to ``end`` if no start)."""
        rev_range = f"{start}..{end}" if start else end
        result = self._run(["rev-list", "--count", rev_range])
        match result:
            case Err(e):
                return Err(_git_error(f"rev-list --count {rev_range}", e))
            case Ok(stdout):
                try:
                    return Ok(int(stdout.strip()))
                except ValueError:
                    return Err(
                        GitError(
                            command=f"rev-list --count {rev_range}",
                            message=f"invalid count: {stdout.strip()!r}",
                        )
                    )

    def contributors(self) -> Result[list[Contributor], GitError]:
        """Authors with their commit counts (``git shortlog -sne HEAD``)."""
        result = self._run(["shortlog", "-sne", "HEAD"])
        match result:
            case Err(e):
                return Err(_git_error("shortlog", e))
            case Ok(stdout):
                out: list[Contributor] = []
                for line in stdout.splitlines():
                    parts = line.strip().split(None, 1)
                    if len(parts) < 2 or not parts[0].isdigit():
                        continue
                    out.append(Contributor(author=parts[1].strip(), commits=int(parts[0])))
                return Ok(out)

    def remote_url(self) -> Result[str, GitError]:
        result = self._run(["remote", "get-url", self.remote])
        match result:
            case Err(e):
                return Err(_git_error(f"remote get-url {self.remote}", e))
            case Ok(stdout):
                return Ok(stdout.strip())

    def remote_repo(self) -> Result[RepoSlug, GitError]:
        """Owner and name of the GitHub repository behind the release remote."""
        url = self.remote_url()
        if isinstance(url, Err):
            return url
        slug = parse_remote(url.value)
        if slug is None:
            return Err(
                GitError(
                    command=f"remote get-url {self.remote}",
                    message=(
                        f"could not parse GitHub repository from {url.value!r}; "
                        "only GitHub remotes are supported"
                    ),
                )
            )
        return Ok(slug)

    # -------------------------------------------------------------------------
    # Side effects
    # -------------------------------------------------------------------------

    def commit_all(self, message: str) -> Result[None, GitError]:
        """Commit all tracked changes; allowed to be empty."""
        return self._step(["commit", "--allow-empty", "-a", "-m", message], "commit -a")

    def commit_empty(self, message: str) -> Result[None, GitError]:
        return self._step(["commit", "--allow-empty", "-m", message], "commit --allow-empty")

    def create_tag(self, tag: str) -> Result[None, GitError]:
        return self._step(["tag", tag], f"tag {tag}")

    def delete_local_tag(self, tag: str) -> Result[None, GitError]:
        return self._step(["tag", "-d", tag], f"tag -d {tag}")

    def delete_remote_tag(self, tag: str) -> Result[None, GitError]:
        return self._step(
            ["push", self.remote, "--delete", tag], f"push {self.remote} --delete {tag}"
        )

    def push_head(self) -> Result[None, GitError]:
        return self._step(["push", self.remote, "HEAD"], f"push {self.remote} HEAD")

    def push_tag(self, tag: str) -> Result[None, GitError]:
        return self._step(["push", self.remote, tag], f"push {self.remote} {tag}")

    def revert_commit(self, sha: str) -> Result[None, GitError]:
        return self._step(["revert", "--no-edit", sha], f"revert {sha}")

    def hard_reset(self, sha: str) -> Result[None, GitError]:
        return self._step(["reset", "--hard", sha], f"reset --hard {sha}")

    def clean_untracked(self) -> Result[None, GitError]:
        return self._step(["clean", "-fd"], "clean -fd")

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _step(self, args: list[str], command: str) -> Result[None, GitError]:
        result = self._run(args)
        if isinstance(result, Err):
            return Err(_git_error(command, result.error))
        return Ok(None)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, env=self._env)

    def _parse_status(self, output: str) -> GitStatus:
        lines = [ln for ln in output.splitlines() if ln.strip()]
        if not lines:
            return GitStatus(branch="")

        # ## branch...upstream [ahead N, behind M]
        branch_line = lines[0]
        branch, upstream = self._parse_branch_line(branch_line)
        ahead, behind = self._parse_ahead_behind(branch_line)

        entries: list[StatusEntry] = []
        for line in lines[1:]:
            if len(line) < 4:
                continue
            entries.append(StatusEntry(xy=line[:2], path=line[3:]))

        return GitStatus(
            branch=branch,
            upstream=upstream,
            ahead=ahead,
            behind=behind,
            entries=tuple(entries),
        )

    def _parse_branch_line(self, line: str) -> tuple[str, str | None]:
        s = line.strip()
        if s.startswith("##"):
            s = s[2:].lstrip()
        s = s.split(" [", 1)[0].strip()
        if "..." in s:
            left, right = s.split("...", 1)
            return (left.strip(), right.strip())
        return (s, None)

    def _parse_ahead_behind(self, line: str) -> tuple[int, int]:
        match = re.search(r"\[([^\]]+)\]", line)
        if not match:
            return (0, 0)
        inside = match.group(1)
        ahead_match = re.search(r"ahead\s+(\d+)", inside)
        behind_match = re.search(r"behind\s+(\d+)", inside)
        ahead = int(ahead_match.group(1)) if ahead_match else 0
        behind = int(behind_match.group(1)) if behind_match else 0
        return (ahead, behind)


def _git_error(command: str, e: ProcessError) -> GitError:
    return GitError(
        command=command,
        message=e.output or f"git {command} failed",
        returncode=e.returncode,
    )
