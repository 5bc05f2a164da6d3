"""GitHub Releases API: the platform side of a release.

Only deletion is needed here (release tools create the platform release
themselves). Deletion resolves the release id by tag first; a missing
release counts as already deleted so a rollback can be re-run safely.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal
from urllib.parse import quote

from tagcut.core.result import Err, Ok, Result
from tagcut.core.structured import get_int
from tagcut.git.repository import RepoSlug
from tagcut.github.http import HttpClient, RealHttpClient

__all__ = [
    "API_ROOT",
    "TOKEN_ENV_VAR",
    "PlatformError",
    "PlatformReleases",
    "get_token",
]

API_ROOT = "https://api.github.com"
TOKEN_ENV_VAR = "GITHUB_TOKEN"


@dataclass(frozen=True, slots=True)
class PlatformError:
    kind: Literal["token_missing", "api_error", "network_error"]
    message: str
    status: int = 0

    def __str__(self) -> str:
        return self.message


def get_token(env: Mapping[str, str] | None = None) -> Result[str, PlatformError]:
    """Read the platform access token from ``GITHUB_TOKEN``."""
    source = os.environ if env is None else env
    token = source.get(TOKEN_ENV_VAR, "").strip()
    if not token:
        return Err(
            PlatformError(
                kind="token_missing",
                message=f"{TOKEN_ENV_VAR} is not set; a GitHub token is required",
            )
        )
    return Ok(token)


class PlatformReleases:
    """Published releases of one GitHub repository."""

    def __init__(
        self,
        http: HttpClient | None = None,
        *,
        env: Mapping[str, str] | None = None,
        api_root: str = API_ROOT,
    ) -> None:
        self._http = http if http is not None else RealHttpClient()
        self._env = env
        self._api_root = api_root.rstrip("/")

    def delete_release(self, repo: RepoSlug, tag: str) -> Result[bool, PlatformError]:
        """Delete the release published for ``tag``.

        Returns:
            Ok(True) when a release was deleted, Ok(False) when none existed,
            Err(PlatformError) otherwise.
        """
        token = get_token(self._env)
        if isinstance(token, Err):
            return token

        headers = {
            "Authorization": f"Bearer {token.value}",
            "Accept": "application/vnd.github+json",
        }
        base = f"{self._api_root}/repos/{repo.owner}/{repo.name}/releases"

        lookup_url = f"{base}/tags/{quote(tag, safe='')}"
        lookup = self._http.request("GET", lookup_url, headers)
        if isinstance(lookup, Err):
            return Err(PlatformError(kind="network_error", message=str(lookup.error)))

        resp = lookup.value
        if resp.status == 404:
            return Ok(False)
        if resp.status != 200:
            return Err(
                PlatformError(
                    kind="api_error",
                    message=(
                        f"failed fetching release for tag {tag}: "
                        f"status={resp.status} body={resp.text.strip()}"
                    ),
                    status=resp.status,
                )
            )

        payload = resp.json_object()
        release_id = get_int(payload, "id") if payload is not None else None
        if not release_id:
            return Err(PlatformError(kind="api_error", message=f"release id missing for tag {tag}"))

        deletion = self._http.request("DELETE", f"{base}/{release_id}", headers)
        if isinstance(deletion, Err):
            return Err(PlatformError(kind="network_error", message=str(deletion.error)))
        if deletion.value.status != 204:
            return Err(
                PlatformError(
                    kind="api_error",
                    message=(
                        f"failed deleting release for tag {tag}: "
                        f"status={deletion.value.status} body={deletion.value.text.strip()}"
                    ),
                    status=deletion.value.status,
                )
            )
        return Ok(True)
