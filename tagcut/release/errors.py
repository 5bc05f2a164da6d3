"""Error types for the release bounded context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from tagcut.core.errors import ErrorCode
from tagcut.core.structured import StrDict

__all__ = ["ReleaseError", "ReleaseErrorKind", "exit_code_for"]

type ReleaseErrorKind = Literal[
    # configuration
    "config_not_found",
    "config_invalid",
    "config_exists",
    "invalid_flags",
    "save_error",
    # preflight
    "uncommitted_changes",
    "detached_head",
    "incorrect_branch",
    "no_upstream_branch",
    "branch_out_of_date",
    # version guard
    "version_invalid",
    "version_violation",
    "tag_lookup_failed",
    # resolution
    "release_type_required",
    "invalid_release_type",
    # backends
    "backend_not_found",
    "binary_missing",
    "backend_init_failed",
    "backend_config_invalid",
    "git_failed",
    "token_missing",
    "platform_error",
    # saga
    "release_failed",
    "rollback_failed",
]

_EXIT_CODES: dict[str, ErrorCode] = {
    "uncommitted_changes": ErrorCode.ENV_ERROR,
    "detached_head": ErrorCode.ENV_ERROR,
    "incorrect_branch": ErrorCode.ENV_ERROR,
    "no_upstream_branch": ErrorCode.ENV_ERROR,
    "branch_out_of_date": ErrorCode.ENV_ERROR,
    "binary_missing": ErrorCode.ENV_ERROR,
    "token_missing": ErrorCode.ENV_ERROR,
    "save_error": ErrorCode.IO_ERROR,
    "platform_error": ErrorCode.NETWORK_ERROR,
    "git_failed": ErrorCode.RELEASE_ERROR,
    "backend_init_failed": ErrorCode.RELEASE_ERROR,
    "release_failed": ErrorCode.RELEASE_ERROR,
    "rollback_failed": ErrorCode.RELEASE_ERROR,
}


def exit_code_for(code: str) -> ErrorCode:
    """Process exit code for a response error code such as ``VERSION_VIOLATION``."""
    return _EXIT_CODES.get(code.lower(), ErrorCode.USER_ERROR)


def _empty_details() -> StrDict:
    return {}


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error payload.

    ``code`` (the upper-cased kind) is what goes on the wire. ``cause``
    keeps the error this one wraps, e.g. the original release failure
    under a rollback failure.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None
    details: StrDict = field(default_factory=_empty_details)
    cause: ReleaseError | None = None

    @property
    def code(self) -> str:
        return self.kind.upper()

    @property
    def exit_code(self) -> ErrorCode:
        return exit_code_for(self.kind)

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message

    def wire_details(self) -> StrDict:
        """Details for the response, with hint and cause folded in."""
        out: StrDict = dict(self.details)
        if self.hint:
            out["hint"] = self.hint
        if self.cause is not None:
            out["cause"] = {"code": self.cause.code, "message": self.cause.message}
        return out
