"""Semantic versions: parsing, precedence and increments.

Precedence follows semver 2.0: numeric core first, a pre-release sorts
before the matching release, pre-release identifiers compare numerically
when both are numeric. Build metadata never affects ordering or equality.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Literal, cast

__all__ = [
    "RELEASE_TYPES",
    "ReleaseType",
    "Version",
    "is_valid_version",
    "next_version",
    "parse_release_type",
    "parse_version",
]

ReleaseType = Literal["major", "minor", "patch"]
RELEASE_TYPES: tuple[ReleaseType, ...] = ("major", "minor", "patch")

_SEMVER_RE = re.compile(
    r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-([\da-zA-Z-]+(?:\.[\da-zA-Z-]+)*))?"
    r"(?:\+([\da-zA-Z-]+(?:\.[\da-zA-Z-]+)*))?$",
    re.ASCII,
)


@total_ordering
@dataclass(frozen=True, slots=True, eq=False)
class Version:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        s = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            s += "-" + ".".join(self.prerelease)
        if self.build:
            s += "+" + ".".join(self.build)
        return s

    def to_tag(self) -> str:
        return f"v{self}"

    def _precedence(self) -> tuple[int, int, int, int, tuple[tuple[int, int, str], ...]]:
        # A release (no pre-release) outranks any pre-release of the same core.
        ids = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part) for part in self.prerelease
        )
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, ids)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() == other._precedence()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() < other._precedence()

    def __hash__(self) -> int:
        return hash(self._precedence())

    def bump(self, kind: ReleaseType) -> Version:
        """Increment one component, zero the lower ones, drop pre-release and build."""
        match kind:
            case "major":
                return Version(self.major + 1, 0, 0)
            case "minor":
                return Version(self.major, self.minor + 1, 0)
            case "patch":
                return Version(self.major, self.minor, self.patch + 1)


def parse_version(text: str) -> Version | None:
    """Parse ``1.2.3``, ``v1.2.3``, ``1.2.3-rc.1+build.5``; None if invalid."""
    m = _SEMVER_RE.match(text.strip())
    if m is None:
        return None
    pre = tuple(m.group(4).split(".")) if m.group(4) else ()
    build = tuple(m.group(5).split(".")) if m.group(5) else ()
    # Numeric pre-release identifiers must not carry leading zeros.
    if any(p.isdigit() and len(p) > 1 and p.startswith("0") for p in pre):
        return None
    return Version(int(m.group(1)), int(m.group(2)), int(m.group(3)), pre, build)


def is_valid_version(text: str) -> bool:
    """True for a bare semantic version (no ``v`` prefix), as stored in config."""
    return not text.startswith("v") and parse_version(text) is not None


def parse_release_type(text: str) -> ReleaseType | None:
    lowered = text.strip().lower()
    if lowered in RELEASE_TYPES:
        return cast(ReleaseType, lowered)
    return None


def next_version(current: Version, kind: ReleaseType) -> Version:
    return current.bump(kind)
