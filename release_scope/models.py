"""Data models for release-scope.

These Pydantic models represent the core data structures that flow
between the workspace resolver, the commit assembler and the impact
aggregator.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from functools import total_ordering
from pathlib import Path
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

PRERELEASE_NONE = "none"


@total_ordering
class ReleaseType(Enum):
    """Semver bump category implied by a change.

    Members are declared from least to most severe and compare in that
    order, so ``max()`` over release types picks the strongest bump.
    """

    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    @property
    def rank(self) -> int:
        return list(ReleaseType).index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ReleaseType):
            return NotImplemented
        return self.rank < other.rank

    def __str__(self) -> str:
        return self.value


class Skip(BaseModel):
    """An input a best-effort loop dropped, and why."""

    model_config = ConfigDict(frozen=True)

    input: str
    reason: str


class Collected(BaseModel, Generic[T]):
    """Result of a collect-or-skip fold.

    Attributes:
        items: Successfully parsed items, in input order.
        skipped: Inputs that were dropped, with the reason for each.
    """

    items: list[T] = Field(default_factory=list)
    skipped: list[Skip] = Field(default_factory=list)

    def skip(self, input: str, reason: str) -> None:
        self.skipped.append(Skip(input=input, reason=reason))


class WorkspaceMember(BaseModel):
    """A single package in the workspace.

    Attributes:
        name: Package name, or the directory basename if the manifest has none.
        path: Absolute path to the package directory.
        relative_path: POSIX path from the repository root. Unique per member.
        version: Declared version, defaulting to '0.0.0'.
        publishable: True if the manifest carries publish configuration.
        private: True if the manifest marks the package private.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    path: Path
    relative_path: str
    version: str = "0.0.0"
    publishable: bool = False
    private: bool = False


class SemVer(BaseModel):
    """Version numbers parsed out of a tag name."""

    model_config = ConfigDict(frozen=True)

    major: int
    minor: int
    patch: int
    prerelease: str = PRERELEASE_NONE

    def __str__(self) -> str:
        core = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease == PRERELEASE_NONE:
            return core
        return f"{core}-{self.prerelease}"


class VersionTag(BaseModel):
    """A git tag, with its parsed version when it looks like one."""

    model_config = ConfigDict(frozen=True)

    name: str
    hash: str
    date: datetime
    is_version_tag: bool = False
    version: SemVer | None = None


class Author(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    date: datetime


class CommitRecord(BaseModel):
    """A commit in the queried range, classified and with its changed files.

    Attributes:
        hash: Full commit hash.
        short_hash: Abbreviated commit hash.
        raw_message: Subject, plus a blank line and the body when present.
        type: Conventional commit type, or 'unknown' if the header did not parse.
        scope: Optional conventional commit scope.
        description: Header subject, or the raw subject line when unparsed.
        body: Extended body without footer notes.
        breaking_change: Text of the BREAKING CHANGE note, if any.
        is_breaking: True iff a BREAKING CHANGE note was found.
        release_type: Release impact derived from the message.
        author: Commit author.
        changed_files: Repository-relative paths touched by the commit.
    """

    model_config = ConfigDict(frozen=True)

    hash: str
    short_hash: str
    raw_message: str
    type: str
    scope: str | None = None
    description: str
    body: str | None = None
    breaking_change: str | None = None
    is_breaking: bool = False
    release_type: ReleaseType
    author: Author
    changed_files: list[str] = Field(default_factory=list)


class PackageImpact(BaseModel):
    """Release recommendation for one affected package.

    Attributes:
        package_name: Name of the workspace member.
        package_path: Relative path of the workspace member.
        commits: Commits attributed to the package, oldest first.
        release_type: Most severe release type among the attributed commits.
    """

    package_name: str
    package_path: str
    commits: list[CommitRecord] = Field(default_factory=list)
    release_type: ReleaseType = ReleaseType.PATCH
