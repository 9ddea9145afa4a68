"""Shared test fixtures."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from release_scope.models import Author, CommitRecord, ReleaseType, WorkspaceMember


class FakeRepo:
    """In-memory stand-in for GitRepository."""

    def __init__(
        self,
        tags: list[str] | None = None,
        log: list[str] | None = None,
        files: dict[str, list[str]] | None = None,
        root: str = "root000",
    ) -> None:
        self.tags = tags or []
        self.log = log or []
        self.files = files or {}
        self.root = root
        self.revisions: list[list[str]] = []

    def list_tags_raw(self) -> list[str]:
        return list(self.tags)

    def log_raw(self, revisions: list[str]) -> list[str]:
        self.revisions.append(revisions)
        return list(self.log)

    def changed_files(self, commit_hash: str) -> list[str]:
        return list(self.files.get(commit_hash, []))

    def root_commit_hash(self) -> str:
        return self.root


def log_line(
    commit_hash: str,
    subject: str,
    body: str = "",
    date: str = "2024-01-15T10:00:00+00:00",
) -> str:
    """Build a raw log record in the hash|short|name|email|date|subject|body format."""
    return f"{commit_hash}|{commit_hash[:7]}|Ann|ann@example.com|{date}|{subject}|{body}"


def make_commit(
    commit_hash: str,
    release_type: ReleaseType = ReleaseType.PATCH,
    changed_files: list[str] | None = None,
    commit_type: str = "fix",
) -> CommitRecord:
    return CommitRecord(
        hash=commit_hash,
        short_hash=commit_hash[:7],
        raw_message=f"{commit_type}: change {commit_hash}",
        type=commit_type,
        description=f"change {commit_hash}",
        is_breaking=release_type is ReleaseType.MAJOR,
        release_type=release_type,
        author=Author(
            name="Ann",
            email="ann@example.com",
            date=datetime(2024, 1, 15, tzinfo=timezone.utc),
        ),
        changed_files=changed_files or [],
    )


def make_member(name: str, relative_path: str, version: str = "1.0.0") -> WorkspaceMember:
    return WorkspaceMember(
        name=name,
        path=Path("/repo") / relative_path,
        relative_path=relative_path,
        version=version,
    )


def write_uv_workspace(root: Path, members: dict[str, str], patterns: list[str]) -> None:
    """Write a uv workspace: root pyproject.toml plus one pyproject per member.

    members maps relative path → project name.
    """
    globs = ", ".join(f'"{p}"' for p in patterns)
    (root / "pyproject.toml").write_text(
        f'[project]\nname = "root"\nversion = "0.1.0"\n\n'
        f"[tool.uv.workspace]\nmembers = [{globs}]\n"
    )
    for relative_path, name in members.items():
        package_dir = root / relative_path
        package_dir.mkdir(parents=True)
        (package_dir / "pyproject.toml").write_text(
            f'[project]\nname = "{name}"\nversion = "1.0.0"\n'
        )


def write_npm_workspace(root: Path, members: dict[str, dict], patterns: list[str]) -> None:
    """Write an npm workspace: root package.json plus one package.json per member."""
    (root / "package.json").write_text(
        json.dumps({"name": "root", "private": True, "workspaces": patterns})
    )
    for relative_path, data in members.items():
        package_dir = root / relative_path
        package_dir.mkdir(parents=True)
        (package_dir / "package.json").write_text(json.dumps(data))


@pytest.fixture
def fake_repo() -> FakeRepo:
    return FakeRepo()


@pytest.fixture
def uv_workspace(tmp_path: Path) -> Path:
    """A uv workspace with packages/a, packages/ab and libs/core."""
    write_uv_workspace(
        tmp_path,
        {"packages/a": "pkg-a", "packages/ab": "pkg-ab", "libs/core": "Core_Lib"},
        ["packages/*", "libs/*"],
    )
    return tmp_path
