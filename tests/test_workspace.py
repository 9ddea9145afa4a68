"""Tests for release_scope.workspace."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import make_member, write_npm_workspace, write_uv_workspace
from release_scope.errors import ManifestError
from release_scope.manifest import ManifestReader
from release_scope.workspace import (
    WorkspaceResolver,
    expand_pattern,
    member_contains,
    member_for_path,
    normalize_path,
)


class TestPaths:
    def test_expand_pattern_keeps_directories(self, tmp_path: Path) -> None:
        (tmp_path / "packages" / "b").mkdir(parents=True)
        (tmp_path / "packages" / "a").mkdir()
        (tmp_path / "packages" / "README.md").write_text("hi")

        assert expand_pattern("packages/*", tmp_path) == ["packages/a", "packages/b"]

    def test_expand_pattern_recursive(self, tmp_path: Path) -> None:
        (tmp_path / "libs" / "group" / "inner").mkdir(parents=True)
        assert "libs/group/inner" in expand_pattern("libs/**", tmp_path)

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("packages/a/", "packages/a"),
            ("./packages/a", "packages/a"),
            ("packages\\a", "packages/a"),
            ("", "."),
        ],
    )
    def test_normalize_path(self, path: str, expected: str) -> None:
        assert normalize_path(path) == expected

    @pytest.mark.parametrize(
        ("member", "file", "expected"),
        [
            ("packages/a", "packages/a/src/x.py", True),
            ("packages/a", "packages/a", True),
            ("packages/a", "packages/ab/src/x.py", False),
            ("packages/ab", "packages/a/x.py", False),
            (".", "README.md", True),
            (".", ".github/workflows/ci.yml", True),
            (".", "packages/a/x.py", False),
        ],
    )
    def test_member_contains(self, member: str, file: str, expected: bool) -> None:
        assert member_contains(member, file) is expected


class TestDiscovery:
    def test_members_sorted_by_name(self, uv_workspace: Path) -> None:
        members = WorkspaceResolver(uv_workspace).list_members()

        assert [m.name for m in members] == ["core-lib", "pkg-a", "pkg-ab"]
        assert [m.relative_path for m in members] == [
            "libs/core",
            "packages/a",
            "packages/ab",
        ]
        assert members[1].path == (uv_workspace / "packages" / "a").resolve()
        assert members[1].version == "1.0.0"

    def test_is_monorepo(self, uv_workspace: Path) -> None:
        assert WorkspaceResolver(uv_workspace).is_monorepo()

    def test_directory_without_manifest_is_ignored(self, uv_workspace: Path) -> None:
        (uv_workspace / "packages" / "docs").mkdir()

        result = WorkspaceResolver(uv_workspace).discover()

        assert "packages/docs" not in [m.relative_path for m in result.items]
        assert result.skipped == []

    def test_malformed_manifest_is_skipped(
        self, uv_workspace: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        broken = uv_workspace / "packages" / "broken"
        broken.mkdir()
        (broken / "pyproject.toml").write_text("[project\nname = ")

        result = WorkspaceResolver(uv_workspace).discover()

        assert [m.name for m in result.items] == ["core-lib", "pkg-a", "pkg-ab"]
        assert [s.input for s in result.skipped] == ["packages/broken"]
        assert "packages/broken" in capsys.readouterr().err

    def test_failed_pattern_is_skipped(
        self, uv_workspace: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        def expand(pattern: str, base_dir: Path) -> list[str]:
            if pattern == "libs/*":
                raise OSError("permission denied")
            return expand_pattern(pattern, base_dir)

        result = WorkspaceResolver(uv_workspace, expand=expand).discover()

        assert [m.name for m in result.items] == ["pkg-a", "pkg-ab"]
        assert [s.input for s in result.skipped] == ["libs/*"]
        assert 'workspace pattern "libs/*"' in capsys.readouterr().err

    def test_overlapping_patterns_are_deduplicated(self, tmp_path: Path) -> None:
        write_uv_workspace(tmp_path, {"packages/a": "pkg-a"}, ["packages/*", "packages/a"])
        members = WorkspaceResolver(tmp_path).list_members()
        assert [m.relative_path for m in members] == ["packages/a"]

    def test_name_falls_back_to_directory(self, tmp_path: Path) -> None:
        write_uv_workspace(tmp_path, {}, ["tools/*"])
        tool = tmp_path / "tools" / "lint-config"
        tool.mkdir(parents=True)
        (tool / "pyproject.toml").write_text('[tool.ruff]\nline-length = 88\n')

        [member] = WorkspaceResolver(tmp_path).list_members()

        assert member.name == "lint-config"
        assert member.version == "0.0.0"

    def test_results_are_memoized(self, uv_workspace: Path) -> None:
        resolver = WorkspaceResolver(uv_workspace)
        first = resolver.discover()
        (uv_workspace / "packages" / "a" / "pyproject.toml").unlink()

        assert resolver.discover() is first
        assert len(resolver.list_members()) == 3

    def test_npm_workspace(self, tmp_path: Path) -> None:
        write_npm_workspace(
            tmp_path,
            {
                "packages/web": {
                    "name": "@acme/web",
                    "version": "2.0.0",
                    "publishConfig": {"access": "public"},
                },
                "packages/util": {"name": "util", "private": True},
            },
            ["packages/*"],
        )

        members = WorkspaceResolver(tmp_path).list_members()

        assert [m.name for m in members] == ["@acme/web", "util"]
        assert members[0].publishable and members[0].version == "2.0.0"
        assert members[1].private and members[1].version == "0.0.0"

    def test_forced_manifest_kind(self, tmp_path: Path) -> None:
        write_npm_workspace(tmp_path, {"packages/web": {"name": "web"}}, ["packages/*"])
        resolver = WorkspaceResolver(tmp_path, reader=ManifestReader("pyproject"))

        with pytest.raises(ManifestError, match="No package manifest"):
            resolver.is_monorepo()


class TestLookup:
    def test_find_by_name(self, uv_workspace: Path) -> None:
        resolver = WorkspaceResolver(uv_workspace)
        member = resolver.find_by_name("pkg-ab")
        assert member is not None
        assert member.relative_path == "packages/ab"
        assert resolver.find_by_name("missing") is None

    def test_find_by_path_respects_separators(self, uv_workspace: Path) -> None:
        resolver = WorkspaceResolver(uv_workspace)

        member = resolver.find_by_path("packages/ab/src/x.py")
        assert member is not None and member.name == "pkg-ab"

        member = resolver.find_by_path("packages/a/src/x.py")
        assert member is not None and member.name == "pkg-a"

    def test_find_by_path_exact(self, uv_workspace: Path) -> None:
        member = WorkspaceResolver(uv_workspace).find_by_path("packages/a/")
        assert member is not None and member.name == "pkg-a"

    def test_find_by_path_outside_members(self, uv_workspace: Path) -> None:
        assert WorkspaceResolver(uv_workspace).find_by_path("README.md") is None


class TestSinglePackage:
    def test_not_a_monorepo(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "Solo_App"\nversion = "0.3.0"\n'
        )
        resolver = WorkspaceResolver(tmp_path)

        assert not resolver.is_monorepo()
        assert resolver.list_members() == []
        assert resolver.find_by_path("src/solo/x.py") is None

        [target] = resolver.release_targets()
        assert target.name == "solo-app"
        assert target.relative_path == "."
        assert target.version == "0.3.0"

    def test_workspace_targets_are_members(self, uv_workspace: Path) -> None:
        targets = WorkspaceResolver(uv_workspace).release_targets()
        assert [t.name for t in targets] == ["core-lib", "pkg-a", "pkg-ab"]

    def test_missing_root_manifest(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError) as excinfo:
            WorkspaceResolver(tmp_path).is_monorepo()
        assert excinfo.value.path == tmp_path.resolve()


class TestNestedMembers:
    @pytest.fixture
    def nested(self, tmp_path: Path) -> Path:
        write_uv_workspace(
            tmp_path,
            {"packages/a": "a-outer", "packages/a/sub": "a-inner"},
            ["packages/a", "packages/a/sub"],
        )
        return tmp_path

    def test_both_are_members(self, nested: Path) -> None:
        members = WorkspaceResolver(nested).list_members()
        assert [m.relative_path for m in members] == ["packages/a/sub", "packages/a"]

    def test_file_resolves_to_one_member(self, nested: Path) -> None:
        resolver = WorkspaceResolver(nested)

        inner = resolver.find_by_path("packages/a/sub/x.py")
        outer = resolver.find_by_path("packages/a/x.py")

        assert inner is not None and inner.name == "a-inner"
        assert outer is not None and outer.name == "a-outer"

    def test_member_for_path_matches_find_by_path(self, nested: Path) -> None:
        resolver = WorkspaceResolver(nested)
        members = resolver.list_members()

        for path in ["packages/a/sub/x.py", "packages/a/x.py", "packages/a", "README.md"]:
            assert member_for_path(members, path) == resolver.find_by_path(path)

    def test_exact_match_wins(self) -> None:
        members = [
            make_member("a-outer", "packages/a"),
            make_member("z-inner", "packages/a/sub"),
        ]
        member = member_for_path(members, "packages/a/sub/")
        assert member is not None and member.name == "z-inner"
