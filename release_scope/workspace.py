"""Workspace discovery.

A repository is a monorepo when its root manifest declares workspace
member patterns (``[tool.uv.workspace].members`` in pyproject.toml or
``workspaces`` in package.json). Each pattern is expanded into
directories, and every directory with a manifest becomes a member.

All results are memoized on the resolver instance, so build one resolver
per run and pass it to whatever needs workspace information.
"""

from __future__ import annotations

import glob
from collections.abc import Callable, Sequence
from pathlib import Path, PurePosixPath

from .errors import ManifestError
from .manifest import Manifest, ManifestReader
from .models import Collected, WorkspaceMember
from .shell import warn

ROOT_PATH = "."

PatternExpander = Callable[[str, Path], list[str]]


def expand_pattern(pattern: str, base_dir: Path) -> list[str]:
    """Expand a workspace glob into directories relative to base_dir.

    Returns sorted POSIX paths, e.g. ``["packages/a", "packages/b"]``.
    """
    matches = glob.glob(pattern, root_dir=base_dir, recursive=True)
    return sorted({normalize_path(m) for m in matches if (base_dir / m).is_dir()})


def normalize_path(path: str) -> str:
    """Normalize a repository-relative path to POSIX form without './'."""
    normalized = str(PurePosixPath(path.replace("\\", "/")))
    return normalized.rstrip("/") or ROOT_PATH


def member_contains(member_path: str, file_path: str) -> bool:
    """Check whether a repository-relative file path belongs to a member.

    Matching is bounded by path separators: ``packages/a`` contains
    ``packages/a/x.py`` but not ``packages/ab/x.py``. The root member
    ``.`` only contains top-level files and paths under a top-level
    dot-directory, so it does not swallow files of nested members.
    """
    member_path = normalize_path(member_path)
    file_path = normalize_path(file_path)
    if member_path == ROOT_PATH:
        return "/" not in file_path or file_path.startswith(".")
    return file_path == member_path or file_path.startswith(member_path + "/")


def member_for_path(
    members: Sequence[WorkspaceMember], file_path: str
) -> WorkspaceMember | None:
    """Resolve a repository-relative path to at most one member.

    An exact relative-path match wins. Otherwise the first member, in the
    given order, that contains the path is returned. With nested members
    such as ``packages/a`` and ``packages/a/sub`` a file still belongs to a
    single member.
    """
    file_path = normalize_path(file_path)
    exact = next((m for m in members if m.relative_path == file_path), None)
    if exact is not None:
        return exact
    return next(
        (m for m in members if member_contains(m.relative_path, file_path)), None
    )


def _sort_key(member: WorkspaceMember) -> tuple[str, str]:
    return member.name.casefold(), member.name


class WorkspaceResolver:
    """Resolves workspace members for the repository at root.

    Args:
        root: Repository root directory.
        reader: Manifest reader to use; shares its cache with the caller.
        expand: Pattern expander, ``expand_pattern`` by default.
    """

    def __init__(
        self,
        root: Path,
        reader: ManifestReader | None = None,
        expand: PatternExpander = expand_pattern,
    ) -> None:
        self.root = root.resolve()
        self.reader = reader or ManifestReader()
        self.expand = expand
        self._is_monorepo: bool | None = None
        self._discovered: Collected[WorkspaceMember] | None = None

    def root_manifest(self) -> Manifest:
        """Load the root manifest.

        Raises:
            ManifestError: If the root has no manifest or it cannot be parsed.
        """
        manifest = self.reader.read(self.root)
        if manifest is None:
            raise ManifestError(
                f"No package manifest found in {self.root}. "
                "Run release-scope from the repository root.",
                path=self.root,
            )
        return manifest

    def is_monorepo(self) -> bool:
        """True iff the root manifest declares at least one workspace pattern."""
        if self._is_monorepo is None:
            self._is_monorepo = bool(self.root_manifest().workspaces)
        return self._is_monorepo

    def discover(self) -> Collected[WorkspaceMember]:
        """Discover members along with the inputs that were skipped.

        Directories without a manifest are skipped silently. Unparseable
        manifests and patterns that fail to expand are warned about and
        recorded as skips.
        """
        if self._discovered is not None:
            return self._discovered

        result: Collected[WorkspaceMember] = Collected[WorkspaceMember]()
        if not self.is_monorepo():
            self._discovered = result
            return result

        seen: set[str] = set()
        for pattern in self.root_manifest().workspaces:
            try:
                candidates = self.expand(pattern, self.root)
            except (OSError, ValueError) as e:
                warn(f'Could not process workspace pattern "{pattern}": {e}')
                result.skip(pattern, f"pattern expansion failed: {e}")
                continue

            for relative_path in candidates:
                relative_path = normalize_path(relative_path)
                if relative_path in seen:
                    continue
                member = self._load_member(relative_path, result)
                if member is not None:
                    seen.add(relative_path)
                    result.items.append(member)

        result.items.sort(key=_sort_key)
        self._discovered = result
        return result

    def _load_member(
        self, relative_path: str, result: Collected[WorkspaceMember]
    ) -> WorkspaceMember | None:
        path = self.root / relative_path
        try:
            manifest = self.reader.read(path)
        except ManifestError as e:
            warn(f"Could not parse manifest in {relative_path}: {e}")
            result.skip(relative_path, str(e))
            return None
        if manifest is None:
            return None
        return WorkspaceMember(
            name=manifest.name or PurePosixPath(relative_path).name,
            path=path.resolve(),
            relative_path=relative_path,
            version=manifest.version or "0.0.0",
            publishable=manifest.publishable,
            private=manifest.private,
        )

    def list_members(self) -> list[WorkspaceMember]:
        """Return workspace members sorted by name; empty for a single package."""
        return list(self.discover().items)

    def find_by_name(self, name: str) -> WorkspaceMember | None:
        return next((m for m in self.list_members() if m.name == name), None)

    def find_by_path(self, relative_path: str) -> WorkspaceMember | None:
        """Find the member a repository-relative path belongs to.

        An exact relative-path match wins. Otherwise the first member, in
        name order, that contains the path is returned.
        """
        return member_for_path(self.list_members(), relative_path)

    def root_member(self) -> WorkspaceMember:
        """Describe the root package as a member at relative path '.'."""
        manifest = self.root_manifest()
        return WorkspaceMember(
            name=manifest.name or self.root.name,
            path=self.root,
            relative_path=ROOT_PATH,
            version=manifest.version or "0.0.0",
            publishable=manifest.publishable,
            private=manifest.private,
        )

    def release_targets(self) -> list[WorkspaceMember]:
        """Packages that can receive a release recommendation.

        The workspace members in a monorepo, the root package otherwise.
        """
        if self.is_monorepo():
            return self.list_members()
        return [self.root_member()]
