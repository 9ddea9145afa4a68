"""Package manifest reading.

Reads the fields release-scope needs from either a ``pyproject.toml``
(via tomlkit) or a ``package.json``. Parsed manifests are cached per
directory for the lifetime of the reader.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

import tomlkit
from packaging.utils import canonicalize_name
from pydantic import BaseModel, ConfigDict, Field
from tomlkit.exceptions import TOMLKitError

from .errors import ManifestError

ManifestKind = Literal["auto", "pyproject", "package-json"]

PYPROJECT = "pyproject.toml"
PACKAGE_JSON = "package.json"
PRIVATE_CLASSIFIER = "Private :: Do Not Upload"

_CANDIDATES: dict[str, tuple[str, ...]] = {
    "auto": (PYPROJECT, PACKAGE_JSON),
    "pyproject": (PYPROJECT,),
    "package-json": (PACKAGE_JSON,),
}


class Manifest(BaseModel):
    """Fields read from a package manifest.

    Attributes:
        path: The manifest file.
        name: Declared package name, if any.
        version: Declared version, if any.
        workspaces: Workspace member patterns (empty for a leaf package).
        publishable: True if the manifest carries publish configuration.
        private: True if the package is marked private.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    name: str | None = None
    version: str | None = None
    workspaces: list[str] = Field(default_factory=list)
    publishable: bool = False
    private: bool = False


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file."""
    return tomlkit.parse(path.read_text())


def get_project_name(doc: tomlkit.TOMLDocument) -> str | None:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.
    """
    name = doc.get("project", {}).get("name")
    return canonicalize_name(str(name)) if name else None


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace]."""
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    return [str(m) for m in members or []]


def _pyproject_manifest(path: Path) -> Manifest:
    try:
        doc = load_pyproject(path)
    except (OSError, TOMLKitError, UnicodeDecodeError) as e:
        raise ManifestError(f"Could not parse {path}: {e}", path=path) from e

    project = doc.get("project", {})
    classifiers = [str(c) for c in project.get("classifiers", [])]
    # uv publishes to any index that declares a publish-url
    indexes = doc.get("tool", {}).get("uv", {}).get("index", [])
    version = project.get("version")
    return Manifest(
        path=path,
        name=get_project_name(doc),
        version=str(version) if version else None,
        workspaces=get_workspace_member_globs(doc),
        publishable=any("publish-url" in index for index in indexes),
        private=PRIVATE_CLASSIFIER in classifiers,
    )


def _package_json_workspaces(data: dict[str, Any]) -> list[str]:
    # "workspaces" is either a list or {"packages": [...]} (yarn style)
    workspaces = data.get("workspaces")
    if isinstance(workspaces, dict):
        workspaces = workspaces.get("packages")
    if not isinstance(workspaces, list):
        return []
    return [str(w) for w in workspaces]


def _package_json_manifest(path: Path) -> Manifest:
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestError(f"Could not parse {path}: {e}", path=path) from e
    if not isinstance(data, dict):
        raise ManifestError(f"Could not parse {path}: expected a JSON object", path=path)

    name = data.get("name")
    version = data.get("version")
    return Manifest(
        path=path,
        name=str(name) if name else None,
        version=str(version) if version else None,
        workspaces=_package_json_workspaces(data),
        publishable=bool(data.get("publishConfig")),
        private=bool(data.get("private")),
    )


class ManifestReader:
    """Reads and caches the manifest found in a package directory.

    Args:
        kind: Which manifest files to look for. "auto" prefers
              pyproject.toml and falls back to package.json.
    """

    def __init__(self, kind: ManifestKind = "auto") -> None:
        self.kind = kind
        self._cache: dict[Path, Manifest | None] = {}

    def read(self, directory: Path) -> Manifest | None:
        """Load the manifest in directory.

        In "auto" mode a pyproject.toml that only carries tool configuration
        (no [project] name and no workspace) gives way to a package.json
        next to it.

        Returns:
            The parsed manifest, or None if the directory has no manifest.

        Raises:
            ManifestError: If a manifest exists but cannot be parsed.
        """
        directory = directory.resolve()
        if directory in self._cache:
            return self._cache[directory]

        manifest: Manifest | None = None
        for filename in _CANDIDATES[self.kind]:
            path = directory / filename
            if not path.is_file():
                continue
            if filename == PYPROJECT:
                manifest = _pyproject_manifest(path)
                if manifest.name or manifest.workspaces:
                    break
            else:
                manifest = _package_json_manifest(path)
                break

        self._cache[directory] = manifest
        return manifest
