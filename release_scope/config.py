"""Configuration loading.

Settings live in the ``[tool.release-scope]`` table of the root
pyproject.toml. Every key is optional; command-line flags override them.

Example::

    [tool.release-scope]
    manifest = "package-json"
    workers = 4
    tag-message = "Release {tag}"
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from tomlkit.exceptions import TOMLKitError

from .errors import ConfigError
from .manifest import PYPROJECT, ManifestKind, load_pyproject

TOOL_TABLE = "release-scope"


class Settings(BaseModel):
    """Settings for a release-scope run.

    Attributes:
        manifest: Which manifest files describe packages.
        workers: Thread pool size for per-commit changed-file lookups.
        tag_message: Annotation message for created tags. ``{tag}`` is
                     replaced with the tag name. None creates lightweight tags.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    manifest: ManifestKind = "auto"
    workers: int = Field(default=8, ge=1)
    tag_message: str | None = Field(default=None, alias="tag-message")


def load_settings(root: Path) -> Settings:
    """Load settings from root/pyproject.toml.

    Returns default settings if the file or the table does not exist.

    Raises:
        ConfigError: If the file cannot be parsed or the table is invalid.
    """
    path = root / PYPROJECT
    if not path.is_file():
        return Settings()

    try:
        doc = load_pyproject(path)
    except (OSError, TOMLKitError) as e:
        raise ConfigError(f"Could not parse {path}: {e}") from e

    table = doc.get("tool", {}).get(TOOL_TABLE)
    if table is None:
        return Settings()

    try:
        return Settings.model_validate(table.unwrap())
    except ValidationError as e:
        raise ConfigError(f"Invalid [tool.{TOOL_TABLE}] in {path}:\n{e}") from e
