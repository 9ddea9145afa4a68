"""Exception hierarchy for release-scope.

Only caller and configuration mistakes are raised; recoverable
malformation is reported as a skip record instead.
"""

from __future__ import annotations

from pathlib import Path


class ReleaseScopeError(Exception):
    """Base class for all release-scope errors."""


class ConfigError(ReleaseScopeError):
    """Invalid [tool.release-scope] configuration."""


class ManifestError(ReleaseScopeError):
    """A package manifest is missing or cannot be parsed."""

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        super().__init__(message)
        self.path = path


class GitError(ReleaseScopeError):
    """A git command failed."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str] | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(message)
        self.command = command or []
        self.stderr = stderr

    def __str__(self) -> str:
        message = super().__str__()
        if self.stderr and self.stderr.strip():
            return f"{message}: {self.stderr.strip()}"
        return message


class HistoryError(ReleaseScopeError):
    """The commit range could not be queried."""

    def __init__(self, message: str, *, range_spec: str) -> None:
        super().__init__(message)
        self.range_spec = range_spec


class TagError(ReleaseScopeError):
    """A tag could not be created."""

    def __init__(self, message: str, *, tag: str) -> None:
        super().__init__(message)
        self.tag = tag
