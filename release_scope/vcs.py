"""Git repository access.

``GitRepository`` runs the handful of git queries and mutations
release-scope needs and returns their raw output. Parsing happens in
``tags`` and ``history``.
"""

from __future__ import annotations

from pathlib import Path

from .errors import GitError, TagError
from .shell import git, warn

TAG_FORMAT = "%(objectname:short)%09%(creatordate:iso8601-strict)%09%(refname:short)"
# hash|shortHash|authorName|authorEmail|authorDate|subject|body, one record
# per commit terminated by an ASCII record separator so bodies may span lines
LOG_FORMAT = "%H|%h|%an|%ae|%aI|%s|%b%x1e"
RECORD_SEPARATOR = "\x1e"


class GitRepository:
    """A git working tree.

    Args:
        path: Any directory inside the working tree. Defaults to the
              current directory.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or Path.cwd()

    def _git(self, *args: str, check: bool = True) -> str:
        return git(*args, cwd=self.path, check=check)

    def toplevel(self) -> Path:
        """Return the root directory of the working tree."""
        return Path(self._git("rev-parse", "--show-toplevel"))

    def list_tags_raw(self) -> list[str]:
        """List tags as ``hash<TAB>date<TAB>name`` lines, newest first.

        A repository whose tags cannot be listed is treated as having none,
        so a fresh repository can still be released.
        """
        try:
            output = self._git("tag", "--sort=-creatordate", f"--format={TAG_FORMAT}")
        except GitError as e:
            warn(f"Could not retrieve git tags: {e}")
            return []
        return output.splitlines()

    def log_raw(self, revisions: list[str]) -> list[str]:
        """Return one pipe-delimited record per commit, oldest first.

        Raises:
            GitError: If git rejects the revisions.
        """
        output = self._git(
            "log", f"--format={LOG_FORMAT}", "--reverse", *revisions, "--"
        )
        records = (r.strip("\n") for r in output.split(RECORD_SEPARATOR))
        return [r for r in records if r.strip()]

    def changed_files(self, commit_hash: str) -> list[str]:
        """List repository-relative paths changed by a commit.

        ``--root`` makes the initial commit report its files too.
        """
        output = self._git(
            "diff-tree", "--no-commit-id", "--name-only", "-r", "--root", commit_hash
        )
        return [line.strip() for line in output.splitlines() if line.strip()]

    def root_commit_hash(self) -> str:
        """Return the first root commit reachable from HEAD."""
        output = self._git("rev-list", "--max-parents=0", "HEAD")
        return output.splitlines()[0].strip()

    def has_uncommitted_changes(self) -> bool:
        """Check the working tree for uncommitted changes.

        If status cannot be read the tree is reported as dirty.
        """
        try:
            return bool(self._git("status", "--porcelain"))
        except GitError as e:
            warn(f"Could not check git status: {e}")
            return True

    def create_tag(self, name: str, message: str | None = None) -> None:
        """Create a tag at HEAD, annotated when a message is given.

        Raises:
            TagError: If git refuses to create the tag.
        """
        args = ["tag", "-a", name, "-m", message] if message else ["tag", name]
        try:
            self._git(*args)
        except GitError as e:
            raise TagError(f"Failed to create tag {name}: {e}", tag=name) from e

    def current_branch(self) -> str:
        """Return the checked-out branch name (empty when detached).

        Raises:
            GitError: If the branch cannot be determined.
        """
        try:
            return self._git("branch", "--show-current")
        except GitError as e:
            raise GitError(
                f"Failed to get current branch: {e}", command=e.command, stderr=None
            ) from e
