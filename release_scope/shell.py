"""Shell and git utilities.

Provides a thin wrapper around subprocess for running git, plus the
output helpers used for step headers, warnings and fatal errors.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

from .errors import GitError

# Step headers are suppressed by ``release-scope --quiet``.
QUIET = False


def git(*args: str, cwd: Path | None = None, check: bool = True) -> str:
    """Run a git command and return stdout.

    Args:
        *args: Arguments to pass to git (e.g., "status", "--porcelain").
        cwd: Directory to run git in. Defaults to the current directory.
        check: If True (default), raise GitError on non-zero exit. Set to
               False for commands that may legitimately fail.

    Returns:
        Stripped stdout from the git command.

    Raises:
        GitError: If the command exits non-zero and check is True, or if
                  the git executable cannot be found.
    """
    command = ["git", *args]
    try:
        result = subprocess.run(
            command, capture_output=True, text=True, check=check, cwd=cwd
        )
    except subprocess.CalledProcessError as e:
        raise GitError(
            f"git {' '.join(args)} failed with exit code {e.returncode}",
            command=command,
            stderr=e.stderr,
        ) from e
    except FileNotFoundError as e:
        raise GitError("git executable not found", command=command) from e
    return result.stdout.strip()


def step(msg: str) -> None:
    """Print a visually distinct step header."""
    if QUIET:
        return
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a non-fatal warning to stderr.

    Used by best-effort loops that skip a malformed item and keep going.
    """
    print(f"Warning: {msg}", file=sys.stderr)


def fatal(msg: str) -> None:
    """Print an error message and exit with code 1."""
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(1)
