"""Commit history assembly.

Turns a commit range into classified ``CommitRecord`` objects:

1. Resolve the range. Without an explicit start, the latest version tag
   is used; without version tags, the root commit (inclusive).
2. Read the raw log records and parse them.
3. Classify each message and look up its changed files. Lookups are
   independent, so they run on a bounded thread pool.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from .commits import classify
from .errors import GitError, HistoryError
from .models import Author, Collected, CommitRecord
from .shell import warn
from .tags import latest_version_tag, parse_tags

# hash, shortHash, authorName, authorEmail, authorDate, subject are required
MIN_LOG_FIELDS = 6
LOG_FIELDS = 7


class Repository(Protocol):
    """The git queries the assembler depends on."""

    def list_tags_raw(self) -> list[str]: ...

    def log_raw(self, revisions: list[str]) -> list[str]: ...

    def changed_files(self, commit_hash: str) -> list[str]: ...

    def root_commit_hash(self) -> str: ...


class CommitRange(BaseModel):
    """A resolved commit range.

    Attributes:
        start: Lower bound reference.
        end: Upper bound reference.
        inclusive: True if start itself belongs to the range. Ranges that
                   start at the root commit are inclusive.
    """

    model_config = ConfigDict(frozen=True)

    start: str
    end: str = "HEAD"
    inclusive: bool = False

    def revisions(self) -> list[str]:
        """Render the range as git log revision arguments."""
        if self.start == self.end:
            # Exactly one commit, not its ancestry
            return [f"{self.end}^!"]
        if self.inclusive:
            return [self.end]
        return [f"{self.start}..{self.end}"]

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"


class LogEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    hash: str
    short_hash: str
    author: Author
    subject: str
    body: str = ""

    @property
    def message(self) -> str:
        """Subject plus a blank line and the body, or the subject alone."""
        body = self.body.strip()
        return f"{self.subject}\n\n{body}" if body else self.subject


def parse_log_record(record: str) -> LogEntry:
    """Parse a pipe-delimited log record.

    Format: ``hash|shortHash|authorName|authorEmail|authorDate|subject|body``.
    The body is optional and may itself contain pipes.

    Raises:
        ValueError: If fewer than six fields are present or the date is invalid.
    """
    parts = record.split("|", LOG_FIELDS - 1)
    if len(parts) < MIN_LOG_FIELDS:
        raise ValueError(
            f"expected at least {MIN_LOG_FIELDS} fields, got {len(parts)}"
        )
    commit_hash, short_hash, name, email, date, subject = parts[:MIN_LOG_FIELDS]
    if not commit_hash.strip():
        raise ValueError("missing commit hash")
    return LogEntry(
        hash=commit_hash.strip(),
        short_hash=short_hash.strip(),
        author=Author(
            name=name, email=email, date=datetime.fromisoformat(date.strip())
        ),
        subject=subject,
        body=parts[6] if len(parts) == LOG_FIELDS else "",
    )


def build_record(entry: LogEntry, changed_files: list[str]) -> CommitRecord:
    """Combine a log entry, its classification and its changed files."""
    message = entry.message
    classification = classify(message)
    return CommitRecord(
        hash=entry.hash,
        short_hash=entry.short_hash,
        raw_message=message,
        type=classification.type,
        scope=classification.scope,
        description=classification.description or entry.subject,
        body=classification.body,
        breaking_change=classification.breaking_change,
        is_breaking=classification.is_breaking,
        release_type=classification.release_type,
        author=entry.author,
        changed_files=changed_files,
    )


class CommitAssembler:
    """Assembles classified commit records from a repository.

    Args:
        repo: Source of raw git output, usually a ``GitRepository``.
        workers: Maximum concurrent changed-file lookups.
    """

    def __init__(self, repo: Repository, workers: int = 8) -> None:
        self.repo = repo
        self.workers = max(1, workers)

    def resolve_range(
        self, from_ref: str | None = None, to_ref: str = "HEAD"
    ) -> CommitRange:
        """Resolve the lower bound of a range.

        Raises:
            HistoryError: If no lower bound can be found (e.g. an empty repository).
        """
        if from_ref:
            return CommitRange(start=from_ref, end=to_ref)

        latest = latest_version_tag(parse_tags(self.repo.list_tags_raw()).items)
        if latest is not None:
            return CommitRange(start=latest.name, end=to_ref)

        try:
            root = self.repo.root_commit_hash()
        except (GitError, IndexError) as e:
            raise HistoryError(
                f"Failed to find the root commit for range ..{to_ref}: {e}",
                range_spec=f"..{to_ref}",
            ) from e
        return CommitRange(start=root, end=to_ref, inclusive=True)

    def _changed_files(self, commit_hash: str) -> list[str]:
        try:
            return self.repo.changed_files(commit_hash)
        except GitError as e:
            warn(f"Could not get changed files for commit {commit_hash}: {e}")
            return []

    def collect_range(
        self, from_ref: str | None = None, to_ref: str = "HEAD"
    ) -> Collected[CommitRecord]:
        """Assemble the commits in a range, with the log records that were skipped.

        Raises:
            HistoryError: If the range cannot be resolved or queried.
        """
        commit_range = self.resolve_range(from_ref, to_ref)
        try:
            records = self.repo.log_raw(commit_range.revisions())
        except GitError as e:
            raise HistoryError(
                f"Failed to get commits in range {commit_range}: {e}",
                range_spec=str(commit_range),
            ) from e

        result: Collected[CommitRecord] = Collected[CommitRecord]()
        entries: list[LogEntry] = []
        for record in records:
            try:
                entries.append(parse_log_record(record))
            except ValueError as e:
                warn(f"Skipping malformed commit record {record[:40]!r}: {e}")
                result.skip(record, str(e))

        if not entries:
            return result

        with ThreadPoolExecutor(max_workers=min(self.workers, len(entries))) as pool:
            changed = list(pool.map(self._changed_files, [e.hash for e in entries]))

        # pool.map keeps input order, so records stay oldest first
        for entry, files in zip(entries, changed):
            result.items.append(build_record(entry, files))
        return result

    def assemble_range(
        self, from_ref: str | None = None, to_ref: str = "HEAD"
    ) -> list[CommitRecord]:
        """Return the classified commits in a range, oldest first."""
        return self.collect_range(from_ref, to_ref).items
