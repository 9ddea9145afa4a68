"""Conventional commit parsing and release classification.

Two layers live here:

- ``parse_message`` is the grammar parser. It splits a raw commit message
  into header fields (``type(scope)!: subject``), a body, and footer notes.
- ``classify`` maps a parsed message onto a release type:

    1. any BREAKING CHANGE note → major
    2. ``feat`` → minor
    3. ``fix`` / ``perf`` → patch
    4. anything else, including unparseable headers → patch

Both are pure functions over text.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

from .models import ReleaseType

BREAKING_CHANGE = "BREAKING CHANGE"
UNKNOWN_TYPE = "unknown"

HEADER_PATTERN = re.compile(
    r"^(?P<type>\w+)(?:\((?P<scope>[^()\r\n]*)\))?(?P<breaking>!)?: (?P<subject>.*\S.*)$",
    re.ASCII,
)
# BREAKING-CHANGE is a synonym of BREAKING CHANGE in footers
NOTE_PATTERN = re.compile(r"^(?P<title>BREAKING[ -]CHANGE):\s*(?P<text>.*)$")

MINOR_TYPES = frozenset({"feat"})
PATCH_TYPES = frozenset({"fix", "perf"})


class Note(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    text: str


class ParsedMessage(BaseModel):
    """A commit message split along the conventional commit grammar.

    ``type`` and ``subject`` are None when the header does not follow the
    convention. Footer notes are removed from ``body``.
    """

    model_config = ConfigDict(frozen=True)

    header: str
    type: str | None = None
    scope: str | None = None
    subject: str | None = None
    body: str | None = None
    notes: list[Note] = Field(default_factory=list)


class Classification(BaseModel):
    """Semantic view of a commit message used to build a CommitRecord."""

    model_config = ConfigDict(frozen=True)

    type: str
    scope: str | None = None
    description: str
    body: str | None = None
    breaking_change: str | None = None
    is_breaking: bool = False
    release_type: ReleaseType


def _split_footer(lines: list[str]) -> tuple[list[str], list[Note]]:
    """Separate body lines from footer notes.

    A note starts at a ``BREAKING CHANGE:`` line and runs until the next
    note or the end of the message.
    """
    body: list[str] = []
    notes: list[tuple[str, list[str]]] = []
    for line in lines:
        match = NOTE_PATTERN.match(line)
        if match:
            notes.append((BREAKING_CHANGE, [match.group("text")]))
        elif notes:
            notes[-1][1].append(line)
        else:
            body.append(line)
    return body, [
        Note(title=title, text="\n".join(text).strip()) for title, text in notes
    ]


def parse_message(message: str) -> ParsedMessage:
    """Parse a raw commit message (subject plus optional body).

    Examples:
        "feat(api): add endpoint" → type="feat", scope="api", subject="add endpoint"
        "fix!: drop py3.8" → type="fix", notes=[BREAKING CHANGE: "drop py3.8"]
        "Update readme" → type=None, subject=None
    """
    lines = message.strip("\n").splitlines() or [""]
    header = lines[0].strip()
    body_lines, notes = _split_footer(lines[1:])
    body = "\n".join(body_lines).strip() or None

    match = HEADER_PATTERN.match(header)
    if not match:
        return ParsedMessage(header=header, body=body, notes=notes)

    subject = match.group("subject").strip()
    if match.group("breaking") and not any(n.title == BREAKING_CHANGE for n in notes):
        # "type!:" marks a breaking change without a footer; the subject
        # doubles as the note text
        notes.append(Note(title=BREAKING_CHANGE, text=subject))

    scope = (match.group("scope") or "").strip()
    return ParsedMessage(
        header=header,
        # Case-insensitive on purpose: "Feat:" is a feature (minor), where a
        # case-sensitive match would treat it as an unknown type (patch)
        type=match.group("type").lower(),
        scope=scope or None,
        subject=subject,
        body=body,
        notes=notes,
    )


def release_type_for(parsed: ParsedMessage) -> ReleaseType:
    """Derive the release type of a parsed message."""
    if any(note.title == BREAKING_CHANGE for note in parsed.notes):
        return ReleaseType.MAJOR
    if parsed.type in MINOR_TYPES:
        return ReleaseType.MINOR
    if parsed.type in PATCH_TYPES:
        return ReleaseType.PATCH
    # docs, style, refactor, test, chore and unparseable messages
    return ReleaseType.PATCH


def classify(message: str) -> Classification:
    """Classify a raw commit message.

    Never raises: every message maps to exactly one release type.
    """
    parsed = parse_message(message)
    breaking = next((n for n in parsed.notes if n.title == BREAKING_CHANGE), None)
    return Classification(
        type=parsed.type or UNKNOWN_TYPE,
        scope=parsed.scope,
        description=parsed.subject or parsed.header,
        body=parsed.body,
        breaking_change=breaking.text if breaking else None,
        is_breaking=breaking is not None,
        release_type=release_type_for(parsed),
    )
