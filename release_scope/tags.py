"""Tag listing parsing.

Tag lines come from ``git tag --format`` as ``hash<TAB>date<TAB>name``,
newest creation date first. Tags whose name looks like a semantic
version (``v1.2.3``, ``1.2.3-beta``) carry a parsed version.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime

from .models import PRERELEASE_NONE, Collected, SemVer, VersionTag

VERSION_TAG_PATTERN = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)(?:-(.+))?$", re.ASCII)


def parse_tag_version(name: str) -> SemVer | None:
    """Parse a tag name as a semantic version, or return None."""
    match = VERSION_TAG_PATTERN.match(name)
    if not match:
        return None
    major, minor, patch, prerelease = match.groups()
    return SemVer(
        major=int(major, 10),
        minor=int(minor, 10),
        patch=int(patch, 10),
        prerelease=prerelease or PRERELEASE_NONE,
    )


def parse_tag_line(line: str) -> VersionTag:
    """Parse a single tab-delimited tag line.

    Raises:
        ValueError: If a field is missing or the date is not ISO 8601.
    """
    fields = line.strip().split("\t")
    if len(fields) < 3 or not all(f.strip() for f in fields[:3]):
        raise ValueError("expected hash, date and name separated by tabs")
    tag_hash, date_str, name = (f.strip() for f in fields[:3])
    date = datetime.fromisoformat(date_str)
    version = parse_tag_version(name)
    return VersionTag(
        name=name,
        hash=tag_hash,
        date=date,
        is_version_tag=version is not None,
        version=version,
    )


def parse_tags(lines: Iterable[str]) -> Collected[VersionTag]:
    """Parse raw tag lines, keeping their order.

    Malformed lines are expected in real listings; they are recorded as
    skips without a warning and never abort the listing.
    """
    result: Collected[VersionTag] = Collected[VersionTag]()
    for line in lines:
        if not line.strip():
            continue
        try:
            result.items.append(parse_tag_line(line))
        except ValueError as e:
            result.skip(line, str(e))
    return result


def latest_version_tag(tags: Iterable[VersionTag]) -> VersionTag | None:
    """Return the newest tag that is a version tag, or None.

    Tags must already be ordered newest first.
    """
    return next((tag for tag in tags if tag.is_version_tag), None)
