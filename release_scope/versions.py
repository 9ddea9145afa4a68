"""Version parsing and bumping utilities.

Handles conversion between version strings and semver objects, with
special handling for incomplete version strings (e.g., "1.0" → "1.0.0").
"""

from __future__ import annotations

import semver

from .models import ReleaseType


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3" → "1.2.3"

    A leading "v" is ignored and prerelease/build suffixes are kept.
    """
    version_str = version_str.strip().removeprefix("v")
    core, sep, suffix = version_str.partition("-")
    if not sep:
        core, sep, suffix = version_str.partition("+")
    parts = core.split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]) + sep + suffix)


def bump_version(version_str: str, release_type: ReleaseType) -> str:
    """Bump a version by the given release type and return it as a string.

    Examples:
        ("1.2.3", MINOR) → "1.3.0"
        ("1.0", PATCH) → "1.0.1"
        ("2.0.0-beta.1", MAJOR) → "3.0.0"
    """
    version = parse_version(version_str)
    if release_type is ReleaseType.MAJOR:
        return str(version.bump_major())
    if release_type is ReleaseType.MINOR:
        return str(version.bump_minor())
    return str(version.bump_patch())
