"""Search filtering for listings."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

R = TypeVar("R")


def _matches(value: Any, needle: str) -> bool:
    """Recursively check keys and values of value for needle (lowercased)."""
    if value is None:
        return False
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    if isinstance(value, Mapping):
        return any(
            needle in str(key).lower() or _matches(item, needle)
            for key, item in value.items()
        )
    if isinstance(value, (list, tuple, set)):
        return any(_matches(item, needle) for item in value)
    return needle in str(value).lower()


def filter_matching(records: Sequence[R], search: str | None = None) -> list[R]:
    """Return the records whose keys or values contain search.

    Matching is case-insensitive and descends into nested models, mappings
    and lists. An empty search returns every record.

    Example:
        filter_matching(members, "private") also matches on the field name,
        so every member is returned; filter_matching(members, "pkg-a") only
        returns members mentioning "pkg-a".
    """
    if not search:
        return list(records)
    needle = search.lower()
    return [record for record in records if _matches(record, needle)]
