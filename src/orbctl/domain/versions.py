"""Version parsing and gap helpers.

Orb versions are semantic versions compared with :mod:`packaging.version`.
A *gap* is an adjacent pair of versions in ingested history; migration
rule sets are keyed by gaps.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Annotated, TypeAlias

from packaging.version import InvalidVersion, Version
from pydantic import PlainSerializer, PlainValidator

__all__ = [
    "Gap",
    "InvalidVersion",
    "Version",
    "VersionField",
    "adjacent_gaps",
    "gaps_between",
    "parse_version",
]

Gap: TypeAlias = tuple[Version, Version]


def parse_version(value: str | Version) -> Version:
    """Parse *value* into a :class:`Version`, tolerating a leading ``v``.

    Raises :class:`InvalidVersion` for anything that is not a version.

    Examples:
        >>> parse_version("v1.2.0")
        <Version('1.2.0')>
    """
    if isinstance(value, Version):
        return value
    text = str(value).strip()
    if text[:1] in ("v", "V"):
        text = text[1:]
    return Version(text)


# Pydantic field type: accepts "1.2.0" or a Version, serializes to str.
VersionField = Annotated[
    Version,
    PlainValidator(parse_version),
    PlainSerializer(str, return_type=str),
]


def adjacent_gaps(versions: Sequence[Version]) -> list[Gap]:
    """Return consecutive ``(older, newer)`` pairs of an ordered version list."""
    return [(versions[i], versions[i + 1]) for i in range(len(versions) - 1)]


def gaps_between(versions: Iterable[Version], start: Version, end: Version) -> list[Gap]:
    """Adjacent gaps lying within ``[start, end]``, in order.

    *versions* must be ascending.  Returns an empty list when
    ``start == end``.
    """
    window = [v for v in versions if start <= v <= end]
    return adjacent_gaps(window)


def format_gap(gap: Gap) -> str:
    """Render a gap as ``1.0.0..2.0.0``."""
    return f"{gap[0]}..{gap[1]}"
