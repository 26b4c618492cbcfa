"""Base-selection policies.

A policy decides, per append, whether to store a fresh full base or a
delta.  It only affects storage and reconstruction cost, never what
``reconstruct`` returns.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from orbctl.domain.delta import OrbDelta
from orbctl.domain.versions import Version


class MajorVersionBase(BaseModel):
    """New base whenever the major version component changes."""

    model_config = {"frozen": True}

    kind: Literal["major"] = "major"


class EveryNthVersionBase(BaseModel):
    """New base every *n* appends since the last base."""

    model_config = {"frozen": True}

    kind: Literal["every_nth"] = "every_nth"
    n: int = Field(default=10, gt=0)


class SizeThresholdBase(BaseModel):
    """New base when the serialized delta would exceed *max_bytes*."""

    model_config = {"frozen": True}

    kind: Literal["size"] = "size"
    max_bytes: int = Field(default=4096, gt=0)


BasePolicy = Annotated[
    MajorVersionBase | EveryNthVersionBase | SizeThresholdBase,
    Field(discriminator="kind"),
]


def wants_base(
    policy: MajorVersionBase | EveryNthVersionBase | SizeThresholdBase,
    *,
    previous: Version,
    version: Version,
    appends_since_base: int,
    delta: OrbDelta,
) -> bool:
    """Whether the append of *version* should store a full base.

    *appends_since_base* counts delta entries stored after the latest base.
    """
    match policy:
        case MajorVersionBase():
            return version.major != previous.major
        case EveryNthVersionBase(n=n):
            return appends_since_base + 1 >= n
        case SizeThresholdBase(max_bytes=max_bytes):
            return delta.size_bytes() > max_bytes
    raise AssertionError(f"unhandled base policy: {policy!r}")


def describe_policy(policy: MajorVersionBase | EveryNthVersionBase | SizeThresholdBase) -> str:
    match policy:
        case MajorVersionBase():
            return "major"
        case EveryNthVersionBase(n=n):
            return f"every_nth(n={n})"
        case SizeThresholdBase(max_bytes=max_bytes):
            return f"size(max_bytes={max_bytes})"
    raise AssertionError(f"unhandled base policy: {policy!r}")
