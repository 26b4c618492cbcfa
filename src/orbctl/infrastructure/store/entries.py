"""Store entries and immutable chain snapshots.

INVARIANT: the first entry is always a base, and every delta's
``from_version`` is the version of the entry right before it.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from orbctl.domain.delta import OrbDelta
from orbctl.domain.schema import OrbDefinition
from orbctl.domain.versions import Version, VersionField


class BaseEntry(BaseModel):
    """A fully materialized definition."""

    model_config = {"frozen": True}

    kind: Literal["base"] = "base"
    version: VersionField
    definition: OrbDefinition


class DeltaEntry(BaseModel):
    """A structural diff from the previous entry's version."""

    model_config = {"frozen": True}

    kind: Literal["delta"] = "delta"
    version: VersionField
    delta: OrbDelta


StoreEntry = Annotated[BaseEntry | DeltaEntry, Field(discriminator="kind")]


@dataclass(frozen=True)
class StoreSnapshot:
    """An immutable view of the chain, safe to share between readers."""

    entries: tuple[BaseEntry | DeltaEntry, ...] = ()
    index: Mapping[Version, int] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def versions(self) -> tuple[Version, ...]:
        return tuple(entry.version for entry in self.entries)

    @property
    def latest(self) -> BaseEntry | DeltaEntry | None:
        return self.entries[-1] if self.entries else None

    def appended(self, entry: BaseEntry | DeltaEntry) -> StoreSnapshot:
        """Return a new snapshot with *entry* at the end."""
        index = dict(self.index)
        index[entry.version] = len(self.entries)
        return StoreSnapshot(entries=(*self.entries, entry), index=MappingProxyType(index))

    def appends_since_base(self) -> int:
        """Number of delta entries after the most recent base."""
        count = 0
        for entry in reversed(self.entries):
            if isinstance(entry, BaseEntry):
                break
            count += 1
        return count
