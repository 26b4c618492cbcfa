"""Rebuild any stored version by walking base + deltas.

Round-trip contract: ``reconstruct(v)`` is structurally equal to the
definition originally appended at ``v``.
"""

from __future__ import annotations

from orbctl.domain.delta import apply_delta
from orbctl.domain.errors import ChainCorruption, VersionNotFound
from orbctl.domain.schema import OrbDefinition
from orbctl.domain.versions import Version, parse_version
from orbctl.infrastructure.store.entries import BaseEntry, DeltaEntry, StoreSnapshot


class Reconstructor:
    """Reconstruct definitions from one immutable snapshot."""

    def __init__(self, snapshot: StoreSnapshot) -> None:
        self._snapshot = snapshot

    def base_position(self, position: int) -> int:
        """Index of the nearest base at or before *position*."""
        entries = self._snapshot.entries
        for i in range(position, -1, -1):
            if isinstance(entries[i], BaseEntry):
                return i
        msg = "Chain does not start with a base entry"
        raise ChainCorruption(msg)

    def reconstruct(self, target: Version | str) -> OrbDefinition:
        """Return an independent copy of the definition stored at *target*.

        Versions never appended (including ones that would fall between
        two stored entries) are not interpolated.

        Raises:
            VersionNotFound: *target* was never appended.
            ChainCorruption: a delta does not follow its predecessor.
        """
        version = parse_version(target)
        position = self._snapshot.index.get(version)
        if position is None:
            raise VersionNotFound(version)

        entries = self._snapshot.entries
        start = self.base_position(position)
        base = entries[start]
        assert isinstance(base, BaseEntry)
        definition = base.definition.clone()

        for i in range(start + 1, position + 1):
            entry = entries[i]
            if not isinstance(entry, DeltaEntry):
                msg = f"Expected delta at {entry.version}, found base"
                raise ChainCorruption(msg)
            previous = entries[i - 1].version
            if entry.delta.from_version != previous:
                msg = (
                    f"Delta for {entry.version} starts at {entry.delta.from_version}, "
                    f"but the previous entry is {previous}"
                )
                raise ChainCorruption(msg)
            definition = apply_delta(definition, entry.delta)
        return definition
