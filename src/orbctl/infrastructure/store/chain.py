"""VersionStore: the append-only chain of bases and deltas.

Writers are serialized by a lock and publish a new immutable
:class:`StoreSnapshot` by replacing a single attribute.  Readers take
one snapshot per call and never block writers.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from typing import Any

from orbctl.domain.delta import apply_delta, compute_delta
from orbctl.domain.errors import ChainCorruption, OutOfOrderVersion
from orbctl.domain.schema import OrbDefinition
from orbctl.domain.versions import Gap, Version, adjacent_gaps, parse_version
from orbctl.infrastructure.store.entries import BaseEntry, DeltaEntry, StoreSnapshot
from orbctl.infrastructure.store.policies import (
    EveryNthVersionBase,
    MajorVersionBase,
    SizeThresholdBase,
    describe_policy,
    wants_base,
)
from orbctl.infrastructure.store.reconstruct import Reconstructor

logger = logging.getLogger(__name__)


class VersionListing:
    """Ascending versions of one snapshot.

    Iterable any number of times; later appends are not visible.
    """

    def __init__(self, snapshot: StoreSnapshot) -> None:
        self._versions = snapshot.versions

    def __iter__(self) -> Iterator[Version]:
        return iter(self._versions)

    def __len__(self) -> int:
        return len(self._versions)

    def __contains__(self, version: object) -> bool:
        return version in self._versions

    def __getitem__(self, index: int) -> Version:
        return self._versions[index]

    def __repr__(self) -> str:
        return f"VersionListing({[str(v) for v in self._versions]})"


class VersionStore:
    """Owns the version chain of one orb.

    Usage::

        store = VersionStore(policy=EveryNthVersionBase(n=5))
        store.append("1.0.0", definition)
        store.reconstruct("1.0.0") == definition
    """

    def __init__(
        self,
        policy: MajorVersionBase | EveryNthVersionBase | SizeThresholdBase | None = None,
    ) -> None:
        self._policy = policy if policy is not None else MajorVersionBase()
        self._lock = threading.Lock()
        self._snapshot = StoreSnapshot()

    @property
    def policy(self) -> MajorVersionBase | EveryNthVersionBase | SizeThresholdBase:
        return self._policy

    def snapshot(self) -> StoreSnapshot:
        """The current published snapshot."""
        return self._snapshot

    # -- writes -------------------------------------------------------------

    def append(self, version: Version | str, definition: OrbDefinition) -> BaseEntry | DeltaEntry:
        """Add the next version of the orb.

        The store keeps its own copy of *definition*; later mutation by the
        caller does not leak in.

        Raises:
            OutOfOrderVersion: *version* is not strictly greater than the
                latest stored version.
        """
        target = parse_version(version)
        incoming = definition.clone()

        with self._lock:
            current = self._snapshot
            latest = current.latest
            if latest is None:
                entry: BaseEntry | DeltaEntry = BaseEntry(version=target, definition=incoming)
                logger.debug("Stored %s as initial base", target)
            else:
                if target <= latest.version:
                    raise OutOfOrderVersion(target, latest.version)
                previous = Reconstructor(current).reconstruct(latest.version)
                delta = compute_delta(
                    previous, incoming, from_version=latest.version, to_version=target
                )
                if wants_base(
                    self._policy,
                    previous=latest.version,
                    version=target,
                    appends_since_base=current.appends_since_base(),
                    delta=delta,
                ):
                    entry = BaseEntry(version=target, definition=incoming)
                    logger.debug("Stored %s as base (%s)", target, describe_policy(self._policy))
                else:
                    entry = DeltaEntry(version=target, delta=delta)
                    logger.debug(
                        "Stored %s as delta from %s (%d bytes)",
                        target,
                        latest.version,
                        delta.size_bytes(),
                    )
            self._snapshot = current.appended(entry)
        return entry

    def extend(self, history: Iterable[tuple[Version | str, OrbDefinition]]) -> int:
        """Append every ``(version, definition)`` pair in order.

        Returns the number of versions appended.
        """
        count = 0
        for version, definition in history:
            self.append(version, definition)
            count += 1
        return count

    # -- reads --------------------------------------------------------------

    def list_versions(self) -> VersionListing:
        """Stored versions, ascending, as of this call."""
        return VersionListing(self._snapshot)

    def latest_version(self) -> Version | None:
        latest = self._snapshot.latest
        return latest.version if latest is not None else None

    def reconstruct(self, target: Version | str) -> OrbDefinition:
        """Rebuild the definition stored at *target*.

        Raises:
            VersionNotFound: *target* was never appended.
        """
        return Reconstructor(self._snapshot).reconstruct(target)

    def gaps(self) -> list[Gap]:
        """Adjacent ``(older, newer)`` pairs of the stored history."""
        return adjacent_gaps(self._snapshot.versions)

    def verify_chain(self) -> None:
        """Walk the whole chain once, checking every delta applies.

        Raises:
            ChainCorruption: an entry does not follow its predecessor.
        """
        snapshot = self._snapshot
        definition: OrbDefinition | None = None
        for position, entry in enumerate(snapshot.entries):
            if isinstance(entry, BaseEntry):
                definition = entry.definition
                continue
            if definition is None:
                msg = f"Delta {entry.version} has no preceding base"
                raise ChainCorruption(msg)
            previous = snapshot.entries[position - 1].version
            if entry.delta.from_version != previous:
                msg = f"Delta {entry.version} starts at {entry.delta.from_version}, not {previous}"
                raise ChainCorruption(msg)
            definition = apply_delta(definition, entry.delta)

    def stats(self) -> dict[str, Any]:
        """Entry counts and storage shape of the chain."""
        snapshot = self._snapshot
        bases = [e for e in snapshot.entries if isinstance(e, BaseEntry)]
        deltas = [e for e in snapshot.entries if isinstance(e, DeltaEntry)]
        latest = snapshot.latest
        return {
            "versions": len(snapshot.entries),
            "bases": len(bases),
            "deltas": len(deltas),
            "base_versions": [str(e.version) for e in bases],
            "delta_bytes": sum(e.delta.size_bytes() for e in deltas),
            "latest": str(latest.version) if latest is not None else None,
            "policy": describe_policy(self._policy),
        }

    def __len__(self) -> int:
        return len(self._snapshot.entries)

    def __contains__(self, version: object) -> bool:
        try:
            target = parse_version(version)  # type: ignore[arg-type]
        except ValueError:
            return False
        return target in self._snapshot.index
