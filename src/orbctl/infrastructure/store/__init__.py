"""Append-only base+delta version store.

Public API::

    from orbctl.infrastructure.store import VersionStore, MajorVersionBase

    store = VersionStore(policy=MajorVersionBase())
    store.append("1.0.0", definition)
    store.reconstruct("1.0.0")
"""

from orbctl.infrastructure.store.chain import VersionListing, VersionStore
from orbctl.infrastructure.store.entries import BaseEntry, DeltaEntry, StoreEntry, StoreSnapshot
from orbctl.infrastructure.store.policies import (
    BasePolicy,
    EveryNthVersionBase,
    MajorVersionBase,
    SizeThresholdBase,
    wants_base,
)
from orbctl.infrastructure.store.reconstruct import Reconstructor

__all__ = [
    "BaseEntry",
    "BasePolicy",
    "DeltaEntry",
    "EveryNthVersionBase",
    "MajorVersionBase",
    "Reconstructor",
    "SizeThresholdBase",
    "StoreEntry",
    "StoreSnapshot",
    "VersionListing",
    "VersionStore",
    "wants_base",
]
