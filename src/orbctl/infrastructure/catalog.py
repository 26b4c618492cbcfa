"""Catalog: the single dependency injected into every service.

Owns the version store and the rule registry of one orb.  Both are
built lazily from the configured history and rules directory the first
time they are needed, then shared by every request of a long-lived
process.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import TYPE_CHECKING

from orbctl.domain.migration import MigrationEngine
from orbctl.domain.rules import MigrationRuleSet, RuleRegistry
from orbctl.domain.validation import Validator
from orbctl.infrastructure.history import (
    DirectorySnapshotReader,
    GitTagSnapshotReader,
    SnapshotReader,
)
from orbctl.infrastructure.rule_loader import load_rules_dir
from orbctl.infrastructure.store import (
    EveryNthVersionBase,
    MajorVersionBase,
    SizeThresholdBase,
    VersionStore,
)

if TYPE_CHECKING:
    from orbctl.config.settings import OrbctlSettings
    from orbctl.domain.schema import OrbDefinition
    from orbctl.domain.versions import Version

logger = logging.getLogger(__name__)


def policy_from_settings(
    settings: OrbctlSettings,
) -> MajorVersionBase | EveryNthVersionBase | SizeThresholdBase:
    """Build the configured base-selection policy."""
    cfg = settings.store
    match cfg.policy:
        case "every_nth":
            return EveryNthVersionBase(n=cfg.every_n)
        case "size":
            return SizeThresholdBase(max_bytes=cfg.max_delta_bytes)
        case _:
            return MajorVersionBase()


def history_reader(settings: OrbctlSettings) -> SnapshotReader:
    """The snapshot reader selected by ``[history] source``."""
    cfg = settings.history
    if cfg.source == "git":
        return GitTagSnapshotReader(
            settings.resolve_path(cfg.repo),
            orb_path=cfg.orb_path,
            tag_prefix=cfg.tag_prefix,
        )
    return DirectorySnapshotReader(settings.resolve_path(cfg.snapshots_dir))


class Catalog:
    """Lazily-built store + registry for one orb.

    Usage::

        catalog = Catalog(settings)
        catalog.store.list_versions()
        catalog.engine().generate_migration(config, "1.0.0", "2.0.0")
    """

    def __init__(
        self,
        settings: OrbctlSettings,
        *,
        store: VersionStore | None = None,
        rule_sets: Iterable[MigrationRuleSet] | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._rule_sets = list(rule_sets) if rule_sets is not None else None
        self._registry: RuleRegistry | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_history(
        cls,
        settings: OrbctlSettings,
        history: Iterable[tuple[Version | str, OrbDefinition]],
        rule_sets: Iterable[MigrationRuleSet] = (),
    ) -> Catalog:
        """Build a catalog from in-memory history instead of the filesystem."""
        store = VersionStore(policy=policy_from_settings(settings))
        store.extend(history)
        return cls(settings, store=store, rule_sets=rule_sets)

    @property
    def settings(self) -> OrbctlSettings:
        """The resolved settings for this catalog."""
        return self._settings

    @property
    def orb_alias(self) -> str | None:
        return self._settings.orb.alias

    @property
    def store(self) -> VersionStore:
        """The version store, ingested from history on first access."""
        with self._lock:
            if self._store is None:
                store = VersionStore(policy=policy_from_settings(self._settings))
                count = store.extend(history_reader(self._settings).read())
                logger.debug("Ingested %d version(s) into the store", count)
                self._store = store
            return self._store

    @property
    def registry(self) -> RuleRegistry:
        """Validated rule sets keyed by the store's adjacent gaps."""
        store = self.store
        with self._lock:
            if self._registry is None:
                rule_sets = self._rule_sets
                if rule_sets is None:
                    rules_dir = self._settings.resolve_path(self._settings.migrations.rules_dir)
                    rule_sets = load_rules_dir(rules_dir)
                self._registry = RuleRegistry.load(rule_sets, store.gaps())
                logger.debug("Loaded %d rule set(s)", len(self._registry))
            return self._registry

    def validator(self) -> Validator:
        return Validator(
            self.store,
            orb_alias=self.orb_alias,
            deprecated_markers=self._settings.validation.deprecated_markers,
        )

    def engine(self) -> MigrationEngine:
        """A migration engine over the current store and registry."""
        return MigrationEngine(
            self.store,
            self.registry,
            orb_alias=self.orb_alias,
            validator=self.validator(),
        )
