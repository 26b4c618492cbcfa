"""Tests for the Catalog (store + registry wiring)."""

from __future__ import annotations

from pathlib import Path

import pytest

from orbctl.domain.errors import OrbParseError, UnknownGap
from orbctl.domain.rules import MigrationRuleSet
from orbctl.domain.versions import Version
from orbctl.infrastructure.catalog import Catalog, history_reader, policy_from_settings
from orbctl.infrastructure.history import DirectorySnapshotReader, GitTagSnapshotReader
from orbctl.infrastructure.store import EveryNthVersionBase, MajorVersionBase, SizeThresholdBase
from tests.conftest import PROJECT_VERSIONS, make_orb, param, project_settings


class TestCatalogFromProject:
    def test_store_ingests_history(self, catalog: Catalog) -> None:
        assert [str(v) for v in catalog.store.list_versions()] == PROJECT_VERSIONS

    def test_store_is_built_once(self, catalog: Catalog) -> None:
        assert catalog.store is catalog.store

    def test_major_policy_storage(self, catalog: Catalog) -> None:
        stats = catalog.store.stats()
        assert stats["base_versions"] == ["1.0.0", "2.0.0", "3.0.0"]
        assert stats["deltas"] == 1

    def test_registry_loaded_from_rules_dir(self, catalog: Catalog) -> None:
        gaps = [s.gap for s in catalog.registry]
        assert gaps == [
            (Version("1.4.0"), Version("2.0.0")),
            (Version("2.0.0"), Version("3.0.0")),
        ]

    def test_orb_alias(self, catalog: Catalog) -> None:
        assert catalog.orb_alias == "node"

    def test_engine_migrates(self, catalog: Catalog) -> None:
        config = {"build": {"node_version": "18"}}
        plan = catalog.engine().generate_migration(config, "1.4.0", "2.0.0")
        assert plan.config == {"build": {"runtime_version": "18"}}

    def test_rules_for_unknown_gap(self, project_root: Path) -> None:
        (project_root / "migrations" / "bad.yml").write_text("from: 1.0.0\nto: 2.0.0\n")
        catalog = Catalog(project_settings(project_root))
        with pytest.raises(UnknownGap, match="1.0.0..2.0.0"):
            _ = catalog.registry

    def test_missing_history(self, tmp_path: Path) -> None:
        catalog = Catalog(project_settings(tmp_path))
        with pytest.raises(OrbParseError, match="Snapshot directory not found"):
            _ = catalog.store


class TestFromHistory:
    def test_in_memory(self, tmp_path: Path) -> None:
        history = [
            ("1.0.0", make_orb(jobs={"build": [param("node_version", "18")]})),
            ("2.0.0", make_orb(jobs={"build": [param("runtime_version", "20")]})),
        ]
        rule_set = MigrationRuleSet.build(
            "1.0.0",
            "2.0.0",
            [
                {
                    "id": 1,
                    "type": "parameter_renamed",
                    "scope": "build",
                    "old": "node_version",
                    "new": "runtime_version",
                }
            ],
        )
        catalog = Catalog.from_history(project_settings(tmp_path), history, [rule_set])
        assert len(catalog.store) == 2
        assert len(catalog.registry) == 1
        assert catalog.validator().validate({"build": {"runtime_version": "20"}}, "2.0.0").ok


class TestSettingsWiring:
    def test_policy_default(self, tmp_path: Path) -> None:
        assert policy_from_settings(project_settings(tmp_path)) == MajorVersionBase()

    def test_policy_every_nth(self, tmp_path: Path) -> None:
        settings = project_settings(tmp_path, store={"policy": "every_nth", "every_n": 3})
        assert policy_from_settings(settings) == EveryNthVersionBase(n=3)

    def test_policy_size(self, tmp_path: Path) -> None:
        settings = project_settings(tmp_path, store={"policy": "size", "max_delta_bytes": 512})
        assert policy_from_settings(settings) == SizeThresholdBase(max_bytes=512)

    def test_directory_reader(self, tmp_path: Path) -> None:
        assert isinstance(history_reader(project_settings(tmp_path)), DirectorySnapshotReader)

    def test_git_reader(self, tmp_path: Path) -> None:
        settings = project_settings(tmp_path, history={"source": "git", "tag_prefix": "release-"})
        assert isinstance(history_reader(settings), GitTagSnapshotReader)
