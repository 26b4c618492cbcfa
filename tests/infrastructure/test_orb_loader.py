"""Tests for orb YAML loading (packed and unpacked)."""

from __future__ import annotations

from pathlib import Path

import pytest

from orbctl.domain.errors import OrbParseError
from orbctl.domain.schema import Collection, Executor, Job
from orbctl.infrastructure.orb_loader import (
    definition_from_parts,
    entity_from_document,
    load_orb,
    load_orb_text,
    load_unpacked,
)
from tests.conftest import PROJECT

VERSIONS = PROJECT / "versions"


class TestPackedOrb:
    def test_collections(self) -> None:
        orb = load_orb(VERSIONS / "1.0.0" / "orb.yml")
        assert orb.summary() == {"commands": 1, "jobs": 3, "executors": 1}
        assert set(orb.jobs) == {"build", "test", "deploy-legacy"}
        assert isinstance(orb.executors["default"], Executor)

    def test_parameters(self) -> None:
        build = load_orb(VERSIONS / "1.0.0" / "orb.yml").jobs["build"]
        node = build.parameter("node_version")
        assert node is not None
        assert (node.type, node.default, node.required) == ("string", "18", False)
        assert build.parameter_names() == ["node_version", "cache"]

    def test_parameter_without_default_is_required(self) -> None:
        deploy = load_orb(VERSIONS / "1.0.0" / "orb.yml").jobs["deploy-legacy"]
        target = deploy.parameter("target")
        assert target is not None
        assert target.required

    def test_unknown_keys_kept_in_extra(self) -> None:
        orb = load_orb(VERSIONS / "1.0.0" / "orb.yml")
        assert orb.extra["version"] == 2.1
        assert orb.extra["display"] == {"home_url": "https://example.com/node-orb"}
        assert orb.jobs["build"].extra["executor"] == "default"
        pkg = orb.commands["install"].parameter("pkg-manager")
        assert pkg is not None
        assert pkg.extra == {"enum": ["npm", "yarn"]}

    def test_description(self) -> None:
        orb = load_orb(VERSIONS / "1.0.0" / "orb.yml")
        assert orb.description == "Build and test Node.js projects"
        assert "deprecated" in (orb.jobs["deploy-legacy"].description or "")

    def test_empty_document(self) -> None:
        assert load_orb_text("").summary() == {"commands": 0, "jobs": 0, "executors": 0}


class TestUnpackedOrb:
    def test_directory(self) -> None:
        orb = load_orb(VERSIONS / "2.0.0")
        assert set(orb.commands) == {"install", "audit"}
        assert set(orb.jobs) == {"build", "test", "deploy-legacy"}
        assert orb.jobs["build"].parameter_names() == ["runtime_version", "cache", "cache_key"]
        assert orb.extra["version"] == 2.1

    def test_root_file_path(self) -> None:
        assert load_orb(VERSIONS / "2.0.0" / "@orb.yml") == load_orb(VERSIONS / "2.0.0")

    def test_missing_root_file(self, tmp_path: Path) -> None:
        (tmp_path / "jobs").mkdir()
        with pytest.raises(OrbParseError, match="Missing required file"):
            load_unpacked(tmp_path)

    def test_non_yaml_files_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "@orb.yml").write_text("version: 2.1\n")
        (tmp_path / "jobs").mkdir()
        (tmp_path / "jobs" / "build.yml").write_text("steps: [checkout]\n")
        (tmp_path / "jobs" / "README.md").write_text("# jobs\n")
        orb = load_unpacked(tmp_path)
        assert list(orb.jobs) == ["build"]


class TestErrors:
    def test_invalid_yaml(self) -> None:
        with pytest.raises(OrbParseError, match="Invalid YAML in bad.yml"):
            load_orb_text("jobs: [unclosed", "bad.yml")

    def test_collection_not_mapping(self) -> None:
        with pytest.raises(OrbParseError, match="Expected a mapping"):
            load_orb_text("jobs: [build, test]\n")

    def test_missing_packed_file(self, tmp_path: Path) -> None:
        with pytest.raises(OrbParseError, match="Missing required file"):
            load_orb(tmp_path / "orb.yml")

    def test_invalid_entity_field(self) -> None:
        with pytest.raises(OrbParseError, match="Invalid job 'build' in x.yml"):
            entity_from_document(Collection.JOBS, "build", {"description": ["a", "b"]}, "x.yml")


class TestDefinitionFromParts:
    def test_parts_replace_root_collections(self) -> None:
        root = {"jobs": {"old": {}}, "commands": {"keep": {}}}
        orb = definition_from_parts(root, {Collection.JOBS: {"new": {"description": "n"}}})
        assert list(orb.jobs) == ["new"]
        assert isinstance(orb.jobs["new"], Job)
        assert list(orb.commands) == ["keep"]
