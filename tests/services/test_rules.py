"""Tests for RulesService."""

from __future__ import annotations

from pathlib import Path

from orbctl.infrastructure.catalog import Catalog
from orbctl.services.rules import RulesService
from tests.conftest import project_settings


class TestListRules:
    def test_lists_by_gap(self, catalog: Catalog) -> None:
        result = RulesService(catalog).list_rules()
        assert result.ok
        assert result.data["count"] == 2
        first, second = result.data["rule_sets"]
        assert first["gap"] == "1.4.0..2.0.0"
        assert [r["id"] for r in first["rules"]] == [1, 2, 3]
        description = first["rules"][0]["description"]
        assert description == "rename jobs.build.node_version -> runtime_version"
        assert first["rules"][0]["scope"] == "jobs.build"
        assert second["rules"][1]["type"] == "job_restructured"
        assert second["rules"][1]["scope"] == "jobs.test"

    def test_uncovered_gaps(self, catalog: Catalog) -> None:
        result = RulesService(catalog).list_rules()
        assert result.data["uncovered_gaps"] == ["1.0.0..1.4.0"]


class TestCheckRules:
    def test_summary(self, catalog: Catalog) -> None:
        result = RulesService(catalog).check_rules()
        assert result.ok
        assert result.op == "check_rules"
        assert result.data == {
            "rule_sets": 2,
            "rules": 5,
            "uncovered_gaps": ["1.0.0..1.4.0"],
        }
        assert result.warnings == []

    def test_conflict_reported(self, project_root: Path) -> None:
        (project_root / "migrations" / "extra.yml").write_text(
            "from: 1.4.0\nto: 2.0.0\nrules:\n"
            "  - id: 9\n    type: parameter_removed\n    scope: build\n"
            "    parameter: node_version\n"
        )
        result = RulesService(Catalog(project_settings(project_root))).check_rules()
        assert not result.ok
        assert result.op == "check_rules"
        assert result.error is not None
        assert result.error.code == "RULE_CONFLICT"

    def test_unknown_gap_reported(self, project_root: Path) -> None:
        (project_root / "migrations" / "stale.yml").write_text("from: 1.1.0\nto: 1.4.0\n")
        result = RulesService(Catalog(project_settings(project_root))).check_rules()
        assert result.error is not None
        assert result.error.code == "UNKNOWN_GAP"
