"""Tests for MCP resource and prompt _impl functions."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from orbctl.infrastructure.catalog import Catalog
from orbctl.mcp.prompts import migration_assistant_impl, register_prompts
from orbctl.mcp.resources import register_resources, rules_impl, version_impl, versions_impl
from tests.conftest import PROJECT_VERSIONS, project_settings


class _DummyServer:
    def __init__(self) -> None:
        self.resources: dict[str, Any] = {}
        self.prompts: dict[str, Any] = {}

    def resource(self, uri: str):  # noqa: ANN202
        def decorator(fn):  # noqa: ANN001, ANN202
            self.resources[uri] = fn
            return fn

        return decorator

    def prompt(self):  # noqa: ANN202
        def decorator(fn):  # noqa: ANN001, ANN202
            self.prompts[fn.__name__] = fn
            return fn

        return decorator


class TestResources:
    def test_versions(self, catalog: Catalog) -> None:
        data = versions_impl(catalog)
        assert data["versions"] == PROJECT_VERSIONS
        assert data["latest"] == "3.0.0"

    def test_versions_error(self, project_root: Path) -> None:
        (project_root / "orbctl.toml").write_text('[history]\nsnapshots_dir = "gone"\n')
        data = versions_impl(Catalog(project_settings(project_root)))
        assert data["versions"] == []
        assert "gone" in data["error"]

    def test_version(self, catalog: Catalog) -> None:
        data = version_impl(catalog, "1.0.0")
        assert data["version"] == "1.0.0"
        assert "install" in data["definition"]["commands"]

    def test_version_error(self, catalog: Catalog) -> None:
        data = version_impl(catalog, "not-a-version")
        assert data["error"]["code"] == "INVALID_VERSION"

    def test_rules(self, catalog: Catalog) -> None:
        data = rules_impl(catalog)
        assert [rs["gap"] for rs in data["rule_sets"]] == ["1.4.0..2.0.0", "2.0.0..3.0.0"]

    def test_rules_error(self, project_root: Path) -> None:
        (project_root / "migrations" / "stale.yml").write_text("from: 1.1.0\nto: 1.4.0\n")
        data = rules_impl(Catalog(project_settings(project_root)))
        assert data["rule_sets"] == []
        assert data["error"]["code"] == "UNKNOWN_GAP"

    def test_register_resources(self, catalog: Catalog) -> None:
        server = _DummyServer()
        register_resources(server, catalog)
        assert sorted(server.resources) == [
            "orb://rules",
            "orb://versions",
            "orb://versions/{version}",
        ]
        payload = json.loads(server.resources["orb://versions/{version}"]("1.4.0"))
        assert payload["summary"] == {"commands": 2, "jobs": 3, "executors": 1}


class TestPrompts:
    def test_migration_assistant(self, catalog: Catalog) -> None:
        text = migration_assistant_impl(catalog, "1.4.0", "2.0.0")
        assert "Migrating node from 1.4.0 to 2.0.0" in text
        assert "Gaps with migration rules: 1.4.0..2.0.0\n" in text
        assert "(latest 3.0.0)" in text

    def test_gaps_in_range(self, catalog: Catalog) -> None:
        text = migration_assistant_impl(catalog, "1.0.0", "3.0.0")
        assert "Gaps with migration rules: 1.4.0..2.0.0, 2.0.0..3.0.0" in text

    def test_invalid_versions_list_no_gaps(self, catalog: Catalog) -> None:
        text = migration_assistant_impl(catalog, "old", "new")
        assert "Gaps with migration rules: none" in text

    def test_register_prompts(self, catalog: Catalog) -> None:
        server = _DummyServer()
        register_prompts(server, catalog)
        assert "1.4.0" in server.prompts["migration_assistant"]("1.4.0", "2.0.0")
