"""Tests for migration rules, rule sets, and the registry."""

from __future__ import annotations

from typing import Any

import pytest

from orbctl.domain.errors import InvalidRule, RuleConflict, UnknownGap
from orbctl.domain.rules import (
    JobRestructured,
    MigrationRule,
    MigrationRuleSet,
    ParameterRenamed,
    RuleRegistry,
    Scope,
    parse_rule,
    rule_set_from_record,
)
from orbctl.domain.schema import Collection
from orbctl.domain.versions import Version


def _rename(rule_id: int, scope: str, old: str, new: str) -> dict[str, Any]:
    return {"id": rule_id, "type": "parameter_renamed", "scope": scope, "old": old, "new": new}


class TestScope:
    def test_bare_name(self) -> None:
        scope = Scope.model_validate("build")
        assert scope.collection is None
        assert scope.name == "build"
        assert str(scope) == "build"

    def test_collection_shorthand(self) -> None:
        scope = Scope.model_validate("jobs.build")
        assert scope.collection is Collection.JOBS
        assert str(scope) == "jobs.build"

    def test_dotted_name_without_collection(self) -> None:
        assert Scope.model_validate("my.job").name == "my.job"

    def test_matches(self) -> None:
        scope = Scope(collection=Collection.JOBS, name="build")
        assert scope.matches(Collection.JOBS, "build")
        assert scope.matches(None, "build")
        assert not scope.matches(Collection.COMMANDS, "build")
        assert not scope.matches(Collection.JOBS, "test")

    def test_unqualified_matches_any_collection(self) -> None:
        assert Scope(name="build").matches(Collection.COMMANDS, "build")


class TestMigrationRule:
    def test_flat_record_is_folded(self) -> None:
        rule = parse_rule(
            {**_rename(1, "build", "node_version", "runtime_version"), "rationale": "why"}
        )
        assert isinstance(rule.rule, ParameterRenamed)
        assert rule.rationale == "why"
        assert rule.rule_type == "parameter_renamed"

    def test_nested_record(self) -> None:
        rule = MigrationRule.model_validate(
            {"id": 2, "rule": {"type": "parameter_removed", "scope": "build", "parameter": "x"}}
        )
        assert rule.describe() == "remove build.x"

    def test_job_restructured_scope_is_job(self) -> None:
        rule = parse_rule(
            {
                "id": 1,
                "type": "job_restructured",
                "job": "test",
                "changes": [
                    {"kind": "rename", "old": "parallelism", "new": "shards"},
                    {"kind": "move", "old_location": "node", "new_location": "runtime.node"},
                    {"kind": "remove", "parameter": "legacy"},
                ],
            }
        )
        assert isinstance(rule.rule, JobRestructured)
        assert rule.scope == Scope(collection=Collection.JOBS, name="test")
        assert rule.touched_parameters() == ["parallelism", "node", "legacy"]
        assert rule.describe() == "restructure job test (3 changes)"

    def test_describe(self) -> None:
        assert parse_rule(_rename(1, "jobs.build", "a", "b")).describe() == (
            "rename jobs.build.a -> b"
        )
        moved = parse_rule(
            {
                "id": 1,
                "type": "parameter_moved",
                "scope": "build",
                "old_location": "cache",
                "new_location": "cache.enabled",
            }
        )
        assert moved.describe() == "move build.cache -> cache.enabled"
        removed = parse_rule(
            {
                "id": 1,
                "type": "parameter_removed",
                "scope": "executors.default",
                "parameter": "tag",
                "replacement": "image_version",
            }
        )
        assert removed.describe() == "remove executors.default.tag (replace with image_version)"

    @pytest.mark.parametrize(
        "record",
        [
            {"id": 1, "type": "parameter_exploded", "scope": "build"},
            {"id": 1, "type": "parameter_renamed", "scope": "build", "old": "a"},
            {"type": "parameter_renamed", "scope": "build", "old": "a", "new": "b"},
            {"id": 1, "type": "job_restructured", "job": "test", "changes": []},
        ],
        ids=["unknown-type", "missing-field", "missing-id", "no-changes"],
    )
    def test_invalid_records(self, record: dict[str, Any]) -> None:
        with pytest.raises(InvalidRule):
            parse_rule(record)


class TestMigrationRuleSet:
    def test_rules_sorted_by_id(self) -> None:
        rule_set = MigrationRuleSet.build(
            "1.0.0",
            "2.0.0",
            [_rename(3, "build", "c", "d"), _rename(1, "build", "a", "b")],
        )
        assert [r.id for r in rule_set.rules] == [1, 3]
        assert rule_set.gap == (Version("1.0.0"), Version("2.0.0"))

    def test_conflicting_renames_rejected(self) -> None:
        with pytest.raises(RuleConflict, match="build.node_version"):
            MigrationRuleSet.build(
                "1.0.0",
                "2.0.0",
                [
                    _rename(1, "build", "node_version", "runtime_version"),
                    _rename(2, "build", "node_version", "node-version"),
                ],
            )

    def test_unqualified_scope_conflicts_with_qualified(self) -> None:
        with pytest.raises(RuleConflict):
            MigrationRuleSet.build(
                "1.0.0",
                "2.0.0",
                [
                    _rename(1, "jobs.build", "cache", "caching"),
                    {"id": 2, "type": "parameter_removed", "scope": "build", "parameter": "cache"},
                ],
            )

    def test_restructure_conflicts_with_rename_on_same_job(self) -> None:
        with pytest.raises(RuleConflict):
            MigrationRuleSet.build(
                "1.0.0",
                "2.0.0",
                [
                    _rename(1, "jobs.test", "parallelism", "workers"),
                    {
                        "id": 2,
                        "type": "job_restructured",
                        "job": "test",
                        "changes": [{"kind": "rename", "old": "parallelism", "new": "shards"}],
                    },
                ],
            )

    def test_different_collections_do_not_conflict(self) -> None:
        rule_set = MigrationRuleSet.build(
            "1.0.0",
            "2.0.0",
            [_rename(1, "jobs.build", "cache", "a"), _rename(2, "commands.build", "cache", "b")],
        )
        assert len(rule_set.rules) == 2
        assert rule_set.warnings == []

    def test_mixed_types_on_same_entity_warn(self) -> None:
        rule_set = MigrationRuleSet.build(
            "1.0.0",
            "2.0.0",
            [
                _rename(1, "build", "node_version", "runtime_version"),
                {"id": 2, "type": "parameter_removed", "scope": "build", "parameter": "cache"},
            ],
        )
        assert len(rule_set.warnings) == 1
        assert "Ambiguous ordering" in rule_set.warnings[0]

    def test_duplicate_id_rejected(self) -> None:
        with pytest.raises(InvalidRule, match="Duplicate rule id 1"):
            MigrationRuleSet.build(
                "1.0.0", "2.0.0", [_rename(1, "build", "a", "b"), _rename(1, "test", "a", "b")]
            )

    def test_backwards_gap_rejected(self) -> None:
        with pytest.raises(InvalidRule, match="must move forward"):
            MigrationRuleSet.build("2.0.0", "1.0.0", [])

    def test_from_record(self) -> None:
        rule_set = rule_set_from_record(
            {"from": "1.0.0", "to": "2.0.0", "rules": [_rename(1, "build", "a", "b")]}
        )
        assert len(rule_set.rules) == 1

    def test_from_record_missing_key(self) -> None:
        with pytest.raises(InvalidRule, match="missing 'to'"):
            rule_set_from_record({"from": "1.0.0"})

    def test_from_record_bad_version(self) -> None:
        with pytest.raises(InvalidRule):
            rule_set_from_record({"from": "one", "to": "2.0.0"})


class TestRuleRegistry:
    GAPS = [(Version("1.0.0"), Version("2.0.0")), (Version("2.0.0"), Version("3.0.0"))]

    def test_load_and_lookup(self) -> None:
        rule_set = MigrationRuleSet.build("1.0.0", "2.0.0", [_rename(1, "build", "a", "b")])
        registry = RuleRegistry.load([rule_set], self.GAPS)
        assert len(registry) == 1
        assert self.GAPS[0] in registry
        assert registry.get(self.GAPS[1]) is None
        assert list(registry) == [rule_set]

    def test_non_adjacent_gap_rejected(self) -> None:
        rule_set = MigrationRuleSet.build("1.0.0", "3.0.0", [])
        with pytest.raises(UnknownGap, match="1.0.0..3.0.0"):
            RuleRegistry.load([rule_set], self.GAPS)

    def test_same_gap_documents_merge(self) -> None:
        first = MigrationRuleSet.build("1.0.0", "2.0.0", [_rename(1, "build", "a", "b")])
        second = MigrationRuleSet.build("1.0.0", "2.0.0", [_rename(2, "test", "a", "b")])
        registry = RuleRegistry.load([first, second], self.GAPS)
        merged = registry.get(self.GAPS[0])
        assert merged is not None
        assert [r.id for r in merged.rules] == [1, 2]

    def test_merged_documents_rechecked_for_conflicts(self) -> None:
        first = MigrationRuleSet.build("1.0.0", "2.0.0", [_rename(1, "build", "a", "b")])
        second = MigrationRuleSet.build("1.0.0", "2.0.0", [_rename(2, "build", "a", "c")])
        with pytest.raises(RuleConflict):
            RuleRegistry.load([first, second], self.GAPS)

    def test_iterates_in_gap_order(self) -> None:
        late = MigrationRuleSet.build("2.0.0", "3.0.0", [])
        early = MigrationRuleSet.build("1.0.0", "2.0.0", [])
        registry = RuleRegistry.load([late, early], self.GAPS)
        assert [s.gap for s in registry] == self.GAPS
