"""Migration engine: rewrite a user config across breaking-version gaps.

Request lifecycle::

    pending -> rule_matching -> applying -> validating -> complete
                                                       -> partial_failure

``partial_failure`` is not fatal: the plan is returned in full with the
validation errors enumerated, and the caller decides what to do.

Rules inside a gap are applied in id order and are independent by
construction (conflicts are rejected when rule sets load).  A missing
parameter is recorded as a "not applicable" note, never an error.
The engine works on a deep copy and never writes files.
"""

from __future__ import annotations

import copy
import logging
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

from orbctl.domain.errors import UnsupportedDirection, VersionNotFound
from orbctl.domain.invocations import (
    Invocation,
    find_invocations,
    has_path,
    pop_path,
    rename_key,
    set_path,
)
from orbctl.domain.rules import (
    JobRestructured,
    MigrationRule,
    MigrationRuleSet,
    MoveChange,
    ParameterMoved,
    ParameterRemoved,
    ParameterRenamed,
    RemoveChange,
    RenameChange,
    RuleRegistry,
    Scope,
)
from orbctl.domain.validation import DefinitionSource, ValidationResult, Validator
from orbctl.domain.versions import (
    Gap,
    Version,
    VersionField,
    format_gap,
    gaps_between,
    parse_version,
)

logger = logging.getLogger(__name__)

# --- Plan lifecycle ---


class PlanState(StrEnum):
    """States of a migration request."""

    PENDING = "pending"
    RULE_MATCHING = "rule_matching"
    APPLYING = "applying"
    VALIDATING = "validating"
    COMPLETE = "complete"
    PARTIAL_FAILURE = "partial_failure"


PLAN_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["rule_matching"],
    "rule_matching": ["applying"],
    "applying": ["validating"],
    "validating": ["complete", "partial_failure"],
    "complete": [],
    "partial_failure": [],
}


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]] = PLAN_TRANSITIONS,
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    return target in transitions.get(current, [])


# --- Plan records ---


class MigrationEdit(BaseModel):
    """One change made to the working copy."""

    model_config = {"frozen": True}

    rule_id: int
    gap: str
    action: Literal["rename", "move", "remove", "insert"]
    location: str
    detail: str


class MigrationNote(BaseModel):
    """A rule (or restructure step) that found nothing to change."""

    model_config = {"frozen": True}

    rule_id: int
    gap: str
    message: str


class MigrationPlan(BaseModel):
    """Everything a migration request produced."""

    from_version: VersionField
    to_version: VersionField
    state: PlanState
    states: list[PlanState] = Field(default_factory=list)
    gaps: list[str] = Field(default_factory=list)
    edits: list[MigrationEdit] = Field(default_factory=list)
    not_applicable: list[MigrationNote] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    validation: ValidationResult | None = None
    config: Any = None

    @property
    def errors(self) -> list[str]:
        if self.validation is None:
            return []
        return [issue.message for issue in self.validation.errors]

    @property
    def is_complete(self) -> bool:
        return self.state is PlanState.COMPLETE


# --- Rule application ---


class RuleOutcome:
    """Accumulates edits, notes, and warnings for one rule application."""

    def __init__(self, rule: MigrationRule, gap: Gap) -> None:
        self.rule = rule
        self.gap = format_gap(gap)
        self.edits: list[MigrationEdit] = []
        self.notes: list[MigrationNote] = []
        self.warnings: list[str] = []

    def edit(self, action: Any, location: str, detail: str) -> None:
        self.edits.append(
            MigrationEdit(
                rule_id=self.rule.id, gap=self.gap, action=action, location=location, detail=detail
            )
        )

    def note(self, message: str) -> None:
        self.notes.append(MigrationNote(rule_id=self.rule.id, gap=self.gap, message=message))

    def warn(self, message: str) -> None:
        self.warnings.append(f"rule {self.rule.id} ({self.gap}): {message}")


def _rename(site: Invocation, old: str, new: str, rec: RuleOutcome) -> bool:
    """Rename *old* at one site. True when *old* is set there, even if left unchanged."""
    if not site.has(old):
        return False
    assert site.params is not None
    if new in site.params:
        rec.warn(f"{site.location} sets both {old!r} and {new!r}; left unchanged")
        return True
    rename_key(site.params, old, new)
    rec.edit("rename", f"{site.location}.{old}", f"{old} -> {new}")
    return True


def _move(site: Invocation, source: str, target: str, rec: RuleOutcome) -> bool:
    if site.params is None or source.split(".")[0] in site.reserved:
        return False
    if not has_path(site.params, source):
        return False
    if has_path(site.params, target):
        rec.warn(f"{site.location} already sets {target!r}; {source!r} left in place")
        return True
    value = pop_path(site.params, source)
    set_path(site.params, target, value)
    rec.edit("move", f"{site.location}.{source}", f"{source} -> {target}")
    return True


def _remove(site: Invocation, parameter: str, replacement: str | None, rec: RuleOutcome) -> bool:
    if not site.has(parameter):
        return False
    assert site.params is not None
    site.params.pop(parameter)
    rec.edit("remove", f"{site.location}.{parameter}", f"removed {parameter}")
    if replacement and replacement not in site.params:
        site.params[replacement] = None
        rec.edit("insert", f"{site.location}.{replacement}", f"inserted {replacement} (no value)")
        rec.warn(f"{site.location}.{replacement} was inserted without a value; supply one")
    return True


def _sites(config: Any, scope: Scope, orb_alias: str | None) -> list[Invocation]:
    return [
        site
        for site in find_invocations(config, orb_alias=orb_alias)
        if scope.matches(site.collection, site.name)
    ]


def _apply_each(sites: list[Invocation], action: Any) -> bool:
    """Run *action* on every site; True if any site set the parameter."""
    found = False
    for site in sites:
        found = action(site) or found
    return found


def apply_rule(
    config: Any,
    rule: MigrationRule,
    gap: Gap,
    *,
    orb_alias: str | None = None,
) -> RuleOutcome:
    """Apply one rule to *config* in place and return what happened."""
    rec = RuleOutcome(rule, gap)
    sites = _sites(config, rule.scope, orb_alias)

    match rule.rule:
        case ParameterRenamed(scope=scope, old=old, new=new):
            if not _apply_each(sites, lambda s: _rename(s, old, new, rec)):
                rec.note(f"{scope}.{old} not set; rename to {new!r} not applicable")
        case ParameterMoved(scope=scope, old_location=source, new_location=target):
            if not _apply_each(sites, lambda s: _move(s, source, target, rec)):
                rec.note(f"{scope}.{source} not set; move to {target!r} not applicable")
        case ParameterRemoved(scope=scope, parameter=parameter, replacement=replacement):
            if not _apply_each(sites, lambda s: _remove(s, parameter, replacement, rec)):
                rec.note(f"{scope}.{parameter} not set; removal not applicable")
        case JobRestructured(job=job, changes=changes):
            for change in changes:
                match change:
                    case RenameChange(old=old, new=new):
                        applied = _apply_each(sites, lambda s: _rename(s, old, new, rec))
                        subject = f"rename {old} -> {new}"
                    case MoveChange(old_location=source, new_location=target):
                        applied = _apply_each(sites, lambda s: _move(s, source, target, rec))
                        subject = f"move {source} -> {target}"
                    case RemoveChange(parameter=parameter, replacement=replacement):
                        applied = _apply_each(
                            sites, lambda s: _remove(s, parameter, replacement, rec)
                        )
                        subject = f"remove {parameter}"
                if not applied:
                    rec.note(f"job {job}: {subject} not applicable")
    return rec


def apply_rule_set(
    config: Any,
    rule_set: MigrationRuleSet,
    *,
    orb_alias: str | None = None,
) -> list[RuleOutcome]:
    """Apply every rule of *rule_set* in declared order."""
    return [apply_rule(config, rule, rule_set.gap, orb_alias=orb_alias) for rule in rule_set.rules]


# --- Engine ---


class MigrationEngine:
    """Generate migration plans over a version store and rule registry.

    Usage::

        engine = MigrationEngine(store, registry, orb_alias="node")
        plan = engine.generate_migration(config, "1.0.0", "2.0.0")
    """

    def __init__(
        self,
        source: DefinitionSource,
        registry: RuleRegistry,
        *,
        orb_alias: str | None = None,
        validator: Validator | None = None,
    ) -> None:
        self._source = source
        self._registry = registry
        self._orb_alias = orb_alias
        self._validator = validator or Validator(source, orb_alias=orb_alias)

    def resolve_path(self, from_version: Version | str, to_version: Version | str) -> list[Gap]:
        """Adjacent gaps between two stored versions, inclusive of both ends.

        Raises:
            VersionNotFound: either end is not in the store.
            UnsupportedDirection: *from_version* is newer than *to_version*.
        """
        start = parse_version(from_version)
        end = parse_version(to_version)
        versions = list(self._source.list_versions())
        for version in (start, end):
            if version not in versions:
                raise VersionNotFound(version)
        if start > end:
            msg = f"Cannot migrate backwards from {start} to {end}"
            raise UnsupportedDirection(msg)
        return gaps_between(versions, start, end)

    def generate_migration(
        self,
        config: Any,
        from_version: Version | str,
        to_version: Version | str,
    ) -> MigrationPlan:
        """Rewrite a copy of *config* from one version to another.

        ``from_version == to_version`` yields zero edits.
        """
        start = parse_version(from_version)
        end = parse_version(to_version)
        states = [PlanState.PENDING]

        def advance(target: PlanState) -> None:
            assert is_valid_transition(states[-1], target), (states[-1], target)
            states.append(target)

        path = self.resolve_path(start, end)
        advance(PlanState.RULE_MATCHING)
        warnings: list[str] = []
        matched: list[MigrationRuleSet] = []
        for gap in path:
            rule_set = self._registry.get(gap)
            if rule_set is None:
                logger.info("No migration rules for gap %s; skipping", format_gap(gap))
                warnings.append(f"Gap {format_gap(gap)} skipped, no rules")
                continue
            warnings.extend(rule_set.warnings)
            matched.append(rule_set)

        advance(PlanState.APPLYING)
        working = copy.deepcopy(config)
        edits: list[MigrationEdit] = []
        notes: list[MigrationNote] = []
        for rule_set in matched:
            for rec in apply_rule_set(working, rule_set, orb_alias=self._orb_alias):
                edits.extend(rec.edits)
                notes.extend(rec.notes)
                warnings.extend(rec.warnings)

        advance(PlanState.VALIDATING)
        validation = self._validator.validate(working, end)
        advance(PlanState.COMPLETE if validation.ok else PlanState.PARTIAL_FAILURE)

        return MigrationPlan(
            from_version=start,
            to_version=end,
            state=states[-1],
            states=states,
            gaps=[format_gap(gap) for gap in path],
            edits=edits,
            not_applicable=notes,
            warnings=warnings,
            validation=validation,
            config=working,
        )
