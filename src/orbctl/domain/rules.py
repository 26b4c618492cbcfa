"""Migration rules: declared breaking changes between two orb versions.

Rule kinds form a closed tagged union discriminated by ``type``:

- ``parameter_renamed``: ``scope.old`` becomes ``scope.new``
- ``parameter_moved``: a value moves between two dotted paths
- ``parameter_removed``: a parameter goes away, optionally replaced
- ``job_restructured``: an ordered list of rename/move/remove changes
  applied to one job

A :class:`MigrationRuleSet` is keyed by an exact adjacent gap and keeps
its rules in id order.  Conflicts are rule-authoring bugs and are
rejected when the set is built, never resolved by precedence.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Annotated, Any, Literal, Self

from pydantic import BaseModel, Field, ValidationError, model_validator

from orbctl.domain.errors import InvalidRule, RuleConflict, UnknownGap
from orbctl.domain.schema import Collection
from orbctl.domain.versions import Gap, VersionField, format_gap, parse_version

# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------


class Scope(BaseModel):
    """The entity a rule targets.

    ``collection`` may be omitted, in which case the scope matches an
    entity of that name in any collection.  Accepts the string shorthands
    ``"build"`` and ``"commands.build"``.
    """

    model_config = {"frozen": True}

    collection: Collection | None = None
    name: str

    @model_validator(mode="before")
    @classmethod
    def _from_shorthand(cls, data: Any) -> Any:
        if isinstance(data, str):
            head, sep, tail = data.partition(".")
            if sep and head in {c.value for c in Collection}:
                return {"collection": head, "name": tail}
            return {"name": data}
        return data

    def matches(self, collection: Collection | None, name: str) -> bool:
        """Whether this scope targets *name* in *collection*.

        A ``None`` collection on either side matches any collection.
        """
        if name != self.name:
            return False
        return self.collection is None or collection is None or collection == self.collection

    def overlaps(self, other: Scope) -> bool:
        return self.matches(other.collection, other.name)

    def __str__(self) -> str:
        return f"{self.collection}.{self.name}" if self.collection else self.name


# ---------------------------------------------------------------------------
# Structural changes (used inside job_restructured)
# ---------------------------------------------------------------------------


class RenameChange(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["rename"] = "rename"
    old: str
    new: str


class MoveChange(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["move"] = "move"
    old_location: str
    new_location: str


class RemoveChange(BaseModel):
    model_config = {"frozen": True}

    kind: Literal["remove"] = "remove"
    parameter: str
    replacement: str | None = None


StructuralChange = Annotated[
    RenameChange | MoveChange | RemoveChange,
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Rule kinds
# ---------------------------------------------------------------------------


class ParameterRenamed(BaseModel):
    model_config = {"frozen": True}

    type: Literal["parameter_renamed"] = "parameter_renamed"
    scope: Scope
    old: str
    new: str


class ParameterMoved(BaseModel):
    model_config = {"frozen": True}

    type: Literal["parameter_moved"] = "parameter_moved"
    scope: Scope
    old_location: str
    new_location: str


class ParameterRemoved(BaseModel):
    model_config = {"frozen": True}

    type: Literal["parameter_removed"] = "parameter_removed"
    scope: Scope
    parameter: str
    replacement: str | None = None


class JobRestructured(BaseModel):
    model_config = {"frozen": True}

    type: Literal["job_restructured"] = "job_restructured"
    job: str
    changes: list[StructuralChange] = Field(min_length=1)


RuleKind = Annotated[
    ParameterRenamed | ParameterMoved | ParameterRemoved | JobRestructured,
    Field(discriminator="type"),
]

RULE_TYPES: tuple[str, ...] = (
    "parameter_renamed",
    "parameter_moved",
    "parameter_removed",
    "job_restructured",
)


class MigrationRule(BaseModel):
    """One declared breaking change.

    Rule documents may use a flat record (``{id, type, scope, old, new,
    rationale}``); it is folded into ``{id, rationale, rule}`` on input.
    """

    model_config = {"frozen": True}

    id: int
    rule: RuleKind
    rationale: str = ""

    @model_validator(mode="before")
    @classmethod
    def _fold_flat_record(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "rule" not in data:
            data = dict(data)
            envelope = {"id": data.pop("id", None), "rationale": data.pop("rationale", "")}
            envelope["rule"] = data
            return envelope
        return data

    @property
    def rule_type(self) -> str:
        return self.rule.type

    @property
    def scope(self) -> Scope:
        match self.rule:
            case JobRestructured(job=job):
                return Scope(collection=Collection.JOBS, name=job)
            case ParameterRenamed(scope=scope) | ParameterMoved(scope=scope) | ParameterRemoved(
                scope=scope
            ):
                return scope
        raise AssertionError(f"unhandled rule kind: {self.rule!r}")

    def touched_parameters(self) -> list[str]:
        """Source parameters (or dotted paths) this rule reads and rewrites."""
        match self.rule:
            case ParameterRenamed(old=old):
                return [old]
            case ParameterMoved(old_location=old_location):
                return [old_location]
            case ParameterRemoved(parameter=parameter):
                return [parameter]
            case JobRestructured(changes=changes):
                touched: list[str] = []
                for change in changes:
                    match change:
                        case RenameChange(old=name) | RemoveChange(parameter=name):
                            source = name
                        case MoveChange(old_location=source):
                            pass
                    if source not in touched:
                        touched.append(source)
                return touched
        raise AssertionError(f"unhandled rule kind: {self.rule!r}")

    def describe(self) -> str:
        """One-line human summary."""
        match self.rule:
            case ParameterRenamed(scope=scope, old=old, new=new):
                return f"rename {scope}.{old} -> {new}"
            case ParameterMoved(scope=scope, old_location=src, new_location=dst):
                return f"move {scope}.{src} -> {dst}"
            case ParameterRemoved(scope=scope, parameter=param, replacement=repl):
                suffix = f" (replace with {repl})" if repl else ""
                return f"remove {scope}.{param}{suffix}"
            case JobRestructured(job=job, changes=changes):
                return f"restructure job {job} ({len(changes)} changes)"
        raise AssertionError(f"unhandled rule kind: {self.rule!r}")


def parse_rule(record: Mapping[str, Any]) -> MigrationRule:
    """Validate a structured rule record.

    Raises:
        InvalidRule: the record does not describe a known rule kind.
    """
    try:
        return MigrationRule.model_validate(record)
    except ValidationError as exc:
        rule_id = record.get("id", "?") if isinstance(record, Mapping) else "?"
        msg = f"Invalid migration rule {rule_id}: {exc.errors(include_url=False)}"
        raise InvalidRule(msg) from exc


# ---------------------------------------------------------------------------
# Rule sets
# ---------------------------------------------------------------------------


class MigrationRuleSet(BaseModel):
    """Rules for one exact ``(from_version, to_version)`` gap, in id order."""

    model_config = {"frozen": True}

    from_version: VersionField
    to_version: VersionField
    rules: list[MigrationRule] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def gap(self) -> Gap:
        return (self.from_version, self.to_version)

    @classmethod
    def build(
        cls,
        from_version: Any,
        to_version: Any,
        rules: Iterable[MigrationRule | Mapping[str, Any]],
    ) -> Self:
        """Validate and order *rules* for one gap.

        Raises:
            InvalidRule: malformed record, duplicate id, or reversed gap.
            RuleConflict: two rules target the same scope and parameter.
        """
        start = parse_version(from_version)
        end = parse_version(to_version)
        if start >= end:
            msg = f"Rule set gap must move forward: {start}..{end}"
            raise InvalidRule(msg)

        parsed = [r if isinstance(r, MigrationRule) else parse_rule(r) for r in rules]
        seen: set[int] = set()
        for rule in parsed:
            if rule.id in seen:
                msg = f"Duplicate rule id {rule.id} in gap {start}..{end}"
                raise InvalidRule(msg)
            seen.add(rule.id)

        ordered = sorted(parsed, key=lambda r: r.id)
        _check_conflicts(ordered, (start, end))
        return cls(
            from_version=start,
            to_version=end,
            rules=ordered,
            warnings=_ordering_ambiguities(ordered, (start, end)),
        )

    def merged_with(self, other: MigrationRuleSet) -> MigrationRuleSet:
        """Combine two documents registered for the same gap."""
        return MigrationRuleSet.build(
            self.from_version, self.to_version, [*self.rules, *other.rules]
        )


def _check_conflicts(rules: list[MigrationRule], gap: Gap) -> None:
    claimed: list[tuple[Scope, str, int]] = []
    for rule in rules:
        scope = rule.scope
        for param in rule.touched_parameters():
            for other_scope, other_param, other_id in claimed:
                if param == other_param and scope.overlaps(other_scope):
                    msg = (
                        f"Rules {other_id} and {rule.id} in gap {format_gap(gap)} "
                        f"both target {scope}.{param}"
                    )
                    raise RuleConflict(msg)
            claimed.append((scope, param, rule.id))


def _ordering_ambiguities(rules: list[MigrationRule], gap: Gap) -> list[str]:
    warnings: list[str] = []
    for i, first in enumerate(rules):
        for second in rules[i + 1 :]:
            if first.rule_type != second.rule_type and first.scope.overlaps(second.scope):
                warnings.append(
                    f"Ambiguous ordering in gap {format_gap(gap)}: rules {first.id} "
                    f"({first.rule_type}) and {second.id} ({second.rule_type}) both touch "
                    f"{second.scope}; applied in id order"
                )
    return warnings


def rule_set_from_record(record: Mapping[str, Any]) -> MigrationRuleSet:
    """Build a rule set from ``{from, to, rules: [...]}``."""
    try:
        start = record["from"]
        end = record["to"]
    except KeyError as exc:
        msg = f"Rule set document is missing {exc.args[0]!r}"
        raise InvalidRule(msg) from exc
    rules = record.get("rules") or []
    if not isinstance(rules, list):
        msg = f"Rule set {start}..{end}: 'rules' must be a list"
        raise InvalidRule(msg)
    try:
        return MigrationRuleSet.build(start, end, rules)
    except ValueError as exc:  # InvalidVersion
        raise InvalidRule(str(exc)) from exc


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class RuleRegistry:
    """Validated rule sets keyed by gap.

    Every rule set must name an adjacent gap of the version history it is
    loaded against.  Multiple documents for the same gap are merged and
    re-checked for conflicts.
    """

    def __init__(self, rule_sets: Mapping[Gap, MigrationRuleSet] | None = None) -> None:
        self._sets: dict[Gap, MigrationRuleSet] = dict(rule_sets or {})

    @classmethod
    def load(cls, rule_sets: Iterable[MigrationRuleSet], known_gaps: Iterable[Gap]) -> Self:
        """Validate *rule_sets* against *known_gaps*.

        Raises:
            UnknownGap: a rule set's gap is not adjacent in history.
            RuleConflict: merged documents conflict.
        """
        gaps = set(known_gaps)
        merged: dict[Gap, MigrationRuleSet] = {}
        for rule_set in rule_sets:
            gap = rule_set.gap
            if gap not in gaps:
                msg = f"Rule set {format_gap(gap)} does not match an adjacent gap in history"
                raise UnknownGap(msg)
            existing = merged.get(gap)
            merged[gap] = existing.merged_with(rule_set) if existing else rule_set
        return cls(merged)

    def get(self, gap: Gap) -> MigrationRuleSet | None:
        return self._sets.get(gap)

    def __contains__(self, gap: object) -> bool:
        return gap in self._sets

    def __iter__(self) -> Iterator[MigrationRuleSet]:
        return iter(sorted(self._sets.values(), key=lambda s: s.gap))

    def __len__(self) -> int:
        return len(self._sets)
