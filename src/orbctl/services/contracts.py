"""Typed payload contracts for service and adapter boundaries.

These models validate operation payload shapes before they leave the
service layer so key regressions fail fast in tests and during
development.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T", bound=BaseModel)


def dump_validated(model_cls: type[T], data: dict[str, Any]) -> dict[str, Any]:
    """Validate *data* against *model_cls* and return a normalized payload dict."""
    model = model_cls.model_validate(data)
    return model.model_dump(mode="python")


class VersionListData(BaseModel):
    """Payload contract for ``VersionService.list_versions``."""

    count: int
    latest: str | None
    versions: list[str]
    gaps: list[str]


class VersionData(BaseModel):
    """Payload contract for ``VersionService.get_version``."""

    version: str
    collection: str | None = None
    summary: dict[str, int]
    definition: dict[str, Any]


class DiffData(BaseModel):
    """Payload contract for ``VersionService.diff``."""

    from_version: str
    to_version: str
    empty: bool
    summary: dict[str, dict[str, int]]
    delta: dict[str, Any]


class StoreStatsData(BaseModel):
    """Payload contract for ``VersionService.stats``."""

    model_config = ConfigDict(extra="allow")

    versions: int
    bases: int
    deltas: int
    policy: str


class OrbCheckData(BaseModel):
    """Payload contract for ``VersionService.check_orb``."""

    path: str
    commands: int
    jobs: int
    executors: int
    names: dict[str, list[str]]


class IssueItem(BaseModel):
    """One validation finding."""

    kind: str
    severity: str
    location: str
    reference: str
    message: str


class ValidationData(BaseModel):
    """Payload contract for ``ValidateService.validate``."""

    version: str
    valid: bool
    checked: int
    errors: list[IssueItem] = Field(default_factory=list)
    warnings: list[IssueItem] = Field(default_factory=list)


class EditItem(BaseModel):
    """One change applied by a migration."""

    rule_id: int
    gap: str
    action: str
    location: str
    detail: str


class NoteItem(BaseModel):
    """One rule that found nothing to change."""

    rule_id: int
    gap: str
    message: str


class MigrationPlanData(BaseModel):
    """Payload contract for ``MigrationService.plan``."""

    from_version: str
    to_version: str
    state: str
    states: list[str]
    gaps: list[str]
    edits: list[EditItem]
    not_applicable: list[NoteItem]
    validation: ValidationData | None
    config: Any = None
    written: str | None = None


class RuleItem(BaseModel):
    """One rule in a listed rule set."""

    id: int
    type: str
    scope: str
    description: str
    rationale: str = ""


class RuleSetItem(BaseModel):
    """One rule set in ``RulesService.list_rules``."""

    gap: str
    rules: list[RuleItem]
    warnings: list[str] = Field(default_factory=list)


class RuleListData(BaseModel):
    """Payload contract for ``RulesService.list_rules``."""

    count: int
    rule_sets: list[RuleSetItem]
    uncovered_gaps: list[str]
