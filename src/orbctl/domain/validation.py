"""Reference validation of a user config against one orb version.

Unresolved entities, undeclared parameters, and required parameters
left unset are errors.  References to elements marked deprecated are
warnings.  Finding problems never raises; only infrastructure failures
(``VersionNotFound`` from reconstruction) propagate.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from typing import Any, Literal, Protocol

from pydantic import BaseModel, Field

from orbctl.domain.invocations import find_invocations
from orbctl.domain.schema import OrbDefinition, OrbEntity, Parameter
from orbctl.domain.versions import Version, VersionField, parse_version

DEFAULT_DEPRECATED_MARKERS: tuple[str, ...] = ("deprecated",)


class DefinitionSource(Protocol):
    """Anything that can list versions and rebuild one (the version store)."""

    def list_versions(self) -> Iterable[Version]: ...

    def reconstruct(self, target: Version) -> OrbDefinition: ...


class ValidationIssue(BaseModel):
    """One finding about a reference in the config."""

    model_config = {"frozen": True}

    kind: Literal[
        "unresolved_reference",
        "undeclared_parameter",
        "missing_required_parameter",
        "deprecated_reference",
    ]
    severity: Literal["error", "warning"]
    location: str
    reference: str
    message: str


class ValidationResult(BaseModel):
    """Errors and warnings found for one target version."""

    model_config = {"frozen": True}

    version: VersionField
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    checked: int = 0

    @property
    def ok(self) -> bool:
        return not self.errors


def _marker_pattern(marker: str) -> re.Pattern[str]:
    # "Deprecated: ...", "DEPRECATED - ...", "... (deprecated)", "[deprecated] ..."
    m = re.escape(marker)
    return re.compile(rf"^\s*{m}\s*(?:[:\-]|$)|[(\[]\s*{m}\s*[)\]]", re.IGNORECASE)


def _is_deprecated(element: OrbEntity | Parameter, markers: Sequence[str]) -> bool:
    """Flagged via ``extra.deprecated``, or a marker leading or tagging the description."""
    if element.extra.get("deprecated"):
        return True
    text = element.description or ""
    return any(_marker_pattern(marker).search(text) for marker in markers)


def check_references(
    config: Any,
    definition: OrbDefinition,
    *,
    version: Version | str,
    orb_alias: str | None = None,
    deprecated_markers: Sequence[str] = DEFAULT_DEPRECATED_MARKERS,
) -> ValidationResult:
    """Check every orb reference in *config* against *definition*."""
    errors: list[ValidationIssue] = []
    warnings: list[ValidationIssue] = []
    invocations = find_invocations(config, orb_alias=orb_alias)

    for site in invocations:
        entity = definition.find(site.name, site.collection)
        kind = str(site.collection)[:-1] if site.collection else "entity"
        if entity is None:
            errors.append(
                ValidationIssue(
                    kind="unresolved_reference",
                    severity="error",
                    location=site.location,
                    reference=site.ref,
                    message=f"Unknown {kind} {site.ref!r}",
                )
            )
            continue

        if _is_deprecated(entity, deprecated_markers):
            warnings.append(
                ValidationIssue(
                    kind="deprecated_reference",
                    severity="warning",
                    location=site.location,
                    reference=site.ref,
                    message=f"{kind.capitalize()} {site.ref!r} is deprecated",
                )
            )

        passed = dict(site.parameter_items())
        for key in passed:
            param = entity.parameter(key)
            ref = f"{site.ref}.{key}"
            if param is None:
                errors.append(
                    ValidationIssue(
                        kind="undeclared_parameter",
                        severity="error",
                        location=f"{site.location}.{key}",
                        reference=ref,
                        message=f"{site.ref!r} has no parameter {key!r}",
                    )
                )
            elif _is_deprecated(param, deprecated_markers):
                warnings.append(
                    ValidationIssue(
                        kind="deprecated_reference",
                        severity="warning",
                        location=f"{site.location}.{key}",
                        reference=ref,
                        message=f"Parameter {ref!r} is deprecated",
                    )
                )

        for param in entity.parameters:
            if param.required and passed.get(param.name) is None:
                errors.append(
                    ValidationIssue(
                        kind="missing_required_parameter",
                        severity="error",
                        location=site.location,
                        reference=f"{site.ref}.{param.name}",
                        message=f"{site.ref!r} requires a value for {param.name!r}",
                    )
                )

    return ValidationResult(
        version=parse_version(version),
        errors=errors,
        warnings=warnings,
        checked=len(invocations),
    )


class Validator:
    """Validate configs against definitions rebuilt from a version store."""

    def __init__(
        self,
        source: DefinitionSource,
        *,
        orb_alias: str | None = None,
        deprecated_markers: Sequence[str] = DEFAULT_DEPRECATED_MARKERS,
    ) -> None:
        self._source = source
        self._orb_alias = orb_alias
        self._markers = tuple(deprecated_markers)

    def validate(self, config: Any, version: Version | str) -> ValidationResult:
        """Reconstruct *version* and check *config* against it.

        Raises:
            VersionNotFound: *version* is not in the store.
        """
        target = parse_version(version)
        definition = self._source.reconstruct(target)
        return check_references(
            config,
            definition,
            version=target,
            orb_alias=self._orb_alias,
            deprecated_markers=self._markers,
        )
