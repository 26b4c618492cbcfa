"""Structural deltas between two orb definitions.

``compute_delta`` partitions each collection into added / removed /
modified by name, and diffs the parameter lists of modified entities the
same way.  No rename detection: a rename is one removal plus one
addition unless a migration rule says otherwise.

``apply_delta`` is the inverse used by the reconstructor.  Deltas own
deep copies of every fragment they carry, so bases and deltas stay valid
independently of mutation elsewhere.

INVARIANT: ``apply_delta(a, compute_delta(a, b)) == b``.
"""

from __future__ import annotations

import copy
from typing import Any, TypeVar

from pydantic import BaseModel, Field

from orbctl.domain.errors import ChainCorruption
from orbctl.domain.schema import (
    ENTITY_FIELDS,
    ENTITY_TYPES,
    ORB_FIELDS,
    PARAMETER_FIELDS,
    Collection,
    OrbDefinition,
    OrbEntity,
    Parameter,
)
from orbctl.domain.versions import VersionField

# ---------------------------------------------------------------------------
# Delta models
# ---------------------------------------------------------------------------


class FieldChange(BaseModel):
    """Old and new value of a single field."""

    model_config = {"frozen": True}

    old: Any = None
    new: Any = None


class ParameterChange(BaseModel):
    """Field-level changes of one parameter present on both sides."""

    model_config = {"frozen": True}

    name: str
    fields: dict[str, FieldChange] = Field(default_factory=dict)


class ParameterDelta(BaseModel):
    """Added / removed / modified parameters, keyed by name.

    ``order`` holds the resulting parameter name order, recorded only when
    by-name patching would not reproduce it on its own.
    """

    model_config = {"frozen": True}

    added: list[Parameter] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    modified: dict[str, ParameterChange] = Field(default_factory=dict)
    order: list[str] | None = None

    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified or self.order is not None)


class EntityChange(BaseModel):
    """Changes to an entity present in both definitions."""

    model_config = {"frozen": True}

    name: str
    fields: dict[str, FieldChange] = Field(default_factory=dict)
    parameters: ParameterDelta = Field(default_factory=ParameterDelta)


class CollectionDelta(BaseModel):
    """Added / removed / modified entities of one collection."""

    model_config = {"frozen": True}

    added: dict[str, OrbEntity] = Field(default_factory=dict)
    removed: list[str] = Field(default_factory=list)
    modified: dict[str, EntityChange] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)


class OrbDelta(BaseModel):
    """Structural diff from one orb version to the next."""

    model_config = {"frozen": True}

    from_version: VersionField | None = None
    to_version: VersionField | None = None
    commands: CollectionDelta = Field(default_factory=CollectionDelta)
    jobs: CollectionDelta = Field(default_factory=CollectionDelta)
    executors: CollectionDelta = Field(default_factory=CollectionDelta)
    fields: dict[str, FieldChange] = Field(default_factory=dict)

    def collection(self, collection: Collection | str) -> CollectionDelta:
        delta: CollectionDelta = getattr(self, str(Collection(collection)))
        return delta

    def is_empty(self) -> bool:
        return not self.fields and all(self.collection(c).is_empty() for c in Collection)

    def size_bytes(self) -> int:
        """Serialized size, used by the size-threshold base policy."""
        return len(self.model_dump_json().encode("utf-8"))

    def summary(self) -> dict[str, dict[str, int]]:
        """Per-collection counts of added / removed / modified entities."""
        return {
            str(c): {
                "added": len(self.collection(c).added),
                "removed": len(self.collection(c).removed),
                "modified": len(self.collection(c).modified),
            }
            for c in Collection
        }


# ---------------------------------------------------------------------------
# Computation
# ---------------------------------------------------------------------------


def _strict_equal(a: Any, b: Any) -> bool:
    """Equality that also distinguishes ``1`` from ``True`` and ``1.0``."""
    if type(a) is not type(b):
        return False
    if isinstance(a, dict):
        return a.keys() == b.keys() and all(_strict_equal(a[k], b[k]) for k in a)
    if isinstance(a, (list, tuple)):
        return len(a) == len(b) and all(_strict_equal(x, y) for x, y in zip(a, b, strict=True))
    return bool(a == b)


def _diff_fields(old: BaseModel, new: BaseModel, names: tuple[str, ...]) -> dict[str, FieldChange]:
    changes: dict[str, FieldChange] = {}
    for name in names:
        before = getattr(old, name)
        after = getattr(new, name)
        if not _strict_equal(before, after):
            changes[name] = FieldChange(old=copy.deepcopy(before), new=copy.deepcopy(after))
    return changes


def _diff_parameters(old: list[Parameter], new: list[Parameter]) -> ParameterDelta:
    old_by_name = {p.name: p for p in old}
    new_by_name = {p.name: p for p in new}

    modified: dict[str, ParameterChange] = {}
    for param in new:
        previous = old_by_name.get(param.name)
        if previous is None:
            continue
        fields = _diff_fields(previous, param, PARAMETER_FIELDS)
        if fields:
            modified[param.name] = ParameterChange(name=param.name, fields=fields)

    delta = ParameterDelta(
        added=[p.model_copy(deep=True) for p in new if p.name not in old_by_name],
        removed=[p.name for p in old if p.name not in new_by_name],
        modified=modified,
    )
    target_order = [p.name for p in new]
    if [p.name for p in patch_parameters(old, delta, strict=False)] != target_order:
        delta = delta.model_copy(update={"order": target_order})
    return delta


def _diff_collection(old: dict[str, OrbEntity], new: dict[str, OrbEntity]) -> CollectionDelta:
    modified: dict[str, EntityChange] = {}
    for name, entity in new.items():
        previous = old.get(name)
        if previous is None:
            continue
        fields = _diff_fields(previous, entity, ENTITY_FIELDS)
        params = _diff_parameters(previous.parameters, entity.parameters)
        if fields or not params.is_empty():
            modified[name] = EntityChange(name=name, fields=fields, parameters=params)

    return CollectionDelta(
        added={n: e.model_copy(deep=True) for n, e in new.items() if n not in old},
        removed=sorted(n for n in old if n not in new),
        modified=modified,
    )


def compute_delta(
    old: OrbDefinition,
    new: OrbDefinition,
    *,
    from_version: Any = None,
    to_version: Any = None,
) -> OrbDelta:
    """Compute the structural delta turning *old* into *new*.

    Pure and side-effect free.  ``compute_delta(d, d).is_empty()`` holds
    for every definition ``d``.
    """
    return OrbDelta(
        from_version=from_version,
        to_version=to_version,
        commands=_diff_collection(old.commands, new.commands),
        jobs=_diff_collection(old.jobs, new.jobs),
        executors=_diff_collection(old.executors, new.executors),
        fields=_diff_fields(old, new, ORB_FIELDS),
    )


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


M = TypeVar("M", bound=BaseModel)


def _with_fields(model: M, fields: dict[str, FieldChange]) -> M:
    update = {name: copy.deepcopy(change.new) for name, change in fields.items()}
    return model.model_copy(update=update)


def patch_parameters(
    params: list[Parameter],
    delta: ParameterDelta,
    *,
    owner: str = "",
    strict: bool = True,
) -> list[Parameter]:
    """Apply a parameter delta by name, returning a new list."""
    present = {p.name for p in params}
    for name in (*delta.removed, *delta.modified):
        if name not in present and strict:
            msg = f"Parameter {name!r} of {owner!r} missing while applying delta"
            raise ChainCorruption(msg)

    removed = set(delta.removed)
    result: list[Parameter] = []
    for param in params:
        if param.name in removed:
            continue
        change = delta.modified.get(param.name)
        result.append(_with_fields(param, change.fields) if change else param)

    for param in delta.added:
        if param.name in present - removed and strict:
            msg = f"Parameter {param.name!r} of {owner!r} already present while applying delta"
            raise ChainCorruption(msg)
        result.append(param.model_copy(deep=True))

    if delta.order is not None:
        by_name = {p.name: p for p in result}
        if set(delta.order) != set(by_name):
            msg = f"Parameter order of {owner!r} does not match patched parameters"
            raise ChainCorruption(msg)
        result = [by_name[name] for name in delta.order]
    return result


def _as_collection_type(collection: Collection, entity: OrbEntity) -> OrbEntity:
    entity_type = ENTITY_TYPES[collection]
    if type(entity) is entity_type:
        return entity.model_copy(deep=True)
    return entity_type.model_validate(entity.model_dump())


def apply_delta(definition: OrbDefinition, delta: OrbDelta) -> OrbDefinition:
    """Return a new definition with *delta* applied to *definition*.

    Raises:
        ChainCorruption: the delta references entities or parameters that
            do not exist in *definition* (or adds ones that already do).
    """
    base = definition.clone()
    updates: dict[str, Any] = {}

    for collection in Collection:
        cdelta = delta.collection(collection)
        entities = dict(base.collection(collection))

        for name in cdelta.removed:
            if entities.pop(name, None) is None:
                msg = f"Cannot remove missing {collection[:-1]} {name!r}"
                raise ChainCorruption(msg)

        for name, change in cdelta.modified.items():
            current = entities.get(name)
            if current is None:
                msg = f"Cannot modify missing {collection[:-1]} {name!r}"
                raise ChainCorruption(msg)
            patched = _with_fields(current, change.fields)
            params = patch_parameters(current.parameters, change.parameters, owner=name)
            entities[name] = patched.model_copy(update={"parameters": params})

        for name, entity in cdelta.added.items():
            if name in entities:
                msg = f"Cannot add {collection[:-1]} {name!r}: already present"
                raise ChainCorruption(msg)
            entities[name] = _as_collection_type(collection, entity)

        updates[str(collection)] = entities

    for name, change in delta.fields.items():
        updates[name] = copy.deepcopy(change.new)

    return base.model_copy(update=updates)
