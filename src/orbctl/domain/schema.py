"""Orb schema models: parameters, commands, jobs, executors.

Fixed-shape records with an explicit ``extra`` bag per entity.  Keys the
model does not know about (steps, docker images, ``enum`` values, future
schema additions) live in ``extra`` so a definition survives a
store round-trip unchanged.

All models are frozen.  Containers inside them are still Python lists
and dicts, so callers that hand definitions across ownership boundaries
use :meth:`OrbDefinition.clone`.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Self

from pydantic import BaseModel, Field, model_validator


class ParameterType(StrEnum):
    """CircleCI parameter type tags."""

    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    ENUM = "enum"
    ENV_VAR_NAME = "env_var_name"
    STEPS = "steps"
    EXECUTOR = "executor"


class Collection(StrEnum):
    """The three named collections of an orb."""

    COMMANDS = "commands"
    JOBS = "jobs"
    EXECUTORS = "executors"


# Parameter fields compared field-by-field by the delta calculator.
PARAMETER_FIELDS: tuple[str, ...] = ("type", "description", "default", "required", "extra")

# Entity-level fields (besides parameters) tracked by the delta calculator.
ENTITY_FIELDS: tuple[str, ...] = ("description", "extra")

# Orb-level fields (besides collections) tracked by the delta calculator.
ORB_FIELDS: tuple[str, ...] = ("description", "extra")


class Parameter(BaseModel):
    """A declared parameter of a command, job, or executor."""

    model_config = {"frozen": True}

    name: str
    type: str = str(ParameterType.STRING)
    default: Any = None
    required: bool = False
    description: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_known_type(self) -> bool:
        return self.type in {t.value for t in ParameterType}


class OrbEntity(BaseModel):
    """Common shape of commands, jobs, and executors."""

    model_config = {"frozen": True}

    name: str
    description: str | None = None
    parameters: list[Parameter] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _unique_parameter_names(self) -> Self:
        names = [p.name for p in self.parameters]
        if len(names) != len(set(names)):
            msg = f"Duplicate parameter names in {self.name!r}: {names}"
            raise ValueError(msg)
        return self

    def parameter(self, name: str) -> Parameter | None:
        """Look up a declared parameter by name."""
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def parameter_names(self) -> list[str]:
        return [p.name for p in self.parameters]


class Command(OrbEntity):
    """A reusable command definition."""


class Job(OrbEntity):
    """A job definition."""


class Executor(OrbEntity):
    """An executor definition."""


ENTITY_TYPES: dict[Collection, type[OrbEntity]] = {
    Collection.COMMANDS: Command,
    Collection.JOBS: Job,
    Collection.EXECUTORS: Executor,
}


class OrbDefinition(BaseModel):
    """One version of an orb: name-keyed commands, jobs, and executors.

    Collection keys must equal the contained entity's ``name``.
    Insertion order is irrelevant to equality.
    """

    model_config = {"frozen": True}

    commands: dict[str, Command] = Field(default_factory=dict)
    jobs: dict[str, Job] = Field(default_factory=dict)
    executors: dict[str, Executor] = Field(default_factory=dict)
    description: str | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _keys_match_names(self) -> Self:
        for collection in Collection:
            for key, entity in self.collection(collection).items():
                if key != entity.name:
                    msg = f"{collection} key {key!r} does not match entity name {entity.name!r}"
                    raise ValueError(msg)
        return self

    def collection(self, collection: Collection | str) -> dict[str, Any]:
        """Return the name→entity mapping for *collection*."""
        mapping: dict[str, Any] = getattr(self, str(Collection(collection)))
        return mapping

    def find(self, name: str, collection: Collection | None = None) -> OrbEntity | None:
        """Find an entity by name, in one collection or across all of them."""
        collections = [collection] if collection is not None else list(Collection)
        for coll in collections:
            entity = self.collection(coll).get(name)
            if entity is not None:
                return entity
        return None

    def clone(self) -> OrbDefinition:
        """Deep, independent copy of this definition."""
        return self.model_copy(deep=True)

    def summary(self) -> dict[str, int]:
        return {str(c): len(self.collection(c)) for c in Collection}
