"""Tests for the orb schema models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from orbctl.domain.schema import Collection, Command, Job, OrbDefinition, Parameter
from tests.conftest import make_orb, param


class TestParameter:
    def test_defaults(self) -> None:
        p = Parameter(name="tag")
        assert p.type == "string"
        assert p.required is False
        assert p.extra == {}

    def test_known_type(self) -> None:
        assert Parameter(name="a", type="boolean").is_known_type
        assert not Parameter(name="a", type="float").is_known_type

    def test_frozen(self) -> None:
        p = Parameter(name="tag")
        with pytest.raises(ValidationError):
            p.name = "other"  # type: ignore[misc]


class TestOrbEntity:
    def test_duplicate_parameter_names_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate parameter"):
            Job(name="build", parameters=[Parameter(name="a"), Parameter(name="a")])

    def test_parameter_lookup(self) -> None:
        job = Job(name="build", parameters=[param("node_version", "18"), param("cache", True)])
        assert job.parameter("cache") is not None
        assert job.parameter("missing") is None
        assert job.parameter_names() == ["node_version", "cache"]


class TestOrbDefinition:
    def test_key_must_match_name(self) -> None:
        with pytest.raises(ValidationError, match="does not match"):
            OrbDefinition(jobs={"build": Job(name="test")})

    def test_find_any_collection(self) -> None:
        orb = make_orb(commands={"install": []}, jobs={"build": []})
        found = orb.find("install")
        assert isinstance(found, Command)
        assert orb.find("install", Collection.JOBS) is None
        assert orb.find("nope") is None

    def test_clone_is_independent(self) -> None:
        orb = OrbDefinition(jobs={"build": Job(name="build", extra={"steps": ["checkout"]})})
        copy = orb.clone()
        copy.jobs["build"].extra["steps"].append("run")
        assert orb.jobs["build"].extra["steps"] == ["checkout"]

    def test_equality_ignores_insertion_order(self) -> None:
        a = make_orb(jobs={"build": [], "test": []})
        b = make_orb(jobs={"test": [], "build": []})
        assert a == b

    def test_summary(self) -> None:
        orb = make_orb(commands={"install": []}, jobs={"build": [], "test": []})
        assert orb.summary() == {"commands": 1, "jobs": 2, "executors": 0}
