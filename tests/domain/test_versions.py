"""Tests for version parsing and gap helpers."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from orbctl.domain.versions import (
    InvalidVersion,
    Version,
    VersionField,
    adjacent_gaps,
    format_gap,
    gaps_between,
    parse_version,
)


class TestParseVersion:
    def test_plain(self) -> None:
        assert parse_version("1.2.3") == Version("1.2.3")

    def test_leading_v(self) -> None:
        assert parse_version("v2.0.0") == Version("2.0.0")
        assert parse_version("V2.0.0") == Version("2.0.0")

    def test_passthrough(self) -> None:
        v = Version("1.0.0")
        assert parse_version(v) is v

    def test_semantic_ordering(self) -> None:
        assert parse_version("1.10.0") > parse_version("1.9.0")

    def test_invalid(self) -> None:
        with pytest.raises(InvalidVersion):
            parse_version("not-a-version")


class TestVersionField:
    def test_validates_and_serializes(self) -> None:
        class Model(BaseModel):
            version: VersionField

        m = Model(version="v1.4.0")
        assert m.version == Version("1.4.0")
        assert m.model_dump(mode="json") == {"version": "1.4.0"}


class TestGaps:
    VERSIONS = [Version("1.0.0"), Version("1.4.0"), Version("2.0.0"), Version("3.0.0")]

    def test_adjacent(self) -> None:
        gaps = adjacent_gaps(self.VERSIONS)
        assert [format_gap(g) for g in gaps] == ["1.0.0..1.4.0", "1.4.0..2.0.0", "2.0.0..3.0.0"]

    def test_adjacent_single_version(self) -> None:
        assert adjacent_gaps(self.VERSIONS[:1]) == []

    def test_between_window(self) -> None:
        gaps = gaps_between(self.VERSIONS, Version("1.4.0"), Version("3.0.0"))
        assert [format_gap(g) for g in gaps] == ["1.4.0..2.0.0", "2.0.0..3.0.0"]

    def test_between_same_version(self) -> None:
        assert gaps_between(self.VERSIONS, Version("2.0.0"), Version("2.0.0")) == []
