"""Tests for the orbctl.toml section models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from orbctl.config.models import HistoryConfig, McpConfig, StoreConfig, ValidationConfig


class TestSectionModels:
    def test_history_defaults(self) -> None:
        cfg = HistoryConfig()
        assert cfg.source == "directory"
        assert cfg.orb_path == "src"
        assert cfg.tag_prefix == "v"

    def test_history_rejects_unknown_source(self) -> None:
        with pytest.raises(ValidationError):
            HistoryConfig(source="svn")  # type: ignore[arg-type]

    @pytest.mark.parametrize("field", ["every_n", "max_delta_bytes"])
    def test_store_limits_positive(self, field: str) -> None:
        with pytest.raises(ValidationError):
            StoreConfig(**{field: 0})

    def test_markers_independent(self) -> None:
        assert ValidationConfig().deprecated_markers is not ValidationConfig().deprecated_markers

    def test_frozen(self) -> None:
        cfg = McpConfig()
        with pytest.raises(ValidationError):
            cfg.port = 9000  # type: ignore[misc]
