"""Tests for output mode selection."""

from __future__ import annotations

import json

from orbctl.output.formatters import OutputSettings, format_result
from orbctl.services.result import ServiceError, ServiceResult

LISTING = ServiceResult(
    ok=True,
    op="list_versions",
    data={"count": 2, "latest": "2.0.0", "versions": ["1.0.0", "2.0.0"], "gaps": []},
    warnings=["something odd"],
)


class TestFormatResult:
    def test_json_wins(self) -> None:
        out = format_result(LISTING, settings=OutputSettings(json_output=True, quiet=True))
        payload = json.loads(out)
        assert payload["data"]["versions"] == ["1.0.0", "2.0.0"]
        assert payload["warnings"] == ["something odd"]

    def test_quiet(self) -> None:
        out = format_result(LISTING, settings=OutputSettings(quiet=True))
        assert out == "1.0.0\n2.0.0"

    def test_default_is_rich(self) -> None:
        out = format_result(LISTING)
        assert "Version" in out
        assert "2 versions, latest 2.0.0" in out

    def test_json_error(self) -> None:
        result = ServiceResult(
            ok=False,
            op="get_version",
            error=ServiceError(code="VERSION_NOT_FOUND", message="Version 9.9.9 not found"),
        )
        payload = json.loads(format_result(result, settings=OutputSettings(json_output=True)))
        assert payload["ok"] is False
        assert payload["error"]["code"] == "VERSION_NOT_FOUND"
