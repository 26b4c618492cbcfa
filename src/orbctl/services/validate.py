"""ValidateService: check a user config against one stored version."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from orbctl.domain.validation import ValidationResult
from orbctl.domain.versions import parse_version
from orbctl.infrastructure.config_files import load_config, load_config_text
from orbctl.services.base import SERVICE_ERRORS, BaseService
from orbctl.services.contracts import ValidationData, dump_validated
from orbctl.services.result import ServiceResult


def validation_payload(result: ValidationResult) -> dict[str, Any]:
    """Serialize a validation result into the shared payload shape."""
    data = {
        "version": str(result.version),
        "valid": result.ok,
        "checked": result.checked,
        "errors": [issue.model_dump() for issue in result.errors],
        "warnings": [issue.model_dump() for issue in result.warnings],
    }
    return dump_validated(ValidationData, data)


class ValidateService(BaseService):
    """Reference validation of user configs.

    Finding problems is a successful operation: ``ok`` stays True and the
    findings are in ``data["errors"]`` / ``data["warnings"]``.
    """

    def validate(self, config: Any, version: str) -> ServiceResult:
        op = "validate_config"
        try:
            result = self._catalog.validator().validate(config, parse_version(version))
        except SERVICE_ERRORS as exc:
            return self._error(op, exc)
        return ServiceResult(
            ok=True,
            op=op,
            data=validation_payload(result),
            warnings=[issue.message for issue in result.warnings],
        )

    def validate_file(self, path: Path, version: str) -> ServiceResult:
        """Read *path* and validate it against *version*."""
        try:
            config = load_config(path)
        except SERVICE_ERRORS as exc:
            return self._error("validate_config", exc)
        result = self.validate(config, version)
        return result.model_copy(update={"meta": {"path": str(path)}})

    def validate_text(self, text: str, version: str) -> ServiceResult:
        """Validate a config given as YAML text."""
        try:
            config = load_config_text(text)
        except SERVICE_ERRORS as exc:
            return self._error("validate_config", exc)
        return self.validate(config, version)
