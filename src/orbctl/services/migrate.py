"""MigrationService: plan config migrations and optionally persist them.

The engine only ever rewrites a copy.  Writing back to disk happens
here, and only for a plan that validated cleanly unless forced.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from orbctl.domain.migration import MigrationPlan
from orbctl.infrastructure.config_files import (
    dump_config,
    load_config,
    load_config_text,
    write_config,
)
from orbctl.services.base import SERVICE_ERRORS, BaseService
from orbctl.services.contracts import MigrationPlanData, dump_validated
from orbctl.services.result import ServiceError, ServiceResult
from orbctl.services.validate import validation_payload

logger = logging.getLogger(__name__)


def plan_payload(plan: MigrationPlan, *, written: Path | None = None) -> dict[str, Any]:
    data = {
        "from_version": str(plan.from_version),
        "to_version": str(plan.to_version),
        "state": str(plan.state),
        "states": [str(s) for s in plan.states],
        "gaps": plan.gaps,
        "edits": [edit.model_dump() for edit in plan.edits],
        "not_applicable": [note.model_dump() for note in plan.not_applicable],
        "validation": validation_payload(plan.validation) if plan.validation else None,
        "config": dump_config(plan.config),
        "written": str(written) if written is not None else None,
    }
    return dump_validated(MigrationPlanData, data)


class MigrationService(BaseService):
    """Generate migration plans over the catalog's store and rules."""

    def plan(self, config: Any, from_version: str, to_version: str) -> ServiceResult:
        """Migrate a copy of *config* and report every edit made.

        A plan whose result fails validation is still ``ok``; its state is
        ``partial_failure`` and the errors are listed in the payload.
        """
        op = "plan_migration"
        try:
            plan = self._catalog.engine().generate_migration(config, from_version, to_version)
        except SERVICE_ERRORS as exc:
            return self._error(op, exc)
        return self._result(op, plan)

    def plan_text(self, text: str, from_version: str, to_version: str) -> ServiceResult:
        """Plan a migration for a config given as YAML text."""
        try:
            config = load_config_text(text)
        except SERVICE_ERRORS as exc:
            return self._error("plan_migration", exc)
        return self.plan(config, from_version, to_version)

    def migrate_file(
        self,
        path: Path,
        from_version: str,
        to_version: str,
        *,
        write: bool = False,
        force: bool = False,
    ) -> ServiceResult:
        """Plan a migration for the config at *path*, optionally writing it back.

        With *write*, the file is only rewritten when the plan completed
        (or *force* is set) and at least one edit was made.
        """
        op = "migrate_config"
        try:
            config = load_config(path)
            plan = self._catalog.engine().generate_migration(config, from_version, to_version)
        except SERVICE_ERRORS as exc:
            return self._error(op, exc)

        if not write:
            return self._result(op, plan, meta={"path": str(path)})
        if not plan.is_complete and not force:
            return ServiceResult(
                ok=False,
                op=op,
                data=plan_payload(plan),
                error=ServiceError(
                    code="MIGRATION_INCOMPLETE",
                    message=(
                        f"Migrated config fails validation against {plan.to_version}; "
                        "not written (use --force to write anyway)"
                    ),
                    detail={"errors": plan.errors},
                ),
            )
        if not plan.edits:
            return self._result(op, plan, meta={"path": str(path)})

        write_config(path, plan.config)
        logger.debug("Wrote migrated config to %s (%d edits)", path, len(plan.edits))
        return self._result(op, plan, written=path, meta={"path": str(path)})

    @staticmethod
    def _result(
        op: str,
        plan: MigrationPlan,
        *,
        written: Path | None = None,
        meta: dict[str, Any] | None = None,
    ) -> ServiceResult:
        validation = plan.validation
        validation_warnings = [i.message for i in validation.warnings] if validation else []
        return ServiceResult(
            ok=True,
            op=op,
            data=plan_payload(plan, written=written),
            warnings=[*plan.warnings, *validation_warnings],
            meta=meta,
        )
