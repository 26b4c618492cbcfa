"""BaseService: foundation for all orbctl services.

Every service receives a :class:`Catalog` at construction time.  The
catalog provides the shared version store and rule registry; services
never build their own.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from orbctl.domain.errors import OrbctlError, VersionNotFound
from orbctl.domain.versions import InvalidVersion
from orbctl.services.result import ServiceError, ServiceResult

if TYPE_CHECKING:
    from orbctl.infrastructure.catalog import Catalog

logger = logging.getLogger(__name__)

# Failures converted to error results at the service boundary.
SERVICE_ERRORS: tuple[type[Exception], ...] = (OrbctlError, InvalidVersion)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class VersionService(BaseService):
            def list_versions(self) -> ServiceResult:
                try:
                    versions = self._catalog.store.list_versions()
                except SERVICE_ERRORS as exc:
                    return self._error("list_versions", exc)
                ...
    """

    def __init__(self, catalog: Catalog) -> None:
        self._catalog = catalog

    @staticmethod
    def _error(op: str, exc: Exception) -> ServiceResult:
        """Convert a core failure into a ServiceResult error."""
        if isinstance(exc, InvalidVersion):
            code = "INVALID_VERSION"
        else:
            code = getattr(exc, "code", "ORBCTL_ERROR")
        detail = {"version": str(exc.version)} if isinstance(exc, VersionNotFound) else {}
        logger.debug("%s failed with %s: %s", op, code, exc)
        return ServiceResult(
            ok=False,
            op=op,
            error=ServiceError(code=code, message=str(exc), detail=detail),
        )
