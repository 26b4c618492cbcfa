"""VersionService: list, reconstruct, diff, and inspect stored versions."""

from __future__ import annotations

from pathlib import Path

from orbctl.domain.delta import compute_delta
from orbctl.domain.schema import Collection
from orbctl.domain.versions import format_gap, parse_version
from orbctl.infrastructure.orb_loader import load_orb
from orbctl.services.base import SERVICE_ERRORS, BaseService
from orbctl.services.contracts import (
    DiffData,
    OrbCheckData,
    StoreStatsData,
    VersionData,
    VersionListData,
    dump_validated,
)
from orbctl.services.result import ServiceError, ServiceResult


class VersionService(BaseService):
    """Read-side operations over the version store."""

    def list_versions(self) -> ServiceResult:
        """All stored versions, ascending, with their adjacent gaps."""
        op = "list_versions"
        try:
            store = self._catalog.store
            versions = store.list_versions()
            gaps = store.gaps()
        except SERVICE_ERRORS as exc:
            return self._error(op, exc)
        data = {
            "count": len(versions),
            "latest": str(versions[-1]) if len(versions) else None,
            "versions": [str(v) for v in versions],
            "gaps": [format_gap(g) for g in gaps],
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(VersionListData, data))

    def get_version(self, version: str, *, collection: str | None = None) -> ServiceResult:
        """Reconstruct one version, optionally narrowed to a single collection."""
        op = "get_version"
        if collection is not None and collection not in {c.value for c in Collection}:
            return ServiceResult(
                ok=False,
                op=op,
                error=ServiceError(
                    code="INVALID_COLLECTION",
                    message=f"Unknown collection {collection!r}",
                ),
            )
        try:
            definition = self._catalog.store.reconstruct(parse_version(version))
        except SERVICE_ERRORS as exc:
            return self._error(op, exc)

        dumped = definition.model_dump(mode="json")
        if collection is not None:
            dumped = {collection: dumped[collection]}
        data = {
            "version": str(parse_version(version)),
            "collection": collection,
            "summary": definition.summary(),
            "definition": dumped,
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(VersionData, data))

    def diff(self, from_version: str, to_version: str) -> ServiceResult:
        """Structural delta between any two stored versions."""
        op = "diff_versions"
        try:
            start = parse_version(from_version)
            end = parse_version(to_version)
            store = self._catalog.store
            delta = compute_delta(
                store.reconstruct(start),
                store.reconstruct(end),
                from_version=start,
                to_version=end,
            )
        except SERVICE_ERRORS as exc:
            return self._error(op, exc)
        data = {
            "from_version": str(start),
            "to_version": str(end),
            "empty": delta.is_empty(),
            "summary": delta.summary(),
            "delta": delta.model_dump(mode="json", exclude={"from_version", "to_version"}),
        }
        return ServiceResult(ok=True, op=op, data=dump_validated(DiffData, data))

    def stats(self) -> ServiceResult:
        """Base / delta counts and the active policy."""
        op = "store_stats"
        try:
            store = self._catalog.store
            store.verify_chain()
            stats = store.stats()
        except SERVICE_ERRORS as exc:
            return self._error(op, exc)
        return ServiceResult(ok=True, op=op, data=dump_validated(StoreStatsData, stats))

    def check_orb(self, path: Path) -> ServiceResult:
        """Parse an orb file or directory and report what it declares."""
        op = "check_orb"
        try:
            definition = load_orb(path)
        except SERVICE_ERRORS as exc:
            return self._error(op, exc)

        warnings: list[str] = []
        for collection in Collection:
            for name, entity in definition.collection(collection).items():
                warnings.extend(
                    f"{collection}.{name}.{param.name}: unknown parameter type {param.type!r}"
                    for param in entity.parameters
                    if not param.is_known_type
                )
        data = {
            "path": str(path),
            **definition.summary(),
            "names": {str(c): sorted(definition.collection(c)) for c in Collection},
        }
        return ServiceResult(
            ok=True,
            op=op,
            data=dump_validated(OrbCheckData, data),
            warnings=warnings,
        )
