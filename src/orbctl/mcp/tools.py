"""MCP tool definitions: 5 tools over the version store and rules.

Tools: list_versions, get_version, diff_versions, plan_migration,
validate_config.
Each tool has a ``<name>_impl`` function testable without the mcp package.
``register_tools()`` wraps them with FastMCP decorators.
"""

from __future__ import annotations

from typing import Any

from orbctl.services.result import ServiceResult


def _to_mcp_response(result: ServiceResult) -> dict[str, Any]:
    """Convert a ServiceResult to an MCP-friendly dict."""
    response: dict[str, Any] = {
        "ok": result.ok,
        "op": result.op,
        "data": result.data,
    }
    if result.warnings:
        response["warnings"] = result.warnings
    if result.error is not None:
        response["error"] = {
            "code": result.error.code,
            "message": result.error.message,
        }
    return response


# ---------------------------------------------------------------------------
# Version tools (3)
# ---------------------------------------------------------------------------


def list_versions_impl(catalog: Any) -> dict[str, Any]:
    """List all stored orb versions."""
    from orbctl.services.versions import VersionService

    return _to_mcp_response(VersionService(catalog).list_versions())


def get_version_impl(
    catalog: Any,
    version: str,
    *,
    collection: str | None = None,
) -> dict[str, Any]:
    """Reconstruct one orb version."""
    from orbctl.services.versions import VersionService

    result = VersionService(catalog).get_version(version, collection=collection)
    return _to_mcp_response(result)


def diff_versions_impl(catalog: Any, from_version: str, to_version: str) -> dict[str, Any]:
    """Structural delta between two stored versions."""
    from orbctl.services.versions import VersionService

    return _to_mcp_response(VersionService(catalog).diff(from_version, to_version))


# ---------------------------------------------------------------------------
# Migration tools (2)
# ---------------------------------------------------------------------------


def plan_migration_impl(
    catalog: Any,
    config: str,
    from_version: str,
    to_version: str,
) -> dict[str, Any]:
    """Migrate a config (YAML text) and return the plan with the new config."""
    from orbctl.services.migrate import MigrationService

    result = MigrationService(catalog).plan_text(config, from_version, to_version)
    return _to_mcp_response(result)


def validate_config_impl(catalog: Any, config: str, version: str) -> dict[str, Any]:
    """Validate a config (YAML text) against one version."""
    from orbctl.services.validate import ValidateService

    return _to_mcp_response(ValidateService(catalog).validate_text(config, version))


# ---------------------------------------------------------------------------
# Registration: wraps _impl functions with FastMCP decorators
# ---------------------------------------------------------------------------


def register_tools(server: Any, catalog: Any) -> None:
    """Register all 5 MCP tools on the FastMCP server."""

    @server.tool()  # type: ignore[untyped-decorator]
    def list_versions() -> dict[str, Any]:
        """List every stored version of the orb, oldest first."""
        return list_versions_impl(catalog)

    @server.tool()  # type: ignore[untyped-decorator]
    def get_version(version: str, collection: str | None = None) -> dict[str, Any]:
        """Get the orb definition (commands, jobs, executors) at a version."""
        return get_version_impl(catalog, version, collection=collection)

    @server.tool()  # type: ignore[untyped-decorator]
    def diff_versions(from_version: str, to_version: str) -> dict[str, Any]:
        """Show what was added, removed, or modified between two versions."""
        return diff_versions_impl(catalog, from_version, to_version)

    @server.tool()  # type: ignore[untyped-decorator]
    def plan_migration(config: str, from_version: str, to_version: str) -> dict[str, Any]:
        """Rewrite a CircleCI config (YAML text) from one orb version to another."""
        return plan_migration_impl(catalog, config, from_version, to_version)

    @server.tool()  # type: ignore[untyped-decorator]
    def validate_config(config: str, version: str) -> dict[str, Any]:
        """Check a CircleCI config (YAML text) against one orb version."""
        return validate_config_impl(catalog, config, version)
