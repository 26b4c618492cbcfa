"""MCP resource definitions: 3 URI-based resources.

URIs: orb://versions, orb://versions/{version}, orb://rules.
Each resource has a ``<name>_impl`` function testable without the mcp package.
"""

from __future__ import annotations

import json
from typing import Any

# ---------------------------------------------------------------------------
# Resource implementations (testable without mcp)
# ---------------------------------------------------------------------------


def versions_impl(catalog: Any) -> dict[str, Any]:
    """Stored versions and their adjacent gaps."""
    from orbctl.services.versions import VersionService

    result = VersionService(catalog).list_versions()
    if result.ok:
        return result.data
    return {"versions": [], "count": 0, "error": result.error.message if result.error else ""}


def version_impl(catalog: Any, version: str) -> dict[str, Any]:
    """One reconstructed version, or an error payload."""
    from orbctl.services.versions import VersionService

    result = VersionService(catalog).get_version(version)
    if result.ok:
        return result.data
    assert result.error is not None
    return {"error": {"code": result.error.code, "message": result.error.message}}


def rules_impl(catalog: Any) -> dict[str, Any]:
    """Loaded migration rule sets."""
    from orbctl.services.rules import RulesService

    result = RulesService(catalog).list_rules()
    if result.ok:
        return result.data
    assert result.error is not None
    return {"rule_sets": [], "error": {"code": result.error.code, "message": result.error.message}}


# ---------------------------------------------------------------------------
# Registration: wraps _impl functions with FastMCP decorators
# ---------------------------------------------------------------------------


def register_resources(server: Any, catalog: Any) -> None:
    """Register all 3 MCP resources on the FastMCP server."""

    @server.resource("orb://versions")  # type: ignore[untyped-decorator]
    def versions_resource() -> str:
        """Every stored version of the orb."""
        return json.dumps(versions_impl(catalog), indent=2)

    @server.resource("orb://versions/{version}")  # type: ignore[untyped-decorator]
    def version_resource(version: str) -> str:
        """The orb definition at one version."""
        return json.dumps(version_impl(catalog, version), indent=2, default=str)

    @server.resource("orb://rules")  # type: ignore[untyped-decorator]
    def rules_resource() -> str:
        """Migration rule sets keyed by version gap."""
        return json.dumps(rules_impl(catalog), indent=2)
