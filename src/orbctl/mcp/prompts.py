"""MCP prompt definitions: guided config migration.

Each prompt has a ``<name>_impl`` function testable without the mcp package.
"""

from __future__ import annotations

from typing import Any

from orbctl.domain.versions import InvalidVersion, parse_version


def migration_assistant_impl(catalog: Any, from_version: str, to_version: str) -> str:
    """Instructions for walking a user through one migration."""
    from orbctl.mcp.resources import rules_impl, versions_impl

    versions = versions_impl(catalog)
    rules = rules_impl(catalog)
    gaps = [item["gap"] for item in rules.get("rule_sets", [])]
    in_range = [gap for gap in gaps if _gap_within(gap, from_version, to_version)]
    latest = versions.get("latest") or "unknown"
    orb_name = catalog.settings.orb.name

    return f"""## Migrating {orb_name} from {from_version} to {to_version}

Stored versions: {", ".join(versions.get("versions", [])) or "none"} (latest {latest})
Gaps with migration rules: {", ".join(in_range) or "none"}

### Workflow
1. **Check the start point**: Use `validate_config` with the user's config and
   version "{from_version}" to confirm it is valid before migrating
2. **Review the changes**: Use `diff_versions` from "{from_version}" to "{to_version}"
3. **Plan**: Use `plan_migration` with the config, "{from_version}" and "{to_version}"
4. **Report**: List every edit, then every warning and not-applicable note
5. **Resolve**: If the plan state is `partial_failure`, explain each validation
   error and propose a manual fix

### Guidelines
- Never drop a warning about an inserted parameter without a value
- Gaps skipped for lack of rules may still contain breaking changes; check the diff
- Present the migrated config in full so the user can review it
"""


def _gap_within(gap: str, from_version: str, to_version: str) -> bool:
    start, _, end = gap.partition("..")
    try:
        lower, upper = parse_version(from_version), parse_version(to_version)
        return lower <= parse_version(start) and parse_version(end) <= upper
    except InvalidVersion:
        return False


# ---------------------------------------------------------------------------
# Registration: wraps _impl functions with FastMCP decorators
# ---------------------------------------------------------------------------


def register_prompts(server: Any, catalog: Any) -> None:
    """Register all MCP prompts on the FastMCP server."""

    @server.prompt()  # type: ignore[untyped-decorator]
    def migration_assistant(from_version: str, to_version: str) -> str:
        """Guide a CircleCI config migration between two orb versions."""
        return migration_assistant_impl(catalog, from_version, to_version)
