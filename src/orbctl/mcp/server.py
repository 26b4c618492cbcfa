"""FastMCP server setup.

Optional extra: guarded behind try/except ImportError.
Transport: stdio default, SSE and streamable HTTP optional.

One catalog is built per server process and shared by every request, so
the version history and rule sets are ingested once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from orbctl.config.settings import OrbctlSettings

mcp_available = False
_FastMCP: Any = None

try:
    from mcp.server.fastmcp import FastMCP as _FastMCP  # type: ignore[no-redef,import-not-found]

    mcp_available = True
except ImportError:
    pass

__all__ = ["create_server", "mcp_available"]


def create_server(
    *,
    settings: OrbctlSettings | None = None,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> Any:
    """Create and configure the MCP server.

    Builds a Catalog from *settings* (or discovered settings) and registers
    all tools, resources, and prompts.  Returns the FastMCP instance.

    *host* and *port* configure the bind address for HTTP transports
    (sse, streamable-http).  They are ignored when using stdio.

    Raises RuntimeError if the mcp extra is not installed.
    """
    if not mcp_available or _FastMCP is None:
        msg = "MCP extra not installed. Install with: pip install orbctl[mcp]"
        raise RuntimeError(msg)

    from orbctl.config.settings import OrbctlSettings
    from orbctl.infrastructure.catalog import Catalog
    from orbctl.mcp.prompts import register_prompts
    from orbctl.mcp.resources import register_resources
    from orbctl.mcp.tools import register_tools

    catalog = Catalog(settings or OrbctlSettings.from_cli())

    server = _FastMCP(f"orbctl-{catalog.settings.orb.name}", host=host, port=port)

    register_tools(server, catalog)
    register_resources(server, catalog)
    register_prompts(server, catalog)

    return server
