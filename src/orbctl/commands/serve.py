"""serve: start the MCP server (requires orbctl[mcp] extra)."""

from __future__ import annotations

import click

from orbctl.commands._base import OrbctlCommand


@click.command(
    cls=OrbctlCommand,
    examples="""\
  # Start the MCP server (stdio transport, default)
  orbctl serve

  # Streamable HTTP on custom host/port
  orbctl serve --transport streamable-http --host 0.0.0.0 --port 9000""",
)
@click.option(
    "--transport",
    default=None,
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    help="MCP transport protocol (default from [mcp] transport).",
)
@click.option("--host", default=None, help="Bind address (HTTP transports only).")
@click.option("--port", default=None, type=int, help="Listen port (HTTP transports only).")
@click.pass_obj
def serve(app: object, transport: str | None, host: str | None, port: int | None) -> None:
    """Start the MCP server (requires orbctl[mcp] extra)."""
    from orbctl.mcp.server import create_server, mcp_available

    if not mcp_available:
        click.echo("MCP not installed. Install with: pip install orbctl[mcp]", err=True)
        raise SystemExit(1)

    from orbctl.commands._context import AppContext

    assert isinstance(app, AppContext)
    cfg = app.settings.mcp
    server = create_server(
        settings=app.settings,
        host=host or cfg.host,
        port=port or cfg.port,
    )
    server.run(transport=transport or cfg.transport)
