"""
Core server bootstrap for the PLZ resolver MCP server.

Wires the lookup client, the address resolver and the form tools into one
fastmcp instance served over SSE.
"""

import asyncio
import logging
from fastmcp import FastMCP  # type: ignore[import-not-found]

from plz_resolver.client import LocalityLookupClient
from plz_resolver.resolver import AddressResolver
from plz_resolver.settings import Settings
from plz_resolver.tools import AddressToolDependencies, register_address_tools


class ServerApp:
    """Owns the lookup client and the resolver for the lifetime of the server."""

    def __init__(self, settings: Settings) -> None:
        self._logger = logging.getLogger(__name__)
        self._settings = settings
        self._lookup_client: LocalityLookupClient | None = None
        self._resolver: AddressResolver | None = None
        self._tool_dependencies = AddressToolDependencies(settle_timeout=settings.settle_timeout)
        self._mcp_app = FastMCP(
            name="PLZ Resolver MCP Server",
            instructions=(
                "Fill in a German locality and postal code (PLZ). Each field is "
                "checked against the OpenPLZ service and kept consistent with the other."
            ),
        )
        register_address_tools(self._mcp_app, self._tool_dependencies)

    def startup(self) -> None:
        """Prepare resources required to launch the SSE server."""
        self._logger.info("Starting server bootstrap")
        self._lookup_client = LocalityLookupClient.from_settings(self._settings)
        self._resolver = AddressResolver(
            self._lookup_client,
            debounce_seconds=self._settings.debounce_seconds,
            min_postal_code_digits=self._settings.min_postal_code_digits,
        )
        self._tool_dependencies.attach_resolver(self._resolver)

    def shutdown(self) -> None:
        """Release acquired resources."""
        asyncio.run(self.ashutdown())

    async def ashutdown(self) -> None:
        """Release acquired resources from inside a running event loop."""
        self._logger.info("Shutting down server bootstrap")
        self._tool_dependencies.detach_resolver()
        if self._resolver is not None:
            self._resolver.close()
            self._resolver = None
        if self._lookup_client is not None:
            await self._lookup_client.aclose()
            self._lookup_client = None

    def serve_forever(self) -> None:
        """Run the FastMCP SSE server until interrupted."""
        host = "0.0.0.0"
        port = self._settings.mcp_sse_port
        self._logger.info("Starting SSE transport", extra={"host": host, "port": port})
        self._mcp_app.run(transport="sse", host=host, port=port)

    async def serve_sse_async(self, host: str = "0.0.0.0") -> None:
        """Async helper for running the SSE transport (used by smoke tests)."""
        await self._mcp_app.run_http_async(
            transport="sse",
            host=host,
            port=self._settings.mcp_sse_port,
        )

    @property
    def mcp(self) -> FastMCP:
        """Expose the configured FastMCP instance."""
        return self._mcp_app


def build_server(settings: Settings) -> ServerApp:
    """Factory used by main.py to create the configured server instance."""
    return ServerApp(settings)
