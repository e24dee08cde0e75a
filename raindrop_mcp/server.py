"""MCP server for the Raindrop.io API."""
import logging
from typing import Any, Dict, Iterable, List, Tuple, Union

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import EmbeddedResource, Resource, ResourceTemplate, TextContent, Tool

from raindrop_mcp import __version__
from raindrop_mcp.config import Config
from raindrop_mcp.errors import RaindropError
from raindrop_mcp.gateway import Gateway
from raindrop_mcp.registry import OperationRegistry
from raindrop_mcp.router import ResourceRouter
from raindrop_mcp.tools import build_registry
from raindrop_mcp.tools.diagnostics import build_diagnostics

logger = logging.getLogger(__name__)

SERVER_NAME = "raindrop-mcp"


def create_server(registry: OperationRegistry, router: ResourceRouter) -> Server:
    """Create and configure the MCP server.

    Args:
        registry: Operations exposed as tools
        router: Resources exposed by URI

    Returns:
        Configured MCP Server instance
    """
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> List[Tool]:
        """List available tools."""
        return [
            Tool(
                name=op.name,
                description=op.description,
                inputSchema=op.input_schema,
                outputSchema=op.output_schema,
            )
            for op in registry.list()
        ]

    @server.call_tool()
    async def call_tool(
        name: str, arguments: Any
    ) -> Tuple[List[Union[TextContent, EmbeddedResource]], Dict[str, Any]]:
        """Handle tool calls.

        Returns the rendered content blocks together with the structured
        result checked against the operation's output schema.

        Classified errors are re-raised; the MCP server reports them to the
        client as a tool error carrying the message.
        """
        try:
            envelope = await registry.call(name, arguments)
        except RaindropError as e:
            logger.info("Tool %s failed [%s]: %s", name, e.code, e)
            raise
        return envelope.to_content(), envelope.to_structured()

    @server.list_resources()
    async def list_resources() -> List[Resource]:
        return [
            Resource(uri=d.uri, name=d.name, description=d.description, mimeType=d.mime_type)
            for d in router.list() if not d.templated
        ]

    @server.list_resource_templates()
    async def list_resource_templates() -> List[ResourceTemplate]:
        return [
            ResourceTemplate(uriTemplate=d.uri, name=d.name, description=d.description, mimeType=d.mime_type)
            for d in router.list() if d.templated
        ]

    @server.read_resource()
    async def read_resource(uri: Any) -> Iterable[ReadResourceContents]:
        content = await router.read(str(uri))
        return [ReadResourceContents(content=content.text, mime_type=content.mime_type)]

    return server


async def main(config: Config) -> None:
    """Main entry point for the MCP server.

    Raises:
        AuthError: If no access token is configured
    """
    async with Gateway.from_config(config) as gateway:
        registry = build_registry(gateway)
        router = ResourceRouter(gateway, diagnostics=build_diagnostics(registry.names(), gateway.base_url))
        server = create_server(registry, router)
        logger.info("Starting %s %s with %d operations", SERVER_NAME, __version__, len(registry))

        async with stdio_server() as (read_stream, write_stream):
            initialization_options = server.create_initialization_options()
            await server.run(read_stream, write_stream, initialization_options)
