"""sqlsentry MCP server - guarded MySQL and PostgreSQL access for AI assistants."""

import logging
from typing import Any, Optional

import mcp.server.stdio
import mcp.types as types
from mcp.server import Server
from mcp.server.lowlevel import NotificationOptions
from mcp.server.models import InitializationOptions

from .config import Configuration
from .constants import SERVER_NAME, SERVER_VERSION
from .dispatcher import Dispatcher, Operation
from .tool_definitions import ToolDescriptions

logger = logging.getLogger("sqlsentry")


class SqlSentryServer(Server):
    """Extended MCP Server that stores the dispatcher for its configuration."""

    def __init__(self, name: str, dispatcher: Dispatcher):
        super().__init__(name)
        self.dispatcher = dispatcher


def build_tools(config: Configuration) -> list[types.Tool]:
    """Describe one tool per command, with the configured profiles as choices."""
    profiles = list(config.profiles)
    return [
        types.Tool(
            name=operation.value,
            description=ToolDescriptions.get_tool_description(operation),
            inputSchema=ToolDescriptions.get_input_schema(operation, profiles, config.default_profile),
        )
        for operation in Operation
    ]


def build_instructions(config: Configuration) -> str:
    return "\n".join(
        [
            f"**Database Profiles**: {', '.join(config.profiles)} (default: {config.default_profile}).",
            "**Safety**: Statements flagged for confirmation are never executed by this server. "
            "Relay the warning to the user instead of rewording the statement to avoid it.",
        ]
    )


async def handle_tool_call(
    dispatcher: Dispatcher, name: str, arguments: Optional[dict[str, Any]]
) -> list[types.TextContent]:
    """Run one tool call through the dispatcher and wrap the outcome as text."""
    arguments = arguments or {}
    result = await dispatcher.dispatch(arguments.get("profile"), name, arguments)

    if result.succeeded:
        text = result.rendered_text or ""
    else:
        text = result.error_text or ""
        if result.confirmation_required:
            text = f"{text}\n\n{ToolDescriptions.CONFIRMATION_NOTE}"
    return [types.TextContent(type="text", text=text)]


def create_server(dispatcher: Dispatcher) -> SqlSentryServer:
    """Create the server and register its handlers."""
    server = SqlSentryServer(SERVER_NAME, dispatcher)

    @server.list_resources()
    async def list_resources() -> list[types.Resource]:
        """List available resources (none for this server)."""
        return []

    @server.list_prompts()
    async def list_prompts() -> list[types.Prompt]:
        """List available prompts (none for this server)."""
        return []

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return build_tools(server.dispatcher.config)

    @server.call_tool()
    async def call_tool(name: str, arguments: dict) -> list[types.TextContent]:
        logger.debug(f"call_tool invoked: {name}")
        return await handle_tool_call(server.dispatcher, name, arguments)

    return server


async def serve(config: Configuration) -> None:
    """Run the MCP server over stdio until the client disconnects."""
    dispatcher = Dispatcher(config)
    server = create_server(dispatcher)

    logger.info("Starting sqlsentry MCP Server")
    logger.info(f"Profiles: {', '.join(config.profiles)} (default: {config.default_profile})")

    try:
        async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
            init_options = InitializationOptions(
                server_name=SERVER_NAME,
                server_version=SERVER_VERSION,
                capabilities=server.get_capabilities(
                    notification_options=NotificationOptions(),
                    experimental_capabilities={},
                ),
                instructions=build_instructions(config),
            )
            await server.run(read_stream, write_stream, init_options)
    finally:
        await dispatcher.close()
