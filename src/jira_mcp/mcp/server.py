"""MCP server exposing the Jira tool registry."""

import logging
from typing import Any, Dict, List, Optional

from mcp import types
from mcp.server import Server

from ..tools.registry import ToolDispatcher

logger = logging.getLogger(__name__)


class JiraMCPServer:
    """Binds a ToolDispatcher to the MCP list_tools/call_tool handlers."""

    def __init__(self, dispatcher: ToolDispatcher, name: str = "jira-mcp"):
        self.dispatcher = dispatcher
        self.server = Server(name)
        self._setup_handlers()

    def _setup_handlers(self):
        """Register MCP protocol handlers."""

        @self.server.list_tools()
        async def handle_list_tools() -> List[types.Tool]:
            tools = self.dispatcher.registry.list_tools()
            logger.debug("Returning %d tools", len(tools))
            return tools

        # Arguments are validated per tool by the dispatcher so that
        # failures come back as the tool's own error envelope.
        @self.server.call_tool(validate_input=False)
        async def handle_call_tool(
            name: str, arguments: Optional[Dict[str, Any]] = None
        ) -> types.CallToolResult:
            return await self.dispatcher.dispatch(name, arguments or {})

    async def run(self, read_stream, write_stream):
        await self.server.run(
            read_stream,
            write_stream,
            self.server.create_initialization_options(),
        )


def create_server(dispatcher: ToolDispatcher) -> JiraMCPServer:
    return JiraMCPServer(dispatcher)
