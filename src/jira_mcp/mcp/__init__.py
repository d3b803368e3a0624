"""MCP protocol surface for the Jira tools."""

from .server import JiraMCPServer, create_server

__all__ = ["JiraMCPServer", "create_server"]
