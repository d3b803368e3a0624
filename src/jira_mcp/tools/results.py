"""The ToolResult envelope and error rendering.

Every tool call ends in a ``ToolResult``: an MCP ``CallToolResult`` with
text content and an ``isError`` flag. Errors are rendered as a short
markdown title, a message, and optional details and solution sections.
"""

import logging
from typing import Optional

from mcp import types

from ..jira.exceptions import JiraToolError, UpstreamError

logger = logging.getLogger(__name__)

ToolResult = types.CallToolResult


def text_result(text: str) -> ToolResult:
    """A successful result with a single text block."""
    return ToolResult(content=[types.TextContent(type="text", text=text)], isError=False)


def error_result(
    title: str,
    message: str,
    details: Optional[str] = None,
    solution: Optional[str] = None,
) -> ToolResult:
    """A failed result rendered as markdown."""
    text = f"# {title}\n\n{message}\n\n"
    if details:
        text += f"## Error Details\n\n```\n{details}\n```\n\n"
    if solution:
        text += f"## Solution\n\n{solution}"
    return ToolResult(
        content=[types.TextContent(type="text", text=text.rstrip() + "\n")],
        isError=True,
    )


def unknown_tool_result(tool_name: str) -> ToolResult:
    return ToolResult(
        content=[types.TextContent(type="text", text=f"Unknown tool: {tool_name}")],
        isError=True,
    )


def error_title(exc: JiraToolError) -> str:
    if type(exc) is UpstreamError and exc.status_code:
        return f"API Error ({exc.status_code})"
    return exc.title


def result_from_exception(exc: Exception) -> ToolResult:
    """Render any exception into the error envelope, never a stack trace."""
    if isinstance(exc, JiraToolError):
        return error_result(
            error_title(exc),
            exc.message,
            details=exc.details or None,
            solution=exc.solution or None,
        )
    return error_result("Error", str(exc) or type(exc).__name__)
