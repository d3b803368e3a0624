"""Tests for the MCP protocol handlers wired by create_server."""

import pytest
from mcp import types

from jira_mcp.mcp.server import create_server


pytestmark = pytest.mark.asyncio


async def _list_tools(server):
    handler = server.server.request_handlers[types.ListToolsRequest]
    result = await handler(types.ListToolsRequest(method="tools/list"))
    return result.root.tools


async def _call_tool(server, name, arguments):
    handler = server.server.request_handlers[types.CallToolRequest]
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name=name, arguments=arguments),
    )
    result = await handler(request)
    return result.root


async def test_list_tools(dispatcher):
    tools = await _list_tools(create_server(dispatcher))

    assert {tool.name for tool in tools} == {
        "jira_list_projects",
        "jira_get_issue",
        "jira_search_issues",
        "jira_list_project_members",
        "jira_check_user_issues",
        "jira_create_issue",
        "jira_list_sprints",
    }


async def test_call_tool_returns_envelope(dispatcher, mock_gateway):
    mock_gateway.list_projects.return_value = [{"key": "PROJ", "name": "Project"}]

    result = await _call_tool(create_server(dispatcher), "jira_list_projects", {})

    assert result.isError is False
    assert "| PROJ | Project |" in result.content[0].text


async def test_invalid_arguments_use_tool_error_envelope(dispatcher, gateway_factory):
    result = await _call_tool(create_server(dispatcher), "jira_get_issue", {"issueKey": 123})

    assert result.isError is True
    assert result.content[0].text.startswith("# Validation Error")
    gateway_factory.assert_not_called()
