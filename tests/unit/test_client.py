"""Tests for JiraGateway against an in-process httpx transport.

Verifies:
- Requests carry Basic auth and hit the platform or agile API paths.
- Non-2xx statuses map to the matching UpstreamError subclass.
- Transport failures become JiraNetworkError.
- Empty and 204 bodies decode to None.
"""

import json

import httpx
import pytest

from jira_mcp.jira.auth import Credentials
from jira_mcp.jira.client import JiraGateway, translate_status_error
from jira_mcp.jira.exceptions import (
    JiraAuthError,
    JiraNetworkError,
    JiraNotFoundError,
    JiraPermissionError,
    JiraRateLimitError,
    JiraUserFieldError,
    UpstreamError,
)


pytestmark = pytest.mark.asyncio

CREDS = Credentials(host="example.atlassian.net", login_name="bot", login_token="tok")


def _gateway(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return JiraGateway(CREDS, client=client)


def _error_handler(status_code, body=None, headers=None):
    def handler(request):
        return httpx.Response(status_code, json=body if body is not None else {}, headers=headers)
    return handler


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

class TestRequests:

    async def test_list_projects(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json=[{"key": "PROJ"}])

        projects = await _gateway(handler).list_projects()

        assert projects == [{"key": "PROJ"}]
        assert seen["url"] == "https://example.atlassian.net/rest/api/3/project"
        assert seen["auth"].startswith("Basic ")

    async def test_search_params(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            seen["path"] = request.url.path
            return httpx.Response(200, json={"issues": []})

        await _gateway(handler).search_issues('project = "PROJ"', max_results=25, fields=["summary", "status"])

        assert seen["path"] == "/rest/api/3/search"
        assert seen["params"] == {"jql": 'project = "PROJ"', "maxResults": "25", "fields": "summary,status"}

    async def test_board_sprints_use_agile_api(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json={"values": []})

        await _gateway(handler).get_board_sprints("7", state="future")

        assert seen["path"] == "/rest/agile/1.0/board/7/sprint"
        assert seen["params"] == {"state": "future"}

    async def test_add_issues_to_sprint_no_content(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(204)

        result = await _gateway(handler).add_issues_to_sprint("5", ["10001"])

        assert result is None
        assert seen["body"] == {"issues": ["10001"]}

    async def test_create_issue_wraps_fields(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": "10001", "key": "PROJ-1"})

        created = await _gateway(handler).create_issue({"summary": "Hello"})

        assert created["key"] == "PROJ-1"
        assert seen["method"] == "POST"
        assert seen["body"] == {"fields": {"summary": "Hello"}}

    async def test_browse_url(self):
        gateway = _gateway(_error_handler(200))
        assert gateway.browse_url("PROJ-1") == "https://example.atlassian.net/browse/PROJ-1"


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

class TestStatusMapping:

    @pytest.mark.parametrize(
        "status,exc_type",
        [
            (401, JiraAuthError),
            (403, JiraPermissionError),
            (404, JiraNotFoundError),
            (500, UpstreamError),
        ],
    )
    async def test_status_maps_to_exception(self, status, exc_type):
        with pytest.raises(exc_type) as exc_info:
            await _gateway(_error_handler(status)).list_projects()

        assert exc_info.value.status_code == status

    async def test_rate_limit_reports_retry_after(self):
        handler = _error_handler(429, headers={"Retry-After": "30"})

        with pytest.raises(JiraRateLimitError) as exc_info:
            await _gateway(handler).list_projects()

        assert exc_info.value.retry_after == 30.0
        assert "Retry after 30 seconds" in exc_info.value.message

    async def test_user_field_error(self):
        handler = _error_handler(400, {"errors": {"assignee": "User 'x' does not exist."}})

        with pytest.raises(JiraUserFieldError) as exc_info:
            await _gateway(handler).create_issue({})

        assert "assignee: User 'x' does not exist." in exc_info.value.details

    async def test_error_messages_become_details(self):
        handler = _error_handler(400, {"errorMessages": ["Field 'foo' is invalid"], "errors": {}})

        with pytest.raises(UpstreamError) as exc_info:
            await _gateway(handler).search_issues("bad jql")

        assert type(exc_info.value) is UpstreamError
        assert exc_info.value.details == "Field 'foo' is invalid"

    async def test_non_json_success_body(self):
        """A 2xx HTML page (e.g. an SSO login) is an upstream error, not a decode crash."""
        def handler(request):
            return httpx.Response(200, text="<html>login</html>")

        with pytest.raises(UpstreamError) as exc_info:
            await _gateway(handler).get_issue("PROJ-1")

        assert exc_info.value.status_code == 200
        assert "not JSON" in exc_info.value.message
        assert "<html>login</html>" in exc_info.value.details

    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(JiraNetworkError):
            await _gateway(handler).list_projects()


async def test_non_json_error_body():
    response = httpx.Response(502, text="<html>Bad Gateway</html>")

    error = translate_status_error(response)

    assert type(error) is UpstreamError
    assert error.status_code == 502
    assert "Bad Gateway" in error.details
