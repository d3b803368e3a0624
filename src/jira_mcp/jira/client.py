"""Upstream gateway: one coroutine per Jira REST call used by the tools.

All responses are returned as decoded JSON. Non-2xx responses and
transport failures are translated into the exceptions in
``jira.exceptions``. Nothing here retries or caches.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from .auth import Credentials, create_auth_header, normalize_jira_host
from .exceptions import (
    JiraAuthError,
    JiraNetworkError,
    JiraNotFoundError,
    JiraPermissionError,
    JiraRateLimitError,
    JiraUserFieldError,
    UpstreamError,
)
from .http_client import get_http_client

logger = logging.getLogger(__name__)

USER_FIELDS = ("assignee", "reporter")


class JiraGateway:
    """Authenticated access to the Jira platform and agile REST APIs."""

    def __init__(self, credentials: Credentials, client: Optional[httpx.AsyncClient] = None):
        self.credentials = credentials
        self.base_url = normalize_jira_host(credentials.host)
        self._client = client
        self._headers = {
            "Authorization": create_auth_header(credentials.login_name, credentials.login_token),
            "Accept": "application/json",
        }

    @property
    def api_url(self) -> str:
        return f"{self.base_url}/rest/api/3"

    @property
    def agile_url(self) -> str:
        return f"{self.base_url}/rest/agile/1.0"

    def browse_url(self, issue_key: str) -> str:
        return f"{self.base_url}/browse/{issue_key}"

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        client = self._client or get_http_client()
        headers = dict(self._headers)
        headers.update(kwargs.pop("headers", {}))

        logger.debug("%s %s", method, url)
        try:
            response = await client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise translate_status_error(exc.response) from exc
        except httpx.RequestError as exc:
            raise JiraNetworkError(
                "Failed to connect to the Jira API.",
                details=str(exc) or type(exc).__name__,
            ) from exc

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            # e.g. an SSO or proxy login page served with a 2xx status
            raise UpstreamError(
                "The Jira API returned a response that is not JSON.",
                status_code=response.status_code,
                response_body=response.text[:500],
            ) from exc

    # Platform API

    async def list_projects(self) -> List[Dict[str, Any]]:
        return await self._request("GET", f"{self.api_url}/project")

    async def get_issue(
        self,
        issue_key: str,
        fields: Optional[Iterable[str]] = None,
        expand: Optional[Iterable[str]] = None,
    ) -> Dict[str, Any]:
        params = {}
        if fields:
            params["fields"] = ",".join(fields)
        if expand:
            params["expand"] = ",".join(expand)
        return await self._request("GET", f"{self.api_url}/issue/{issue_key}", params=params)

    async def search_issues(
        self,
        jql: str,
        max_results: int = 50,
        fields: Optional[Iterable[str]] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"jql": jql, "maxResults": max_results}
        if fields:
            params["fields"] = ",".join(fields)
        return await self._request("GET", f"{self.api_url}/search", params=params)

    async def get_project_roles(self, project_key: str) -> Dict[str, str]:
        """Role name -> role resource URL."""
        return await self._request("GET", f"{self.api_url}/project/{project_key}/role")

    async def get_project_role(self, project_key: str, role_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"{self.api_url}/project/{project_key}/role/{role_id}")

    async def create_issue(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request(
            "POST",
            f"{self.api_url}/issue",
            json={"fields": fields},
            headers={"Content-Type": "application/json"},
        )

    async def search_users(self, query: str) -> List[Dict[str, Any]]:
        return await self._request("GET", f"{self.api_url}/user/search", params={"query": query})

    # Agile API

    async def list_boards(self, project_key: Optional[str] = None) -> Dict[str, Any]:
        params = {"projectKeyOrId": project_key} if project_key else {}
        return await self._request("GET", f"{self.agile_url}/board", params=params)

    async def get_board_sprints(self, board_id: str, state: Optional[str] = None) -> Dict[str, Any]:
        params = {"state": state} if state else {}
        return await self._request("GET", f"{self.agile_url}/board/{board_id}/sprint", params=params)

    async def get_sprint_issues(
        self,
        sprint_id: str,
        fields: Optional[Iterable[str]] = None,
    ) -> Dict[str, Any]:
        params = {"fields": ",".join(fields)} if fields else {}
        return await self._request("GET", f"{self.agile_url}/sprint/{sprint_id}/issue", params=params)

    async def add_issues_to_sprint(self, sprint_id: str, issue_ids: List[str]) -> None:
        await self._request(
            "POST",
            f"{self.agile_url}/sprint/{sprint_id}/issue",
            json={"issues": issue_ids},
            headers={"Content-Type": "application/json"},
        )


def _parse_error_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _parse_retry_after(response: httpx.Response) -> Optional[float]:
    """Parse Retry-After header (seconds only, not HTTP-date)."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def translate_status_error(response: httpx.Response) -> UpstreamError:
    """Map a non-2xx response to the matching UpstreamError subclass."""
    status = response.status_code
    body = _parse_error_body(response)
    common = {
        "response_body": response.text[:500],
        "error_messages": [str(m) for m in body.get("errorMessages") or []],
        "errors": body.get("errors") if isinstance(body.get("errors"), dict) else {},
    }

    if status == 401:
        return JiraAuthError("Failed to authenticate with Jira.", status_code=status, **common)
    if status == 403:
        return JiraPermissionError(
            "You don't have permission to perform this operation.", status_code=status, **common
        )
    if status == 404:
        return JiraNotFoundError(
            "The requested resource was not found or you don't have permission to access it.",
            status_code=status,
            **common,
        )
    if status == 429:
        retry_after = _parse_retry_after(response)
        message = "Too many requests sent to Jira API."
        if retry_after is not None:
            message += f" Retry after {retry_after:g} seconds."
        return JiraRateLimitError(message, retry_after=retry_after, **common)
    if status == 400 and any(f in common["errors"] for f in USER_FIELDS):
        return JiraUserFieldError(
            "One or more specified users could not be found in Jira.", status_code=status, **common
        )
    return UpstreamError(
        f"The Jira API returned an error with status code {status}.", status_code=status, **common
    )
