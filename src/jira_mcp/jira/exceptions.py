"""Error types raised while serving a Jira tool call.

Handlers and the gateway raise these; the dispatcher catches every one of
them (and anything else) and renders it into a ToolResult. Each type
carries a short title used as the heading of the rendered error.
"""

from typing import Any, Dict, List, Optional


class JiraToolError(Exception):
    """Base exception for all tool errors."""

    title = "Error"
    solution = ""

    def __init__(self, message: str, details: str = ""):
        self.message = message
        self.details = details
        super().__init__(message)


class ToolValidationError(JiraToolError):
    """Tool arguments failed schema validation. No upstream call was made."""

    title = "Validation Error"
    solution = "Please check the field requirements and provide all necessary information."


class CredentialError(JiraToolError):
    """jiraHost, loginName or loginToken could not be resolved."""

    title = "Authentication Error"
    solution = (
        "Provide jiraHost, loginName and loginToken in the request or set "
        "JIRA_HOST, JIRA_LOGIN_NAME and JIRA_LOGIN_TOKEN in the environment."
    )


class UpstreamError(JiraToolError):
    """Jira returned a non-2xx response."""

    title = "API Error"
    solution = "Check the error details and adjust your request accordingly."

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        response_body: str = "",
        error_messages: Optional[List[str]] = None,
        errors: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        self.response_body = response_body
        self.error_messages = error_messages or []
        self.errors = errors or {}
        details = "\n".join(self.error_messages)
        if self.errors:
            details = "\n".join(filter(None, [details] + [f"{k}: {v}" for k, v in self.errors.items()]))
        super().__init__(message, details or response_body)


class JiraAuthError(UpstreamError):
    """Authentication failure (401)."""

    title = "Authentication Error"
    solution = "Please verify your Jira host, login name and API token."


class JiraPermissionError(UpstreamError):
    """Authorization failure (403)."""

    title = "Permission Error"
    solution = "Contact your Jira administrator to request the necessary permissions."


class JiraNotFoundError(UpstreamError):
    """Resource not found (404)."""

    title = "Not Found"
    solution = "Verify the key or id and that you have access to it."


class JiraRateLimitError(UpstreamError):
    """Rate limit exceeded (429). Includes retry_after hint if available."""

    title = "Rate Limit Exceeded"
    solution = "Please wait before trying again."

    def __init__(self, message: str, retry_after: Optional[float] = None, **kwargs):
        self.retry_after = retry_after
        super().__init__(message, status_code=429, **kwargs)


class JiraNetworkError(JiraToolError):
    """No response was received from Jira."""

    title = "Network Error"
    solution = "Check your internet connection and verify the Jira host URL."


class JiraUserFieldError(UpstreamError):
    """A 400 response rejecting the assignee or reporter of an issue."""

    title = "User Not Found Error"
    solution = "Check that the assignee and reporter names match existing users in your Jira instance."
