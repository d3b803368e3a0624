"""Input contracts for the Jira tools.

One pydantic model per tool. Field names are snake_case in Python and
camelCase on the wire (``projectKey``, ``jiraHost``). Validation runs
before any upstream call; ``validate_arguments`` turns pydantic errors
into a single ToolValidationError.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..jira.adf import adf_to_text
from ..jira.exceptions import ToolValidationError

PROJECT_KEY_RE = re.compile(r"^[A-Z][A-Z0-9_]+$")
ISSUE_KEY_RE = re.compile(r"^[A-Z][A-Z0-9_]+-[1-9][0-9]*$")
NUMERIC_ID_RE = re.compile(r"^\d+$")

ISSUE_TYPES = ("Task", "Bug", "Story", "Epic")
SPRINT_STATES = ("active", "future", "closed", "all")

ADF_EXAMPLE = (
    '{"type": "doc", "version": 1, "content": [{"type": "paragraph", '
    '"content": [{"type": "text", "text": "Your description text"}]}]}'
)

# Messages for missing required fields, keyed by wire path
REQUIRED_MESSAGES = {
    "issueKey": "Issue key is required",
    "projectKey": "Project key is required",
    "userName": "Username is required",
    "summary": "Issue summary/title is required",
    "description": f"Issue description (in ADF format) is required. Use this format: {ADF_EXAMPLE}",
    "description.type": 'ADF document type is required. Add "type": "doc" to your description object',
    "description.version": 'ADF document version is required. Add "version": 1 to your description object',
    "description.content": 'ADF document content is required. Add "content": [...] array to your description object',
}


def _project_key(value: Optional[str]) -> Optional[str]:
    if value is not None and not PROJECT_KEY_RE.match(value):
        raise ValueError(
            "Invalid project key format. Only uppercase letters, numbers, and underscores are allowed"
        )
    return value


def _min_length(value: Optional[str], length: int, label: str) -> Optional[str]:
    if value is not None and len(value) < length:
        raise ValueError(f"{label} must be at least {length} characters long")
    return value


def _numeric_id(value: Optional[str], label: str) -> Optional[str]:
    if value is not None and not NUMERIC_ID_RE.match(value):
        raise ValueError(f"{label} must be numeric")
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class JiraRequest(BaseModel):
    """Credential fields shared by every tool. All optional; see resolve_credentials."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    jira_host: Optional[str] = Field(
        default=None, description="The Jira host URL (e.g., 'your-domain.atlassian.net')"
    )
    login_name: Optional[str] = Field(default=None, description="Login name for Jira authentication")
    login_token: Optional[str] = Field(default=None, description="API token for Jira authentication")

    def credential_args(self) -> Dict[str, Optional[str]]:
        return {
            "jira_host": self.jira_host,
            "login_name": self.login_name,
            "login_token": self.login_token,
        }


class ListProjectsRequest(JiraRequest):
    pass


class GetIssueRequest(JiraRequest):
    issue_key: str = Field(description="The Jira issue key (e.g., 'PROJECT-123')")

    @field_validator("issue_key")
    @classmethod
    def check_issue_key(cls, v):
        if not ISSUE_KEY_RE.match(v):
            raise ValueError("Invalid issue key format. The correct format is PROJECT-123")
        return v


class SearchIssuesRequest(JiraRequest):
    project_key: str = Field(description="The Jira project key (e.g., 'PROJECT')")
    assignee_name: Optional[str] = Field(
        default=None, description="Optional assignee name to filter issues by"
    )

    @field_validator("assignee_name", mode="before")
    @classmethod
    def blank_assignee(cls, v):
        return _blank_to_none(v)

    @field_validator("project_key")
    @classmethod
    def check_project_key(cls, v):
        return _project_key(v)

    @field_validator("assignee_name")
    @classmethod
    def check_assignee_name(cls, v):
        return _min_length(v, 2, "Assignee name")


class ProjectMembersRequest(JiraRequest):
    project_key: str = Field(description="The Jira project key (e.g., 'PROJECT')")

    @field_validator("project_key")
    @classmethod
    def check_project_key(cls, v):
        return _project_key(v)


class CheckUserIssuesRequest(JiraRequest):
    project_key: str = Field(description="The Jira project key (e.g., 'PROJECT')")
    user_name: str = Field(description="The display name of the user to check for in the project")

    @field_validator("project_key")
    @classmethod
    def check_project_key(cls, v):
        return _project_key(v)

    @field_validator("user_name")
    @classmethod
    def check_user_name(cls, v):
        return _min_length(v, 2, "Username")


class AdfDocument(BaseModel):
    """An Atlassian Document Format root node."""

    model_config = ConfigDict(extra="allow")

    type: str
    version: int
    content: List[Dict[str, Any]]

    @field_validator("type")
    @classmethod
    def check_type(cls, v):
        if v != "doc":
            raise ValueError('ADF document type must be "doc". Use: {"type": "doc", ...}')
        return v

    @field_validator("version")
    @classmethod
    def check_version(cls, v):
        if v != 1:
            raise ValueError('ADF document version must be 1. Use: {"version": 1, ...}')
        return v

    @field_validator("content")
    @classmethod
    def check_content(cls, v):
        if not v:
            raise ValueError(
                "ADF document content cannot be empty. Include at least one paragraph in the content array"
            )
        return v

    def plain_text(self) -> str:
        """Block text joined by newlines, for previews."""
        return adf_to_text({"content": self.content})


class CreateIssueRequest(JiraRequest):
    project_key: str = Field(description="The Jira project key (e.g., 'PROJECT')")
    summary: str = Field(description="The title/summary of the issue")
    description: AdfDocument = Field(
        description="Issue description as an Atlassian Document Format (ADF) object"
    )
    issue_type: str = Field(
        default="Task", description="Type of issue: Task, Bug, Story or Epic"
    )
    assignee_name: Optional[str] = Field(default=None, description="Display name of the assignee")
    reporter_name: Optional[str] = Field(default=None, description="Display name of the reporter")
    sprint_id: Optional[str] = Field(default=None, description="ID of the sprint to add the issue to")

    @field_validator("assignee_name", "reporter_name", "sprint_id", mode="before")
    @classmethod
    def blank_optionals(cls, v):
        return _blank_to_none(v)

    @field_validator("project_key")
    @classmethod
    def check_project_key(cls, v):
        return _project_key(v)

    @field_validator("summary")
    @classmethod
    def check_summary(cls, v):
        if len(v) < 3:
            raise ValueError("Issue title must be at least 3 characters long")
        if len(v) > 255:
            raise ValueError("Issue title must be at most 255 characters long")
        return v

    @field_validator("description", mode="before")
    @classmethod
    def reject_plain_text(cls, v):
        if v is not None and not isinstance(v, dict):
            raise ValueError(f"Description must be an ADF object, NOT a string! Use: {ADF_EXAMPLE}")
        return v

    @field_validator("issue_type")
    @classmethod
    def check_issue_type(cls, v):
        if v not in ISSUE_TYPES:
            raise ValueError("Issue type must be one of: " + ", ".join(ISSUE_TYPES))
        return v

    @field_validator("assignee_name")
    @classmethod
    def check_assignee_name(cls, v):
        return _min_length(v, 2, "Assignee name")

    @field_validator("reporter_name")
    @classmethod
    def check_reporter_name(cls, v):
        return _min_length(v, 2, "Reporter name")

    @field_validator("sprint_id")
    @classmethod
    def check_sprint_id(cls, v):
        return _numeric_id(v, "Sprint ID")


class ListSprintsRequest(JiraRequest):
    board_id: Optional[str] = Field(
        default=None, description="Optional Jira board ID to filter sprints by a specific board"
    )
    project_key: Optional[str] = Field(
        default=None, description="Optional project key to find sprints associated with the project"
    )
    state: str = Field(
        default="active",
        description="Sprint state to filter by (active, future, closed, or all)",
        json_schema_extra={"enum": list(SPRINT_STATES)},
    )

    @field_validator("board_id", "project_key", mode="before")
    @classmethod
    def blank_optionals(cls, v):
        return _blank_to_none(v)

    @field_validator("board_id")
    @classmethod
    def check_board_id(cls, v):
        return _numeric_id(v, "Board ID")

    @field_validator("project_key")
    @classmethod
    def check_project_key(cls, v):
        return _project_key(v)

    @field_validator("state")
    @classmethod
    def check_state(cls, v):
        if v not in SPRINT_STATES:
            raise ValueError("Sprint state must be one of: " + ", ".join(SPRINT_STATES))
        return v


RequestT = TypeVar("RequestT", bound=JiraRequest)


def _error_message(error: Dict[str, Any]) -> str:
    path = ".".join(str(part) for part in error.get("loc", ()))
    if error.get("type") == "missing":
        message = REQUIRED_MESSAGES.get(path, "Field required")
    else:
        message = error.get("msg", "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
    return f"{path}: {message}" if path else message


def validate_arguments(model: Type[RequestT], raw_args: Optional[Mapping[str, Any]]) -> RequestT:
    """Validate raw tool arguments against a tool's model.

    Raises:
        ToolValidationError: With one line per failing field.
    """
    try:
        return model.model_validate(raw_args if raw_args is not None else {})
    except ValidationError as exc:
        details = "\n".join(_error_message(err) for err in exc.errors())
        raise ToolValidationError(
            "The provided arguments do not meet the requirements of this tool.",
            details=details,
        ) from exc


def input_schema(model: Type[JiraRequest]) -> Dict[str, Any]:
    """JSON schema advertised to MCP clients (camelCase properties)."""
    return model.model_json_schema(by_alias=True)
