"""Tool registry and dispatcher.

The registry maps each member of the closed ``ToolName`` set to a
``ToolDescriptor`` (input model + handler). The dispatcher runs
validate -> resolve credentials -> invoke handler, and turns every
failure into an error ``ToolResult``. Nothing raised below ``dispatch``
reaches the caller.
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Type

from mcp import types

from ..config import Settings
from ..jira.auth import Credentials, DefaultsProvider, resolve_credentials
from ..jira.client import JiraGateway
from ..jira.exceptions import CredentialError, JiraToolError, ToolValidationError
from ..observability.logging import clear_log_context, set_log_context
from . import handlers
from .context import ToolContext
from .results import ToolResult, result_from_exception, unknown_tool_result
from .schemas import (
    CheckUserIssuesRequest,
    CreateIssueRequest,
    GetIssueRequest,
    JiraRequest,
    ListProjectsRequest,
    ListSprintsRequest,
    ProjectMembersRequest,
    SearchIssuesRequest,
    input_schema,
    validate_arguments,
)

logger = logging.getLogger(__name__)

Handler = Callable[[Any, ToolContext], Awaitable[ToolResult]]
GatewayFactory = Callable[[Credentials], JiraGateway]


class ToolName(str, enum.Enum):
    """Every tool this server exposes."""

    LIST_PROJECTS = "jira_list_projects"
    GET_ISSUE = "jira_get_issue"
    SEARCH_ISSUES = "jira_search_issues"
    LIST_PROJECT_MEMBERS = "jira_list_project_members"
    CHECK_USER_ISSUES = "jira_check_user_issues"
    CREATE_ISSUE = "jira_create_issue"
    LIST_SPRINTS = "jira_list_sprints"


@dataclass(frozen=True)
class ToolDescriptor:
    """A tool's name, description, input contract and handler."""

    name: ToolName
    description: str
    input_model: Type[JiraRequest]
    handler: Handler

    def to_mcp_tool(self) -> types.Tool:
        return types.Tool(
            name=self.name.value,
            description=self.description,
            inputSchema=input_schema(self.input_model),
        )


class ToolRegistry:
    """Registry of tool descriptors keyed by ToolName."""

    def __init__(self):
        self._tools: Dict[ToolName, ToolDescriptor] = {}

    def register(self, descriptor: ToolDescriptor) -> None:
        if descriptor.name in self._tools:
            raise ValueError(f"Tool already registered: {descriptor.name.value}")
        self._tools[descriptor.name] = descriptor
        logger.debug("Registered tool: %s", descriptor.name.value)

    def get(self, tool_name: str) -> Optional[ToolDescriptor]:
        """Look a tool up by its wire name; None when unknown."""
        try:
            key = ToolName(tool_name)
        except ValueError:
            return None
        return self._tools.get(key)

    def missing(self) -> List[ToolName]:
        return [name for name in ToolName if name not in self._tools]

    def ensure_complete(self) -> None:
        """Fail at startup if any ToolName has no descriptor."""
        missing = self.missing()
        if missing:
            raise RuntimeError(
                "Tools without a registration: " + ", ".join(name.value for name in missing)
            )

    def list_descriptors(self) -> List[ToolDescriptor]:
        return list(self._tools.values())

    def list_tools(self) -> List[types.Tool]:
        return [descriptor.to_mcp_tool() for descriptor in self._tools.values()]

    def __contains__(self, tool_name: object) -> bool:
        return isinstance(tool_name, str) and self.get(tool_name) is not None

    def __len__(self) -> int:
        return len(self._tools)


def build_default_registry() -> ToolRegistry:
    """Register every Jira tool and check that none is missing."""
    registry = ToolRegistry()
    for name, description, model, handler in (
        (
            ToolName.LIST_PROJECTS,
            "Lists all Jira projects the user has access to",
            ListProjectsRequest,
            handlers.list_projects,
        ),
        (
            ToolName.GET_ISSUE,
            "Retrieves details of a specific Jira issue by key",
            GetIssueRequest,
            handlers.get_issue,
        ),
        (
            ToolName.SEARCH_ISSUES,
            "Searches for Jira issues by project key and optional assignee name",
            SearchIssuesRequest,
            handlers.search_issues,
        ),
        (
            ToolName.LIST_PROJECT_MEMBERS,
            "Lists all members of a specific Jira project",
            ProjectMembersRequest,
            handlers.list_project_members,
        ),
        (
            ToolName.CHECK_USER_ISSUES,
            "Checks if a user is a member of a project and lists their assigned issues",
            CheckUserIssuesRequest,
            handlers.check_user_issues,
        ),
        (
            ToolName.CREATE_ISSUE,
            "Creates a new issue in a Jira project with specified details. "
            "The description must be an Atlassian Document Format (ADF) object",
            CreateIssueRequest,
            handlers.create_issue,
        ),
        (
            ToolName.LIST_SPRINTS,
            "Lists sprints in Jira with filtering options, including the issues of each sprint",
            ListSprintsRequest,
            handlers.list_sprints,
        ),
    ):
        registry.register(ToolDescriptor(name=name, description=description, input_model=model, handler=handler))
    registry.ensure_complete()
    return registry


class ToolDispatcher:
    """Validate, resolve credentials, invoke, and envelope every tool call."""

    def __init__(
        self,
        registry: ToolRegistry,
        defaults: DefaultsProvider,
        settings: Settings,
        gateway_factory: GatewayFactory = JiraGateway,
    ):
        self.registry = registry
        self.defaults = defaults
        self.settings = settings
        self.gateway_factory = gateway_factory

    async def dispatch(self, tool_name: str, raw_args: Optional[Mapping[str, Any]] = None) -> ToolResult:
        """Run one tool call. Never raises."""
        request_id = uuid.uuid4().hex[:12]
        set_log_context(tool_name=str(tool_name), request_id=request_id)
        try:
            descriptor = self.registry.get(tool_name)
            if descriptor is None:
                logger.warning("Unknown tool requested: %s", tool_name)
                return unknown_tool_result(tool_name)

            logger.info("Tool call: %s", tool_name)
            try:
                return await self._invoke(descriptor, raw_args)
            except (ToolValidationError, CredentialError) as exc:
                logger.warning("Rejected %s: %s", tool_name, exc.details or exc.message)
                return result_from_exception(exc)
            except JiraToolError as exc:
                logger.error("Tool %s failed: %s", tool_name, exc)
                return result_from_exception(exc)
            except Exception as exc:
                logger.exception("Tool %s failed unexpectedly", tool_name)
                return result_from_exception(exc)
        finally:
            clear_log_context()

    async def _invoke(self, descriptor: ToolDescriptor, raw_args: Optional[Mapping[str, Any]]) -> ToolResult:
        args = validate_arguments(descriptor.input_model, raw_args)
        credentials = resolve_credentials(args.credential_args(), self.defaults)
        ctx = ToolContext(gateway=self.gateway_factory(credentials), settings=self.settings)
        return await descriptor.handler(args, ctx)
