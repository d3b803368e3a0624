"""Tool handlers.

Each handler receives validated arguments and a ToolContext and returns
a ToolResult. Handlers raise on failure; the dispatcher renders errors.
"""

import logging

from ..aggregation.accounts import resolve_account_ids
from ..aggregation.members import aggregate_members, check_user_membership
from ..aggregation.sprints import aggregate_sprints, attach_sprint_issues
from ..jira.exceptions import JiraNotFoundError
from ..jira.jql import project_issues_jql
from .context import ToolContext
from .formatters import (
    format_created_issue,
    format_issue,
    format_membership_check,
    format_project_members,
    format_projects,
    format_search_results,
    format_sprint_report,
)
from .results import ToolResult, text_result
from .schemas import (
    CheckUserIssuesRequest,
    CreateIssueRequest,
    GetIssueRequest,
    ListProjectsRequest,
    ListSprintsRequest,
    ProjectMembersRequest,
    SearchIssuesRequest,
)

logger = logging.getLogger(__name__)

SEARCH_FIELDS = ("summary", "status", "assignee", "created", "issuetype", "priority")
ISSUE_DETAIL_FIELDS = (
    "summary", "status", "assignee", "issuetype", "priority", "created", "creator",
    "reporter", "description", "comment", "attachment", "worklog", "updated",
    "labels", "fixVersions", "components", "duedate",
)
ISSUE_DETAIL_EXPAND = ("renderedFields", "names", "changelog", "operations")


async def list_projects(args: ListProjectsRequest, ctx: ToolContext) -> ToolResult:
    """Lists all Jira projects the user has access to."""
    projects = await ctx.gateway.list_projects() or []
    return text_result(format_projects(projects))


async def get_issue(args: GetIssueRequest, ctx: ToolContext) -> ToolResult:
    """Retrieves details of a specific Jira issue by key."""
    try:
        issue = await ctx.gateway.get_issue(
            args.issue_key, fields=ISSUE_DETAIL_FIELDS, expand=ISSUE_DETAIL_EXPAND
        )
    except JiraNotFoundError as exc:
        raise JiraNotFoundError(
            f"Issue {args.issue_key} not found or you don't have permission to view it.",
            status_code=404,
            response_body=exc.response_body,
            error_messages=exc.error_messages,
        ) from exc
    return text_result(format_issue(issue))


async def search_issues(args: SearchIssuesRequest, ctx: ToolContext) -> ToolResult:
    """Searches for issues by project key and optional assignee name."""
    jql = project_issues_jql(args.project_key, assignee=args.assignee_name, fuzzy_assignee=True)
    results = await ctx.gateway.search_issues(
        jql, max_results=ctx.settings.search_max_results, fields=SEARCH_FIELDS
    )
    issues = (results or {}).get("issues") or []
    return text_result(format_search_results(args.project_key, args.assignee_name, issues))


async def list_project_members(args: ProjectMembersRequest, ctx: ToolContext) -> ToolResult:
    """Lists all members of a specific Jira project."""
    membership = await aggregate_members(ctx.gateway, args.project_key)
    return text_result(format_project_members(membership))


async def check_user_issues(args: CheckUserIssuesRequest, ctx: ToolContext) -> ToolResult:
    """Checks if a user is a member of a project and lists their assigned issues."""
    check = await check_user_membership(
        ctx.gateway,
        args.project_key,
        args.user_name,
        max_results=ctx.settings.search_max_results,
    )
    return text_result(
        format_membership_check(
            check,
            ctx.settings.system_actor_types,
            ctx.settings.system_actor_name_markers,
        )
    )


async def create_issue(args: CreateIssueRequest, ctx: ToolContext) -> ToolResult:
    """Creates an issue.

    Assignee and reporter lookups, the sprint attach and the fetch-back
    of the created issue are best-effort: a failure is logged and the
    issue is still reported as created, never rolled back.
    """
    gateway = ctx.gateway
    fields = {
        "project": {"key": args.project_key},
        "summary": args.summary,
        "description": args.description.model_dump(),
        "issuetype": {"name": args.issue_type},
    }

    accounts = await resolve_account_ids(
        gateway, {"assignee": args.assignee_name, "reporter": args.reporter_name}
    )
    for role, account_id in accounts.items():
        if account_id:
            fields[role] = {"accountId": account_id}

    created = await gateway.create_issue(fields) or {}
    issue_key = created.get("key")
    logger.info("Created issue %s in %s", issue_key, args.project_key)

    sprint_error = None
    if args.sprint_id and created.get("id"):
        try:
            await gateway.add_issues_to_sprint(args.sprint_id, [created["id"]])
        except Exception as exc:
            logger.warning("Could not add issue %s to sprint %s: %s", issue_key, args.sprint_id, exc)
            sprint_error = str(exc)

    issue = {"key": issue_key, "fields": {"summary": args.summary}}
    if issue_key:
        try:
            issue = await gateway.get_issue(issue_key)
        except Exception as exc:
            logger.warning("Could not fetch created issue %s: %s", issue_key, exc)

    return text_result(
        format_created_issue(
            issue,
            browse_url=gateway.browse_url(issue_key),
            project_key=args.project_key,
            issue_type=args.issue_type,
            description_preview=args.description.plain_text(),
            assignee_name=args.assignee_name,
            reporter_name=args.reporter_name,
            sprint_id=args.sprint_id,
            sprint_error=sprint_error,
        )
    )


async def list_sprints(args: ListSprintsRequest, ctx: ToolContext) -> ToolResult:
    """Lists sprints across boards with the issues of each sprint."""
    report = await aggregate_sprints(
        ctx.gateway,
        board_id=args.board_id,
        project_key=args.project_key,
        state=args.state,
        unfiltered_limit=ctx.settings.unfiltered_board_limit,
    )
    if report.sprints:
        await attach_sprint_issues(ctx.gateway, report.sprints)
    return text_result(format_sprint_report(report, ctx.gateway.base_url))
