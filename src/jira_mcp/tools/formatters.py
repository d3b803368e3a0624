"""Markdown rendering of Jira tool results."""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..aggregation.members import MembershipCheck, ProjectMembership
from ..aggregation.sprints import SprintRecord, SprintReport
from ..jira.adf import adf_to_text
from ..jira.dates import parse_jira_datetime


def md_cell(value: Any) -> str:
    """Make a value safe for a single markdown table cell."""
    text = "" if value is None else str(value)
    return text.replace("|", "\\|").replace("\r", " ").replace("\n", " ")


def md_table(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    lines = [
        "| " + " | ".join(headers) + " |",
        "|" + "|".join("-" * (len(h) + 2) for h in headers) + "|",
    ]
    for row in rows:
        lines.append("| " + " | ".join(md_cell(v) for v in row) + " |")
    return "\n".join(lines) + "\n"


def format_date(value: Any, default: str = "Unknown") -> str:
    parsed = value if isinstance(value, datetime) else parse_jira_datetime(value)
    return parsed.strftime("%Y-%m-%d") if parsed else default


def format_datetime(value: Any, default: str = "Unknown") -> str:
    parsed = value if isinstance(value, datetime) else parse_jira_datetime(value)
    return parsed.strftime("%Y-%m-%d %H:%M %Z").strip() if parsed else default


def _name(obj: Optional[Dict[str, Any]], default: str) -> str:
    return (obj or {}).get("name") or default


def _display_name(obj: Optional[Dict[str, Any]], default: str) -> str:
    return (obj or {}).get("displayName") or default


def _capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]


# Projects


def format_projects(projects: List[Dict[str, Any]]) -> str:
    text = "# Jira Projects\n\n"
    text += f"Total projects: {len(projects)}\n\n"
    if not projects:
        return text + "No projects found or you don't have access to any projects."
    text += md_table(
        ["Project Key", "Name", "Type", "Lead"],
        (
            [p.get("key"), p.get("name"), p.get("projectTypeKey") or "N/A", _display_name(p.get("lead"), "Unknown")]
            for p in projects
        ),
    )
    return text


# Issues


def format_issue(issue: Dict[str, Any]) -> str:
    """Full detail view of one issue."""
    fields = issue.get("fields") or {}
    text = f"# Issue: {issue.get('key')} - {fields.get('summary', '')}\n\n"

    text += "## Basic Information\n\n"
    rows = [
        ["Status", _name(fields.get("status"), "Unknown")],
        ["Type", _name(fields.get("issuetype"), "Unknown")],
        ["Priority", _name(fields.get("priority"), "Not set")],
        ["Assignee", _display_name(fields.get("assignee"), "Unassigned")],
        ["Reporter", _display_name(fields.get("reporter"), "Unknown")],
        ["Created", format_datetime(fields.get("created"))],
        ["Updated", format_datetime(fields.get("updated"), default="Not updated")],
    ]
    if fields.get("duedate"):
        rows.append(["Due Date", format_date(fields["duedate"])])
    if fields.get("labels"):
        rows.append(["Labels", ", ".join(fields["labels"])])
    if fields.get("components"):
        rows.append(["Components", ", ".join(c.get("name", "") for c in fields["components"])])
    if fields.get("fixVersions"):
        rows.append(["Fix Versions", ", ".join(v.get("name", "") for v in fields["fixVersions"])])
    text += md_table(["Field", "Value"], rows)

    if fields.get("description"):
        rendered = (issue.get("renderedFields") or {}).get("description")
        text += f"\n## Description\n\n{rendered or adf_to_text(fields['description'])}\n"

    comments = (fields.get("comment") or {}).get("comments") or []
    if comments:
        text += f"\n## Comments ({len(comments)})\n\n"
        for index, comment in enumerate(comments, 1):
            author = _display_name(comment.get("author"), "Unknown")
            text += f"### Comment {index} - {author} ({format_datetime(comment.get('created'))})\n\n"
            text += f"{adf_to_text(comment.get('body'))}\n\n"

    attachments = fields.get("attachment") or []
    if attachments:
        text += f"\n## Attachments ({len(attachments)})\n\n"
        text += md_table(
            ["Filename", "Size", "Uploaded by", "Date"],
            (
                [
                    a.get("filename"),
                    f"{round((a.get('size') or 0) / 1024)} KB",
                    _display_name(a.get("author"), "Unknown"),
                    format_datetime(a.get("created")),
                ]
                for a in attachments
            ),
        )

    worklogs = (fields.get("worklog") or {}).get("worklogs") or []
    if worklogs:
        text += f"\n## Work Log ({len(worklogs)})\n\n"
        text += md_table(
            ["User", "Time Spent", "Date", "Comment"],
            (
                [
                    _display_name(w.get("author"), "Unknown"),
                    w.get("timeSpent"),
                    format_datetime(w.get("started")),
                    w.get("comment") or "No comment",
                ]
                for w in worklogs
            ),
        )

    histories = (issue.get("changelog") or {}).get("histories") or []
    if histories:
        text += "\n## Change History\n\n"
        rows = []
        for history in histories:
            changes = "; ".join(
                f'{item.get("field")} changed from "{item.get("fromString") or "none"}" '
                f'to "{item.get("toString") or "none"}"'
                for item in history.get("items") or []
            )
            rows.append([format_datetime(history.get("created")), _display_name(history.get("author"), "Unknown"), changes])
        text += md_table(["Date", "User", "Changes"], rows)

    return text


def format_search_results(project_key: str, assignee_name: Optional[str], issues: List[Dict[str, Any]]) -> str:
    text = f"# Issues for Project: {project_key}"
    if assignee_name:
        text += f" assigned to {assignee_name}"
    text += "\n\n"
    if not issues:
        return text + "No issues found matching the specified criteria."
    text += md_table(
        ["Issue Key", "Summary", "Status", "Type", "Assignee", "Created"],
        (
            [
                issue.get("key"),
                (issue.get("fields") or {}).get("summary") or "No summary",
                _name((issue.get("fields") or {}).get("status"), "Unknown"),
                _name((issue.get("fields") or {}).get("issuetype"), "Unknown"),
                _display_name((issue.get("fields") or {}).get("assignee"), "Unassigned"),
                format_date((issue.get("fields") or {}).get("created")),
            ]
            for issue in issues
        ),
    )
    return text


def format_created_issue(
    issue: Dict[str, Any],
    browse_url: str,
    project_key: str,
    issue_type: str,
    description_preview: str,
    assignee_name: Optional[str] = None,
    reporter_name: Optional[str] = None,
    sprint_id: Optional[str] = None,
    sprint_error: Optional[str] = None,
) -> str:
    fields = issue.get("fields") or {}
    key = issue.get("key")
    link = f"[{key}]({browse_url})"

    rows = [
        ["Key", link],
        ["Summary", fields.get("summary", "")],
        ["Type", _name(fields.get("issuetype"), issue_type)],
        ["Project", project_key],
        ["Created", format_datetime(fields.get("created"), default=datetime.now().strftime("%Y-%m-%d %H:%M"))],
    ]
    if fields.get("assignee"):
        rows.append(["Assignee", _display_name(fields["assignee"], "")])
    elif assignee_name:
        rows.append(["Assignee", f"{assignee_name} (assignee may not have been found)"])
    if fields.get("reporter"):
        rows.append(["Reporter", _display_name(fields["reporter"], "")])
    elif reporter_name:
        rows.append(["Reporter", f"{reporter_name} (reporter may not have been found)"])
    if sprint_id:
        sprint_cell = sprint_id if not sprint_error else f"{sprint_id} (could not add issue to sprint)"
        rows.append(["Sprint", sprint_cell])

    text = "# Issue Created Successfully\n\n## Issue Details\n\n"
    text += md_table(["Field", "Value"], rows)
    text += f"\n## Description\n\n{description_preview}\n\n"
    text += f"\n**Issue link:** {link}\n"
    return text


# Members


def format_project_members(membership: ProjectMembership) -> str:
    text = f"# Project Members for {membership.project_key}\n\n"
    if not membership.has_roles:
        return text + "No project roles found."
    if not membership.members:
        return text + "No project members found."
    text += md_table(
        ["Name", "Type", "Email", "Roles"],
        ([m.display_name, m.type, m.email or "N/A", ", ".join(m.roles)] for m in membership.members),
    )
    return text


def format_membership_check(
    check: MembershipCheck,
    actor_types: Sequence[str],
    name_markers: Sequence[str],
) -> str:
    membership = check.membership
    project_key = membership.project_key
    text = f'# Checking User "{check.user_name}" in Project "{project_key}"\n\n'
    if not membership.has_roles:
        return text + "⚠️ No project roles found. Unable to determine project membership."

    text += f'## Step 1: Checking if user "{check.user_name}" is a member of project "{project_key}"\n\n'

    if check.member is None:
        text += (
            f'❌ User "{check.user_name}" is NOT a member of project "{project_key}". '
            "No issues will be fetched.\n\n"
        )
        text += "### Available Project Members:\n\n"
        text += md_table(
            ["Name", "Roles"],
            ([m.display_name, ", ".join(m.roles)] for m in membership.available_members(actor_types, name_markers)),
        )
        return text

    member = check.member
    text += (
        f'✅ User "{member.display_name}" found in project with the following roles: '
        f"{', '.join(member.roles)}\n\n"
    )
    text += f'## Step 2: Fetching issues assigned to "{member.display_name}" in project "{project_key}"\n\n'
    if not check.issues:
        return text + "No issues found assigned to this user in the project."
    text += md_table(
        ["Issue Key", "Summary", "Status", "Type", "Created"],
        (
            [
                issue.get("key"),
                (issue.get("fields") or {}).get("summary") or "No summary",
                _name((issue.get("fields") or {}).get("status"), "Unknown"),
                _name((issue.get("fields") or {}).get("issuetype"), "Unknown"),
                format_date((issue.get("fields") or {}).get("created")),
            ]
            for issue in check.issues
        ),
    )
    return text


# Sprints


def _filter_description(report: SprintReport) -> str:
    text = f"No {report.state} sprints were found" if report.state != "all" else "No sprints were found"
    if report.board_id:
        text += f" for board ID: {report.board_id}"
    elif report.project_key:
        text += f" for project key: {report.project_key}"
    return text


def _sprint_issue_section(sprint: SprintRecord, base_url: str) -> str:
    if sprint.issues_error is not None:
        return "Could not fetch issues for this sprint.\n"
    if not sprint.issues:
        return "No issues found in this sprint.\n"
    text = f"#### Issues ({len(sprint.issues)})\n\n"
    text += md_table(
        ["Key", "Summary", "Type", "Status", "Assignee"],
        (
            [
                f"[{issue.get('key')}]({base_url}/browse/{issue.get('key')})",
                (issue.get("fields") or {}).get("summary"),
                _name((issue.get("fields") or {}).get("issuetype"), "Task"),
                _name((issue.get("fields") or {}).get("status"), "Unknown"),
                _display_name((issue.get("fields") or {}).get("assignee"), "Unassigned"),
            ]
            for issue in sprint.issues
        ),
    )
    return text


def format_sprint_report(report: SprintReport, base_url: str) -> str:
    if report.no_boards:
        if report.project_key:
            return f"# No Boards Found\n\nNo boards were found for project key: {report.project_key}"
        return "# No Boards Found\n\nNo boards were found in your Jira instance."

    skipped = ""
    if report.skipped_boards:
        skipped = "\n".join(
            f"⚠️ Skipped board {failure.key}: could not fetch sprints ({failure.reason})"
            for failure in report.skipped_boards
        ) + "\n"

    if not report.sprints:
        text = f"# No Sprints Found\n\n{_filter_description(report)}\n"
        return text + ("\n" + skipped if skipped else "")

    text = f"# {_capitalize(report.state)} Sprints\n\n"
    if skipped:
        text += skipped + "\n"
    text += md_table(
        ["ID", "Name", "Board", "Status", "Start Date", "End Date"],
        (
            [
                s.id,
                s.name,
                s.board_id,
                _capitalize(s.state),
                format_date(s.start_date, default="Not started"),
                format_date(s.end_date, default="Not set"),
            ]
            for s in report.sprints
        ),
    )

    text += "\n## Sprint Details\n\n"
    project_segment = report.project_key or "browse"
    for sprint in report.sprints:
        text += f"### {sprint.name} (ID: {sprint.id})\n\n"
        text += f"**Board ID:** {sprint.board_id}\n"
        text += f"**Status:** {_capitalize(sprint.state)}\n"
        if sprint.start_date:
            text += f"**Start Date:** {format_datetime(sprint.start_date)}\n"
        if sprint.end_date:
            text += f"**End Date:** {format_datetime(sprint.end_date)}\n"
        if sprint.goal:
            text += f"**Goal:** {sprint.goal}\n"
        text += (
            f"**View in Jira:** {base_url}/jira/software/projects/{project_segment}"
            f"/boards/{sprint.board_id}/sprints/{sprint.id}\n\n"
        )
        text += _sprint_issue_section(sprint, base_url)
        text += "\n---\n\n"
    return text
