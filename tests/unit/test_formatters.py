"""Tests for markdown rendering and the error envelope."""

from jira_mcp.aggregation.fanout import PartialFailure
from jira_mcp.aggregation.members import MemberRecord, MembershipCheck, ProjectMembership
from jira_mcp.aggregation.sprints import SprintRecord, SprintReport
from jira_mcp.jira.exceptions import JiraNotFoundError, ToolValidationError, UpstreamError
from jira_mcp.jira.adf import adf_to_text
from jira_mcp.tools.formatters import (
    format_issue,
    format_membership_check,
    format_project_members,
    format_projects,
    format_sprint_report,
    md_table,
)
from jira_mcp.tools.results import error_result, result_from_exception, unknown_tool_result

BASE_URL = "https://example.atlassian.net"
ACTOR_TYPES = ["atlassian-user-role-actor"]
MARKERS = ["for Jira", "Atlassian"]


def _membership():
    return ProjectMembership(
        project_key="PROJ",
        role_names=["Developers"],
        members=[
            MemberRecord("Jane Doe", "atlassian-user-role-actor", roles=["Developers", "Administrators"]),
            MemberRecord("Automation for Jira", "atlassian-user-role-actor", roles=["Developers"]),
        ],
    )


class TestTables:

    def test_md_table(self):
        table = md_table(["Key", "Name"], [["A", "x|y"], ["B", None]])
        assert table.splitlines() == ["| Key | Name |", "|-----|------|", "| A | x\\|y |", "| B |  |"]

    def test_projects(self):
        text = format_projects([{"key": "PROJ", "name": "Project", "lead": {"displayName": "Ann"}}])
        assert "Total projects: 1" in text
        assert "| PROJ | Project | N/A | Ann |" in text

    def test_no_projects(self):
        assert format_projects([]).endswith("No projects found or you don't have access to any projects.")


class TestIssueDetail:

    def test_adf_description_without_rendered_fields(self):
        issue = {
            "key": "PROJ-1",
            "fields": {
                "summary": "Broken login",
                "description": {
                    "type": "doc",
                    "version": 1,
                    "content": [
                        {"type": "paragraph", "content": [{"type": "text", "text": "First line"}]},
                        {"type": "bulletList", "content": [
                            {"type": "listItem", "content": [
                                {"type": "paragraph", "content": [{"type": "text", "text": "Item"}]},
                            ]},
                        ]},
                    ],
                },
                "comment": {"comments": [{
                    "author": {"displayName": "Ann"},
                    "body": {"type": "doc", "version": 1, "content": [
                        {"type": "paragraph", "content": [{"type": "text", "text": "Seen it"}]},
                    ]},
                }]},
            },
        }

        text = format_issue(issue)

        assert "## Description\n\nFirst line\nItem\n" in text
        assert "Seen it" in text
        assert "'type'" not in text

    def test_rendered_description_preferred(self):
        issue = {
            "key": "PROJ-1",
            "fields": {"summary": "s", "description": {"type": "doc", "version": 1, "content": []}},
            "renderedFields": {"description": "<p>Rendered</p>"},
        }

        assert "<p>Rendered</p>" in format_issue(issue)

    def test_adf_to_text(self):
        doc = {"type": "doc", "content": [
            {"type": "paragraph", "content": [
                {"type": "text", "text": "a"}, {"type": "hardBreak"}, {"type": "text", "text": "b"},
            ]},
        ]}
        assert adf_to_text(doc) == "a\nb"
        assert adf_to_text("plain") == "plain"
        assert adf_to_text(None) == ""


class TestMembers:

    def test_member_table(self):
        text = format_project_members(_membership())
        assert "| Jane Doe | atlassian-user-role-actor | N/A | Developers, Administrators |" in text

    def test_no_roles(self):
        text = format_project_members(ProjectMembership(project_key="PROJ"))
        assert text.endswith("No project roles found.")

    def test_not_a_member_lists_available_members(self):
        check = MembershipCheck(user_name="Ghost", membership=_membership())

        text = format_membership_check(check, ACTOR_TYPES, MARKERS)

        assert '❌ User "Ghost" is NOT a member of project "PROJ"' in text
        assert "| Jane Doe | Developers, Administrators |" in text
        assert "Automation for Jira" not in text

    def test_member_without_issues(self):
        membership = _membership()
        check = MembershipCheck(user_name="jane doe", membership=membership, member=membership.members[0])

        text = format_membership_check(check, ACTOR_TYPES, MARKERS)

        assert '✅ User "Jane Doe" found in project' in text
        assert text.endswith("No issues found assigned to this user in the project.")


class TestSprintReport:

    def test_no_boards_unfiltered(self):
        text = format_sprint_report(SprintReport(state="active"), BASE_URL)
        assert text == "# No Boards Found\n\nNo boards were found in your Jira instance."

    def test_no_sprints_lists_skipped_boards(self):
        report = SprintReport(
            state="all",
            board_ids=["1", "2"],
            skipped_boards=[PartialFailure(key="2", error=UpstreamError("timeout"))],
        )

        text = format_sprint_report(report, BASE_URL)

        assert text.startswith("# No Sprints Found\n\nNo sprints were found\n")
        assert "⚠️ Skipped board 2: could not fetch sprints (timeout)" in text

    def test_sprint_details(self):
        sprint = SprintRecord(
            board_id="7",
            data={
                "id": 12,
                "name": "Sprint 12",
                "state": "active",
                "goal": "Ship it",
                "startDate": "2024-03-01T09:00:00.000Z",
            },
            issues_error="boom",
        )
        report = SprintReport(state="active", project_key="PROJ", board_ids=["7"], sprints=[sprint])

        text = format_sprint_report(report, BASE_URL)

        assert "| 12 | Sprint 12 | 7 | Active | 2024-03-01 | Not set |" in text
        assert "**Goal:** Ship it" in text
        assert f"{BASE_URL}/jira/software/projects/PROJ/boards/7/sprints/12" in text
        assert "Could not fetch issues for this sprint." in text


class TestResults:

    def test_error_result_sections(self):
        result = error_result("Validation Error", "Bad input", details="x: y", solution="Fix it")

        text = result.content[0].text
        assert result.isError
        assert text.startswith("# Validation Error\n\nBad input\n\n## Error Details\n\n```\nx: y\n```")
        assert text.rstrip().endswith("## Solution\n\nFix it")

    def test_unknown_tool(self):
        result = unknown_tool_result("nope")
        assert result.isError
        assert result.content[0].text == "Unknown tool: nope"

    def test_generic_upstream_title_includes_status(self):
        result = result_from_exception(UpstreamError("Server broke", status_code=502))
        assert result.content[0].text.startswith("# API Error (502)")

    def test_specific_upstream_title(self):
        result = result_from_exception(JiraNotFoundError("Issue PROJ-1 not found", status_code=404))
        assert result.content[0].text.startswith("# Not Found\n\nIssue PROJ-1 not found")

    def test_validation_error(self):
        result = result_from_exception(ToolValidationError("Invalid", details="projectKey: required"))
        assert "projectKey: required" in result.content[0].text
