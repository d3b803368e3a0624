"""JQL string helpers."""

from typing import Optional


def quote(value: str) -> str:
    """Quote a JQL string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def project_issues_jql(
    project_key: str,
    assignee: Optional[str] = None,
    fuzzy_assignee: bool = False,
) -> str:
    """Issues of a project, newest first, optionally filtered by assignee.

    ``fuzzy_assignee`` uses the ``~`` (contains) operator instead of ``=``.
    """
    jql = f"project = {quote(project_key)}"
    if assignee:
        op = "~" if fuzzy_assignee else "="
        jql += f" AND assignee {op} {quote(assignee)}"
    return jql + " ORDER BY created DESC"
