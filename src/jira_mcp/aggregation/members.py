"""Project membership built from the project's role actors.

A project's members are not exposed by a single Jira endpoint. They are
collected by fetching every project role concurrently and merging the
actors of each role by display name. The role fetch is all-or-nothing:
a partial member list could wrongly report a user as absent.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..jira.client import JiraGateway
from ..jira.jql import project_issues_jql
from .fanout import FailurePolicy, fan_out

logger = logging.getLogger(__name__)

USER_ISSUE_FIELDS = ("summary", "status", "assignee", "created", "issuetype", "priority")
USER_ISSUE_PAGE_LIMIT = 50


@dataclass
class MemberRecord:
    """One project member and the roles it was seen in, first-seen order."""

    display_name: str
    type: str
    email: Optional[str] = None
    roles: List[str] = field(default_factory=list)

    def add_role(self, role_name: str) -> None:
        if role_name not in self.roles:
            self.roles.append(role_name)

    def matches(self, user_name: str) -> bool:
        return self.display_name.casefold() == user_name.casefold()

    def is_system_actor(self, actor_types: Sequence[str], name_markers: Sequence[str]) -> bool:
        """Integration accounts such as "Automation for Jira"."""
        return self.type in actor_types and any(m in self.display_name for m in name_markers)


@dataclass
class ProjectMembership:
    """Merged members of a project and the role names that were queried."""

    project_key: str
    role_names: List[str] = field(default_factory=list)
    members: List[MemberRecord] = field(default_factory=list)

    @property
    def has_roles(self) -> bool:
        return bool(self.role_names)

    def find(self, user_name: str) -> Optional[MemberRecord]:
        """Case-insensitive lookup by display name."""
        for member in self.members:
            if member.matches(user_name):
                return member
        return None

    def available_members(
        self,
        actor_types: Sequence[str],
        name_markers: Sequence[str],
    ) -> List[MemberRecord]:
        return [m for m in self.members if not m.is_system_actor(actor_types, name_markers)]


@dataclass
class MembershipCheck:
    """Outcome of looking a user up in a project."""

    user_name: str
    membership: ProjectMembership
    member: Optional[MemberRecord] = None
    issues: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.member is not None


def role_id_from_url(role_url: str) -> str:
    """The trailing path segment of a role resource URL."""
    return role_url.rstrip("/").rsplit("/", 1)[-1]


def merge_role_actors(role_details: Iterable[Tuple[str, Dict[str, Any]]]) -> List[MemberRecord]:
    """Merge (role name, role detail) pairs into member records.

    Records are keyed by exact display name and keep the casing of the
    first observation. Actors without a display name are skipped.
    """
    members: Dict[str, MemberRecord] = {}
    for role_name, detail in role_details:
        for actor in (detail or {}).get("actors") or []:
            display_name = actor.get("displayName")
            if not display_name:
                continue
            record = members.get(display_name)
            if record is None:
                record = MemberRecord(
                    display_name=display_name,
                    type=actor.get("type") or "",
                    email=actor.get("emailAddress"),
                )
                members[display_name] = record
            record.add_role(role_name)
    return list(members.values())


async def aggregate_members(gateway: JiraGateway, project_key: str) -> ProjectMembership:
    """Collect every member of a project across all of its roles."""
    role_map = await gateway.get_project_roles(project_key) or {}
    roles = [(name, url) for name, url in role_map.items() if isinstance(url, str)]
    membership = ProjectMembership(project_key=project_key, role_names=[name for name, _ in roles])
    if not roles:
        logger.info("Project %s has no roles", project_key)
        return membership

    role_urls = dict(roles)

    async def fetch_role(role_name: str) -> Dict[str, Any]:
        return await gateway.get_project_role(project_key, role_id_from_url(role_urls[role_name]))

    fetched = await fan_out(
        role_urls, fetch_role, FailurePolicy.ALL_OR_NOTHING, label="project role fetch"
    )
    membership.members = merge_role_actors(fetched.succeeded)
    logger.debug(
        "Project %s: %d members across %d roles",
        project_key, len(membership.members), len(roles),
    )
    return membership


async def check_user_membership(
    gateway: JiraGateway,
    project_key: str,
    user_name: str,
    max_results: int = USER_ISSUE_PAGE_LIMIT,
) -> MembershipCheck:
    """Look a user up among the project members and fetch their issues if found.

    The issue search uses the member's stored display name, not the
    caller's casing, and never asks for more than USER_ISSUE_PAGE_LIMIT
    issues.
    """
    membership = await aggregate_members(gateway, project_key)
    check = MembershipCheck(user_name=user_name, membership=membership)
    if not membership.has_roles:
        return check

    check.member = membership.find(user_name)
    if check.member is None:
        logger.info("User %r is not a member of %s", user_name, project_key)
        return check

    results = await gateway.search_issues(
        project_issues_jql(project_key, assignee=check.member.display_name),
        max_results=min(max_results, USER_ISSUE_PAGE_LIMIT),
        fields=USER_ISSUE_FIELDS,
    )
    check.issues = (results or {}).get("issues") or []
    return check
