"""Sprint discovery across boards.

Boards are resolved first (explicit board, boards of a project, or the
first few boards of the instance), then every board's sprints are fetched
concurrently and merged into one list sorted by start date, newest first.
Issue enrichment fetches each sprint's issues concurrently.

Both fan-outs are best-effort: a board or sprint that fails is reported
and skipped, the rest of the report is kept.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..jira.client import JiraGateway
from ..jira.dates import parse_jira_datetime
from .fanout import FailurePolicy, PartialFailure, fan_out

logger = logging.getLogger(__name__)

MAX_UNFILTERED_BOARDS = 5
SPRINT_STATES = ("active", "future", "closed", "all")
SPRINT_ISSUE_FIELDS = ("summary", "status", "assignee", "issuetype")


@dataclass
class SprintRecord:
    """An upstream sprint object tagged with the board it came from."""

    board_id: str
    data: Dict[str, Any]
    issues: Optional[List[Dict[str, Any]]] = None
    issues_error: Optional[str] = None

    @property
    def id(self) -> str:
        return str(self.data.get("id", ""))

    @property
    def name(self) -> str:
        return self.data.get("name") or f"Sprint {self.id}"

    @property
    def state(self) -> str:
        return self.data.get("state") or "unknown"

    @property
    def goal(self) -> Optional[str]:
        return self.data.get("goal") or None

    @property
    def start_date(self) -> Optional[datetime]:
        return parse_jira_datetime(self.data.get("startDate"))

    @property
    def end_date(self) -> Optional[datetime]:
        return parse_jira_datetime(self.data.get("endDate"))

    def sort_key(self) -> float:
        """Start date as a timestamp; no start date sorts as the epoch."""
        start = self.start_date
        return start.timestamp() if start else 0.0


@dataclass
class SprintReport:
    """Merged sprints of all resolved boards, plus the boards that failed."""

    state: str
    board_id: Optional[str] = None
    project_key: Optional[str] = None
    board_ids: List[str] = field(default_factory=list)
    sprints: List[SprintRecord] = field(default_factory=list)
    skipped_boards: List[PartialFailure[str]] = field(default_factory=list)

    @property
    def no_boards(self) -> bool:
        return not self.board_ids

    @property
    def no_sprints(self) -> bool:
        return bool(self.board_ids) and not self.sprints


async def resolve_boards(
    gateway: JiraGateway,
    board_id: Optional[str] = None,
    project_key: Optional[str] = None,
    unfiltered_limit: int = MAX_UNFILTERED_BOARDS,
) -> List[str]:
    """Board ids to query; the first matching rule wins.

    1. An explicit board id.
    2. Every board of the project.
    3. The first ``unfiltered_limit`` boards of the instance.
    """
    if board_id:
        return [str(board_id)]

    if project_key:
        response = await gateway.list_boards(project_key=project_key)
        boards = (response or {}).get("values") or []
    else:
        response = await gateway.list_boards()
        boards = ((response or {}).get("values") or [])[:unfiltered_limit]

    return [str(board["id"]) for board in boards if board.get("id") is not None]


def sort_sprints(sprints: Sequence[SprintRecord]) -> List[SprintRecord]:
    """Newest start date first. Ties keep their merged order."""
    return sorted(sprints, key=lambda s: s.sort_key(), reverse=True)


async def aggregate_sprints(
    gateway: JiraGateway,
    board_id: Optional[str] = None,
    project_key: Optional[str] = None,
    state: str = "active",
    unfiltered_limit: int = MAX_UNFILTERED_BOARDS,
) -> SprintReport:
    """Collect the sprints of every resolved board, sorted newest first."""
    report = SprintReport(state=state, board_id=board_id, project_key=project_key)
    report.board_ids = await resolve_boards(gateway, board_id, project_key, unfiltered_limit)
    if report.no_boards:
        logger.info("No boards found (board_id=%s, project_key=%s)", board_id, project_key)
        return report

    state_filter = None if state == "all" else state

    async def fetch_board_sprints(bid: str) -> List[Dict[str, Any]]:
        response = await gateway.get_board_sprints(bid, state=state_filter)
        return (response or {}).get("values") or []

    fetched = await fan_out(
        report.board_ids, fetch_board_sprints, FailurePolicy.BEST_EFFORT, label="board sprint fetch"
    )
    report.skipped_boards = fetched.failed

    merged = [
        SprintRecord(board_id=bid, data=sprint)
        for bid, sprints in fetched.succeeded
        for sprint in sprints
    ]
    report.sprints = sort_sprints(merged)
    return report


async def attach_sprint_issues(
    gateway: JiraGateway,
    sprints: Sequence[SprintRecord],
    fields: Sequence[str] = SPRINT_ISSUE_FIELDS,
) -> None:
    """Fetch each sprint's issues in place; failures are recorded per sprint.

    A sprint shared by several boards is fetched once.
    """
    by_id: Dict[str, List[SprintRecord]] = {}
    for sprint in sprints:
        by_id.setdefault(sprint.id, []).append(sprint)

    async def fetch_issues(sprint_id: str) -> List[Dict[str, Any]]:
        response = await gateway.get_sprint_issues(sprint_id, fields=fields)
        return (response or {}).get("issues") or []

    fetched = await fan_out(by_id, fetch_issues, FailurePolicy.BEST_EFFORT, label="sprint issue fetch")
    for sprint_id, issues in fetched.succeeded:
        for sprint in by_id[sprint_id]:
            sprint.issues = issues
    for failure in fetched.failed:
        for sprint in by_id[failure.key]:
            sprint.issues_error = failure.reason
