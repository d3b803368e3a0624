"""Concurrent cross-resource aggregation used by the Jira tools."""

from .fanout import FailurePolicy, FanOutResult, PartialFailure, fan_out
from .members import MemberRecord, ProjectMembership, aggregate_members, check_user_membership
from .sprints import SprintRecord, SprintReport, aggregate_sprints, attach_sprint_issues

__all__ = [
    "FailurePolicy",
    "FanOutResult",
    "MemberRecord",
    "PartialFailure",
    "ProjectMembership",
    "SprintRecord",
    "SprintReport",
    "aggregate_members",
    "aggregate_sprints",
    "attach_sprint_issues",
    "check_user_membership",
    "fan_out",
]
