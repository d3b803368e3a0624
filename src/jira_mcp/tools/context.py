"""Per-call context handed to tool handlers."""

from dataclasses import dataclass

from ..config import Settings
from ..jira.client import JiraGateway


@dataclass(frozen=True)
class ToolContext:
    """Gateway bound to the call's resolved credentials, plus settings."""

    gateway: JiraGateway
    settings: Settings
