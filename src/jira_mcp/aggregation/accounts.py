"""Display name to account id resolution for issue creation.

Matching is a case-insensitive exact match against the candidates of a
user search; when nothing matches exactly the first candidate is used.
That fallback can pick the wrong person for ambiguous names.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from ..jira.client import JiraGateway
from .fanout import FailurePolicy, fan_out

logger = logging.getLogger(__name__)


def pick_account(candidates: List[Dict[str, Any]], name: str) -> Optional[Dict[str, Any]]:
    """Exact case-insensitive display name match, else the first candidate."""
    if not candidates:
        return None
    wanted = name.casefold()
    for user in candidates:
        if (user.get("displayName") or "").casefold() == wanted:
            return user
    logger.warning(
        "No exact match for %r among %d users, falling back to %r",
        name, len(candidates), candidates[0].get("displayName"),
    )
    return candidates[0]


async def find_account_id(gateway: JiraGateway, name: str) -> Optional[str]:
    """Account id for a display name, or None when the search is empty."""
    candidates = await gateway.search_users(name) or []
    user = pick_account(candidates, name)
    return user.get("accountId") if user else None


async def resolve_account_ids(
    gateway: JiraGateway,
    names: Mapping[str, Optional[str]],
) -> Dict[str, Optional[str]]:
    """Resolve several named roles (e.g. assignee, reporter) concurrently.

    Each lookup is best-effort: a failed or empty lookup maps the role
    to None and never fails the caller.
    """
    wanted = {role: name for role, name in names.items() if name}
    resolved: Dict[str, Optional[str]] = {role: None for role in names}
    if not wanted:
        return resolved

    async def lookup(role: str) -> Optional[str]:
        return await find_account_id(gateway, wanted[role])

    fetched = await fan_out(wanted, lookup, FailurePolicy.BEST_EFFORT, label="user lookup")
    for role, account_id in fetched.succeeded:
        if account_id is None:
            logger.warning("Could not find %s: %s", role, wanted[role])
        resolved[role] = account_id
    return resolved
