"""Tests for display name to account id resolution."""

import pytest

from jira_mcp.aggregation.accounts import find_account_id, pick_account, resolve_account_ids
from jira_mcp.jira.exceptions import JiraNetworkError


CANDIDATES = [
    {"accountId": "acc-1", "displayName": "Jane Doerr"},
    {"accountId": "acc-2", "displayName": "Jane Doe"},
]


class TestPickAccount:

    def test_exact_match_is_case_insensitive(self):
        assert pick_account(CANDIDATES, "jane doe")["accountId"] == "acc-2"

    def test_falls_back_to_first_candidate(self):
        """No exact match: the first search result is used, even if it is the wrong person."""
        assert pick_account(CANDIDATES, "Jane")["accountId"] == "acc-1"

    def test_no_candidates(self):
        assert pick_account([], "Jane") is None


class TestResolveAccountIds:

    @pytest.mark.asyncio
    async def test_resolves_both_roles(self, mock_gateway):
        async def search_users(query):
            return [{"accountId": f"id-{query}", "displayName": query}]

        mock_gateway.search_users.side_effect = search_users

        resolved = await resolve_account_ids(mock_gateway, {"assignee": "Ann", "reporter": "Bob"})

        assert resolved == {"assignee": "id-Ann", "reporter": "id-Bob"}

    @pytest.mark.asyncio
    async def test_failed_lookup_maps_to_none(self, mock_gateway):
        async def search_users(query):
            if query == "Bob":
                raise JiraNetworkError("Failed to connect to the Jira API.")
            return [{"accountId": "id-ann", "displayName": "Ann"}]

        mock_gateway.search_users.side_effect = search_users

        resolved = await resolve_account_ids(mock_gateway, {"assignee": "Ann", "reporter": "Bob"})

        assert resolved == {"assignee": "id-ann", "reporter": None}

    @pytest.mark.asyncio
    async def test_missing_names_are_not_looked_up(self, mock_gateway):
        resolved = await resolve_account_ids(mock_gateway, {"assignee": None, "reporter": None})

        assert resolved == {"assignee": None, "reporter": None}
        mock_gateway.search_users.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_search(self, mock_gateway):
        mock_gateway.search_users.return_value = []

        assert await find_account_id(mock_gateway, "Ghost") is None
