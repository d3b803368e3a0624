"""Test configuration and fixtures."""

import os
from unittest.mock import MagicMock, Mock

import pytest

# Set test environment variables BEFORE importing the package
os.environ["ENVIRONMENT"] = "test"
for var in ("JIRA_HOST", "JIRA_LOGIN_NAME", "JIRA_LOGIN_TOKEN"):
    os.environ.pop(var, None)

from jira_mcp.config import Settings
from jira_mcp.jira.auth import StaticDefaultsProvider
from jira_mcp.jira.client import JiraGateway
from jira_mcp.tools.context import ToolContext
from jira_mcp.tools.registry import ToolDispatcher, build_default_registry


BASE_URL = "https://example.atlassian.net"


@pytest.fixture
def settings():
    """Settings with no credential defaults."""
    return Settings(_env_file=None)


@pytest.fixture
def mock_gateway():
    """A JiraGateway double; every REST coroutine is an AsyncMock."""
    gateway = MagicMock(spec=JiraGateway)
    gateway.base_url = BASE_URL
    gateway.browse_url.side_effect = lambda key: f"{BASE_URL}/browse/{key}"
    return gateway


@pytest.fixture
def tool_context(mock_gateway, settings):
    return ToolContext(gateway=mock_gateway, settings=settings)


@pytest.fixture
def credential_defaults():
    return StaticDefaultsProvider(
        jira_host="example.atlassian.net",
        login_name="bot@example.com",
        login_token="secret-token",
    )


@pytest.fixture
def gateway_factory(mock_gateway):
    return Mock(return_value=mock_gateway)


@pytest.fixture
def dispatcher(credential_defaults, settings, gateway_factory):
    return ToolDispatcher(
        registry=build_default_registry(),
        defaults=credential_defaults,
        settings=settings,
        gateway_factory=gateway_factory,
    )
