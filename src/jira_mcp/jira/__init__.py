"""Jira REST access: credentials, gateway and error types."""

from .auth import (
    Credentials,
    DefaultsProvider,
    SettingsDefaultsProvider,
    StaticDefaultsProvider,
    resolve_credentials,
)
from .client import JiraGateway

__all__ = [
    "Credentials",
    "DefaultsProvider",
    "JiraGateway",
    "SettingsDefaultsProvider",
    "StaticDefaultsProvider",
    "resolve_credentials",
]
