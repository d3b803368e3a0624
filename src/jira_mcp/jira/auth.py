"""Credential resolution and authentication helpers."""

import base64
import logging
import re
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Protocol

from ..config import Settings
from .exceptions import CredentialError

logger = logging.getLogger(__name__)

CREDENTIAL_FIELDS = ("jira_host", "login_name", "login_token")

_PROTOCOL_RE = re.compile(r"^https?://", re.IGNORECASE)
_CAMEL_NAMES = {
    "jira_host": "jiraHost",
    "login_name": "loginName",
    "login_token": "loginToken",
}


@dataclass(frozen=True)
class Credentials:
    """The three secrets every upstream call needs."""

    host: str
    login_name: str
    login_token: str

    def __repr__(self) -> str:
        return f"Credentials(host={self.host!r}, login_name={self.login_name!r}, login_token='***')"


class DefaultsProvider(Protocol):
    """Source of process-wide credential fallbacks."""

    def credential_defaults(self) -> Mapping[str, Optional[str]]:
        """Return defaults keyed by jira_host, login_name, login_token."""
        ...


class SettingsDefaultsProvider:
    """Serve credential defaults from application settings."""

    def __init__(self, settings: Settings):
        self._settings = settings

    def credential_defaults(self) -> Mapping[str, Optional[str]]:
        return {
            "jira_host": self._settings.jira_host,
            "login_name": self._settings.jira_login_name,
            "login_token": self._settings.jira_login_token,
        }


class StaticDefaultsProvider:
    """Serve a fixed set of credential defaults."""

    def __init__(
        self,
        jira_host: Optional[str] = None,
        login_name: Optional[str] = None,
        login_token: Optional[str] = None,
    ):
        self._defaults = {
            "jira_host": jira_host,
            "login_name": login_name,
            "login_token": login_token,
        }

    def credential_defaults(self) -> Mapping[str, Optional[str]]:
        return dict(self._defaults)


def _present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def resolve_credentials(
    explicit: Mapping[str, Optional[str]],
    defaults: DefaultsProvider,
) -> Credentials:
    """Resolve credentials: explicit call argument, else process default.

    Raises:
        CredentialError: If any of the three values is still missing.
    """
    fallback = defaults.credential_defaults()
    resolved: Dict[str, Optional[str]] = {}
    for field in CREDENTIAL_FIELDS:
        value = explicit.get(field)
        if not _present(value):
            value = fallback.get(field)
        resolved[field] = value.strip() if _present(value) else None

    missing = [field for field, value in resolved.items() if value is None]
    if missing:
        logger.debug("Credential resolution failed, missing: %s", ", ".join(missing))
        raise CredentialError(
            "Missing required Jira credentials. Please provide them in the "
            "request or set them in the environment.",
            details="Missing: " + ", ".join(_CAMEL_NAMES[f] for f in missing),
        )

    return Credentials(
        host=resolved["jira_host"],
        login_name=resolved["login_name"],
        login_token=resolved["login_token"],
    )


def create_auth_header(login_name: str, login_token: str) -> str:
    """Build a Basic authorization header value."""
    raw = f"{login_name}:{login_token}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


def normalize_jira_host(jira_host: str) -> str:
    """Prefix https:// when the host carries no protocol; drop trailing slashes."""
    host = jira_host.strip().rstrip("/")
    if _PROTOCOL_RE.match(host):
        return host
    return f"https://{host}"
