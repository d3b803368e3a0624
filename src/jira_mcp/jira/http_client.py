"""Shared HTTP client with connection pooling for upstream Jira calls."""

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

_client: Optional[httpx.AsyncClient] = None

DEFAULT_TIMEOUT = 30.0


def get_http_client(timeout: float = DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Return the process-wide AsyncClient, creating it on first use.

    The timeout only applies when the client is created.
    """
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            follow_redirects=True,
        )
        logger.debug("Created shared HTTP client (timeout=%.1fs)", timeout)
    return _client


async def close_http_client() -> None:
    """Close the shared client, if any."""
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
        logger.debug("Closed shared HTTP client")
    _client = None
