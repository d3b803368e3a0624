"""Entry point: serve the Jira tools over stdio."""

import asyncio
import logging

from mcp.server.stdio import stdio_server

from .config import Settings, get_settings
from .jira.auth import Credentials, SettingsDefaultsProvider
from .jira.client import JiraGateway
from .jira.http_client import close_http_client, get_http_client
from .mcp.server import create_server
from .observability.logging import configure_logging
from .tools.registry import ToolDispatcher, build_default_registry

logger = logging.getLogger(__name__)


def build_dispatcher(settings: Settings) -> ToolDispatcher:
    client = get_http_client(settings.jira_request_timeout)

    def gateway_factory(credentials: Credentials) -> JiraGateway:
        return JiraGateway(credentials, client=client)

    return ToolDispatcher(
        registry=build_default_registry(),
        defaults=SettingsDefaultsProvider(settings),
        settings=settings,
        gateway_factory=gateway_factory,
    )


async def serve(settings: Settings) -> None:
    server = create_server(build_dispatcher(settings))
    logger.info("%s v%s starting on stdio", settings.app_name, settings.app_version)
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream)
    finally:
        await close_http_client()
        logger.info("%s stopped", settings.app_name)


def main() -> None:
    settings = get_settings()
    configure_logging(settings.environment, settings.effective_log_level())
    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
