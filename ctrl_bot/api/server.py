"""aiohttp server for GitHub webhooks and, in HTTP mode, Slack requests."""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog
from aiohttp import web
from slack_bolt.adapter.aiohttp import to_aiohttp_response, to_bolt_request
from slack_bolt.app.async_app import AsyncApp

from .webhooks import GitHubWebhookHandler

logger = structlog.get_logger()

NOT_FOUND_TEXT = (
    "You are using this tool incorrectly. "
    "Please use it through the command line or Slack."
)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@web.middleware
async def not_found_middleware(
    request: web.Request, handler: Handler
) -> web.StreamResponse:
    """Catch-all for anyone visiting the server directly."""
    try:
        return await handler(request)
    except web.HTTPNotFound:
        return web.Response(status=404, text=NOT_FOUND_TEXT)


async def health(request: web.Request) -> web.Response:
    return web.Response(text="ok")


def _slack_handler(slack_app: AsyncApp) -> Handler:
    async def handle(request: web.Request) -> web.StreamResponse:
        bolt_request = await to_bolt_request(request)
        bolt_response = await slack_app.async_dispatch(bolt_request)
        return await to_aiohttp_response(bolt_response)

    return handle


def create_api_app(
    github_webhook: GitHubWebhookHandler,
    slack_app: Optional[AsyncApp] = None,
    slack_path: str = "/slack/events",
) -> web.Application:
    """Build the aiohttp application with all routes mounted."""
    app = web.Application(middlewares=[not_found_middleware])
    app.router.add_post("/github", github_webhook.handle)
    app.router.add_get("/health", health)
    if slack_app is not None:
        app.router.add_post(slack_path, _slack_handler(slack_app))
    return app


async def run_api_server(app: web.Application, host: str, port: int) -> None:
    """Serve ``app`` until the task is cancelled."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info("API server started", host=host, port=port)
    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()
        logger.info("API server stopped")
