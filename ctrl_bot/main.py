"""Main entry point for Ctrl Slack Bot."""

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Any, Dict

import structlog
from slack_sdk.web.async_client import AsyncWebClient

from ctrl_bot import __version__
from ctrl_bot.api import GitHubWebhookHandler, create_api_app, run_api_server
from ctrl_bot.bot.core import CtrlBot
from ctrl_bot.commands import CommandExecutor
from ctrl_bot.config import load_config
from ctrl_bot.config.settings import Settings
from ctrl_bot.events import PullRequestReactor
from ctrl_bot.exceptions import ConfigurationError
from ctrl_bot.github import GitHubClient
from ctrl_bot.notifications import NotificationService
from ctrl_bot.registry import GitPublisher, RegistryStore


def setup_logging(debug: bool = False) -> None:
    """Configure structured logging."""
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stdout,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if not debug
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Ctrl Slack Bot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version", action="version", version=f"Ctrl Slack Bot {__version__}"
    )

    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    parser.add_argument("--env-file", type=Path, help="Path to a dotenv file")

    return parser.parse_args()


def create_application(config: Settings) -> Dict[str, Any]:
    """Create and wire the application components."""
    logger = structlog.get_logger()
    logger.info("Creating application components")

    publisher = None
    if config.registry_push_enabled:
        publisher = GitPublisher(
            remote=config.registry_push_remote,
            branch=config.registry_push_branch,
            commit_message=config.registry_commit_message,
        )
    store = RegistryStore(config.registry_path, publisher=publisher)

    github = GitHubClient(
        token=config.github_token_str,
        api_url=config.github_api_url,
        timeout_seconds=config.outbound_timeout_seconds,
    )
    reactor = PullRequestReactor(
        store=store,
        github=github,
        protected_branches=config.protected_branches,
        filter_by_contributors=config.filter_reviewers_by_contributors,
    )
    github_webhook = GitHubWebhookHandler(
        reactor, secret=config.github_webhook_secret_str
    )

    slack_client = AsyncWebClient(token=config.slack_bot_token_str)
    notification_service = NotificationService(
        client=slack_client,
        max_attempts=config.delivery_max_attempts,
        timeout_seconds=config.outbound_timeout_seconds,
    )

    executor = CommandExecutor(store, command_name=config.slack_command)

    dependencies = {
        "command_executor": executor,
        "notification_service": notification_service,
    }
    bot = CtrlBot(config, dependencies)

    logger.info("Application components created successfully")

    return {
        "bot": bot,
        "config": config,
        "store": store,
        "github": github,
        "github_webhook": github_webhook,
        "notification_service": notification_service,
    }


async def run_application(app: Dict[str, Any]) -> None:
    """Run the application with graceful shutdown handling."""
    logger = structlog.get_logger()
    bot: CtrlBot = app["bot"]
    config: Settings = app["config"]
    store: RegistryStore = app["store"]
    github: GitHubClient = app["github"]
    github_webhook: GitHubWebhookHandler = app["github_webhook"]
    notification_service: NotificationService = app["notification_service"]

    shutdown_event = asyncio.Event()

    def signal_handler(signum: int, frame: Any) -> None:
        logger.info("Shutdown signal received", signal=signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    try:
        logger.info("Starting Ctrl Slack Bot")

        # Load once at startup so a first run writes the default registry
        registry = await store.load()
        logger.info(
            "Registry loaded",
            path=str(store.path),
            projects=len(registry.projects),
            profiles=len(registry.profiles),
        )

        await bot.initialize()
        await notification_service.start()

        api_app = create_api_app(
            github_webhook,
            slack_app=None if config.slack_socket_mode else bot.app,
            slack_path=config.slack_events_path,
        )

        tasks = [
            asyncio.create_task(bot.start(), name="bot"),
            asyncio.create_task(
                run_api_server(api_app, config.api_server_host, config.api_server_port),
                name="api_server",
            ),
            asyncio.create_task(shutdown_event.wait(), name="shutdown"),
        ]

        # In HTTP mode bot.start() returns immediately; keep serving
        pending = set(tasks)
        while pending:
            done, pending = await asyncio.wait(
                pending, return_when=asyncio.FIRST_COMPLETED
            )
            stop = shutdown_event.is_set()
            for task in done:
                if task.cancelled():
                    continue
                exc = task.exception()
                if exc is not None:
                    logger.error(
                        "Task failed",
                        task=task.get_name(),
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                    stop = True
                elif task.get_name() == "api_server":
                    stop = True
            if stop:
                break

        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    except Exception as e:
        logger.error("Application error", error=str(e))
        raise
    finally:
        logger.info("Shutting down application")

        try:
            await github_webhook.drain()
            await notification_service.stop()
            if bot.is_running or bot.socket_handler is not None:
                await bot.stop()
            await github.close()
        except Exception as e:
            logger.error("Error during shutdown", error=str(e))

        logger.info("Application shutdown complete")


async def main() -> None:
    """Main application entry point."""
    args = parse_args()
    setup_logging(debug=args.debug)

    logger = structlog.get_logger()
    logger.info("Starting Ctrl Slack Bot", version=__version__)

    try:
        config = load_config(env_file=args.env_file)
        if not args.debug:
            logging.getLogger().setLevel(
                logging.DEBUG if config.debug else config.log_level
            )

        logger.info(
            "Configuration loaded",
            environment="production" if config.is_production else "development",
            socket_mode=config.slack_socket_mode,
            registry_path=str(config.registry_path),
        )

        app = create_application(config)
        await run_application(app)

    except ConfigurationError as e:
        logger.error("Configuration error", error=str(e))
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error", error=str(e))
        sys.exit(1)


def run() -> None:
    """Synchronous entry point for setuptools."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
    sys.exit(0)


if __name__ == "__main__":
    run()
