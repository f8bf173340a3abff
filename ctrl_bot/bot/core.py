"""Main Slack bot class.

Features:
- Slack Bolt App in Socket Mode or HTTP mode
- `/ctrl` command registration
- Dependency injection middleware
- Graceful shutdown
"""

from typing import Any, Dict, Optional

import structlog
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.app.async_app import AsyncApp

from ..config.settings import Settings
from ..exceptions import CtrlBotError
from .handlers import ctrl_command

logger = structlog.get_logger()


class CtrlBot:
    """Owns the Bolt app and, in Socket Mode, its connection."""

    def __init__(self, settings: Settings, dependencies: Dict[str, Any]):
        """Initialize bot with settings and dependencies."""
        self.settings = settings
        self.deps = dependencies
        self.app: Optional[AsyncApp] = None
        self.socket_handler: Optional[AsyncSocketModeHandler] = None
        self.is_running = False

    async def initialize(self) -> None:
        """Initialize bot application. Idempotent, safe to call multiple times."""
        if self.app is not None:
            return

        logger.info(
            "Initializing Slack bot", socket_mode=self.settings.slack_socket_mode
        )

        self.app = AsyncApp(
            token=self.settings.slack_bot_token_str,
            signing_secret=self.settings.slack_signing_secret_str,
        )

        self._add_middleware()
        self._register_handlers()

        logger.info("Bot initialization complete")

    def _register_handlers(self) -> None:
        """Register the slash command listener."""
        self.app.command(self.settings.slack_command)(ctrl_command)
        logger.info("Slash command registered", command=self.settings.slack_command)

    def _add_middleware(self) -> None:
        """Expose dependencies to listeners through the Bolt context."""
        deps = self.deps
        settings = self.settings

        @self.app.middleware
        async def deps_mw(body, context, next):
            context["deps"] = deps
            context["settings"] = settings
            await next()

    async def start(self) -> None:
        """Start the bot.

        In Socket Mode this blocks until the connection is closed. In HTTP
        mode Slack requests arrive through the API server instead.
        """
        if self.is_running:
            logger.warning("Bot is already running")
            return

        await self.initialize()

        if not self.settings.slack_socket_mode:
            self.is_running = True
            logger.info("Bot ready", mode="http", path=self.settings.slack_events_path)
            return

        logger.info("Starting bot", mode="socket_mode")

        try:
            self.is_running = True

            self.socket_handler = AsyncSocketModeHandler(
                self.app, self.settings.slack_app_token_str
            )

            # start_async() is blocking: it runs until stopped
            await self.socket_handler.start_async()

        except Exception as e:
            logger.error("Error running bot", error=str(e))
            raise CtrlBotError(f"Failed to start bot: {str(e)}") from e
        finally:
            self.is_running = False

    async def stop(self) -> None:
        """Gracefully stop the bot."""
        if not self.is_running and self.socket_handler is None:
            logger.warning("Bot is not running")
            return

        logger.info("Stopping bot")

        try:
            self.is_running = False

            if self.socket_handler:
                await self.socket_handler.close_async()
                self.socket_handler = None

            logger.info("Bot stopped successfully")
        except Exception as e:
            logger.error("Error stopping bot", error=str(e))
            raise CtrlBotError(f"Failed to stop bot: {str(e)}") from e
