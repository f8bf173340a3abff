"""Background delivery of `/ctrl` replies to Slack.

Slash commands are acknowledged immediately; the reply is queued here
and sent by a single background task. Replies go to the command's
``response_url`` when Slack provided one (works even where the bot is
not a channel member), otherwise through ``chat.postMessage``. Each
reply gets a bounded number of attempts, each with its own timeout.
"""

import asyncio
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

import aiohttp
import structlog
from slack_sdk.errors import SlackClientError
from slack_sdk.web.async_client import AsyncWebClient
from slack_sdk.webhook.async_client import AsyncWebhookClient

from ..commands.responses import CommandResponse
from ..exceptions import SlackDeliveryError

logger = structlog.get_logger()

# Slack rate limit: ~1 msg/sec per channel for chat.postMessage
SEND_INTERVAL_SECONDS = 1.1
RETRY_BACKOFF_SECONDS = 1.0


@dataclass
class PendingReply:
    """A reply waiting to be delivered."""

    channel_id: str
    response: CommandResponse
    response_url: Optional[str] = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])


class NotificationService:
    """Delivers command replies to Slack with rate limiting and retries."""

    def __init__(
        self,
        client: AsyncWebClient,
        max_attempts: int = 3,
        timeout_seconds: float = 10.0,
        retry_backoff_seconds: float = RETRY_BACKOFF_SECONDS,
        webhook_factory: Callable[[str], AsyncWebhookClient] = AsyncWebhookClient,
    ) -> None:
        self.client = client
        self.max_attempts = max_attempts
        self.timeout_seconds = timeout_seconds
        self.retry_backoff_seconds = retry_backoff_seconds
        self.webhook_factory = webhook_factory
        self._send_queue: asyncio.Queue[PendingReply] = asyncio.Queue()
        self._last_send_per_channel: dict[str, float] = {}
        self._running = False
        self._sender_task: Optional[asyncio.Task[None]] = None

    async def start(self) -> None:
        """Start the send queue processor."""
        if self._running:
            return
        self._running = True
        self._sender_task = asyncio.create_task(self._process_send_queue())
        logger.info("Notification service started")

    async def stop(self) -> None:
        """Stop the send queue processor."""
        if not self._running:
            return
        self._running = False
        if self._sender_task:
            self._sender_task.cancel()
            try:
                await self._sender_task
            except asyncio.CancelledError:
                pass
        logger.info("Notification service stopped")

    async def submit(self, reply: PendingReply) -> None:
        """Queue a reply for delivery."""
        await self._send_queue.put(reply)

    async def _process_send_queue(self) -> None:
        """Process queued replies one at a time."""
        while self._running:
            try:
                reply = await asyncio.wait_for(self._send_queue.get(), timeout=1.0)
            except asyncio.TimeoutError:
                continue
            except asyncio.CancelledError:
                break

            try:
                await self.deliver(reply)
            except Exception:
                logger.exception(
                    "Reply delivery crashed",
                    reply_id=reply.id,
                    channel_id=reply.channel_id,
                )

    async def deliver(self, reply: PendingReply) -> bool:
        """Send ``reply``, retrying with backoff. Returns delivery success."""
        for attempt in range(1, self.max_attempts + 1):
            await self._wait_for_rate_limit(reply.channel_id)
            try:
                await asyncio.wait_for(self._send(reply), timeout=self.timeout_seconds)
            except (
                SlackClientError,
                SlackDeliveryError,
                aiohttp.ClientError,
                asyncio.TimeoutError,
            ) as e:
                logger.warning(
                    "Reply delivery attempt failed",
                    reply_id=reply.id,
                    channel_id=reply.channel_id,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    error=str(e) or type(e).__name__,
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(self.retry_backoff_seconds * attempt)
                continue

            logger.info(
                "Reply sent",
                reply_id=reply.id,
                channel_id=reply.channel_id,
                via="response_url" if reply.response_url else "chat.postMessage",
                attempt=attempt,
            )
            return True

        logger.error(
            "Failed to deliver reply",
            reply_id=reply.id,
            channel_id=reply.channel_id,
            attempts=self.max_attempts,
        )
        return False

    async def _send(self, reply: PendingReply) -> None:
        response = reply.response
        if reply.response_url:
            webhook = self.webhook_factory(reply.response_url)
            result = await webhook.send(
                text=response.text,
                blocks=response.blocks,
                response_type=response.response_type,
            )
            if result.status_code != 200:
                raise SlackDeliveryError(
                    f"response_url returned {result.status_code}: {result.body}"
                )
        else:
            kwargs: Dict[str, Any] = {
                "channel": reply.channel_id,
                "text": response.text,
            }
            if response.blocks:
                kwargs["blocks"] = response.blocks
            await self.client.chat_postMessage(**kwargs)

        self._last_send_per_channel[reply.channel_id] = (
            asyncio.get_event_loop().time()
        )

    async def _wait_for_rate_limit(self, channel_id: str) -> None:
        loop = asyncio.get_event_loop()
        last_send = self._last_send_per_channel.get(channel_id)
        if last_send is None:
            return
        wait_time = SEND_INTERVAL_SECONDS - (loop.time() - last_send)
        if wait_time > 0:
            await asyncio.sleep(wait_time)
