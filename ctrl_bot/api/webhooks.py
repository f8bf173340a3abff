"""GitHub webhook endpoint.

Deliveries are verified, decoded into typed events, and handed to the
pull request reactor as background tasks so GitHub gets its response
straight away. Failures inside a task are logged; they never reach the
HTTP response.
"""

import asyncio
import hashlib
import hmac
import json
from typing import Optional, Set

import structlog
from aiohttp import web

from ..events.handlers import PullRequestReactor
from ..events.types import GitHubEvent, decode_event
from ..exceptions import EventDecodeError

logger = structlog.get_logger()

EVENT_HEADER = "X-GitHub-Event"
SIGNATURE_HEADER = "X-Hub-Signature-256"
DELIVERY_HEADER = "X-GitHub-Delivery"


def verify_signature(secret: str, body: bytes, signature_header: str) -> bool:
    """Check GitHub's ``sha256=<hex>`` HMAC of the raw body."""
    if not signature_header.startswith("sha256="):
        return False
    expected = "sha256=" + hmac.new(
        secret.encode("utf-8"), body, hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(expected, signature_header)


class GitHubWebhookHandler:
    """aiohttp handler for ``POST /github``."""

    def __init__(
        self, reactor: PullRequestReactor, secret: Optional[str] = None
    ) -> None:
        self.reactor = reactor
        self.secret = secret
        self._tasks: Set[asyncio.Task[None]] = set()

    async def handle(self, request: web.Request) -> web.Response:
        event_name = request.headers.get(EVENT_HEADER)
        delivery_id = request.headers.get(DELIVERY_HEADER, "")
        if not event_name:
            logger.warning("Webhook without event header", delivery_id=delivery_id)
            return web.Response(status=401, text="Missing X-GitHub-Event header")

        body = await request.read()
        if self.secret is not None and not verify_signature(
            self.secret, body, request.headers.get(SIGNATURE_HEADER, "")
        ):
            logger.warning(
                "Webhook signature mismatch",
                event=event_name,
                delivery_id=delivery_id,
            )
            return web.Response(status=401, text="Invalid signature")

        if event_name == "ping":
            return web.Response(status=200, text="pong")

        try:
            payload = json.loads(body)
        except ValueError:
            return web.Response(status=400, text="Body is not valid JSON")
        if not isinstance(payload, dict):
            return web.Response(status=400, text="Body must be a JSON object")

        try:
            event = decode_event(event_name, payload)
        except EventDecodeError as e:
            logger.warning(
                "Could not decode webhook",
                event=event_name,
                delivery_id=delivery_id,
                error=str(e),
            )
            return web.Response(status=400, text="Unexpected payload")

        if event is None:
            logger.debug("Ignoring webhook", event=event_name, delivery_id=delivery_id)
            return web.Response(status=202, text="Ignored")

        self._spawn(event, delivery_id)
        return web.Response(status=202, text="Accepted")

    def _spawn(self, event: GitHubEvent, delivery_id: str) -> None:
        task = asyncio.create_task(self._react(event, delivery_id))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _react(self, event: GitHubEvent, delivery_id: str) -> None:
        logger.info(
            "Processing webhook event",
            event_type=type(event).__name__,
            action=event.action,
            repository=event.repository,
            number=event.number,
            delivery_id=delivery_id,
        )
        try:
            await self.reactor.handle(event)
        except Exception:
            logger.exception(
                "Webhook event handling failed",
                event_type=type(event).__name__,
                repository=event.repository,
                number=event.number,
                delivery_id=delivery_id,
            )

    async def drain(self) -> None:
        """Wait for in-flight event tasks to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
