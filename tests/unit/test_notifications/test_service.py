"""Tests for the notification service."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from slack_sdk.errors import SlackApiError, SlackClientError, SlackRequestError

from ctrl_bot.commands.responses import CommandResponse
from ctrl_bot.notifications import service as service_module
from ctrl_bot.notifications.service import NotificationService, PendingReply


@pytest.fixture(autouse=True)
def no_rate_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(service_module, "SEND_INTERVAL_SECONDS", 0.0)


@pytest.fixture
def mock_client() -> AsyncMock:
    client = AsyncMock()
    client.chat_postMessage = AsyncMock(return_value={"ok": True})
    return client


@pytest.fixture
def webhook() -> AsyncMock:
    hook = AsyncMock()
    hook.send = AsyncMock(return_value=SimpleNamespace(status_code=200, body="ok"))
    return hook


@pytest.fixture
def service(mock_client: AsyncMock, webhook: AsyncMock) -> NotificationService:
    return NotificationService(
        client=mock_client,
        max_attempts=3,
        timeout_seconds=1.0,
        retry_backoff_seconds=0.0,
        webhook_factory=MagicMock(return_value=webhook),
    )


def _reply(response_url: str = None) -> PendingReply:
    return PendingReply(
        channel_id="C001",
        response=CommandResponse(text="hello", blocks=[{"type": "section"}]),
        response_url=response_url,
    )


class TestNotificationService:
    """Tests for NotificationService."""

    async def test_submit_queues_reply(self, service: NotificationService) -> None:
        """Replies are queued for delivery."""
        await service.submit(_reply())
        assert service._send_queue.qsize() == 1

    async def test_chat_post_message_without_response_url(
        self, service: NotificationService, mock_client: AsyncMock
    ) -> None:
        """Without a response_url the reply is posted to the channel."""
        assert await service.deliver(_reply()) is True
        mock_client.chat_postMessage.assert_awaited_once_with(
            channel="C001", text="hello", blocks=[{"type": "section"}]
        )

    async def test_response_url_preferred(
        self,
        service: NotificationService,
        mock_client: AsyncMock,
        webhook: AsyncMock,
    ) -> None:
        """The command's response_url is used when present."""
        assert await service.deliver(_reply("https://hooks.slack.com/x")) is True

        service.webhook_factory.assert_called_once_with("https://hooks.slack.com/x")
        webhook.send.assert_awaited_once_with(
            text="hello", blocks=[{"type": "section"}], response_type="in_channel"
        )
        mock_client.chat_postMessage.assert_not_awaited()

    async def test_retries_then_succeeds(
        self, service: NotificationService, mock_client: AsyncMock
    ) -> None:
        """Transient Slack errors are retried."""
        mock_client.chat_postMessage.side_effect = [
            SlackApiError("ratelimited", {"ok": False, "error": "ratelimited"}),
            {"ok": True},
        ]

        assert await service.deliver(_reply()) is True
        assert mock_client.chat_postMessage.await_count == 2

    async def test_gives_up_after_max_attempts(
        self, service: NotificationService, webhook: AsyncMock
    ) -> None:
        """A reply that keeps failing is dropped after max_attempts."""
        webhook.send.return_value = SimpleNamespace(status_code=500, body="error")

        assert await service.deliver(_reply("https://hooks.slack.com/x")) is False
        assert webhook.send.await_count == 3

    async def test_attempt_timeout(
        self, mock_client: AsyncMock, webhook: AsyncMock
    ) -> None:
        """A hung send counts as a failed attempt."""

        async def hang(**kwargs):
            await asyncio.sleep(10)

        mock_client.chat_postMessage.side_effect = hang
        service = NotificationService(
            client=mock_client,
            max_attempts=2,
            timeout_seconds=0.05,
            retry_backoff_seconds=0.0,
        )

        assert await service.deliver(_reply()) is False
        assert mock_client.chat_postMessage.await_count == 2

    async def test_background_sender_delivers(
        self, service: NotificationService, mock_client: AsyncMock
    ) -> None:
        """Queued replies are delivered by the background task."""
        await service.start()
        try:
            await service.submit(_reply())
            for _ in range(50):
                if mock_client.chat_postMessage.await_count:
                    break
                await asyncio.sleep(0.01)
        finally:
            await service.stop()

        mock_client.chat_postMessage.assert_awaited_once()

    async def test_client_error_is_retried(
        self, service: NotificationService, mock_client: AsyncMock
    ) -> None:
        """Client-side Slack SDK errors count as failed attempts."""
        mock_client.chat_postMessage.side_effect = [
            SlackRequestError("bad request"),
            {"ok": True},
        ]

        assert await service.deliver(_reply()) is True
        assert mock_client.chat_postMessage.await_count == 2

    async def test_sender_survives_failed_reply(
        self, mock_client: AsyncMock
    ) -> None:
        """A reply that fails does not stop later replies from going out."""
        mock_client.chat_postMessage.side_effect = [
            SlackClientError("boom"),
            {"ok": True},
        ]
        service = NotificationService(
            client=mock_client, max_attempts=1, retry_backoff_seconds=0.0
        )

        await service.start()
        try:
            await service.submit(_reply())
            await service.submit(_reply())
            for _ in range(100):
                if mock_client.chat_postMessage.await_count == 2:
                    break
                await asyncio.sleep(0.01)
            assert service._sender_task is not None
            assert not service._sender_task.done()
        finally:
            await service.stop()

        assert mock_client.chat_postMessage.await_count == 2

    async def test_sender_survives_unexpected_error(
        self, mock_client: AsyncMock
    ) -> None:
        """An unexpected exception while sending is logged and skipped."""
        broken_factory = MagicMock(side_effect=ValueError("bad response_url"))
        service = NotificationService(
            client=mock_client,
            max_attempts=1,
            retry_backoff_seconds=0.0,
            webhook_factory=broken_factory,
        )

        await service.start()
        try:
            await service.submit(_reply("not a url"))
            await service.submit(_reply())
            for _ in range(100):
                if mock_client.chat_postMessage.await_count:
                    break
                await asyncio.sleep(0.01)
        finally:
            await service.stop()

        broken_factory.assert_called_once_with("not a url")
        mock_client.chat_postMessage.assert_awaited_once()
