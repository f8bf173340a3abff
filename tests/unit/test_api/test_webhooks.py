"""Tests for the HTTP surface: GitHub webhooks, health, catch-all."""

import hashlib
import hmac
import json
from typing import Any, AsyncIterator, Dict, Optional
from unittest.mock import AsyncMock

import pytest
from aiohttp.test_utils import TestClient, TestServer

from ctrl_bot.api.server import NOT_FOUND_TEXT, create_api_app
from ctrl_bot.api.webhooks import GitHubWebhookHandler, verify_signature
from ctrl_bot.events.handlers import PullRequestReactor
from ctrl_bot.events.types import PullRequestEvent

SECRET = "s3cret"

OPENED = {
    "action": "opened",
    "pull_request": {
        "number": 7,
        "user": {"login": "carol"},
        "head": {"ref": "feature", "repo": {"full_name": "org/repo"}},
        "base": {"ref": "dev", "repo": {"full_name": "org/repo"}},
    },
}


def _sign(body: bytes, secret: str = SECRET) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


@pytest.fixture
def reactor() -> AsyncMock:
    return AsyncMock(spec=PullRequestReactor)


@pytest.fixture
def webhook(reactor: AsyncMock) -> GitHubWebhookHandler:
    return GitHubWebhookHandler(reactor, secret=SECRET)


@pytest.fixture
async def client(webhook: GitHubWebhookHandler) -> AsyncIterator[TestClient]:
    async with TestClient(TestServer(create_api_app(webhook))) as test_client:
        yield test_client


async def _deliver(
    client: TestClient,
    event: Optional[str],
    payload: Any = OPENED,
    signature: Optional[str] = None,
) -> Any:
    body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    headers: Dict[str, str] = {"X-GitHub-Delivery": "d-1"}
    if event is not None:
        headers["X-GitHub-Event"] = event
    headers["X-Hub-Signature-256"] = signature or _sign(body)
    return await client.post("/github", data=body, headers=headers)


class TestVerifySignature:
    def test_valid(self) -> None:
        assert verify_signature(SECRET, b"{}", _sign(b"{}"))

    def test_wrong_secret(self) -> None:
        assert not verify_signature(SECRET, b"{}", _sign(b"{}", "other"))

    def test_missing_prefix(self) -> None:
        digest = _sign(b"{}").split("=", 1)[1]
        assert not verify_signature(SECRET, b"{}", digest)


class TestGitHubWebhook:
    """Status codes and hand-off to the reactor."""

    async def test_accepted_event_reaches_reactor(
        self,
        client: TestClient,
        webhook: GitHubWebhookHandler,
        reactor: AsyncMock,
    ) -> None:
        resp = await _deliver(client, "pull_request")
        assert resp.status == 202

        await webhook.drain()
        reactor.handle.assert_awaited_once()
        event = reactor.handle.await_args.args[0]
        assert isinstance(event, PullRequestEvent)
        assert event.repository == "org/repo"

    async def test_missing_event_header(
        self, client: TestClient, reactor: AsyncMock
    ) -> None:
        resp = await _deliver(client, None)
        assert resp.status == 401
        reactor.handle.assert_not_awaited()

    async def test_bad_signature(self, client: TestClient, reactor: AsyncMock) -> None:
        resp = await _deliver(client, "pull_request", signature="sha256=deadbeef")
        assert resp.status == 401
        reactor.handle.assert_not_awaited()

    async def test_ping(self, client: TestClient) -> None:
        resp = await _deliver(client, "ping", {"zen": "Keep it logically awesome."})
        assert resp.status == 200

    async def test_invalid_json(self, client: TestClient) -> None:
        resp = await _deliver(client, "pull_request", b"not json")
        assert resp.status == 400

    async def test_undecodable_payload(self, client: TestClient) -> None:
        resp = await _deliver(client, "pull_request", {"action": "opened"})
        assert resp.status == 400

    async def test_unhandled_event(
        self,
        client: TestClient,
        webhook: GitHubWebhookHandler,
        reactor: AsyncMock,
    ) -> None:
        resp = await _deliver(client, "push", {"ref": "refs/heads/main"})
        assert resp.status == 202
        await webhook.drain()
        reactor.handle.assert_not_awaited()

    async def test_reactor_failure_does_not_escape(
        self,
        client: TestClient,
        webhook: GitHubWebhookHandler,
        reactor: AsyncMock,
    ) -> None:
        reactor.handle.side_effect = RuntimeError("boom")

        resp = await _deliver(client, "pull_request")

        assert resp.status == 202
        await webhook.drain()
        reactor.handle.assert_awaited_once()

    async def test_unsigned_when_no_secret(self, reactor: AsyncMock) -> None:
        webhook = GitHubWebhookHandler(reactor)
        async with TestClient(TestServer(create_api_app(webhook))) as client:
            resp = await client.post(
                "/github",
                data=json.dumps(OPENED),
                headers={"X-GitHub-Event": "pull_request"},
            )
            assert resp.status == 202
        await webhook.drain()
        reactor.handle.assert_awaited_once()


class TestServerRoutes:
    async def test_health(self, client: TestClient) -> None:
        resp = await client.get("/health")
        assert resp.status == 200
        assert await resp.text() == "ok"

    async def test_unknown_path(self, client: TestClient) -> None:
        resp = await client.get("/anything")
        assert resp.status == 404
        assert await resp.text() == NOT_FOUND_TEXT
