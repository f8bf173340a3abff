"""Projects set up through `/ctrl` drive pull request automation."""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from ctrl_bot.commands.executor import CommandExecutor
from ctrl_bot.events.handlers import PullRequestReactor
from ctrl_bot.events.types import PullRequestEvent, PullRequestReviewEvent
from ctrl_bot.github.client import GitHubClient
from ctrl_bot.registry.store import RegistryStore

REPO = "repo-org/repo-name"


@pytest.fixture
async def store(tmp_path: Path) -> RegistryStore:
    """A registry built only from slash commands sent in channel C1."""
    store = RegistryStore(tmp_path / "manifest.yaml")
    executor = CommandExecutor(store)
    for user_id, text in [
        ("UALICE1", "create proj1"),
        ("UALICE1", f"github {REPO}"),
        ("UALICE1", "me github alice"),
        ("UBOB2", "me github bob"),
        ("UALICE1", "add <@UBOB2|bob>"),
        ("UALICE1", "add <@UALICE1>"),
    ]:
        await executor.dispatch(text, user_id, "C1")
    return store


@pytest.fixture
def github() -> AsyncMock:
    return AsyncMock(spec=GitHubClient)


@pytest.fixture
def reactor(store: RegistryStore, github: AsyncMock) -> PullRequestReactor:
    return PullRequestReactor(store, github)


def _opened(base: str) -> PullRequestEvent:
    return PullRequestEvent(
        action="opened",
        repository=REPO,
        number=1,
        author="alice",
        base_branch=base,
        head_branch="feature",
    )


def _approved(base: str) -> PullRequestReviewEvent:
    return PullRequestReviewEvent(
        action="submitted",
        repository=REPO,
        number=1,
        author="alice",
        base_branch=base,
        head_branch="feature",
        review_state="approved",
        reviewer="bob",
    )


class TestCommandsToPullRequests:
    """Registry state from commands, reactions from webhook events."""

    async def test_registry_built_from_commands(self, store: RegistryStore) -> None:
        project = (await store.load()).projects["proj1"]
        assert project.slack_channel == "C1"
        assert project.github_repo == REPO
        assert project.project_owners == ["bob", "alice"]

    async def test_opened_against_dev(
        self, reactor: PullRequestReactor, github: AsyncMock
    ) -> None:
        await reactor.handle(_opened("dev"))

        github.add_assignees.assert_awaited_once_with(REPO, 1, ["alice"])
        github.request_reviewers.assert_awaited_once_with(REPO, 1, ["bob"])
        github.create_comment.assert_awaited_once()
        repo, number, body = github.create_comment.await_args.args
        assert (repo, number) == (REPO, 1)
        assert "Reviews have been requested" in body
        assert "@bob" in body

    async def test_opened_against_main(
        self, reactor: PullRequestReactor, github: AsyncMock
    ) -> None:
        await reactor.handle(_opened("main"))

        github.add_assignees.assert_awaited_once_with(REPO, 1, ["alice"])
        github.request_reviewers.assert_not_awaited()
        github.create_comment.assert_awaited_once()
        assert "not requesting reviews" in github.create_comment.await_args.args[2]

    async def test_approved_against_dev_merges_then_comments(
        self, reactor: PullRequestReactor, github: AsyncMock
    ) -> None:
        await reactor.handle(_approved("dev"))

        github.merge_pull_request.assert_awaited_once()
        github.create_comment.assert_awaited_once()
        assert [c[0] for c in github.mock_calls] == [
            "merge_pull_request",
            "create_comment",
        ]

    async def test_approved_against_main_never_merges(
        self, reactor: PullRequestReactor, github: AsyncMock
    ) -> None:
        await reactor.handle(_approved("main"))

        github.merge_pull_request.assert_not_awaited()
        github.create_comment.assert_awaited_once()
