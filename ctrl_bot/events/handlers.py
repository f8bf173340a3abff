"""Pull request automation driven by GitHub webhook events.

PullRequestReactor: assigns authors, requests reviews from project
owners and managers, and merges approved pull requests for repositories
that belong to a registered project. Every event is handled on its own;
no per-PR state is kept between deliveries.
"""

from typing import Iterable, List, Optional, Sequence

import structlog

from ..exceptions import RemoteActionError
from ..github.client import GitHubClient
from ..registry.lookup import project_by_repository
from ..registry.models import Project, Registry
from ..registry.store import RegistryStore
from .types import GitHubEvent, PullRequestEvent, PullRequestReviewEvent

logger = structlog.get_logger()

REVIEWABLE_ACTIONS = frozenset({"opened", "reopened", "ready_for_review"})
REVIEW_SUBMITTED = "submitted"
REVIEW_APPROVED = "approved"
REVIEW_CHANGES_REQUESTED = "changes_requested"

BOT_PREFIX = "\U0001f916"


def _mentions(usernames: Iterable[str]) -> str:
    return ", ".join(f"@{name}" for name in usernames)


def reviewer_candidates(
    project: Project,
    managers: Sequence[str],
    author: str,
    contributors: Optional[Iterable[str]] = None,
) -> List[str]:
    """Owners then managers, minus the author, without duplicates.

    When ``contributors`` is given, candidates who never contributed to
    the repository are dropped.
    """
    allowed = set(contributors) if contributors is not None else None
    candidates: List[str] = []
    for username in [*project.project_owners, *managers]:
        if username == author or username in candidates:
            continue
        if allowed is not None and username not in allowed:
            continue
        candidates.append(username)
    return candidates


class PullRequestReactor:
    """Reacts to pull request and review events for tracked repositories."""

    def __init__(
        self,
        store: RegistryStore,
        github: GitHubClient,
        protected_branches: Iterable[str] = ("master", "main"),
        filter_by_contributors: bool = False,
    ) -> None:
        self.store = store
        self.github = github
        self.protected_branches = frozenset(protected_branches)
        self.filter_by_contributors = filter_by_contributors

    async def handle(self, event: GitHubEvent) -> None:
        """Route a decoded webhook event to its handler."""
        if isinstance(event, PullRequestReviewEvent):
            await self.handle_review(event)
        elif isinstance(event, PullRequestEvent):
            await self.handle_pull_request(event)

    def is_protected(self, branch: str) -> bool:
        return branch in self.protected_branches

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    async def handle_pull_request(self, event: PullRequestEvent) -> None:
        if event.action not in REVIEWABLE_ACTIONS:
            logger.debug(
                "Ignoring pull request action",
                action=event.action,
                repository=event.repository,
                number=event.number,
            )
            return

        registry = await self.store.load()
        project = self._tracked_project(registry, event.repository)
        if project is None:
            return

        repo = event.repository
        candidates = reviewer_candidates(
            project,
            registry.managers,
            event.author,
            contributors=await self._contributors(repo),
        )

        logger.info(
            "Handling pull request",
            repository=repo,
            number=event.number,
            action=event.action,
            author=event.author,
            reviewers=candidates,
        )

        await self.github.add_assignees(repo, event.number, [event.author])

        if self.is_protected(event.base_branch):
            await self.github.create_comment(
                repo,
                event.number,
                f"{BOT_PREFIX} Thanks @{event.author}. This pull request targets "
                f"`{event.base_branch}`, so I'm not requesting reviews "
                "automatically. Please add reviewers yourself.",
            )
            logger.info(
                "Review request suppressed for protected branch",
                repository=repo,
                number=event.number,
                base_branch=event.base_branch,
            )
            return

        try:
            if not candidates:
                raise RemoteActionError("No reviewers available")
            await self.github.request_reviewers(repo, event.number, candidates)
        except RemoteActionError as e:
            logger.warning(
                "Review request failed, asking author to add reviewers",
                repository=repo,
                number=event.number,
                error=str(e),
            )
            suggestion = f": {_mentions(candidates)}" if candidates else "."
            await self.github.create_comment(
                repo,
                event.number,
                f"{BOT_PREFIX} Thanks @{event.author}. I was unable to "
                "automatically request reviews for this PR. Please add them "
                f"manually{suggestion}",
            )
            return

        await self.github.create_comment(
            repo,
            event.number,
            f"{BOT_PREFIX} Thanks @{event.author}. Reviews have been requested "
            f"from the following project owners: {_mentions(candidates)}",
        )

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def handle_review(self, event: PullRequestReviewEvent) -> None:
        if event.action != REVIEW_SUBMITTED:
            return

        registry = await self.store.load()
        project = self._tracked_project(registry, event.repository)
        if project is None:
            return

        repo = event.repository

        if event.review_state == REVIEW_APPROVED:
            await self._merge_approved(event, repo)
        elif event.review_state == REVIEW_CHANGES_REQUESTED:
            await self.github.create_comment(
                repo,
                event.number,
                f"{BOT_PREFIX} @{event.author}, @{event.reviewer} requested "
                "changes. Please address the feedback and push an update.",
            )
            logger.info(
                "Changes requested",
                repository=repo,
                number=event.number,
                reviewer=event.reviewer,
            )
        else:
            logger.debug(
                "Ignoring review state",
                repository=repo,
                number=event.number,
                state=event.review_state,
            )

    async def _merge_approved(self, event: PullRequestReviewEvent, repo: str) -> None:
        if self.is_protected(event.base_branch):
            await self.github.create_comment(
                repo,
                event.number,
                f"{BOT_PREFIX} Approved by @{event.reviewer}. This pull request "
                f"targets `{event.base_branch}`, so it will not be merged "
                "automatically.",
            )
            logger.info(
                "Auto-merge suppressed for protected branch",
                repository=repo,
                number=event.number,
                base_branch=event.base_branch,
            )
            return

        await self.github.merge_pull_request(
            repo,
            event.number,
            commit_title=(
                f"Merge branch {event.head_branch} into {event.base_branch}."
            ),
            commit_message=(
                f"{BOT_PREFIX} Approved by {event.reviewer} and automatically merged."
            ),
        )
        logger.info(
            "Pull request merged",
            repository=repo,
            number=event.number,
            reviewer=event.reviewer,
        )
        await self.github.create_comment(
            repo,
            event.number,
            f"{BOT_PREFIX} Approved by @{event.reviewer} and merged into "
            f"`{event.base_branch}`.",
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _tracked_project(self, registry: Registry, repo: str) -> Optional[Project]:
        project = project_by_repository(registry, repo)
        if project is None:
            logger.info("No project found for repository", repository=repo)
        return project

    async def _contributors(self, repo: str) -> Optional[List[str]]:
        if not self.filter_by_contributors:
            return None
        try:
            return await self.github.list_contributors(repo)
        except RemoteActionError as e:
            logger.warning(
                "Could not list contributors, not filtering reviewers",
                repository=repo,
                error=str(e),
            )
            return None
