"""Typed GitHub webhook events.

Webhook payloads are validated once at the boundary with pydantic and
flattened into small dataclasses the reactor works with. Anything that
does not fit raises :class:`EventDecodeError`.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from ..exceptions import EventDecodeError

PULL_REQUEST_EVENT = "pull_request"
PULL_REQUEST_REVIEW_EVENT = "pull_request_review"


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class _User(_Payload):
    login: str


class _Repository(_Payload):
    full_name: str


class _BranchRef(_Payload):
    ref: str
    repo: Optional[_Repository] = None


class _PullRequest(_Payload):
    number: int
    user: _User
    head: _BranchRef
    base: _BranchRef


class _Review(_Payload):
    state: str
    user: _User


class _PullRequestPayload(_Payload):
    action: str
    pull_request: _PullRequest


class _ReviewPayload(_PullRequestPayload):
    review: _Review


@dataclass(frozen=True)
class PullRequestEvent:
    """A pull request was opened, reopened, edited, closed, ..."""

    action: str
    repository: str
    number: int
    author: str
    base_branch: str
    head_branch: str


@dataclass(frozen=True)
class PullRequestReviewEvent:
    """A review on a pull request was submitted, edited or dismissed."""

    action: str
    repository: str
    number: int
    author: str
    base_branch: str
    head_branch: str
    review_state: str
    reviewer: str


GitHubEvent = Union[PullRequestEvent, PullRequestReviewEvent]


def _repository_name(pull_request: _PullRequest) -> str:
    # head.repo is null when the fork behind the PR was deleted
    repo = pull_request.head.repo or pull_request.base.repo
    if repo is None:
        raise EventDecodeError("pull_request has no repository")
    return repo.full_name


def decode_event(event_name: str, payload: Dict[str, Any]) -> Optional[GitHubEvent]:
    """Decode a webhook delivery.

    Returns ``None`` for event types the bot does not react to.
    """
    try:
        if event_name == PULL_REQUEST_EVENT:
            pr_payload = _PullRequestPayload.model_validate(payload)
            pr = pr_payload.pull_request
            return PullRequestEvent(
                action=pr_payload.action,
                repository=_repository_name(pr),
                number=pr.number,
                author=pr.user.login,
                base_branch=pr.base.ref,
                head_branch=pr.head.ref,
            )

        if event_name == PULL_REQUEST_REVIEW_EVENT:
            review_payload = _ReviewPayload.model_validate(payload)
            pr = review_payload.pull_request
            return PullRequestReviewEvent(
                action=review_payload.action,
                repository=_repository_name(pr),
                number=pr.number,
                author=pr.user.login,
                base_branch=pr.base.ref,
                head_branch=pr.head.ref,
                review_state=review_payload.review.state.lower(),
                reviewer=review_payload.review.user.login,
            )
    except ValidationError as e:
        raise EventDecodeError(f"Invalid {event_name} payload: {e}") from e

    return None
