"""GitHub webhook events and the pull request reactor."""

from .handlers import PullRequestReactor
from .types import (
    GitHubEvent,
    PullRequestEvent,
    PullRequestReviewEvent,
    decode_event,
)

__all__ = [
    "GitHubEvent",
    "PullRequestEvent",
    "PullRequestReactor",
    "PullRequestReviewEvent",
    "decode_event",
]
