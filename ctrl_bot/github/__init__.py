"""GitHub REST integration."""

from .client import GitHubClient

__all__ = ["GitHubClient"]
