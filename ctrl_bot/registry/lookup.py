"""Read-only queries over a registry snapshot.

Every function is a linear scan in the registry's insertion order and
returns ``None`` rather than raising when nothing matches. When two
projects claim the same channel or repository, the first one wins.
"""

import re
from typing import Optional

from .models import Profile, Project, Registry

# <@U123> or <@U123|display-name>
_MENTION_RE = re.compile(r"^<@([A-Z0-9]+)(?:\|[^>]*)?>$", re.IGNORECASE)


def project_by_name(registry: Registry, name: str) -> Optional[Project]:
    return registry.projects.get(name)


def project_name_by_channel(registry: Registry, channel: str) -> Optional[str]:
    """Name of the first project bound to ``channel``."""
    return next(
        (
            name
            for name, project in registry.projects.items()
            if project.slack_channel == channel
        ),
        None,
    )


def project_by_channel(registry: Registry, channel: str) -> Optional[Project]:
    name = project_name_by_channel(registry, channel)
    return registry.projects[name] if name is not None else None


def project_by_repository(registry: Registry, repo: str) -> Optional[Project]:
    """First project whose GitHub repository is ``repo``.

    Projects without a repository never match.
    """
    return next(
        (
            project
            for project in registry.projects.values()
            if project.github_repo is not None and project.github_repo == repo
        ),
        None,
    )


def project_by_issue_tracker_project(
    registry: Registry, key: str
) -> Optional[Project]:
    return next(
        (
            project
            for project in registry.projects.values()
            if project.jira_project is not None and project.jira_project == key
        ),
        None,
    )


def profile_by_chat_user(registry: Registry, user_id: str) -> Optional[Profile]:
    return registry.profiles.get(user_id)


def profile_by_code_host_username(
    registry: Registry, username: str
) -> Optional[Profile]:
    return next(
        (p for p in registry.profiles.values() if p.github_username == username),
        None,
    )


def chat_user_by_code_host_username(
    registry: Registry, username: str
) -> Optional[str]:
    """Slack user ID whose profile links to ``username``."""
    return next(
        (
            user_id
            for user_id, profile in registry.profiles.items()
            if profile.github_username == username
        ),
        None,
    )


def parse_mention(token: str) -> Optional[str]:
    """Extract the user ID from a Slack mention token."""
    match = _MENTION_RE.match(token.strip())
    if not match:
        return None
    return match.group(1)


def resolve_mention(registry: Registry, token: str) -> Optional[Profile]:
    """Profile for the user referenced by a mention token."""
    user_id = parse_mention(token)
    if user_id is None:
        return None
    return profile_by_chat_user(registry, user_id)
