"""Replies produced by `/ctrl` commands.

Every reply carries a plain-text ``text``; replies that benefit from
layout (the project list) also carry Block Kit ``blocks``, in which case
``text`` is the notification fallback.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..bot.utils.slack_format import (
    channel_mention,
    context_block,
    escape_mrkdwn,
    inline_code,
    link_button,
    section_block,
    user_mention,
)
from ..registry.lookup import chat_user_by_code_host_username
from ..registry.models import Project, Registry

GITHUB_WEB_URL = "https://github.com"

# Slack rejects messages with more than 50 blocks
MAX_BLOCKS = 50


@dataclass
class CommandResponse:
    """A reply to deliver back to the channel the command came from."""

    text: str
    blocks: Optional[List[Dict[str, Any]]] = None
    response_type: str = "in_channel"

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "text": self.text,
            "response_type": self.response_type,
        }
        if self.blocks:
            payload["blocks"] = self.blocks
        return payload


@dataclass
class ProjectSummary:
    """One row of the project list."""

    name: str
    channel: str
    repository: Optional[str] = None
    owners: List[str] = field(default_factory=list)


def help_text(command: str = "/ctrl") -> str:
    return (
        ":helmet_with_white_cross: Here's a simple help guide for all the "
        "commands available.\n\n"
        f"- `{command} help`: Show this help guide.\n"
        f"- `{command} list`: List all projects.\n"
        f"- `{command} create <project_name>`: Create a new project, "
        "automatically assigning it to this channel.\n"
        f"- `{command} delete <project_name>`: Delete a project.\n"
        f"- `{command} add <@user>`: Add a user as an owner of this channel's "
        "project.\n"
        f"- `{command} remove <@user>`: Remove a user as an owner of this "
        "channel's project.\n"
        f"- `{command} github <owner/repo>`: Set the GitHub repository for this "
        "project (PRs will be automatically assigned, reviewed and merged).\n"
        f"- `{command} me github <github_username>`: Set your GitHub username."
    )


def invalid_command(command: str = "/ctrl") -> str:
    return f"Invalid command. Use `{command} help` for a list of commands."


def not_enough_arguments(command: str = "/ctrl") -> str:
    return f"Not enough arguments. Use `{command} help` for a list of commands."


def project_not_found(command: str = "/ctrl") -> str:
    return (
        "This channel has no project. "
        f"Use `{command} create <project_name>` here, or `{command} list` "
        "to see all projects."
    )


def user_not_linked(command: str = "/ctrl") -> str:
    return (
        "This user must link their GitHub account first. "
        f"Use `{command} me github <github_username>`."
    )


def summarize_projects(registry: Registry) -> List[ProjectSummary]:
    """Project rows in registry order, with owners resolved for display."""
    return [
        ProjectSummary(
            name=name,
            channel=project.slack_channel,
            repository=project.github_repo,
            owners=_owner_names(registry, project),
        )
        for name, project in registry.projects.items()
    ]


def _owner_names(registry: Registry, project: Project) -> List[str]:
    names: List[str] = []
    for username in project.project_owners:
        user_id = chat_user_by_code_host_username(registry, username)
        names.append(user_mention(user_id) if user_id else escape_mrkdwn(username))
    return names


def render_project_list(summaries: List[ProjectSummary]) -> CommandResponse:
    """Block Kit list of projects with a GitHub button where bound."""
    if not summaries:
        return CommandResponse(text="No projects yet.")

    header = "Here's a list of all projects:"
    blocks: List[Dict[str, Any]] = [section_block(header)]
    lines: List[str] = [header]

    # header and a trailing overflow note take two blocks
    shown = summaries
    if len(summaries) + 1 > MAX_BLOCKS:
        shown = summaries[: MAX_BLOCKS - 2]

    for summary in summaries:
        lines.append(f"- {summary.name} in {channel_mention(summary.channel)}")

    for summary in shown:
        owners = ", ".join(summary.owners) if summary.owners else "_none_"
        text = (
            f"{inline_code(summary.name)} in {channel_mention(summary.channel)}\n"
            f"Owners: {owners}"
        )
        accessory = None
        if summary.repository:
            accessory = link_button(
                "GitHub",
                f"{GITHUB_WEB_URL}/{summary.repository}",
                action_id=f"github:{summary.name}",
            )
        blocks.append(section_block(text, accessory))

    hidden = len(summaries) - len(shown)
    if hidden:
        blocks.append(context_block(f"…and {hidden} more."))

    return CommandResponse(text="\n".join(lines), blocks=blocks)
