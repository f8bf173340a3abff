"""Slack mrkdwn and Block Kit helpers.

Only three characters need escaping in regular mrkdwn text: &, <, >.
User and channel references use Slack's angle-bracket syntax, so they
are built after escaping the surrounding text.
"""

from typing import Any, Dict, Optional


def escape_mrkdwn(text: str) -> str:
    """Escape the 3 special characters for Slack mrkdwn.

    Slack requires &, <, > to be escaped as HTML entities even inside
    mrkdwn text so they are not interpreted as message formatting
    directives.
    """
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def user_mention(user_id: str) -> str:
    return f"<@{user_id}>"


def channel_mention(channel_id: str) -> str:
    return f"<#{channel_id}>"


def inline_code(text: str) -> str:
    """Wrap text in backticks, dropping any backticks inside it."""
    return f"`{escape_mrkdwn(text.replace('`', ''))}`"


def section_block(
    text: str, accessory: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """A mrkdwn section block, optionally with an accessory element."""
    block: Dict[str, Any] = {
        "type": "section",
        "text": {"type": "mrkdwn", "text": text},
    }
    if accessory is not None:
        block["accessory"] = accessory
    return block


def context_block(text: str) -> Dict[str, Any]:
    return {"type": "context", "elements": [{"type": "mrkdwn", "text": text}]}


def link_button(label: str, url: str, action_id: str) -> Dict[str, Any]:
    """A button element that opens ``url``."""
    return {
        "type": "button",
        "text": {"type": "plain_text", "text": label, "emoji": True},
        "url": url,
        "action_id": action_id,
    }
