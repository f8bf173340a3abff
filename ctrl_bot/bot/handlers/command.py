"""Slash command handler for `/ctrl`."""

from typing import Any, Callable, Dict

import structlog

from ...commands.executor import CommandExecutor
from ...commands.responses import CommandResponse
from ...exceptions import PersistenceError
from ...notifications.service import NotificationService, PendingReply

logger = structlog.get_logger()

SAVE_FAILED_TEXT = (
    ":warning: Something went wrong saving the project registry. "
    "Your change may not have been applied; please try again later."
)


async def ctrl_command(
    ack: Callable, command: Dict[str, Any], context: Dict[str, Any]
) -> None:
    """Acknowledge, execute the command, and queue the reply."""
    await ack()

    deps = context.get("deps", {})
    executor: CommandExecutor = deps["command_executor"]
    notifications: NotificationService = deps["notification_service"]

    user_id = command.get("user_id", "")
    channel_id = command.get("channel_id", "")
    text = command.get("text", "")

    logger.info(
        "Slash command received",
        command=command.get("command"),
        text=text,
        user_id=user_id,
        channel_id=channel_id,
    )

    try:
        response = await executor.dispatch(text, user_id, channel_id)
    except PersistenceError:
        logger.exception(
            "Registry persistence failed",
            text=text,
            user_id=user_id,
            channel_id=channel_id,
        )
        response = CommandResponse(text=SAVE_FAILED_TEXT)

    await notifications.submit(
        PendingReply(
            channel_id=channel_id,
            response=response,
            response_url=command.get("response_url"),
        )
    )
