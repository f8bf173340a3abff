"""Slack reply delivery."""

from .service import NotificationService, PendingReply

__all__ = ["NotificationService", "PendingReply"]
