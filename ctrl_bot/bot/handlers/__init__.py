"""Slack Bolt handler exports."""

from .command import ctrl_command

__all__ = ["ctrl_command"]
