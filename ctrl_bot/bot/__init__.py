"""Slack Bolt application and slash-command handlers."""
