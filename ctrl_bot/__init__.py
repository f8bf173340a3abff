"""Ctrl Slack Bot.

A Slack bot that keeps a small registry of projects (channel, GitHub
repository, owners) and automates pull request assignment, review
requests and merging for the repositories it tracks.

Features:
- `/ctrl` slash command for managing projects, owners and profiles
- YAML-backed registry with optional git publishing
- GitHub webhook handling for pull requests and reviews
- Socket Mode or HTTP deployment
"""

__version__ = "1.0.0"
__license__ = "MIT"
