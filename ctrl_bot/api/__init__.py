"""HTTP surface: GitHub webhooks, Slack HTTP mode, health check."""

from .server import create_api_app, run_api_server
from .webhooks import GitHubWebhookHandler, verify_signature

__all__ = [
    "GitHubWebhookHandler",
    "create_api_app",
    "run_api_server",
    "verify_signature",
]
