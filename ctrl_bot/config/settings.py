"""Configuration management using Pydantic Settings.

Features:
- Environment variable loading
- Type validation
- Default values
- Computed properties
"""

from pathlib import Path
from typing import Annotated, Any, List, Optional

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_REGISTRY_PATH = "manifest.yaml"
DEFAULT_PROTECTED_BRANCHES = ["master", "main"]
DEFAULT_OUTBOUND_TIMEOUT_SECONDS = 10.0
DEFAULT_DELIVERY_MAX_ATTEMPTS = 3


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Slack settings
    slack_bot_token: SecretStr = Field(
        ..., description="Slack Bot User OAuth Token (xoxb-...)"
    )
    slack_app_token: Optional[SecretStr] = Field(
        None, description="Slack App-Level Token for Socket Mode (xapp-...)"
    )
    slack_signing_secret: Optional[SecretStr] = Field(
        None, description="Slack Signing Secret (required in HTTP mode)"
    )
    slack_socket_mode: bool = Field(
        True, description="Receive Slack traffic over Socket Mode instead of HTTP"
    )
    slack_command: str = Field("/ctrl", description="Slash command name")
    slack_events_path: str = Field(
        "/slack/events", description="HTTP path for Slack requests in HTTP mode"
    )

    # GitHub settings
    github_token: SecretStr = Field(..., description="GitHub personal access token")
    github_api_url: str = Field(
        "https://api.github.com", description="GitHub REST API base URL"
    )
    github_webhook_secret: Optional[SecretStr] = Field(
        None, description="GitHub webhook HMAC secret"
    )

    # HTTP server
    api_server_host: str = Field("0.0.0.0", description="Webhook server bind host")
    api_server_port: int = Field(3000, description="Webhook server port")

    # Registry
    registry_path: Path = Field(
        Path(DEFAULT_REGISTRY_PATH), description="Path to the YAML project registry"
    )
    registry_push_enabled: bool = Field(
        False, description="Commit and push the registry file after every change"
    )
    registry_push_remote: str = Field("origin", description="Git remote to push to")
    registry_push_branch: str = Field("master", description="Git branch to push to")
    registry_commit_message: str = Field(
        "Updated config", description="Commit message for registry updates"
    )

    # Pull request automation
    protected_branches: Annotated[List[str], NoDecode] = Field(
        default=list(DEFAULT_PROTECTED_BRANCHES),
        description="Base branches where review requests and merges are suppressed",
    )
    filter_reviewers_by_contributors: bool = Field(
        False,
        description="Only request reviews from users who contributed to the repo",
    )

    # Outbound calls
    outbound_timeout_seconds: float = Field(
        DEFAULT_OUTBOUND_TIMEOUT_SECONDS,
        description="Timeout for each outbound GitHub/Slack call",
        gt=0,
    )
    delivery_max_attempts: int = Field(
        DEFAULT_DELIVERY_MAX_ATTEMPTS,
        description="Attempts per Slack response before giving up",
        ge=1,
        le=10,
    )

    # Monitoring
    log_level: str = Field("INFO", description="Logging level")
    debug: bool = Field(False, description="Enable debug mode")

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    @field_validator("protected_branches", mode="before")
    @classmethod
    def parse_str_list(cls, v: Any) -> Optional[List[str]]:
        """Parse comma-separated string lists."""
        if v is None:
            return None
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        if isinstance(v, list):
            return [str(item) for item in v]
        return v  # type: ignore[no-any-return]

    @field_validator("slack_command")
    @classmethod
    def validate_slack_command(cls, v: str) -> str:
        """Slash commands always start with a slash."""
        v = v.strip()
        if not v.startswith("/") or len(v) < 2:
            raise ValueError("slack_command must look like '/name'")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()  # type: ignore[no-any-return]

    @model_validator(mode="after")
    def validate_cross_field_dependencies(self) -> "Settings":
        """Validate dependencies between fields."""
        if self.slack_socket_mode and not self.slack_app_token:
            raise ValueError("slack_app_token required when slack_socket_mode is True")

        if not self.slack_socket_mode and not self.slack_signing_secret:
            raise ValueError(
                "slack_signing_secret required when slack_socket_mode is False"
            )

        if self.registry_push_enabled and not self.registry_push_remote:
            raise ValueError(
                "registry_push_remote required when registry_push_enabled is True"
            )

        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug

    @property
    def slack_bot_token_str(self) -> str:
        """Get Slack bot token as string."""
        return self.slack_bot_token.get_secret_value()

    @property
    def slack_app_token_str(self) -> Optional[str]:
        """Get Slack app token as string."""
        if self.slack_app_token:
            return self.slack_app_token.get_secret_value()
        return None

    @property
    def slack_signing_secret_str(self) -> Optional[str]:
        """Get Slack signing secret as string."""
        if self.slack_signing_secret:
            return self.slack_signing_secret.get_secret_value()
        return None

    @property
    def github_token_str(self) -> str:
        """Get GitHub token as string."""
        return self.github_token.get_secret_value()

    @property
    def github_webhook_secret_str(self) -> Optional[str]:
        """Get GitHub webhook secret as string."""
        if self.github_webhook_secret:
            return self.github_webhook_secret.get_secret_value()
        return None
