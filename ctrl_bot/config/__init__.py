"""Configuration loading."""

from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError

from ..exceptions import InvalidConfigError, MissingConfigError
from .settings import Settings

logger = structlog.get_logger()


def load_config(env_file: Optional[Path] = None) -> Settings:
    """Load settings from the environment and an optional dotenv file."""
    try:
        if env_file is not None:
            settings = Settings(_env_file=env_file)  # type: ignore[call-arg]
        else:
            settings = Settings()  # type: ignore[call-arg]
    except ValidationError as e:
        missing = [
            ".".join(str(part) for part in error["loc"])
            for error in e.errors()
            if error["type"] == "missing"
        ]
        if missing:
            raise MissingConfigError(
                f"Missing required settings: {', '.join(missing)}"
            ) from e
        raise InvalidConfigError(f"Invalid configuration: {e}") from e

    logger.debug(
        "Settings loaded",
        socket_mode=settings.slack_socket_mode,
        registry_path=str(settings.registry_path),
        push_enabled=settings.registry_push_enabled,
    )
    return settings


__all__ = ["Settings", "load_config"]
