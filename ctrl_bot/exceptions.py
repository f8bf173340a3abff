"""Custom exceptions for Ctrl Slack Bot."""


class CtrlBotError(Exception):
    """Base exception for Ctrl Slack Bot."""


class ConfigurationError(CtrlBotError):
    """Configuration-related errors."""


class MissingConfigError(ConfigurationError):
    """Required configuration is missing."""


class InvalidConfigError(ConfigurationError):
    """Configuration is invalid."""


class CommandFailure(CtrlBotError):
    """A command was rejected before any mutation was applied."""


class UserInputError(CommandFailure):
    """Command input could not be understood."""


class MalformedMentionError(UserInputError):
    """Token is not a Slack user mention."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Not a user mention: {token}")
        self.token = token


class NotFoundError(CommandFailure):
    """A project or profile does not exist."""


class ProjectNotFoundError(NotFoundError):
    """No project matches the given name or channel."""

    def __init__(self, name: str | None = None) -> None:
        super().__init__(f"Project not found: {name}" if name else "Project not found")
        self.name = name


class UserNotLinkedError(NotFoundError):
    """Slack user has no linked GitHub username."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User has not linked a GitHub account: {user_id}")
        self.user_id = user_id


class StateConflictError(CommandFailure):
    """The registry is already in a state that conflicts with the command."""


class ProjectExistsError(StateConflictError):
    """A project with this name already exists."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Project already exists: {name}")
        self.name = name


class AlreadyOwnerError(StateConflictError):
    """User is already an owner of the project."""

    def __init__(self, username: str, project: str) -> None:
        super().__init__(f"{username} is already an owner of {project}")
        self.username = username
        self.project = project


class NotOwnerError(StateConflictError):
    """User is not an owner of the project."""

    def __init__(self, username: str, project: str) -> None:
        super().__init__(f"{username} is not an owner of {project}")
        self.username = username
        self.project = project


class RemoteActionError(CtrlBotError):
    """A call to GitHub or Slack failed."""


class GitHubAPIError(RemoteActionError):
    """GitHub REST API call failed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class SlackDeliveryError(RemoteActionError):
    """A response could not be delivered to Slack."""


class PersistenceError(CtrlBotError):
    """Registry file could not be read, written or published."""


class EventDecodeError(CtrlBotError):
    """Webhook payload does not have the expected shape."""
