"""Apply `/ctrl` commands to the registry.

Mutating commands run inside :meth:`RegistryStore.mutate`: every
precondition is checked against the loaded snapshot before the single
change is made, and a failed check raises out of the block so nothing is
written. :meth:`CommandExecutor.dispatch` turns those failures into
replies; persistence errors are not user errors and propagate.
"""

from typing import Awaitable, Callable, Dict, Tuple

import structlog

from ..bot.utils.slack_format import inline_code
from ..exceptions import (
    AlreadyOwnerError,
    CommandFailure,
    MalformedMentionError,
    NotOwnerError,
    ProjectExistsError,
    ProjectNotFoundError,
    UserNotLinkedError,
)
from ..registry.lookup import (
    parse_mention,
    project_name_by_channel,
    resolve_mention,
)
from ..registry.models import Profile, Project, Registry
from ..registry.store import RegistryStore
from . import responses
from .parser import Command, CommandError, CommandErrorKind, Verb, parse_command
from .responses import CommandResponse

logger = structlog.get_logger()

Handler = Callable[[Command, str, str], Awaitable[CommandResponse]]


class CommandExecutor:
    """Executes parsed commands on behalf of a Slack user in a channel."""

    def __init__(self, store: RegistryStore, command_name: str = "/ctrl") -> None:
        self.store = store
        self.command_name = command_name
        self._handlers: Dict[Verb, Handler] = {
            Verb.HELP: self._help,
            Verb.LIST: self._list,
            Verb.CREATE: self._create,
            Verb.DELETE: self._delete,
            Verb.ADD: self._add,
            Verb.REMOVE: self._remove,
            Verb.GITHUB: self._github,
            Verb.ME_GITHUB: self._me_github,
        }

    async def dispatch(
        self, text: str, user_id: str, channel_id: str
    ) -> CommandResponse:
        """Parse and execute ``text``, mapping rejections to replies."""
        parsed = parse_command(text)
        if isinstance(parsed, CommandError):
            logger.info(
                "Command rejected by parser",
                kind=parsed.kind.value,
                text=text,
                user_id=user_id,
            )
            return self._parse_error_response(parsed)

        try:
            response = await self.execute(parsed, user_id, channel_id)
        except CommandFailure as e:
            logger.info(
                "Command rejected",
                verb=parsed.verb.value,
                reason=type(e).__name__,
                user_id=user_id,
                channel_id=channel_id,
            )
            return self._failure_response(e)

        logger.info(
            "Command executed",
            verb=parsed.verb.value,
            user_id=user_id,
            channel_id=channel_id,
        )
        return response

    async def execute(
        self, command: Command, user_id: str, channel_id: str
    ) -> CommandResponse:
        """Execute ``command``; raises :class:`CommandFailure` on rejection."""
        handler = self._handlers[command.verb]
        return await handler(command, user_id, channel_id)

    # ------------------------------------------------------------------
    # Read-only commands
    # ------------------------------------------------------------------

    async def _help(
        self, command: Command, user_id: str, channel_id: str
    ) -> CommandResponse:
        return CommandResponse(text=responses.help_text(self.command_name))

    async def _list(
        self, command: Command, user_id: str, channel_id: str
    ) -> CommandResponse:
        registry = await self.store.load()
        return responses.render_project_list(responses.summarize_projects(registry))

    # ------------------------------------------------------------------
    # Mutating commands
    # ------------------------------------------------------------------

    async def _create(
        self, command: Command, user_id: str, channel_id: str
    ) -> CommandResponse:
        name = command.argument
        async with self.store.mutate() as registry:
            if name in registry.projects:
                raise ProjectExistsError(name)
            registry.projects[name] = Project(slack_channel=channel_id)
        return CommandResponse(text=f"Project {inline_code(name)} created.")

    async def _delete(
        self, command: Command, user_id: str, channel_id: str
    ) -> CommandResponse:
        name = command.argument
        async with self.store.mutate() as registry:
            if name not in registry.projects:
                raise ProjectNotFoundError(name)
            del registry.projects[name]
        return CommandResponse(text=f"Project {inline_code(name)} deleted.")

    async def _add(
        self, command: Command, user_id: str, channel_id: str
    ) -> CommandResponse:
        mention = command.argument
        async with self.store.mutate() as registry:
            name, project = self._channel_project(registry, channel_id)
            profile = self._mentioned_profile(registry, mention)
            if profile.github_username in project.project_owners:
                raise AlreadyOwnerError(profile.github_username, name)
            project.project_owners.append(profile.github_username)
        return CommandResponse(
            text=f"User {mention} added as an owner of {inline_code(name)}."
        )

    async def _remove(
        self, command: Command, user_id: str, channel_id: str
    ) -> CommandResponse:
        mention = command.argument
        async with self.store.mutate() as registry:
            name, project = self._channel_project(registry, channel_id)
            profile = self._mentioned_profile(registry, mention)
            if profile.github_username not in project.project_owners:
                raise NotOwnerError(profile.github_username, name)
            project.project_owners.remove(profile.github_username)
        return CommandResponse(
            text=f"User {mention} removed as an owner of {inline_code(name)}."
        )

    async def _github(
        self, command: Command, user_id: str, channel_id: str
    ) -> CommandResponse:
        repo = command.argument
        async with self.store.mutate() as registry:
            name, project = self._channel_project(registry, channel_id)
            project.github_repo = repo
        return CommandResponse(
            text=(
                f"GitHub repository for {inline_code(name)} set to "
                f"{inline_code(repo)}."
            )
        )

    async def _me_github(
        self, command: Command, user_id: str, channel_id: str
    ) -> CommandResponse:
        username = command.argument
        async with self.store.mutate() as registry:
            registry.profiles[user_id] = Profile(github_username=username)
        return CommandResponse(text=f"GitHub username set to {inline_code(username)}.")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _channel_project(registry: Registry, channel_id: str) -> Tuple[str, Project]:
        name = project_name_by_channel(registry, channel_id)
        if name is None:
            raise ProjectNotFoundError()
        return name, registry.projects[name]

    @staticmethod
    def _mentioned_profile(registry: Registry, mention: str) -> Profile:
        user_id = parse_mention(mention)
        if user_id is None:
            raise MalformedMentionError(mention)
        profile = resolve_mention(registry, mention)
        if profile is None:
            raise UserNotLinkedError(user_id)
        return profile

    def _parse_error_response(self, error: CommandError) -> CommandResponse:
        if error.kind is CommandErrorKind.NOT_ENOUGH_ARGUMENTS:
            return CommandResponse(
                text=responses.not_enough_arguments(self.command_name)
            )
        return CommandResponse(text=responses.invalid_command(self.command_name))

    def _failure_response(self, error: CommandFailure) -> CommandResponse:
        name = self.command_name
        if isinstance(error, ProjectExistsError):
            text = f"Project {inline_code(error.name)} already exists."
        elif isinstance(error, ProjectNotFoundError):
            if error.name:
                text = f"Project {inline_code(error.name)} does not exist."
            else:
                text = responses.project_not_found(name)
        elif isinstance(error, UserNotLinkedError):
            text = responses.user_not_linked(name)
        elif isinstance(error, AlreadyOwnerError):
            text = (
                f"{inline_code(error.username)} is already an owner of "
                f"{inline_code(error.project)}."
            )
        elif isinstance(error, NotOwnerError):
            text = (
                f"{inline_code(error.username)} is not an owner of "
                f"{inline_code(error.project)}."
            )
        elif isinstance(error, MalformedMentionError):
            text = (
                f"{inline_code(error.token)} is not a user. "
                "Mention them with `@name`."
            )
        else:
            text = responses.invalid_command(name)
        return CommandResponse(text=text)
