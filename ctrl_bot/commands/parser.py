"""Parse `/ctrl` command text into typed commands.

Text is split on whitespace; the first token is the verb and the rest
are positional arguments. There is no quoting, so an argument can never
contain whitespace. Extra arguments are ignored.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union


class Verb(str, Enum):
    HELP = "help"
    LIST = "list"
    CREATE = "create"
    DELETE = "delete"
    ADD = "add"
    REMOVE = "remove"
    GITHUB = "github"
    ME_GITHUB = "me github"


class CommandErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    NOT_ENOUGH_ARGUMENTS = "not_enough_arguments"


@dataclass(frozen=True)
class Command:
    """A recognized command with its positional arguments."""

    verb: Verb
    args: Tuple[str, ...] = ()

    @property
    def argument(self) -> str:
        """The single argument every argument-taking verb uses."""
        return self.args[0]


@dataclass(frozen=True)
class CommandError:
    """Text that could not be turned into a command."""

    kind: CommandErrorKind
    text: str = ""


ParseResult = Union[Command, CommandError]

# verb -> required argument count
_ARITY: Dict[str, Tuple[Verb, int]] = {
    "help": (Verb.HELP, 0),
    "list": (Verb.LIST, 0),
    "create": (Verb.CREATE, 1),
    "delete": (Verb.DELETE, 1),
    "add": (Verb.ADD, 1),
    "remove": (Verb.REMOVE, 1),
    "github": (Verb.GITHUB, 1),
}

# "me" takes a sub-command and one value
_ME_SUBCOMMANDS: Dict[str, Verb] = {
    "github": Verb.ME_GITHUB,
}


def parse_command(text: str) -> ParseResult:
    """Parse raw command text (without the slash command itself)."""
    tokens = text.split()
    if not tokens:
        return CommandError(CommandErrorKind.NOT_FOUND, text)

    head, rest = tokens[0].lower(), tokens[1:]

    if head == "me":
        if len(rest) < 2:
            return CommandError(CommandErrorKind.NOT_ENOUGH_ARGUMENTS, text)
        verb = _ME_SUBCOMMANDS.get(rest[0].lower())
        if verb is None:
            return CommandError(CommandErrorKind.NOT_FOUND, text)
        return Command(verb, (rest[1],))

    entry = _ARITY.get(head)
    if entry is None:
        return CommandError(CommandErrorKind.NOT_FOUND, text)

    verb, arity = entry
    if len(rest) < arity:
        return CommandError(CommandErrorKind.NOT_ENOUGH_ARGUMENTS, text)
    return Command(verb, tuple(rest[:arity]))
