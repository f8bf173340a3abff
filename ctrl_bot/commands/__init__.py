"""`/ctrl` command parsing and execution."""

from .executor import CommandExecutor
from .parser import Command, CommandError, CommandErrorKind, Verb, parse_command
from .responses import CommandResponse

__all__ = [
    "Command",
    "CommandError",
    "CommandErrorKind",
    "CommandExecutor",
    "CommandResponse",
    "Verb",
    "parse_command",
]
