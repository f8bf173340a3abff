"""Tests for `/ctrl` command parsing."""

import pytest

from ctrl_bot.commands.parser import (
    Command,
    CommandError,
    CommandErrorKind,
    Verb,
    parse_command,
)


class TestParseCommand:
    """Verb recognition and argument counting."""

    @pytest.mark.parametrize(
        "text, verb, args",
        [
            ("help", Verb.HELP, ()),
            ("list", Verb.LIST, ()),
            ("create proj1", Verb.CREATE, ("proj1",)),
            ("delete proj1", Verb.DELETE, ("proj1",)),
            ("add <@U123|alice>", Verb.ADD, ("<@U123|alice>",)),
            ("remove <@U123>", Verb.REMOVE, ("<@U123>",)),
            ("github repo-org/repo-name", Verb.GITHUB, ("repo-org/repo-name",)),
            ("me github alice", Verb.ME_GITHUB, ("alice",)),
        ],
    )
    def test_recognized_commands(self, text: str, verb: Verb, args: tuple) -> None:
        assert parse_command(text) == Command(verb, args)

    def test_extra_whitespace_ignored(self) -> None:
        assert parse_command("  create   proj1  ") == Command(Verb.CREATE, ("proj1",))

    def test_extra_arguments_dropped(self) -> None:
        assert parse_command("list everything now") == Command(Verb.LIST)
        assert parse_command("create a b") == Command(Verb.CREATE, ("a",))

    def test_verb_is_case_insensitive(self) -> None:
        assert parse_command("HELP") == Command(Verb.HELP)
        assert parse_command("Me GitHub alice") == Command(Verb.ME_GITHUB, ("alice",))

    def test_argument_case_preserved(self) -> None:
        assert parse_command("create MyProject").argument == "MyProject"

    @pytest.mark.parametrize("text", ["", "   ", "launch", "me slack alice"])
    def test_unknown_commands(self, text: str) -> None:
        result = parse_command(text)
        assert isinstance(result, CommandError)
        assert result.kind is CommandErrorKind.NOT_FOUND

    @pytest.mark.parametrize(
        "text", ["create", "delete", "add", "remove", "github", "me", "me github"]
    )
    def test_missing_arguments(self, text: str) -> None:
        result = parse_command(text)
        assert isinstance(result, CommandError)
        assert result.kind is CommandErrorKind.NOT_ENOUGH_ARGUMENTS
