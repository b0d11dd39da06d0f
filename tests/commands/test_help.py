"""Parametrized help tests for all CLI commands."""

from __future__ import annotations

import pytest
from click.testing import CliRunner

from flatstore.cli import cli

# (CLI args, expected keywords in output)
HELP_COMMANDS: list[tuple[list[str], list[str]]] = [
    # -- house group --
    (
        ["house", "--help"],
        ["create", "join", "leave", "rename", "currency", "transfer", "invite"],
    ),
    (["house", "create", "--help"], ["NAME", "--currency", "--invite-code", "--id"]),
    (["house", "join", "--help"], ["CODE", "--remote"]),
    (["house", "leave", "--help"], ["--user"]),
    (["house", "rename", "--help"], ["NAME"]),
    (["house", "currency", "--help"], ["CODE"]),
    (["house", "transfer", "--help"], ["TO_USER_ID"]),
    (["house", "invite", "--help"], ["--code"]),
    # -- chore group --
    (["chore", "--help"], ["complete", "toggle"]),
    (["chore", "complete", "--help"], ["CHORE_ID", "--user"]),
    (["chore", "toggle", "--help"], ["CHORE_ID", "ITEM_ID"]),
    # -- status group --
    (["status", "--help"], ["set"]),
    (["status", "set", "--help"], ["STATUS", "--until", "--note", "--user"]),
    # -- standalone commands --
    (["init", "--help"], ["--seed", "--force"]),
    (["show", "--help"], ["--full"]),
    (["dispatch", "--help"], ["ACTION_JSON"]),
    (["login", "--help"], ["EMAIL", "--name", "--wp-id"]),
    (["signup", "--help"], ["NAME", "EMAIL", "--wp-id"]),
    (["logout", "--help"], []),
    (["sync", "--help"], ["SOURCE"]),
    (["dnd-expire", "--help"], []),
]


def _help_id(item: tuple[list[str], list[str]]) -> str:
    args, _ = item
    return "_".join(a for a in args if a != "--help")


@pytest.mark.parametrize(
    "args,expected_keywords",
    HELP_COMMANDS,
    ids=[_help_id(item) for item in HELP_COMMANDS],
)
def test_help_output(
    cli_runner: CliRunner, args: list[str], expected_keywords: list[str]
) -> None:
    result = cli_runner.invoke(cli, args)
    assert result.exit_code == 0
    for kw in expected_keywords:
        assert kw in result.output, f"Expected '{kw}' in help output for {args}"


def test_status_choices_listed(cli_runner: CliRunner) -> None:
    result = cli_runner.invoke(cli, ["status", "set", "--help"])
    for value in ("HOME", "AWAY", "OUT", "DND"):
        assert value in result.output
