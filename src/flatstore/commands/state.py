"""Commands: inspect the store and dispatch raw actions."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING

import click

from flatstore.commands._base import FlatCommand
from flatstore.services.result import ServiceResult

if TYPE_CHECKING:
    from flatstore.commands._context import AppContext


@click.command(
    cls=FlatCommand,
    examples="""\
  flatstore show
  flatstore show --full
  flatstore --json show""",
)
@click.option("--full", is_flag=True, help="Include the whole persisted envelope.")
@click.pass_obj
def show(app: AppContext, full: bool) -> None:
    """Show the current user, their house, members and chores."""
    app.emit(app.service.show(full=full))


@click.command(
    "dispatch",
    cls=FlatCommand,
    examples="""\
  flatstore dispatch '{"type": "SET_THEME", "theme": "dark"}'
  flatstore dispatch '{"type": "ADD_NOTE", "note": {"houseId": "house_x", "text": "Hi"}}'
  echo '{"type": "LOGOUT"}' | flatstore dispatch -""",
)
@click.argument("action_json")
@click.pass_obj
def dispatch_cmd(app: AppContext, action_json: str) -> None:
    """Apply one raw action. ACTION_JSON is a JSON object, or - for stdin."""
    text = sys.stdin.read() if action_json == "-" else action_json
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        app.emit(ServiceResult.failure("dispatch", "INVALID_INPUT", f"Invalid JSON: {exc.msg}"))
        return
    if not isinstance(raw, dict):
        message = "Action must be a JSON object with a \"type\" key."
        app.emit(ServiceResult.failure("dispatch", "INVALID_INPUT", message))
        return
    app.emit(app.service.dispatch(raw))
