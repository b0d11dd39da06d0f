"""Command group: presence status."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from flatstore.commands._base import FlatGroup

if TYPE_CHECKING:
    from flatstore.commands._context import AppContext


@click.group(
    cls=FlatGroup,
    examples="""\
  flatstore status set AWAY
  flatstore status set DND --until 2024-06-01T08:00:00Z --note "exam week\"""",
)
def status() -> None:
    """Manage your presence status."""


@status.command(
    "set",
    examples="""\
  flatstore status set HOME
  flatstore status set DND --until 2024-06-01T08:00:00Z""",
)
@click.argument(
    "value",
    metavar="STATUS",
    type=click.Choice(["HOME", "AWAY", "OUT", "DND"], case_sensitive=False),
)
@click.option("--until", default=None, help="ISO timestamp ending a DND window.")
@click.option("--note", "status_note", default=None, help="Short status note.")
@click.option("--user", "user_id", default=None, help="Target user (default: you).")
@click.pass_obj
def set_status(
    app: AppContext,
    value: str,
    until: str | None,
    status_note: str | None,
    user_id: str | None,
) -> None:
    """Set STATUS. DND without a valid --until falls back to HOME."""
    action = {
        "type": "SET_STATUS",
        "userId": user_id,
        "status": value.upper(),
        "until": until,
        "statusNote": status_note,
    }
    app.emit(app.service.dispatch(action, fill_actor=True, op="status_set"))
