"""Command group: chore completion and checklists."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from flatstore.commands._base import FlatGroup

if TYPE_CHECKING:
    from flatstore.commands._context import AppContext


@click.group(
    cls=FlatGroup,
    examples="""\
  flatstore chore complete chore_5d0c1m2x8a
  flatstore chore toggle chore_5d0c1m2x8a item_0p3n7b2k9z""",
)
def chore() -> None:
    """Complete chores and tick checklist items."""


@chore.command(examples="  flatstore chore complete chore_5d0c1m2x8a")
@click.argument("chore_id")
@click.option("--user", "user_id", default=None, help="Completing user (default: you).")
@click.pass_obj
def complete(app: AppContext, chore_id: str, user_id: str | None) -> None:
    """Complete the current occurrence and rotate to the next assignee."""
    action = {"type": "COMPLETE_CHORE", "choreId": chore_id, "userId": user_id}
    app.emit(app.service.dispatch(action, fill_actor=True, op="chore_complete"))


@chore.command(examples="  flatstore chore toggle chore_5d0c1m2x8a item_0p3n7b2k9z")
@click.argument("chore_id")
@click.argument("item_id")
@click.pass_obj
def toggle(app: AppContext, chore_id: str, item_id: str) -> None:
    """Flip one checklist item."""
    action = {"type": "TOGGLE_CHORE_ITEM", "choreId": chore_id, "itemId": item_id}
    app.emit(app.service.dispatch(action, op="chore_toggle"))
