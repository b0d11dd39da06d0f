"""Commands: remote reconciliation and the DND expiry sweep."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from flatstore.commands._base import FlatCommand
from flatstore.services.result import ServiceResult

if TYPE_CHECKING:
    from flatstore.commands._context import AppContext


@click.command(
    cls=FlatCommand,
    examples="""\
  flatstore sync houses.json
  curl -s https://example.org/houses | flatstore sync -
  flatstore --json sync houses.json""",
)
@click.argument("source")
@click.pass_obj
def sync(app: AppContext, source: str) -> None:
    """Reconcile remote house snapshots into the store.

    SOURCE is a JSON file (or - for stdin) holding an array of houses, or
    an object with a "houses" array.
    """
    payload = app.read_json(source, op="sync")
    if isinstance(payload, dict):
        payload = payload.get("houses")
    if not isinstance(payload, list):
        app.emit(ServiceResult.failure("sync", "INVALID_INPUT", "Expected a JSON array of houses."))
        return
    app.emit(app.service.sync(payload))


@click.command(
    "dnd-expire",
    cls=FlatCommand,
    examples="""\
  flatstore dnd-expire
  flatstore -q dnd-expire""",
)
@click.pass_obj
def dnd_expire(app: AppContext) -> None:
    """Revert expired Do Not Disturb statuses to HOME."""
    app.emit(app.service.expire_dnd())
