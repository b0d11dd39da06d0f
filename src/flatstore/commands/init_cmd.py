"""Command: create the snapshot file."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from flatstore.commands._base import FlatCommand

if TYPE_CHECKING:
    from flatstore.commands._context import AppContext


@click.command(
    "init",
    cls=FlatCommand,
    examples="""\
  flatstore init
  flatstore init --seed
  flatstore init --seed --force
  flatstore --json init""",
)
@click.option("--seed/--no-seed", default=None, help="Fill the store with a demo household.")
@click.option("--force", is_flag=True, help="Overwrite an existing snapshot.")
@click.pass_obj
def init_cmd(app: AppContext, seed: bool | None, force: bool) -> None:
    """Create an empty (or seeded) store snapshot."""
    app.emit(app.service.init(seed=seed, force=force))
