"""Subcommand modules for flatstore.

register_commands() imports command modules only when the root group is
built, keeping ``flatstore --help`` fast.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group."""
    # --- Groups ---
    from flatstore.commands.chore import chore
    from flatstore.commands.house import house
    from flatstore.commands.status import status

    cli.add_command(house)
    cli.add_command(chore)
    cli.add_command(status)

    # --- Standalone commands ---
    from flatstore.commands.init_cmd import init_cmd
    from flatstore.commands.session import login, logout, signup
    from flatstore.commands.state import dispatch_cmd, show
    from flatstore.commands.sync import dnd_expire, sync

    cli.add_command(init_cmd)
    cli.add_command(show)
    cli.add_command(dispatch_cmd)
    cli.add_command(login)
    cli.add_command(signup)
    cli.add_command(logout)
    cli.add_command(sync)
    cli.add_command(dnd_expire)
