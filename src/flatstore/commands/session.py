"""Commands: login, signup, logout."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from flatstore.commands._base import FlatCommand

if TYPE_CHECKING:
    from flatstore.commands._context import AppContext


def _profile(name: str | None, wp_id: int | None) -> dict[str, Any] | None:
    profile = {k: v for k, v in {"name": name, "wpId": wp_id}.items() if v is not None}
    return profile or None


@click.command(
    cls=FlatCommand,
    examples="""\
  flatstore login alex@demo.com
  flatstore login alex@demo.com --wp-id 42 --name 'Alex K.'""",
)
@click.argument("email")
@click.option("--name", default=None, help="Display name reported by the identity provider.")
@click.option("--wp-id", type=int, default=None, help="External account id.")
@click.pass_obj
def login(app: AppContext, email: str, name: str | None, wp_id: int | None) -> None:
    """Log in as the user with EMAIL."""
    action = {"type": "LOGIN", "email": email, "profile": _profile(name, wp_id)}
    app.emit(app.service.dispatch(action, op="login"))


@click.command(
    cls=FlatCommand,
    examples="""\
  flatstore signup Alex alex@example.com
  flatstore signup "Sam Lee" sam@example.com --wp-id 7""",
)
@click.argument("name")
@click.argument("email")
@click.option("--wp-id", type=int, default=None, help="External account id.")
@click.pass_obj
def signup(app: AppContext, name: str, email: str, wp_id: int | None) -> None:
    """Create a user and log in as them."""
    action = {"type": "SIGNUP", "name": name, "email": email, "profile": _profile(None, wp_id)}
    app.emit(app.service.dispatch(action, op="signup"))


@click.command(cls=FlatCommand, examples="  flatstore logout")
@click.pass_obj
def logout(app: AppContext) -> None:
    """End the current session."""
    app.emit(app.service.dispatch({"type": "LOGOUT"}, op="logout"))
