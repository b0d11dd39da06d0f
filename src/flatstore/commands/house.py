"""Command group: house membership and administration.

Admin commands act on the logged-in user's house; ``--user`` overrides
the acting user where it makes sense.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from flatstore.commands._base import FlatGroup

if TYPE_CHECKING:
    from flatstore.commands._context import AppContext

_HOUSE_EXAMPLES = """\
  flatstore house create "Maple Street" --currency EUR
  flatstore house join K7QX2MPA
  flatstore house join --remote house.json
  flatstore house rename "Maple St. 12"
  flatstore house currency GBP
  flatstore house transfer user_3k9w0a7d1q
  flatstore house invite
  flatstore house leave"""


@click.group(cls=FlatGroup, examples=_HOUSE_EXAMPLES)
def house() -> None:
    """Create, join, leave and administer houses."""


def _act(app: AppContext, op: str, action: dict[str, Any]) -> None:
    app.emit(app.service.dispatch(action, fill_actor=True, op=op))


@house.command(
    examples="""\
  flatstore house create "Maple Street"
  flatstore house create "Maple Street" --currency EUR --invite-code K7QX2MPA"""
)
@click.argument("name")
@click.option("--currency", default=None, help="Three-letter currency code.")
@click.option("--invite-code", default=None, help="Use this invite code if it is free.")
@click.option("--id", "house_id", default=None, help="Adopt an existing remote house id.")
@click.pass_obj
def create(
    app: AppContext,
    name: str,
    currency: str | None,
    invite_code: str | None,
    house_id: str | None,
) -> None:
    """Create a house and become its admin."""
    payload = {
        "name": name,
        "currency": currency or app.settings.household.default_currency,
        "inviteCode": invite_code,
        "id": house_id,
    }
    _act(app, "house_create", {"type": "CREATE_HOUSE", "payload": payload})


@house.command(
    examples="""\
  flatstore house join K7QX2MPA
  flatstore house join --remote house.json"""
)
@click.argument("code", required=False)
@click.option(
    "--remote",
    "remote_file",
    default=None,
    help="JSON file (or -) with a remote house object to join.",
)
@click.pass_obj
def join(app: AppContext, code: str | None, remote_file: str | None) -> None:
    """Join a house by invite CODE or from a remote house snapshot."""
    if not code and not remote_file:
        raise click.UsageError("Give an invite CODE or --remote FILE.")
    payload: dict[str, Any] = {"code": code}
    if remote_file:
        remote = app.read_json(remote_file, op="house_join")
        if not isinstance(remote, dict):
            raise click.BadParameter("remote house must be a JSON object", param_hint="--remote")
        payload["house"] = remote
    _act(app, "house_join", {"type": "JOIN_HOUSE", "payload": payload})


@house.command(examples="  flatstore house leave\n  flatstore house leave --user user_x")
@click.option("--user", "user_id", default=None, help="Leaving user (default: you).")
@click.pass_obj
def leave(app: AppContext, user_id: str | None) -> None:
    """Leave the current house."""
    _act(app, "house_leave", {"type": "LEAVE_HOUSE", "userId": user_id})


@house.command(examples='  flatstore house rename "Maple St. 12"')
@click.argument("name")
@click.pass_obj
def rename(app: AppContext, name: str) -> None:
    """Rename your house (admin only)."""
    action = {"type": "RENAME_HOUSE", "userId": None, "houseId": None, "name": name}
    _act(app, "house_rename", action)


@house.command(examples="  flatstore house currency EUR")
@click.argument("code")
@click.pass_obj
def currency(app: AppContext, code: str) -> None:
    """Set the house currency (admin only)."""
    action = {"type": "SET_HOUSE_CURRENCY", "userId": None, "houseId": None, "currency": code}
    _act(app, "house_currency", action)


@house.command(examples="  flatstore house transfer user_3k9w0a7d1q")
@click.argument("to_user_id")
@click.pass_obj
def transfer(app: AppContext, to_user_id: str) -> None:
    """Hand the admin role to another member (admin only)."""
    action = {"type": "TRANSFER_ADMIN", "fromUserId": None, "toUserId": to_user_id}
    _act(app, "house_transfer", action)


@house.command(examples="  flatstore house invite\n  flatstore house invite --code K7QX2MPA")
@click.option("--code", default=None, help="Use this code instead of a random one.")
@click.pass_obj
def invite(app: AppContext, code: str | None) -> None:
    """Regenerate the house invite code (admin only)."""
    action = {"type": "REGENERATE_INVITE", "userId": None, "houseId": None, "inviteCode": code}
    _act(app, "house_invite", action)
