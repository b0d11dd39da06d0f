"""Remote house reconciliation.

Folds one externally sourced house snapshot (and its member list) into the
local users and that house's local record, preserving local-only users the
remote does not know about.

Identity resolution: numeric external id first, case-insensitive email
second, otherwise a placeholder user is synthesized.

Admin resolution (first success wins, candidates must be members):

1. the first remote member flagged ``role == "admin"``, via the identity map
2. the remote admin external id matched against local users
3. the previously known local admin
4. the first resolved member

Cross-house cleanup is the caller's job; :func:`remove_member` and
:func:`detach_from_other_houses` are the helpers it uses.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from flatstore.domain import identity
from flatstore.domain.ids import new_entity_id
from flatstore.domain.lifecycle import coerce_status
from flatstore.domain.models import DEFAULT_CURRENCY, House, User
from flatstore.domain.types import UserStatus

if TYPE_CHECKING:
    import random

logger = logging.getLogger(__name__)

PLACEHOLDER_EMAIL_DOMAIN = "remote.local"


@dataclass(frozen=True)
class MergeResult:
    """Output of :func:`merge_remote_house`."""

    users: list[User]
    house: House | None


def pick_admin(member_ids: Sequence[str], fallback: str | None = None) -> str | None:
    """First member, or *fallback* when there are none."""
    if member_ids:
        return member_ids[0]
    return fallback


def _ordered_unique(ids: list[str]) -> list[str]:
    return list(dict.fromkeys(ids))


# ---------------------------------------------------------------------------
# Member identity resolution
# ---------------------------------------------------------------------------


def _find_user_index(users: list[User], external_id: int | None, email: str) -> int | None:
    if external_id is not None:
        for idx, user in enumerate(users):
            if user.wp_id is not None and user.wp_id == external_id:
                return idx
    if email:
        for idx, user in enumerate(users):
            if identity.normalize_email(user.email) == email:
                return idx
    return None


def _remote_status(member: Mapping[str, Any]) -> UserStatus | None:
    # DND cannot be taken from the remote: it carries no end time.
    status = coerce_status(member.get("status"))
    if status is None or status == UserStatus.DND:
        return None
    return status


def ensure_member_user(
    users: list[User],
    member: Mapping[str, Any],
    house_id: str,
    rng: random.Random,
) -> tuple[list[User], str | None]:
    """Resolve one remote member to a local user, creating it if needed.

    Returns the (possibly new) user list and the resolved user id. Members
    carrying neither an external id nor an email cannot be resolved and
    yield ``None``.
    """
    external_id = identity.member_external_id(member)
    email = identity.member_email(member)
    name = identity.member_name(member)
    status = _remote_status(member)

    if external_id is None and not email:
        logger.debug("Skipping remote member without identity in house %s", house_id)
        return users, None

    idx = _find_user_index(users, external_id, email)
    if idx is not None:
        current = users[idx]
        update: dict[str, Any] = {"house_id": house_id}
        if name:
            update["name"] = name
        if current.wp_id is None and external_id is not None:
            update["wp_id"] = external_id
        if status is not None and current.status != UserStatus.DND:
            update["status"] = status
        updated = current.model_copy(update=update)
        if updated == current:
            return users, current.id
        next_users = list(users)
        next_users[idx] = updated
        return next_users, updated.id

    placeholder = email or f"user{external_id}@{PLACEHOLDER_EMAIL_DOMAIN}"
    user = User(
        id=new_entity_id("user", rng),
        name=name or placeholder.split("@")[0],
        email=placeholder,
        house_id=house_id,
        status=status or UserStatus.HOME,
        wp_id=external_id,
    )
    logger.debug("Synthesized user %s for remote member of house %s", user.id, house_id)
    return [*users, user], user.id


# ---------------------------------------------------------------------------
# House merge
# ---------------------------------------------------------------------------


def _resolve_admin(
    remote: Mapping[str, Any],
    resolved: list[tuple[Mapping[str, Any], str]],
    users: list[User],
    member_ids: list[str],
    fallback_house: House | None,
) -> str | None:
    members = set(member_ids)

    flagged = next((uid for member, uid in resolved if identity.member_is_admin(member)), None)
    if flagged is not None and flagged in members:
        return flagged

    admin_external_id = identity.house_admin_external_id(remote)
    if admin_external_id is not None:
        match = next(
            (u.id for u in users if u.wp_id == admin_external_id and u.id in members),
            None,
        )
        if match is not None:
            return match

    if fallback_house is not None and fallback_house.admin_id in members:
        return fallback_house.admin_id

    return pick_admin(member_ids)


def merge_remote_house(
    remote: Mapping[str, Any],
    users: list[User],
    fallback_house: House | None,
    self_id: str | None,
    *,
    rng: random.Random,
) -> MergeResult:
    """Reconcile one remote house into the local users and house record.

    Args:
        remote: Raw remote house payload of uncertain shape.
        users: Current local users.
        fallback_house: The local record for the same house id, if any.
        self_id: Local id of the acting user, always kept as a member.
        rng: Random source for synthesized user ids.

    Returns:
        The updated users and the reconciled house. A payload without an id
        returns the inputs unchanged.
    """
    house_id = identity.house_id(remote)
    if house_id is None:
        return MergeResult(users=users, house=fallback_house)

    working = users
    resolved: list[tuple[Mapping[str, Any], str]] = []
    for member in identity.house_members(remote):
        working, user_id = ensure_member_user(working, member, house_id, rng)
        if user_id is not None:
            resolved.append((member, user_id))

    member_ids = _ordered_unique([uid for _, uid in resolved])
    if not member_ids and fallback_house is not None:
        member_ids = list(fallback_house.member_ids)
    if self_id and self_id not in member_ids:
        member_ids.append(self_id)

    admin_id = _resolve_admin(remote, resolved, working, member_ids, fallback_house)

    admin_wp_id = identity.house_admin_external_id(remote)
    if admin_wp_id is None:
        admin_user = next((u for u in working if u.id == admin_id), None)
        admin_wp_id = admin_user.wp_id if admin_user is not None else None
    if admin_wp_id is None and fallback_house is not None:
        admin_wp_id = fallback_house.admin_wp_id

    invite_code = identity.house_invite_code(remote)
    if invite_code is None:
        invite_code = fallback_house.invite_code if fallback_house is not None else ""

    currency = remote.get("currency") or (fallback_house.currency if fallback_house else None)
    name = remote.get("name") or (fallback_house.name if fallback_house else None)

    house = House(
        id=house_id,
        name=str(name or "House"),
        invite_code=invite_code,
        currency=str(currency or DEFAULT_CURRENCY).strip().upper(),
        member_ids=member_ids,
        admin_id=admin_id,
        admin_wp_id=admin_wp_id,
    )
    return MergeResult(users=working, house=house)


# ---------------------------------------------------------------------------
# Membership removal
# ---------------------------------------------------------------------------


def remove_member(house: House, user_id: str, users: Sequence[User]) -> House | None:
    """Drop *user_id* from *house*; returns None when the house is left empty.

    A departing admin is replaced by the first remaining member.
    """
    if user_id not in house.member_ids:
        return house
    member_ids = [mid for mid in house.member_ids if mid != user_id]
    if not member_ids:
        return None
    if house.admin_id != user_id and house.admin_id in member_ids:
        return house.model_copy(update={"member_ids": member_ids})
    admin_id = pick_admin(member_ids)
    admin_user = next((u for u in users if u.id == admin_id), None)
    return house.model_copy(
        update={
            "member_ids": member_ids,
            "admin_id": admin_id,
            "admin_wp_id": admin_user.wp_id if admin_user is not None else None,
        }
    )


def detach_from_other_houses(
    houses: Sequence[House],
    user_id: str,
    keep_house_id: str | None,
    users: Sequence[User],
) -> list[House]:
    """Remove *user_id* from every house except *keep_house_id*.

    Houses left without members are deleted.
    """
    result: list[House] = []
    for house in houses:
        if house.id == keep_house_id:
            result.append(house)
            continue
        updated = remove_member(house, user_id, users)
        if updated is not None:
            result.append(updated)
    return result
