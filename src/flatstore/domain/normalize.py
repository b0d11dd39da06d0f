"""Snapshot normalization.

Repairs a possibly malformed persisted (or seeded) envelope into a
well-formed :class:`StoreState`:

- missing collections default to empty; entries that cannot be validated
  are dropped with a warning
- ``null`` values fall back to field defaults
- duplicate ids are dropped (first wins); duplicate emails likewise
- DND users without a parseable ``dnd_until`` revert to HOME
- houses get unique invite codes, an admin among their members, an
  uppercased currency; memberless houses are deleted
- every user belongs to at most one house, matching ``house_id``
- chore assignees follow ``rotation[rotation_index]``
- only the most recent notes are retained
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from flatstore.domain.ids import new_entity_id
from flatstore.domain.invites import generate_invite_code, normalize_invite_code
from flatstore.domain.lifecycle import coerce_status, resolve_dnd
from flatstore.domain.models import (
    DEFAULT_CADENCE_DAYS,
    DEFAULT_CURRENCY,
    Chore,
    Db,
    Expense,
    Guest,
    House,
    Note,
    StoreState,
    TodoList,
    User,
)
from flatstore.domain.reconcile import detach_from_other_houses, pick_admin
from flatstore.domain.scheduler import assignment_for
from flatstore.domain.types import ChoreState, Theme, UserStatus, View

if TYPE_CHECKING:
    import random

logger = logging.getLogger(__name__)

DEFAULT_NOTE_LIMIT = 50

M = TypeVar("M", bound=BaseModel)


# ---------------------------------------------------------------------------
# Generic entry handling
# ---------------------------------------------------------------------------


def strip_nulls(model_cls: type[BaseModel], raw: Mapping[str, Any]) -> dict[str, Any]:
    """Drop ``None`` values for fields whose default is not None."""
    data = dict(raw)
    for name, info in model_cls.model_fields.items():
        if info.is_required() or info.default is None:
            continue
        for key in {name, info.alias or name}:
            if key in data and data[key] is None:
                del data[key]
    return data


def to_alias_keys(model_cls: type[BaseModel], raw: Mapping[str, Any]) -> dict[str, Any]:
    """Rewrite snake_case field names in *raw* to their camelCase aliases."""
    fields = model_cls.model_fields
    return {
        (fields[key].alias or key) if key in fields else key: value for key, value in raw.items()
    }


def validate_entry(model_cls: type[M], raw: Any, collection: str) -> M | None:
    """Validate one raw entry, returning None (and logging) on failure."""
    if isinstance(raw, model_cls):
        return raw
    if not isinstance(raw, Mapping):
        logger.warning("Dropping non-object entry in %s", collection)
        return None
    try:
        return model_cls.model_validate(strip_nulls(model_cls, to_alias_keys(model_cls, raw)))
    except ValidationError as exc:
        logger.warning(
            "Dropping invalid entry in %s (id=%r): %d error(s)",
            collection,
            raw.get("id"),
            exc.error_count(),
        )
        return None


def _entries(raw_db: Mapping[str, Any], *keys: str) -> list[Any]:
    for key in keys:
        value = raw_db.get(key)
        if isinstance(value, list):
            return value
    return []


def _unique_by_id(items: list[M], collection: str) -> list[M]:
    seen: set[str] = set()
    result: list[M] = []
    for item in items:
        item_id = item.id  # type: ignore[attr-defined]
        if item_id in seen:
            logger.warning("Dropping duplicate id %r in %s", item_id, collection)
            continue
        seen.add(item_id)
        result.append(item)
    return result


def _collect(model_cls: type[M], raw_db: Mapping[str, Any], *keys: str) -> list[M]:
    collection = keys[0]
    items = [validate_entry(model_cls, entry, collection) for entry in _entries(raw_db, *keys)]
    return _unique_by_id([item for item in items if item is not None], collection)


# ---------------------------------------------------------------------------
# Per-collection repair
# ---------------------------------------------------------------------------


def _prepare_user(raw: Any) -> Any:
    if not isinstance(raw, Mapping):
        return raw
    data = dict(raw)
    status = coerce_status(data.get("status")) or UserStatus.HOME
    status, until = resolve_dnd(status, data.get("dndUntil", data.get("dnd_until")))
    data.pop("dnd_until", None)
    data["status"] = status
    data["dndUntil"] = until
    if not isinstance(data.get("notifications"), Mapping):
        data.pop("notifications", None)
    return data


def normalize_user(raw: Any) -> User | None:
    return validate_entry(User, _prepare_user(raw), "users")


def _normalize_users(raw_db: Mapping[str, Any]) -> list[User]:
    users = _unique_by_id(
        [u for u in (normalize_user(entry) for entry in _entries(raw_db, "users")) if u],
        "users",
    )
    seen_emails: set[str] = set()
    result: list[User] = []
    for user in users:
        email = user.email.strip().lower()
        if email and email in seen_emails:
            logger.warning("Dropping user %r with duplicate email", user.id)
            continue
        if email:
            seen_emails.add(email)
        result.append(user)
    return result


def _normalize_houses(raw_db: Mapping[str, Any], rng: random.Random) -> list[House]:
    codes: set[str] = set()
    result: list[House] = []
    for house in _collect(House, raw_db, "houses"):
        member_ids = list(dict.fromkeys(house.member_ids))
        if not member_ids:
            logger.warning("Dropping house %r without members", house.id)
            continue
        admin_id = house.admin_id if house.admin_id in member_ids else pick_admin(member_ids)
        code = normalize_invite_code(house.invite_code)
        if not code or code in codes:
            code = generate_invite_code(codes, rng)
        codes.add(code)
        currency = (house.currency or DEFAULT_CURRENCY).strip().upper() or DEFAULT_CURRENCY
        result.append(
            house.model_copy(
                update={
                    "member_ids": member_ids,
                    "admin_id": admin_id,
                    "invite_code": code,
                    "currency": currency,
                }
            )
        )
    return result


def _enforce_exclusive_membership(
    users: list[User], houses: list[House]
) -> tuple[list[User], list[House]]:
    """Give every user at most one house, consistent on both sides."""
    next_users: list[User] = []
    for user in users:
        containing = [h.id for h in houses if user.id in h.member_ids]
        if len(containing) > 1:
            keep = user.house_id if user.house_id in containing else containing[0]
            houses = detach_from_other_houses(houses, user.id, keep, users)
            containing = [keep]
        house_id = containing[0] if containing else None
        if user.house_id != house_id:
            user = user.model_copy(update={"house_id": house_id})
        next_users.append(user)
    return next_users, houses


def _prepare_chore(raw: Any, rng: random.Random) -> Any:
    if not isinstance(raw, Mapping):
        return raw
    data = dict(raw)
    cadence = data.get("cadenceDays", data.get("cadence_days"))
    data.pop("cadence_days", None)
    try:
        data["cadenceDays"] = int(cadence) if int(cadence) > 0 else DEFAULT_CADENCE_DAYS
    except (TypeError, ValueError, OverflowError):
        data["cadenceDays"] = DEFAULT_CADENCE_DAYS
    if data.get("state") not in {s.value for s in ChoreState}:
        data["state"] = ChoreState.ACTIVE
    checklist = data.get("checklist")
    if isinstance(checklist, list):
        data["checklist"] = [
            {**item, "id": item.get("id") or new_entity_id("item", rng)}
            for item in checklist
            if isinstance(item, Mapping)
        ]
    return data


def normalize_chore(raw: Any, rng: random.Random) -> Chore | None:
    """Validate a chore and align its assignee with the rotation."""
    chore = validate_entry(Chore, _prepare_chore(raw, rng), "chores")
    if chore is None or chore.state == ChoreState.ENDED:
        return chore
    assignee_id, rotation_index = assignment_for(chore.rotation, chore.rotation_index)
    if (assignee_id, rotation_index) == (chore.assignee_id, chore.rotation_index):
        return chore
    return chore.model_copy(update={"assignee_id": assignee_id, "rotation_index": rotation_index})


def normalize_db(
    raw_db: Any,
    *,
    rng: random.Random,
    note_limit: int = DEFAULT_NOTE_LIMIT,
) -> Db:
    """Repair raw entity collections into a well-formed :class:`Db`."""
    if isinstance(raw_db, Db):
        raw_db = raw_db.model_dump(by_alias=True)
    if not isinstance(raw_db, Mapping):
        return Db()

    users = _normalize_users(raw_db)
    houses = _normalize_houses(raw_db, rng)
    users, houses = _enforce_exclusive_membership(users, houses)

    chores = _unique_by_id(
        [c for c in (normalize_chore(e, rng) for e in _entries(raw_db, "chores")) if c],
        "chores",
    )
    notes = _collect(Note, raw_db, "notes")
    if note_limit > 0:
        notes = notes[-note_limit:]

    return Db(
        users=users,
        houses=houses,
        chores=chores,
        guests=_collect(Guest, raw_db, "guests"),
        notes=notes,
        todo_lists=_collect(TodoList, raw_db, "todoLists", "todo_lists"),
        expenses=_collect(Expense, raw_db, "expenses"),
    )


def _coerce_enum(enum_cls: Any, value: Any, default: Any) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        return default


def normalize_state(
    envelope: Any,
    *,
    rng: random.Random,
    note_limit: int = DEFAULT_NOTE_LIMIT,
) -> StoreState:
    """Repair a persisted envelope ``{db, currentUserId, view, theme}``.

    A session pointing at an unknown user falls back to AUTH; a dashboard
    view for a user without a house falls back to ONBOARDING.
    """
    if not isinstance(envelope, Mapping):
        return StoreState()

    db = normalize_db(envelope.get("db"), rng=rng, note_limit=note_limit)
    current_user = db.find_user(envelope.get("currentUserId", envelope.get("current_user_id")))
    view = _coerce_enum(View, envelope.get("view"), View.AUTH)
    theme = _coerce_enum(Theme, envelope.get("theme"), Theme.LIGHT)

    if current_user is None:
        view = View.AUTH
    elif view == View.AUTH:
        view = View.DASHBOARD if current_user.house_id else View.ONBOARDING
    elif view == View.DASHBOARD and not current_user.house_id:
        view = View.ONBOARDING

    return StoreState(
        db=db,
        current_user_id=current_user.id if current_user else None,
        view=view,
        theme=theme,
    )
