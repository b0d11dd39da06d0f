"""The root state transition function.

``reduce(state, action, env)`` is total and pure: it never raises for a
well-typed action, never mutates its inputs, and returns the unchanged
state (optionally with a toast) for every rejected action. Time, random
ids, the calendar time zone and the note retention limit all come from
:class:`ReducerEnv`, so identical inputs always produce identical output.

Rejections are classified by :class:`~flatstore.domain.types.ToastKind`:
validation, permission, not_found, conflict.

INVARIANTS maintained by every transition:

- ``house.admin_id`` is an element of ``house.member_ids``
- invite codes are unique across houses
- a user is a member of at most one house, matching ``user.house_id``
- a house with no members is deleted
- an ENDED chore never becomes ACTIVE again
"""

from __future__ import annotations

import logging
import math
import random
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from flatstore.domain import identity
from flatstore.domain.actions import (
    ACTION_TYPES,
    Action,
    AddChore,
    AddExpense,
    AddGuest,
    AddNote,
    AddTodoItem,
    AddTodoList,
    CheckDndExpiry,
    CompleteChore,
    CreateHouse,
    DeleteExpense,
    DeleteNote,
    DeleteTodoItem,
    DeleteTodoList,
    DismissToast,
    JoinHouse,
    LeaveHouse,
    Login,
    Logout,
    RegenerateInvite,
    RenameHouse,
    SetHouseCurrency,
    SetStatus,
    SetTheme,
    Signup,
    SyncRemoteHouses,
    ToggleChoreItem,
    ToggleTodoItem,
    TransferAdmin,
    UpdateChore,
    UpdateNote,
    UpdateProfile,
    UpdateTodoList,
    action_tag,
    parse_action,
)
from flatstore.domain.dates import normalize_iso, now_utc, parse_iso, to_iso
from flatstore.domain.ids import new_entity_id
from flatstore.domain.invites import generate_invite_code, normalize_invite_code
from flatstore.domain.lifecycle import (
    CHORE_TRANSITIONS,
    coerce_status,
    dnd_expired,
    is_valid_transition,
    resolve_dnd,
)
from flatstore.domain.models import (
    DEFAULT_CURRENCY,
    Chore,
    Db,
    Expense,
    Guest,
    House,
    Note,
    Notifications,
    StoreState,
    TodoList,
    TodoTask,
    User,
)
from flatstore.domain.normalize import (
    DEFAULT_NOTE_LIMIT,
    normalize_chore,
    to_alias_keys,
    validate_entry,
)
from flatstore.domain.reconcile import (
    detach_from_other_houses,
    merge_remote_house,
    pick_admin,
)
from flatstore.domain.scheduler import complete_chore, toggle_checklist_item
from flatstore.domain.types import (
    ChoreState,
    ExpenseType,
    Theme,
    ToastKind,
    UserStatus,
    View,
)

logger = logging.getLogger(__name__)

_CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")

# Profile fields a user may edit through UPDATE_PROFILE.
_PROFILE_FIELDS = frozenset(
    {
        "name",
        "tagline",
        "avatar_color",
        "avatar_preset",
        "photo",
        "phone",
        "paypal",
        "venmo",
        "status_note",
    }
)


@dataclass(frozen=True)
class ReducerEnv:
    """Inputs the reducer would otherwise take from the environment."""

    now: datetime
    rng: random.Random = field(default_factory=random.Random)
    tz: tzinfo = UTC
    note_limit: int = DEFAULT_NOTE_LIMIT

    @classmethod
    def live(cls, *, tz: tzinfo = UTC, note_limit: int = DEFAULT_NOTE_LIMIT) -> ReducerEnv:
        """Env reading the wall clock and a fresh random source."""
        return cls(now=now_utc(), rng=random.Random(), tz=tz, note_limit=note_limit)


Handler = Callable[[StoreState, Any, ReducerEnv], StoreState]
A = TypeVar("A", bound=BaseModel)

_HANDLERS: dict[type[BaseModel], Handler] = {}


def _handles(action_cls: type[A]) -> Callable[[Handler], Handler]:
    def register(fn: Handler) -> Handler:
        _HANDLERS[action_cls] = fn
        return fn

    return register


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def reduce(state: StoreState, action: Action, env: ReducerEnv | None = None) -> StoreState:
    """Apply one action and return the next state."""
    env = env or ReducerEnv.live()
    state = _clear_toast(state)
    handler = _HANDLERS.get(type(action))
    if handler is None:
        return state
    return handler(state, action, env)


def dispatch(
    state: StoreState,
    raw: Action | Mapping[str, Any],
    env: ReducerEnv | None = None,
) -> StoreState:
    """Parse an untyped action mapping and reduce it.

    An unknown ``type`` or malformed fields yield the unchanged state with a
    validation toast.
    """
    if isinstance(raw, ACTION_TYPES):
        return reduce(state, raw, env)
    try:
        action = parse_action(raw)
    except ValidationError as exc:
        logger.debug("Rejected unparseable action: %d error(s)", exc.error_count())
        return _reject(_clear_toast(state), ToastKind.VALIDATION, "Unrecognized action.")
    return reduce(state, action, env)


# ---------------------------------------------------------------------------
# State helpers
# ---------------------------------------------------------------------------


def _clear_toast(state: StoreState) -> StoreState:
    if state.toast is None and state.toast_kind is None:
        return state
    return state.model_copy(update={"toast": None, "toast_kind": None})


def _toast(state: StoreState, message: str, kind: ToastKind = ToastKind.SUCCESS) -> StoreState:
    return state.model_copy(update={"toast": message, "toast_kind": kind})


def _reject(state: StoreState, kind: ToastKind, message: str) -> StoreState:
    logger.debug("Action rejected (%s): %s", kind, message)
    return _toast(state, message, kind)


def _with_db(state: StoreState, **collections: Any) -> StoreState:
    return state.model_copy(update={"db": state.db.model_copy(update=collections)})


def _replace(items: list[Any], updated: Any) -> list[Any]:
    return [updated if item.id == updated.id else item for item in items]


def _upsert(items: list[Any], updated: Any) -> list[Any]:
    if any(item.id == updated.id for item in items):
        return _replace(items, updated)
    return [*items, updated]


def _set_user(users: list[User], user_id: str, **update: Any) -> list[User]:
    return [u.model_copy(update=update) if u.id == user_id else u for u in users]


def _entity_data(
    model_cls: type[BaseModel],
    raw: Mapping[str, Any],
    existing_ids: set[str],
    kind: str,
    env: ReducerEnv,
) -> dict[str, Any]:
    """Camel-keyed copy of *raw* with a fresh id when missing or taken."""
    data = to_alias_keys(model_cls, raw)
    if not data.get("id") or data["id"] in existing_ids:
        data["id"] = new_entity_id(kind, env.rng)
    return data


def _unique_invite(house: House, houses: list[House], env: ReducerEnv) -> House:
    """Keep *house*'s invite code unless it is empty or used elsewhere.

    Codes are compared upper case; a kept code is stored upper case.
    """
    taken = {
        normalize_invite_code(h.invite_code)
        for h in houses
        if h.id != house.id and h.invite_code.strip()
    }
    code = normalize_invite_code(house.invite_code)
    if not code or code in taken:
        code = generate_invite_code(taken, env.rng)
    if code == house.invite_code:
        return house
    return house.model_copy(update={"invite_code": code})


def _admin_gate(
    state: StoreState,
    user_id: str,
    house_id: str,
    what: str,
) -> House | StoreState:
    """The target house when *user_id* is its admin, else a rejected state."""
    house = state.db.find_house(house_id)
    if house is None:
        return _reject(state, ToastKind.NOT_FOUND, "House not found.")
    if house.admin_id != user_id:
        return _reject(state, ToastKind.PERMISSION, f"Only the house admin can {what}.")
    return house


def _align_house_ids(users: list[User], houses: list[House]) -> list[User]:
    """Point every user's ``house_id`` at the house that lists them."""
    membership = {mid: h.id for h in houses for mid in h.member_ids}
    aligned: list[User] = []
    for user in users:
        house_id = membership.get(user.id)
        if user.house_id != house_id:
            user = user.model_copy(update={"house_id": house_id})
        aligned.append(user)
    return aligned


def _move_into_house(
    state: StoreState,
    user_id: str,
    house: House,
    users: list[User],
    message: str,
    env: ReducerEnv,
) -> StoreState:
    """Make *user_id* a member of *house* only, and open the dashboard."""
    member_ids = list(dict.fromkeys([*house.member_ids, user_id]))
    admin_id = house.admin_id if house.admin_id in member_ids else pick_admin(member_ids)
    house = house.model_copy(update={"member_ids": member_ids, "admin_id": admin_id})
    houses: list[House] = list(state.db.houses)
    for member_id in member_ids:
        houses = detach_from_other_houses(houses, member_id, house.id, users)
    house = _unique_invite(house, houses, env)
    houses = _upsert(houses, house)
    next_state = _with_db(state, users=_align_house_ids(users, houses), houses=houses)
    return _toast(next_state.model_copy(update={"view": View.DASHBOARD}), message)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


@_handles(Login)
def _login(state: StoreState, action: Login, env: ReducerEnv) -> StoreState:
    user = state.db.find_user_by_email(action.email)
    if user is None:
        return _reject(state, ToastKind.NOT_FOUND, "User not found.")
    update: dict[str, Any] = {}
    if action.profile is not None:
        if action.profile.name and action.profile.name.strip():
            update["name"] = action.profile.name.strip()
        if action.profile.wp_id is not None:
            update["wp_id"] = action.profile.wp_id
    users = _set_user(state.db.users, user.id, **update) if update else state.db.users
    view = View.DASHBOARD if user.house_id else View.ONBOARDING
    next_state = _with_db(state, users=users) if update else state
    return next_state.model_copy(update={"current_user_id": user.id, "view": view})


@_handles(Signup)
def _signup(state: StoreState, action: Signup, env: ReducerEnv) -> StoreState:
    name = action.name.strip()
    email = action.email.strip().lower()
    if not name or not email:
        return _reject(state, ToastKind.VALIDATION, "Name and email required.")
    if state.db.find_user_by_email(email) is not None:
        return _reject(state, ToastKind.CONFLICT, "Email already exists.")
    user = User(
        id=new_entity_id("user", env.rng),
        name=name,
        email=email,
        wp_id=action.profile.wp_id if action.profile else None,
    )
    next_state = _with_db(state, users=[*state.db.users, user])
    return next_state.model_copy(update={"current_user_id": user.id, "view": View.ONBOARDING})


@_handles(Logout)
def _logout(state: StoreState, action: Logout, env: ReducerEnv) -> StoreState:
    return state.model_copy(update={"current_user_id": None, "view": View.AUTH})


# ---------------------------------------------------------------------------
# Houses
# ---------------------------------------------------------------------------


@_handles(CreateHouse)
def _create_house(state: StoreState, action: CreateHouse, env: ReducerEnv) -> StoreState:
    me = state.db.find_user(state.current_user_id)
    if me is None:
        return _reject(state, ToastKind.PERMISSION, "Log in to create a house.")
    payload = action.payload
    name = payload.name.strip()
    if not name:
        return _reject(state, ToastKind.VALIDATION, "House name required.")
    house_id = (payload.id or "").strip() or new_entity_id("house", env.rng)
    if state.db.find_house(house_id) is not None:
        return _reject(state, ToastKind.CONFLICT, "House already exists.")

    currency = (payload.currency or DEFAULT_CURRENCY).strip().upper() or DEFAULT_CURRENCY
    house = House(
        id=house_id,
        name=name,
        invite_code=normalize_invite_code(payload.invite_code),
        currency=currency,
        member_ids=[me.id],
        admin_id=me.id,
        admin_wp_id=me.wp_id,
    )
    return _move_into_house(state, me.id, house, state.db.users, "House created.", env)


@_handles(JoinHouse)
def _join_house(state: StoreState, action: JoinHouse, env: ReducerEnv) -> StoreState:
    me = state.db.find_user(state.current_user_id)
    if me is None:
        return _reject(state, ToastKind.PERMISSION, "Log in to join a house.")
    payload = action.payload
    users = state.db.users

    if payload.house is not None:
        remote_id = identity.house_id(payload.house)
        if remote_id is None:
            return _reject(state, ToastKind.NOT_FOUND, "House not found.")
        merged = merge_remote_house(
            payload.house,
            users,
            state.db.find_house(remote_id),
            me.id,
            rng=env.rng,
        )
        house, users = merged.house, merged.users
    else:
        code = normalize_invite_code(payload.code)
        house = next(
            (h for h in state.db.houses if code and normalize_invite_code(h.invite_code) == code),
            None,
        )

    if house is None:
        return _reject(state, ToastKind.NOT_FOUND, "Invalid invite code.")
    return _move_into_house(state, me.id, house, users, "Joined house.", env)


@_handles(SyncRemoteHouses)
def _sync_remote_houses(
    state: StoreState, action: SyncRemoteHouses, env: ReducerEnv
) -> StoreState:
    me = state.db.find_user(state.current_user_id)
    users = state.db.users
    houses = list(state.db.houses)

    batch: list[tuple[str, Mapping[str, Any]]] = []
    for remote in action.houses:
        remote_id = identity.house_id(remote) if isinstance(remote, Mapping) else None
        if remote_id is None:
            logger.warning("Skipping remote house without id")
            continue
        batch.append((remote_id, remote))
    batch_ids = [remote_id for remote_id, _ in batch]

    active_id: str | None = None
    if me is not None and batch_ids:
        active_id = me.house_id if me.house_id in batch_ids else batch_ids[0]

    for remote_id, remote in batch:
        self_id = me.id if me is not None and remote_id == active_id else None
        fallback = next((h for h in houses if h.id == remote_id), None)
        merged = merge_remote_house(remote, users, fallback, self_id, rng=env.rng)
        users = merged.users
        house = merged.house
        if house is None:
            continue
        if not house.member_ids:
            houses = [h for h in houses if h.id != house.id]
            continue
        house = _unique_invite(house, houses, env)
        houses = _upsert(houses, house)
        for member_id in house.member_ids:
            if me is not None and member_id == me.id:
                continue
            houses = detach_from_other_houses(houses, member_id, house.id, users)

    # An empty batch leaves the current membership alone.
    if me is not None and active_id is not None:
        houses = detach_from_other_houses(houses, me.id, active_id, users)
    users = _align_house_ids(users, houses)

    next_state = _with_db(state, users=users, houses=houses)
    me = next_state.db.find_user(state.current_user_id)
    if me is None:
        return next_state
    if me.house_id and state.view == View.ONBOARDING:
        return next_state.model_copy(update={"view": View.DASHBOARD})
    if not me.house_id and state.view == View.DASHBOARD:
        return next_state.model_copy(update={"view": View.ONBOARDING})
    return next_state


@_handles(LeaveHouse)
def _leave_house(state: StoreState, action: LeaveHouse, env: ReducerEnv) -> StoreState:
    user = state.db.find_user(action.user_id)
    if user is None:
        return _reject(state, ToastKind.NOT_FOUND, "User not found.")
    house = state.db.house_of_member(user.id)
    if house is not None and house.admin_id == user.id and len(house.member_ids) > 1:
        return _reject(state, ToastKind.CONFLICT, "Transfer house admin before leaving.")

    users = _set_user(
        state.db.users,
        user.id,
        house_id=None,
        status=UserStatus.HOME,
        dnd_until=None,
    )
    houses = detach_from_other_houses(state.db.houses, user.id, None, users)
    next_state = _with_db(state, users=users, houses=houses)
    if user.id == state.current_user_id:
        next_state = next_state.model_copy(update={"view": View.ONBOARDING})
    return _toast(next_state, "Left house.")


@_handles(TransferAdmin)
def _transfer_admin(state: StoreState, action: TransferAdmin, env: ReducerEnv) -> StoreState:
    if not action.from_user_id or not action.to_user_id:
        return _reject(state, ToastKind.VALIDATION, "Choose who receives admin.")
    house = state.db.house_of_member(action.from_user_id)
    if house is None:
        return _reject(state, ToastKind.NOT_FOUND, "House not found.")
    if house.admin_id != action.from_user_id:
        return _reject(state, ToastKind.PERMISSION, "Only the house admin can transfer admin.")
    if action.to_user_id not in house.member_ids:
        return _reject(state, ToastKind.VALIDATION, "Target must be in this house.")
    if action.from_user_id == action.to_user_id:
        return state
    target = state.db.find_user(action.to_user_id)
    updated = house.model_copy(
        update={
            "admin_id": action.to_user_id,
            "admin_wp_id": target.wp_id if target is not None else None,
        }
    )
    return _toast(_with_db(state, houses=_replace(state.db.houses, updated)), "Admin transferred.")


@_handles(RegenerateInvite)
def _regenerate_invite(
    state: StoreState, action: RegenerateInvite, env: ReducerEnv
) -> StoreState:
    gate = _admin_gate(state, action.user_id, action.house_id, "regenerate the code")
    if isinstance(gate, StoreState):
        return gate
    taken = state.db.invite_codes(exclude_house=gate.id)
    supplied = normalize_invite_code(action.invite_code)
    if supplied and supplied in taken:
        return _reject(state, ToastKind.CONFLICT, "Invite code already in use.")
    current = normalize_invite_code(gate.invite_code)
    code = supplied or generate_invite_code(taken | {current}, env.rng)
    updated = gate.model_copy(update={"invite_code": code})
    return _toast(
        _with_db(state, houses=_replace(state.db.houses, updated)),
        "Invite code regenerated.",
    )


@_handles(RenameHouse)
def _rename_house(state: StoreState, action: RenameHouse, env: ReducerEnv) -> StoreState:
    name = action.name.strip()
    if not name:
        return _reject(state, ToastKind.VALIDATION, "House name required.")
    gate = _admin_gate(state, action.user_id, action.house_id, "rename the house")
    if isinstance(gate, StoreState):
        return gate
    updated = gate.model_copy(update={"name": name})
    return _toast(_with_db(state, houses=_replace(state.db.houses, updated)), "House renamed.")


@_handles(SetHouseCurrency)
def _set_house_currency(
    state: StoreState, action: SetHouseCurrency, env: ReducerEnv
) -> StoreState:
    currency = action.currency.strip().upper()
    if not _CURRENCY_PATTERN.match(currency):
        return _reject(state, ToastKind.VALIDATION, "Currency must be a three-letter code.")
    gate = _admin_gate(state, action.user_id, action.house_id, "change the currency")
    if isinstance(gate, StoreState):
        return gate
    updated = gate.model_copy(update={"currency": currency})
    return _toast(_with_db(state, houses=_replace(state.db.houses, updated)), "Currency updated.")


# ---------------------------------------------------------------------------
# Chores
# ---------------------------------------------------------------------------


@_handles(AddChore)
def _add_chore(state: StoreState, action: AddChore, env: ReducerEnv) -> StoreState:
    existing = {c.id for c in state.db.chores}
    data = _entity_data(Chore, action.chore, existing, "chore", env)
    if not data.get("houseId"):
        return _reject(state, ToastKind.VALIDATION, "Chore needs a house.")
    data["state"] = ChoreState.ACTIVE
    data["createdAt"] = normalize_iso(data.get("createdAt")) or to_iso(env.now)
    data["dueAt"] = (
        normalize_iso(data.get("dueAt")) or normalize_iso(data.get("startAt")) or to_iso(env.now)
    )
    chore = normalize_chore(data, env.rng)
    if chore is None:
        return _reject(state, ToastKind.VALIDATION, "Invalid chore.")
    return _toast(_with_db(state, chores=[*state.db.chores, chore]), "Chore created.")


@_handles(UpdateChore)
def _update_chore(state: StoreState, action: UpdateChore, env: ReducerEnv) -> StoreState:
    chore = state.db.find_chore(action.chore_id)
    if chore is None:
        return _reject(state, ToastKind.NOT_FOUND, "Chore not found.")
    if not chore.house_id:
        return _reject(state, ToastKind.VALIDATION, "Chore needs a house.")
    patch = to_alias_keys(Chore, {k: v for k, v in action.patch.items() if k != "id"})
    if "houseId" in patch and not patch["houseId"]:
        return _reject(state, ToastKind.VALIDATION, "Chore needs a house.")
    target_state = str(patch.get("state", chore.state))
    if target_state not in CHORE_TRANSITIONS:
        return _reject(state, ToastKind.VALIDATION, "Unknown chore state.")
    if not is_valid_transition(chore.state, target_state, CHORE_TRANSITIONS):
        return _reject(state, ToastKind.CONFLICT, "Ended chores cannot be reactivated.")

    merged = {**chore.model_dump(by_alias=True), **patch}
    updated = normalize_chore(merged, env.rng)
    if updated is None:
        return _reject(state, ToastKind.VALIDATION, "Invalid chore.")
    return _toast(_with_db(state, chores=_replace(state.db.chores, updated)), "Chore updated.")


@_handles(ToggleChoreItem)
def _toggle_chore_item(
    state: StoreState, action: ToggleChoreItem, env: ReducerEnv
) -> StoreState:
    chore = state.db.find_chore(action.chore_id)
    if chore is None:
        return _reject(state, ToastKind.NOT_FOUND, "Chore not found.")
    updated = toggle_checklist_item(chore, action.item_id)
    return _with_db(state, chores=_replace(state.db.chores, updated))


@_handles(CompleteChore)
def _complete_chore(state: StoreState, action: CompleteChore, env: ReducerEnv) -> StoreState:
    chore = state.db.find_chore(action.chore_id)
    if chore is None:
        return _reject(state, ToastKind.NOT_FOUND, "Chore not found.")
    if chore.state == ChoreState.ENDED:
        return _reject(state, ToastKind.CONFLICT, "This chore has ended.")
    if chore.assignee_id != action.user_id:
        return _reject(state, ToastKind.PERMISSION, "Only the assignee can complete this chore.")
    updated = complete_chore(chore, action.user_id, now=env.now, tz=env.tz)
    message = "Chore ended." if updated.state == ChoreState.ENDED else "Chore completed."
    return _toast(_with_db(state, chores=_replace(state.db.chores, updated)), message)


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------


@_handles(SetStatus)
def _set_status(state: StoreState, action: SetStatus, env: ReducerEnv) -> StoreState:
    if not action.user_id or not action.status:
        return _reject(state, ToastKind.VALIDATION, "Status required.")
    user = state.db.find_user(action.user_id)
    if user is None:
        return _reject(state, ToastKind.NOT_FOUND, "User not found.")
    requested = coerce_status(action.status)
    if requested is None:
        return _reject(state, ToastKind.VALIDATION, "Unknown status.")
    status, until = resolve_dnd(requested, action.until)
    update: dict[str, Any] = {"status": status, "dnd_until": until}
    if action.status_note is not None:
        update["status_note"] = action.status_note
    users = _set_user(state.db.users, user.id, **update)
    return _toast(_with_db(state, users=users), "Status updated.")


@_handles(UpdateProfile)
def _update_profile(state: StoreState, action: UpdateProfile, env: ReducerEnv) -> StoreState:
    user = state.db.find_user(action.user_id)
    if user is None:
        return _reject(state, ToastKind.NOT_FOUND, "User not found.")
    patch = {
        name: action.patch[key]
        for name, info in User.model_fields.items()
        for key in (name, info.alias)
        if key in action.patch
    }

    update = {k: v for k, v in patch.items() if k in _PROFILE_FIELDS and v is not None}
    if "photo" in patch:
        update["photo"] = patch["photo"]
    if "email" in patch:
        email = str(patch["email"] or "").strip().lower()
        if not email:
            return _reject(state, ToastKind.VALIDATION, "Email required.")
        other = state.db.find_user_by_email(email)
        if other is not None and other.id != user.id:
            return _reject(state, ToastKind.CONFLICT, "Email already exists.")
        update["email"] = email
    if isinstance(patch.get("notifications"), Mapping):
        merged = {**user.notifications.model_dump(), **patch["notifications"]}
        try:
            update["notifications"] = Notifications.model_validate(merged)
        except ValidationError:
            return _reject(state, ToastKind.VALIDATION, "Invalid notification settings.")

    try:
        updated = User.model_validate({**user.model_dump(), **update})
    except ValidationError:
        return _reject(state, ToastKind.VALIDATION, "Invalid profile.")
    return _toast(_with_db(state, users=_replace(state.db.users, updated)), "Profile updated.")


@_handles(CheckDndExpiry)
def _check_dnd_expiry(state: StoreState, action: CheckDndExpiry, env: ReducerEnv) -> StoreState:
    expired = {
        u.id
        for u in state.db.users
        if u.status == UserStatus.DND and dnd_expired(u.dnd_until, env.now)
    }
    if not expired:
        return state
    users = [
        u.model_copy(update={"status": UserStatus.HOME, "dnd_until": None})
        if u.id in expired
        else u
        for u in state.db.users
    ]
    return _with_db(state, users=users)


@_handles(AddGuest)
def _add_guest(state: StoreState, action: AddGuest, env: ReducerEnv) -> StoreState:
    data = _entity_data(Guest, action.guest, {g.id for g in state.db.guests}, "guest", env)
    if not data.get("houseId") or not str(data.get("name") or "").strip():
        return _reject(state, ToastKind.VALIDATION, "Guest needs a house and a name.")
    arrival = parse_iso(data.get("arrivesAt")) or env.now
    data["arrivesAt"] = to_iso(arrival)

    host = state.db.find_user(data.get("hostId"))
    if host is not None and host.status == UserStatus.DND:
        until = parse_iso(host.dnd_until)
        if until is None or arrival <= until:
            return _reject(state, ToastKind.CONFLICT, "Cannot schedule guest during DND.")

    guest = validate_entry(Guest, data, "guests")
    if guest is None:
        return _reject(state, ToastKind.VALIDATION, "Invalid guest.")
    return _toast(_with_db(state, guests=[*state.db.guests, guest]), "Guest added.")


# ---------------------------------------------------------------------------
# Notes
# ---------------------------------------------------------------------------


@_handles(AddNote)
def _add_note(state: StoreState, action: AddNote, env: ReducerEnv) -> StoreState:
    notes = state.db.notes
    data = to_alias_keys(Note, action.note)
    if not data.get("houseId") or not str(data.get("text") or "").strip():
        return _reject(state, ToastKind.VALIDATION, "Note needs a house and some text.")

    current = next(
        (
            n
            for n in notes
            if n.house_id == data["houseId"] and n.author_id == data.get("authorId")
        ),
        None,
    )
    if current is not None:
        merged = {**current.model_dump(by_alias=True), **data}
        merged["id"] = current.id
        merged["pinned"] = current.pinned
        note = validate_entry(Note, merged, "notes")
        if note is None:
            return _reject(state, ToastKind.VALIDATION, "Invalid note.")
        next_notes = _replace(notes, note)
    else:
        data = _entity_data(Note, data, {n.id for n in notes}, "note", env)
        data.setdefault("pinned", False)
        data["createdAt"] = normalize_iso(data.get("createdAt")) or to_iso(env.now)
        note = validate_entry(Note, data, "notes")
        if note is None:
            return _reject(state, ToastKind.VALIDATION, "Invalid note.")
        next_notes = [*notes, note]

    if env.note_limit > 0:
        next_notes = next_notes[-env.note_limit :]
    return _toast(_with_db(state, notes=next_notes), "Note added.")


@_handles(UpdateNote)
def _update_note(state: StoreState, action: UpdateNote, env: ReducerEnv) -> StoreState:
    note = next((n for n in state.db.notes if n.id == action.note_id), None)
    if note is None:
        return _reject(state, ToastKind.NOT_FOUND, "Note not found.")
    patch = to_alias_keys(Note, action.patch)
    merged = {**note.model_dump(by_alias=True), **patch, "id": note.id}
    updated = validate_entry(Note, merged, "notes")
    if updated is None:
        return _reject(state, ToastKind.VALIDATION, "Invalid note.")
    return _toast(_with_db(state, notes=_replace(state.db.notes, updated)), "Note updated.")


@_handles(DeleteNote)
def _delete_note(state: StoreState, action: DeleteNote, env: ReducerEnv) -> StoreState:
    if not any(n.id == action.note_id for n in state.db.notes):
        return _reject(state, ToastKind.NOT_FOUND, "Note not found.")
    notes = [n for n in state.db.notes if n.id != action.note_id]
    return _toast(_with_db(state, notes=notes), "Note removed.")


# ---------------------------------------------------------------------------
# To-do lists
# ---------------------------------------------------------------------------


def _find_list(db: Db, list_id: str) -> TodoList | None:
    return next((lst for lst in db.todo_lists if lst.id == list_id), None)


@_handles(AddTodoList)
def _add_todo_list(state: StoreState, action: AddTodoList, env: ReducerEnv) -> StoreState:
    existing = {lst.id for lst in state.db.todo_lists}
    data = _entity_data(TodoList, action.todo_list, existing, "todo_list", env)
    if not str(data.get("title") or "").strip() or not data.get("ownerId"):
        return _reject(state, ToastKind.VALIDATION, "List needs a title and an owner.")
    if not data.get("memberIds"):
        data["memberIds"] = [data["ownerId"]]
    tasks = data.get("tasks") or []
    data["tasks"] = [
        {**task, "id": task.get("id") or new_entity_id("todo", env.rng)}
        for task in tasks
        if isinstance(task, Mapping)
    ]
    todo_list = validate_entry(TodoList, data, "todoLists")
    if todo_list is None:
        return _reject(state, ToastKind.VALIDATION, "Invalid list.")
    return _toast(_with_db(state, todo_lists=[*state.db.todo_lists, todo_list]), "List created.")


@_handles(UpdateTodoList)
def _update_todo_list(state: StoreState, action: UpdateTodoList, env: ReducerEnv) -> StoreState:
    todo_list = _find_list(state.db, action.list_id)
    if todo_list is None:
        return _reject(state, ToastKind.NOT_FOUND, "List not found.")
    patch = {
        k: v for k, v in to_alias_keys(TodoList, action.patch).items() if k not in {"id", "tasks"}
    }
    merged = {**todo_list.model_dump(by_alias=True), **patch}
    updated = validate_entry(TodoList, merged, "todoLists")
    if updated is None:
        return _reject(state, ToastKind.VALIDATION, "Invalid list.")
    return _with_db(state, todo_lists=_replace(state.db.todo_lists, updated))


@_handles(DeleteTodoList)
def _delete_todo_list(state: StoreState, action: DeleteTodoList, env: ReducerEnv) -> StoreState:
    if _find_list(state.db, action.list_id) is None:
        return _reject(state, ToastKind.NOT_FOUND, "List not found.")
    todo_lists = [lst for lst in state.db.todo_lists if lst.id != action.list_id]
    return _toast(_with_db(state, todo_lists=todo_lists), "List deleted.")


@_handles(AddTodoItem)
def _add_todo_item(state: StoreState, action: AddTodoItem, env: ReducerEnv) -> StoreState:
    todo_list = _find_list(state.db, action.list_id)
    if todo_list is None:
        return _reject(state, ToastKind.NOT_FOUND, "List not found.")
    data = _entity_data(TodoTask, action.task, {t.id for t in todo_list.tasks}, "todo", env)
    if not str(data.get("title") or "").strip():
        return _reject(state, ToastKind.VALIDATION, "Task needs a title.")
    data["isDone"] = bool(data.get("isDone"))
    task = validate_entry(TodoTask, data, "tasks")
    if task is None:
        return _reject(state, ToastKind.VALIDATION, "Invalid task.")
    updated = todo_list.model_copy(update={"tasks": [*todo_list.tasks, task]})
    return _with_db(state, todo_lists=_replace(state.db.todo_lists, updated))


@_handles(ToggleTodoItem)
def _toggle_todo_item(state: StoreState, action: ToggleTodoItem, env: ReducerEnv) -> StoreState:
    todo_list = _find_list(state.db, action.list_id)
    if todo_list is None:
        return _reject(state, ToastKind.NOT_FOUND, "List not found.")
    tasks = [
        t.model_copy(update={"is_done": not t.is_done}) if t.id == action.task_id else t
        for t in todo_list.tasks
    ]
    updated = todo_list.model_copy(update={"tasks": tasks})
    return _with_db(state, todo_lists=_replace(state.db.todo_lists, updated))


@_handles(DeleteTodoItem)
def _delete_todo_item(state: StoreState, action: DeleteTodoItem, env: ReducerEnv) -> StoreState:
    todo_list = _find_list(state.db, action.list_id)
    if todo_list is None:
        return _reject(state, ToastKind.NOT_FOUND, "List not found.")
    tasks = [t for t in todo_list.tasks if t.id != action.task_id]
    updated = todo_list.model_copy(update={"tasks": tasks})
    return _with_db(state, todo_lists=_replace(state.db.todo_lists, updated))


# ---------------------------------------------------------------------------
# Expenses
# ---------------------------------------------------------------------------


@_handles(AddExpense)
def _add_expense(state: StoreState, action: AddExpense, env: ReducerEnv) -> StoreState:
    existing = {e.id for e in state.db.expenses}
    data = _entity_data(Expense, action.expense, existing, "expense", env)
    try:
        amount = float(data.get("amount") or 0)
    except (TypeError, ValueError):
        amount = 0.0
    if not math.isfinite(amount):
        amount = 0.0
    if not data.get("houseId") or not str(data.get("title") or "").strip() or amount <= 0:
        return _reject(
            state,
            ToastKind.VALIDATION,
            "Expense needs a house, a title and a positive amount.",
        )
    data["amount"] = amount
    data.setdefault("payerId", state.current_user_id)
    data["createdAt"] = normalize_iso(data.get("createdAt")) or to_iso(env.now)
    if not data.get("participantIds"):
        house = state.db.find_house(data["houseId"])
        if data.get("type") == ExpenseType.PERSONAL or house is None:
            data["participantIds"] = [data["payerId"]] if data.get("payerId") else []
        else:
            data["participantIds"] = list(house.member_ids)
    expense = validate_entry(Expense, data, "expenses")
    if expense is None:
        return _reject(state, ToastKind.VALIDATION, "Invalid expense.")
    return _toast(_with_db(state, expenses=[*state.db.expenses, expense]), "Expense added.")


@_handles(DeleteExpense)
def _delete_expense(state: StoreState, action: DeleteExpense, env: ReducerEnv) -> StoreState:
    if not any(e.id == action.expense_id for e in state.db.expenses):
        return _reject(state, ToastKind.NOT_FOUND, "Expense not found.")
    expenses = [e for e in state.db.expenses if e.id != action.expense_id]
    return _toast(_with_db(state, expenses=expenses), "Expense removed.")


# ---------------------------------------------------------------------------
# UI
# ---------------------------------------------------------------------------


@_handles(SetTheme)
def _set_theme(state: StoreState, action: SetTheme, env: ReducerEnv) -> StoreState:
    theme = action.theme
    if theme is None:
        theme = Theme.DARK if state.theme == Theme.LIGHT else Theme.LIGHT
    return state.model_copy(update={"theme": theme})


@_handles(DismissToast)
def _dismiss_toast(state: StoreState, action: DismissToast, env: ReducerEnv) -> StoreState:
    return state


_unhandled = {action_tag(cls) for cls in ACTION_TYPES} - {action_tag(cls) for cls in _HANDLERS}
if _unhandled:
    msg = f"Reducer has no handler for: {', '.join(sorted(_unhandled))}"
    raise RuntimeError(msg)
