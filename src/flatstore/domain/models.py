"""Entity models and the root store state.

All models are frozen pydantic models. Python attributes are snake_case;
the persisted envelope and UI payloads use camelCase aliases
(``houseId``, ``dndUntil``, ``memberIds`` ...). Both spellings are
accepted on input, and :meth:`StoreState.to_envelope` writes camelCase.

Entities reference each other only by id. The store state exclusively owns
every collection, so relationships are always reconstructed by lookup.
Updates go through ``model_copy(update=...)`` and never mutate in place.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from flatstore.domain.types import (
    ChoreState,
    ExpenseType,
    Theme,
    ToastKind,
    UserStatus,
    View,
    Visibility,
)

DEFAULT_AVATAR_COLOR = "#7ea0ff"
DEFAULT_CURRENCY = "USD"
DEFAULT_CADENCE_DAYS = 7


class _Model(BaseModel):
    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "ignore",
    }


# --- Users and houses ---


class Notifications(_Model):
    push: bool = True
    email: bool = False


class User(_Model):
    """A person known to the local store.

    INVARIANT: ``status == DND`` implies a parseable ``dnd_until``.
    Non-DND users carry ``dnd_until = None``.
    """

    id: str
    name: str = ""
    email: str = ""
    house_id: str | None = None
    status: UserStatus = UserStatus.HOME
    dnd_until: str | None = None
    status_note: str = ""
    tagline: str = ""
    avatar_color: str = DEFAULT_AVATAR_COLOR
    avatar_preset: str | None = None
    photo: str | None = None
    notifications: Notifications = Field(default_factory=Notifications)
    phone: str = ""
    paypal: str = ""
    venmo: str = ""
    wp_id: int | None = None


class House(_Model):
    """A shared-living group.

    INVARIANT: ``admin_id`` is an element of ``member_ids``; a house whose
    ``member_ids`` becomes empty is deleted.
    """

    id: str
    name: str = "House"
    invite_code: str = ""
    currency: str = DEFAULT_CURRENCY
    member_ids: list[str] = Field(default_factory=list)
    admin_id: str | None = None
    admin_wp_id: int | None = None


# --- Chores ---


class ChecklistItem(_Model):
    id: str
    label: str = ""
    required: bool = False
    is_done: bool = False


class Chore(_Model):
    """A recurring chore with a rotation of assignees."""

    id: str
    house_id: str | None = None
    title: str = ""
    notes: str = ""
    created_at: str | None = None
    state: ChoreState = ChoreState.ACTIVE
    cadence_days: int = Field(default=DEFAULT_CADENCE_DAYS, gt=0)
    start_at: str | None = None
    end_at: str | None = None
    rotation: list[str] = Field(default_factory=list)
    rotation_index: int = 0
    assignee_id: str | None = None
    due_at: str | None = None
    checklist: list[ChecklistItem] = Field(default_factory=list)


# --- Household content ---


class Guest(_Model):
    id: str
    house_id: str
    name: str
    arrives_at: str | None = None
    note: str = ""
    host_id: str | None = None


class Note(_Model):
    id: str
    house_id: str
    author_id: str | None = None
    text: str = ""
    created_at: str | None = None
    pinned: bool = False


class TodoTask(_Model):
    id: str
    title: str
    is_done: bool = False
    assignee_id: str | None = None


class TodoList(_Model):
    id: str
    title: str
    owner_id: str
    visibility: Visibility = Visibility.PERSONAL
    member_ids: list[str] = Field(default_factory=list)
    tasks: list[TodoTask] = Field(default_factory=list)


class Expense(_Model):
    id: str
    house_id: str
    title: str
    amount: float = Field(gt=0, allow_inf_nan=False)
    category: str = "general"
    type: ExpenseType = ExpenseType.SHARED
    payer_id: str | None = None
    participant_ids: list[str] = Field(default_factory=list)
    created_at: str | None = None
    note: str = ""


# --- Root state ---


class Db(_Model):
    """Every entity collection owned by the store."""

    users: list[User] = Field(default_factory=list)
    houses: list[House] = Field(default_factory=list)
    chores: list[Chore] = Field(default_factory=list)
    guests: list[Guest] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)
    todo_lists: list[TodoList] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)

    def find_user(self, user_id: str | None) -> User | None:
        if not user_id:
            return None
        return next((u for u in self.users if u.id == user_id), None)

    def find_user_by_email(self, email: str) -> User | None:
        target = email.strip().lower()
        if not target:
            return None
        return next((u for u in self.users if u.email.strip().lower() == target), None)

    def find_house(self, house_id: str | None) -> House | None:
        if not house_id:
            return None
        return next((h for h in self.houses if h.id == house_id), None)

    def house_of_member(self, user_id: str) -> House | None:
        """First house listing *user_id* as a member."""
        return next((h for h in self.houses if user_id in h.member_ids), None)

    def find_chore(self, chore_id: str | None) -> Chore | None:
        if not chore_id:
            return None
        return next((c for c in self.chores if c.id == chore_id), None)

    def invite_codes(self, *, exclude_house: str | None = None) -> set[str]:
        """Upper-cased codes of every house except *exclude_house*."""
        return {
            h.invite_code.strip().upper()
            for h in self.houses
            if h.id != exclude_house and h.invite_code.strip()
        }


class StoreState(_Model):
    """Immutable snapshot of the whole store.

    ``toast`` and ``toast_kind`` describe the outcome of the most recent
    transition and are cleared at the start of every transition.
    """

    db: Db = Field(default_factory=Db)
    current_user_id: str | None = None
    view: View = View.AUTH
    theme: Theme = Theme.LIGHT
    toast: str | None = None
    toast_kind: ToastKind | None = None

    def to_envelope(self) -> dict[str, Any]:
        """Serialize to the persisted envelope (camelCase, no toast)."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"toast", "toast_kind"},
        )
