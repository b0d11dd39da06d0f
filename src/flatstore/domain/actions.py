"""Action variants accepted by the reducer.

``Action`` is a closed, tagged union discriminated on ``type``. Adding a
variant means adding it to ``Action`` *and* registering a handler in
:mod:`flatstore.domain.reducer`; the reducer checks coverage at import.

Entity-creating actions carry the raw entity mapping (as built by the UI).
The reducer fills in ids and validates it, so a malformed payload becomes a
validation toast rather than a parse failure.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union, get_args

from pydantic import BaseModel, Field, TypeAdapter, field_validator
from pydantic.alias_generators import to_camel

from flatstore.domain.types import Theme


class _Action(BaseModel):
    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
        "extra": "ignore",
    }


# --- Payloads ---


class Profile(_Action):
    """Identity details supplied by the external auth collaborator."""

    name: str | None = None
    wp_id: int | None = None


class CreateHousePayload(_Action):
    name: str = ""
    id: str | None = None
    invite_code: str | None = None
    currency: str | None = None


class JoinHousePayload(_Action):
    code: str | None = None
    house: dict[str, Any] | None = None


# --- Session ---


class Login(_Action):
    type: Literal["LOGIN"] = "LOGIN"
    email: str = ""
    profile: Profile | None = None


class Signup(_Action):
    type: Literal["SIGNUP"] = "SIGNUP"
    name: str = ""
    email: str = ""
    profile: Profile | None = None


class Logout(_Action):
    type: Literal["LOGOUT"] = "LOGOUT"


# --- Houses ---


class CreateHouse(_Action):
    type: Literal["CREATE_HOUSE"] = "CREATE_HOUSE"
    payload: CreateHousePayload = Field(default_factory=CreateHousePayload)

    @field_validator("payload", mode="before")
    @classmethod
    def _name_shorthand(cls, v: Any) -> Any:
        if isinstance(v, str):
            return {"name": v}
        return v


class JoinHouse(_Action):
    type: Literal["JOIN_HOUSE"] = "JOIN_HOUSE"
    payload: JoinHousePayload = Field(default_factory=JoinHousePayload)

    @field_validator("payload", mode="before")
    @classmethod
    def _code_shorthand(cls, v: Any) -> Any:
        if isinstance(v, str):
            return {"code": v}
        return v


class SyncRemoteHouses(_Action):
    type: Literal["SYNC_REMOTE_HOUSES"] = "SYNC_REMOTE_HOUSES"
    houses: list[Any] = Field(default_factory=list)


class LeaveHouse(_Action):
    type: Literal["LEAVE_HOUSE"] = "LEAVE_HOUSE"
    user_id: str = ""


class TransferAdmin(_Action):
    type: Literal["TRANSFER_ADMIN"] = "TRANSFER_ADMIN"
    from_user_id: str = ""
    to_user_id: str = ""


class RegenerateInvite(_Action):
    type: Literal["REGENERATE_INVITE"] = "REGENERATE_INVITE"
    user_id: str = ""
    house_id: str = ""
    invite_code: str | None = None


class RenameHouse(_Action):
    type: Literal["RENAME_HOUSE"] = "RENAME_HOUSE"
    user_id: str = ""
    house_id: str = ""
    name: str = ""


class SetHouseCurrency(_Action):
    type: Literal["SET_HOUSE_CURRENCY"] = "SET_HOUSE_CURRENCY"
    user_id: str = ""
    house_id: str = ""
    currency: str = ""


# --- Chores ---


class AddChore(_Action):
    type: Literal["ADD_CHORE"] = "ADD_CHORE"
    chore: dict[str, Any] = Field(default_factory=dict)


class UpdateChore(_Action):
    type: Literal["UPDATE_CHORE"] = "UPDATE_CHORE"
    chore_id: str = ""
    patch: dict[str, Any] = Field(default_factory=dict)


class ToggleChoreItem(_Action):
    type: Literal["TOGGLE_CHORE_ITEM"] = "TOGGLE_CHORE_ITEM"
    chore_id: str = ""
    item_id: str = ""


class CompleteChore(_Action):
    type: Literal["COMPLETE_CHORE"] = "COMPLETE_CHORE"
    chore_id: str = ""
    user_id: str = ""


# --- People ---


class SetStatus(_Action):
    type: Literal["SET_STATUS"] = "SET_STATUS"
    user_id: str = ""
    status: str = ""
    until: str | None = None
    status_note: str | None = None


class UpdateProfile(_Action):
    type: Literal["UPDATE_PROFILE"] = "UPDATE_PROFILE"
    user_id: str = ""
    patch: dict[str, Any] = Field(default_factory=dict)


class CheckDndExpiry(_Action):
    type: Literal["CHECK_DND_EXPIRY"] = "CHECK_DND_EXPIRY"


class AddGuest(_Action):
    type: Literal["ADD_GUEST"] = "ADD_GUEST"
    guest: dict[str, Any] = Field(default_factory=dict)


# --- Notes ---


class AddNote(_Action):
    type: Literal["ADD_NOTE"] = "ADD_NOTE"
    note: dict[str, Any] = Field(default_factory=dict)


class UpdateNote(_Action):
    type: Literal["UPDATE_NOTE"] = "UPDATE_NOTE"
    note_id: str = ""
    patch: dict[str, Any] = Field(default_factory=dict)


class DeleteNote(_Action):
    type: Literal["DELETE_NOTE"] = "DELETE_NOTE"
    note_id: str = ""


# --- To-do lists ---


class AddTodoList(_Action):
    type: Literal["ADD_TODO_LIST"] = "ADD_TODO_LIST"
    todo_list: dict[str, Any] = Field(default_factory=dict, alias="list")


class UpdateTodoList(_Action):
    type: Literal["UPDATE_TODO_LIST"] = "UPDATE_TODO_LIST"
    list_id: str = ""
    patch: dict[str, Any] = Field(default_factory=dict)


class DeleteTodoList(_Action):
    type: Literal["DELETE_TODO_LIST"] = "DELETE_TODO_LIST"
    list_id: str = ""


class AddTodoItem(_Action):
    type: Literal["ADD_TODO_ITEM"] = "ADD_TODO_ITEM"
    list_id: str = ""
    task: dict[str, Any] = Field(default_factory=dict)


class ToggleTodoItem(_Action):
    type: Literal["TOGGLE_TODO_ITEM"] = "TOGGLE_TODO_ITEM"
    list_id: str = ""
    task_id: str = ""


class DeleteTodoItem(_Action):
    type: Literal["DELETE_TODO_ITEM"] = "DELETE_TODO_ITEM"
    list_id: str = ""
    task_id: str = ""


# --- Expenses ---


class AddExpense(_Action):
    type: Literal["ADD_EXPENSE"] = "ADD_EXPENSE"
    expense: dict[str, Any] = Field(default_factory=dict)


class DeleteExpense(_Action):
    type: Literal["DELETE_EXPENSE"] = "DELETE_EXPENSE"
    expense_id: str = ""


# --- UI ---


class SetTheme(_Action):
    type: Literal["SET_THEME"] = "SET_THEME"
    theme: Theme | None = None


class DismissToast(_Action):
    type: Literal["DISMISS_TOAST"] = "DISMISS_TOAST"


Action = Annotated[
    Union[
        Login,
        Signup,
        Logout,
        CreateHouse,
        JoinHouse,
        SyncRemoteHouses,
        LeaveHouse,
        TransferAdmin,
        RegenerateInvite,
        RenameHouse,
        SetHouseCurrency,
        AddChore,
        UpdateChore,
        ToggleChoreItem,
        CompleteChore,
        SetStatus,
        UpdateProfile,
        CheckDndExpiry,
        AddGuest,
        AddNote,
        UpdateNote,
        DeleteNote,
        AddTodoList,
        UpdateTodoList,
        DeleteTodoList,
        AddTodoItem,
        ToggleTodoItem,
        DeleteTodoItem,
        AddExpense,
        DeleteExpense,
        SetTheme,
        DismissToast,
    ],
    Field(discriminator="type"),
]

ACTION_TYPES: tuple[type[BaseModel], ...] = get_args(get_args(Action)[0])

_ADAPTER: TypeAdapter[Action] = TypeAdapter(Action)


def parse_action(raw: Any) -> Action:
    """Validate an untyped mapping into an action variant.

    Raises:
        pydantic.ValidationError: Unknown ``type`` tag or malformed fields.
    """
    return _ADAPTER.validate_python(raw)


def action_tag(action_cls: type[BaseModel]) -> str:
    """The ``type`` tag of an action class."""
    return str(action_cls.model_fields["type"].default)
