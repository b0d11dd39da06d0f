"""Read helpers over a :class:`StoreState`.

Every selector takes the state and (where relevant) the viewing user and
returns plain lists; nothing here mutates.
"""

from __future__ import annotations

from flatstore.domain.models import (
    Chore,
    Expense,
    Guest,
    House,
    Note,
    StoreState,
    TodoList,
    User,
)
from flatstore.domain.types import Visibility


def current_user(state: StoreState) -> User | None:
    return state.db.find_user(state.current_user_id)


def house_for_user(state: StoreState, me: User | None) -> House | None:
    if me is None or not me.house_id:
        return None
    return state.db.find_house(me.house_id)


def house_users(state: StoreState, me: User | None) -> list[User]:
    """Members of *me*'s house, in store order."""
    house = house_for_user(state, me)
    if house is None:
        return []
    return [u for u in state.db.users if u.id in house.member_ids]


def house_chores(state: StoreState, me: User | None) -> list[Chore]:
    if me is None or not me.house_id:
        return []
    return [c for c in state.db.chores if c.house_id == me.house_id]


def house_guests(state: StoreState, me: User | None) -> list[Guest]:
    if me is None or not me.house_id:
        return []
    return [g for g in state.db.guests if g.house_id == me.house_id]


def house_notes(state: StoreState, me: User | None) -> list[Note]:
    if me is None or not me.house_id:
        return []
    return [n for n in state.db.notes if n.house_id == me.house_id]


def house_expenses(state: StoreState, me: User | None) -> list[Expense]:
    if me is None or not me.house_id:
        return []
    return [e for e in state.db.expenses if e.house_id == me.house_id]


def visible_todo_lists(state: StoreState, me: User | None) -> list[TodoList]:
    """Personal lists owned by *me* plus shared lists *me* is a member of."""
    if me is None:
        return []
    visible: list[TodoList] = []
    for todo_list in state.db.todo_lists:
        if todo_list.visibility == Visibility.PERSONAL and todo_list.owner_id == me.id:
            visible.append(todo_list)
        elif todo_list.visibility == Visibility.SHARED and me.id in todo_list.member_ids:
            visible.append(todo_list)
    return visible
