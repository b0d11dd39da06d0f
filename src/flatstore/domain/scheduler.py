"""Chore scheduling: due dates, rotation, checklist reset, and ending.

Pure functions over :class:`~flatstore.domain.models.Chore`. The caller
supplies ``now`` and the time zone used for calendar-day arithmetic.
"""

from __future__ import annotations

from datetime import UTC, datetime, tzinfo

from flatstore.domain.dates import parse_iso, shift_days, to_iso
from flatstore.domain.models import ChecklistItem, Chore
from flatstore.domain.types import ChoreState


def assignment_for(rotation: list[str], index: int) -> tuple[str | None, int]:
    """Return ``(assignee_id, rotation_index)`` for a rotation position.

    An empty rotation has no assignee and index 0. Out-of-range indexes
    wrap around.
    """
    if not rotation:
        return None, 0
    idx = index % len(rotation)
    return rotation[idx], idx


def next_assignment(chore: Chore) -> tuple[str | None, int]:
    """Advance one step through the rotation, wrapping at the end."""
    if not chore.rotation:
        return None, 0
    return assignment_for(chore.rotation, chore.rotation_index + 1)


def reset_checklist(items: list[ChecklistItem]) -> list[ChecklistItem]:
    return [item.model_copy(update={"is_done": False}) for item in items]


def next_due(chore: Chore, *, now: datetime, tz: tzinfo = UTC) -> datetime | None:
    """Due date after the current one, ``cadence_days`` calendar days later.

    A chore without a parseable due date counts from *now*. None when the
    next occurrence would fall past the last representable date.
    """
    base = parse_iso(chore.due_at) or now
    return shift_days(base, chore.cadence_days, tz)


def complete_chore(
    chore: Chore,
    user_id: str | None,
    *,
    now: datetime,
    tz: tzinfo = UTC,
) -> Chore:
    """Mark the current occurrence done and schedule the next one.

    Returns *chore* unchanged when it has ended or *user_id* is not the
    current assignee. When the next due date falls after ``end_at``, or
    past the end of the calendar, the chore ends, keeping its due date and
    assignee. Otherwise the rotation advances and the due date moves
    forward. The checklist is reset in both cases.
    """
    if chore.state == ChoreState.ENDED:
        return chore
    if user_id is None or chore.assignee_id != user_id:
        return chore

    due = next_due(chore, now=now, tz=tz)
    checklist = reset_checklist(chore.checklist)

    end_at = parse_iso(chore.end_at)
    if due is None or (end_at is not None and due > end_at):
        return chore.model_copy(update={"state": ChoreState.ENDED, "checklist": checklist})

    assignee_id, rotation_index = next_assignment(chore)
    return chore.model_copy(
        update={
            "due_at": to_iso(due),
            "assignee_id": assignee_id,
            "rotation_index": rotation_index,
            "checklist": checklist,
        }
    )


def toggle_checklist_item(chore: Chore, item_id: str) -> Chore:
    """Flip ``is_done`` on one checklist item; unknown ids are ignored."""
    checklist = [
        item.model_copy(update={"is_done": not item.is_done}) if item.id == item_id else item
        for item in chore.checklist
    ]
    return chore.model_copy(update={"checklist": checklist})
