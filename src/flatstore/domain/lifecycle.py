"""Chore lifecycle and user presence rules.

- Chore lifecycle: ACTIVE -> ENDED, computed by the scheduler. ENDED is
  terminal and never reverts.
- Presence: DND is only valid with a parseable ``dnd_until``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from flatstore.domain.dates import normalize_iso, parse_iso
from flatstore.domain.types import ChoreState, UserStatus

# --- Transition maps ---

CHORE_TRANSITIONS: dict[str, list[str]] = {
    "ACTIVE": ["ENDED"],
    "ENDED": [],
}


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]],
) -> bool:
    """Check if transitioning from *current* to *target* is allowed.

    Staying in the same state is always allowed.
    """
    if current == target:
        return True
    return target in transitions.get(current, [])


def is_chore_ended(state: str) -> bool:
    return state == ChoreState.ENDED


# --- Presence ---


def coerce_status(value: Any) -> UserStatus | None:
    """Parse a status string case-insensitively; None when unknown."""
    if isinstance(value, UserStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return UserStatus(value.strip().upper())
    except ValueError:
        return None


def resolve_dnd(status: UserStatus, until: Any) -> tuple[UserStatus, str | None]:
    """Apply the DND invariant to a requested ``(status, until)`` pair.

    DND without a parseable *until* becomes HOME. Any non-DND status drops
    the until timestamp.
    """
    if status != UserStatus.DND:
        return status, None
    normalized = normalize_iso(until)
    if normalized is None:
        return UserStatus.HOME, None
    return UserStatus.DND, normalized


def dnd_expired(dnd_until: str | None, now: datetime) -> bool:
    """True when a DND window is over or its end cannot be parsed."""
    until = parse_iso(dnd_until)
    if until is None:
        return True
    return until <= now
