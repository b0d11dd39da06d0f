"""Closed classification enums for the household store.

Values match the strings used in the persisted snapshot envelope and in
remote household payloads.
"""

from __future__ import annotations

from enum import StrEnum


class UserStatus(StrEnum):
    """Presence status shown to housemates."""

    HOME = "HOME"
    AWAY = "AWAY"
    OUT = "OUT"
    DND = "DND"


class ChoreState(StrEnum):
    """Chore lifecycle. ENDED is terminal."""

    ACTIVE = "ACTIVE"
    ENDED = "ENDED"


class View(StrEnum):
    """Top-level UI route driven by the store."""

    AUTH = "AUTH"
    ONBOARDING = "ONBOARDING"
    DASHBOARD = "DASHBOARD"


class Theme(StrEnum):
    LIGHT = "light"
    DARK = "dark"


class Visibility(StrEnum):
    """Who can see a to-do list."""

    PERSONAL = "personal"
    SHARED = "shared"


class ExpenseType(StrEnum):
    SHARED = "shared"
    PERSONAL = "personal"


class ToastKind(StrEnum):
    """Outcome classification attached to the most recent toast."""

    SUCCESS = "success"
    VALIDATION = "validation"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
