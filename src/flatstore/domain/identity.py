"""Field extraction rules for remote household payloads.

Remote payloads name the same value differently depending on the endpoint
that produced them (``wp_user_id`` vs ``wpId`` vs ``user_id`` ...). Each
value is read through an explicit ordered rule list: the first rule that
yields a defined value wins, and the value is then coerced to its type.
The order encodes tie-break intent and must not be rearranged.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

# A rule is a key path into the payload.
Rule = tuple[str, ...]

MEMBER_EXTERNAL_ID_RULES: tuple[Rule, ...] = (
    ("wp_user_id",),
    ("wpId",),
    ("user_id",),
    ("id",),
)

MEMBER_EMAIL_RULES: tuple[Rule, ...] = (
    ("email",),
    ("user_email",),
)

MEMBER_NAME_RULES: tuple[Rule, ...] = (
    ("name",),
    ("display_name",),
    ("displayName",),
)

HOUSE_ADMIN_EXTERNAL_ID_RULES: tuple[Rule, ...] = (
    ("admin_user_id",),
    ("adminUserId",),
    ("admin_wp_id",),
    ("adminWpId",),
    ("admin_member", "wp_user_id"),
    ("admin_member", "wpId"),
    ("adminMember", "wp_user_id"),
    ("adminMember", "wpId"),
)

HOUSE_ID_RULES: tuple[Rule, ...] = (("id",), ("houseId",))

INVITE_CODE_RULES: tuple[Rule, ...] = (("invite_code",), ("inviteCode",))


def _lookup(payload: Mapping[str, Any], rule: Rule) -> Any:
    current: Any = payload
    for key in rule:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def first_defined(payload: Any, rules: tuple[Rule, ...]) -> Any:
    """Return the first non-None value found by *rules*, or None."""
    if not isinstance(payload, Mapping):
        return None
    for rule in rules:
        value = _lookup(payload, rule)
        if value is not None:
            return value
    return None


def to_external_id(value: Any) -> int | None:
    """Coerce a raw external identity to an int, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if text.lstrip("-").isdigit():
            try:
                return int(text)
            except ValueError:
                # Longer than the interpreter's int string limit.
                return None
    return None


def normalize_email(value: Any) -> str:
    return value.strip().lower() if isinstance(value, str) else ""


def _text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# --- Member records ---


def member_external_id(member: Mapping[str, Any]) -> int | None:
    return to_external_id(first_defined(member, MEMBER_EXTERNAL_ID_RULES))


def member_email(member: Mapping[str, Any]) -> str:
    return normalize_email(first_defined(member, MEMBER_EMAIL_RULES))


def member_name(member: Mapping[str, Any]) -> str | None:
    return _text(first_defined(member, MEMBER_NAME_RULES))


def member_is_admin(member: Mapping[str, Any]) -> bool:
    role = member.get("role") if isinstance(member, Mapping) else None
    return isinstance(role, str) and role.strip().lower() == "admin"


# --- House records ---


def house_id(remote: Mapping[str, Any]) -> str | None:
    return _text(first_defined(remote, HOUSE_ID_RULES))


def house_admin_external_id(remote: Mapping[str, Any]) -> int | None:
    return to_external_id(first_defined(remote, HOUSE_ADMIN_EXTERNAL_ID_RULES))


def house_invite_code(remote: Mapping[str, Any]) -> str | None:
    return _text(first_defined(remote, INVITE_CODE_RULES))


def house_members(remote: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    """Member records of a remote house; non-mapping entries are dropped."""
    members = remote.get("members") if isinstance(remote, Mapping) else None
    if not isinstance(members, list):
        return []
    return [m for m in members if isinstance(m, Mapping)]
