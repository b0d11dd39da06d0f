"""Invite code generation.

Codes are 8 characters drawn from a 32-symbol alphabet without visually
ambiguous characters (no 0/O, 1/I). Generation is bounded: after
``MAX_ATTEMPTS`` colliding draws a prefixed unique id is returned instead.

Codes are stored upper case and compared case-insensitively, so two
houses never hold codes that differ only by case.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from flatstore.domain.ids import new_id

if TYPE_CHECKING:
    import random
    from collections.abc import Collection

INVITE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITE_LENGTH = 8
MAX_ATTEMPTS = 50
FALLBACK_PREFIX = "INV"


def draw_invite_code(rng: random.Random) -> str:
    """Draw one candidate code (no collision check)."""
    return "".join(rng.choice(INVITE_ALPHABET) for _ in range(INVITE_LENGTH))


def generate_invite_code(
    existing: Collection[str],
    rng: random.Random,
    *,
    attempts: int = MAX_ATTEMPTS,
) -> str:
    """Return a code not present in *existing*.

    Falls back to ``INV_<id>`` when every draw collides.
    """
    for _ in range(attempts):
        code = draw_invite_code(rng)
        if code not in existing:
            return code
    return normalize_invite_code(new_id(FALLBACK_PREFIX, rng))


def is_invite_code(value: str) -> bool:
    """Check whether *value* looks like a drawn (non-fallback) code."""
    return len(value) == INVITE_LENGTH and all(ch in INVITE_ALPHABET for ch in value)


def normalize_invite_code(value: Any) -> str:
    """Canonical stored form of a code: trimmed and upper case."""
    return str(value or "").strip().upper()
