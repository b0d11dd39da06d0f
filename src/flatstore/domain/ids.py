"""ID prefixes, validation, and generation.

Entity ids are opaque: ``{prefix}_{10 base-36 chars}``. The random source
is always passed in so callers (and tests) control determinism.

INVARIANT: IDs are permanent. Once assigned, an entity id never changes.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import random

ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
ID_SUFFIX_LENGTH = 10

ENTITY_PREFIXES: dict[str, str] = {
    "user": "user",
    "house": "house",
    "chore": "chore",
    "item": "item",
    "guest": "guest",
    "note": "note",
    "todo_list": "todo_list",
    "todo": "todo",
    "expense": "expense",
}

_ID_PATTERN = re.compile(r"^[A-Za-z_]+_[0-9a-z]+$")


def new_id(prefix: str, rng: random.Random) -> str:
    """Generate an opaque id with the given *prefix*."""
    suffix = "".join(rng.choice(ID_ALPHABET) for _ in range(ID_SUFFIX_LENGTH))
    return f"{prefix}_{suffix}"


def new_entity_id(entity: str, rng: random.Random) -> str:
    """Generate an id for a known entity kind (``"user"``, ``"chore"``, ...)."""
    return new_id(ENTITY_PREFIXES[entity], rng)


def is_generated_id(value: str) -> bool:
    """Check whether *value* has the shape produced by :func:`new_id`."""
    return _ID_PATTERN.match(value) is not None
