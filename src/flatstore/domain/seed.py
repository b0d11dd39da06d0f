"""Demo household used by ``flatstore init --seed``."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from flatstore.domain.dates import add_days, to_iso
from flatstore.domain.ids import new_entity_id
from flatstore.domain.invites import generate_invite_code

if TYPE_CHECKING:
    import random

DEMO_HOUSE_NAME = "Demo House"


def seed_db(*, now: datetime, rng: random.Random) -> dict[str, Any]:
    """Raw (camelCase) demo collections: three users, one house, one chore.

    The result is meant to go through
    :func:`flatstore.domain.normalize.normalize_db` like any persisted
    snapshot.
    """
    house_id = new_entity_id("house", rng)
    alex = new_entity_id("user", rng)
    sam = new_entity_id("user", rng)
    jordan = new_entity_id("user", rng)
    everyone = [alex, sam, jordan]

    def user(user_id: str, name: str, status: str, tagline: str, color: str) -> dict[str, Any]:
        return {
            "id": user_id,
            "name": name,
            "email": f"{name.lower()}@demo.com",
            "houseId": house_id,
            "status": status,
            "tagline": tagline,
            "avatarColor": color,
        }

    return {
        "users": [
            user(alex, "Alex", "HOME", "Here to help", "#7ea0ff"),
            user(sam, "Sam", "AWAY", "Back later", "#5c9dff"),
            user(jordan, "Jordan", "HOME", "", "#31c48d"),
        ],
        "houses": [
            {
                "id": house_id,
                "name": DEMO_HOUSE_NAME,
                "inviteCode": generate_invite_code(set(), rng),
                "memberIds": everyone,
                "adminId": alex,
            }
        ],
        "guests": [
            {
                "id": new_entity_id("guest", rng),
                "houseId": house_id,
                "name": "Mom visiting",
                "arrivesAt": to_iso(add_days(now, 3)),
                "note": "Staying for the weekend",
                "hostId": alex,
            }
        ],
        "chores": [
            {
                "id": new_entity_id("chore", rng),
                "houseId": house_id,
                "title": "Trash",
                "createdAt": to_iso(now),
                "state": "ACTIVE",
                "cadenceDays": 7,
                "startAt": to_iso(now),
                "rotation": everyone,
                "rotationIndex": 0,
                "assigneeId": alex,
                "dueAt": to_iso(add_days(now, 1)),
                "checklist": [
                    {"id": new_entity_id("item", rng), "label": "Replace bag", "required": True},
                    {"id": new_entity_id("item", rng), "label": "Wipe bin rim", "required": True},
                ],
            }
        ],
        "todoLists": [
            {
                "id": new_entity_id("todo_list", rng),
                "title": "My errands",
                "ownerId": alex,
                "visibility": "personal",
                "memberIds": [alex],
                "tasks": [
                    {"id": new_entity_id("todo", rng), "title": "Buy groceries"},
                    {"id": new_entity_id("todo", rng), "title": "Call utilities", "isDone": True},
                ],
            },
            {
                "id": new_entity_id("todo_list", rng),
                "title": "Shared setup",
                "ownerId": alex,
                "visibility": "shared",
                "memberIds": everyone,
                "tasks": [
                    {
                        "id": new_entity_id("todo", rng),
                        "title": "Set up Wi-Fi",
                        "isDone": True,
                        "assigneeId": sam,
                    },
                    {
                        "id": new_entity_id("todo", rng),
                        "title": "Split bills spreadsheet",
                        "assigneeId": jordan,
                    },
                ],
            },
        ],
    }
