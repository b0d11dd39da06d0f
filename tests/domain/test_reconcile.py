"""Tests for remote house reconciliation."""

import random

from flatstore.domain.reconcile import (
    detach_from_other_houses,
    ensure_member_user,
    merge_remote_house,
    pick_admin,
    remove_member,
)
from flatstore.domain.types import UserStatus
from tests.conftest import make_house, make_user


def _rng() -> random.Random:
    return random.Random(8)


class TestPickAdmin:
    def test_first_member(self) -> None:
        assert pick_admin(["b", "a"]) == "b"

    def test_fallback_when_empty(self) -> None:
        assert pick_admin([], "z") == "z"
        assert pick_admin([]) is None


class TestEnsureMemberUser:
    def test_matches_by_external_id(self) -> None:
        users = [make_user("a", wp_id=9)]
        result, user_id = ensure_member_user(users, {"wpId": 9, "name": "Alex"}, "h1", _rng())
        assert user_id == "a"
        assert result[0].house_id == "h1"
        assert result[0].name == "Alex"

    def test_matches_by_email_case_insensitive(self) -> None:
        users = [make_user("s", email="Sam@Example.com")]
        result, user_id = ensure_member_user(
            users, {"email": "sam@example.com", "wpId": 5}, "h1", _rng()
        )
        assert user_id == "s"
        assert result[0].wp_id == 5

    def test_external_id_beats_email(self) -> None:
        users = [make_user("x", email="a@x.com"), make_user("y", wp_id=3)]
        _, user_id = ensure_member_user(users, {"wpId": 3, "email": "a@x.com"}, "h1", _rng())
        assert user_id == "y"

    def test_synthesizes_unknown_member(self) -> None:
        result, user_id = ensure_member_user([], {"wp_user_id": 12}, "h1", _rng())
        assert len(result) == 1
        user = result[0]
        assert user.id == user_id
        assert user.id.startswith("user_")
        assert user.email == "user12@remote.local"
        assert user.wp_id == 12
        assert user.house_id == "h1"

    def test_skips_member_without_identity(self) -> None:
        users = [make_user("a")]
        result, user_id = ensure_member_user(users, {"name": "Ghost"}, "h1", _rng())
        assert user_id is None
        assert result is users

    def test_remote_status_applied_but_not_dnd(self) -> None:
        users = [make_user("a", wp_id=1)]
        result, _ = ensure_member_user(users, {"wpId": 1, "status": "away"}, "h1", _rng())
        assert result[0].status == UserStatus.AWAY
        result, _ = ensure_member_user(result, {"wpId": 1, "status": "DND"}, "h1", _rng())
        assert result[0].status == UserStatus.AWAY

    def test_local_dnd_kept(self) -> None:
        users = [make_user("a", wp_id=1, status="DND", dnd_until="2024-02-01T00:00:00Z")]
        result, _ = ensure_member_user(users, {"wpId": 1, "status": "HOME"}, "h1", _rng())
        assert result[0].status == UserStatus.DND


class TestMergeRemoteHouse:
    def test_flagged_admin_resolved_through_identity(self) -> None:
        users = [make_user("a", wp_id=9)]
        remote = {"id": "h1", "members": [{"wp_user_id": 9, "email": "a@x.com", "role": "admin"}]}
        merged = merge_remote_house(remote, users, None, None, rng=_rng())
        assert merged.house is not None
        assert merged.house.admin_id == "a"
        assert merged.house.member_ids == ["a"]
        assert merged.house.admin_wp_id == 9
        assert len(merged.users) == 1

    def test_first_flagged_admin_wins(self) -> None:
        users = [make_user("a", wp_id=1), make_user("b", wp_id=2)]
        remote = {
            "id": "h1",
            "members": [{"wpId": 1}, {"wpId": 2, "role": "admin"}, {"wpId": 1, "role": "admin"}],
        }
        merged = merge_remote_house(remote, users, None, None, rng=_rng())
        assert merged.house.admin_id == "b"
        assert merged.house.member_ids == ["a", "b"]

    def test_admin_external_id(self) -> None:
        users = [make_user("a", wp_id=1), make_user("b", wp_id=2)]
        remote = {"id": "h1", "admin_user_id": 2, "members": [{"wpId": 1}, {"wpId": 2}]}
        merged = merge_remote_house(remote, users, None, None, rng=_rng())
        assert merged.house.admin_id == "b"

    def test_admin_external_id_of_non_member_ignored(self) -> None:
        users = [make_user("a", wp_id=1), make_user("z", wp_id=99)]
        remote = {"id": "h1", "adminWpId": 99, "members": [{"wpId": 1}]}
        merged = merge_remote_house(remote, users, None, None, rng=_rng())
        assert merged.house.admin_id == "a"

    def test_previous_local_admin(self) -> None:
        users = [make_user("a", wp_id=1), make_user("b", wp_id=2)]
        local = make_house("h1", ["a", "b"], admin_id="b")
        remote = {"id": "h1", "members": [{"wpId": 1}, {"wpId": 2}]}
        merged = merge_remote_house(remote, users, local, None, rng=_rng())
        assert merged.house.admin_id == "b"

    def test_first_member_last_resort(self) -> None:
        users = [make_user("a", wp_id=1), make_user("b", wp_id=2)]
        remote = {"id": "h1", "members": [{"wpId": 2}, {"wpId": 1}]}
        merged = merge_remote_house(remote, users, None, None, rng=_rng())
        assert merged.house.admin_id == "b"

    def test_self_appended(self) -> None:
        users = [make_user("a", wp_id=1), make_user("me")]
        remote = {"id": "h1", "members": [{"wpId": 1}]}
        merged = merge_remote_house(remote, users, None, "me", rng=_rng())
        assert merged.house.member_ids == ["a", "me"]

    def test_local_members_when_remote_lists_none(self) -> None:
        users = [make_user("a"), make_user("b")]
        local = make_house("h1", ["a", "b"])
        merged = merge_remote_house({"id": "h1"}, users, local, None, rng=_rng())
        assert merged.house.member_ids == ["a", "b"]

    def test_fields_from_remote_then_local(self) -> None:
        local = make_house("h1", ["a"], name="Old", currency="EUR", invite_code="LOCAL234")
        users = [make_user("a", wp_id=1)]
        remote = {"id": "h1", "name": "New", "members": [{"wpId": 1}]}
        merged = merge_remote_house(remote, users, local, None, rng=_rng())
        assert merged.house.name == "New"
        assert merged.house.currency == "EUR"
        assert merged.house.invite_code == "LOCAL234"

        remote = {"id": "h1", "inviteCode": "REMOTE23", "currency": "gbp", "members": []}
        merged = merge_remote_house(remote, users, local, None, rng=_rng())
        assert merged.house.invite_code == "REMOTE23"
        assert merged.house.currency == "GBP"

    def test_defaults_without_local(self) -> None:
        merged = merge_remote_house({"id": 5, "members": []}, [], None, None, rng=_rng())
        assert merged.house.id == "5"
        assert merged.house.name == "House"
        assert merged.house.currency == "USD"
        assert merged.house.invite_code == ""
        assert merged.house.member_ids == []
        assert merged.house.admin_id is None

    def test_missing_id_returns_inputs(self) -> None:
        users = [make_user("a")]
        local = make_house("h1", ["a"])
        merged = merge_remote_house({"name": "x"}, users, local, "a", rng=_rng())
        assert merged.users is users
        assert merged.house is local

    def test_local_only_users_preserved(self) -> None:
        users = [make_user("a", wp_id=1), make_user("offline")]
        remote = {"id": "h1", "members": [{"wpId": 1}, {"wpId": 2}]}
        merged = merge_remote_house(remote, users, None, None, rng=_rng())
        assert [u.id for u in merged.users][:2] == ["a", "offline"]
        assert len(merged.users) == 3


class TestRemoveMember:
    def test_admin_leaving_reassigns(self) -> None:
        users = [make_user("a"), make_user("b", wp_id=4)]
        house = make_house("h1", ["a", "b"], admin_id="a")
        updated = remove_member(house, "a", users)
        assert updated is not None
        assert updated.member_ids == ["b"]
        assert updated.admin_id == "b"
        assert updated.admin_wp_id == 4

    def test_non_admin_leaving(self) -> None:
        house = make_house("h1", ["a", "b"], admin_id="a")
        updated = remove_member(house, "b", [])
        assert updated.member_ids == ["a"]
        assert updated.admin_id == "a"

    def test_last_member_deletes(self) -> None:
        assert remove_member(make_house("h1", ["a"]), "a", []) is None

    def test_non_member_unchanged(self) -> None:
        house = make_house("h1", ["a"])
        assert remove_member(house, "zzz", []) is house


class TestDetachFromOtherHouses:
    def test_keeps_target_and_drops_empty(self) -> None:
        houses = [
            make_house("h1", ["a", "b"]),
            make_house("h2", ["a"]),
            make_house("h3", ["c", "a"]),
        ]
        result = detach_from_other_houses(houses, "a", "h1", [])
        assert [h.id for h in result] == ["h1", "h3"]
        assert result[0].member_ids == ["a", "b"]
        assert result[1].member_ids == ["c"]
        assert result[1].admin_id == "c"

    def test_detach_everywhere(self) -> None:
        houses = [make_house("h1", ["a", "b"])]
        result = detach_from_other_houses(houses, "a", None, [])
        assert result[0].member_ids == ["b"]
