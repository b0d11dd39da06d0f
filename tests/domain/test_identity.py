"""Tests for remote payload field extraction rules."""

import pytest

from flatstore.domain import identity


class TestToExternalId:
    @pytest.mark.parametrize(
        "raw,expected",
        [(12, 12), ("12", 12), (" 7 ", 7), (3.0, 3), (3.5, None), ("abc", None), (True, None)],
    )
    def test_coercion(self, raw: object, expected: int | None) -> None:
        assert identity.to_external_id(raw) == expected

    @pytest.mark.parametrize("raw", [float("inf"), float("nan"), "9" * 5000])
    def test_unrepresentable(self, raw: object) -> None:
        assert identity.to_external_id(raw) is None


class TestMemberRules:
    def test_wp_user_id_takes_precedence(self) -> None:
        member = {"id": 1, "user_id": 2, "wpId": 3, "wp_user_id": 4}
        assert identity.member_external_id(member) == 4

    def test_falls_through_none_values(self) -> None:
        assert identity.member_external_id({"wp_user_id": None, "wpId": "7"}) == 7

    def test_plain_id_last(self) -> None:
        assert identity.member_external_id({"id": "21"}) == 21

    def test_email_normalized(self) -> None:
        assert identity.member_email({"user_email": " Sam@Example.COM "}) == "sam@example.com"
        assert identity.member_email({}) == ""

    def test_name_rules(self) -> None:
        assert identity.member_name({"displayName": "Sam"}) == "Sam"
        assert identity.member_name({"name": "  ", "display_name": "S"}) is None

    def test_admin_role(self) -> None:
        assert identity.member_is_admin({"role": "Admin"})
        assert not identity.member_is_admin({"role": "member"})
        assert not identity.member_is_admin({})


class TestHouseRules:
    def test_house_id(self) -> None:
        assert identity.house_id({"id": 42}) == "42"
        assert identity.house_id({"houseId": "h9"}) == "h9"
        assert identity.house_id({"name": "x"}) is None

    def test_admin_external_id_precedence(self) -> None:
        remote = {"adminWpId": 2, "admin_user_id": 1}
        assert identity.house_admin_external_id(remote) == 1

    def test_admin_external_id_nested(self) -> None:
        assert identity.house_admin_external_id({"adminMember": {"wpId": "4"}}) == 4
        assert identity.house_admin_external_id({"admin_member": {"wp_user_id": 5}}) == 5

    def test_invite_code(self) -> None:
        assert identity.house_invite_code({"inviteCode": "ABCD2345"}) == "ABCD2345"
        assert identity.house_invite_code({"invite_code": ""}) is None

    def test_members_drop_non_mappings(self) -> None:
        remote = {"members": [{"wpId": 1}, "bogus", None, {"email": "a@x.com"}]}
        assert identity.house_members(remote) == [{"wpId": 1}, {"email": "a@x.com"}]

    def test_members_missing(self) -> None:
        assert identity.house_members({"members": "nope"}) == []
        assert identity.house_members({}) == []

    def test_non_mapping_payload(self) -> None:
        assert identity.first_defined(["id"], identity.HOUSE_ID_RULES) is None
