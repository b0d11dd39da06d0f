"""Tests for domain type enums."""

import pytest

from flatstore.domain.types import (
    ChoreState,
    ExpenseType,
    Theme,
    ToastKind,
    UserStatus,
    View,
    Visibility,
)

ENUM_CASES = [
    (UserStatus, {"HOME", "AWAY", "OUT", "DND"}),
    (ChoreState, {"ACTIVE", "ENDED"}),
    (View, {"AUTH", "ONBOARDING", "DASHBOARD"}),
    (Theme, {"light", "dark"}),
    (Visibility, {"personal", "shared"}),
    (ExpenseType, {"shared", "personal"}),
    (ToastKind, {"success", "validation", "permission", "not_found", "conflict"}),
]


@pytest.mark.parametrize(
    "enum_cls,expected_values",
    ENUM_CASES,
    ids=[cls.__name__ for cls, _ in ENUM_CASES],
)
class TestEnumValues:
    def test_values(self, enum_cls: type, expected_values: set[str]) -> None:
        assert {m.value for m in enum_cls} == expected_values

    def test_str_value(self, enum_cls: type, expected_values: set[str]) -> None:
        for member in enum_cls:
            assert str(member) == member.value
