"""Tests for chore transitions and the DND rules."""

from datetime import UTC, datetime

import pytest

from flatstore.domain.lifecycle import (
    CHORE_TRANSITIONS,
    coerce_status,
    dnd_expired,
    is_chore_ended,
    is_valid_transition,
    resolve_dnd,
)
from flatstore.domain.types import UserStatus

NOW = datetime(2024, 1, 1, tzinfo=UTC)


class TestChoreTransitions:
    def test_active_to_ended(self) -> None:
        assert is_valid_transition("ACTIVE", "ENDED", CHORE_TRANSITIONS)

    def test_ended_is_terminal(self) -> None:
        assert not is_valid_transition("ENDED", "ACTIVE", CHORE_TRANSITIONS)

    def test_same_state_allowed(self) -> None:
        assert is_valid_transition("ENDED", "ENDED", CHORE_TRANSITIONS)

    def test_is_chore_ended(self) -> None:
        assert is_chore_ended("ENDED")
        assert not is_chore_ended("ACTIVE")


class TestCoerceStatus:
    @pytest.mark.parametrize("raw", ["dnd", "DND", " Dnd "])
    def test_case_insensitive(self, raw: str) -> None:
        assert coerce_status(raw) == UserStatus.DND

    @pytest.mark.parametrize("raw", [None, "", "SLEEPING", 3])
    def test_unknown(self, raw: object) -> None:
        assert coerce_status(raw) is None


class TestResolveDnd:
    def test_dnd_without_until_becomes_home(self) -> None:
        assert resolve_dnd(UserStatus.DND, None) == (UserStatus.HOME, None)

    def test_dnd_with_invalid_until_becomes_home(self) -> None:
        assert resolve_dnd(UserStatus.DND, "soon") == (UserStatus.HOME, None)

    def test_dnd_with_until_normalized(self) -> None:
        assert resolve_dnd(UserStatus.DND, "2024-01-02T00:00:00+00:00") == (
            UserStatus.DND,
            "2024-01-02T00:00:00Z",
        )

    def test_non_dnd_drops_until(self) -> None:
        assert resolve_dnd(UserStatus.AWAY, "2024-01-02T00:00:00Z") == (UserStatus.AWAY, None)


class TestDndExpired:
    def test_past(self) -> None:
        assert dnd_expired("2023-12-31T23:59:59Z", NOW)

    def test_exact_boundary(self) -> None:
        assert dnd_expired("2024-01-01T00:00:00Z", NOW)

    def test_future(self) -> None:
        assert not dnd_expired("2024-01-01T00:00:01Z", NOW)

    def test_unparseable(self) -> None:
        assert dnd_expired(None, NOW)
        assert dnd_expired("never", NOW)
