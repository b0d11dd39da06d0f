"""Tests for id generation."""

import random

import pytest

from flatstore.domain.ids import (
    ENTITY_PREFIXES,
    ID_ALPHABET,
    ID_SUFFIX_LENGTH,
    is_generated_id,
    new_entity_id,
    new_id,
)


class TestNewId:
    def test_shape(self) -> None:
        value = new_id("user", random.Random(1))
        prefix, suffix = value.rsplit("_", 1)
        assert prefix == "user"
        assert len(suffix) == ID_SUFFIX_LENGTH
        assert all(ch in ID_ALPHABET for ch in suffix)

    def test_deterministic_with_seed(self) -> None:
        assert new_id("x", random.Random(7)) == new_id("x", random.Random(7))

    def test_sequence_differs(self) -> None:
        rng = random.Random(7)
        assert new_id("x", rng) != new_id("x", rng)


class TestNewEntityId:
    @pytest.mark.parametrize("entity", sorted(ENTITY_PREFIXES))
    def test_known_prefixes(self, entity: str) -> None:
        value = new_entity_id(entity, random.Random(0))
        assert value.startswith(f"{ENTITY_PREFIXES[entity]}_")
        assert is_generated_id(value)

    def test_unknown_entity(self) -> None:
        with pytest.raises(KeyError):
            new_entity_id("spaceship", random.Random(0))


class TestIsGeneratedId:
    def test_accepts_generated(self) -> None:
        assert is_generated_id("todo_list_0a1b2c3d4e")

    @pytest.mark.parametrize("value", ["", "nounderscore", "user_", "user_ABC", "_abc"])
    def test_rejects(self, value: str) -> None:
        assert not is_generated_id(value)
