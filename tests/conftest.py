"""Shared pytest fixtures and test helpers for flatstore tests."""

from __future__ import annotations

import json
import random
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from flatstore.config.settings import FlatstoreSettings
from flatstore.cli import cli
from flatstore.domain.models import ChecklistItem, Chore, Db, House, StoreState, User
from flatstore.domain.reducer import ReducerEnv
from flatstore.domain.types import View
from flatstore.infrastructure.snapshot import SnapshotStore
from flatstore.services.store import StoreService

FIXED_NOW = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def env() -> ReducerEnv:
    """Deterministic reducer env: fixed clock, seeded random source."""
    return ReducerEnv(now=FIXED_NOW, rng=random.Random(1234))


@pytest.fixture
def store_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Temporary store directory with no config overrides in the environment."""
    monkeypatch.delenv("FLATSTORE_CONFIG", raising=False)
    monkeypatch.delenv("FLATSTORE_STORE__SNAPSHOT_PATH", raising=False)
    return tmp_path


@pytest.fixture
def settings(store_root: Path) -> FlatstoreSettings:
    return FlatstoreSettings.from_cli(store_root=store_root)


@pytest.fixture
def service(settings: FlatstoreSettings) -> StoreService:
    """StoreService with a deterministic env factory."""
    rng = random.Random(99)
    return StoreService(settings, env_factory=lambda: ReducerEnv(now=FIXED_NOW, rng=rng))


@pytest.fixture
def _isolated_store(store_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI writes an isolated snapshot.

    Use via ``@pytest.mark.usefixtures("_isolated_store")`` on command test
    classes.
    """
    monkeypatch.chdir(store_root)


@pytest.fixture
def cli_household(store_root: Path, _isolated_store: None) -> Path:
    """Default snapshot holding users a and b in house h1, logged in as a.

    Chore c1 (assignee a) carries one checklist item, ``i1``.
    """
    chore = make_chore(checklist=[ChecklistItem(id="i1", label="Bag", required=True)])
    path = store_root / ".flatstore" / "state.json"
    SnapshotStore(path).save(two_member_state(chores=[chore]))
    return path


def invoke_json(runner: CliRunner, *args: str, input: str | None = None) -> dict[str, Any]:
    """Run ``flatstore --json ARGS``, expect success and return the parsed result."""
    result = runner.invoke(cli, ["--json", *args], input=input)
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def invoke_json_error(
    runner: CliRunner, *args: str, input: str | None = None
) -> dict[str, Any]:
    """Run ``flatstore --json ARGS``, expect exit 1 and return the error result."""
    result = runner.invoke(cli, ["--json", *args], input=input)
    assert result.exit_code == 1, result.output
    assert result.stdout == ""
    return json.loads(result.stderr)


# ---------------------------------------------------------------------------
# State builders
# ---------------------------------------------------------------------------


def make_user(user_id: str, **kwargs: Any) -> User:
    kwargs.setdefault("name", user_id.upper())
    kwargs.setdefault("email", f"{user_id}@example.com")
    return User(id=user_id, **kwargs)


def make_house(house_id: str, member_ids: list[str], **kwargs: Any) -> House:
    kwargs.setdefault("admin_id", member_ids[0] if member_ids else None)
    kwargs.setdefault("invite_code", f"CODE{house_id.upper()}")
    return House(id=house_id, member_ids=member_ids, **kwargs)


def make_chore(chore_id: str = "c1", **kwargs: Any) -> Chore:
    kwargs.setdefault("house_id", "h1")
    kwargs.setdefault("title", "Trash")
    kwargs.setdefault("cadence_days", 7)
    kwargs.setdefault("due_at", "2024-01-01T00:00:00Z")
    kwargs.setdefault("rotation", ["a", "b"])
    kwargs.setdefault("rotation_index", 0)
    kwargs.setdefault("assignee_id", "a")
    return Chore(id=chore_id, **kwargs)


def make_state(
    *,
    users: list[User] | None = None,
    houses: list[House] | None = None,
    current_user_id: str | None = None,
    view: View | None = None,
    **collections: Any,
) -> StoreState:
    """Build a StoreState; the view defaults to what the current user would see."""
    db = Db(users=users or [], houses=houses or [], **collections)
    if view is None:
        me = db.find_user(current_user_id)
        if me is None:
            view = View.AUTH
        else:
            view = View.DASHBOARD if me.house_id else View.ONBOARDING
    return StoreState(db=db, current_user_id=current_user_id, view=view)


def two_member_state(**collections: Any) -> StoreState:
    """Users a and b in house h1 (admin a), logged in as a."""
    users = [make_user("a", house_id="h1", wp_id=9), make_user("b", house_id="h1")]
    houses = [make_house("h1", ["a", "b"])]
    return make_state(users=users, houses=houses, current_user_id="a", **collections)


def assert_invariants(state: StoreState) -> None:
    """Cross-entity invariants that must hold in every reachable state."""
    houses = state.db.houses
    codes = [h.invite_code.upper() for h in houses]
    assert len(codes) == len(set(codes)), f"duplicate invite codes: {codes}"
    for house in houses:
        assert house.member_ids, f"house {house.id} has no members"
        assert house.admin_id in house.member_ids, f"house {house.id} admin not a member"
        assert len(house.member_ids) == len(set(house.member_ids))
    for user in state.db.users:
        containing = [h.id for h in houses if user.id in h.member_ids]
        assert len(containing) <= 1, f"user {user.id} in {containing}"
        assert user.house_id == (containing[0] if containing else None)
        if user.status == "DND":
            assert user.dnd_until is not None
        else:
            assert user.dnd_until is None
