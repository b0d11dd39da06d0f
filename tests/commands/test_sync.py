"""Tests for the sync and dnd-expire CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from flatstore.cli import cli
from flatstore.infrastructure.snapshot import SnapshotStore
from tests.conftest import (
    invoke_json,
    invoke_json_error,
    make_house,
    make_state,
    make_user,
)

BATCH = [
    {"id": "h1", "members": [{"wpId": 9}, {"email": "b@example.com"}]},
    {"id": "h9", "name": "Elsewhere", "members": [{"email": "new@example.com", "name": "New"}]},
]


@pytest.fixture
def batch_file(store_root: Path) -> Path:
    path = store_root / "houses.json"
    path.write_text(json.dumps(BATCH))
    return path


class TestSync:
    def test_array_file(
        self, cli_runner: CliRunner, cli_household: Path, batch_file: Path
    ) -> None:
        data = invoke_json(cli_runner, "sync", str(batch_file))
        assert data["op"] == "sync"
        assert data["data"]["received"] == 2
        assert data["data"]["counts"]["houses"] == 2
        assert data["data"]["house"]["id"] == "h1"
        assert data["warnings"] == []
        houses = json.loads(cli_household.read_text())["db"]["houses"]
        h9 = next(h for h in houses if h["id"] == "h9")
        assert h9["name"] == "Elsewhere"
        assert h9["inviteCode"]

    def test_wrapped_object(
        self, cli_runner: CliRunner, cli_household: Path, store_root: Path
    ) -> None:
        path = store_root / "wrapped.json"
        path.write_text(json.dumps({"houses": BATCH}))
        data = invoke_json(cli_runner, "sync", str(path))
        assert data["data"]["received"] == 2

    def test_stdin(self, cli_runner: CliRunner, cli_household: Path) -> None:
        data = invoke_json(cli_runner, "sync", "-", input=json.dumps(BATCH))
        assert data["data"]["counts"]["houses"] == 2

    def test_second_sync_is_a_noop(
        self, cli_runner: CliRunner, cli_household: Path, batch_file: Path
    ) -> None:
        invoke_json(cli_runner, "sync", str(batch_file))
        data = invoke_json(cli_runner, "sync", str(batch_file))
        assert data["data"]["changed"] is False

    def test_malformed_entries_warn(
        self, cli_runner: CliRunner, cli_household: Path, store_root: Path
    ) -> None:
        path = store_root / "mixed.json"
        path.write_text(json.dumps([*BATCH, "junk", 3]))
        data = invoke_json(cli_runner, "sync", str(path))
        assert data["warnings"] == ["Skipped 2 malformed remote house(s)"]

    def test_warnings_on_stderr_in_human_mode(
        self, cli_runner: CliRunner, cli_household: Path, store_root: Path
    ) -> None:
        path = store_root / "mixed.json"
        path.write_text(json.dumps([*BATCH, "junk"]))
        result = cli_runner.invoke(cli, ["sync", str(path)])
        assert result.exit_code == 0
        assert "WARNING: Skipped 1 malformed remote house(s)" in result.stderr

    def test_not_a_list(
        self, cli_runner: CliRunner, cli_household: Path, store_root: Path
    ) -> None:
        path = store_root / "bad.json"
        path.write_text('{"house": {}}')
        error = invoke_json_error(cli_runner, "sync", str(path))
        assert error["error"]["code"] == "INVALID_INPUT"
        assert error["error"]["message"] == "Expected a JSON array of houses."

    def test_unreadable_source(self, cli_runner: CliRunner, cli_household: Path) -> None:
        error = invoke_json_error(cli_runner, "sync", "missing.json")
        assert error["error"]["code"] == "INVALID_INPUT"
        assert "missing.json" in error["error"]["message"]


@pytest.mark.usefixtures("_isolated_store")
class TestDndExpire:
    @pytest.fixture
    def snapshot(self, store_root: Path) -> Path:
        users = [
            make_user("a", house_id="h1"),
            make_user("b", house_id="h1", status="DND", dnd_until="2000-01-01T00:00:00Z"),
            make_user("c", house_id="h1", status="DND", dnd_until="2999-01-01T00:00:00Z"),
        ]
        state = make_state(
            users=users, houses=[make_house("h1", ["a", "b", "c"])], current_user_id="a"
        )
        path = store_root / ".flatstore" / "state.json"
        SnapshotStore(path).save(state)
        return path

    def test_expires_past_windows(self, cli_runner: CliRunner, snapshot: Path) -> None:
        data = invoke_json(cli_runner, "dnd-expire")
        assert data["op"] == "expire_dnd"
        assert data["data"]["expired"] == ["b"]
        users = {u["id"]: u for u in json.loads(snapshot.read_text())["db"]["users"]}
        assert users["b"]["status"] == "HOME"
        assert users["b"]["dndUntil"] is None
        assert users["c"]["status"] == "DND"

    def test_nothing_to_expire(self, cli_runner: CliRunner, snapshot: Path) -> None:
        invoke_json(cli_runner, "dnd-expire")
        data = invoke_json(cli_runner, "dnd-expire")
        assert data["data"]["expired"] == []
        assert data["data"]["changed"] is False

    def test_quiet(self, cli_runner: CliRunner, snapshot: Path) -> None:
        result = cli_runner.invoke(cli, ["-q", "dnd-expire"])
        assert result.exit_code == 0
        assert result.stdout.strip() == "OK: expire_dnd"
