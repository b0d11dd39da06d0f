"""Tests for store and config discovery."""

from pathlib import Path

import pytest

from flatstore.config.discovery import (
    CONFIG_ENV_VAR,
    CONFIG_FILENAME,
    STORE_DIRNAME,
    find_config,
    find_store_root,
)
from flatstore.config.settings import FlatstoreSettings


@pytest.fixture(autouse=True)
def _no_env_config(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)


class TestFindConfig:
    def test_finds_in_start_dir(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("[household]\nnote_limit = 3\n")
        assert find_config(tmp_path) == config_file.resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        config_file = tmp_path / CONFIG_FILENAME
        config_file.write_text("")
        child = tmp_path / "kitchen" / "drawer"
        child.mkdir(parents=True)
        assert find_config(child) == config_file.resolve()

    def test_nearest_wins(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        inner = tmp_path / "flat2"
        inner.mkdir()
        (inner / CONFIG_FILENAME).write_text("")
        assert find_config(inner) == (inner / CONFIG_FILENAME).resolve()

    def test_directory_named_like_config_ignored(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).mkdir()
        assert find_config(tmp_path) is None

    def test_env_var_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        config_file = tmp_path / "custom.toml"
        config_file.write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))
        assert find_config(tmp_path / "anywhere") == config_file

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "gone.toml"))
        assert find_config(tmp_path) is None


class TestFindStoreRoot:
    def test_finds_data_dir_above(self, tmp_path: Path) -> None:
        (tmp_path / STORE_DIRNAME).mkdir()
        child = tmp_path / "notes"
        child.mkdir()
        assert find_store_root(child) == tmp_path.resolve()

    def test_none_without_data_dir(self, tmp_path: Path) -> None:
        child = tmp_path / "empty"
        child.mkdir()
        assert find_store_root(child) is None

    def test_settings_use_store_root_from_subdirectory(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / STORE_DIRNAME).mkdir()
        child = tmp_path / "sub"
        child.mkdir()
        monkeypatch.chdir(child)
        settings = FlatstoreSettings.from_cli()
        assert settings.snapshot_file == tmp_path.resolve() / STORE_DIRNAME / "state.json"
        assert settings.config_path is None
