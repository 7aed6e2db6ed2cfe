"""Tests for layered dotenv loading."""

from __future__ import annotations

import os
from pathlib import Path

from opencode_sync.core.config.env import default_env_paths, load_layered_env


class TestLoadLayeredEnv:
    def test_sets_missing_variables(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("OPENCODE_SERVER_URL", "")
        monkeypatch.delenv("OPENCODE_SERVER_URL")
        env_file = tmp_path / ".env"
        env_file.write_text("OPENCODE_SERVER_URL=http://localhost:9000\n")

        applied = load_layered_env([env_file])

        assert applied == {"OPENCODE_SERVER_URL": "http://localhost:9000"}
        assert os.environ["OPENCODE_SERVER_URL"] == "http://localhost:9000"

    def test_process_environment_wins(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("OPENCODE_CONFIG_DIR", "/from/shell")
        env_file = tmp_path / ".env"
        env_file.write_text("OPENCODE_CONFIG_DIR=/from/dotenv\n")

        applied = load_layered_env([env_file])

        assert applied == {}
        assert os.environ["OPENCODE_CONFIG_DIR"] == "/from/shell"

    def test_earlier_files_win(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("OPENCODE_SYNC_TEST_VAR", "")
        monkeypatch.delenv("OPENCODE_SYNC_TEST_VAR")
        first = tmp_path / "first.env"
        second = tmp_path / "second.env"
        first.write_text("OPENCODE_SYNC_TEST_VAR=first\n")
        second.write_text("OPENCODE_SYNC_TEST_VAR=second\n")

        load_layered_env([first, second])

        assert os.environ["OPENCODE_SYNC_TEST_VAR"] == "first"

    def test_missing_files_ignored(self, tmp_path: Path) -> None:
        assert load_layered_env([tmp_path / "nope.env"]) == {}

    def test_default_path_follows_xdg(self, monkeypatch, tmp_path: Path) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert default_env_paths() == [tmp_path / "opencode-sync" / ".env"]
