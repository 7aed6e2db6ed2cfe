"""
Tests for location resolution and sync planning.

Tests cover:
- XDG locations on Linux/macOS
- APPDATA/LOCALAPPDATA locations on Windows
- OPENCODE_CONFIG_DIR override
- Plan catalog and ordering
- Secrets gating and the extra-secrets allowlist
- Stable repo names for extra secrets
"""

from __future__ import annotations

import re

import pytest

from opencode_sync.core.config.models import RepoConfig, SyncConfig
from opencode_sync.core.sync.models import ItemType
from opencode_sync.core.sync.paths import (
    build_sync_plan,
    expand_home,
    extra_secret_repo_name,
    resolve_repo_root,
    resolve_sync_locations,
    resolve_xdg_paths,
)


@pytest.fixture
def config() -> SyncConfig:
    return SyncConfig(repo=RepoConfig(owner="acme", name="cfg"))


class TestResolveLocations:
    """Tests for resolve_sync_locations."""

    def test_linux_defaults(self) -> None:
        loc = resolve_sync_locations({"HOME": "/home/me"}, "linux")

        assert loc.config_root == "/home/me/.config/opencode"
        assert loc.data_dir == "/home/me/.local/share/opencode"
        assert loc.sync_config_path == "/home/me/.config/opencode/opencode-sync.jsonc"
        assert loc.overrides_path == "/home/me/.config/opencode/opencode-sync.overrides.jsonc"
        assert loc.state_path == "/home/me/.local/share/opencode-sync/state.json"
        assert loc.repo_dir == "/home/me/.local/share/opencode-sync/repo"

    def test_xdg_variables_respected(self) -> None:
        loc = resolve_sync_locations(
            {
                "HOME": "/home/me",
                "XDG_CONFIG_HOME": "/xdg/config",
                "XDG_DATA_HOME": "/xdg/data",
            },
            "darwin",
        )

        assert loc.config_root == "/xdg/config/opencode"
        assert loc.data_dir == "/xdg/data/opencode"
        assert loc.repo_dir == "/xdg/data/opencode-sync/repo"

    def test_opencode_config_dir_overrides_root(self) -> None:
        loc = resolve_sync_locations(
            {"HOME": "/home/me", "OPENCODE_CONFIG_DIR": "/custom/opencode"},
            "linux",
        )

        assert loc.config_root == "/custom/opencode"
        assert loc.sync_config_path == "/custom/opencode/opencode-sync.jsonc"
        assert loc.overrides_path == "/custom/opencode/opencode-sync.overrides.jsonc"
        # Data locations are unaffected
        assert loc.data_dir == "/home/me/.local/share/opencode"

    def test_windows_uses_appdata(self) -> None:
        loc = resolve_sync_locations(
            {
                "USERPROFILE": "C:\\Users\\me",
                "APPDATA": "C:\\Users\\me\\AppData\\Roaming",
                "LOCALAPPDATA": "C:\\Users\\me\\AppData\\Local",
            },
            "win32",
        )

        assert loc.config_root == "C:\\Users\\me\\AppData\\Roaming\\opencode"
        assert loc.data_dir == "C:\\Users\\me\\AppData\\Local\\opencode"
        assert loc.sync_config_path == (
            "C:\\Users\\me\\AppData\\Roaming\\opencode\\opencode-sync.jsonc"
        )
        assert loc.state_path == "C:\\Users\\me\\AppData\\Local\\opencode-sync\\state.json"

    def test_windows_falls_back_to_profile(self) -> None:
        xdg = resolve_xdg_paths({"USERPROFILE": "C:\\Users\\me"}, "win32")

        assert xdg.config_dir == "C:\\Users\\me\\AppData\\Roaming"
        assert xdg.data_dir == "C:\\Users\\me\\AppData\\Local"

    def test_pure_function_of_inputs(self) -> None:
        env = {"HOME": "/home/me"}
        assert resolve_sync_locations(env, "linux") == resolve_sync_locations(env, "linux")


class TestResolveRepoRoot:
    """Tests for resolve_repo_root."""

    def test_default_repo_dir(self, config: SyncConfig) -> None:
        loc = resolve_sync_locations({"HOME": "/home/me"}, "linux")
        assert resolve_repo_root(config, loc) == loc.repo_dir

    def test_local_repo_path_expanded(self, config: SyncConfig, monkeypatch) -> None:
        monkeypatch.setenv("HOME", "/somewhere/else")
        loc = resolve_sync_locations({"HOME": "/home/me"}, "linux")
        config = config.model_copy(update={"local_repo_path": "~/src/opencode-config"})

        assert resolve_repo_root(config, loc, "linux") == "/home/me/src/opencode-config"

    def test_windows_local_repo_path(self, config: SyncConfig) -> None:
        loc = resolve_sync_locations({"USERPROFILE": "C:\\Users\\me"}, "win32")
        config = config.model_copy(update={"local_repo_path": "~\\src\\cfg"})

        assert resolve_repo_root(config, loc, "win32") == "C:\\Users\\me\\src\\cfg"


class TestBuildSyncPlan:
    """Tests for build_sync_plan."""

    @pytest.fixture
    def loc(self):
        return resolve_sync_locations({"HOME": "/home/me"}, "linux")

    def test_catalog_without_secrets(self, config: SyncConfig, loc) -> None:
        plan = build_sync_plan(config, loc, "/repo", "linux")

        relative = [item.repo_relative_path for item in plan.items]
        assert relative == [
            "config/opencode.json",
            "config/opencode.jsonc",
            "config/AGENTS.md",
            "config/agent",
            "config/command",
            "config/mode",
            "config/tool",
            "config/themes",
            "config/plugin",
        ]
        assert plan.secret_items == []
        assert plan.repo_root == "/repo"

    def test_item_paths(self, config: SyncConfig, loc) -> None:
        plan = build_sync_plan(config, loc, "/repo", "linux")
        by_relative = {item.repo_relative_path: item for item in plan.items}

        opencode_json = by_relative["config/opencode.json"]
        assert opencode_json.source_path == "/home/me/.config/opencode/opencode.json"
        assert opencode_json.repo_path == "/repo/config/opencode.json"
        assert opencode_json.is_config_file is True
        assert opencode_json.type == ItemType.FILE

        agent_dir = by_relative["config/agent"]
        assert agent_dir.type == ItemType.DIR
        assert agent_dir.is_config_file is False

    def test_secrets_included_when_enabled(self, config: SyncConfig, loc) -> None:
        config = config.model_copy(update={"include_secrets": True})

        plan = build_sync_plan(config, loc, "/repo", "linux")

        secrets = plan.secret_items
        assert len(secrets) == 2
        assert [item.repo_relative_path for item in secrets] == [
            "data/auth.json",
            "data/mcp-auth.json",
        ]
        assert secrets[0].source_path == "/home/me/.local/share/opencode/auth.json"

    def test_extra_secrets_ignored_when_secrets_disabled(self, config: SyncConfig, loc) -> None:
        config = config.model_copy(update={"extra_secret_paths": ["/home/me/.npmrc"]})

        plan = build_sync_plan(config, loc, "/repo", "linux")

        assert plan.extra_secrets.allowlist == ()
        assert plan.secret_items == []

    def test_extra_secrets_allowlist(self, config: SyncConfig, loc, monkeypatch) -> None:
        monkeypatch.setenv("HOME", "/somewhere/else")
        config = config.model_copy(
            update={
                "include_secrets": True,
                "extra_secret_paths": ["~/.npmrc", "/etc/tokens/gh", "~/.npmrc"],
            }
        )

        plan = build_sync_plan(config, loc, "/repo", "linux")

        assert len(plan.extra_secrets.allowlist) == len(config.extra_secret_paths)
        assert plan.extra_secrets.allowlist == ("~/.npmrc", "/etc/tokens/gh", "~/.npmrc")
        assert plan.extra_secrets.local_paths[0] == "/home/me/.npmrc"
        assert plan.extra_secrets.entries() == [
            ("~/.npmrc", "/home/me/.npmrc"),
            ("/etc/tokens/gh", "/etc/tokens/gh"),
        ]
        assert plan.extra_secrets.manifest_path == "/repo/secrets/extra-manifest.json"
        assert plan.extra_secrets.store_dir == "/repo/secrets/extra"

    def test_plan_is_deterministic(self, config: SyncConfig, loc) -> None:
        config = config.model_copy(update={"include_secrets": True})

        first = build_sync_plan(config, loc, "/repo", "linux")
        second = build_sync_plan(config, loc, "/repo", "linux")

        assert first == second

    def test_windows_repo_paths(self, config: SyncConfig) -> None:
        loc = resolve_sync_locations(
            {"USERPROFILE": "C:\\Users\\me", "APPDATA": "C:\\AppData"}, "win32"
        )

        plan = build_sync_plan(config, loc, "C:\\sync\\repo", "win32")

        assert plan.items[0].repo_relative_path == "config/opencode.json"
        assert plan.items[0].repo_path == "C:\\sync\\repo\\config\\opencode.json"
        assert plan.items[0].source_path == "C:\\AppData\\opencode\\opencode.json"


class TestExtraSecretRepoName:
    """Tests for extra_secret_repo_name."""

    def test_keeps_basename_and_adds_hash(self) -> None:
        name = extra_secret_repo_name("/home/me/.npmrc")
        assert re.fullmatch(r"\.npmrc-[0-9a-f]{12}", name)

    def test_same_basename_different_dirs_do_not_collide(self) -> None:
        assert extra_secret_repo_name("/a/token") != extra_secret_repo_name("/b/token")

    def test_stable(self) -> None:
        assert extra_secret_repo_name("/a/token") == extra_secret_repo_name("/a/token")

    def test_unsafe_characters_replaced(self) -> None:
        name = extra_secret_repo_name("C:\\Users\\me\\my token?.txt")
        assert name.startswith("my_token_.txt-")


class TestExpandHome:
    """Tests for expand_home."""

    def test_tilde_prefix(self) -> None:
        assert expand_home("~/.npmrc", "/home/me", "linux") == "/home/me/.npmrc"

    def test_bare_tilde(self) -> None:
        assert expand_home("~", "/home/me", "linux") == "/home/me"

    def test_absolute_path_unchanged(self) -> None:
        assert expand_home("/etc/tokens/gh", "/home/me", "linux") == "/etc/tokens/gh"

    def test_other_user_unchanged(self) -> None:
        assert expand_home("~bob/.npmrc", "/home/me", "linux") == "~bob/.npmrc"

    def test_windows_flavour(self) -> None:
        home = "C:\\Users\\me"
        assert expand_home("~/.npmrc", home, "win32") == "C:\\Users\\me\\.npmrc"
        assert expand_home("~\\.config\\gh", home, "win32") == "C:\\Users\\me\\.config\\gh"

    def test_ignores_process_home(self, monkeypatch) -> None:
        monkeypatch.setenv("HOME", "/somewhere/else")
        loc = resolve_sync_locations({"HOME": "/home/me"}, "linux")

        assert loc.home_dir == "/home/me"
        assert expand_home("~/.npmrc", loc.home_dir, "linux") == "/home/me/.npmrc"
