"""
Location resolution and sync planning.

Both are pure functions of their inputs: locations depend only on the
environment mapping and platform string, and a plan depends only on
(config, locations, repo root, platform). Nothing here touches the
filesystem, so plans are recomputed on every operation.
"""

from __future__ import annotations

import hashlib
import os
import re
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path, PurePath, PurePosixPath, PureWindowsPath

from opencode_sync.core.config.models import SyncConfig
from opencode_sync.core.sync.models import (
    ExtraSecrets,
    ItemType,
    SyncItem,
    SyncLocations,
    SyncPlan,
)

SYNC_CONFIG_NAME = "opencode-sync.jsonc"
OVERRIDES_NAME = "opencode-sync.overrides.jsonc"

# Materialized OpenCode config files; these receive the override overlay
CONFIG_FILES = ("opencode.json", "opencode.jsonc")
DOC_FILES = ("AGENTS.md",)
CONFIG_DIRS = ("agent", "command", "mode", "tool", "themes", "plugin")
SECRET_FILES = ("auth.json", "mcp-auth.json")

REPO_CONFIG_DIR = "config"
REPO_DATA_DIR = "data"
REPO_EXTRA_SECRETS_DIR = "secrets/extra"
REPO_EXTRA_MANIFEST = "secrets/extra-manifest.json"


@dataclass(frozen=True)
class XdgPaths:
    """Base directories for config, data and state."""

    home_dir: str
    config_dir: str
    data_dir: str
    state_dir: str


def _flavour(platform: str) -> type[PurePath]:
    return PureWindowsPath if platform == "win32" else PurePosixPath


def _join(platform: str, base: str, *parts: str) -> str:
    return str(_flavour(platform)(base, *parts))


def resolve_home_dir(env: Mapping[str, str], platform: str) -> str:
    key = "USERPROFILE" if platform == "win32" else "HOME"
    return env.get(key) or str(Path.home())


def resolve_xdg_paths(
    env: Mapping[str, str] | None = None,
    platform: str | None = None,
) -> XdgPaths:
    """
    Get platform base directories.

    Windows uses APPDATA / LOCALAPPDATA; everything else follows the XDG
    base directory spec with the usual ~/.config, ~/.local/share and
    ~/.local/state defaults.

    Args:
        env: Environment mapping (defaults to os.environ)
        platform: Platform string as in sys.platform (defaults to current)

    Returns:
        XdgPaths for the given environment
    """
    env = os.environ if env is None else env
    platform = sys.platform if platform is None else platform
    home = resolve_home_dir(env, platform)

    if platform == "win32":
        config_dir = env.get("APPDATA") or _join(platform, home, "AppData", "Roaming")
        data_dir = env.get("LOCALAPPDATA") or _join(platform, home, "AppData", "Local")
        return XdgPaths(home, config_dir, data_dir, data_dir)

    return XdgPaths(
        home_dir=home,
        config_dir=env.get("XDG_CONFIG_HOME") or _join(platform, home, ".config"),
        data_dir=env.get("XDG_DATA_HOME") or _join(platform, home, ".local", "share"),
        state_dir=env.get("XDG_STATE_HOME") or _join(platform, home, ".local", "state"),
    )


def resolve_sync_locations(
    env: Mapping[str, str] | None = None,
    platform: str | None = None,
) -> SyncLocations:
    """
    Compute the well-known opencode-sync paths.

    OPENCODE_CONFIG_DIR, when set, replaces the default config root.

    Example:
        >>> loc = resolve_sync_locations({"HOME": "/home/me"}, "linux")
        >>> loc.sync_config_path
        '/home/me/.config/opencode/opencode-sync.jsonc'
    """
    env = os.environ if env is None else env
    platform = sys.platform if platform is None else platform
    xdg = resolve_xdg_paths(env, platform)

    config_root = env.get("OPENCODE_CONFIG_DIR") or _join(platform, xdg.config_dir, "opencode")
    sync_data_dir = _join(platform, xdg.data_dir, "opencode-sync")

    return SyncLocations(
        home_dir=xdg.home_dir,
        config_root=config_root,
        data_dir=_join(platform, xdg.data_dir, "opencode"),
        sync_config_path=_join(platform, config_root, SYNC_CONFIG_NAME),
        overrides_path=_join(platform, config_root, OVERRIDES_NAME),
        state_path=_join(platform, sync_data_dir, "state.json"),
        repo_dir=_join(platform, sync_data_dir, "repo"),
    )


def expand_home(path: str, home_dir: str, platform: str) -> str:
    """
    Expand a leading ~ against home_dir.

    Only the bare ~ form is expanded; ~user and paths without a leading ~
    are returned unchanged.
    """
    separators = ("/", "\\") if platform == "win32" else ("/",)
    if path == "~":
        return home_dir
    if path[:1] == "~" and path[1:2] in separators:
        rest = [part for part in re.split(r"[\\/]", path[2:]) if part]
        return _join(platform, home_dir, *rest)
    return path


def resolve_repo_root(
    config: SyncConfig,
    locations: SyncLocations,
    platform: str | None = None,
) -> str:
    """Local clone path: the configured localRepoPath, else the default."""
    platform = sys.platform if platform is None else platform
    if config.local_repo_path:
        return expand_home(config.local_repo_path, locations.home_dir, platform)
    return locations.repo_dir


def extra_secret_repo_name(source_path: str) -> str:
    """
    Stable file name for an extra secret inside the repo.

    The basename keeps it recognizable; the hash keeps two files with the
    same basename from colliding.
    """
    basename = re.split(r"[\\/]", source_path.rstrip("\\/"))[-1] or "secret"
    safe = re.sub(r"[^A-Za-z0-9._-]", "_", basename)
    digest = hashlib.sha256(source_path.encode("utf-8")).hexdigest()[:12]
    return f"{safe}-{digest}"


def _item(
    platform: str,
    local_base: str,
    repo_root: str,
    repo_dir: str,
    name: str,
    item_type: ItemType,
    *,
    is_secret: bool = False,
    is_config_file: bool = False,
) -> SyncItem:
    relative = f"{repo_dir}/{name}"
    return SyncItem(
        source_path=_join(platform, local_base, name),
        repo_relative_path=relative,
        repo_path=_join(platform, repo_root, *relative.split("/")),
        type=item_type,
        is_secret=is_secret,
        is_config_file=is_config_file,
    )


def build_sync_plan(
    config: SyncConfig,
    locations: SyncLocations,
    repo_root: str,
    platform: str | None = None,
) -> SyncPlan:
    """
    Build the ordered list of local <-> repo mappings.

    Secrets are a single gate: unless config.include_secrets is set, the plan
    has no secret items and an empty extra-secrets allowlist, whatever
    extra_secret_paths contains.

    Args:
        config: Sync configuration
        locations: Resolved sync locations
        repo_root: Local clone path
        platform: Platform string (defaults to sys.platform)

    Returns:
        Deterministic SyncPlan
    """
    platform = sys.platform if platform is None else platform
    items: list[SyncItem] = []

    for name in CONFIG_FILES:
        items.append(
            _item(
                platform,
                locations.config_root,
                repo_root,
                REPO_CONFIG_DIR,
                name,
                ItemType.FILE,
                is_config_file=True,
            )
        )
    for name in DOC_FILES:
        items.append(
            _item(platform, locations.config_root, repo_root, REPO_CONFIG_DIR, name, ItemType.FILE)
        )
    for name in CONFIG_DIRS:
        items.append(
            _item(platform, locations.config_root, repo_root, REPO_CONFIG_DIR, name, ItemType.DIR)
        )

    allowlist: tuple[str, ...] = ()
    local_paths: tuple[str, ...] = ()
    if config.include_secrets:
        for name in SECRET_FILES:
            items.append(
                _item(
                    platform,
                    locations.data_dir,
                    repo_root,
                    REPO_DATA_DIR,
                    name,
                    ItemType.FILE,
                    is_secret=True,
                )
            )
        allowlist = tuple(config.extra_secret_paths)
        local_paths = tuple(
            expand_home(path, locations.home_dir, platform) for path in allowlist
        )

    return SyncPlan(
        repo_root=repo_root,
        items=tuple(items),
        extra_secrets=ExtraSecrets(
            allowlist=allowlist,
            local_paths=local_paths,
            manifest_path=_join(platform, repo_root, *REPO_EXTRA_MANIFEST.split("/")),
            store_dir=_join(platform, repo_root, *REPO_EXTRA_SECRETS_DIR.split("/")),
        ),
    )
