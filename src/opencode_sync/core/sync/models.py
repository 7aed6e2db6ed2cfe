"""
Data models for the sync engine.

Defines Pydantic models for resolved locations, sync plans, persisted sync
state, and repo gateway results.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SyncPhase(str, Enum):
    """Phases a sync flow moves through."""

    UNCONFIGURED = "unconfigured"
    READY = "ready"
    CLONING = "cloning"
    CHECKING_DIRTY = "checking_dirty"
    DIVERGED = "diverged"
    FAST_FORWARDING = "fast_forwarding"
    RECONCILING = "reconciling"
    COMMITTING = "committing"
    PUSHING = "pushing"
    DONE = "done"


class ItemType(str, Enum):
    """Whether a sync item is a single file or a directory tree."""

    FILE = "file"
    DIR = "dir"


class SyncLocations(BaseModel):
    """
    Well-known paths for this machine.

    Derived from environment variables and platform only; never persisted.
    """

    model_config = ConfigDict(frozen=True)

    home_dir: str = Field(description="Home directory used to expand ~ in configured paths")
    config_root: str = Field(description="OpenCode config directory")
    data_dir: str = Field(description="OpenCode data directory (auth files live here)")
    sync_config_path: str = Field(description="Path to opencode-sync.jsonc")
    overrides_path: str = Field(description="Path to the machine-local overrides file")
    state_path: str = Field(description="Path to the persisted sync state")
    repo_dir: str = Field(description="Default location of the local clone")


class SyncItem(BaseModel):
    """One file or directory mapped between the local tree and the repo."""

    model_config = ConfigDict(frozen=True)

    source_path: str = Field(description="Local path")
    repo_relative_path: str = Field(description="Path inside the repo (posix separators)")
    repo_path: str = Field(description="Absolute path inside the local clone")
    type: ItemType = Field(default=ItemType.FILE)
    is_secret: bool = Field(default=False)
    is_config_file: bool = Field(
        default=False,
        description="Materialized OpenCode config that receives the override overlay",
    )


class ExtraSecrets(BaseModel):
    """Allowlisted secret paths outside the well-known catalog."""

    model_config = ConfigDict(frozen=True)

    allowlist: tuple[str, ...] = Field(
        default=(), description="Paths as configured; these key the manifest across machines"
    )
    local_paths: tuple[str, ...] = Field(
        default=(), description="allowlist entries expanded for this machine, same order"
    )
    manifest_path: str = Field(description="Manifest listing stored extra secrets")
    store_dir: str = Field(description="Repo directory holding extra secret copies")

    def entries(self) -> list[tuple[str, str]]:
        """(configured path, local path) pairs with duplicates collapsed."""
        return list(dict(zip(self.allowlist, self.local_paths)).items())


class SyncPlan(BaseModel):
    """Ordered, deterministic set of path mappings for one sync run."""

    model_config = ConfigDict(frozen=True)

    repo_root: str
    items: tuple[SyncItem, ...] = Field(default=())
    extra_secrets: ExtraSecrets

    @property
    def secret_items(self) -> list[SyncItem]:
        return [item for item in self.items if item.is_secret]


class SyncState(BaseModel):
    """
    Persisted sync timestamps (state.json).

    Fields are only written after the matching operation fully succeeds.
    """

    model_config = ConfigDict(populate_by_name=True)

    last_pull: datetime | None = Field(default=None, alias="lastPull")
    last_push: datetime | None = Field(default=None, alias="lastPush")
    last_remote_update: datetime | None = Field(default=None, alias="lastRemoteUpdate")


class RepoStatus(BaseModel):
    """Current branch and porcelain status lines of the local clone."""

    branch: str
    changes: list[str] = Field(default_factory=list)


class FetchResult(BaseModel):
    """Outcome of fetch + fast-forward."""

    updated: bool
    head: str | None = None
