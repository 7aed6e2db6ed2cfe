"""
Typed errors raised by the sync engine.

Every flow either raises one of these or (for startup) converts it into a
notification. Planner and overlay operations are pure and never raise.
"""

from __future__ import annotations


class SyncError(Exception):
    """Base class for all opencode-sync errors."""


class SyncConfigError(SyncError):
    """Sync config is missing or cannot be used (run init to fix)."""


class SyncCommandError(SyncError):
    """An external command or filesystem step failed."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.stderr = stderr


class SyncDivergedError(SyncCommandError):
    """Local and remote histories diverged; fast-forward is impossible."""


class DirtyRepoError(SyncError):
    """The local sync repo has uncommitted changes."""

    def __init__(self, message: str, repo_root: str = ""):
        super().__init__(message)
        self.repo_root = repo_root


class SecretsPolicyError(SyncError):
    """Secrets are enabled but the remote repository is not private."""
