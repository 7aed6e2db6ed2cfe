"""
Sync orchestrator.

Implements the startup, pull, push, status, init and enable-secrets flows on
top of the planner, overlay, reconciler and repo gateway.

Every flow shares the same preamble: load config, enforce the secrets policy,
make sure the clone exists and work out the branch. Writes only happen after
a clean dirty-check, and fetches are fast-forward only, so two machines (or
two runs on one machine) can't silently overwrite each other.

Startup is unattended: problems become notifications instead of exceptions.
Pull, push and the other user-invoked flows raise typed errors.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from opencode_sync.core.client.backend import ModelClient
from opencode_sync.core.config.loader import (
    build_config_from_init,
    load_sync_config,
    write_sync_config,
)
from opencode_sync.core.config.models import InitOptions, SyncConfig
from opencode_sync.core.exceptions import (
    DirtyRepoError,
    SyncCommandError,
    SyncConfigError,
    SyncDivergedError,
)
from opencode_sync.core.notify import ConsoleNotifier, Notifier, NotifyVariant
from opencode_sync.core.process import CommandRunner, SubprocessRunner
from opencode_sync.core.sync import overlay
from opencode_sync.core.sync.apply import sync_local_to_repo, sync_repo_to_local
from opencode_sync.core.sync.commit import generate_commit_message
from opencode_sync.core.sync.models import SyncLocations, SyncPhase
from opencode_sync.core.sync.paths import (
    build_sync_plan,
    resolve_repo_root,
    resolve_sync_locations,
)
from opencode_sync.core.sync.repo import (
    RepoGateway,
    resolve_repo_branch,
    resolve_repo_identifier,
)
from opencode_sync.core.sync.state import load_state, write_state

logger = logging.getLogger(__name__)

NOTIFY_PREFIX = "opencode-sync: "
RESTART_NOTICE = "Config updated. Restart OpenCode to apply."


def _commits(count: int) -> str:
    return f"{count} commit" if count == 1 else f"{count} commits"


@dataclass
class SyncContext:
    """
    Capabilities a flow needs from its host.

    Attributes:
        runner: Runs git/gh commands
        notifier: Shows notifications to the user
        client: Language model client for commit messages (None disables it)
    """

    runner: CommandRunner = field(default_factory=SubprocessRunner)
    notifier: Notifier = field(default_factory=ConsoleNotifier)
    client: ModelClient | None = None


class SyncService:
    """
    Entry point for all sync flows.

    Locations and plans are recomputed on every call so config edits take
    effect immediately.

    Example:
        >>> service = SyncService(SyncContext())
        >>> service.pull()
        'Already up to date.'
    """

    def __init__(
        self,
        context: SyncContext | None = None,
        *,
        env: Mapping[str, str] | None = None,
        platform: str | None = None,
        gateway: RepoGateway | None = None,
    ) -> None:
        self.context = context or SyncContext()
        self.env = env
        self.platform = platform
        self.gateway = gateway or RepoGateway(self.context.runner)
        self.phase = SyncPhase.READY

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _enter(self, phase: SyncPhase) -> None:
        self.phase = phase
        logger.debug("Sync phase: %s", phase.value)

    def _notify(self, message: str, variant: NotifyVariant) -> None:
        self.context.notifier.notify(f"{NOTIFY_PREFIX}{message}", variant)

    def locations(self) -> SyncLocations:
        return resolve_sync_locations(self.env, self.platform)

    def _load_config(self, locations: SyncLocations) -> SyncConfig | None:
        return load_sync_config(Path(locations.sync_config_path))

    def _require_config(self, locations: SyncLocations) -> SyncConfig:
        config = self._load_config(locations)
        if config is None:
            self._enter(SyncPhase.UNCONFIGURED)
            raise SyncConfigError(
                "Missing opencode-sync config. Run `opencode-sync init` to set it up."
            )
        return config

    def _resolve_branch(self, config: SyncConfig, repo_root: str) -> str:
        try:
            status = self.gateway.get_repo_status(repo_root)
        except SyncCommandError as e:
            logger.debug("Repo status unavailable, using configured branch: %s", e)
            return resolve_repo_branch(config)
        return resolve_repo_branch(config, status.branch)

    def _prepare(self, config: SyncConfig, locations: SyncLocations) -> tuple[str, str]:
        """Secrets policy, clone, branch. Returns (repo_root, branch)."""
        self._enter(SyncPhase.READY)
        if config.include_secrets:
            self.gateway.ensure_repo_private(config)

        repo_root = resolve_repo_root(config, locations, self.platform)
        self._enter(SyncPhase.CLONING)
        self.gateway.ensure_repo_cloned(config, repo_root)
        return repo_root, self._resolve_branch(config, repo_root)

    def _is_dirty(self, repo_root: str) -> bool:
        self._enter(SyncPhase.CHECKING_DIRTY)
        return self.gateway.has_local_changes(repo_root)

    def _fast_forward(self, repo_root: str, branch: str) -> bool:
        self._enter(SyncPhase.FAST_FORWARDING)
        try:
            return self.gateway.fetch_and_fast_forward(repo_root, branch).updated
        except SyncDivergedError:
            self._enter(SyncPhase.DIVERGED)
            raise

    def _apply_remote(self, config: SyncConfig, locations: SyncLocations, repo_root: str) -> None:
        self._enter(SyncPhase.RECONCILING)
        overrides = overlay.load(locations)
        plan = build_sync_plan(config, locations, repo_root, self.platform)
        sync_repo_to_local(plan, overrides)

        now = datetime.now(timezone.utc)
        write_state(Path(locations.state_path), last_pull=now, last_remote_update=now)
        logger.info("Applied remote config from %s", repo_root)

    def _stage_local(self, config: SyncConfig, locations: SyncLocations, repo_root: str) -> bool:
        """Copy local config into the clone. Returns True if that changed the working tree."""
        self._enter(SyncPhase.RECONCILING)
        overrides = overlay.load(locations)
        plan = build_sync_plan(config, locations, repo_root, self.platform)
        sync_local_to_repo(plan, overrides)
        return self.gateway.has_local_changes(repo_root)

    def _commit_and_push(self, locations: SyncLocations, repo_root: str, branch: str) -> str:
        self._enter(SyncPhase.COMMITTING)
        message = generate_commit_message(self.context.runner, self.context.client, repo_root)
        self.gateway.commit_all(repo_root, message)

        self._enter(SyncPhase.PUSHING)
        self.gateway.push_branch(repo_root, branch)

        write_state(Path(locations.state_path), last_push=datetime.now(timezone.utc))
        logger.info("Pushed %s: %s", branch, message)
        return message

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    def startup_sync(self) -> None:
        """
        Sync on host startup.

        Pulls if the remote moved, otherwise pushes local edits. Never
        raises: every problem is reported as a notification.
        """
        try:
            locations = self.locations()
            config = self._load_config(locations)
            if config is None:
                self._enter(SyncPhase.UNCONFIGURED)
                self._notify(
                    "Configure opencode-sync with `opencode-sync init`.", NotifyVariant.INFO
                )
                return
            self._run_startup(config, locations)
        except Exception as e:  # noqa: BLE001
            logger.warning("Startup sync failed: %s", e)
            try:
                self._notify(str(e), NotifyVariant.ERROR)
            except Exception:  # noqa: BLE001
                logger.exception("Could not report startup sync failure")

    def _run_startup(self, config: SyncConfig, locations: SyncLocations) -> None:
        repo_root, branch = self._prepare(config, locations)

        if self._is_dirty(repo_root):
            self._notify(
                f"Local sync repo has uncommitted changes in {repo_root}. Resolve before sync.",
                NotifyVariant.WARNING,
            )
            return

        if self._fast_forward(repo_root, branch):
            self._apply_remote(config, locations, repo_root)
            self._notify(RESTART_NOTICE, NotifyVariant.INFO)
            self._enter(SyncPhase.DONE)
            return

        if self._stage_local(config, locations, repo_root):
            self._commit_and_push(locations, repo_root, branch)
        self._enter(SyncPhase.DONE)

    def pull(self) -> str:
        """
        Fetch remote changes and apply them locally.

        Raises:
            SyncConfigError: If opencode-sync isn't configured
            SecretsPolicyError: If secrets are enabled on a public repo
            DirtyRepoError: If the local clone has uncommitted changes
            SyncDivergedError: If local and remote histories diverged
            SyncCommandError: If git or the filesystem fails
        """
        locations = self.locations()
        config = self._require_config(locations)
        repo_root, branch = self._prepare(config, locations)

        if self._is_dirty(repo_root):
            raise DirtyRepoError(
                f"Local sync repo has uncommitted changes. Resolve in {repo_root} before pulling.",
                repo_root=repo_root,
            )

        if not self._fast_forward(repo_root, branch):
            self._enter(SyncPhase.DONE)
            return "Already up to date."

        self._apply_remote(config, locations, repo_root)
        self._notify(RESTART_NOTICE, NotifyVariant.INFO)
        self._enter(SyncPhase.DONE)
        return "Remote config applied. Restart OpenCode to use new settings."

    def push(self) -> str:
        """
        Commit local config changes and push them.

        Raises:
            SyncConfigError: If opencode-sync isn't configured
            SecretsPolicyError: If secrets are enabled on a public repo
            DirtyRepoError: If the clone had uncommitted changes beforehand
            SyncCommandError: If git or the filesystem fails
        """
        locations = self.locations()
        config = self._require_config(locations)
        repo_root, branch = self._prepare(config, locations)

        if self._is_dirty(repo_root):
            raise DirtyRepoError(
                f"Local sync repo has uncommitted changes. Resolve in {repo_root} before pushing.",
                repo_root=repo_root,
            )

        if not self._stage_local(config, locations, repo_root):
            self._enter(SyncPhase.DONE)
            unpushed = self.gateway.count_unpushed(repo_root, branch)
            if unpushed:
                return (
                    f"No local changes to push. {_commits(unpushed)} on {branch} not yet "
                    f"pushed; run `git -C {repo_root} push` once the remote accepts them."
                )
            return "No local changes to push."

        message = self._commit_and_push(locations, repo_root, branch)
        self._enter(SyncPhase.DONE)
        return f"Pushed changes: {message}"

    def status(self) -> str:
        """Summarize config, last sync times and working tree state."""
        locations = self.locations()
        config = self._load_config(locations)
        if config is None:
            return "opencode-sync is not configured. Run `opencode-sync init` to set it up."

        repo_root = resolve_repo_root(config, locations, self.platform)
        state = load_state(Path(locations.state_path))
        branch = resolve_repo_branch(config)

        unpushed = 0
        if not self.gateway.is_repo_cloned(repo_root):
            changes_label = "not cloned"
        else:
            try:
                repo_status = self.gateway.get_repo_status(repo_root)
            except SyncCommandError:
                changes_label = "unknown"
            else:
                branch = repo_status.branch
                pending = len(repo_status.changes)
                changes_label = f"{pending} pending" if pending else "clean"
                unpushed = self.gateway.count_unpushed(repo_root, branch)

        def _when(value: datetime | None) -> str:
            return value.isoformat() if value else "never"

        lines = [
            f"Repo: {resolve_repo_identifier(config)}",
            f"Branch: {branch}",
            f"Secrets: {'enabled' if config.include_secrets else 'disabled'}",
            f"Last pull: {_when(state.last_pull)}",
            f"Last push: {_when(state.last_push)}",
            f"Working tree: {changes_label}",
        ]
        if unpushed:
            lines.append(f"Unpushed: {_commits(unpushed)}")
        return "\n".join(lines)

    def init(self, options: InitOptions) -> str:
        """
        Create the sync config and clone the repo.

        Raises:
            SyncConfigError: If no repo identity was given
            SecretsPolicyError: If secrets are requested for a public repo
            SyncCommandError: If repo creation or cloning fails
        """
        config = build_config_from_init(options)
        if config.repo is None:
            raise SyncConfigError("Provide repo info (owner/name or URL) to initialize sync.")

        identifier = resolve_repo_identifier(config)
        if options.create:
            self.gateway.create_repo(config, options.private)
        if config.include_secrets:
            self.gateway.ensure_repo_private(config)

        locations = self.locations()
        write_sync_config(Path(locations.sync_config_path), config)

        repo_root = resolve_repo_root(config, locations, self.platform)
        self._enter(SyncPhase.CLONING)
        self.gateway.ensure_repo_cloned(config, repo_root)
        self._enter(SyncPhase.DONE)

        return "\n".join(
            [
                "opencode-sync configured.",
                f"Repo: {identifier}",
                f"Branch: {resolve_repo_branch(config)}",
                f"Local repo: {repo_root}",
            ]
        )

    def enable_secrets(self, extra_secret_paths: list[str] | None = None) -> str:
        """
        Turn on secrets sync.

        The repo must be private; the config is only saved once that's
        confirmed. Doesn't sync anything by itself.
        """
        locations = self.locations()
        config = self._require_config(locations)

        update: dict[str, object] = {"include_secrets": True}
        if extra_secret_paths is not None:
            update["extra_secret_paths"] = list(extra_secret_paths)
        config = config.model_copy(update=update)

        self.gateway.ensure_repo_private(config)
        write_sync_config(Path(locations.sync_config_path), config)
        return "Secrets sync enabled for this repo."
