"""
Repo gateway: git and gh operations against the local clone.

All commands go through an injectable CommandRunner. Fetching is
fast-forward only; a diverged history raises SyncDivergedError instead of
being merged.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path

from opencode_sync.core.config.models import SyncConfig
from opencode_sync.core.exceptions import (
    SecretsPolicyError,
    SyncCommandError,
    SyncConfigError,
    SyncDivergedError,
)
from opencode_sync.core.process import CommandRunner
from opencode_sync.core.sync.models import FetchResult, RepoStatus

logger = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"
REMOTE_NAME = "origin"

_GITHUB_SSH = re.compile(r"^(?:ssh://)?git@github\.com[:/]([^/]+)/([^/]+?)(?:\.git)?/?$")
_GITHUB_HTTPS = re.compile(r"^https?://(?:[^@/]+@)?github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$")


def parse_github_repo(remote_url: str) -> str | None:
    """
    Parse owner/name from a GitHub remote URL.

    Handles formats:
    - git@github.com:user/repo.git
    - ssh://git@github.com/user/repo
    - https://github.com/user/repo.git

    Returns:
        "owner/name", or None if the URL isn't a GitHub remote
    """
    if not remote_url:
        return None
    for pattern in (_GITHUB_SSH, _GITHUB_HTTPS):
        match = pattern.match(remote_url.strip())
        if match:
            return f"{match.group(1)}/{match.group(2)}"
    return None


def resolve_repo_identifier(config: SyncConfig) -> str:
    """Canonical display/clone identity: the URL, else owner/name."""
    repo = config.repo
    if repo is not None:
        if repo.url:
            return repo.url
        if repo.full_name:
            return repo.full_name
    raise SyncConfigError("Sync config has no repo. Provide owner/name or a URL.")


def resolve_repo_branch(config: SyncConfig, observed_branch: str | None = None) -> str:
    """Configured branch wins, then the clone's current branch, then main."""
    if config.repo is not None and config.repo.branch:
        return config.repo.branch
    if observed_branch and observed_branch != "HEAD":
        return observed_branch
    return DEFAULT_BRANCH


def _normalize_remote(url: str) -> str:
    normalized = url.strip().rstrip("/")
    if normalized.endswith(".git"):
        normalized = normalized[: -len(".git")]
    return normalized.lower()


def _remote_matches(config: SyncConfig, origin_url: str) -> bool:
    repo = config.repo
    if repo is None:
        return False
    expected = repo.full_name or parse_github_repo(repo.url or "")
    observed = parse_github_repo(origin_url)
    if expected and observed:
        return expected.lower() == observed.lower()
    if repo.url:
        return _normalize_remote(repo.url) == _normalize_remote(origin_url)
    return False


class RepoGateway:
    """
    Version-control operations used by the sync flows.

    Example:
        >>> gateway = RepoGateway(SubprocessRunner())
        >>> gateway.ensure_repo_cloned(config, "/home/me/.local/share/opencode-sync/repo")
        >>> gateway.fetch_and_fast_forward(root, "main").updated
        False
    """

    def __init__(self, runner: CommandRunner) -> None:
        self.runner = runner

    def _git(self, root: str | Path, args: list[str], *, check: bool = True) -> str:
        result = self.runner.run(["git", *args], cwd=root)
        if check:
            result.check()
        return result.stdout.strip()

    def _rev_parse(self, root: str | Path, ref: str) -> str | None:
        result = self.runner.run(["git", "rev-parse", "--verify", "--quiet", ref], cwd=root)
        if not result.success:
            return None
        return result.stdout.strip() or None

    def _is_ancestor(self, root: str | Path, ancestor: str, descendant: str) -> bool:
        result = self.runner.run(
            ["git", "merge-base", "--is-ancestor", ancestor, descendant], cwd=root
        )
        if result.exit_code in (0, 1):
            return result.exit_code == 0
        result.check()
        return False

    def is_repo_cloned(self, root: str | Path) -> bool:
        return (Path(root) / ".git").exists()

    def ensure_repo_cloned(self, config: SyncConfig, root: str | Path) -> None:
        """
        Clone the sync repo into root unless it is already there.

        Raises:
            SyncCommandError: If cloning fails, or root holds a clone of a
                different remote (or some other non-empty directory)
        """
        identifier = resolve_repo_identifier(config)
        root_path = Path(root)

        if self.is_repo_cloned(root_path):
            origin = self.runner.run(
                ["git", "remote", "get-url", REMOTE_NAME], cwd=root_path
            ).check().stdout.strip()
            if not _remote_matches(config, origin):
                raise SyncCommandError(
                    f"Local repo at {root_path} tracks {origin}, expected {identifier}."
                )
            return

        if root_path.exists() and any(root_path.iterdir()):
            raise SyncCommandError(f"{root_path} exists and is not a git clone.")

        root_path.parent.mkdir(parents=True, exist_ok=True)
        assert config.repo is not None
        if config.repo.url:
            args = ["git", "clone", config.repo.url, str(root_path)]
        else:
            args = ["gh", "repo", "clone", identifier, str(root_path)]

        logger.info("Cloning %s into %s", identifier, root_path)
        self.runner.run(args).check()

    def has_local_changes(self, root: str | Path) -> bool:
        return bool(self._git(root, ["status", "--porcelain"]))

    def get_repo_status(self, root: str | Path) -> RepoStatus:
        branch = self._git(root, ["branch", "--show-current"]) or "HEAD"
        porcelain = self.runner.run(["git", "status", "--porcelain"], cwd=root).check().stdout
        changes = [line for line in porcelain.splitlines() if line.strip()]
        return RepoStatus(branch=branch, changes=changes)

    def fetch_and_fast_forward(self, root: str | Path, branch: str) -> FetchResult:
        """
        Fetch origin and fast-forward the local branch.

        Returns:
            FetchResult with updated=True only if local content moved

        Raises:
            SyncDivergedError: If local and remote both have commits the
                other lacks
            SyncCommandError: If a git command fails
        """
        self._git(root, ["fetch", "--prune", REMOTE_NAME])

        remote_ref = f"refs/remotes/{REMOTE_NAME}/{branch}"
        remote_sha = self._rev_parse(root, remote_ref)
        if remote_sha is None:
            logger.debug("No remote branch %s yet", branch)
            return FetchResult(updated=False)

        before = self._rev_parse(root, "HEAD")
        current = self._git(root, ["branch", "--show-current"])
        if before is None:
            # Fresh clone of an empty repo that has since gained commits
            self._git(root, ["checkout", "-B", branch, remote_ref])
            return FetchResult(updated=True, head=remote_sha)
        if current != branch:
            self._git(root, ["checkout", branch])

        local_sha = self._rev_parse(root, "HEAD")
        assert local_sha is not None
        if local_sha == remote_sha:
            return FetchResult(updated=local_sha != before, head=local_sha)

        if self._is_ancestor(root, local_sha, remote_sha):
            self._git(root, ["merge", "--ff-only", remote_ref])
            logger.info("Fast-forwarded %s to %s", branch, remote_sha[:8])
            return FetchResult(updated=True, head=remote_sha)

        if self._is_ancestor(root, remote_sha, local_sha):
            logger.debug("Local %s is ahead of remote", branch)
            return FetchResult(updated=local_sha != before, head=local_sha)

        raise SyncDivergedError(
            f"Local branch {branch} has diverged from {REMOTE_NAME}/{branch} in {root}. "
            "Resolve manually (rebase or reset) before syncing.",
            command=["git", "merge", "--ff-only", remote_ref],
        )

    def commit_all(self, root: str | Path, message: str) -> None:
        self._git(root, ["add", "-A"])
        self._git(root, ["commit", "-m", message])

    def push_branch(self, root: str | Path, branch: str) -> None:
        self._git(root, ["push", "-u", REMOTE_NAME, branch])

    def count_unpushed(self, root: str | Path, branch: str) -> int:
        """Commits on HEAD missing from the last fetched remote branch."""
        if self._rev_parse(root, "HEAD") is None:
            return 0
        remote_ref = f"refs/remotes/{REMOTE_NAME}/{branch}"
        if self._rev_parse(root, remote_ref) is None:
            return int(self._git(root, ["rev-list", "--count", "HEAD"]))
        return int(self._git(root, ["rev-list", "--count", f"{remote_ref}..HEAD"]))

    def ensure_repo_private(self, config: SyncConfig) -> None:
        """
        Verify the remote is private.

        Raises:
            SecretsPolicyError: If the repo is public, or its visibility
                can't be determined from the configured identity
            SyncCommandError: If gh fails
        """
        repo = config.repo
        full_name = None
        if repo is not None:
            full_name = repo.full_name or parse_github_repo(repo.url or "")
        if not full_name:
            raise SecretsPolicyError(
                f"Cannot verify that {resolve_repo_identifier(config)} is private. "
                "Secrets sync requires a private GitHub repo."
            )

        result = self.runner.run(["gh", "repo", "view", full_name, "--json", "isPrivate"]).check()
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise SyncCommandError(f"Unexpected gh output for {full_name}: {e}") from e

        if not data.get("isPrivate"):
            raise SecretsPolicyError(
                f"Secrets sync requires a private repo, but {full_name} is public."
            )

    def create_repo(self, config: SyncConfig, private: bool = True) -> None:
        repo = config.repo
        if repo is None or not repo.full_name:
            raise SyncCommandError("Repo creation requires owner/name.")
        visibility = "--private" if private else "--public"
        try:
            self.runner.run(["gh", "repo", "create", repo.full_name, visibility]).check()
        except SyncCommandError as e:
            raise SyncCommandError(
                f"Failed to create repo: {e}", command=e.command, stderr=e.stderr
            ) from e
