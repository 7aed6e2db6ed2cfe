"""
Pytest configuration and shared fixtures.

Provides fixtures for isolated machine environments, seeded git remotes,
and fake capabilities (command runner, notifier, model client) used across
the test suite.
"""

import subprocess
from pathlib import Path
from typing import Any

import pytest

from opencode_sync.core.client.models import ClientResponse, ModelRef, PromptReply, Session
from opencode_sync.core.notify import NotifyVariant
from opencode_sync.core.process import CommandResult
from opencode_sync.core.sync.paths import resolve_sync_locations

# ==============================================================================
# Git Helpers
# ==============================================================================


def run_git(args: list[str], cwd: Path) -> str:
    """Run git in cwd and return stripped stdout (raises on failure)."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


@pytest.fixture
def git_identity(monkeypatch):
    """Give git commits a fixed identity without touching global config."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")


@pytest.fixture
def remote_repo(tmp_path: Path, git_identity) -> Path:
    """
    Provide a bare remote with one commit on main.

    Creates:
    - remote.git (bare)
    - seed/ working copy used to create the initial commit
    """
    remote = tmp_path / "remote.git"
    subprocess.run(
        ["git", "init", "--bare", "-b", "main", str(remote)],
        capture_output=True,
        check=True,
    )

    seed = tmp_path / "seed"
    seed.mkdir()
    run_git(["init", "-b", "main"], seed)
    (seed / "README.md").write_text("# OpenCode config\n")
    run_git(["add", "README.md"], seed)
    run_git(["commit", "-m", "Initial commit"], seed)
    run_git(["remote", "add", "origin", str(remote)], seed)
    run_git(["push", "-u", "origin", "main"], seed)

    return remote


def push_remote_change(remote: Path, work_dir: Path, relative: str, content: str) -> None:
    """Commit a file to the remote from a separate clone."""
    if not work_dir.exists():
        subprocess.run(
            ["git", "clone", str(remote), str(work_dir)],
            capture_output=True,
            check=True,
        )
    else:
        run_git(["pull", "--ff-only"], work_dir)
    target = work_dir / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content)
    run_git(["add", "-A"], work_dir)
    run_git(["commit", "-m", f"Update {relative}"], work_dir)
    run_git(["push", "origin", "main"], work_dir)


# ==============================================================================
# Machine Fixtures
# ==============================================================================


@pytest.fixture
def machine_env(tmp_path: Path) -> dict[str, str]:
    """Environment for one machine with its own HOME."""
    home = tmp_path / "home"
    home.mkdir()
    return {"HOME": str(home)}


@pytest.fixture
def locations(machine_env):
    return resolve_sync_locations(machine_env, "linux")


# ==============================================================================
# Fake Capabilities
# ==============================================================================


class FakeRunner:
    """CommandRunner that records calls and replays scripted outcomes."""

    def __init__(self, responses: dict[tuple[str, ...], Any] | None = None) -> None:
        self.calls: list[list[str]] = []
        self.responses = responses or {}

    def run(self, args, *, cwd=None, input_data=None) -> CommandResult:
        self.calls.append(list(args))
        for prefix, outcome in self.responses.items():
            if tuple(args[: len(prefix)]) == prefix:
                if isinstance(outcome, Exception):
                    raise outcome
                if isinstance(outcome, CommandResult):
                    return outcome.model_copy(update={"command": list(args)})
                return CommandResult(command=list(args), exit_code=0, stdout=str(outcome))
        return CommandResult(command=list(args), exit_code=0)


class RecordingNotifier:
    """Notifier that keeps every message."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, NotifyVariant]] = []

    def notify(self, message: str, variant: NotifyVariant) -> None:
        self.messages.append((message, variant))

    @property
    def variants(self) -> list[NotifyVariant]:
        return [variant for _, variant in self.messages]


class FakeModelClient:
    """ModelClient with configurable replies."""

    def __init__(
        self,
        *,
        config: dict[str, Any] | None = None,
        reply_text: str | None = "Update agent definitions",
        fail: set[str] | None = None,
        raise_on: set[str] | None = None,
    ) -> None:
        self.config = config if config is not None else {"small_model": "anthropic/haiku"}
        self.reply_text = reply_text
        self.fail = fail or set()
        self.raise_on = raise_on or set()
        self.created: list[str] = []
        self.deleted: list[str] = []
        self.prompts: list[tuple[str, ModelRef, str]] = []

    def _check(self, step: str) -> None:
        if step in self.raise_on:
            raise RuntimeError(f"{step} exploded")

    def get_config(self):
        self._check("config")
        if "config" in self.fail:
            return ClientResponse.failure("config unavailable")
        return ClientResponse.success(self.config)

    def create_session(self, title: str):
        self._check("create")
        if "create" in self.fail:
            return ClientResponse.failure("cannot create session")
        session_id = f"ses_{len(self.created) + 1}"
        self.created.append(session_id)
        return ClientResponse.success(Session(id=session_id, title=title))

    def prompt(self, session_id: str, model: ModelRef, text: str):
        self.prompts.append((session_id, model, text))
        self._check("prompt")
        if "prompt" in self.fail:
            return ClientResponse.failure("prompt failed")
        parts = [{"type": "text", "text": self.reply_text}] if self.reply_text is not None else []
        return ClientResponse.success(PromptReply.from_payload({"parts": parts}))

    def delete_session(self, session_id: str):
        self.deleted.append(session_id)
        self._check("delete")
        if "delete" in self.fail:
            return ClientResponse.failure("cannot delete")
        return ClientResponse.success(True)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def notifier():
    return RecordingNotifier()
