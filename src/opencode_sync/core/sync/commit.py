"""
Commit message generation.

Asks the configured small model for a one-line summary of the pending diff.
Any failure along the way falls back to a dated message; this module never
raises to its caller.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path

from opencode_sync.core.client.backend import ModelClient, ephemeral_session
from opencode_sync.core.client.models import ModelRef
from opencode_sync.core.exceptions import SyncCommandError
from opencode_sync.core.process import CommandRunner

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 72
SESSION_TITLE = "opencode-sync"
QUOTE_CHARS = "\"'`"


def fallback_message(date: datetime | None = None) -> str:
    """Deterministic message used whenever the model can't help."""
    date = date or datetime.now()
    return f"Sync OpenCode config ({date.strftime('%Y-%m-%d')})"


def get_diff_summary(runner: CommandRunner, repo_dir: str | Path) -> str:
    """
    Summarize working tree changes (name/status + stat).

    Untracked files are listed as additions. Returns "" on any git failure.
    """
    repo = str(repo_dir)
    try:
        name_status = runner.run(["git", "-C", repo, "diff", "--name-status"]).check().stdout
        stats = runner.run(["git", "-C", repo, "diff", "--stat"]).check().stdout
        untracked = runner.run(
            ["git", "-C", repo, "ls-files", "--others", "--exclude-standard"]
        ).check().stdout
    except SyncCommandError as e:
        logger.debug("Could not compute diff summary: %s", e)
        return ""

    added = "\n".join(f"A\t{line}" for line in untracked.splitlines() if line.strip())
    return "\n".join(part for part in (name_status.strip(), added, stats.strip()) if part)


def sanitize_message(message: str) -> str:
    """First line, surrounding quotes removed, at most 72 characters."""
    lines = message.strip().splitlines()
    if not lines:
        return ""
    trimmed = lines[0].strip().strip(QUOTE_CHARS).strip()
    if len(trimmed) <= MAX_MESSAGE_LENGTH:
        return trimmed
    return trimmed[:MAX_MESSAGE_LENGTH].strip()


def resolve_small_model(client: ModelClient) -> ModelRef | None:
    """Model to use: small_model from the host config, else model."""
    response = client.get_config()
    if not response.ok or response.data is None:
        return None
    value = response.data.get("small_model") or response.data.get("model")
    return ModelRef.parse(value if isinstance(value, str) else None)


def build_prompt(diff_summary: str) -> str:
    return "\n".join(
        [
            f"Generate a concise single-line git commit message (max {MAX_MESSAGE_LENGTH} chars).",
            "Focus on OpenCode config sync changes.",
            "Return only the message, no quotes.",
            "",
            "Diff summary:",
            diff_summary,
        ]
    )


def generate_commit_message(
    runner: CommandRunner,
    client: ModelClient | None,
    repo_dir: str | Path,
    fallback_date: datetime | None = None,
) -> str:
    """
    Produce a commit message for the pending changes in repo_dir.

    Args:
        runner: Command runner used for git diff
        client: Model client, or None to skip the model entirely
        repo_dir: Local clone path
        fallback_date: Date for the fallback message (defaults to today)

    Returns:
        Model-written message, or "Sync OpenCode config (YYYY-MM-DD)"
    """
    fallback = fallback_message(fallback_date)

    try:
        diff_summary = get_diff_summary(runner, repo_dir)
        if not diff_summary or client is None:
            return fallback

        model = resolve_small_model(client)
        if model is None:
            logger.debug("No model configured for commit messages")
            return fallback

        with ephemeral_session(client, SESSION_TITLE) as session:
            if session is None:
                return fallback
            reply = client.prompt(session.id, model, build_prompt(diff_summary))
            if not reply.ok or reply.data is None:
                logger.debug("Commit message prompt failed: %s", reply.error)
                return fallback
            text = reply.data.first_text()

        if not text:
            return fallback
        return sanitize_message(text) or fallback
    except Exception as e:  # noqa: BLE001
        logger.warning("Commit message generation failed, using fallback: %s", e)
        return fallback
