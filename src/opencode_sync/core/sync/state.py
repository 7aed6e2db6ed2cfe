"""Persisted sync state (last pull/push timestamps)."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from opencode_sync.core.sync.models import SyncState

logger = logging.getLogger(__name__)


def load_state(path: Path) -> SyncState:
    """Load sync state, or an empty state if missing or unreadable."""
    if path.exists():
        try:
            return SyncState.model_validate_json(path.read_text(encoding="utf-8"))
        except (ValidationError, ValueError, OSError) as e:
            logger.warning("Failed to load sync state: %s", e)
    return SyncState()


def write_state(path: Path, **updates: object) -> SyncState:
    """
    Replace the given state fields and save atomically.

    Fields not named in updates keep their stored values.

    Example:
        >>> write_state(path, last_push=datetime.now(timezone.utc))
    """
    current = load_state(path)
    state = current.model_copy(update=updates)

    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(".tmp")
    payload = state.model_dump(mode="json", by_alias=True, exclude_none=True)
    try:
        temp_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        temp_path.replace(path)
    except OSError:
        if temp_path.exists():
            temp_path.unlink()
        raise
    return state
