"""
Machine-local override overlay.

Overrides live in opencode-sync.overrides.jsonc next to the OpenCode config.
They are merged on top of synced config after every pull, and stripped back
out before anything is copied into the repo, so they never leave the machine.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from opencode_sync.core.config.loader import deep_merge, load_overrides
from opencode_sync.core.sync.models import SyncLocations

_MISSING = object()


def load(locations: SyncLocations) -> dict[str, Any]:
    """Load overrides for this machine; a missing file means none."""
    return load_overrides(Path(locations.overrides_path))


def apply_overrides(document: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge overrides into a config document. Override values win at every depth."""
    return deep_merge(document, overrides)


def strip_overrides(
    document: dict[str, Any],
    overrides: dict[str, Any],
    base: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Remove values that came from the overlay.

    A value is considered overlay-origin when it still equals the override
    value. It is replaced by the value the repo had before (`base`), or
    dropped if the repo never had that key. Values the user changed locally
    are kept.

    Args:
        document: Local materialized config
        overrides: Machine-local overrides
        base: Config currently in the repo, if any

    Returns:
        New document safe to commit

    Example:
        >>> strip_overrides({"model": "x", "theme": "dark"}, {"model": "x"}, {"model": "y"})
        {'model': 'y', 'theme': 'dark'}
    """
    base = base or {}
    result = dict(document)

    for key, override_value in overrides.items():
        if key not in result:
            continue
        local_value = result[key]
        base_value = base.get(key, _MISSING)

        if (
            isinstance(override_value, dict)
            and isinstance(local_value, dict)
            and (base_value is _MISSING or isinstance(base_value, dict))
        ):
            nested_base = base_value if isinstance(base_value, dict) else {}
            stripped = strip_overrides(local_value, override_value, nested_base)
            if not stripped and base_value is _MISSING:
                # The whole mapping only existed because of the overlay
                del result[key]
            else:
                result[key] = stripped
        elif local_value == override_value:
            if base_value is _MISSING:
                del result[key]
            else:
                result[key] = base_value

    return result
