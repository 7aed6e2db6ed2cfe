"""
Git-backed sync engine for the OpenCode config tree.

The engine builds a deterministic sync plan from the config, copies files
between the local tree and a clone of the shared repo, keeps machine-local
overrides out of the repo, and only ever fast-forwards.

Example:
    >>> from opencode_sync.core.sync import SyncContext, SyncService
    >>> service = SyncService(SyncContext())
    >>> print(service.status())
    >>> service.push()
    'Pushed changes: Add review agent'
"""

from opencode_sync.core.sync.models import (
    FetchResult,
    ItemType,
    RepoStatus,
    SyncItem,
    SyncLocations,
    SyncPhase,
    SyncPlan,
    SyncState,
)
from opencode_sync.core.sync.service import SyncContext, SyncService

__all__ = [
    "FetchResult",
    "ItemType",
    "RepoStatus",
    "SyncContext",
    "SyncItem",
    "SyncLocations",
    "SyncPhase",
    "SyncPlan",
    "SyncService",
    "SyncState",
]
