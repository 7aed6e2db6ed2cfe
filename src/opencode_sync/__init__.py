"""
opencode-sync - keep an OpenCode configuration tree in sync across machines.

Synchronizes the local OpenCode config directory with a shared git repository,
with opt-in syncing of secrets when the remote is private.
"""

__version__ = "0.3.0"

from opencode_sync.core.config.models import RepoConfig, SyncConfig
from opencode_sync.core.sync.service import SyncService

__all__ = ["RepoConfig", "SyncConfig", "SyncService", "__version__"]
