"""
Configuration models and loading.

This module provides Pydantic models for the opencode-sync config file and
helpers to read JSONC documents, merge overrides and persist config.
"""

from .loader import (
    build_config_from_init,
    deep_merge,
    load_jsonc_file,
    load_overrides,
    load_sync_config,
    normalize_sync_config,
    parse_jsonc,
    resolve_repo_from_init,
    strip_jsonc,
    write_json_file,
    write_sync_config,
)
from .models import InitOptions, RepoConfig, SyncConfig

__all__ = [
    # Models
    "InitOptions",
    "RepoConfig",
    "SyncConfig",
    # Loader functions
    "build_config_from_init",
    "deep_merge",
    "load_jsonc_file",
    "load_overrides",
    "load_sync_config",
    "normalize_sync_config",
    "parse_jsonc",
    "resolve_repo_from_init",
    "strip_jsonc",
    "write_json_file",
    "write_sync_config",
]
