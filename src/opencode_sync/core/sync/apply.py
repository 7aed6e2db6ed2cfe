"""
Reconciler: execute a sync plan in either direction.

repo -> local copies repo content over the local tree and re-applies the
override overlay to the materialized config files. local -> repo copies the
local tree into the clone after stripping overlay-origin values.

Both directions skip identical content, so running one right after the other
leaves the clone's working tree unchanged.
"""

from __future__ import annotations

import filecmp
import logging
import shutil
from pathlib import Path
from typing import Any

from opencode_sync.core.config.loader import load_jsonc_file, write_json_file
from opencode_sync.core.exceptions import SyncCommandError, SyncConfigError
from opencode_sync.core.sync.models import ItemType, SyncItem, SyncPlan
from opencode_sync.core.sync.overlay import apply_overrides, strip_overrides
from opencode_sync.core.sync.paths import REPO_EXTRA_SECRETS_DIR, extra_secret_repo_name

logger = logging.getLogger(__name__)

IGNORED_NAMES = frozenset({".git", "node_modules", ".DS_Store"})


def _same_file(src: Path, dest: Path) -> bool:
    return dest.is_file() and filecmp.cmp(src, dest, shallow=False)


def _copy_file(src: Path, dest: Path) -> bool:
    """Copy a file unless dest already has identical content. Returns True if copied."""
    if _same_file(src, dest):
        return False
    if dest.is_dir():
        shutil.rmtree(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dest)
    return True


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _copy_dir(src: Path, dest: Path, *, mirror: bool) -> int:
    """
    Copy a directory tree.

    With mirror=True, entries in dest that are absent from src are removed.

    Returns:
        Number of files written or removed
    """
    changed = 0
    if dest.exists() and not dest.is_dir():
        dest.unlink()
    dest.mkdir(parents=True, exist_ok=True)

    src_names = set()
    for entry in sorted(src.iterdir()):
        if entry.name in IGNORED_NAMES:
            continue
        src_names.add(entry.name)
        target = dest / entry.name
        if entry.is_dir():
            changed += _copy_dir(entry, target, mirror=mirror)
        elif _copy_file(entry, target):
            changed += 1

    if mirror:
        for entry in sorted(dest.iterdir()):
            if entry.name not in src_names and entry.name not in IGNORED_NAMES:
                _remove(entry)
                changed += 1

    return changed


def _load_document(path: Path) -> dict[str, Any] | None:
    try:
        return load_jsonc_file(path)
    except SyncConfigError as e:
        raise SyncCommandError(str(e)) from e


def _apply_config_item(item: SyncItem, overrides: dict[str, Any]) -> None:
    repo_doc = _load_document(Path(item.repo_path))
    if repo_doc is None:
        return
    local_path = Path(item.source_path)
    merged = apply_overrides(repo_doc, overrides)
    if local_path.exists() and _load_document(local_path) == merged:
        return
    write_json_file(local_path, merged)
    logger.debug("Applied %s with overrides", item.repo_relative_path)


def _stage_config_item(item: SyncItem, overrides: dict[str, Any]) -> None:
    local_doc = _load_document(Path(item.source_path))
    if local_doc is None:
        return
    repo_path = Path(item.repo_path)
    base = _load_document(repo_path)
    stripped = strip_overrides(local_doc, overrides, base)
    if base is not None and stripped == base:
        return
    write_json_file(repo_path, stripped)
    logger.debug("Staged %s without overrides", item.repo_relative_path)


def _restore_extra_secrets(plan: SyncPlan) -> None:
    extra = plan.extra_secrets
    if not extra.allowlist:
        return
    manifest = _load_document(Path(extra.manifest_path)) or {}
    local_by_source = dict(extra.entries())
    for entry in manifest.get("entries", []):
        source = entry.get("sourcePath")
        repo_relative = entry.get("repoPath")
        if not source or not repo_relative or source not in local_by_source:
            continue
        stored = Path(plan.repo_root, *repo_relative.split("/"))
        if stored.is_file():
            _copy_file(stored, Path(local_by_source[source]))


def _stage_extra_secrets(plan: SyncPlan) -> None:
    """
    Copy allowlisted secrets into the store and rewrite the manifest.

    Entries are keyed by the path as configured (e.g. ~/.npmrc), so machines
    with different home directories share one stored copy.
    """
    extra = plan.extra_secrets
    if not extra.allowlist:
        return
    store_dir = Path(extra.store_dir)
    entries = []
    for source, local in extra.entries():
        local_path = Path(local)
        name = extra_secret_repo_name(source)
        if local_path.is_file():
            _copy_file(local_path, store_dir / name)
        elif not (store_dir / name).is_file():
            logger.debug("Extra secret %s not found locally, skipping", local)
            continue
        entries.append({"sourcePath": source, "repoPath": f"{REPO_EXTRA_SECRETS_DIR}/{name}"})

    known = {extra_secret_repo_name(source) for source in extra.allowlist}
    if store_dir.is_dir():
        for stale in sorted(store_dir.iterdir()):
            if stale.name not in known:
                _remove(stale)

    manifest_path = Path(extra.manifest_path)
    manifest = {"entries": entries}
    if _load_document(manifest_path) != manifest:
        write_json_file(manifest_path, manifest)


def sync_repo_to_local(plan: SyncPlan, overrides: dict[str, Any]) -> None:
    """
    Apply repo content to the local config tree.

    Local-only files inside synced directories are kept. Materialized config
    files get the override overlay merged on top.

    Raises:
        SyncCommandError: If a filesystem step fails
    """
    try:
        for item in plan.items:
            repo_path = Path(item.repo_path)
            if item.is_config_file and overrides:
                _apply_config_item(item, overrides)
            elif not repo_path.exists():
                continue
            elif item.type == ItemType.DIR:
                _copy_dir(repo_path, Path(item.source_path), mirror=False)
            else:
                _copy_file(repo_path, Path(item.source_path))
        _restore_extra_secrets(plan)
    except OSError as e:
        raise SyncCommandError(f"Failed to apply repo content locally: {e}") from e


def sync_local_to_repo(plan: SyncPlan, overrides: dict[str, Any]) -> None:
    """
    Copy the local config tree into the repo clone.

    Missing local sources are skipped, not treated as errors. Directories are
    mirrored so local deletions reach the repo. Overlay values are stripped
    from config files first.

    Raises:
        SyncCommandError: If a filesystem step fails
    """
    try:
        for item in plan.items:
            source = Path(item.source_path)
            if not source.exists():
                continue
            if item.is_config_file and overrides:
                _stage_config_item(item, overrides)
            elif item.type == ItemType.DIR:
                _copy_dir(source, Path(item.repo_path), mirror=True)
            else:
                _copy_file(source, Path(item.repo_path))
        _stage_extra_secrets(plan)
    except OSError as e:
        raise SyncCommandError(f"Failed to copy local config into repo: {e}") from e
