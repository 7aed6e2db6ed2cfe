"""
Configuration loading and persistence.

Handles the JSONC documents opencode-sync reads (sync config, overrides),
the deep merge used to layer overrides on top of synced config, and atomic
JSON writes.
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from opencode_sync.core.exceptions import SyncConfigError

from .models import InitOptions, RepoConfig, SyncConfig

logger = logging.getLogger(__name__)


def _scan_outside_strings(
    text: str,
    handler: Callable[[str, int], tuple[str, int]],
) -> str:
    """
    Walk JSON text, passing every character outside string literals to handler.

    handler(text, index) returns (emitted, next_index). Characters inside
    strings (including escapes) are copied through untouched.
    """
    out: list[str] = []
    i = 0
    n = len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < n:
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue
        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
            continue
        emitted, i = handler(text, i)
        out.append(emitted)
    return "".join(out)


def _drop_comment(text: str, i: int) -> tuple[str, int]:
    if text.startswith("//", i):
        end = text.find("\n", i)
        return "", len(text) if end == -1 else end
    if text.startswith("/*", i):
        end = text.find("*/", i + 2)
        # Keep a space so tokens on either side of the comment stay apart
        return " ", len(text) if end == -1 else end + 2
    return text[i], i + 1


def _drop_trailing_comma(text: str, i: int) -> tuple[str, int]:
    if text[i] == ",":
        j = i + 1
        while j < len(text) and text[j] in " \t\r\n":
            j += 1
        if j < len(text) and text[j] in "}]":
            return "", i + 1
    return text[i], i + 1


def strip_jsonc(text: str) -> str:
    """
    Convert JSONC text to plain JSON.

    Removes // line comments, /* */ block comments and trailing commas.
    Comment markers inside string literals are preserved.

    Example:
        >>> strip_jsonc('{"a": "http://x", // note\\n "b": [1, 2,],}')
        '{"a": "http://x", \\n "b": [1, 2]}'
    """
    without_comments = _scan_outside_strings(text, _drop_comment)
    return _scan_outside_strings(without_comments, _drop_trailing_comma)


def parse_jsonc(text: str) -> Any:
    """Parse a JSONC document."""
    return json.loads(strip_jsonc(text))


def load_jsonc_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSONC object document.

    Args:
        path: Path to the document

    Returns:
        Parsed object, or None if the file doesn't exist

    Raises:
        SyncConfigError: If the file can't be read, parsed, or isn't an object
    """
    if not path.exists():
        return None

    try:
        data = parse_jsonc(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        raise SyncConfigError(f"Failed to parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise SyncConfigError(f"Expected a JSON object in {path}")
    return data


def write_json_file(path: Path, data: Any) -> None:
    """Write pretty-printed JSON atomically via a temp file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        temp_path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        temp_path.replace(path)
    except OSError:
        if temp_path.exists():
            temp_path.unlink()
        raise


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base` at every
    depth. Nested dicts are merged, anything else is replaced.

    Args:
        base: Base dictionary (lower priority)
        override: Override dictionary (higher priority)

    Returns:
        New merged dictionary; neither input is modified

    Example:
        >>> base = {"a": 1, "b": {"x": 10, "y": 20}}
        >>> override = {"b": {"y": 30, "z": 40}, "c": 3}
        >>> deep_merge(base, override)
        {'a': 1, 'b': {'x': 10, 'y': 30, 'z': 40}, 'c': 3}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def normalize_sync_config(raw: dict[str, Any]) -> SyncConfig:
    """
    Validate a raw config document and fill defaults.

    Raises:
        SyncConfigError: If the document doesn't match the config schema
    """
    try:
        return SyncConfig.model_validate(raw)
    except ValidationError as e:
        raise SyncConfigError(f"Invalid opencode-sync config: {e}") from e


def load_sync_config(path: Path) -> SyncConfig | None:
    """Load the sync config, or None when it hasn't been created yet."""
    raw = load_jsonc_file(path)
    if raw is None:
        return None
    return normalize_sync_config(raw)


def write_sync_config(path: Path, config: SyncConfig) -> None:
    write_json_file(path, config.to_document())
    logger.debug("Wrote sync config to %s", path)


def load_overrides(path: Path) -> dict[str, Any]:
    """Load machine-local overrides. A missing file means no overrides."""
    return load_jsonc_file(path) or {}


def resolve_repo_from_init(options: InitOptions) -> RepoConfig | None:
    """
    Work out the repo identity from init options.

    Precedence: explicit url, then owner + name, then the `repo` shorthand
    (a URL if it contains '://' or ends in '.git', otherwise 'owner/name').
    """
    if options.url:
        return RepoConfig(url=options.url, branch=options.branch)
    if options.owner and options.name:
        return RepoConfig(owner=options.owner, name=options.name, branch=options.branch)
    if options.repo:
        if "://" in options.repo or options.repo.endswith(".git"):
            return RepoConfig(url=options.repo, branch=options.branch)
        owner, _, name = options.repo.partition("/")
        if owner and name:
            return RepoConfig(owner=owner, name=name, branch=options.branch)
    return None


def build_config_from_init(options: InitOptions) -> SyncConfig:
    return SyncConfig(
        repo=resolve_repo_from_init(options),
        include_secrets=options.include_secrets,
        extra_secret_paths=list(options.extra_secret_paths),
        local_repo_path=options.local_repo_path,
    )
