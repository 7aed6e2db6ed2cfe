"""Environment loading helpers.

opencode-sync reads several environment variables (OPENCODE_CONFIG_DIR,
OPENCODE_SERVER_URL, XDG_*). Users can keep them in a dotenv file at
~/.config/opencode-sync/.env.

We intentionally do *not* let .env override variables that are already present
in the process environment (e.g. exported in the shell).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values


def _read_env(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    values = dotenv_values(path)
    out: dict[str, str] = {}
    for k, v in values.items():
        if k is None or v is None:
            continue
        out[str(k)] = str(v)
    return out


def default_env_paths() -> list[Path]:
    xdg_home = Path(os.environ.get("XDG_CONFIG_HOME", str(Path.home() / ".config")))
    return [xdg_home / "opencode-sync" / ".env"]


def load_layered_env(env_paths: Iterable[Path] | None = None) -> dict[str, str]:
    """Load environment variables from user dotenv files.

    Earlier files win over later ones; the process environment wins over all.

    Args:
        env_paths: explicit env file paths (defaults to default_env_paths())

    Returns:
        The variables that were actually set.
    """
    if env_paths is None:
        env_paths = default_env_paths()

    applied: dict[str, str] = {}
    for p in env_paths:
        for k, v in _read_env(Path(p)).items():
            if k not in os.environ:
                os.environ[k] = v
                applied[k] = v
    return applied
