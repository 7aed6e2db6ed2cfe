"""
Command runner port.

The repo gateway and commit message generator never call subprocess
directly; they go through a CommandRunner so flows can be exercised without
real git or gh processes.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel

from opencode_sync.core.exceptions import SyncCommandError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120.0


class CommandResult(BaseModel):
    """Structured result from a finished command."""

    command: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def check(self) -> CommandResult:
        """Raise SyncCommandError unless the command succeeded."""
        if not self.success:
            detail = self.stderr.strip() or self.stdout.strip() or f"exit code {self.exit_code}"
            raise SyncCommandError(
                f"Command failed: {' '.join(self.command)}: {detail}",
                command=self.command,
                stderr=self.stderr.strip(),
            )
        return self


@runtime_checkable
class CommandRunner(Protocol):
    """Runs an external command and reports its outcome."""

    def run(
        self,
        args: list[str],
        *,
        cwd: str | Path | None = None,
        input_data: str | None = None,
    ) -> CommandResult:
        """
        Run a command to completion.

        Non-zero exits are reported in the result, not raised.

        Raises:
            SyncCommandError: If the command can't be started or times out
        """
        ...


class SubprocessRunner:
    """CommandRunner backed by subprocess.run."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout

    def run(
        self,
        args: list[str],
        *,
        cwd: str | Path | None = None,
        input_data: str | None = None,
    ) -> CommandResult:
        logger.debug("Running command: %s", " ".join(args))

        try:
            result = subprocess.run(
                args,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                input=input_data,
            )
        except subprocess.TimeoutExpired as e:
            raise SyncCommandError(f"Command timed out: {' '.join(args)}", command=args) from e
        except FileNotFoundError as e:
            raise SyncCommandError(f"{args[0]} not found in PATH", command=args) from e

        return CommandResult(
            command=list(args),
            exit_code=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )
