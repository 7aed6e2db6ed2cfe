"""
Standardized error handling and exit codes for the opencode-sync CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum

from rich.console import Console
from rich.markup import escape

from opencode_sync.core.exceptions import (
    DirtyRepoError,
    SecretsPolicyError,
    SyncConfigError,
    SyncDivergedError,
    SyncError,
)

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for opencode-sync operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error (command failure, dirty repo, divergence)."""

    USER_ERROR = 2
    """Configuration or input error (actionable by user)."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it
    """
    console.print(f"[red]Error:[/red] {escape(problem)}", highlight=False)

    if reason:
        console.print(f"[dim]{escape(reason)}[/dim]", highlight=False)

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {escape(solution)}", highlight=False)


def report_sync_error(error: SyncError) -> ExitCode:
    """Print guidance for a sync error and return the exit code to use."""
    if isinstance(error, SyncConfigError):
        print_error(str(error), solution="opencode-sync init owner/name")
        return ExitCode.USER_ERROR

    if isinstance(error, SecretsPolicyError):
        print_error(
            str(error),
            reason="Auth files are only synced to private repositories",
            solution="gh repo edit OWNER/NAME --visibility private",
        )
        return ExitCode.USER_ERROR

    if isinstance(error, DirtyRepoError):
        print_error(
            str(error),
            solution=f"git -C {error.repo_root} status",
        )
        return ExitCode.GENERAL_ERROR

    if isinstance(error, SyncDivergedError):
        print_error(
            str(error),
            reason="opencode-sync only fast-forwards and never merges automatically",
        )
        return ExitCode.GENERAL_ERROR

    print_error(str(error))
    return ExitCode.GENERAL_ERROR
