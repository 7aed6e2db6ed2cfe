"""
opencode-sync CLI - Main application entry point.

This module sets up the Typer CLI application with all commands.
"""

import logging

import typer

from opencode_sync import __version__
from opencode_sync.cli import sync
from opencode_sync.core.config.env import load_layered_env

app = typer.Typer(
    name="opencode-sync",
    help="Sync your OpenCode config across machines through a git repo",
    no_args_is_help=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"opencode-sync {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    no_model: bool = typer.Option(
        False,
        "--no-model",
        help="Don't ask a model for commit messages; use the dated fallback",
    ),
    server_url: str | None = typer.Option(
        None,
        "--server-url",
        help="OpenCode server URL (default: $OPENCODE_SERVER_URL or http://127.0.0.1:4096)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    opencode-sync - keep OpenCode config in sync across machines.

    Quick Start:
        1. opencode-sync init acme/opencode-config   # configure + clone
        2. opencode-sync push                        # publish this machine's config
        3. opencode-sync pull                        # on another machine

    Machine-specific settings go in opencode-sync.overrides.jsonc next to
    your OpenCode config; they are applied after every pull and never pushed.
    """
    # Precedence: OS env > user .env
    load_layered_env()

    if debug:
        logging.basicConfig(level=logging.DEBUG)

    ctx.obj = {"debug": debug, "no_model": no_model, "server_url": server_url}


app.command(name="init")(sync.init)
app.command(name="status")(sync.status)
app.command(name="pull")(sync.pull)
app.command(name="push")(sync.push)
app.command(name="enable-secrets")(sync.enable_secrets)
app.command(name="startup")(sync.startup)


def main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "main"]
