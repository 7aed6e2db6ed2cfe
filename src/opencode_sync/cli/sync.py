"""
opencode-sync CLI - sync commands.

Thin wrappers over SyncService: each command prints one short status
block, or an error with guidance and a non-zero exit code.
"""

import typer
from rich.console import Console

from opencode_sync.cli.errors import report_sync_error
from opencode_sync.core.client.http import OpencodeHttpClient
from opencode_sync.core.config.models import InitOptions
from opencode_sync.core.exceptions import SyncError
from opencode_sync.core.notify import ConsoleNotifier
from opencode_sync.core.process import SubprocessRunner
from opencode_sync.core.sync.service import SyncContext, SyncService

console = Console()


def build_service(ctx: typer.Context, *, with_model: bool = True) -> SyncService:
    """
    Create a SyncService wired to real git/gh and the OpenCode server.

    Commands that never commit pass with_model=False so no HTTP client is
    opened.
    """
    options = ctx.obj or {}
    client = None
    if with_model and not options.get("no_model"):
        client = OpencodeHttpClient(options.get("server_url"))
    context = SyncContext(
        runner=SubprocessRunner(),
        notifier=ConsoleNotifier(),
        client=client,
    )
    return SyncService(context)


def _run(ctx: typer.Context, operation: str) -> None:
    service = build_service(ctx)
    try:
        result = getattr(service, operation)()
    except SyncError as e:
        raise typer.Exit(report_sync_error(e))
    finally:
        if isinstance(service.context.client, OpencodeHttpClient):
            service.context.client.close()
    console.print(result, markup=False, highlight=False)


def init(
    ctx: typer.Context,
    repo: str | None = typer.Argument(
        None,
        help="Repository as owner/name or a clone URL",
    ),
    owner: str | None = typer.Option(None, "--owner", help="Repository owner"),
    name: str | None = typer.Option(None, "--name", help="Repository name"),
    url: str | None = typer.Option(None, "--url", help="Clone URL"),
    branch: str | None = typer.Option(None, "--branch", "-b", help="Branch to sync"),
    include_secrets: bool = typer.Option(
        False,
        "--include-secrets",
        help="Also sync auth files (requires a private repo)",
    ),
    extra_secret: list[str] = typer.Option(
        [],
        "--extra-secret",
        help="Additional secret file to sync (repeatable)",
    ),
    create: bool = typer.Option(False, "--create", help="Create the repo with gh first"),
    public: bool = typer.Option(False, "--public", help="Create the repo as public"),
    local_repo_path: str | None = typer.Option(
        None,
        "--local-repo-path",
        help="Where to keep the local clone",
    ),
) -> None:
    """
    Configure opencode-sync and clone the sync repo.

    Examples:
        opencode-sync init acme/opencode-config
        opencode-sync init acme/opencode-config --create
        opencode-sync init --url git@example.com:me/cfg.git --branch main
    """
    options = InitOptions(
        repo=repo,
        owner=owner,
        name=name,
        url=url,
        branch=branch,
        include_secrets=include_secrets,
        create=create,
        private=not public,
        extra_secret_paths=extra_secret,
        local_repo_path=local_repo_path,
    )
    service = build_service(ctx, with_model=False)
    try:
        result = service.init(options)
    except SyncError as e:
        raise typer.Exit(report_sync_error(e))
    console.print(result, markup=False, highlight=False)


def status(ctx: typer.Context) -> None:
    """Show repo, branch, secrets setting and last sync times."""
    _run(ctx, "status")


def pull(ctx: typer.Context) -> None:
    """Fetch remote config and apply it locally (fast-forward only)."""
    _run(ctx, "pull")


def push(ctx: typer.Context) -> None:
    """Commit local config changes and push them."""
    _run(ctx, "push")


def enable_secrets(
    ctx: typer.Context,
    extra_secret: list[str] | None = typer.Option(
        None,
        "--extra-secret",
        help="Replace the extra secret paths (repeatable)",
    ),
) -> None:
    """Turn on secrets sync for a private repo."""
    service = build_service(ctx, with_model=False)
    try:
        result = service.enable_secrets(extra_secret or None)
    except SyncError as e:
        raise typer.Exit(report_sync_error(e))
    console.print(result, markup=False, highlight=False)


def startup(ctx: typer.Context) -> None:
    """
    Run the startup sync (pull if the remote changed, else push).

    Never fails; problems are shown as notifications.
    """
    service = build_service(ctx)
    try:
        service.startup_sync()
    finally:
        if isinstance(service.context.client, OpencodeHttpClient):
            service.context.client.close()
