"""pyreleaser CLI application."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console

from pyreleaser.errors import PyReleaserError
from pyreleaser.logging import configure_logging
from pyreleaser.workspace import Workspace


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from pyreleaser import __version__

        print(f"pyreleaser {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="pyreleaser",
    help="Plan and publish releases of a uv workspace in dependency order",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def _app_callback(
    version: Annotated[  # noqa: ARG001
        bool,
        typer.Option("--version", "-V", help="Show version and exit", callback=version_callback),
    ] = False,
) -> None:
    """Release planner for uv workspaces."""
    pass


console = Console()
error_console = Console(stderr=True)


def get_workspace(path: Path | None = None) -> Workspace:
    """Load the workspace, its .env file and logging settings."""
    try:
        workspace = Workspace.discover(path)
    except PyReleaserError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    load_dotenv(workspace.root / ".env", override=False)
    settings = workspace.config.logging
    configure_logging(settings.level, json=settings.json_output, force=True)
    return workspace


@app.command()
def plan(
    names: Annotated[
        list[str] | None,
        typer.Argument(help="Packages to release"),
    ] = None,
    all: Annotated[
        bool,
        typer.Option("--all", help="Release every publishable package"),
    ] = False,
    since: Annotated[
        str | None,
        typer.Option("--since", help="Release packages changed since git ref"),
    ] = None,
    pre: Annotated[
        str | None,
        typer.Option("--pre", help="Prerelease suffix (e.g. rc1, a0)"),
    ] = None,
    new: Annotated[
        bool,
        typer.Option("--new", help="Ignore the existing plan and start fresh"),
    ] = False,
    patch: Annotated[
        bool,
        typer.Option("--patch", help="Bump the named packages by one more patch release"),
    ] = False,
    description: Annotated[
        str | None,
        typer.Option("--description", help="Description stored in the plan"),
    ] = None,
) -> None:
    """Compute the release plan and write it to Plan.toml."""
    from pyreleaser.commands import handle_plan_command

    workspace = get_workspace()
    asyncio.run(
        handle_plan_command(
            workspace,
            console=console,
            error_console=error_console,
            names=names,
            all=all,
            since=since,
            prerelease=pre,
            fresh=new,
            patch=patch,
            description=description,
        )
    )


@app.command()
def apply(
    publish: Annotated[
        bool,
        typer.Option("--publish", help="Publish packages after rewriting manifests"),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Run the full publish path without uploading"),
    ] = False,
    print_only: Annotated[
        bool,
        typer.Option("--print", help="List planned releases not yet in the registry and exit"),
    ] = False,
    max_concurrent: Annotated[
        int | None,
        typer.Option("--max-concurrent", "-j", min=1, help="Concurrent publishes per batch"),
    ] = None,
    batch_size: Annotated[
        int | None,
        typer.Option("--batch-size", min=0, help="Maximum packages per batch (0 = unbounded)"),
    ] = None,
    batch_delay: Annotated[
        float | None,
        typer.Option("--batch-delay", min=0, help="Seconds to wait between batches"),
    ] = None,
    parallel_batches: Annotated[
        int | None,
        typer.Option("--parallel-batches", min=0, help="Batches started together"),
    ] = None,
    poll_interval: Annotated[
        float | None,
        typer.Option("--poll-interval", min=0.1, help="Seconds between registry checks"),
    ] = None,
    poll_timeout: Annotated[
        float | None,
        typer.Option("--poll-timeout", min=0, help="Seconds to wait for a version to appear"),
    ] = None,
    skip_dependents_of_failed: Annotated[
        bool | None,
        typer.Option(
            "--skip-dependents-of-failed/--continue-after-failure",
            help="Skip packages whose dependencies failed to publish",
        ),
    ] = None,
) -> None:
    """Rewrite manifests for the plan and optionally publish it."""
    from pyreleaser.commands import ApplyOptions, handle_apply_command

    workspace = get_workspace()
    options = ApplyOptions(
        publish=publish,
        dry_run=dry_run,
        print_only=print_only,
        max_concurrent=max_concurrent,
        batch_size=batch_size,
        batch_delay=batch_delay,
        parallel_batches=parallel_batches,
        poll_interval=poll_interval,
        poll_timeout=poll_timeout,
        skip_dependents_of_failed=skip_dependents_of_failed,
    )
    asyncio.run(
        handle_apply_command(
            workspace,
            options,
            console=console,
            error_console=error_console,
        )
    )


@app.command()
def order(
    batch_size: Annotated[
        int | None,
        typer.Option("--batch-size", min=0, help="Maximum packages per batch (0 = unbounded)"),
    ] = None,
) -> None:
    """Show the topological release order and batch schedule."""
    from pyreleaser.commands import handle_order_command

    workspace = get_workspace()
    handle_order_command(
        workspace,
        console=console,
        error_console=error_console,
        batch_size=batch_size,
    )


@app.command()
def status(
    missing: Annotated[
        bool,
        typer.Option("--missing", help="Only show packages never released"),
    ] = False,
    outdated: Annotated[
        bool,
        typer.Option("--outdated", help="Only show packages whose local version differs"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Print package names only"),
    ] = False,
) -> None:
    """Compare local package versions with the registry."""
    from pyreleaser.commands import StatusOptions, handle_status_command

    workspace = get_workspace()
    asyncio.run(
        handle_status_command(
            workspace,
            StatusOptions(missing=missing, outdated=outdated, quiet=quiet),
            console=console,
            error_console=error_console,
        )
    )


@app.command()
def changed(
    since: Annotated[
        str,
        typer.Argument(help="Git reference to compare against"),
    ],
    no_deps: Annotated[
        bool,
        typer.Option("--no-deps", help="Do not list dependents of changed packages"),
    ] = False,
    manifests: Annotated[
        bool,
        typer.Option("--manifests", help="Only list packages whose manifest alone changed"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Print package names only"),
    ] = False,
    paths: Annotated[
        bool,
        typer.Option("--paths", help="Print package directories only"),
    ] = False,
) -> None:
    """List publishable packages changed since a git reference."""
    from pyreleaser.commands import handle_changed_command

    workspace = get_workspace()
    handle_changed_command(
        workspace,
        console=console,
        error_console=error_console,
        since=since,
        include_dependents=not no_deps,
        manifests_only=manifests,
        quiet=quiet,
        paths=paths,
    )


@app.command()
def check(
    allow_nonfatal: Annotated[
        bool,
        typer.Option("--allow-nonfatal", help="Treat a missing description as a warning"),
    ] = False,
) -> None:
    """Check publishable packages for missing upload metadata."""
    from pyreleaser.commands import handle_check_command

    workspace = get_workspace()
    handle_check_command(
        workspace,
        console=console,
        error_console=error_console,
        allow_nonfatal=allow_nonfatal,
    )


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
