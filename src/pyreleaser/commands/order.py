"""Order command implementation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import typer
from rich.console import Console

from pyreleaser.cli.output.table import print_table
from pyreleaser.commands.base import CommandContext, SyncCommand
from pyreleaser.errors import PyReleaserError
from pyreleaser.planning import PlanStore
from pyreleaser.publishing import ReleaseSchedule, schedule_batches

if TYPE_CHECKING:
    from pyreleaser.workspace import Workspace


@dataclass
class OrderOptions:
    """Options for the order command."""

    batch_size: int | None = None


@dataclass
class OrderResult:
    """Topological order and, when a plan exists, its batch schedule."""

    order: list[str]
    schedule: ReleaseSchedule | None = None


class OrderCommand(SyncCommand[OrderResult]):
    """Show the release order of the workspace."""

    def __init__(self, context: CommandContext, options: OrderOptions | None = None) -> None:
        super().__init__(context)
        self.options = options or OrderOptions()

    def execute(self) -> OrderResult:
        graph = self.workspace.graph
        order = graph.topological_order()

        plan = PlanStore(self.workspace.plan_path).load()
        if plan is None:
            return OrderResult(order=order)

        batch_size = self.options.batch_size
        if batch_size is None:
            batch_size = self.workspace.config.publish.batch_size
        entries = [e for e in plan.entries if e.name in graph]
        return OrderResult(order=order, schedule=schedule_batches(entries, graph, batch_size))


def release_order(workspace: Workspace, *, batch_size: int | None = None) -> OrderResult:
    """Convenience function for the order command."""
    context = CommandContext(workspace=workspace)
    return OrderCommand(context, OrderOptions(batch_size=batch_size)).execute()


def handle_order_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    batch_size: int | None = None,
) -> None:
    """Handle the order command from the CLI."""
    try:
        result = release_order(workspace, batch_size=batch_size)
    except PyReleaserError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    rows = []
    for position, name in enumerate(result.order, start=1):
        package = workspace.get_package(name)
        rows.append(
            {
                "#": position,
                "package": name,
                "version": package.version,
                "depends on": ", ".join(workspace.graph.dependencies(name)),
            }
        )
    print_table(rows, ["#", "package", "version", "depends on"], console=console)

    if result.schedule is None:
        console.print("[dim]No plan file; run 'pyreleaser plan' to see batches.[/dim]")
        return

    console.print(f"\n[bold]{len(result.schedule)} batches[/bold]")
    for index, batch in enumerate(result.schedule, start=1):
        members = ", ".join(f"{e.name}@{e.to_version}" for e in batch)
        console.print(f"  {index}: {members}")
