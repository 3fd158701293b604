"""Apply command implementation."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from pyreleaser.commands.base import Command, CommandContext, default_registry
from pyreleaser.config import PublishConfig
from pyreleaser.errors import CredentialError, PlanError, PyReleaserError
from pyreleaser.interfaces import EditResult, ManifestEditor, Registry
from pyreleaser.logging import get_logger
from pyreleaser.manifest import PyprojectEditor
from pyreleaser.planning import Plan, PlanStore, ReleaseEntry
from pyreleaser.publishing import (
    AvailabilityPoller,
    EventKind,
    PublishEvent,
    PublishExecutor,
    PublishReport,
    ReleaseSchedule,
    schedule_batches,
    validate_schedule,
)
from pyreleaser.registry import fetch_snapshot

if TYPE_CHECKING:
    from pyreleaser.workspace import Workspace

log = get_logger(__name__)


@dataclass
class ApplyOptions:
    """Options for the apply command.

    Unset numeric options fall back to the ``publish`` section of the
    configuration.
    """

    publish: bool = False
    dry_run: bool = False
    print_only: bool = False
    max_concurrent: int | None = None
    batch_size: int | None = None
    batch_delay: float | None = None
    parallel_batches: int | None = None
    poll_interval: float | None = None
    poll_timeout: float | None = None
    skip_dependents_of_failed: bool | None = None


@dataclass
class ApplyResult:
    """Result of the apply command.

    Attributes:
        plan: The applied plan.
        pending: Planned entries not yet present in the registry.
        edits: Manifest rewrite results.
        schedule: Batches handed to the executor, if publishing.
        report: Publish outcomes, if publishing.
    """

    plan: Plan
    pending: list[ReleaseEntry] = field(default_factory=list)
    edits: list[EditResult] = field(default_factory=list)
    schedule: ReleaseSchedule | None = None
    report: PublishReport | None = None

    @property
    def edit_failures(self) -> list[EditResult]:
        return [e for e in self.edits if not e.success]

    @property
    def success(self) -> bool:
        if self.report is not None:
            return self.report.all_success
        return not self.edit_failures


class ApplyCommand(Command[ApplyResult]):
    """Rewrite manifests for the plan and optionally publish it."""

    def __init__(
        self,
        context: CommandContext,
        options: ApplyOptions | None = None,
        *,
        registry: Registry | None = None,
        editor: ManifestEditor | None = None,
        on_event: Callable[[PublishEvent], None] | None = None,
    ) -> None:
        super().__init__(context)
        self.options = options or ApplyOptions()
        self.registry = registry
        self.editor = editor or PyprojectEditor()
        self.on_event = on_event

    @property
    def is_dry_run(self) -> bool:
        return self.options.dry_run or self.context.dry_run

    def settings(self) -> PublishConfig:
        """Publish settings with command-line overrides applied."""
        overrides = {
            name: getattr(self.options, name)
            for name in (
                "max_concurrent",
                "batch_size",
                "batch_delay",
                "parallel_batches",
                "poll_interval",
                "poll_timeout",
                "skip_dependents_of_failed",
            )
            if getattr(self.options, name) is not None
        }
        return self.workspace.config.publish.model_copy(update=overrides)

    def _token(self) -> str | None:
        if not self.options.publish or self.is_dry_run:
            return None
        variable = self.workspace.config.publish.token_env
        token = self.context.getenv(variable)
        if not token:
            raise CredentialError(variable)
        return token

    def _load_plan(self) -> Plan:
        plan = PlanStore(self.workspace.plan_path).require()
        unknown = [e.name for e in plan.entries if e.name not in self.workspace.packages]
        if unknown:
            raise PlanError(
                f"plan references packages not in the workspace: {', '.join(unknown)}; "
                "run 'pyreleaser plan' again"
            )
        plan.check_order(self.workspace.graph)
        return plan

    async def execute(self) -> ApplyResult:
        plan = self._load_plan()
        token = self._token()
        registry = self.registry

        if registry is not None:
            return await self._run(plan, registry, token)
        async with default_registry(self.workspace) as owned:
            return await self._run(plan, owned, token)

    def _eligible(self, plan: Plan) -> list[ReleaseEntry]:
        entries = []
        for entry in plan.to_publish:
            if not self.workspace.get_package(entry.name).publish:
                log.warning("package is not publishable, skipping", package=entry.name)
                continue
            entries.append(entry)
        return entries

    async def _run(self, plan: Plan, registry: Registry, token: str | None) -> ApplyResult:
        eligible = self._eligible(plan)
        snapshot = await fetch_snapshot(registry, [e.name for e in eligible])
        pending = [e for e in eligible if not snapshot.has_version(e.name, e.to_version)]
        result = ApplyResult(plan=plan, pending=pending)

        pending_names = {e.name for e in pending}
        for entry in eligible:
            if entry.name not in pending_names:
                log.info("already published", package=entry.name, version=entry.to_version)

        if self.options.print_only:
            return result

        result.edits = self._rewrite_manifests(plan, pending)

        if not (self.options.publish or self.is_dry_run):
            return result

        result.schedule = self._schedule(pending)
        result.report = await self._publish(result.schedule, registry, token, result.edits)
        return result

    def _rewrite_manifests(self, plan: Plan, entries: list[ReleaseEntry]) -> list[EditResult]:
        edits = []
        for entry in entries:
            package = self.workspace.get_package(entry.name)
            edits.append(self.editor.apply(package, entry, plan))
        return edits

    def _schedule(self, entries: list[ReleaseEntry]) -> ReleaseSchedule:
        graph = self.workspace.graph
        schedule = schedule_batches(entries, graph, self.settings().batch_size)
        validate_schedule(schedule, graph)
        log.info("schedule created", batches=len(schedule), packages=schedule.size)
        return schedule

    async def _publish(
        self,
        schedule: ReleaseSchedule,
        registry: Registry,
        token: str | None,
        edits: list[EditResult],
    ) -> PublishReport:
        settings = self.settings()
        poller = AvailabilityPoller(
            registry,
            interval=settings.poll_interval,
            timeout=settings.poll_timeout,
        )
        executor = PublishExecutor(
            registry,
            self.workspace.graph,
            poller=poller,
            max_concurrent=settings.max_concurrent,
            batch_delay=settings.batch_delay,
            parallel_batches=settings.parallel_batches,
            skip_dependents_of_failed=settings.skip_dependents_of_failed,
            dry_run=self.is_dry_run,
            token=token,
            on_event=self.on_event,
        )
        failed = {
            e.package_name: e.error or "manifest rewrite failed" for e in edits if not e.success
        }
        return await executor.execute(schedule, failed=failed)


async def apply(
    workspace: Workspace,
    options: ApplyOptions | None = None,
    *,
    registry: Registry | None = None,
    on_event: Callable[[PublishEvent], None] | None = None,
) -> ApplyResult:
    """Convenience function to apply the current plan."""
    options = options or ApplyOptions()
    context = CommandContext(workspace=workspace, dry_run=options.dry_run)
    cmd = ApplyCommand(context, options, registry=registry, on_event=on_event)
    return await cmd.execute()


def _progress_printer(console: Console) -> Callable[[PublishEvent], None]:
    def on_event(event: PublishEvent) -> None:
        if event.kind == EventKind.BATCH_STARTED:
            console.print(
                f"[bold]Batch {event.batch + 1}/{event.total_batches}[/bold] "
                f"({event.size} packages)"
            )
        elif event.kind == EventKind.PACKAGE_FINISHED and event.outcome is not None:
            outcome = event.outcome
            if outcome.success:
                note = " [yellow](not yet visible)[/yellow]" if outcome.available is False else ""
                name = outcome.package_name
                console.print(f"  [green]✓[/green] {name} {outcome.version}{note}")
            elif outcome.skipped:
                console.print(f"  [yellow]-[/yellow] {outcome.package_name}: {outcome.error}")
            else:
                console.print(
                    f"  [red]✗[/red] {outcome.package_name}: {escape(outcome.error or '')}"
                )

    return on_event


def _print_summary(console: Console, report: PublishReport) -> None:
    table = Table(title="Publish summary")
    table.add_column("Package", style="cyan")
    table.add_column("Version", style="green")
    table.add_column("Status")
    table.add_column("Time", justify="right", style="dim")

    styles = {"published": "green", "failed": "red", "skipped": "yellow"}
    for outcome in report:
        status = outcome.status.value
        table.add_row(
            outcome.package_name,
            outcome.version,
            f"[{styles[status]}]{status}[/{styles[status]}]",
            f"{outcome.duration_ms / 1000:.1f}s",
        )

    console.print(table)
    console.print(
        f"{report.success_count} published, "
        f"{report.skipped_count} skipped, "
        f"{report.failure_count} failed "
        f"[dim]({report.total_duration_ms / 1000:.1f}s publishing)[/dim]"
    )


async def handle_apply_command(
    workspace: Workspace,
    options: ApplyOptions,
    *,
    console: Console,
    error_console: Console,
) -> None:
    """Handle the apply command from the CLI."""
    try:
        result = await apply(workspace, options, on_event=_progress_printer(console))
    except PyReleaserError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e
    except Exception as e:
        error_console.print_exception()
        raise typer.Exit(1) from e

    if options.print_only:
        for entry in result.pending:
            console.print(f"{entry.name}@{entry.to_version}")
        return

    for edit in result.edit_failures:
        error_console.print(f"[red]Failed to rewrite {edit.package_name}:[/red] {edit.error}")

    if result.report is None:
        rewritten = sum(1 for e in result.edits if e.changed)
        console.print(f"[green]Rewrote {rewritten} manifests[/green]")
        if result.edit_failures:
            raise typer.Exit(1)
        return

    if options.dry_run:
        console.print("[yellow]Dry run - nothing was uploaded[/yellow]")
    _print_summary(console, result.report)

    if not result.success:
        raise typer.Exit(1)
