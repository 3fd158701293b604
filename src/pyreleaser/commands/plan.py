"""Plan command implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import typer
from packaging.utils import canonicalize_name
from rich.console import Console
from rich.table import Table

from pyreleaser.commands.base import Command, CommandContext, default_registry
from pyreleaser.errors import PlanNotFoundError, PyReleaserError
from pyreleaser.git import GitChangeDetector
from pyreleaser.interfaces import ChangeDetector, CompatibilityClassifier, Registry
from pyreleaser.logging import get_logger
from pyreleaser.planning import Plan, PlanRequest, PlanStore, VersionPlanner, patch_plan
from pyreleaser.registry import fetch_snapshot
from pyreleaser.versioning import Version

if TYPE_CHECKING:
    from pyreleaser.workspace import Workspace

log = get_logger(__name__)


@dataclass
class PlanOptions:
    """Options for the plan command."""

    names: list[str] = field(default_factory=list)
    all: bool = False
    since: str | None = None
    prerelease: str | None = None
    fresh: bool = False
    patch: bool = False
    description: str | None = None


@dataclass
class PlanResult:
    """Result of the plan command."""

    plan: Plan
    path: Path
    patched: bool = False

    @property
    def to_publish(self) -> int:
        return len(self.plan.to_publish)


def _is_prerelease_suffix(suffix: str) -> bool:
    try:
        return Version.parse(f"0.0.0{suffix}").is_prerelease
    except ValueError:
        return False


class PlanCommand(Command[PlanResult]):
    """Compute the release plan and write it to the plan file."""

    def __init__(
        self,
        context: CommandContext,
        options: PlanOptions | None = None,
        *,
        registry: Registry | None = None,
        change_detector: ChangeDetector | None = None,
        classifier: CompatibilityClassifier | None = None,
    ) -> None:
        super().__init__(context)
        self.options = options or PlanOptions()
        self.registry = registry
        self.change_detector = change_detector
        self.classifier = classifier

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(canonicalize_name(n) for n in self.options.names)

    def validate(self) -> list[str]:
        errors = []
        if self.options.patch and not self.options.names:
            errors.append("--patch requires package names")
        if self.options.patch and (self.options.all or self.options.since):
            errors.append("--patch cannot be combined with --all or --since")
        for name in self.names:
            if name not in self.workspace.packages:
                errors.append(f"Package '{name}' not found in workspace")
        suffix = self.options.prerelease or self.workspace.config.plan.prerelease
        if suffix and not _is_prerelease_suffix(suffix):
            errors.append(f"Invalid prerelease suffix '{suffix}' (expected e.g. rc1, b2, a0)")
        return errors

    def _paths(self) -> dict[str, str]:
        return {name: self.workspace.relative_path(name) for name in self.workspace.packages}

    async def execute(self) -> PlanResult:
        store = PlanStore(self.workspace.plan_path)

        if self.options.patch:
            return self._patch(store)

        previous = store.load()
        graph = self.workspace.graph
        lookup = set(graph.names)
        for package in self.workspace.packages.values():
            lookup.update(package.git_dependencies)

        if self.registry is not None:
            snapshot = await fetch_snapshot(self.registry, lookup)
        else:
            async with default_registry(self.workspace) as registry:
                snapshot = await fetch_snapshot(registry, lookup)

        detector = self.change_detector
        if detector is None and self.options.since:
            detector = GitChangeDetector(self.workspace)

        planner = VersionPlanner(
            graph,
            snapshot,
            seed_version=self.workspace.config.plan.seed_version,
            change_detector=detector,
            classifier=self.classifier,
            previous=previous,
            edits=self.workspace.config.edits,
        )
        plan = planner.plan(
            PlanRequest(
                names=self.names,
                all=self.options.all,
                since=self.options.since,
                prerelease=self.options.prerelease or self.workspace.config.plan.prerelease,
                fresh=self.options.fresh,
                description=self.options.description,
            )
        )

        store.save(plan, self._paths())
        return PlanResult(plan=plan, path=store.path)

    def _patch(self, store: PlanStore) -> PlanResult:
        plan = store.load()
        if plan is None:
            raise PlanNotFoundError(store.path)
        plan = patch_plan(plan, self.names)
        if self.options.description is not None:
            plan.description = self.options.description
        store.save(plan, self._paths())
        return PlanResult(plan=plan, path=store.path, patched=True)


async def plan(
    workspace: Workspace,
    *,
    names: list[str] | None = None,
    all: bool = False,
    since: str | None = None,
    prerelease: str | None = None,
    fresh: bool = False,
    patch: bool = False,
    description: str | None = None,
    registry: Registry | None = None,
) -> PlanResult:
    """Convenience function to compute and save a plan."""
    context = CommandContext(workspace=workspace)
    options = PlanOptions(
        names=list(names or []),
        all=all,
        since=since,
        prerelease=prerelease,
        fresh=fresh,
        patch=patch,
        description=description,
    )
    cmd = PlanCommand(context, options, registry=registry)
    if errors := cmd.validate():
        raise PyReleaserError("; ".join(errors))
    return await cmd.execute()


async def handle_plan_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    names: list[str] | None = None,
    all: bool = False,
    since: str | None = None,
    prerelease: str | None = None,
    fresh: bool = False,
    patch: bool = False,
    description: str | None = None,
) -> None:
    """Handle the plan command from the CLI."""
    try:
        result = await plan(
            workspace,
            names=names,
            all=all,
            since=since,
            prerelease=prerelease,
            fresh=fresh,
            patch=patch,
            description=description,
        )
    except PyReleaserError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e
    except Exception as e:
        error_console.print_exception()
        raise typer.Exit(1) from e

    table = Table()
    table.add_column("Package", style="cyan")
    table.add_column("From", style="dim")
    table.add_column("To", style="green")
    table.add_column("Bump", style="magenta")
    table.add_column("Reason")

    for entry in result.plan.to_publish:
        table.add_row(
            entry.name,
            entry.from_version,
            entry.to_version,
            entry.bump.label,
            entry.reason.value if entry.reason else "",
        )

    if result.to_publish:
        console.print(table)
    console.print(
        f"[green]Plan written to {result.path.name}:[/green] "
        f"{len(result.plan.entries)} packages, {result.to_publish} to publish"
    )
