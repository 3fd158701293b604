"""Status command implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

import typer
from rich.console import Console

from pyreleaser.cli.output.table import print_table
from pyreleaser.commands.base import Command, CommandContext, default_registry
from pyreleaser.errors import PyReleaserError
from pyreleaser.interfaces import Registry
from pyreleaser.registry import RegistrySnapshot, fetch_snapshot
from pyreleaser.versioning import Version

if TYPE_CHECKING:
    from pyreleaser.workspace import Package, Workspace


class ReleaseState(str, Enum):
    """How a local version relates to the latest registry release."""

    MISSING = "missing"
    CURRENT = "current"
    AHEAD = "ahead"
    BEHIND = "behind"


@dataclass
class StatusOptions:
    """Options for the status command.

    Attributes:
        missing: Only list packages with no release in the registry.
        outdated: Only list packages whose local version differs from the registry.
        quiet: Print package names only.
    """

    missing: bool = False
    outdated: bool = False
    quiet: bool = False


@dataclass
class PackageStatus:
    """Local and registry version of one package."""

    name: str
    local_version: str
    registry_version: str | None
    publish: bool
    state: ReleaseState


@dataclass
class StatusResult:
    """Result of the status command."""

    packages: list[PackageStatus] = field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.packages]


def release_state(local: str, released: Version | None) -> ReleaseState:
    """Compare a local version against the latest registry release.

    Prerelease and local segments are ignored on the local side.
    """
    if released is None:
        return ReleaseState.MISSING
    local_release = Version.parse(local).release_only()
    if local_release == released:
        return ReleaseState.CURRENT
    if local_release > released:
        return ReleaseState.AHEAD
    return ReleaseState.BEHIND


class StatusCommand(Command[StatusResult]):
    """Compare every package's local version with the registry."""

    def __init__(
        self,
        context: CommandContext,
        options: StatusOptions | None = None,
        *,
        registry: Registry | None = None,
    ) -> None:
        super().__init__(context)
        self.options = options or StatusOptions()
        self.registry = registry

    async def _snapshot(self) -> RegistrySnapshot:
        names = self.workspace.graph.names
        if self.registry is not None:
            return await fetch_snapshot(self.registry, names)
        async with default_registry(self.workspace) as registry:
            return await fetch_snapshot(registry, names)

    def _status(self, package: Package, snapshot: RegistrySnapshot) -> PackageStatus:
        released = snapshot.max_release(package.name)
        return PackageStatus(
            name=package.name,
            local_version=package.version,
            registry_version=str(released) if released is not None else None,
            publish=package.publish,
            state=release_state(package.version, released),
        )

    def _wanted(self, status: PackageStatus) -> bool:
        if self.options.missing and status.state != ReleaseState.MISSING:
            return False
        if self.options.outdated and status.state == ReleaseState.CURRENT:
            return False
        return True

    async def execute(self) -> StatusResult:
        snapshot = await self._snapshot()
        statuses = (
            self._status(self.workspace.get_package(name), snapshot)
            for name in self.workspace.graph.topological_order()
        )
        return StatusResult(packages=[s for s in statuses if self._wanted(s)])


async def workspace_status(
    workspace: Workspace,
    options: StatusOptions | None = None,
    *,
    registry: Registry | None = None,
) -> StatusResult:
    """Convenience function for the status command."""
    context = CommandContext(workspace=workspace)
    return await StatusCommand(context, options, registry=registry).execute()


_STATE_STYLES = {
    ReleaseState.MISSING: "red",
    ReleaseState.CURRENT: "green",
    ReleaseState.AHEAD: "yellow",
    ReleaseState.BEHIND: "red",
}


async def handle_status_command(
    workspace: Workspace,
    options: StatusOptions | None = None,
    *,
    console: Console,
    error_console: Console,
) -> None:
    """Handle the status command from the CLI."""
    options = options or StatusOptions()
    try:
        result = await workspace_status(workspace, options)
    except PyReleaserError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    if options.quiet:
        for package in result.packages:
            console.print(package.name, markup=False, highlight=False)
        return

    if not result.packages:
        console.print("[dim]No packages to show.[/dim]")
        return

    rows = [
        {
            "package": p.name,
            "local": p.local_version,
            "registry": p.registry_version or "-",
            "state": p.state.value,
            "publish": "yes" if p.publish else "no",
        }
        for p in result.packages
    ]
    print_table(rows, ["package", "local", "registry", "state", "publish"], console=console)

    counts: dict[ReleaseState, int] = {}
    for p in result.packages:
        counts[p.state] = counts.get(p.state, 0) + 1
    summary = ", ".join(
        f"[{_STATE_STYLES[state]}]{counts[state]} {state.value}[/{_STATE_STYLES[state]}]"
        for state in ReleaseState
        if state in counts
    )
    console.print(summary)
