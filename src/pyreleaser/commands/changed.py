"""Changed command implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol

import typer
from rich.console import Console

from pyreleaser.commands.base import CommandContext, SyncCommand
from pyreleaser.errors import PyReleaserError
from pyreleaser.git import GitChangeDetector

if TYPE_CHECKING:
    from pyreleaser.workspace import Workspace

MANIFEST = "pyproject.toml"


class ChangeKind(str, Enum):
    """Why a package is reported as changed."""

    FILES = "files"
    MANIFEST = "manifest"
    DEPENDENCY = "dependency"


class FileChangeSource(Protocol):
    def changed_files(self, ref: str) -> dict[str, list[str]]: ...


@dataclass
class ChangedPackage:
    """A package changed since the reference.

    Attributes:
        name: Package name.
        path: Package directory relative to the workspace root.
        kind: Files changed, only the manifest changed, or a dependency changed.
        files: Changed files relative to the package directory.
    """

    name: str
    path: str
    kind: ChangeKind
    files: list[str] = field(default_factory=list)


@dataclass
class ChangedOptions:
    """Options for the changed command."""

    since: str
    include_dependents: bool = True
    manifests_only: bool = False


@dataclass
class ChangedResult:
    """Result of the changed command."""

    since: str
    changed: list[ChangedPackage]

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.changed]


class ChangedCommand(SyncCommand[ChangedResult]):
    """List publishable packages changed since a git reference."""

    def __init__(
        self,
        context: CommandContext,
        options: ChangedOptions,
        *,
        source: FileChangeSource | None = None,
    ) -> None:
        super().__init__(context)
        self.options = options
        self.source = source or GitChangeDetector(self.workspace)

    def validate(self) -> list[str]:
        errors = []
        if not self.options.since:
            errors.append("a git reference is required")
        return errors

    def execute(self) -> ChangedResult:
        by_package = self.source.changed_files(self.options.since)
        graph = self.workspace.graph

        changed: dict[str, ChangedPackage] = {}
        for name, files in by_package.items():
            kind = ChangeKind.MANIFEST if files == [MANIFEST] else ChangeKind.FILES
            changed[name] = ChangedPackage(
                name=name,
                path=self.workspace.relative_path(name),
                kind=kind,
                files=files,
            )

        if self.options.include_dependents:
            for name in graph.transitive_dependents(changed):
                changed[name] = ChangedPackage(
                    name=name,
                    path=self.workspace.relative_path(name),
                    kind=ChangeKind.DEPENDENCY,
                )

        ordered = [
            changed[name]
            for name in graph.topological_order()
            if name in changed and graph.package(name).publish
        ]
        if self.options.manifests_only:
            ordered = [p for p in ordered if p.kind == ChangeKind.MANIFEST]
        return ChangedResult(since=self.options.since, changed=ordered)


def get_changed_packages(
    workspace: Workspace,
    since: str,
    *,
    include_dependents: bool = True,
    manifests_only: bool = False,
) -> ChangedResult:
    """Convenience function to get changed packages."""
    context = CommandContext(workspace=workspace)
    options = ChangedOptions(
        since=since,
        include_dependents=include_dependents,
        manifests_only=manifests_only,
    )
    cmd = ChangedCommand(context, options)
    if errors := cmd.validate():
        raise PyReleaserError("; ".join(errors))
    return cmd.execute()


def handle_changed_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    since: str,
    include_dependents: bool = True,
    manifests_only: bool = False,
    quiet: bool = False,
    paths: bool = False,
) -> None:
    """Handle the changed command from the CLI."""
    try:
        result = get_changed_packages(
            workspace,
            since,
            include_dependents=include_dependents,
            manifests_only=manifests_only,
        )
    except PyReleaserError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    if quiet or paths:
        for pkg in result.changed:
            console.print(pkg.path if paths else pkg.name, markup=False, highlight=False)
        return

    console.print(f"Packages changed since [bold]{since}[/bold]:")
    for pkg in result.changed:
        if pkg.kind == ChangeKind.DEPENDENCY:
            console.print(f"  - {pkg.name} [dim](dependent)[/dim]")
            continue
        suffix = " [dim](manifest only)[/dim]" if pkg.kind == ChangeKind.MANIFEST else ""
        console.print(f"  - {pkg.name} ({len(pkg.files)} files){suffix}")

    if not result.changed:
        console.print("  [dim]No packages changed[/dim]")
