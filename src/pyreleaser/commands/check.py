"""Check command implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import typer
from rich.console import Console

from pyreleaser.commands.base import CommandContext, SyncCommand
from pyreleaser.compat import read_toml
from pyreleaser.errors import PyReleaserError

if TYPE_CHECKING:
    from pyreleaser.workspace import Package, Workspace


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass
class CheckIssue:
    """A problem that would make a package a poor or failed upload."""

    package: str
    path: str
    message: str
    severity: Severity = Severity.ERROR


@dataclass
class CheckOptions:
    """Options for the check command.

    Attributes:
        allow_nonfatal: Report a missing description as a warning only.
    """

    allow_nonfatal: bool = False


@dataclass
class CheckResult:
    """Result of the check command."""

    issues: list[CheckIssue] = field(default_factory=list)

    @property
    def errors(self) -> list[CheckIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def success(self) -> bool:
        return not self.errors


def _declared(project: dict[str, Any], key: str) -> bool:
    return key in project or key in project.get("dynamic", [])


def _readme_file(readme: Any) -> str | None:
    if isinstance(readme, str):
        return readme
    if isinstance(readme, dict):
        return readme.get("file")
    return None


class CheckCommand(SyncCommand[CheckResult]):
    """Verify publishable packages carry the metadata an upload needs."""

    def __init__(self, context: CommandContext, options: CheckOptions | None = None) -> None:
        super().__init__(context)
        self.options = options or CheckOptions()

    def _check_manifest(self, package: Package) -> list[CheckIssue]:
        path = self.workspace.relative_path(package.name)
        project = read_toml(package.manifest_path).get("project", {})
        issues = []

        def issue(message: str, severity: Severity = Severity.ERROR) -> None:
            issues.append(CheckIssue(package.name, path, message, severity))

        if not _declared(project, "description"):
            severity = Severity.WARNING if self.options.allow_nonfatal else Severity.ERROR
            issue("has no description", severity)

        if not _declared(project, "license") and not project.get("license-files"):
            issue("has no license")

        readme = _readme_file(project.get("readme"))
        if readme is not None and not (package.path / readme).is_file():
            issue(f"specifies readme '{readme}' but the file does not exist", Severity.WARNING)

        if "version" in project.get("dynamic", []):
            issue("declares a dynamic version, which cannot be rewritten for release")

        return issues

    def _needed_private(self) -> list[CheckIssue]:
        graph = self.workspace.graph
        needed: set[str] = set()
        stack = [name for name in graph.names if graph.package(name).publish]
        while stack:
            for dep in graph.dependencies(stack.pop()):
                if dep not in needed:
                    needed.add(dep)
                    stack.append(dep)

        return [
            CheckIssue(
                name,
                self.workspace.relative_path(name),
                "is not published but a publishable package depends on it",
                Severity.WARNING,
            )
            for name in graph.topological_order()
            if name in needed and not graph.package(name).publish
        ]

    def execute(self) -> CheckResult:
        issues: list[CheckIssue] = []
        for name in self.workspace.graph.topological_order():
            package = self.workspace.get_package(name)
            if package.publish:
                issues.extend(self._check_manifest(package))
        issues.extend(self._needed_private())
        return CheckResult(issues=issues)


def check_workspace(workspace: Workspace, *, allow_nonfatal: bool = False) -> CheckResult:
    """Convenience function for the check command."""
    context = CommandContext(workspace=workspace)
    return CheckCommand(context, CheckOptions(allow_nonfatal=allow_nonfatal)).execute()


def handle_check_command(
    workspace: Workspace,
    *,
    console: Console,
    error_console: Console,
    allow_nonfatal: bool = False,
) -> None:
    """Handle the check command from the CLI."""
    try:
        result = check_workspace(workspace, allow_nonfatal=allow_nonfatal)
    except PyReleaserError as e:
        error_console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1) from e

    for item in result.issues:
        color = "red" if item.severity == Severity.ERROR else "yellow"
        console.print(
            f"[{color}]{item.severity.value}:[/{color}] [bold]{item.package}[/bold] "
            f"{item.message} [dim]({item.path})[/dim]"
        )

    if result.success:
        warnings = len(result.issues)
        console.print(f"[green]All publishable packages passed[/green] ({warnings} warnings)")
        return
    console.print(f"[red]{len(result.errors)} problems found[/red]")
    raise typer.Exit(1)
