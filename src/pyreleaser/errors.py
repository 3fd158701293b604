"""pyreleaser exception hierarchy."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class PyReleaserError(Exception):
    """Base class for all pyreleaser errors.

    Attributes:
        message: Human readable description of the failure.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(PyReleaserError):
    """Invalid or unreadable configuration."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        if path is not None:
            message = f"{path}: {message}"
        super().__init__(message)
        self.path = path


class WorkspaceNotFoundError(PyReleaserError):
    """No workspace root could be located."""

    def __init__(self, start: Path) -> None:
        super().__init__(
            f"No workspace found from {start}. "
            "Expected pyreleaser.yaml or a pyproject.toml with [tool.uv.workspace]."
        )
        self.start = start


class PackageNotFoundError(PyReleaserError):
    """A package name does not exist in the workspace."""

    def __init__(self, name: str, available: Iterable[str] = ()) -> None:
        available = sorted(available)
        message = f"Package '{name}' not found in workspace"
        if available:
            message += f". Available: {', '.join(available)}"
        super().__init__(message)
        self.name = name


class CyclicDependencyError(PyReleaserError):
    """The workspace dependency graph contains a cycle."""

    def __init__(self, cycle: Iterable[str]) -> None:
        self.cycle = sorted(cycle)
        super().__init__(f"Cyclic dependency between packages: {', '.join(self.cycle)}")


class PlanError(PyReleaserError):
    """Release planning cannot proceed."""


class PlanNotFoundError(PlanError):
    """The plan file does not exist when one is required."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Can't find {path.name}. Have you run 'pyreleaser plan' first?")
        self.path = path


class MalformedPlanError(PlanError):
    """The persisted plan could not be parsed or violates its invariants."""

    def __init__(self, path: Path, details: str) -> None:
        super().__init__(f"Malformed plan {path}: {details}")
        self.path = path
        self.details = details


class CredentialError(PyReleaserError):
    """A publish credential is missing."""

    def __init__(self, variable: str) -> None:
        super().__init__(f"{variable} must be set to publish")
        self.variable = variable


class RegistryError(PyReleaserError):
    """The registry could not be queried."""

    def __init__(self, message: str, package: str | None = None) -> None:
        if package:
            message = f"{package}: {message}"
        super().__init__(message)
        self.package = package


class GitError(PyReleaserError):
    """A git command failed."""

    def __init__(self, message: str, command: str | None = None) -> None:
        super().__init__(message)
        self.command = command


class ChangeDetectionError(PyReleaserError):
    """Changed packages could not be determined."""


class SchedulingError(PyReleaserError):
    """Release entries cannot be scheduled into batches."""


class PublishError(PyReleaserError):
    """Publishing a single package failed."""

    def __init__(self, package: str, message: str) -> None:
        super().__init__(message)
        self.package = package


class ManifestEditError(PyReleaserError):
    """Rewriting a package manifest failed."""

    def __init__(self, package: str, message: str) -> None:
        super().__init__(message)
        self.package = package
