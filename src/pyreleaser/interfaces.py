"""Collaborator interfaces consumed by the planning and publishing core.

The core only depends on these protocols; concrete adapters live in
:mod:`pyreleaser.registry`, :mod:`pyreleaser.manifest`, :mod:`pyreleaser.git`
and :mod:`pyreleaser.planning.classifier`.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pyreleaser.planning.model import Plan, ReleaseEntry
    from pyreleaser.registry.base import RegistryVersion
    from pyreleaser.versioning import BumpType
    from pyreleaser.workspace import Package


@dataclass(frozen=True)
class Artifact:
    """One side of a compatibility comparison.

    Attributes:
        name: Package name.
        version: Version of the artifact.
        path: Local source directory, or None for a registry release.
    """

    name: str
    version: str
    path: Path | None = None


@dataclass(frozen=True)
class PublishOptions:
    """Options forwarded to :meth:`Registry.publish`."""

    dry_run: bool = False
    token: str | None = None


@dataclass(frozen=True)
class EditResult:
    """Outcome of rewriting one manifest."""

    package_name: str
    success: bool
    error: str | None = None
    changed: bool = False


@runtime_checkable
class Registry(Protocol):
    """Remote package index."""

    async def query(self, name: str) -> list[RegistryVersion]:
        """Return every known version of ``name``; an unknown package yields []."""
        ...

    async def publish(self, package: Package, version: str, options: PublishOptions) -> None:
        """Upload ``package`` at ``version``. Raises PublishError on failure."""
        ...


@runtime_checkable
class ChangeDetector(Protocol):
    """Finds packages with source changes."""

    def changed_since(self, ref: str) -> set[str]:
        ...


@runtime_checkable
class CompatibilityClassifier(Protocol):
    """Classifies the change between two artifacts of a package."""

    def compare(self, old: Artifact, new: Artifact) -> BumpType:
        ...


@runtime_checkable
class ManifestEditor(Protocol):
    """Rewrites on-disk manifests according to a release entry."""

    def apply(self, package: Package, entry: ReleaseEntry, plan: Plan) -> EditResult:
        ...
