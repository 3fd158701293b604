"""Workspace package model."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from pyreleaser.compat import read_toml
from pyreleaser.errors import ConfigurationError
from pyreleaser.logging import get_logger

log = get_logger(__name__)

PRIVATE_CLASSIFIER = "Private :: Do Not Upload"


@dataclass(frozen=True)
class Package:
    """A releasable package inside the workspace.

    Attributes:
        name: PEP 503 canonical name.
        version: Version declared on disk.
        path: Absolute path to the package directory.
        publish: Whether the package may be published at all.
        dependencies: Intra-workspace runtime dependency names.
        external_dependencies: Runtime dependency names outside the workspace.
        git_dependencies: External dependencies sourced from git.
    """

    name: str
    version: str
    path: Path
    publish: bool = True
    dependencies: frozenset[str] = field(default_factory=frozenset)
    external_dependencies: frozenset[str] = field(default_factory=frozenset)
    git_dependencies: frozenset[str] = field(default_factory=frozenset)

    @property
    def manifest_path(self) -> Path:
        return self.path / "pyproject.toml"


@dataclass(frozen=True)
class ManifestInfo:
    """Raw facts read from one pyproject.toml before workspace linking."""

    name: str
    version: str
    path: Path
    publish: bool
    runtime_dependencies: frozenset[str]
    git_sources: frozenset[str]


def _requirement_name(spec: str, path: Path) -> str:
    try:
        return canonicalize_name(Requirement(spec).name)
    except InvalidRequirement as e:
        raise ConfigurationError(f"invalid requirement {spec!r}: {e}", path=path) from e


def _is_publishable(doc: dict[str, Any]) -> bool:
    project = doc.get("project", {})
    if PRIVATE_CLASSIFIER in project.get("classifiers", []):
        return False
    tool = doc.get("tool", {}).get("pyreleaser", {})
    return bool(tool.get("publish", True))


def read_manifest(package_dir: Path) -> ManifestInfo:
    """Read name, version and runtime dependencies from a pyproject.toml.

    Runtime dependencies are ``[project].dependencies`` plus every
    ``[project].optional-dependencies`` group. ``[dependency-groups]`` and
    ``[tool.uv].dev-dependencies`` are development-only and ignored.
    """
    manifest = package_dir / "pyproject.toml"
    doc = read_toml(manifest)
    project = doc.get("project")
    if not isinstance(project, dict) or "name" not in project:
        raise ConfigurationError("missing [project].name", path=manifest)

    version = project.get("version")
    if version is None:
        if "version" not in project.get("dynamic", []):
            raise ConfigurationError("missing [project].version", path=manifest)
        log.warning("dynamic version cannot be released", path=str(manifest))
        version = "0.0.0"

    requirements: list[str] = list(project.get("dependencies", []))
    for group in project.get("optional-dependencies", {}).values():
        requirements.extend(group)

    sources = doc.get("tool", {}).get("uv", {}).get("sources", {})
    git_sources = {
        canonicalize_name(name)
        for name, source in sources.items()
        if isinstance(source, dict) and "git" in source
    }

    return ManifestInfo(
        name=canonicalize_name(project["name"]),
        version=str(version),
        path=package_dir.resolve(),
        publish=_is_publishable(doc),
        runtime_dependencies=frozenset(_requirement_name(r, manifest) for r in requirements),
        git_sources=frozenset(git_sources),
    )


def link_packages(manifests: list[ManifestInfo]) -> dict[str, Package]:
    """Split each manifest's dependencies into workspace and external sets."""
    names = {m.name for m in manifests}
    packages: dict[str, Package] = {}

    for m in manifests:
        internal = frozenset(d for d in m.runtime_dependencies if d in names and d != m.name)
        external = frozenset(d for d in m.runtime_dependencies if d not in names)
        packages[m.name] = Package(
            name=m.name,
            version=m.version,
            path=m.path,
            publish=m.publish,
            dependencies=internal,
            external_dependencies=external,
            git_dependencies=frozenset(d for d in m.git_sources if d in external),
        )

    return packages
