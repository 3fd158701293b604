"""Workspace discovery."""

from __future__ import annotations

import glob
from functools import cached_property
from pathlib import Path

from pyreleaser.config import PyReleaserConfig, find_workspace_root, load_config
from pyreleaser.errors import ConfigurationError, PackageNotFoundError
from pyreleaser.workspace.graph import DependencyGraph
from pyreleaser.workspace.package import Package, link_packages, read_manifest


class Workspace:
    """A set of packages released together.

    Attributes:
        root: Workspace root directory.
        config: Loaded configuration.
        packages: Packages keyed by canonical name.
    """

    def __init__(self, root: Path, config: PyReleaserConfig, packages: dict[str, Package]) -> None:
        self.root = root
        self.config = config
        self.packages = packages

    @classmethod
    def discover(cls, path: Path | None = None) -> Workspace:
        """Locate the workspace containing ``path`` and load its packages.

        Raises:
            WorkspaceNotFoundError: If no workspace root is found.
            ConfigurationError: If configuration or a manifest is invalid.
        """
        root = find_workspace_root(path)
        config = load_config(root)
        return cls.load(root, config)

    @classmethod
    def load(cls, root: Path, config: PyReleaserConfig) -> Workspace:
        """Load packages matching the configured globs under ``root``."""
        dirs: list[Path] = []
        for pattern in config.packages:
            for match in sorted(glob.glob(str(root / pattern))):
                candidate = Path(match)
                if (candidate / "pyproject.toml").is_file() and candidate not in dirs:
                    dirs.append(candidate)

        manifests = [read_manifest(d) for d in dirs]

        seen: dict[str, Path] = {}
        for m in manifests:
            if m.name in seen:
                raise ConfigurationError(
                    f"package '{m.name}' defined twice ({seen[m.name]} and {m.path})"
                )
            seen[m.name] = m.path

        return cls(root=root, config=config, packages=link_packages(manifests))

    @cached_property
    def graph(self) -> DependencyGraph:
        return DependencyGraph(self.packages)

    @property
    def plan_path(self) -> Path:
        return self.root / self.config.plan.file

    def get_package(self, name: str) -> Package:
        try:
            return self.packages[name]
        except KeyError:
            raise PackageNotFoundError(name, self.packages) from None

    def relative_path(self, name: str) -> str:
        """Package directory relative to the root, in POSIX form."""
        pkg = self.get_package(name)
        try:
            return pkg.path.relative_to(self.root.resolve()).as_posix()
        except ValueError:
            return pkg.path.as_posix()
