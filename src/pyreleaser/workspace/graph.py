"""Dependency graph over workspace packages."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from pyreleaser.errors import CyclicDependencyError, PackageNotFoundError
from pyreleaser.workspace.package import Package


class DependencyGraph:
    """Intra-workspace dependency edges between packages.

    Edges naming a package outside the workspace are dropped, so they never
    influence ordering.
    """

    def __init__(self, packages: Mapping[str, Package] | Iterable[Package]) -> None:
        if isinstance(packages, Mapping):
            packages = packages.values()
        self._packages: dict[str, Package] = {p.name: p for p in packages}
        self._deps: dict[str, frozenset[str]] = {}
        self._rdeps: dict[str, set[str]] = {name: set() for name in self._packages}

        for name, pkg in self._packages.items():
            deps = frozenset(d for d in pkg.dependencies if d in self._packages and d != name)
            self._deps[name] = deps
            for dep in deps:
                self._rdeps[dep].add(name)

    def __contains__(self, name: object) -> bool:
        return name in self._packages

    def __len__(self) -> int:
        return len(self._packages)

    @property
    def names(self) -> list[str]:
        return sorted(self._packages)

    def package(self, name: str) -> Package:
        try:
            return self._packages[name]
        except KeyError:
            raise PackageNotFoundError(name, self._packages) from None

    def dependencies(self, name: str) -> tuple[str, ...]:
        """Direct workspace dependencies of ``name``, sorted."""
        if name not in self._deps:
            raise PackageNotFoundError(name, self._packages)
        return tuple(sorted(self._deps[name]))

    def dependents(self, name: str) -> tuple[str, ...]:
        """Packages directly depending on ``name``, sorted."""
        if name not in self._rdeps:
            raise PackageNotFoundError(name, self._packages)
        return tuple(sorted(self._rdeps[name]))

    def transitive_dependents(self, names: Iterable[str]) -> set[str]:
        """All packages reachable through reverse edges, excluding the seeds."""
        seeds = set(names)
        seen: set[str] = set()
        stack = [n for n in seeds if n in self._rdeps]
        while stack:
            for dependent in self._rdeps[stack.pop()]:
                if dependent not in seen:
                    seen.add(dependent)
                    stack.append(dependent)
        return seen - seeds

    def topological_order(self, names: Iterable[str] | None = None) -> list[str]:
        """Order packages so every package follows its dependencies.

        Each pass emits all packages with no unsatisfied dependency, in
        lexicographic order, so repeated runs produce the same ordering.

        Args:
            names: Restrict ordering to these packages. Edges leaving the
                subset count as satisfied.

        Raises:
            CyclicDependencyError: If a pass makes no progress.
        """
        subset = set(self._packages) if names is None else set(names)
        for name in subset:
            if name not in self._packages:
                raise PackageNotFoundError(name, self._packages)

        remaining = {name: len(self._deps[name] & subset) for name in subset}
        order: list[str] = []

        while remaining:
            ready = sorted(name for name, count in remaining.items() if count == 0)
            if not ready:
                raise CyclicDependencyError(remaining)
            for name in ready:
                del remaining[name]
                order.append(name)
                for dependent in self._rdeps[name]:
                    if dependent in remaining:
                        remaining[dependent] -= 1

        return order

