"""Dependency-aware batching of release entries."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from pyreleaser.errors import SchedulingError
from pyreleaser.planning.model import ReleaseEntry
from pyreleaser.workspace.graph import DependencyGraph

Batch = list[ReleaseEntry]


@dataclass
class ReleaseSchedule:
    """Ordered batches; every package follows its released dependencies."""

    batches: list[Batch] = field(default_factory=list)

    def __iter__(self) -> Iterator[Batch]:
        return iter(self.batches)

    def __len__(self) -> int:
        return len(self.batches)

    def __getitem__(self, index: int) -> Batch:
        return self.batches[index]

    @property
    def names(self) -> list[list[str]]:
        return [[e.name for e in batch] for batch in self.batches]

    @property
    def size(self) -> int:
        """Total number of scheduled packages."""
        return sum(len(batch) for batch in self.batches)


def _release_deps(entry: ReleaseEntry, graph: DependencyGraph, releasing: set[str]) -> list[str]:
    if entry.name not in graph:
        return []
    return [d for d in graph.dependencies(entry.name) if d in releasing]


def schedule_batches(
    entries: Iterable[ReleaseEntry],
    graph: DependencyGraph,
    batch_size: int | None = None,
) -> ReleaseSchedule:
    """Split publishable entries into dependency-respecting batches.

    Entries are walked in plan order. A candidate joins the open batch when
    all of its dependencies that are part of this release sit in closed
    batches; a dependency still in the open batch closes it first. A batch
    also closes once it holds ``batch_size`` entries.

    Args:
        entries: Plan entries in dependency order; unpublished ones are ignored.
        graph: Workspace dependency graph.
        batch_size: Maximum batch size; None or 0 means unbounded.

    Raises:
        SchedulingError: If an entry precedes one of its released dependencies.
    """
    publishing = [e for e in entries if e.publish]
    releasing = {e.name for e in publishing}
    limit = batch_size or None

    schedule = ReleaseSchedule()
    released: set[str] = set()
    current: Batch = []
    current_names: set[str] = set()

    def close() -> None:
        nonlocal current, current_names
        if current:
            schedule.batches.append(current)
            released.update(current_names)
        current, current_names = [], set()

    for entry in publishing:
        deps = _release_deps(entry, graph, releasing)
        pending = [d for d in deps if d not in released and d not in current_names]
        if pending:
            raise SchedulingError(
                f"'{entry.name}' is listed before its dependencies: {', '.join(pending)}"
            )

        if any(d in current_names for d in deps):
            close()

        current.append(entry)
        current_names.add(entry.name)

        if limit is not None and len(current) >= limit:
            close()

    close()
    return schedule


def validate_schedule(schedule: ReleaseSchedule, graph: DependencyGraph) -> None:
    """Check that each package's released dependencies are in earlier batches.

    Raises:
        SchedulingError: If a dependency shares a batch with, or follows, its dependent.
    """
    batch_of = {e.name: i for i, batch in enumerate(schedule) for e in batch}
    releasing = set(batch_of)

    for index, batch in enumerate(schedule):
        for entry in batch:
            for dep in _release_deps(entry, graph, releasing):
                if batch_of[dep] >= index:
                    raise SchedulingError(
                        f"'{entry.name}' in batch {index + 1} depends on '{dep}' "
                        f"in batch {batch_of[dep] + 1}"
                    )
