"""Batched publish execution with bounded concurrency."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from enum import Enum

from pyreleaser.errors import PublishError
from pyreleaser.interfaces import PublishOptions, Registry
from pyreleaser.logging import get_logger
from pyreleaser.planning.model import ReleaseEntry
from pyreleaser.publishing.poller import AvailabilityPoller
from pyreleaser.publishing.results import PublishOutcome, PublishReport
from pyreleaser.publishing.scheduler import Batch, ReleaseSchedule
from pyreleaser.workspace.graph import DependencyGraph

log = get_logger(__name__)


class EventKind(Enum):
    BATCH_STARTED = "batch_started"
    PACKAGE_STARTED = "package_started"
    PACKAGE_FINISHED = "package_finished"
    BATCH_FINISHED = "batch_finished"


@dataclass(frozen=True)
class PublishEvent:
    """Progress notification emitted by the executor.

    Attributes:
        kind: What happened.
        batch: Zero-based batch index.
        total_batches: Number of batches in the schedule.
        package: Package name for package events.
        outcome: Outcome for ``PACKAGE_FINISHED`` events.
        size: Number of packages in the batch, for batch events.
    """

    kind: EventKind
    batch: int
    total_batches: int
    package: str | None = None
    outcome: PublishOutcome | None = None
    size: int = 0


class PublishExecutor:
    """Publish a release schedule batch by batch.

    Packages within a batch run concurrently, bounded by ``max_concurrent``.
    A failure is recorded and never cancels siblings or later batches,
    unless ``skip_dependents_of_failed`` is set, in which case packages
    that transitively depend on a failed package are skipped.

    The failed set is owned by the coordinator and only updated between
    batches (or batch groups).

    Attributes:
        registry: Registry to publish to.
        graph: Workspace dependency graph.
        poller: Availability poller; None disables polling.
        max_concurrent: Worker pool size.
        batch_delay: Seconds to sleep between batches.
        parallel_batches: Batches started together; 0 or 1 runs them one at a time.
        skip_dependents_of_failed: Enable strict mode.
        dry_run: Ask the registry for a dry-run publish and skip polling.
        token: Publish credential.
    """

    def __init__(
        self,
        registry: Registry,
        graph: DependencyGraph,
        *,
        poller: AvailabilityPoller | None = None,
        max_concurrent: int = 4,
        batch_delay: float = 0.0,
        parallel_batches: int = 0,
        skip_dependents_of_failed: bool = False,
        dry_run: bool = False,
        token: str | None = None,
        on_event: Callable[[PublishEvent], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.registry = registry
        self.graph = graph
        self.poller = poller
        self.max_concurrent = max(1, max_concurrent)
        self.batch_delay = batch_delay
        self.parallel_batches = max(1, parallel_batches)
        self.skip_dependents_of_failed = skip_dependents_of_failed
        self.dry_run = dry_run
        self.token = token
        self._on_event = on_event
        self._sleep = sleep

    def _emit(self, event: PublishEvent) -> None:
        if self._on_event is not None:
            self._on_event(event)

    async def execute(
        self,
        schedule: ReleaseSchedule,
        *,
        failed: Mapping[str, str] | None = None,
    ) -> PublishReport:
        """Run every batch of the schedule.

        Args:
            schedule: Batches to publish.
            failed: Packages already failed before publishing (for example a
                manifest rewrite error), mapped to the error. They are
                reported as failed and never dispatched.

        Returns:
            Outcomes for every scheduled package.
        """
        report = PublishReport()
        preset = dict(failed or {})
        failed_names: set[str] = set()
        semaphore = asyncio.Semaphore(self.max_concurrent)
        options = PublishOptions(dry_run=self.dry_run, token=self.token)
        total = len(schedule)

        groups = [
            list(range(start, min(start + self.parallel_batches, total)))
            for start in range(0, total, self.parallel_batches)
        ]

        for group_index, group in enumerate(groups):
            blocked: set[str] = set()
            if self.skip_dependents_of_failed and failed_names:
                blocked = self.graph.transitive_dependents(
                    n for n in failed_names if n in self.graph
                )

            results = await asyncio.gather(
                *(
                    self._run_batch(i, schedule[i], total, semaphore, options, blocked, preset)
                    for i in group
                )
            )

            for outcomes in results:
                report.outcomes.extend(outcomes)
                failed_names.update(o.package_name for o in outcomes if not o.success)

            if self.batch_delay > 0 and group_index < len(groups) - 1:
                log.debug("waiting between batches", delay=self.batch_delay)
                await self._sleep(self.batch_delay)

        log.info(
            "publish finished",
            published=report.success_count,
            failed=report.failure_count,
            skipped=report.skipped_count,
        )
        return report

    async def _run_batch(
        self,
        index: int,
        batch: Batch,
        total: int,
        semaphore: asyncio.Semaphore,
        options: PublishOptions,
        blocked: set[str],
        preset: Mapping[str, str],
    ) -> list[PublishOutcome]:
        log.info("starting batch", batch=index + 1, total=total, size=len(batch))
        self._emit(
            PublishEvent(EventKind.BATCH_STARTED, index, total, size=len(batch))
        )

        outcomes: list[PublishOutcome] = []
        dispatch: list[ReleaseEntry] = []
        for entry in batch:
            if entry.name in preset:
                outcome = PublishOutcome.failure(
                    entry.name, entry.to_version, preset[entry.name], batch=index
                )
            elif entry.name in blocked:
                outcome = PublishOutcome.skip(
                    entry.name, entry.to_version, "a dependency failed to publish", batch=index
                )
                log.warning("skipping package", package=entry.name, reason=outcome.error)
            else:
                dispatch.append(entry)
                continue
            outcomes.append(outcome)
            self._emit(
                PublishEvent(
                    EventKind.PACKAGE_FINISHED, index, total, package=entry.name, outcome=outcome
                )
            )

        results = await asyncio.gather(
            *(self._publish_one(index, total, entry, semaphore, options) for entry in dispatch)
        )
        outcomes.extend(results)

        self._emit(PublishEvent(EventKind.BATCH_FINISHED, index, total, size=len(batch)))
        return outcomes

    async def _publish_one(
        self,
        index: int,
        total: int,
        entry: ReleaseEntry,
        semaphore: asyncio.Semaphore,
        options: PublishOptions,
    ) -> PublishOutcome:
        async with semaphore:
            start = time.perf_counter()
            self._emit(PublishEvent(EventKind.PACKAGE_STARTED, index, total, package=entry.name))
            log.info("publishing", package=entry.name, version=entry.to_version)
            try:
                await self.registry.publish(
                    self.graph.package(entry.name), entry.to_version, options
                )
            except PublishError as e:
                error: str | None = e.message
            except Exception as e:
                error = str(e) or type(e).__name__
            else:
                error = None

        if error is not None:
            duration_ms = int((time.perf_counter() - start) * 1000)
            log.error("publish failed", package=entry.name, version=entry.to_version, error=error)
            outcome = PublishOutcome.failure(
                entry.name, entry.to_version, error, duration_ms, batch=index
            )
        else:
            available: bool | None = None
            if self.poller is not None and not self.dry_run:
                available = await self.poller.wait_until_available(entry.name, entry.to_version)
            duration_ms = int((time.perf_counter() - start) * 1000)
            outcome = PublishOutcome.published(
                entry.name, entry.to_version, duration_ms, available=available, batch=index
            )

        self._emit(
            PublishEvent(
                EventKind.PACKAGE_FINISHED, index, total, package=entry.name, outcome=outcome
            )
        )
        return outcome
