"""Batched, dependency-ordered publishing."""

from pyreleaser.publishing.executor import EventKind, PublishEvent, PublishExecutor
from pyreleaser.publishing.poller import AvailabilityPoller
from pyreleaser.publishing.results import PublishOutcome, PublishReport, PublishStatus
from pyreleaser.publishing.scheduler import ReleaseSchedule, schedule_batches, validate_schedule

__all__ = [
    "AvailabilityPoller",
    "EventKind",
    "PublishEvent",
    "PublishExecutor",
    "PublishOutcome",
    "PublishReport",
    "PublishStatus",
    "ReleaseSchedule",
    "schedule_batches",
    "validate_schedule",
]
