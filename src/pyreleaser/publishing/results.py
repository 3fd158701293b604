"""Publish outcome types."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class PublishStatus(Enum):
    """Final state of one package in a publish run."""

    PUBLISHED = "published"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class PublishOutcome:
    """Result of publishing a single package.

    Attributes:
        package_name: Package name.
        version: Version that was (or would have been) published.
        status: Final status.
        duration_ms: Wall time spent in publish and polling.
        error: Failure or skip reason.
        available: Whether polling saw the version; None when not polled.
        batch: Index of the batch the package belonged to.
    """

    package_name: str
    version: str
    status: PublishStatus
    duration_ms: int = 0
    error: str | None = None
    available: bool | None = None
    batch: int | None = None

    @property
    def success(self) -> bool:
        return self.status == PublishStatus.PUBLISHED

    @property
    def failed(self) -> bool:
        return self.status == PublishStatus.FAILED

    @property
    def skipped(self) -> bool:
        return self.status == PublishStatus.SKIPPED

    @classmethod
    def published(
        cls,
        package_name: str,
        version: str,
        duration_ms: int = 0,
        *,
        available: bool | None = None,
        batch: int | None = None,
    ) -> PublishOutcome:
        return cls(
            package_name=package_name,
            version=version,
            status=PublishStatus.PUBLISHED,
            duration_ms=duration_ms,
            available=available,
            batch=batch,
        )

    @classmethod
    def failure(
        cls,
        package_name: str,
        version: str,
        error: str,
        duration_ms: int = 0,
        *,
        batch: int | None = None,
    ) -> PublishOutcome:
        return cls(
            package_name=package_name,
            version=version,
            status=PublishStatus.FAILED,
            duration_ms=duration_ms,
            error=error,
            batch=batch,
        )

    @classmethod
    def skip(
        cls,
        package_name: str,
        version: str,
        reason: str,
        *,
        batch: int | None = None,
    ) -> PublishOutcome:
        return cls(
            package_name=package_name,
            version=version,
            status=PublishStatus.SKIPPED,
            error=reason,
            batch=batch,
        )


@dataclass
class PublishReport:
    """Outcomes of a whole publish run, in completion order per batch."""

    outcomes: list[PublishOutcome] = field(default_factory=list)

    def __iter__(self) -> Iterator[PublishOutcome]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    def get(self, name: str) -> PublishOutcome | None:
        return next((o for o in self.outcomes if o.package_name == name), None)

    @property
    def published(self) -> list[PublishOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> list[PublishOutcome]:
        return [o for o in self.outcomes if o.failed]

    @property
    def skipped(self) -> list[PublishOutcome]:
        return [o for o in self.outcomes if o.skipped]

    @property
    def success_count(self) -> int:
        return len(self.published)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def all_success(self) -> bool:
        """True when nothing failed or was skipped."""
        return all(o.success for o in self.outcomes)

    @property
    def total_duration_ms(self) -> int:
        return sum(o.duration_ms for o in self.outcomes)
