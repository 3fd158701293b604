"""Wait for published versions to appear in the registry."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

from pyreleaser.interfaces import Registry
from pyreleaser.logging import get_logger
from pyreleaser.versioning import Version

log = get_logger(__name__)


class AvailabilityPoller:
    """Polls the registry until a version is listed or a timeout elapses.

    Registries are eventually consistent; a dependent published before its
    dependency is visible may fail to resolve. Polling never fails a run:
    timeouts and query errors are logged and reported as unavailable.

    Attributes:
        registry: Registry to query.
        interval: Seconds between queries.
        timeout: Seconds before giving up.
    """

    def __init__(
        self,
        registry: Registry,
        interval: float = 5.0,
        timeout: float = 300.0,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.registry = registry
        self.interval = interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock

    async def _is_listed(self, name: str, target: Version) -> bool:
        try:
            versions = await self.registry.query(name)
        except Exception as e:
            log.debug("availability query failed", package=name, error=str(e))
            return False
        for rv in versions:
            try:
                if Version.parse(rv.version) == target:
                    return True
            except ValueError:
                continue
        return False

    async def wait_until_available(self, name: str, version: str) -> bool:
        """Return True once ``version`` of ``name`` is listed, False on timeout."""
        target = Version.parse(version)
        deadline = self._clock() + self.timeout

        while True:
            if await self._is_listed(name, target):
                log.debug("version available", package=name, version=version)
                return True
            remaining = deadline - self._clock()
            if remaining <= 0:
                log.warning(
                    "timed out waiting for version to appear",
                    package=name,
                    version=version,
                    timeout=self.timeout,
                )
                return False
            await self._sleep(min(self.interval, remaining))
