"""Registry snapshot: versions known to the remote index."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from pyreleaser.errors import PyReleaserError, RegistryError
from pyreleaser.interfaces import Registry
from pyreleaser.logging import get_logger
from pyreleaser.versioning import Version

log = get_logger(__name__)


@dataclass(frozen=True)
class RegistryVersion:
    """A released version and whether it was yanked."""

    version: str
    yanked: bool = False


class RegistrySnapshot:
    """Read-only view of registry versions, taken once per run.

    Safe to share between concurrent workers since it is never mutated
    after construction.
    """

    def __init__(self, versions: Mapping[str, Iterable[RegistryVersion]] | None = None) -> None:
        self._versions: dict[str, tuple[RegistryVersion, ...]] = {
            name: tuple(vs) for name, vs in (versions or {}).items()
        }

    def __contains__(self, name: object) -> bool:
        return bool(self._versions.get(name))  # type: ignore[arg-type]

    def versions(self, name: str) -> tuple[RegistryVersion, ...]:
        return self._versions.get(name, ())

    def _parsed(self, name: str) -> list[Version]:
        parsed = []
        for rv in self.versions(name):
            try:
                parsed.append(Version.parse(rv.version))
            except ValueError:
                log.debug("ignoring unparseable registry version", package=name, version=rv.version)
        return parsed

    def has_version(self, name: str, version: str | Version) -> bool:
        """Whether ``version`` of ``name`` exists, yanked or not."""
        target = Version.parse(version) if isinstance(version, str) else version
        return target in self._parsed(name)

    def max_release(self, name: str) -> Version | None:
        """Highest non-prerelease version, yanked releases included."""
        releases = [v for v in self._parsed(name) if not v.is_prerelease]
        return max(releases) if releases else None


async def fetch_snapshot(
    registry: Registry,
    names: Iterable[str],
    *,
    concurrency: int = 8,
) -> RegistrySnapshot:
    """Query the registry for every name and freeze the result.

    Raises:
        RegistryError: If any query fails.
    """
    semaphore = asyncio.Semaphore(max(1, concurrency))
    unique = sorted(set(names))

    async def query_one(name: str) -> tuple[str, list[RegistryVersion]]:
        async with semaphore:
            try:
                return name, await registry.query(name)
            except PyReleaserError as e:
                raise RegistryError(e.message, package=name) from e
            except Exception as e:
                raise RegistryError(str(e) or type(e).__name__, package=name) from e

    results = await asyncio.gather(*(query_one(n) for n in unique))
    log.debug("registry snapshot fetched", packages=len(results))
    return RegistrySnapshot(dict(results))
