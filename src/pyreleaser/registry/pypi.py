"""PyPI-compatible registry backed by the JSON API and ``uv publish``."""

from __future__ import annotations

import tempfile
from pathlib import Path

import httpx

from pyreleaser.config.schema import DEFAULT_INDEX_URL, DEFAULT_REGISTRY
from pyreleaser.errors import PublishError, RegistryError
from pyreleaser.interfaces import PublishOptions
from pyreleaser.logging import get_logger
from pyreleaser.registry.base import RegistryVersion
from pyreleaser.uv import UvError, build, publish
from pyreleaser.workspace import Package

log = get_logger(__name__)


class PyPIRegistry:
    """Registry adapter for PyPI and indexes exposing the same JSON API.

    Attributes:
        index_url: Base URL serving ``/pypi/<name>/json``.
        publish_url: Upload endpoint handed to ``uv publish``.
    """

    def __init__(
        self,
        index_url: str = DEFAULT_INDEX_URL,
        publish_url: str = DEFAULT_REGISTRY,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.index_url = index_url.rstrip("/")
        self.publish_url = publish_url
        self._client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> PyPIRegistry:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def query(self, name: str) -> list[RegistryVersion]:
        """Return all versions of ``name``. A 404 means never published.

        Raises:
            RegistryError: On transport errors or unexpected responses.
        """
        url = f"{self.index_url}/pypi/{name}/json"
        try:
            response = await self._client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            raise RegistryError(f"request to {url} failed: {e}", package=name) from e

        if response.status_code == 404:
            return []
        if response.status_code != 200:
            raise RegistryError(
                f"unexpected status {response.status_code} from {url}", package=name
            )

        try:
            releases = response.json().get("releases", {})
        except ValueError as e:
            raise RegistryError(f"invalid JSON from {url}", package=name) from e

        versions = []
        for version, files in releases.items():
            # A release with files is yanked only when every file is yanked.
            yanked = bool(files) and all(f.get("yanked", False) for f in files)
            versions.append(RegistryVersion(version=version, yanked=yanked))
        return versions

    async def publish(self, package: Package, version: str, options: PublishOptions) -> None:
        """Build the package and upload it with uv.

        Raises:
            PublishError: If the build or upload fails.
        """
        with tempfile.TemporaryDirectory(prefix=f"{package.name}-dist-") as tmp:
            try:
                dist_dir = await build(package.path, out_dir=Path(tmp))
                await publish(
                    package.path,
                    dist_dir,
                    publish_url=self.publish_url,
                    token=options.token,
                    dry_run=options.dry_run,
                )
            except UvError as e:
                raise PublishError(package.name, e.message) from e

        log.debug("uploaded", package=package.name, version=version, dry_run=options.dry_run)
