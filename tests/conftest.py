"""Shared test fixtures for pyreleaser tests."""

from __future__ import annotations

import asyncio
import subprocess
import tempfile
from collections.abc import Callable, Generator, Iterable
from pathlib import Path

import pytest
from packaging.requirements import Requirement

from pyreleaser.errors import PublishError
from pyreleaser.interfaces import Artifact, PublishOptions
from pyreleaser.registry import RegistrySnapshot, RegistryVersion
from pyreleaser.versioning import BumpType
from pyreleaser.workspace import DependencyGraph, Package, Workspace


class FakeRegistry:
    """In-memory registry.

    A successful publish makes the version visible to later queries unless
    the package is listed in ``invisible``.
    """

    def __init__(
        self,
        versions: dict[str, list[str]] | None = None,
        *,
        fail: Iterable[str] = (),
        invisible: Iterable[str] = (),
        publish_delay: float = 0.0,
    ) -> None:
        self.versions: dict[str, list[RegistryVersion]] = {
            name: [RegistryVersion(v) for v in vs] for name, vs in (versions or {}).items()
        }
        self.fail = set(fail)
        self.invisible = set(invisible)
        self.publish_delay = publish_delay
        self.published: list[tuple[str, str, PublishOptions]] = []
        self.started: list[str] = []
        self.queries: list[str] = []
        self.active = 0
        self.max_active = 0
        self.closed = False

    async def __aenter__(self) -> FakeRegistry:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.closed = True

    async def query(self, name: str) -> list[RegistryVersion]:
        self.queries.append(name)
        return list(self.versions.get(name, []))

    async def publish(self, package: Package, version: str, options: PublishOptions) -> None:
        self.started.append(package.name)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.publish_delay)
            if package.name in self.fail:
                raise PublishError(package.name, "upload rejected")
            self.published.append((package.name, version, options))
            if not options.dry_run and package.name not in self.invisible:
                self.versions.setdefault(package.name, []).append(RegistryVersion(version))
        finally:
            self.active -= 1

    @property
    def published_names(self) -> list[str]:
        return [name for name, _, _ in self.published]


class FakeChangeDetector:
    def __init__(self, changed: Iterable[str] = (), error: Exception | None = None) -> None:
        self.changed = set(changed)
        self.error = error
        self.refs: list[str] = []

    def changed_since(self, ref: str) -> set[str]:
        self.refs.append(ref)
        if self.error is not None:
            raise self.error
        return set(self.changed)


class CountingClassifier:
    """Returns a fixed bump per package and counts calls."""

    def __init__(
        self, bumps: dict[str, BumpType] | None = None, default: BumpType = BumpType.MAJOR
    ):
        self.bumps = bumps or {}
        self.default = default
        self.calls: list[tuple[Artifact, Artifact]] = []

    def compare(self, old: Artifact, new: Artifact) -> BumpType:
        self.calls.append((old, new))
        return self.bumps.get(new.name, self.default)


class SleepRecorder:
    """Async sleep replacement that records delays and advances a fake clock."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self.now = 0.0

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        self.now += delay
        await asyncio.sleep(0)

    def clock(self) -> float:
        return self.now


def make_package(
    name: str,
    version: str = "1.0.0",
    deps: Iterable[str] = (),
    *,
    publish: bool = True,
    git_deps: Iterable[str] = (),
) -> Package:
    return Package(
        name=name,
        version=version,
        path=Path("/workspace") / name,
        publish=publish,
        dependencies=frozenset(deps),
        git_dependencies=frozenset(git_deps),
        external_dependencies=frozenset(git_deps),
    )


@pytest.fixture
def make_graph() -> Callable[..., DependencyGraph]:
    """Build a graph from ``{name: [deps]}``; versions and flags via keywords."""

    def factory(
        spec: dict[str, list[str]],
        *,
        versions: dict[str, str] | None = None,
        private: Iterable[str] = (),
        git_deps: dict[str, list[str]] | None = None,
    ) -> DependencyGraph:
        versions = versions or {}
        git_deps = git_deps or {}
        private = set(private)
        return DependencyGraph(
            make_package(
                name,
                versions.get(name, "1.0.0"),
                deps,
                publish=name not in private,
                git_deps=git_deps.get(name, ()),
            )
            for name, deps in spec.items()
        )

    return factory


@pytest.fixture
def make_snapshot() -> Callable[[dict[str, list[str]]], RegistrySnapshot]:
    def factory(versions: dict[str, list[str]]) -> RegistrySnapshot:
        return RegistrySnapshot(
            {name: [RegistryVersion(v) for v in vs] for name, vs in versions.items()}
        )

    return factory


@pytest.fixture
def fake_registry() -> Callable[..., FakeRegistry]:
    return FakeRegistry


@pytest.fixture
def change_detector() -> Callable[..., FakeChangeDetector]:
    return FakeChangeDetector


@pytest.fixture
def classifier() -> Callable[..., CountingClassifier]:
    return CountingClassifier


@pytest.fixture
def fake_sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


def write_package(
    root: Path,
    name: str,
    version: str,
    dependencies: Iterable[str] = (),
    *,
    extra: str = "",
) -> Path:
    """Write a minimal package under ``root/packages/<name>``."""
    pkg_dir = root / "packages" / name
    (pkg_dir / "src" / name.replace("-", "_")).mkdir(parents=True)
    (pkg_dir / "src" / name.replace("-", "_") / "__init__.py").write_text("")
    deps = ", ".join(f'"{d}"' for d in dependencies)
    sources = "".join(
        f"{Requirement(d).name} = {{ workspace = true }}\n" for d in dependencies
    )
    text = f"""\
[project]
name = "{name}"
version = "{version}"
dependencies = [{deps}]
"""
    if sources:
        text += f"\n[tool.uv.sources]\n{sources}"
    if extra:
        text += "\n" + extra
    (pkg_dir / "pyproject.toml").write_text(text)
    return pkg_dir


@pytest.fixture
def sample_pyreleaser_yaml() -> str:
    """Sample pyreleaser.yaml content."""
    return """\
name: test-workspace
packages:
  - packages/*

plan:
  seed_version: 0.1.0

publish:
  max_concurrent: 2
  batch_size: 10
  poll_interval: 0.01
  poll_timeout: 0.05
"""


@pytest.fixture
def workspace_dir(temp_dir: Path, sample_pyreleaser_yaml: str) -> Path:
    """Workspace with pkg-a, pkg-b (depends on pkg-a) and pkg-c (depends on pkg-b)."""
    (temp_dir / "pyreleaser.yaml").write_text(sample_pyreleaser_yaml)
    (temp_dir / "pyproject.toml").write_text("""\
[project]
name = "test-workspace"
version = "0.0.0"

[tool.uv.workspace]
members = ["packages/*"]
""")
    write_package(temp_dir, "pkg-a", "1.0.0")
    write_package(temp_dir, "pkg-b", "2.0.0", ["pkg-a>=1.0"])
    write_package(temp_dir, "pkg-c", "0.1.0", ["pkg-b"])
    return temp_dir


@pytest.fixture
def workspace(workspace_dir: Path) -> Workspace:
    return Workspace.discover(workspace_dir)


@pytest.fixture
def git_workspace(workspace_dir: Path) -> Path:
    """Create a workspace with git initialized and one commit."""

    def git(*args: str) -> None:
        subprocess.run(["git", *args], cwd=workspace_dir, check=True, capture_output=True)

    git("init", "-q")
    git("config", "user.email", "test@test.com")
    git("config", "user.name", "Test")
    git("add", "-A")
    git("commit", "-q", "-m", "Initial commit")
    return workspace_dir
