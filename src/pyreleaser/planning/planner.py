"""Version planning: decide which packages release and at what version."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from packaging.utils import canonicalize_name

from pyreleaser.config.schema import PackageEditConfig
from pyreleaser.errors import ChangeDetectionError, PlanError, PyReleaserError
from pyreleaser.interfaces import Artifact, ChangeDetector, CompatibilityClassifier
from pyreleaser.logging import get_logger
from pyreleaser.planning.classifier import ConservativeClassifier
from pyreleaser.planning.model import (
    Plan,
    PublishReason,
    ReleaseEntry,
    RemoveDep,
    RemoveFeature,
    RewriteDep,
)
from pyreleaser.registry.base import RegistrySnapshot
from pyreleaser.versioning import BumpType, Version
from pyreleaser.workspace import DependencyGraph, Package

log = get_logger(__name__)


@dataclass(frozen=True)
class PlanRequest:
    """What the user asked to release.

    Attributes:
        names: Packages explicitly requested.
        all: Release every eligible package.
        since: Git ref; packages changed since it are released.
        prerelease: Prerelease suffix for computed versions.
        fresh: Ignore the previous plan.
        description: Free-form plan description.
    """

    names: tuple[str, ...] = ()
    all: bool = False
    since: str | None = None
    prerelease: str | None = None
    fresh: bool = False
    description: str | None = None


@dataclass
class _PlanState:
    entries: dict[str, ReleaseEntry] = field(default_factory=dict)
    bumps: dict[str, BumpType] = field(default_factory=dict)


class VersionPlanner:
    """Builds a release plan in a single pass over the topological order.

    Dependencies are always visited before their dependents, so whether a
    dependency releases is known by the time a dependent is decided.

    Args:
        graph: Workspace dependency graph.
        snapshot: Registry versions taken at the start of the run.
        seed_version: ``from`` for packages never released.
        change_detector: Source of changed packages for ``since`` requests.
        classifier: Classifies the change between released and local sources.
        previous: Plan loaded from disk, if any.
        edits: Configured manifest edits merged into every released entry.
    """

    def __init__(
        self,
        graph: DependencyGraph,
        snapshot: RegistrySnapshot,
        *,
        seed_version: str = "0.1.0",
        change_detector: ChangeDetector | None = None,
        classifier: CompatibilityClassifier | None = None,
        previous: Plan | None = None,
        edits: Sequence[PackageEditConfig] = (),
    ) -> None:
        self.graph = graph
        self.snapshot = snapshot
        self.seed_version = Version.parse(seed_version)
        self.change_detector = change_detector
        self.classifier = classifier or ConservativeClassifier()
        self.previous = previous
        self.edits = {e.name: e for e in edits}
        self._classified: dict[str, BumpType] = {}

    def plan(self, request: PlanRequest) -> Plan:
        """Compute a plan covering every workspace package.

        Raises:
            PackageNotFoundError: If a requested name is not in the workspace.
            ChangeDetectionError: If changed packages cannot be determined.
            CyclicDependencyError: If the workspace graph has a cycle.
            PlanError: If a git dependency has no registry release.
        """
        for name in request.names:
            self.graph.package(name)

        changed = self._changed(request.since)
        previous = None if request.fresh else self.previous
        state = _PlanState()

        for name in self.graph.topological_order():
            package = self.graph.package(name)
            reason = self._reason(package, request, changed, state)
            prior = previous.get(name) if previous else None

            if not package.publish:
                entry = self._compute(package, None, request.prerelease)
            elif prior is not None and (prior.publish or reason is None):
                entry = prior.model_copy(deep=True)
            else:
                entry = self._compute(package, reason, request.prerelease)

            entry = self._demote_if_stale(entry)
            if entry.publish:
                self._add_git_rewrites(package, entry)
                self._add_config_edits(entry)

            state.entries[name] = entry
            log.debug(
                "planned package",
                package=name,
                version_from=entry.from_version,
                version_to=entry.to_version,
                publish=entry.publish,
            )

        description = request.description
        if description is None and previous is not None:
            description = previous.description

        plan = Plan(description=description, package=list(state.entries.values()))
        log.info(
            "plan computed",
            packages=len(plan.entries),
            to_publish=len(plan.to_publish),
        )
        return plan

    def _changed(self, since: str | None) -> set[str]:
        if since is None:
            return set()
        if self.change_detector is None:
            raise ChangeDetectionError("no change detector configured for --since")
        try:
            changed = self.change_detector.changed_since(since)
        except ChangeDetectionError:
            raise
        except PyReleaserError as e:
            raise ChangeDetectionError(e.message) from e
        except Exception as e:
            raise ChangeDetectionError(str(e) or type(e).__name__) from e
        log.info("changed packages detected", since=since, count=len(changed))
        return {name for name in changed if name in self.graph}

    def _reason(
        self,
        package: Package,
        request: PlanRequest,
        changed: set[str],
        state: _PlanState,
    ) -> PublishReason | None:
        if not package.publish:
            return None
        if request.all:
            return PublishReason.ALL
        if package.name in request.names:
            return PublishReason.SPECIFIED
        if package.name in changed:
            return PublishReason.CHANGED
        for dep in self.graph.dependencies(package.name):
            entry = state.entries.get(dep)
            if entry is not None and entry.publish and entry.bump >= BumpType.MINOR:
                return PublishReason.BUMPED_BY_DEPENDENCY
        return None

    def _from_version(self, name: str) -> Version:
        return self.snapshot.max_release(name) or self.seed_version

    def _classify(self, package: Package, from_version: Version) -> BumpType:
        if package.name not in self._classified:
            old = Artifact(name=package.name, version=str(from_version))
            new = Artifact(name=package.name, version=package.version, path=package.path)
            bump = self.classifier.compare(old, new)
            self._classified[package.name] = max(bump, BumpType.PATCH)
        return self._classified[package.name]

    def _compute(
        self,
        package: Package,
        reason: PublishReason | None,
        prerelease: str | None,
    ) -> ReleaseEntry:
        from_version = self._from_version(package.name)

        if reason is None:
            return ReleaseEntry(
                name=package.name,
                from_version=str(from_version),
                to_version=str(from_version),
                publish=False,
            )

        if reason == PublishReason.BUMPED_BY_DEPENDENCY:
            bump = BumpType.MAJOR
        else:
            bump = self._classify(package, from_version)

        to_version = next_version(from_version, package.version, bump, prerelease)
        return ReleaseEntry(
            name=package.name,
            from_version=str(from_version),
            to_version=str(to_version),
            bump=bump,
            reason=reason,
        )

    def _demote_if_stale(self, entry: ReleaseEntry) -> ReleaseEntry:
        if not entry.publish or not self.snapshot.has_version(entry.name, entry.to_version):
            return entry
        log.info(
            "planned version already released",
            package=entry.name,
            version=entry.to_version,
        )
        return entry.model_copy(
            update={
                "publish": False,
                "from_version": entry.to_version,
                "bump": BumpType.NONE,
                "reason": None,
            }
        )

    def _add_git_rewrites(self, package: Package, entry: ReleaseEntry) -> None:
        existing = {dep.name for dep in entry.rewrite_dep}
        for dep in sorted(package.git_dependencies - existing):
            released = self.snapshot.max_release(dep)
            if released is None:
                raise PlanError(
                    f"'{package.name}' depends on '{dep}' from git, "
                    "but no release of it exists in the registry"
                )
            entry.rewrite_dep.append(RewriteDep(name=dep, version=str(released)))

    def _add_config_edits(self, entry: ReleaseEntry) -> None:
        edits = self.edits.get(entry.name)
        if edits is None:
            return
        for removal in edits.remove_feature:
            feature = RemoveFeature(feature=removal.feature, value=removal.value)
            if feature not in entry.remove_feature:
                entry.remove_feature.append(feature)
        for name in edits.remove_dep:
            dep = RemoveDep(name=canonicalize_name(name))
            if dep not in entry.remove_dep:
                entry.remove_dep.append(dep)


def next_version(
    from_version: Version,
    local_version: str,
    bump: BumpType,
    prerelease: str | None = None,
) -> Version:
    """Compute the version to release.

    A local version already ahead of ``from_version`` is used as a floor,
    and is kept as is when it already carries an increase of at least
    ``bump``.

    >>> str(next_version(Version.parse("0.3.2"), "0.3.2", BumpType.MAJOR))
    '0.4.0'
    >>> str(next_version(Version.parse("1.2.3"), "1.2.3", BumpType.MAJOR))
    '2.0.0'
    """
    candidate = from_version
    try:
        local = Version.parse(local_version).release_only()
    except ValueError:
        local = None
    if local is not None and local > from_version:
        candidate = local

    if candidate >= from_version.bump(bump):
        return candidate.with_prerelease(prerelease)
    return candidate.bump(bump, prerelease)


def patch_plan(plan: Plan, names: Iterable[str]) -> Plan:
    """Re-bump already planned packages by one patch release.

    The previous ``to`` becomes ``from``; names absent from the plan are
    skipped.

    Raises:
        PlanError: If a named entry is not set to publish.
    """
    patched = plan.model_copy(deep=True)
    for name in names:
        entry = patched.get(name)
        if entry is None:
            log.warning("package not in plan, skipping", package=name)
            continue
        if not entry.publish:
            raise PlanError(f"package '{name}' is set not to publish")

        to_version = Version.parse(entry.to_version).bump(BumpType.PATCH)
        index = patched.entries.index(entry)
        patched.entries[index] = entry.model_copy(
            update={
                "from_version": entry.to_version,
                "to_version": str(to_version),
                "bump": BumpType.PATCH,
                "reason": PublishReason.PATCH,
            }
        )
    return patched
