"""Rewrite pyproject.toml files for a release."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name
from tomlkit.exceptions import TOMLKitError

from pyreleaser.errors import ManifestEditError
from pyreleaser.interfaces import EditResult
from pyreleaser.logging import get_logger
from pyreleaser.planning.model import Plan, ReleaseEntry, RemoveFeature, RewriteDep
from pyreleaser.workspace.package import Package

log = get_logger(__name__)


def pin_requirement(spec: str, version: str) -> str:
    """Pin a PEP 508 requirement to an exact version, keeping extras and markers.

    >>> pin_requirement("pkg[b,a]>=1.0; python_version >= '3.10'", "2.0.0")
    'pkg[a,b]==2.0.0; python_version >= "3.10"'
    """
    req = Requirement(spec)
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    pinned = f"{req.name}{extras}=={version}"
    if req.marker is not None:
        pinned += f"; {req.marker}"
    return pinned


def _requirement_name(spec: str) -> str:
    return canonicalize_name(Requirement(spec).name)


class PyprojectEditor:
    """Applies a release entry to a package's pyproject.toml.

    Sets ``[project].version``, pins workspace dependencies to their planned
    versions, applies dependency rewrites and removes optional features.
    Formatting and comments are preserved.
    """

    def apply(self, package: Package, entry: ReleaseEntry, plan: Plan) -> EditResult:
        try:
            changed = self._rewrite(package, entry, plan)
        except ManifestEditError as e:
            log.error("manifest rewrite failed", package=package.name, error=e.message)
            return EditResult(package_name=package.name, success=False, error=e.message)
        return EditResult(package_name=package.name, success=True, changed=changed)

    def _rewrite(self, package: Package, entry: ReleaseEntry, plan: Plan) -> bool:
        path = package.manifest_path
        try:
            original = path.read_text(encoding="utf-8")
            doc = tomlkit.parse(original)
        except (OSError, TOMLKitError) as e:
            raise ManifestEditError(package.name, f"cannot read {path}: {e}") from e

        project = doc.get("project")
        if not isinstance(project, dict):
            raise ManifestEditError(package.name, f"{path} has no [project] table")
        if "version" in project.get("dynamic", []):
            raise ManifestEditError(package.name, f"{path} declares a dynamic version")
        project["version"] = entry.to_version

        pins = {e.name: e.to_version for e in plan.entries if e.name in package.dependencies}
        rewrites = {canonicalize_name(r.name): r for r in entry.rewrite_dep}
        removed = {canonicalize_name(d.name) for d in entry.remove_dep}

        try:
            for requirements in _requirement_lists(project):
                _drop_requirements(requirements, removed)
                _pin_list(requirements, pins, rewrites)
            for feature in entry.remove_feature:
                _remove_feature(project, feature)
        except InvalidRequirement as e:
            raise ManifestEditError(package.name, f"invalid requirement in {path}: {e}") from e
        except KeyError as e:
            raise ManifestEditError(package.name, f"no optional dependency group {e}") from e

        _rewrite_sources(doc, rewrites)
        _drop_sources(doc, removed)

        text = tomlkit.dumps(doc)
        if text == original:
            return False
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise ManifestEditError(package.name, f"cannot write {path}: {e}") from e
        log.debug("manifest rewritten", package=package.name, version=entry.to_version)
        return True


def _requirement_lists(project: Mapping[str, Any]) -> list[Any]:
    lists = []
    deps = project.get("dependencies")
    if isinstance(deps, list):
        lists.append(deps)
    optional = project.get("optional-dependencies")
    if isinstance(optional, dict):
        lists.extend(group for group in optional.values() if isinstance(group, list))
    return lists


def _pin_list(
    requirements: list[Any],
    pins: Mapping[str, str],
    rewrites: Mapping[str, RewriteDep],
) -> None:
    for i, spec in enumerate(requirements):
        name = _requirement_name(str(spec))
        if name in rewrites and rewrites[name].version:
            requirements[i] = pin_requirement(str(spec), rewrites[name].version)
        elif name in pins:
            requirements[i] = pin_requirement(str(spec), pins[name])

def _drop_requirements(requirements: list[Any], names: set[str]) -> None:
    for i in reversed(range(len(requirements))):
        if _requirement_name(str(requirements[i])) in names:
            del requirements[i]


def _remove_feature(project: Any, feature: RemoveFeature) -> None:
    optional = project.get("optional-dependencies")
    if not isinstance(optional, dict) or feature.feature not in optional:
        raise KeyError(feature.feature)

    if feature.value is None:
        del optional[feature.feature]
        return

    group = optional[feature.feature]
    target = _requirement_name(feature.value)
    for i in reversed(range(len(group))):
        if _requirement_name(str(group[i])) == target:
            del group[i]

def _drop_sources(doc: Any, names: set[str]) -> None:
    sources = doc.get("tool", {}).get("uv", {}).get("sources")
    if not names or not isinstance(sources, dict):
        return
    for key in [k for k in sources if canonicalize_name(k) in names]:
        del sources[key]


def _rewrite_sources(doc: Any, rewrites: Mapping[str, RewriteDep]) -> None:
    if not rewrites:
        return
    sources = doc.get("tool", {}).get("uv", {}).get("sources")
    if not isinstance(sources, dict):
        sources = None

    for name, rewrite in rewrites.items():
        key = next((k for k in (sources or {}) if canonicalize_name(k) == name), None)
        if rewrite.path is not None:
            if sources is None:
                tool = doc.setdefault("tool", tomlkit.table(is_super_table=True))
                uv = tool.setdefault("uv", tomlkit.table(is_super_table=True))
                sources = uv.setdefault("sources", tomlkit.table())
            source = tomlkit.inline_table()
            source["path"] = rewrite.path
            sources[key or rewrite.name] = source
        elif key is not None and sources is not None:
            del sources[key]
