"""Release plan data model.

A plan is an ordered list of release entries, one per workspace package,
listed so that every dependency precedes its dependents.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pyreleaser.errors import PlanError
from pyreleaser.versioning import BumpType, Version
from pyreleaser.workspace.graph import DependencyGraph


class PublishReason(str, Enum):
    """Why a package is part of the release."""

    SPECIFIED = "specified"
    CHANGED = "changed"
    BUMPED_BY_DEPENDENCY = "bumped-by-dependency"
    ALL = "all"
    PATCH = "patch"


class RewriteDep(BaseModel):
    """Replace a dependency declaration with a registry version or local path."""

    model_config = ConfigDict(extra="forbid")

    name: str
    version: str | None = None
    path: str | None = None


class RemoveFeature(BaseModel):
    """Drop an optional-dependency group, or one requirement from it."""

    model_config = ConfigDict(extra="forbid")

    feature: str
    value: str | None = None


class RemoveDep(BaseModel):
    """Drop a dependency from every requirement list and from `[tool.uv.sources]`."""

    model_config = ConfigDict(extra="forbid")

    name: str


class ReleaseEntry(BaseModel):
    """The release decision for one package.

    Attributes:
        name: Package name.
        from_version: Latest released version (``from`` in the plan file).
        to_version: Version to release (``to`` in the plan file).
        bump: Severity of the bump.
        publish: Whether the package is released in this plan.
        reason: Why the package is released.
        rewrite_dep: Dependency rewrites applied to the manifest.
        remove_feature: Optional-dependency removals applied to the manifest.
        remove_dep: Dependency removals applied to the manifest.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str
    from_version: str = Field(alias="from")
    to_version: str = Field(alias="to")
    bump: BumpType = BumpType.NONE
    publish: bool = True
    reason: PublishReason | None = None
    rewrite_dep: list[RewriteDep] = Field(default_factory=list)
    remove_feature: list[RemoveFeature] = Field(default_factory=list)
    remove_dep: list[RemoveDep] = Field(default_factory=list)

    @field_validator("bump", mode="before")
    @classmethod
    def _parse_bump(cls, value: Any) -> Any:
        if isinstance(value, str):
            return BumpType.from_label(value)
        return value

    @field_validator("from_version", "to_version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        Version.parse(value)
        return value

    @model_validator(mode="after")
    def _check_monotonic(self) -> ReleaseEntry:
        old, new = Version.parse(self.from_version), Version.parse(self.to_version)
        if new < old:
            raise ValueError(f"{self.name}: 'to' {new} is lower than 'from' {old}")
        if not self.publish and new != old:
            raise ValueError(f"{self.name}: unpublished entry must have 'to' equal to 'from'")
        return self

    def to_document(self) -> dict[str, Any]:
        """Fields in plan-file order, omitting defaults."""
        doc: dict[str, Any] = {
            "name": self.name,
            "from": self.from_version,
            "to": self.to_version,
        }
        if self.bump != BumpType.NONE:
            doc["bump"] = self.bump.label
        if self.reason is not None:
            doc["reason"] = self.reason.value
        if not self.publish:
            doc["publish"] = False
        if self.rewrite_dep:
            doc["rewrite_dep"] = [d.model_dump(exclude_none=True) for d in self.rewrite_dep]
        if self.remove_feature:
            doc["remove_feature"] = [f.model_dump(exclude_none=True) for f in self.remove_feature]
        if self.remove_dep:
            doc["remove_dep"] = [d.model_dump() for d in self.remove_dep]
        return doc


class Plan(BaseModel):
    """An ordered, persisted list of release entries."""

    model_config = ConfigDict(extra="forbid")

    description: str | None = None
    entries: list[ReleaseEntry] = Field(default_factory=list, alias="package")

    @model_validator(mode="after")
    def _check_unique(self) -> Plan:
        seen: set[str] = set()
        for entry in self.entries:
            if entry.name in seen:
                raise ValueError(f"duplicate entry for package '{entry.name}'")
            seen.add(entry.name)
        return self

    def get(self, name: str) -> ReleaseEntry | None:
        return next((e for e in self.entries if e.name == name), None)

    @property
    def to_publish(self) -> list[ReleaseEntry]:
        return [e for e in self.entries if e.publish]

    def check_order(self, graph: DependencyGraph) -> None:
        """Verify every dependency's entry precedes its dependents' entries.

        Entries for packages no longer in the workspace are ignored.

        Raises:
            PlanError: If a dependent is listed before one of its dependencies.
        """
        position = {e.name: i for i, e in enumerate(self.entries)}
        for entry in self.entries:
            if entry.name not in graph:
                continue
            for dep in graph.dependencies(entry.name):
                if dep in position and position[dep] > position[entry.name]:
                    raise PlanError(
                        f"plan lists '{entry.name}' before its dependency '{dep}'"
                    )

    def to_document(self) -> dict[str, Any]:
        doc: dict[str, Any] = {}
        if self.description:
            doc["description"] = self.description
        if self.entries:
            doc["package"] = [e.to_document() for e in self.entries]
        return doc
