"""Configuration schema for pyreleaser.yaml."""

from __future__ import annotations

from packaging.utils import canonicalize_name
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_REGISTRY = "https://upload.pypi.org/legacy/"
DEFAULT_INDEX_URL = "https://pypi.org"


class PlanConfig(BaseModel):
    """Settings for the `plan` command.

    Attributes:
        file: Plan file name, relative to the workspace root.
        seed_version: Version assumed for packages never released before.
        prerelease: Default prerelease suffix for planned versions.
    """

    model_config = ConfigDict(extra="forbid")

    file: str = "Plan.toml"
    seed_version: str = "0.1.0"
    prerelease: str | None = None

    @field_validator("seed_version")
    @classmethod
    def _check_seed(cls, value: str) -> str:
        from pyreleaser.versioning import Version

        Version.parse(value)
        return value


class PublishConfig(BaseModel):
    """Settings for publishing during `apply`.

    Attributes:
        registry: Upload URL passed to ``uv publish``.
        index_url: Base URL of the index queried for released versions.
        token_env: Environment variable holding the publish token.
        max_concurrent: Worker pool size within a batch.
        batch_size: Maximum packages per batch (0 = unbounded).
        batch_delay: Seconds to wait between batches.
        parallel_batches: Number of batches started together (0 = sequential).
        poll_interval: Seconds between availability checks.
        poll_timeout: Seconds to wait for a published version to appear.
        skip_dependents_of_failed: Skip packages whose dependencies failed.
    """

    model_config = ConfigDict(extra="forbid")

    registry: str = DEFAULT_REGISTRY
    index_url: str = DEFAULT_INDEX_URL
    token_env: str = "UV_PUBLISH_TOKEN"
    max_concurrent: int = Field(default=4, ge=1)
    batch_size: int = Field(default=10, ge=0)
    batch_delay: float = Field(default=0.0, ge=0)
    parallel_batches: int = Field(default=0, ge=0)
    poll_interval: float = Field(default=5.0, gt=0)
    poll_timeout: float = Field(default=300.0, ge=0)
    skip_dependents_of_failed: bool = False


class FeatureRemovalConfig(BaseModel):
    """An optional-dependency group to drop, or one requirement within it."""

    model_config = ConfigDict(extra="forbid")

    feature: str
    value: str | None = None


class PackageEditConfig(BaseModel):
    """Manifest edits applied every time a package is released.

    Attributes:
        name: Package the edits apply to.
        remove_feature: Optional-dependency removals.
        remove_dep: Dependencies dropped from every requirement list.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    remove_feature: list[FeatureRemovalConfig] = Field(default_factory=list)
    remove_dep: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _canonical_name(cls, value: str) -> str:
        return canonicalize_name(value)


class LoggingConfig(BaseModel):
    """Log output settings."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    level: str = "INFO"
    json_output: bool = Field(default=False, alias="json")


class PyReleaserConfig(BaseModel):
    """Root configuration model.

    Attributes:
        name: Workspace name.
        packages: Glob patterns locating package directories. Defaults to the
            ``[tool.uv.workspace].members`` of the root pyproject.toml.
        plan: Planning settings.
        publish: Publishing settings.
        logging: Log settings.
        edits: Per-package manifest edits.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str = "workspace"
    packages: list[str] = Field(default_factory=list)
    plan: PlanConfig = Field(default_factory=PlanConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    edits: list[PackageEditConfig] = Field(default_factory=list)

    def edits_for(self, name: str) -> PackageEditConfig | None:
        return next((e for e in self.edits if e.name == name), None)
