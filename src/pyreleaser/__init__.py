"""pyreleaser - release planner for uv workspaces.

Plans coordinated releases of a multi-package workspace and publishes
them in dependency order:
- Version planning against the registry, with a persisted Plan.toml
- Dependency-aware batching
- Bounded-concurrency publishing with availability polling
"""

from pyreleaser.config import PyReleaserConfig, load_config
from pyreleaser.errors import (
    ConfigurationError,
    CyclicDependencyError,
    PackageNotFoundError,
    PlanError,
    PublishError,
    PyReleaserError,
    RegistryError,
    SchedulingError,
    WorkspaceNotFoundError,
)
from pyreleaser.planning import Plan, PlanStore, ReleaseEntry, VersionPlanner
from pyreleaser.publishing import PublishExecutor, PublishReport, schedule_batches
from pyreleaser.workspace import DependencyGraph, Package, Workspace

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Core
    "Workspace",
    "Package",
    "DependencyGraph",
    "PyReleaserConfig",
    "load_config",
    # Planning
    "Plan",
    "PlanStore",
    "ReleaseEntry",
    "VersionPlanner",
    # Publishing
    "PublishExecutor",
    "PublishReport",
    "schedule_batches",
    # Errors
    "PyReleaserError",
    "ConfigurationError",
    "CyclicDependencyError",
    "PackageNotFoundError",
    "PlanError",
    "PublishError",
    "RegistryError",
    "SchedulingError",
    "WorkspaceNotFoundError",
]
