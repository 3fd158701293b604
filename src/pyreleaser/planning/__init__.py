"""Release planning."""

from pyreleaser.planning.classifier import ConservativeClassifier
from pyreleaser.planning.model import (
    Plan,
    PublishReason,
    ReleaseEntry,
    RemoveDep,
    RemoveFeature,
    RewriteDep,
)
from pyreleaser.planning.planner import PlanRequest, VersionPlanner, next_version, patch_plan
from pyreleaser.planning.store import PlanStore, render_plan

__all__ = [
    "ConservativeClassifier",
    "Plan",
    "PlanRequest",
    "PlanStore",
    "PublishReason",
    "ReleaseEntry",
    "RemoveDep",
    "RemoveFeature",
    "RewriteDep",
    "VersionPlanner",
    "next_version",
    "patch_plan",
    "render_plan",
]
