"""pyreleaser commands."""

from pyreleaser.commands.apply import (
    ApplyCommand,
    ApplyOptions,
    ApplyResult,
    apply,
    handle_apply_command,
)
from pyreleaser.commands.base import Command, CommandContext, SyncCommand
from pyreleaser.commands.changed import (
    ChangedCommand,
    ChangedOptions,
    ChangedPackage,
    ChangedResult,
    get_changed_packages,
    handle_changed_command,
)
from pyreleaser.commands.check import (
    CheckCommand,
    CheckIssue,
    CheckOptions,
    CheckResult,
    check_workspace,
    handle_check_command,
)
from pyreleaser.commands.order import (
    OrderCommand,
    OrderOptions,
    OrderResult,
    handle_order_command,
    release_order,
)
from pyreleaser.commands.plan import (
    PlanCommand,
    PlanOptions,
    PlanResult,
    handle_plan_command,
    plan,
)
from pyreleaser.commands.status import (
    PackageStatus,
    ReleaseState,
    StatusCommand,
    StatusOptions,
    StatusResult,
    handle_status_command,
    workspace_status,
)

__all__ = [
    # Base
    "Command",
    "CommandContext",
    "SyncCommand",
    # Plan
    "PlanCommand",
    "PlanOptions",
    "PlanResult",
    "plan",
    "handle_plan_command",
    # Apply
    "ApplyCommand",
    "ApplyOptions",
    "ApplyResult",
    "apply",
    "handle_apply_command",
    # Order
    "OrderCommand",
    "OrderOptions",
    "OrderResult",
    "release_order",
    "handle_order_command",
    # Status
    "PackageStatus",
    "ReleaseState",
    "StatusCommand",
    "StatusOptions",
    "StatusResult",
    "workspace_status",
    "handle_status_command",
    # Changed
    "ChangedCommand",
    "ChangedOptions",
    "ChangedPackage",
    "ChangedResult",
    "get_changed_packages",
    "handle_changed_command",
    # Check
    "CheckCommand",
    "CheckIssue",
    "CheckOptions",
    "CheckResult",
    "check_workspace",
    "handle_check_command",
]
