"""Tests for the apply command."""

from __future__ import annotations

import importlib

import pytest
import typer
from rich.console import Console

from pyreleaser.commands.apply import ApplyCommand, ApplyOptions, apply, handle_apply_command
from pyreleaser.commands.base import CommandContext
from pyreleaser.commands.plan import plan
from pyreleaser.errors import CredentialError, MalformedPlanError, PlanError, PlanNotFoundError
from pyreleaser.interfaces import EditResult
from pyreleaser.publishing import EventKind, PublishStatus
from pyreleaser.workspace import Workspace


@pytest.fixture
def token(monkeypatch: pytest.MonkeyPatch) -> str:
    monkeypatch.setenv("UV_PUBLISH_TOKEN", "pypi-test-token")
    return "pypi-test-token"


@pytest.fixture
def no_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("UV_PUBLISH_TOKEN", raising=False)


async def _plan_all(workspace: Workspace, registry) -> None:
    await plan(workspace, all=True, registry=registry)


class TestApplyPlanLoading:
    @pytest.mark.asyncio
    async def test_missing_plan(self, workspace: Workspace, fake_registry) -> None:
        with pytest.raises(PlanNotFoundError, match="pyreleaser plan"):
            await apply(workspace, registry=fake_registry())

    @pytest.mark.asyncio
    async def test_malformed_plan(self, workspace: Workspace, fake_registry) -> None:
        workspace.plan_path.write_text("[[package]]\nname = 'pkg-a'\n")
        with pytest.raises(MalformedPlanError):
            await apply(workspace, registry=fake_registry())

    @pytest.mark.asyncio
    async def test_unknown_package_in_plan(self, workspace: Workspace, fake_registry) -> None:
        workspace.plan_path.write_text(
            '[[package]]\nname = "ghost"\nfrom = "1.0.0"\nto = "1.0.0"\npublish = false\n'
        )
        with pytest.raises(PlanError, match="ghost"):
            await apply(workspace, registry=fake_registry())

    @pytest.mark.asyncio
    async def test_plan_out_of_order(self, workspace: Workspace, fake_registry) -> None:
        workspace.plan_path.write_text(
            '[[package]]\nname = "pkg-b"\nfrom = "2.0.0"\nto = "2.0.0"\npublish = false\n'
            '[[package]]\nname = "pkg-a"\nfrom = "1.0.0"\nto = "1.0.0"\npublish = false\n'
        )
        with pytest.raises(PlanError, match="before its dependency"):
            await apply(workspace, registry=fake_registry())


class TestApplyManifests:
    @pytest.mark.asyncio
    async def test_rewrites_without_publishing(self, workspace: Workspace, fake_registry) -> None:
        await plan(workspace, names=["pkg-c"], registry=fake_registry())
        registry = fake_registry()

        result = await apply(workspace, registry=registry)

        assert [e.name for e in result.pending] == ["pkg-c"]
        assert [e.package_name for e in result.edits] == ["pkg-c"]
        assert result.report is None
        assert result.success
        assert registry.published == []

        manifest = (workspace.root / "packages" / "pkg-c" / "pyproject.toml").read_text()
        assert 'version = "0.2.0"' in manifest
        assert '"pkg-b==0.1.0"' in manifest

    @pytest.mark.asyncio
    async def test_print_only_touches_nothing(self, workspace: Workspace, fake_registry) -> None:
        await plan(workspace, names=["pkg-c"], registry=fake_registry())
        manifest = workspace.root / "packages" / "pkg-c" / "pyproject.toml"
        before = manifest.read_text()

        result = await apply(workspace, ApplyOptions(print_only=True), registry=fake_registry())

        assert [e.name for e in result.pending] == ["pkg-c"]
        assert result.edits == []
        assert manifest.read_text() == before

    @pytest.mark.asyncio
    async def test_already_released_entries_skipped(
        self, workspace: Workspace, fake_registry
    ) -> None:
        await _plan_all(workspace, fake_registry())
        registry = fake_registry({"pkg-a": ["1.0.0"]})

        result = await apply(workspace, ApplyOptions(dry_run=True), registry=registry)

        assert [e.name for e in result.pending] == ["pkg-b", "pkg-c"]
        assert registry.published_names == ["pkg-b", "pkg-c"]

    @pytest.mark.asyncio
    async def test_private_package_never_published(
        self, workspace: Workspace, fake_registry
    ) -> None:
        await _plan_all(workspace, fake_registry())
        manifest = workspace.root / "packages" / "pkg-b" / "pyproject.toml"
        manifest.write_text(manifest.read_text() + "\n[tool.pyreleaser]\npublish = false\n")
        workspace = Workspace.discover(workspace.root)
        registry = fake_registry()

        result = await apply(workspace, ApplyOptions(dry_run=True), registry=registry)

        assert [e.name for e in result.pending] == ["pkg-a", "pkg-c"]
        assert registry.published_names == ["pkg-a", "pkg-c"]
        assert "pkg-b" not in registry.queries


class TestApplyPublish:
    @pytest.mark.asyncio
    async def test_dry_run_needs_no_token(
        self, workspace: Workspace, fake_registry, no_token
    ) -> None:
        await _plan_all(workspace, fake_registry())
        registry = fake_registry()

        result = await apply(workspace, ApplyOptions(publish=True, dry_run=True), registry=registry)

        assert result.success
        assert result.schedule.names == [["pkg-a"], ["pkg-b"], ["pkg-c"]]
        assert all(options.dry_run for _, _, options in registry.published)
        assert all(options.token is None for _, _, options in registry.published)
        assert registry.versions == {}

    @pytest.mark.asyncio
    async def test_publish_requires_token(
        self, workspace: Workspace, fake_registry, no_token
    ) -> None:
        await _plan_all(workspace, fake_registry())
        with pytest.raises(CredentialError, match="UV_PUBLISH_TOKEN"):
            await apply(workspace, ApplyOptions(publish=True), registry=fake_registry())

    @pytest.mark.asyncio
    async def test_token_from_context_env(
        self, workspace: Workspace, fake_registry, no_token
    ) -> None:
        await _plan_all(workspace, fake_registry())
        registry = fake_registry()
        context = CommandContext(workspace=workspace, env={"UV_PUBLISH_TOKEN": "ctx-token"})

        await ApplyCommand(context, ApplyOptions(publish=True), registry=registry).execute()

        assert {options.token for _, _, options in registry.published} == {"ctx-token"}

    @pytest.mark.asyncio
    async def test_publish_in_dependency_order(
        self, workspace: Workspace, fake_registry, token: str
    ) -> None:
        await _plan_all(workspace, fake_registry())
        registry = fake_registry()
        events = []

        result = await apply(
            workspace, ApplyOptions(publish=True), registry=registry, on_event=events.append
        )

        assert result.success
        assert registry.published_names == ["pkg-a", "pkg-b", "pkg-c"]
        assert {options.token for _, _, options in registry.published} == {token}
        assert all(o.available for o in result.report)
        assert [e.kind for e in events].count(EventKind.BATCH_STARTED) == 3

    @pytest.mark.asyncio
    async def test_resume_after_partial_publish(
        self, workspace: Workspace, fake_registry, token: str
    ) -> None:
        await _plan_all(workspace, fake_registry())
        registry = fake_registry(fail={"pkg-b"})

        first = await apply(workspace, ApplyOptions(publish=True), registry=registry)
        assert not first.success
        assert first.report.get("pkg-b").status == PublishStatus.FAILED
        # optimistic continuation still attempts pkg-c
        assert first.report.get("pkg-c").status == PublishStatus.PUBLISHED

        registry.fail.clear()
        second = await apply(workspace, ApplyOptions(publish=True), registry=registry)

        assert second.success
        assert [e.name for e in second.pending] == ["pkg-b"]
        assert registry.published_names == ["pkg-a", "pkg-c", "pkg-b"]

    @pytest.mark.asyncio
    async def test_skip_dependents_of_failed(
        self, workspace: Workspace, fake_registry, token: str
    ) -> None:
        await _plan_all(workspace, fake_registry())
        registry = fake_registry(fail={"pkg-a"})

        result = await apply(
            workspace,
            ApplyOptions(publish=True, skip_dependents_of_failed=True),
            registry=registry,
        )

        assert result.report.failure_count == 1
        assert result.report.skipped_count == 2
        assert registry.started == ["pkg-a"]

    @pytest.mark.asyncio
    async def test_unavailable_version_is_reported(
        self, workspace: Workspace, fake_registry, token: str
    ) -> None:
        await plan(workspace, names=["pkg-c"], registry=fake_registry())
        registry = fake_registry(invisible={"pkg-c"})

        result = await apply(workspace, ApplyOptions(publish=True), registry=registry)

        outcome = result.report.get("pkg-c")
        assert outcome.success
        assert outcome.available is False

    @pytest.mark.asyncio
    async def test_edit_failure_is_not_published(
        self, workspace: Workspace, fake_registry
    ) -> None:
        class BrokenEditor:
            def apply(self, package, entry, plan):
                if package.name == "pkg-b":
                    return EditResult(package.name, success=False, error="disk full")
                return EditResult(package.name, success=True)

        await _plan_all(workspace, fake_registry())
        registry = fake_registry()
        cmd = ApplyCommand(
            CommandContext(workspace=workspace),
            ApplyOptions(dry_run=True),
            registry=registry,
            editor=BrokenEditor(),
        )

        result = await cmd.execute()

        assert result.report.get("pkg-b").error == "disk full"
        assert "pkg-b" not in registry.started
        assert not result.success

    def test_option_overrides(self, workspace: Workspace) -> None:
        cmd = ApplyCommand(
            CommandContext(workspace=workspace),
            ApplyOptions(max_concurrent=8, batch_size=0),
        )
        settings = cmd.settings()
        assert settings.max_concurrent == 8
        assert settings.batch_size == 0
        assert settings.poll_interval == workspace.config.publish.poll_interval
        assert workspace.config.publish.max_concurrent == 2


class TestHandleApply:
    @pytest.mark.asyncio
    async def test_print_mode(self, workspace: Workspace, fake_registry, monkeypatch) -> None:
        await plan(workspace, names=["pkg-c"], registry=fake_registry())
        monkeypatch.setattr(
            importlib.import_module("pyreleaser.commands.apply"),
            "default_registry",
            lambda ws: fake_registry(),
        )
        console = Console(record=True, width=120)

        await handle_apply_command(
            workspace,
            ApplyOptions(print_only=True),
            console=console,
            error_console=Console(stderr=True),
        )

        assert console.export_text().strip() == "pkg-c@0.2.0"

    @pytest.mark.asyncio
    async def test_missing_plan_exits(self, workspace: Workspace) -> None:
        error_console = Console(record=True, width=120)
        with pytest.raises(typer.Exit):
            await handle_apply_command(
                workspace, ApplyOptions(), console=Console(), error_console=error_console
            )
        assert "Plan.toml" in error_console.export_text()

    @pytest.mark.asyncio
    async def test_dry_run_summary(self, workspace: Workspace, fake_registry, monkeypatch) -> None:
        await plan(workspace, names=["pkg-c"], registry=fake_registry())
        monkeypatch.setattr(
            importlib.import_module("pyreleaser.commands.apply"),
            "default_registry",
            lambda ws: fake_registry(),
        )
        console = Console(record=True, width=120)

        await handle_apply_command(
            workspace,
            ApplyOptions(dry_run=True),
            console=console,
            error_console=Console(stderr=True),
        )

        output = console.export_text()
        assert "Dry run" in output
        assert "1 published, 0 skipped, 0 failed" in output
        assert "s publishing)" in output
