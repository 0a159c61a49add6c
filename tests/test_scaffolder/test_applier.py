"""Unit tests for plan application (yantr.scaffolder.applier).

Tests cover:
- apply_item (files written flat, existing files kept/overwritten,
  fetch failure, write failure, empty file list)
- apply_items (recording in yantr.json, planning skips carried over,
  database config recorded, progress callback, undecodable or
  unexpectedly failing templates isolated to their component)
- install_dependencies (success, skipped, failure, manual commands,
  package manager that cannot be started)
- apply (end to end with a mocked installer)
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from yantr.installer import InstallError, install_packages
from yantr.project.config_store import (
    ConfigStore,
    DatabaseConfig,
    PackageManager,
)
from yantr.registry.models import Registry
from yantr.scaffolder.applier import Applier
from yantr.scaffolder.dependencies import DependencySet
from yantr.scaffolder.planner import (
    DatabaseChoice,
    PlanItem,
    ScaffoldPlan,
    ScaffoldPlanner,
    Selections,
)
from yantr.scaffolder.results import ItemStatus
from yantr.scaffolder.template_source import TemplateSource


def _applier(root: Path, source, installer=None, **kwargs) -> Applier:
    return Applier(root, ConfigStore(root), source.fetch, installer, **kwargs)


def _plan(registry: Registry, *components: str, database: DatabaseChoice | None = None) -> ScaffoldPlan:
    return ScaffoldPlanner(registry).plan(
        Selections(database=database, components=list(components)), "express", "./src"
    )


# ---------------------------------------------------------------------------
# apply_item
# ---------------------------------------------------------------------------


class TestApplyItem:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_writes_files_flat(self, initialized_project: Path, template_source):
        item = PlanItem(
            component="auth",
            target_dir="src/lib/yantr/auth",
            files=["shared/auth/jwt.ts", "shared/auth/refresh.ts"],
        )
        outcome = await _applier(initialized_project, template_source).apply_item(item)

        assert outcome.status == ItemStatus.APPLIED
        assert outcome.directory_created is True
        assert outcome.files_written == [
            "src/lib/yantr/auth/jwt.ts",
            "src/lib/yantr/auth/refresh.ts",
        ]
        written = initialized_project / "src/lib/yantr/auth/jwt.ts"
        assert written.read_text(encoding="utf-8") == "// template: shared/auth/jwt.ts\n"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_existing_file_kept(self, initialized_project: Path, template_source):
        target = initialized_project / "src/lib/yantr/logger"
        target.mkdir(parents=True)
        (target / "logger.ts").write_text("// customised\n", encoding="utf-8")
        item = PlanItem(component="logger", target_dir="src/lib/yantr/logger",
                        files=["shared/logger/logger.ts"])

        outcome = await _applier(initialized_project, template_source).apply_item(item)

        assert outcome.status == ItemStatus.APPLIED
        assert outcome.files_kept == ["src/lib/yantr/logger/logger.ts"]
        assert outcome.files_written == []
        assert (target / "logger.ts").read_text(encoding="utf-8") == "// customised\n"
        assert template_source.fetched == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_existing_file_overwritten(self, initialized_project: Path, template_source):
        target = initialized_project / "src/lib/yantr/logger"
        target.mkdir(parents=True)
        (target / "logger.ts").write_text("// customised\n", encoding="utf-8")
        item = PlanItem(component="logger", target_dir="src/lib/yantr/logger",
                        files=["shared/logger/logger.ts"])

        applier = _applier(initialized_project, template_source, overwrite=True)
        outcome = await applier.apply_item(item)

        assert outcome.files_written == ["src/lib/yantr/logger/logger.ts"]
        assert "template" in (target / "logger.ts").read_text(encoding="utf-8")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fetch_failure_stops_item(self, initialized_project: Path, make_template_source):
        source = make_template_source(failing={"shared/auth/jwt.ts"})
        item = PlanItem(
            component="auth",
            target_dir="src/lib/yantr/auth",
            files=["shared/auth/jwt.ts", "shared/auth/refresh.ts"],
        )
        outcome = await _applier(initialized_project, source).apply_item(item)

        assert outcome.status == ItemStatus.WARNED
        assert "shared/auth/jwt.ts" in outcome.reason
        assert outcome.directory_created is True
        assert outcome.files_written == []
        assert source.fetched == ["shared/auth/jwt.ts"]
        assert not (initialized_project / "src/lib/yantr/auth/refresh.ts").exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_directory_failure(self, initialized_project: Path, template_source):
        (initialized_project / "blocked").write_text("not a directory")
        item = PlanItem(component="auth", target_dir="blocked/auth", files=["a.ts"])

        outcome = await _applier(initialized_project, template_source).apply_item(item)

        assert outcome.status == ItemStatus.WARNED
        assert outcome.directory_created is False
        assert "could not create blocked/auth" in outcome.reason

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_files(self, initialized_project: Path, template_source):
        item = PlanItem(component="metrics", target_dir="src/lib/yantr/metrics",
                        dependencies=["prom-client"])
        outcome = await _applier(initialized_project, template_source).apply_item(item)
        assert outcome.status == ItemStatus.APPLIED
        assert (initialized_project / "src/lib/yantr/metrics").is_dir()


# ---------------------------------------------------------------------------
# apply_items
# ---------------------------------------------------------------------------


class TestApplyItems:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_records_components(
        self, initialized_project: Path, template_source, registry: Registry, project_config
    ):
        plan = _plan(registry, "logger", "auth")
        result = await _applier(initialized_project, template_source).apply_items(
            plan, project_config
        )

        assert result.applied == ["logger", "auth"]
        assert all(item.recorded for item in result.items)
        on_disk = ConfigStore(initialized_project).read()
        assert on_disk.installed_components == ["base", "logger", "auth"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_skips_come_first(
        self, initialized_project: Path, template_source, registry: Registry, project_config
    ):
        plan = _plan(registry, "logger", "foo")
        result = await _applier(initialized_project, template_source).apply_items(
            plan, project_config
        )
        assert [(i.component, i.status) for i in result.items] == [
            ("foo", ItemStatus.SKIPPED),
            ("logger", ItemStatus.APPLIED),
        ]
        assert result.warnings == ["foo: unknown component 'foo'"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fetch_failure_isolated(
        self, initialized_project: Path, registry: Registry, project_config, make_template_source
    ):
        source = make_template_source(failing={"shared/auth/jwt.ts"})
        plan = _plan(registry, "logger", "auth")
        result = await _applier(initialized_project, source).apply_items(plan, project_config)

        assert result.applied == ["logger"]
        assert (initialized_project / "src/lib/yantr/logger/logger.ts").is_file()
        auth = result.items[1]
        assert auth.status == ItemStatus.WARNED
        # directory exists, so the component is still recorded
        assert auth.recorded is True
        assert ConfigStore(initialized_project).read().has_component("logger")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_undecodable_template_isolated(
        self, initialized_project: Path, registry: Registry, project_config, templates_dir: Path
    ):
        (templates_dir / "shared/auth/jwt.ts").write_bytes(b"\xff\xfe// jwt\n")
        source = TemplateSource(templates_dir=templates_dir)
        plan = _plan(registry, "auth", "logger")

        result = await _applier(initialized_project, source).apply_items(plan, project_config)

        auth, logger = result.items
        assert auth.status == ItemStatus.WARNED
        assert "not valid UTF-8" in auth.reason
        assert auth.recorded is True
        assert logger.status == ItemStatus.APPLIED
        assert (initialized_project / "src/lib/yantr/logger/logger.ts").is_file()
        on_disk = ConfigStore(initialized_project).read()
        assert on_disk.installed_components == ["base", "auth", "logger"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unexpected_fetch_error_isolated(
        self, initialized_project: Path, registry: Registry, project_config, template_source
    ):
        async def fetch(path: str) -> str:
            if path.startswith("shared/auth/"):
                raise ValueError("bad template bytes")
            return await template_source.fetch(path)

        applier = Applier(initialized_project, ConfigStore(initialized_project), fetch)
        result = await applier.apply_items(_plan(registry, "auth", "logger"), project_config)

        assert result.items[0].status == ItemStatus.WARNED
        assert "shared/auth/jwt.ts" in result.items[0].reason
        assert "bad template bytes" in result.items[0].reason
        assert result.applied == ["logger"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_database_config_recorded(
        self, initialized_project: Path, template_source, registry: Registry, project_config
    ):
        plan = _plan(registry, database=DatabaseChoice(db_type="postgres", orm="prisma"))
        await _applier(initialized_project, template_source).apply_items(plan, project_config)

        on_disk = ConfigStore(initialized_project).read()
        assert on_disk.database == DatabaseConfig(type="postgres", orm="prisma")
        assert on_disk.has_component("database")
        assert (initialized_project / "src/lib/yantr/database/schema.prisma").is_file()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_reapply_does_not_duplicate(
        self, initialized_project: Path, template_source, registry: Registry, project_config
    ):
        applier = _applier(initialized_project, template_source)
        plan = _plan(registry, "logger")
        await applier.apply_items(plan, project_config)
        await applier.apply_items(plan, project_config)
        assert ConfigStore(initialized_project).read().installed_components == ["base", "logger"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unchanged_config_not_rewritten(
        self, initialized_project: Path, template_source, registry: Registry, project_config
    ):
        store = MagicMock(spec=ConfigStore)
        applier = Applier(initialized_project, store, template_source.fetch)
        await applier.apply_items(_plan(registry, "base"), project_config)
        store.write.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_on_item_callback(
        self, initialized_project: Path, template_source, registry: Registry, project_config
    ):
        seen: list[str] = []
        await _applier(initialized_project, template_source).apply_items(
            _plan(registry, "logger", "auth"),
            project_config,
            on_item=lambda item: seen.append(item.component),
        )
        assert seen == ["logger", "auth"]


# ---------------------------------------------------------------------------
# install_dependencies
# ---------------------------------------------------------------------------


class TestInstallDependencies:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_installs_prod_then_dev(self, tmp_path: Path, template_source, installer):
        applier = _applier(tmp_path, template_source, installer)
        deps = DependencySet(prod={"zod", "pino"}, dev={"pino-pretty"})

        result = await applier.install_dependencies(deps, PackageManager.PNPM)

        assert result.success is True
        assert result.skipped is False
        assert result.packages == ["pino", "zod"]
        assert installer.await_args_list[0].args == (PackageManager.PNPM, ["pino", "zod"], tmp_path, False)
        assert installer.await_args_list[1].args == (PackageManager.PNPM, ["pino-pretty"], tmp_path, True)

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_manual_commands(self, tmp_path: Path, template_source):
        applier = _applier(tmp_path, template_source)
        deps = DependencySet(prod={"zod"}, dev={"prisma"})

        result = await applier.install_dependencies(deps, PackageManager.NPM)

        assert result.skipped is True
        assert result.manual_commands == ["npm install zod", "npm install -D prisma"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_dev_no_dev_call(self, tmp_path: Path, template_source, installer):
        applier = _applier(tmp_path, template_source, installer)
        await applier.install_dependencies(DependencySet(prod={"zod"}), PackageManager.NPM)
        installer.assert_awaited_once()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_set_skipped(self, tmp_path: Path, template_source, installer):
        applier = _applier(tmp_path, template_source, installer)
        result = await applier.install_dependencies(DependencySet(), PackageManager.NPM)
        assert result.skipped is True
        installer.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_is_reported(self, tmp_path: Path, template_source):
        installer = AsyncMock(side_effect=InstallError("npm install zod failed: E404", "npm install zod"))
        applier = _applier(tmp_path, template_source, installer)

        result = await applier.install_dependencies(DependencySet(prod={"zod"}), PackageManager.NPM)

        assert result.success is False
        assert "E404" in result.error
        assert result.manual_commands == ["npm install zod"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unstartable_package_manager_reported(self, tmp_path: Path, template_source):
        applier = _applier(tmp_path, template_source, install_packages)
        with patch("yantr.installer.run_command", new_callable=AsyncMock) as mock_run:
            mock_run.side_effect = PermissionError(13, "Permission denied", "npm")
            result = await applier.install_dependencies(
                DependencySet(prod={"zod"}), PackageManager.NPM
            )

        assert result.success is False
        assert "could not run npm" in result.error
        assert result.manual_commands == ["npm install zod"]


# ---------------------------------------------------------------------------
# apply
# ---------------------------------------------------------------------------


class TestApply:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_full_run(
        self, initialized_project: Path, template_source, installer, registry: Registry, project_config
    ):
        plan = _plan(registry, "logger", "auth")
        result = await _applier(initialized_project, template_source, installer).apply(
            plan, project_config
        )

        assert result.clean is True
        assert sum(len(item.files_written) for item in result.items) == 3
        assert set(result.install.packages) == {"zod", "pino", "jsonwebtoken"}
        assert installer.await_count == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_install_failure_keeps_files(
        self, initialized_project: Path, template_source, registry: Registry, project_config
    ):
        installer = AsyncMock(side_effect=InstallError("npm is not installed or not on PATH"))
        result = await _applier(initialized_project, template_source, installer).apply(
            _plan(registry, "logger"), project_config
        )

        assert result.applied == ["logger"]
        assert result.warnings == ["dependencies: npm is not installed or not on PATH"]
        assert ConfigStore(initialized_project).read().has_component("logger")
