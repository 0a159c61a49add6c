"""Execute a scaffold plan against a project directory.

Items are applied strictly in plan order, one file at a time.  A fetch or
write failure only affects the item it happens in: the item is reported as
``WARNED`` and the run moves on.  Whatever reached the "directory created"
step is recorded in ``installedComponents`` and the configuration is written
back immediately, so an interrupted run still leaves a truthful ``yantr.json``.

Configuration I/O errors are *not* caught here; they are fatal for the run.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path, PurePosixPath

from yantr.installer import InstallError, get_add_command
from yantr.project.config_store import (
    ConfigStore,
    DatabaseConfig,
    PackageManager,
    ProjectConfig,
)
from yantr.registry.resolver import DATABASE_COMPONENT
from yantr.utils import ensure_dir, write_file

from .dependencies import DependencySet, aggregate
from .planner import PlanItem, ScaffoldPlan
from .results import ApplyResult, InstallResult, ItemResult, ItemStatus
from .template_source import TemplateFetchError

TemplateFetcher = Callable[[str], Awaitable[str]]
PackageInstaller = Callable[[PackageManager, list[str], Path, bool], Awaitable[None]]


class Applier:
    """Materialises plan items, records them, and installs dependencies.

    Args:
        project_root: Directory that plan target paths are relative to.
        store: Store for the project's ``yantr.json``.
        fetch_template: Async callable returning template text for a registry path.
        install: Async package installer ``(pm, packages, cwd, is_dev)``; ``None``
            skips installation and only reports the manual commands.
        overwrite: Replace files that already exist instead of keeping them.
    """

    def __init__(
        self,
        project_root: str | Path,
        store: ConfigStore,
        fetch_template: TemplateFetcher,
        install: PackageInstaller | None = None,
        *,
        overwrite: bool = False,
    ) -> None:
        self.project_root = Path(project_root)
        self.store = store
        self.fetch_template = fetch_template
        self.install = install
        self.overwrite = overwrite

    async def apply(self, plan: ScaffoldPlan, config: ProjectConfig) -> ApplyResult:
        """Apply every plan item, then install the aggregated dependencies once.

        *config* is the configuration read at the start of the run; it is
        mutated in place and written after each recorded component.

        Raises:
            ConfigError: If ``yantr.json`` cannot be written.
        """
        result = await self.apply_items(plan, config)
        result.install = await self.install_dependencies(
            aggregate(plan), config.package_manager
        )
        return result

    async def apply_items(
        self,
        plan: ScaffoldPlan,
        config: ProjectConfig,
        on_item: Callable[[PlanItem], None] | None = None,
    ) -> ApplyResult:
        """Apply and record every plan item without installing anything.

        Planning skips come first in the result, followed by one outcome per
        plan item in plan order. *on_item* is called before each item starts.
        """
        result = ApplyResult(items=list(plan.skipped))
        for item in plan.items:
            if on_item is not None:
                on_item(item)
            outcome = await self.apply_item(item)
            if outcome.directory_created:
                self._record(item, config)
                outcome.recorded = True
            result.items.append(outcome)
        return result

    async def apply_item(self, item: PlanItem) -> ItemResult:
        """Create the item's directory and write each of its files."""
        outcome = ItemResult(
            component=item.component,
            status=ItemStatus.APPLIED,
            target_dir=item.target_dir,
        )
        target = self.project_root / item.target_dir

        try:
            await asyncio.to_thread(ensure_dir, target)
        except OSError as exc:
            outcome.status = ItemStatus.WARNED
            outcome.reason = f"could not create {item.target_dir}: {exc}"
            return outcome
        outcome.directory_created = True

        for template_path in item.files:
            # registry layout is flattened at the destination
            file_name = PurePosixPath(template_path).name
            relative = str(PurePosixPath(item.target_dir) / file_name)
            destination = target / file_name

            if destination.exists() and not self.overwrite:
                outcome.files_kept.append(relative)
                continue

            try:
                content = await self.fetch_template(template_path)
            except TemplateFetchError as exc:
                outcome.status = ItemStatus.WARNED
                outcome.reason = str(exc)
                return outcome
            except Exception as exc:
                # any fetcher failure stays scoped to this item
                outcome.status = ItemStatus.WARNED
                outcome.reason = f"Failed to fetch template {template_path}: {exc}"
                return outcome

            try:
                await write_file(destination, content)
            except OSError as exc:
                outcome.status = ItemStatus.WARNED
                outcome.reason = f"could not write {relative}: {exc}"
                return outcome
            outcome.files_written.append(relative)

        return outcome

    async def install_dependencies(
        self, deps: DependencySet, package_manager: PackageManager
    ) -> InstallResult:
        """Hand both package sets to the installer; failure is only a warning."""
        prod, dev = deps.sorted_prod(), deps.sorted_dev()
        manual: list[str] = []
        if prod:
            manual.append(get_add_command(package_manager, prod))
        if dev:
            manual.append(get_add_command(package_manager, dev, is_dev=True))

        result = InstallResult(packages=prod, dev_packages=dev, manual_commands=manual)
        if self.install is None or deps.is_empty:
            result.skipped = True
            return result

        try:
            if prod:
                await self.install(package_manager, prod, self.project_root, False)
            if dev:
                await self.install(package_manager, dev, self.project_root, True)
        except InstallError as exc:
            result.success = False
            result.error = str(exc)
        return result

    # -- Helpers -----------------------------------------------------------

    def _record(self, item: PlanItem, config: ProjectConfig) -> None:
        changed = config.add_component(item.component)
        if item.component == DATABASE_COMPONENT and item.discriminators:
            db_type, orm = item.discriminators
            database = DatabaseConfig(type=db_type, orm=orm)
            if config.database != database:
                config.database = database
                changed = True
        if changed:
            self.store.write(config)
