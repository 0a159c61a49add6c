"""Yantr scaffolding pipeline.

Drives one invocation through its phases:

COLLECT  -- selections arrive from the CLI, already validated.
PLAN     -- resolve selections against the registry (pure).
APPLY    -- write files per component, record each in ``yantr.json``.
INSTALL  -- hand the aggregated dependency sets to the package manager once.

Fatal problems (registry or ``yantr.json`` unusable, ``create`` into a
non-empty directory) raise and end the run.  Everything else is collected in
the :class:`~yantr.scaffolder.results.ApplyResult` and reported at the end.
"""

from __future__ import annotations

import functools
from enum import Enum
from pathlib import Path

from yantr.config import Settings
from yantr.installer import install_packages
from yantr.project.config_store import ConfigStore, ProjectConfig
from yantr.registry.loader import load_registry
from yantr.registry.models import Registry
from yantr.scaffolder.applier import Applier, PackageInstaller
from yantr.scaffolder.dependencies import aggregate
from yantr.scaffolder.planner import ScaffoldPlan, ScaffoldPlanner, Selections
from yantr.scaffolder.results import ApplyResult, ItemStatus
from yantr.scaffolder.template_source import TemplateSource
from yantr.utils import (
    console,
    create_progress,
    print_info,
    print_success,
    print_summary_table,
    print_warning,
)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ProjectExistsError(Exception):
    """Raised when ``yantr create`` targets a non-empty directory or a file."""

    def __init__(self, path: Path, detail: str = "already exists and is not empty") -> None:
        self.path = path
        super().__init__(f'Directory "{path.name}" {detail}.')


class RunPhase(str, Enum):
    COLLECT = "collect"
    PLAN = "plan"
    APPLY = "apply"
    INSTALL = "install"
    DONE = "done"


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class ScaffoldPipeline:
    """Plans and applies one set of selections to one project.

    Attributes:
        settings: Tool settings for this invocation.
        project_root: Directory containing (or about to contain) ``yantr.json``.
        store: Configuration store for the project.
        phase: Current phase, for diagnostics.
    """

    def __init__(
        self,
        settings: Settings,
        project_root: str | Path,
        *,
        registry: Registry | None = None,
        template_source: TemplateSource | None = None,
        installer: PackageInstaller | None = None,
        skip_install: bool = False,
        overwrite: bool = False,
    ) -> None:
        self.settings = settings
        self.project_root = Path(project_root)
        self.store = ConfigStore(self.project_root, settings.config_file)
        self.template_source = template_source or TemplateSource.from_settings(settings)
        if installer is None and not skip_install:
            installer = functools.partial(install_packages, timeout=settings.install_timeout)
        self.installer = None if skip_install else installer
        self.overwrite = overwrite
        self.phase = RunPhase.COLLECT
        self._registry = registry

    async def load_registry(self) -> Registry:
        """Load the registry once; later calls reuse it.

        Raises:
            RegistryError: If the registry cannot be read or parsed.
        """
        if self._registry is None:
            self._registry = await load_registry(
                self.settings.registry_source, timeout=self.settings.request_timeout
            )
        return self._registry

    async def plan(self, selections: Selections, framework: str, src_dir: str) -> ScaffoldPlan:
        self.phase = RunPhase.PLAN
        registry = await self.load_registry()
        planner = ScaffoldPlanner(
            registry,
            default_framework=self.settings.default_framework,
            library_dir=self.settings.library_dir,
        )
        return planner.plan(selections, framework, src_dir)

    async def run(
        self,
        selections: Selections,
        config: ProjectConfig,
        framework: str | None = None,
    ) -> ApplyResult:
        """Plan *selections* and apply them to the project.

        Args:
            selections: Database choice and additional component names.
            config: Configuration read at the start of the run; updated in place.
            framework: Target framework; defaults to the project's, then the
                tool default.

        Raises:
            RegistryError: If the registry cannot be loaded.
            ConfigError: If ``yantr.json`` cannot be written.
        """
        framework = framework or config.framework or self.settings.default_framework
        plan = await self.plan(selections, framework, config.src_dir)

        applier = Applier(
            self.project_root,
            self.store,
            self.template_source.fetch,
            self.installer,
            overwrite=self.overwrite,
        )

        self.phase = RunPhase.APPLY
        with create_progress() as progress:
            task = progress.add_task("Preparing components...", total=None)
            result = await applier.apply_items(
                plan,
                config,
                on_item=lambda item: progress.update(
                    task, description=f"Adding {item.label or item.component}..."
                ),
            )

        # The package manager writes straight to the terminal, so no spinner here.
        self.phase = RunPhase.INSTALL
        deps = aggregate(plan)
        if self.installer is not None and not deps.is_empty:
            print_info("Installing dependencies...")
        result.install = await applier.install_dependencies(deps, config.package_manager)

        self.phase = RunPhase.DONE
        return result


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


def print_report(result: ApplyResult, cd_hint: str | None = None) -> None:
    """Render the end-of-run summary, warnings and install guidance."""
    if result.items:
        print_summary_table(result.summary_rows(), title="Components")

    for item in result.items:
        if item.status == ItemStatus.WARNED:
            print_warning(f"Could not fully add {item.component}: {item.reason}")
        elif item.status == ItemStatus.SKIPPED:
            print_warning(f"Skipped {item.component}: {item.reason}")

    install = result.install
    prefix = f"cd {cd_hint} && " if cd_hint else ""
    if install.skipped and install.manual_commands:
        print_info("Dependency installation skipped. Run:")
        for command in install.manual_commands:
            console.print(f"  [cyan]{prefix}{command}[/cyan]")
    elif not install.success:
        print_warning("Could not install dependencies automatically.")
        console.print(f"  [dim]{install.error}[/dim]")
        print_warning("Please run:")
        for command in install.manual_commands:
            console.print(f"  [cyan]{prefix}{command}[/cyan]")
    elif install.packages or install.dev_packages:
        print_success("Dependencies installed")
