"""Command workflows behind ``yantr create|init|add|generate``.

Each coroutine returns the process exit code.  Fatal errors
(:class:`~yantr.registry.loader.RegistryError`,
:class:`~yantr.project.config_store.ConfigError`,
:class:`~yantr.pipeline.ProjectExistsError`) are raised, not handled, so the
CLI entry point can print them and exit with status 1.
"""

from __future__ import annotations

from pathlib import Path

from yantr.config import Settings
from yantr.installer import detect_package_manager, get_install_command, get_run_command
from yantr.pipeline import ProjectExistsError, ScaffoldPipeline, print_report
from yantr.project.config_store import (
    BASE_COMPONENT,
    ConfigStore,
    PackageManager,
    create_config,
)
from yantr.project.detect import default_src_dir, get_project_name, is_node_project
from yantr.project.package_json import build_package_json, build_tsconfig
from yantr.registry.resolver import DATABASE_COMPONENT
from yantr.scaffolder.planner import DatabaseChoice, Selections
from yantr.scaffolder.templates import TemplateRenderer, slugify
from yantr.utils import (
    console,
    ensure_dir,
    is_empty_dir,
    print_created,
    print_error,
    print_header,
    print_info,
    print_success,
    print_warning,
    save_json,
)

GENERATE_TYPES: tuple[str, ...] = ("route",)
DEFAULT_PORT = 3000


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


async def create(
    settings: Settings,
    project_name: str,
    *,
    cwd: Path,
    framework: str = "express",
    runtime: str = "node",
    db_type: str | None = None,
    orm: str | None = None,
    components: list[str] | None = None,
    package_manager: str | None = None,
    skip_install: bool = False,
) -> int:
    """Create a new project directory with base templates and selected components."""
    print_header("yantr create")
    target = (cwd / project_name).resolve()
    if target.exists() and not target.is_dir():
        raise ProjectExistsError(target, "exists and is not a directory")
    if target.exists() and not is_empty_dir(target):
        raise ProjectExistsError(target)

    pipeline = ScaffoldPipeline(settings, target, skip_install=skip_install)
    # Fail on a broken registry before anything is written.
    await pipeline.load_registry()

    print_info(f"Creating project in [cyan]{project_name}[/cyan]")
    ensure_dir(target)

    pm = PackageManager(package_manager or detect_package_manager(cwd) or PackageManager.NPM)
    save_json(build_package_json(project_name, framework, runtime), target / "package.json")
    print_created("package.json")
    save_json(build_tsconfig(), target / "tsconfig.json")
    print_created("tsconfig.json")

    config = create_config(
        project_name, "./src", pm, framework=framework, schema_url=settings.schema_url
    )
    pipeline.store.write(config)
    print_created(settings.config_file)

    renderer = TemplateRenderer()
    await renderer.render_to_file(
        f"entry/{framework}.ts.j2",
        target / "src" / "index.ts",
        {"project_name": project_name, "port": DEFAULT_PORT, "runtime": runtime},
    )
    print_created("src/index.ts")

    database = None
    if db_type and db_type != "none":
        database = DatabaseChoice(db_type=db_type, orm=orm)
    selections = Selections(
        database=database,
        components=[BASE_COMPONENT, *(components or [])],
    )
    result = await pipeline.run(selections, config, framework)
    print_report(result, cd_hint=project_name)

    print_info("Next steps:")
    console.print(f"  1. [cyan]cd {project_name}[/cyan]")
    step = 2
    if not result.install.success or result.install.skipped:
        console.print(f"  {step}. Install dependencies: [cyan]{get_install_command(pm)}[/cyan]")
        step += 1
    if config.database is None:
        console.print(f"  {step}. Add database: [cyan]yantr add database --type postgres --orm prisma[/cyan]")
        step += 1
    console.print(f"  {step}. Generate routes: [cyan]yantr generate route users[/cyan]")
    console.print(f"  {step + 1}. Start the server: [cyan]{get_run_command(pm, 'dev')}[/cyan]")

    print_success(f"{project_name} created with {framework}!")
    return 0


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


async def init(
    settings: Settings,
    *,
    cwd: Path,
    framework: str | None = None,
    src_dir: str | None = None,
    package_manager: str | None = None,
    force: bool = False,
    skip_install: bool = False,
) -> int:
    """Initialise Yantr in an existing project and add the base component."""
    print_header("yantr init")
    store = ConfigStore(cwd, settings.config_file)
    if store.exists() and not force:
        print_warning(f"{settings.config_file} already exists. Use --force to re-initialise.")
        return 0
    if not is_node_project(cwd):
        print_warning("No package.json found; continuing anyway.")

    pipeline = ScaffoldPipeline(settings, cwd, skip_install=skip_install)
    await pipeline.load_registry()

    config = create_config(
        get_project_name(cwd) or cwd.name,
        src_dir or default_src_dir(cwd),
        package_manager or detect_package_manager(cwd) or PackageManager.NPM,
        framework=framework or settings.default_framework,
        schema_url=settings.schema_url,
    )
    store.write(config)
    print_created(settings.config_file)

    result = await pipeline.run(Selections(components=[BASE_COMPONENT]), config)
    print_report(result)
    print_success("Yantr initialized successfully!")
    return 0


# ---------------------------------------------------------------------------
# add
# ---------------------------------------------------------------------------


async def add(
    settings: Settings,
    components: list[str],
    *,
    cwd: Path,
    db_type: str | None = None,
    orm: str | None = None,
    overwrite: bool = False,
    skip_install: bool = False,
) -> int:
    """Add one or more components to an initialised project."""
    print_header(f"yantr add {' '.join(components)}")
    store = ConfigStore(cwd, settings.config_file)
    config = store.read()

    pipeline = ScaffoldPipeline(settings, cwd, skip_install=skip_install, overwrite=overwrite)
    registry = await pipeline.load_registry()

    database: DatabaseChoice | None = None
    flat: list[str] = []
    for name in components:
        if config.has_component(name) and not overwrite:
            print_warning(f"{name} is already installed. Use --overwrite to re-add it.")
            continue
        if name == DATABASE_COMPONENT:
            database = DatabaseChoice(db_type=db_type, orm=orm)
        else:
            flat.append(name)

    if database is None and not flat:
        return 0

    result = await pipeline.run(Selections(database=database, components=flat), config)
    print_report(result)

    unknown = [name for name in flat if name not in registry]
    if unknown:
        print_info(f"Available components: {', '.join(registry.names())}")
    if result.applied:
        print_success(f"Added {', '.join(result.applied)}")
    return 0


# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


async def generate(settings: Settings, kind: str, name: str, *, cwd: Path) -> int:
    """Render boilerplate (currently route modules) into the project."""
    print_header(f"yantr generate {kind} {name}")
    if kind not in GENERATE_TYPES:
        print_error(f"Unknown type: {kind}")
        print_info(f"Available types: {', '.join(GENERATE_TYPES)}")
        return 1

    config = ConfigStore(cwd, settings.config_file).read()
    framework = config.framework or settings.default_framework
    renderer = TemplateRenderer()
    template = f"routes/{framework}.ts.j2"
    if not renderer.has_template(template):
        template = f"routes/{settings.default_framework}.ts.j2"

    slug = slugify(name)
    relative = Path(config.src_dir) / "routes" / f"{slug}.routes.ts"
    destination = cwd / relative
    if destination.exists():
        print_warning(f"{relative.as_posix()} already exists; leaving it untouched.")
        return 0

    await renderer.render_to_file(template, destination, {"name": slug})
    print_created(relative.as_posix())
    print_success(f'{kind} "{name}" generated successfully!')
    return 0
