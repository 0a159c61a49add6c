"""Yantr command-line entry point.

Usage::

    yantr create my-api --framework hono --db-type postgres --orm prisma -c auth -c logger
    yantr init --framework express
    yantr add auth logger
    yantr add database --type mongodb --orm mongoose
    yantr generate route users
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from pydantic import ValidationError

from yantr import __version__
from yantr.commands import add, create, generate, init
from yantr.config import FRAMEWORKS, RUNTIMES, Settings
from yantr.pipeline import ProjectExistsError
from yantr.project.config_store import ConfigError, PackageManager
from yantr.registry.loader import RegistryError
from yantr.utils import console

PACKAGE_MANAGERS = [pm.value for pm in PackageManager]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="yantr",
        description="A Shadcn for Backend -- production-grade backend scaffolding",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  yantr create my-api --framework hono\n"
            "  yantr add auth logger\n"
            "  yantr add database --type postgres --orm prisma\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--no-install",
        action="store_true",
        help="Do not run the package manager; print the commands instead",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_create = sub.add_parser("create", help="Create a new project")
    p_create.add_argument("project_name", help="Name of the project folder to create")
    p_create.add_argument("-f", "--framework", choices=FRAMEWORKS, default="express")
    p_create.add_argument("-r", "--runtime", choices=RUNTIMES, default="node")
    p_create.add_argument("-t", "--db-type", help="Database type: postgres, mongodb, none")
    p_create.add_argument("--orm", help="ORM: prisma, drizzle, mongoose")
    p_create.add_argument(
        "-c", "--component",
        dest="components",
        action="append",
        default=[],
        help="Additional component to add (repeatable)",
    )
    p_create.add_argument("--package-manager", choices=PACKAGE_MANAGERS)

    p_init = sub.add_parser("init", help="Initialize Yantr in an existing project")
    p_init.add_argument("-f", "--framework", choices=FRAMEWORKS)
    p_init.add_argument("--src-dir", help="Source directory (default: ./src if present)")
    p_init.add_argument("--package-manager", choices=PACKAGE_MANAGERS)
    p_init.add_argument("--force", action="store_true", help="Overwrite an existing yantr.json")

    p_add = sub.add_parser("add", help="Add components to your project")
    p_add.add_argument("components", nargs="+", help="auth, logger, database, security, ...")
    p_add.add_argument("-o", "--overwrite", action="store_true", help="Overwrite existing files")
    p_add.add_argument("-t", "--type", dest="db_type", help="Database type for the database component")
    p_add.add_argument("--orm", help="ORM for the database component")

    p_gen = sub.add_parser("generate", aliases=["g"], help="Generate boilerplate code")
    p_gen.add_argument("type", help="Type of code to generate (route)")
    p_gen.add_argument("name", help="Name of the resource")

    return parser


async def _dispatch(args: argparse.Namespace, settings: Settings, cwd: Path) -> int:
    if args.command == "create":
        return await create(
            settings,
            args.project_name,
            cwd=cwd,
            framework=args.framework,
            runtime=args.runtime,
            db_type=args.db_type,
            orm=args.orm,
            components=args.components,
            package_manager=args.package_manager,
            skip_install=args.no_install,
        )
    if args.command == "init":
        return await init(
            settings,
            cwd=cwd,
            framework=args.framework,
            src_dir=args.src_dir,
            package_manager=args.package_manager,
            force=args.force,
            skip_install=args.no_install,
        )
    if args.command == "add":
        return await add(
            settings,
            args.components,
            cwd=cwd,
            db_type=args.db_type,
            orm=args.orm,
            overwrite=args.overwrite,
            skip_install=args.no_install,
        )
    return await generate(settings, args.type, args.name, cwd=cwd)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``yantr``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except (ValidationError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] Invalid YANTR_* environment settings: {exc}")
        sys.exit(1)

    try:
        code = asyncio.run(_dispatch(args, settings, Path.cwd()))
    except (RegistryError, ConfigError, ProjectExistsError) as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("[yellow]Aborted.[/yellow]")
        sys.exit(130)

    sys.exit(code)


if __name__ == "__main__":
    main()
