"""Package-manager detection, command building and installation.

Yantr never resolves versions itself; it hands package names to the project's
package manager.  :func:`install_packages` is the only function here with a
side effect and it raises :class:`InstallError` on any failure so callers can
decide whether that is fatal (it never is for scaffolding runs).
"""

from __future__ import annotations

from pathlib import Path

from yantr.project.config_store import PackageManager
from yantr.utils import run_command

# Checked in this order; the first lockfile found wins.
LOCKFILES: dict[str, PackageManager] = {
    "pnpm-lock.yaml": PackageManager.PNPM,
    "yarn.lock": PackageManager.YARN,
    "package-lock.json": PackageManager.NPM,
    "bun.lockb": PackageManager.BUN,
}

_ADD_VERB: dict[PackageManager, str] = {
    PackageManager.NPM: "install",
    PackageManager.PNPM: "add",
    PackageManager.YARN: "add",
    PackageManager.BUN: "add",
}

_DEV_FLAG: dict[PackageManager, str] = {
    PackageManager.NPM: "-D",
    PackageManager.PNPM: "-D",
    PackageManager.YARN: "-D",
    PackageManager.BUN: "-d",
}


class InstallError(Exception):
    """Raised when the package manager could not install the requested packages."""

    def __init__(self, message: str, command: str = "") -> None:
        self.command = command
        super().__init__(message)


def detect_package_manager(cwd: str | Path) -> PackageManager | None:
    """Guess the package manager from the lockfile present in *cwd*."""
    root = Path(cwd)
    for lockfile, pm in LOCKFILES.items():
        if (root / lockfile).exists():
            return pm
    return None


def get_install_command(pm: PackageManager | str) -> str:
    """Command that installs everything already listed in package.json."""
    pm = PackageManager(pm)
    if pm == PackageManager.YARN:
        return "yarn"
    return f"{pm.value} install"


def add_args(pm: PackageManager | str, packages: list[str], is_dev: bool = False) -> list[str]:
    """argv (without the executable) that adds *packages* to the project."""
    pm = PackageManager(pm)
    args = [_ADD_VERB[pm]]
    if is_dev:
        args.append(_DEV_FLAG[pm])
    args.extend(packages)
    return args


def get_add_command(pm: PackageManager | str, packages: list[str], is_dev: bool = False) -> str:
    """Human-readable equivalent of :func:`install_packages`, e.g. ``pnpm add -D prisma``."""
    pm = PackageManager(pm)
    return " ".join([pm.value, *add_args(pm, packages, is_dev)])


def get_run_command(pm: PackageManager | str, script: str) -> str:
    pm = PackageManager(pm)
    if pm in (PackageManager.NPM, PackageManager.BUN):
        return f"{pm.value} run {script}"
    return f"{pm.value} {script}"


async def install_packages(
    pm: PackageManager | str,
    packages: list[str],
    cwd: str | Path,
    is_dev: bool = False,
    timeout: int = 600,
) -> None:
    """Install *packages* into the project at *cwd*.

    Output is streamed to the terminal rather than captured.

    Raises:
        InstallError: If the package manager is missing or cannot be started,
            times out, or exits non-zero.
    """
    pm = PackageManager(pm)
    if not packages:
        return
    command = get_add_command(pm, packages, is_dev)
    try:
        returncode, _, stderr = await run_command(
            [pm.value, *add_args(pm, packages, is_dev)],
            cwd=cwd,
            timeout=timeout,
            capture=False,
        )
    except FileNotFoundError:
        raise InstallError(f"{pm.value} is not installed or not on PATH", command) from None
    except OSError as exc:
        raise InstallError(f"could not run {pm.value}: {exc}", command) from None
    if returncode != 0:
        detail = stderr or f"exit code {returncode}"
        raise InstallError(f"{command} failed: {detail}", command)
