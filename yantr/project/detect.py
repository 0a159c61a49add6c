"""Inspect an existing Node.js project to pre-fill ``yantr init``."""

from __future__ import annotations

import json
from pathlib import Path

from yantr.utils import load_json

PACKAGE_JSON = "package.json"


def is_node_project(cwd: str | Path) -> bool:
    """True when *cwd* contains a ``package.json``."""
    return (Path(cwd) / PACKAGE_JSON).is_file()


def get_project_name(cwd: str | Path) -> str | None:
    """Return ``name`` from ``package.json``, or ``None`` if absent/unreadable."""
    pkg_path = Path(cwd) / PACKAGE_JSON
    if not pkg_path.is_file():
        return None
    try:
        pkg = load_json(pkg_path)
    except (OSError, json.JSONDecodeError):
        return None
    name = pkg.get("name") if isinstance(pkg, dict) else None
    return name or None


def has_src_directory(cwd: str | Path) -> bool:
    return (Path(cwd) / "src").is_dir()


def default_src_dir(cwd: str | Path) -> str:
    """``./src`` when the project has one, otherwise the project root."""
    return "./src" if has_src_directory(cwd) else "."
