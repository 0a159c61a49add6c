"""Yantr tool configuration.

Typed settings for a single CLI invocation. Everything here describes *where*
the tool reads its inputs from (registry, templates) and the fixed layout it
writes into a project; the per-project state lives in ``yantr.json`` and is
handled by :mod:`yantr.project.config_store`.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

BUNDLED_REGISTRY = Path(__file__).parent / "registry" / "registry.json"

DEFAULT_TEMPLATES_URL = (
    "https://raw.githubusercontent.com/SibilSoren/yantr-js/main/cli/registry/templates"
)
DEFAULT_SCHEMA_URL = (
    "https://raw.githubusercontent.com/SibilSoren/yantr-js/main/cli/schema.json"
)

FRAMEWORKS: tuple[str, ...] = ("express", "hono", "fastify")
RUNTIMES: tuple[str, ...] = ("node", "bun")


class Settings(BaseModel):
    """Global Yantr settings.

    Instances are created once by the CLI entry point (usually through
    :meth:`from_env`) and passed to the pipeline; nothing below reads
    environment variables on its own.
    """

    registry_source: str = Field(
        default=str(BUNDLED_REGISTRY),
        description="Path or http(s) URL of the component registry document",
    )
    templates_url: str = Field(
        default=DEFAULT_TEMPLATES_URL,
        description="Base URL that template paths from the registry are joined onto",
    )
    templates_dir: Path | None = Field(
        default=None,
        description="Local template root; when set, templates are read from disk",
    )
    request_timeout: int = Field(default=30, ge=1, description="HTTP timeout in seconds")
    install_timeout: int = Field(
        default=600, ge=10, description="Package manager timeout in seconds"
    )
    default_framework: str = Field(default="express")
    library_dir: str = Field(
        default="lib/yantr",
        description="Namespace under srcDir that receives component files",
    )
    config_file: str = Field(default="yantr.json")
    schema_url: str = Field(default=DEFAULT_SCHEMA_URL)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            YANTR_REGISTRY, YANTR_TEMPLATES_URL, YANTR_TEMPLATES_DIR,
            YANTR_TIMEOUT, YANTR_INSTALL_TIMEOUT.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("YANTR_REGISTRY"):
            kwargs["registry_source"] = os.environ["YANTR_REGISTRY"]
        if os.environ.get("YANTR_TEMPLATES_URL"):
            kwargs["templates_url"] = os.environ["YANTR_TEMPLATES_URL"]
        if os.environ.get("YANTR_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["YANTR_TEMPLATES_DIR"])
        if os.environ.get("YANTR_TIMEOUT"):
            kwargs["request_timeout"] = int(os.environ["YANTR_TIMEOUT"])
        if os.environ.get("YANTR_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["YANTR_INSTALL_TIMEOUT"])
        return cls(**kwargs)
