"""Shared pytest fixtures for the Yantr test suite.

Provides reusable fixtures for:
- A small in-memory registry (and the same registry on disk)
- An initialised project directory with ``yantr.json``
- A fake template source with per-path failure injection
- A mocked package installer
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from yantr.config import Settings
from yantr.project.config_store import ConfigStore, ProjectConfig, create_config
from yantr.registry.models import FlatFiles, Registry
from yantr.scaffolder.template_source import TemplateFetchError


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def _registry_document() -> dict[str, Any]:
    return {
        "version": "test",
        "components": {
            "base": {
                "name": "Base",
                "frameworkSpecific": True,
                "files": {
                    "express": ["express/base/error-handler.ts", "express/base/zod-middleware.ts"],
                    "hono": ["hono/base/error-handler.ts", "hono/base/zod-middleware.ts"],
                },
                "dependencies": {"common": ["zod"]},
                "devDependencies": [],
            },
            "database": {
                "name": "Database",
                "frameworkSpecific": False,
                "files": [],
                "dependencies": [],
                "devDependencies": [],
                "variants": {
                    "postgres-prisma": {
                        "label": "PostgreSQL + Prisma",
                        "files": ["database/postgres-prisma/client.ts", "database/postgres-prisma/schema.prisma"],
                        "dependencies": ["@prisma/client"],
                        "devDependencies": ["prisma"],
                    },
                    "mongodb-mongoose": {
                        "label": "MongoDB + Mongoose",
                        "files": ["database/mongodb-mongoose/client.ts"],
                        "dependencies": ["mongoose", "zod"],
                        "devDependencies": [],
                    },
                },
            },
            "logger": {
                "name": "Logger",
                "frameworkSpecific": False,
                "files": ["shared/logger/logger.ts"],
                "dependencies": ["pino"],
                "devDependencies": ["pino-pretty"],
            },
            "auth": {
                "name": "Authentication",
                "frameworkSpecific": False,
                "files": ["shared/auth/jwt.ts", "shared/auth/refresh.ts"],
                "dependencies": ["jsonwebtoken"],
                "devDependencies": {"common": ["@types/jsonwebtoken"]},
            },
            "security": {
                "name": "Security",
                "frameworkSpecific": True,
                "files": {
                    "express": ["express/security/rate-limit.ts", "express/security/helmet.ts"],
                    "hono": ["hono/security/rate-limit.ts"],
                },
                "dependencies": {"common": ["rate-limiter-flexible"], "express": ["helmet"]},
                "devDependencies": [],
            },
            "metrics": {
                "name": "Metrics",
                "frameworkSpecific": True,
                "files": {"hono": ["hono/metrics/prometheus.ts"]},
                "dependencies": ["prom-client"],
                "devDependencies": [],
            },
            "cron": {
                "name": "Cron",
                "frameworkSpecific": True,
                "files": {"hono": ["hono/cron/scheduler.ts"]},
                "dependencies": [],
                "devDependencies": [],
            },
        },
    }


@pytest.fixture
def registry_document() -> dict[str, Any]:
    """Raw registry JSON as it would be read from disk."""
    return _registry_document()


@pytest.fixture
def registry(registry_document: dict[str, Any]) -> Registry:
    """Validated registry built from :func:`registry_document`."""
    return Registry.model_validate(registry_document)


@pytest.fixture
def registry_file(tmp_path: Path, registry_document: dict[str, Any]) -> Path:
    """The test registry written to ``registry.json``."""
    path = tmp_path / "registry.json"
    path.write_text(json.dumps(registry_document), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Empty project directory (auto-cleanup)."""
    project_dir = tmp_path / "test-project"
    project_dir.mkdir()
    yield project_dir


@pytest.fixture
def project_config() -> ProjectConfig:
    return create_config("test-project", "./src", "npm", framework="express")


@pytest.fixture
def initialized_project(tmp_project_dir: Path, project_config: ProjectConfig) -> Path:
    """Project directory with a ``package.json`` and a fresh ``yantr.json``."""
    (tmp_project_dir / "package.json").write_text(
        json.dumps({"name": "test-project", "version": "1.0.0"}), encoding="utf-8"
    )
    ConfigStore(tmp_project_dir).write(project_config)
    return tmp_project_dir


@pytest.fixture
def templates_dir(tmp_path: Path, registry: Registry) -> Path:
    """Local template root holding every file the test registry refers to."""
    root = tmp_path / "templates"
    paths: set[str] = set()
    for component in registry.components.values():
        files = component.files
        if isinstance(files, FlatFiles):
            paths.update(files.paths)
        else:
            for framework_files in files.by_framework.values():
                paths.update(framework_files)
        for variant in (component.variants or {}).values():
            paths.update(variant.files)
    for rel in paths:
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(f"// {rel}\n", encoding="utf-8")
    return root


@pytest.fixture
def settings(registry_file: Path, templates_dir: Path) -> Settings:
    """Settings pointing at the on-disk test registry and local templates."""
    return Settings(registry_source=str(registry_file), templates_dir=templates_dir)


@pytest.fixture
def cli_env(
    monkeypatch: pytest.MonkeyPatch,
    registry_file: Path,
    templates_dir: Path,
    tmp_project_dir: Path,
) -> Path:
    """Run the CLI inside ``tmp_project_dir`` against the test registry."""
    monkeypatch.setenv("YANTR_REGISTRY", str(registry_file))
    monkeypatch.setenv("YANTR_TEMPLATES_DIR", str(templates_dir))
    monkeypatch.delenv("YANTR_TEMPLATES_URL", raising=False)
    monkeypatch.delenv("YANTR_TIMEOUT", raising=False)
    monkeypatch.delenv("YANTR_INSTALL_TIMEOUT", raising=False)
    monkeypatch.chdir(tmp_project_dir)
    return tmp_project_dir


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

class FakeTemplateSource:
    """Stands in for :class:`TemplateSource`; fails for paths in ``failing``."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.failing = set(failing or ())
        self.fetched: list[str] = []

    async def fetch(self, path: str) -> str:
        self.fetched.append(path)
        if path in self.failing:
            raise TemplateFetchError(path, "HTTP 404")
        return f"// template: {path}\n"


@pytest.fixture
def template_source() -> FakeTemplateSource:
    return FakeTemplateSource()


@pytest.fixture
def make_template_source():
    """Factory for template sources that fail on selected paths."""
    return FakeTemplateSource


@pytest.fixture
def installer() -> AsyncMock:
    """Package installer that always succeeds."""
    return AsyncMock(return_value=None)
