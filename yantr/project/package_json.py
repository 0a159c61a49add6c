"""Project manifests written by ``yantr create``."""

from __future__ import annotations

from typing import Any

FRAMEWORK_DEPENDENCIES: dict[str, dict[str, str]] = {
    "express": {"express": "^4.21.2"},
    "hono": {"hono": "^4.6.0"},
    "fastify": {"fastify": "^5.1.0"},
}

FRAMEWORK_DEV_DEPENDENCIES: dict[str, dict[str, str]] = {
    "express": {"@types/express": "^5.0.0"},
    "hono": {},
    "fastify": {},
}

RUNTIME_SCRIPTS: dict[str, dict[str, str]] = {
    "node": {
        "dev": "tsx watch src/index.ts",
        "build": "tsc",
        "start": "node dist/index.js",
    },
    "bun": {
        "dev": "bun --watch src/index.ts",
        "start": "bun src/index.ts",
    },
}


def build_package_json(project_name: str, framework: str, runtime: str) -> dict[str, Any]:
    """Return the ``package.json`` document for a new project.

    Raises:
        KeyError: If *framework* or *runtime* is not supported.
    """
    dependencies = dict(FRAMEWORK_DEPENDENCIES[framework])
    dev_dependencies: dict[str, str] = {"typescript": "^5.6.0"}
    dev_dependencies.update(FRAMEWORK_DEV_DEPENDENCIES[framework])

    if runtime == "node":
        dev_dependencies["@types/node"] = "^22.0.0"
        dev_dependencies["tsx"] = "^4.19.0"
        if framework == "hono":
            dependencies["@hono/node-server"] = "^1.13.0"
    else:
        dev_dependencies["@types/bun"] = "latest"

    return {
        "name": project_name,
        "version": "0.1.0",
        "private": True,
        "type": "module",
        "scripts": dict(RUNTIME_SCRIPTS[runtime]),
        "dependencies": dict(sorted(dependencies.items())),
        "devDependencies": dict(sorted(dev_dependencies.items())),
    }


def build_tsconfig() -> dict[str, Any]:
    return {
        "compilerOptions": {
            "target": "ES2022",
            "module": "NodeNext",
            "moduleResolution": "NodeNext",
            "outDir": "dist",
            "rootDir": "src",
            "strict": True,
            "esModuleInterop": True,
            "skipLibCheck": True,
        },
        "include": ["src"],
    }
