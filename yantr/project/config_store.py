"""Persisted project configuration (``yantr.json``).

``yantr.json`` at the project root is the single durable record of what Yantr
has applied to a project.  The schema is strict: unknown keys, missing
required keys and wrong types are all rejected, and a rejected file is a
fatal :class:`ConfigError` for the run.

Writes always replace the whole file; callers read, modify and write back.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from yantr.config import DEFAULT_SCHEMA_URL
from yantr.utils import dump_json

CONFIG_FILE = "yantr.json"
BASE_COMPONENT = "base"


class ConfigError(Exception):
    """Raised when ``yantr.json`` is missing, unreadable, invalid or unwritable."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        super().__init__(f"{path}: {message}")


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class PackageManager(str, Enum):
    """Package managers Yantr knows how to drive."""
    NPM = "npm"
    PNPM = "pnpm"
    YARN = "yarn"
    BUN = "bun"


class DatabaseConfig(BaseModel):
    """The database/ORM pair chosen for a project."""

    model_config = ConfigDict(extra="forbid")

    type: str = Field(..., min_length=1, description="Database type, e.g. 'postgres'")
    orm: str = Field(..., min_length=1, description="ORM, e.g. 'prisma'")


class ProjectConfig(BaseModel):
    """In-memory form of ``yantr.json``."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    schema_url: str | None = Field(default=None, alias="$schema")
    project_name: str = Field(..., alias="projectName", min_length=1)
    src_dir: str = Field(..., alias="srcDir")
    package_manager: PackageManager = Field(..., alias="packageManager")
    installed_components: list[str] = Field(..., alias="installedComponents")
    framework: str | None = Field(default=None)
    database: DatabaseConfig | None = Field(default=None)

    @field_validator("installed_components")
    @classmethod
    def _unique_components(cls, value: list[str]) -> list[str]:
        # set semantics, first occurrence wins
        return list(dict.fromkeys(value))

    def has_component(self, name: str) -> bool:
        return name in self.installed_components

    def add_component(self, name: str) -> bool:
        """Append *name* if absent. Returns True when the set changed."""
        if name in self.installed_components:
            return False
        self.installed_components.append(name)
        return True

    def to_json_dict(self) -> dict:
        """Serialise with the on-disk key names, omitting unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def create_config(
    project_name: str,
    src_dir: str,
    package_manager: PackageManager | str,
    framework: str | None = None,
    schema_url: str = DEFAULT_SCHEMA_URL,
) -> ProjectConfig:
    """Build the initial configuration for a freshly initialised project."""
    return ProjectConfig(
        schema_url=schema_url,
        project_name=project_name,
        src_dir=src_dir,
        package_manager=PackageManager(package_manager),
        installed_components=[BASE_COMPONENT],
        framework=framework,
    )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ConfigStore:
    """Reads and writes ``yantr.json`` for one project root."""

    def __init__(self, project_root: str | Path, filename: str = CONFIG_FILE) -> None:
        self.project_root = Path(project_root)
        self.path = self.project_root / filename

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> ProjectConfig:
        """Load and strictly validate the configuration.

        Raises:
            ConfigError: If the file is missing, unreadable, not JSON, or does
                not match the schema.
        """
        if not self.exists():
            raise ConfigError(self.path, 'not found. Run "yantr init" first.')
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(self.path, f"cannot be read ({exc})") from None
        except UnicodeDecodeError as exc:
            raise ConfigError(self.path, f"is not valid UTF-8 ({exc.reason})") from None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigError(self.path, f"is not valid JSON ({exc.msg})") from None
        try:
            return ProjectConfig.model_validate(data)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in exc.errors()
            )
            raise ConfigError(self.path, f"invalid configuration ({problems})") from None

    def write(self, config: ProjectConfig) -> None:
        """Overwrite the file with *config*.

        Raises:
            ConfigError: If the file cannot be written.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(dump_json(config.to_json_dict()), encoding="utf-8")
        except OSError as exc:
            raise ConfigError(self.path, f"cannot be written ({exc})") from None

    def add_installed_component(self, name: str) -> ProjectConfig:
        """Read-modify-write: append *name* to ``installedComponents`` if absent."""
        config = self.read()
        if config.add_component(name):
            self.write(config)
        return config

    def set_database_config(self, db_type: str, orm: str) -> ProjectConfig:
        """Read-modify-write: record the chosen database/ORM pair."""
        config = self.read()
        config.database = DatabaseConfig(type=db_type, orm=orm)
        self.write(config)
        return config
