"""Per-project state: ``yantr.json`` and project inspection helpers."""

from yantr.project.config_store import (
    BASE_COMPONENT,
    CONFIG_FILE,
    ConfigError,
    ConfigStore,
    DatabaseConfig,
    PackageManager,
    ProjectConfig,
    create_config,
)
from yantr.project.detect import default_src_dir, get_project_name, is_node_project

__all__ = [
    "BASE_COMPONENT",
    "CONFIG_FILE",
    "ConfigError",
    "ConfigStore",
    "DatabaseConfig",
    "PackageManager",
    "ProjectConfig",
    "create_config",
    "default_src_dir",
    "get_project_name",
    "is_node_project",
]
