"""Yantr scaffolder -- plans and applies component selections to a project.

Quick usage::

    from yantr.scaffolder import Applier, ScaffoldPlanner, Selections

    plan = ScaffoldPlanner(registry).plan(
        Selections(components=["auth", "logger"]), framework="express", src_dir="./src"
    )
    result = await Applier(project_root, store, source.fetch).apply(plan, config)
"""

from yantr.scaffolder.applier import Applier
from yantr.scaffolder.dependencies import BASELINE_DEPENDENCIES, DependencySet, aggregate
from yantr.scaffolder.planner import (
    DatabaseChoice,
    PlanItem,
    ScaffoldPlan,
    ScaffoldPlanner,
    Selections,
)
from yantr.scaffolder.results import ApplyResult, InstallResult, ItemResult, ItemStatus
from yantr.scaffolder.template_source import TemplateFetchError, TemplateSource
from yantr.scaffolder.templates import TemplateRenderer

__all__ = [
    "Applier",
    "ApplyResult",
    "BASELINE_DEPENDENCIES",
    "DatabaseChoice",
    "DependencySet",
    "InstallResult",
    "ItemResult",
    "ItemStatus",
    "PlanItem",
    "ScaffoldPlan",
    "ScaffoldPlanner",
    "Selections",
    "TemplateFetchError",
    "TemplateRenderer",
    "TemplateSource",
    "aggregate",
]
