"""Turn component selections into a concrete scaffold plan.

Planning is pure: it reads only the registry and its arguments, touches no
files, and yields the same plan for the same inputs.  Selections that cannot
be planned (unknown component, missing variant, nothing to install) become
``SKIPPED`` results on the plan instead of exceptions, so one bad selection
never stops the others.
"""

from __future__ import annotations

from pathlib import PurePosixPath

from pydantic import BaseModel, Field

from yantr.project.config_store import BASE_COMPONENT
from yantr.registry.models import Registry
from yantr.registry.resolver import (
    DATABASE_COMPONENT,
    DATABASE_KEY_ORDER,
    VariantResolver,
    compose_variant_key,
)

from .results import ItemResult

DEFAULT_FRAMEWORK = "express"
LIBRARY_DIR = "lib/yantr"


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class DatabaseChoice(BaseModel):
    """A database type and ORM. Either may be missing when not chosen."""

    db_type: str | None = None
    orm: str | None = None

    @property
    def discriminators(self) -> tuple[str, ...] | None:
        """``(db_type, orm)`` in variant-key order, or None if incomplete."""
        values = tuple(getattr(self, field) for field in DATABASE_KEY_ORDER)
        if not all(values):
            return None
        return values


class Selections(BaseModel):
    """Validated user selections for one run."""

    database: DatabaseChoice | None = None
    components: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


class PlanItem(BaseModel):
    """Resolved actions for one selected component."""

    component: str
    label: str = ""
    target_dir: str = Field(..., description="Directory relative to the project root")
    files: list[str] = Field(default_factory=list, description="Registry template paths")
    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list)
    discriminators: tuple[str, ...] | None = Field(
        default=None, description="Variant discriminators, for varianted components"
    )

    @property
    def variant_key(self) -> str | None:
        return compose_variant_key(self.discriminators) if self.discriminators else None


class ScaffoldPlan(BaseModel):
    """Ordered plan items plus the selections that were skipped while planning."""

    framework: str
    src_dir: str
    items: list[PlanItem] = Field(default_factory=list)
    skipped: list[ItemResult] = Field(default_factory=list)

    def component_names(self) -> list[str]:
        return [item.component for item in self.items]

    def get(self, component: str) -> PlanItem | None:
        for item in self.items:
            if item.component == component:
                return item
        return None


# ---------------------------------------------------------------------------
# Planner
# ---------------------------------------------------------------------------


class ScaffoldPlanner:
    """Builds :class:`ScaffoldPlan` objects from a loaded registry."""

    def __init__(
        self,
        registry: Registry,
        default_framework: str = DEFAULT_FRAMEWORK,
        library_dir: str = LIBRARY_DIR,
    ) -> None:
        self.registry = registry
        self.resolver = VariantResolver(registry)
        self.default_framework = default_framework
        self.library_dir = library_dir

    def target_dir(self, src_dir: str, component: str) -> str:
        """``<src_dir>/<library_dir>/<component>``; ``base`` sits at the library root."""
        root = PurePosixPath(src_dir) / self.library_dir
        if component == BASE_COMPONENT:
            return str(root)
        return str(root / component)

    def plan(self, selections: Selections, framework: str, src_dir: str) -> ScaffoldPlan:
        """Resolve *selections* against the registry.

        The database choice (if any) is planned first, then the additional
        components in selection order. Repeated names are planned once.
        """
        plan = ScaffoldPlan(framework=framework, src_dir=src_dir)
        seen: set[str] = set()

        if selections.database is not None:
            seen.add(DATABASE_COMPONENT)
            self._plan_database(plan, selections.database)

        for name in selections.components:
            if name in seen:
                continue
            seen.add(name)
            self._plan_component(plan, name)

        return plan

    # -- Helpers -----------------------------------------------------------

    def _plan_database(self, plan: ScaffoldPlan, choice: DatabaseChoice) -> None:
        discriminators = choice.discriminators
        if discriminators is None:
            missing = "ORM" if choice.db_type else "database type"
            plan.skipped.append(
                ItemResult.skipped(
                    DATABASE_COMPONENT, f"no {missing} chosen, database setup skipped"
                )
            )
            return

        variant = self.resolver.resolve(DATABASE_COMPONENT, discriminators)
        if variant is None:
            key = compose_variant_key(discriminators)
            available = ", ".join(self.resolver.available(DATABASE_COMPONENT)) or "none"
            plan.skipped.append(
                ItemResult.skipped(
                    DATABASE_COMPONENT,
                    f"variant '{key}' not found (available: {available})",
                )
            )
            return

        plan.items.append(
            PlanItem(
                component=DATABASE_COMPONENT,
                label=variant.label or variant.key,
                target_dir=self.target_dir(plan.src_dir, DATABASE_COMPONENT),
                files=list(variant.files),
                dependencies=list(variant.dependencies),
                dev_dependencies=list(variant.dev_dependencies),
                discriminators=discriminators,
            )
        )

    def _plan_component(self, plan: ScaffoldPlan, name: str) -> None:
        component = self.registry.get(name)
        if component is None:
            plan.skipped.append(ItemResult.skipped(name, f"unknown component '{name}'"))
            return
        if component.is_varianted:
            plan.skipped.append(
                ItemResult.skipped(name, "requires a variant selection (type and ORM)")
            )
            return

        files = component.files_for(plan.framework, self.default_framework)
        dependencies = component.dependencies.resolve()
        dev_dependencies = component.dev_dependencies.resolve()

        if not files and not dependencies and not dev_dependencies:
            reason = (
                f"no files for framework '{plan.framework}'"
                if component.framework_specific
                else "component has no files or dependencies"
            )
            plan.skipped.append(ItemResult.skipped(name, reason))
            return

        plan.items.append(
            PlanItem(
                component=name,
                label=component.label,
                target_dir=self.target_dir(plan.src_dir, name),
                files=files,
                dependencies=dependencies,
                dev_dependencies=dev_dependencies,
            )
        )
