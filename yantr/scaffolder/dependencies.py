"""Merge per-component dependency contributions into two package sets."""

from __future__ import annotations

from pydantic import BaseModel, Field

from .planner import ScaffoldPlan

# Generated error-handling middleware validates with zod.
BASELINE_DEPENDENCIES: tuple[str, ...] = ("zod",)


class DependencySet(BaseModel):
    """Deduplicated production and development packages for a whole plan."""

    prod: set[str] = Field(default_factory=set)
    dev: set[str] = Field(default_factory=set)

    def sorted_prod(self) -> list[str]:
        return sorted(self.prod)

    def sorted_dev(self) -> list[str]:
        return sorted(self.dev)

    @property
    def is_empty(self) -> bool:
        return not self.prod and not self.dev


def aggregate(plan: ScaffoldPlan) -> DependencySet:
    """Union every plan item's contributions; the baseline is always present."""
    deps = DependencySet(prod=set(BASELINE_DEPENDENCIES))
    for item in plan.items:
        deps.prod.update(item.dependencies)
        deps.dev.update(item.dev_dependencies)
    return deps
