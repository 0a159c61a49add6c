"""Variant resolution for varianted components.

A varianted component (today only ``database``) keys its variants by a string
composed from ordered discriminators.  The order is a contract with the
registry's key naming: ``{db_type}-{orm}``, e.g. ``postgres-prisma``.
"""

from __future__ import annotations

from collections.abc import Sequence

from .models import Registry, Variant

DATABASE_COMPONENT = "database"
DATABASE_KEY_ORDER: tuple[str, ...] = ("db_type", "orm")
KEY_SEPARATOR = "-"


def compose_variant_key(discriminators: Sequence[str]) -> str:
    """Join *discriminators* into a variant key.

    Raises:
        ValueError: If any discriminator is empty. Callers must skip resolution
            entirely when a discriminator was not chosen.
    """
    if not discriminators or any(not d for d in discriminators):
        raise ValueError(f"Every discriminator is required, got {list(discriminators)!r}")
    return KEY_SEPARATOR.join(discriminators)


class VariantResolver:
    """Looks up variants of varianted components in a loaded registry."""

    def __init__(self, registry: Registry) -> None:
        self.registry = registry

    def resolve(self, component_name: str, discriminators: Sequence[str]) -> Variant | None:
        """Return the matching variant, or ``None`` when there is no such variant.

        Exact key match only. An unknown component, a component without
        variants, an unknown key and an incomplete set of discriminators all
        resolve to ``None``.
        """
        if not discriminators or not all(discriminators):
            return None
        key = compose_variant_key(discriminators)
        component = self.registry.get(component_name)
        if component is None or not component.variants:
            return None
        return component.variants.get(key)

    def available(self, component_name: str) -> list[str]:
        """List the variant keys of *component_name* (empty if none)."""
        component = self.registry.get(component_name)
        if component is None or not component.variants:
            return []
        return list(component.variants)
