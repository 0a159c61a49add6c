"""Yantr component registry -- models, loading and variant resolution.

Quick usage::

    from yantr.registry import VariantResolver, load_registry

    registry = await load_registry(settings.registry_source)
    variant = VariantResolver(registry).resolve("database", ["postgres", "prisma"])
"""

from yantr.registry.loader import RegistryError, load_registry, parse_registry
from yantr.registry.models import (
    Component,
    FlatDependencies,
    FlatFiles,
    FrameworkFiles,
    KeyedDependencies,
    Registry,
    Variant,
)
from yantr.registry.resolver import (
    DATABASE_COMPONENT,
    VariantResolver,
    compose_variant_key,
)

__all__ = [
    "Component",
    "DATABASE_COMPONENT",
    "FlatDependencies",
    "FlatFiles",
    "FrameworkFiles",
    "KeyedDependencies",
    "Registry",
    "RegistryError",
    "Variant",
    "VariantResolver",
    "compose_variant_key",
    "load_registry",
    "parse_registry",
]
