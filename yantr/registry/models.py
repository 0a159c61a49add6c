"""Pydantic v2 models for the component registry.

The registry document describes every installable component.  Two of its
fields are shaped either as a flat list or as a keyed mapping; both shapes are
modelled here as explicit tagged variants so that resolution is a method call
on the variant rather than a type test at every call site:

* ``files``: :class:`FlatFiles` or :class:`FrameworkFiles`
* ``dependencies`` / ``devDependencies``: :class:`FlatDependencies` or
  :class:`KeyedDependencies`

Raw registry JSON (plain lists and dicts) is coerced into the tagged form by
``mode="before"`` validators, so ``Registry.model_validate(json_data)`` just
works.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

COMMON_KEY = "common"


# ---------------------------------------------------------------------------
# File lists
# ---------------------------------------------------------------------------


class FlatFiles(BaseModel):
    """The same ordered file list for every framework."""

    kind: Literal["flat"] = "flat"
    paths: list[str] = Field(default_factory=list)

    def for_framework(self, framework: str, default_framework: str) -> list[str]:
        return list(self.paths)


class FrameworkFiles(BaseModel):
    """File lists keyed by framework identifier (``express``, ``hono``, ...)."""

    kind: Literal["by_framework"] = "by_framework"
    by_framework: dict[str, list[str]] = Field(default_factory=dict)

    def for_framework(self, framework: str, default_framework: str) -> list[str]:
        """Return the list for *framework*, else the default framework's, else ``[]``.

        Only a missing key falls back; an explicit empty list is honoured.
        """
        if framework in self.by_framework:
            return list(self.by_framework[framework])
        return list(self.by_framework.get(default_framework, []))


FileSpec = Annotated[Union[FlatFiles, FrameworkFiles], Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Dependency lists
# ---------------------------------------------------------------------------


class FlatDependencies(BaseModel):
    """A plain package list, used verbatim."""

    kind: Literal["flat"] = "flat"
    packages: list[str] = Field(default_factory=list)

    def resolve(self) -> list[str]:
        return list(self.packages)


class KeyedDependencies(BaseModel):
    """Package lists keyed by discriminator.

    Only the ``"common"`` entry is consumed today; other keys are kept so the
    registry round-trips but are otherwise ignored.
    """

    kind: Literal["keyed"] = "keyed"
    by_key: dict[str, list[str]] = Field(default_factory=dict)

    def resolve(self) -> list[str]:
        return list(self.by_key.get(COMMON_KEY, []))


DependencySpec = Annotated[
    Union[FlatDependencies, KeyedDependencies], Field(discriminator="kind")
]


def _files_shape(value: Any) -> Any:
    if value is None:
        return {"kind": "flat", "paths": []}
    if isinstance(value, list):
        return {"kind": "flat", "paths": value}
    if isinstance(value, dict) and "kind" not in value:
        return {"kind": "by_framework", "by_framework": value}
    return value


def _dependencies_shape(value: Any) -> Any:
    if value is None:
        return {"kind": "flat", "packages": []}
    if isinstance(value, list):
        return {"kind": "flat", "packages": value}
    if isinstance(value, dict) and "kind" not in value:
        return {"kind": "keyed", "by_key": value}
    return value


# ---------------------------------------------------------------------------
# Variants and components
# ---------------------------------------------------------------------------


class Variant(BaseModel):
    """One concrete implementation choice of a varianted component."""

    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(default="", description="Variant key, e.g. 'postgres-prisma'")
    label: str = Field(default="")
    files: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    dev_dependencies: list[str] = Field(default_factory=list, alias="devDependencies")


class Component(BaseModel):
    """A named, independently installable unit of template files plus deps."""

    model_config = ConfigDict(populate_by_name=True)

    key: str = Field(default="", description="Registry key, e.g. 'auth'")
    name: str = Field(default="", description="Human-readable label")
    description: str = Field(default="")
    framework_specific: bool = Field(default=False, alias="frameworkSpecific")
    files: FileSpec = Field(default_factory=FlatFiles)
    dependencies: DependencySpec = Field(default_factory=FlatDependencies)
    dev_dependencies: DependencySpec = Field(
        default_factory=FlatDependencies, alias="devDependencies"
    )
    variants: dict[str, Variant] | None = Field(default=None)

    @field_validator("files", mode="before")
    @classmethod
    def _coerce_files(cls, value: Any) -> Any:
        return _files_shape(value)

    @field_validator("dependencies", "dev_dependencies", mode="before")
    @classmethod
    def _coerce_dependencies(cls, value: Any) -> Any:
        return _dependencies_shape(value)

    @model_validator(mode="after")
    def _stamp_variant_keys(self) -> "Component":
        if self.variants:
            for key, variant in self.variants.items():
                variant.key = key
        if not self.name:
            self.name = self.key
        return self

    @property
    def is_varianted(self) -> bool:
        return bool(self.variants)

    @property
    def label(self) -> str:
        return self.name or self.key

    def files_for(self, framework: str, default_framework: str) -> list[str]:
        """Resolve the file list to materialise for *framework*.

        A framework-keyed mapping is only meaningful for framework-specific
        components; anywhere else it yields no files.
        """
        if isinstance(self.files, FrameworkFiles) and not self.framework_specific:
            return []
        return self.files.for_framework(framework, default_framework)


class Registry(BaseModel):
    """The full component registry, loaded once per invocation."""

    version: str = Field(default="")
    components: dict[str, Component] = Field(...)

    @model_validator(mode="before")
    @classmethod
    def _stamp_component_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        components = data.get("components")
        if isinstance(components, dict):
            data = dict(data)
            data["components"] = {
                key: {**value, "key": key} if isinstance(value, dict) else value
                for key, value in components.items()
            }
        return data

    def get(self, name: str) -> Component | None:
        """Look up a component by registry key. Returns None if not found."""
        return self.components.get(name)

    def names(self) -> list[str]:
        return list(self.components)

    def __contains__(self, name: object) -> bool:
        return name in self.components
