"""Outcome models for one scaffolding run.

Every planned or attempted component ends up as exactly one
:class:`ItemResult`; the install step ends up as one :class:`InstallResult`.
:class:`ApplyResult` aggregates both, and the end-of-run report is derived from
it without re-inspecting the file system.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, computed_field


class ItemStatus(str, Enum):
    """Terminal state of one component in a run."""
    APPLIED = "applied"
    SKIPPED = "skipped"
    WARNED = "warned"


class ItemResult(BaseModel):
    """What happened to a single selected component."""

    component: str = Field(..., description="Registry key of the component")
    status: ItemStatus
    reason: str = Field(default="", description="Why it was skipped or warned")
    target_dir: str = Field(default="", description="Project-relative target directory")
    files_written: list[str] = Field(default_factory=list)
    files_kept: list[str] = Field(
        default_factory=list, description="Existing files left untouched"
    )
    directory_created: bool = Field(default=False)
    recorded: bool = Field(
        default=False, description="Whether the component is now in installedComponents"
    )

    @classmethod
    def skipped(cls, component: str, reason: str) -> "ItemResult":
        return cls(component=component, status=ItemStatus.SKIPPED, reason=reason)


class InstallResult(BaseModel):
    """Outcome of handing the dependency sets to the package manager."""

    success: bool = Field(default=True)
    skipped: bool = Field(default=False, description="Installation was not attempted")
    packages: list[str] = Field(default_factory=list)
    dev_packages: list[str] = Field(default_factory=list)
    manual_commands: list[str] = Field(
        default_factory=list, description="Equivalent commands for the user to run"
    )
    error: str = Field(default="")


class ApplyResult(BaseModel):
    """Aggregated result of planning, applying and installing."""

    items: list[ItemResult] = Field(default_factory=list)
    install: InstallResult = Field(default_factory=InstallResult)

    def by_status(self, status: ItemStatus) -> list[ItemResult]:
        return [item for item in self.items if item.status == status]

    @computed_field  # type: ignore[misc]
    @property
    def applied(self) -> list[str]:
        return [item.component for item in self.by_status(ItemStatus.APPLIED)]

    @computed_field  # type: ignore[misc]
    @property
    def warnings(self) -> list[str]:
        """Human-readable warning lines, in item order, install last."""
        lines = [
            f"{item.component}: {item.reason}"
            for item in self.items
            if item.status != ItemStatus.APPLIED
        ]
        if not self.install.success:
            lines.append(f"dependencies: {self.install.error}")
        return lines

    @computed_field  # type: ignore[misc]
    @property
    def clean(self) -> bool:
        """True when nothing was skipped or warned."""
        return not self.warnings

    def summary_rows(self) -> list[tuple[str, str, str]]:
        """Rows for the end-of-run table: (component, status, details)."""
        rows: list[tuple[str, str, str]] = []
        for item in self.items:
            if item.status == ItemStatus.APPLIED:
                detail = f"{len(item.files_written)} file(s) in {item.target_dir}"
                if item.files_kept:
                    detail += f", {len(item.files_kept)} kept"
                rows.append((item.component, "[green]applied[/green]", detail))
            elif item.status == ItemStatus.WARNED:
                rows.append((item.component, "[yellow]warned[/yellow]", item.reason))
            else:
                rows.append((item.component, "[dim]skipped[/dim]", item.reason))
        return rows
