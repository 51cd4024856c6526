"""Explicit in-memory view of the tracker state handed to aggregations."""

from __future__ import annotations

from dataclasses import dataclass, field

from models.project import Project
from services.resource_service import get_resource_settings


@dataclass
class TrackerSnapshot:
    """Projects (with their stages and tasks) plus the resource pool."""

    projects: list = field(default_factory=list)
    settings: object = None

    @property
    def stages(self) -> list:
        return [stage for project in self.projects for stage in (project.stages or [])]

    @property
    def tasks(self) -> list:
        return [task for project in self.projects for task in (project.tasks or [])]


def load_snapshot() -> TrackerSnapshot:
    """Read every project and the settings singleton from the database."""
    projects = Project.query.order_by(Project.id).all()
    return TrackerSnapshot(projects=projects, settings=get_resource_settings())


__all__ = ["TrackerSnapshot", "load_snapshot"]
