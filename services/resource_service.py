"""Resource ledger: headcount allocated to stages against the company pool."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Optional

from database import db
from models.resource_settings import ResourceSettings
from services.errors import ValidationFailure
from services.progress_service import stage_needs_resources

NEAR_CAPACITY_PERCENT = 90


def _total(settings, attribute: str, key: str) -> int:
    if settings is None:
        return 0
    if isinstance(settings, dict):
        return int(settings.get(key) or 0)
    return int(getattr(settings, attribute, 0) or 0)


def utilization_percent(utilized: int, total: int) -> float:
    """Allocated share of the pool; 0 for an empty pool, may exceed 100."""
    if total <= 0:
        return 0.0
    return utilized / total * 100


@dataclass
class ResourceLedger:
    total_devops: int
    total_engineers: int
    utilized_devops: int
    utilized_engineers: int
    stage_count: int
    stages_needing_resources: list = field(default_factory=list)

    @property
    def free_devops(self) -> int:
        return max(0, self.total_devops - self.utilized_devops)

    @property
    def free_engineers(self) -> int:
        return max(0, self.total_engineers - self.utilized_engineers)

    @property
    def devops_utilization(self) -> float:
        return utilization_percent(self.utilized_devops, self.total_devops)

    @property
    def engineers_utilization(self) -> float:
        return utilization_percent(self.utilized_engineers, self.total_engineers)

    @property
    def stages_with_resources(self) -> int:
        return self.stage_count - len(self.stages_needing_resources)

    @property
    def avg_devops_per_stage(self) -> float:
        # Unassigned stages would drag the average towards zero.
        return self.utilized_devops / max(1, self.stages_with_resources)

    @property
    def avg_engineers_per_stage(self) -> float:
        return self.utilized_engineers / max(1, self.stages_with_resources)

    @property
    def potential_new_stages(self) -> Optional[int]:
        """Stages the free pool could staff at the current average.

        ``None`` means unbounded: no stage holds resources yet, so there is
        no basis for an estimate.
        """
        capacities = []
        if self.avg_devops_per_stage > 0:
            capacities.append(self.free_devops / self.avg_devops_per_stage)
        if self.avg_engineers_per_stage > 0:
            capacities.append(self.free_engineers / self.avg_engineers_per_stage)
        if not capacities:
            return None
        return math.floor(min(capacities))

    def to_dict(self) -> dict[str, object]:
        return {
            "totalDevops": self.total_devops,
            "totalEngineers": self.total_engineers,
            "utilized": {"devops": self.utilized_devops, "engineers": self.utilized_engineers},
            "available": {"devops": self.free_devops, "engineers": self.free_engineers},
            "utilization": {
                "devops": self.devops_utilization,
                "engineers": self.engineers_utilization,
            },
            "avg_per_stage": {
                "devops": self.avg_devops_per_stage,
                "engineers": self.avg_engineers_per_stage,
            },
            "potential_new_stages": self.potential_new_stages,
            "stage_count": self.stage_count,
            "stages_needing_resources": [
                getattr(stage, "id", None) for stage in self.stages_needing_resources
            ],
        }


def build_resource_ledger(stages: Iterable, settings) -> ResourceLedger:
    """Aggregate stage allocations against the pool in ``settings``.

    ``settings`` may be a ``ResourceSettings`` row or a
    ``{"totalDevops", "totalEngineers"}`` mapping.
    """
    stage_list = list(stages)
    return ResourceLedger(
        total_devops=_total(settings, "total_devops", "totalDevops"),
        total_engineers=_total(settings, "total_engineers", "totalEngineers"),
        utilized_devops=sum(stage.devops or 0 for stage in stage_list),
        utilized_engineers=sum(stage.engineers or 0 for stage in stage_list),
        stage_count=len(stage_list),
        stages_needing_resources=[s for s in stage_list if stage_needs_resources(s)],
    )


def project_resource_breakdown(projects: Iterable, settings) -> list[dict[str, object]]:
    """Per-project sub-ledgers over each project's own stages."""
    breakdown = []
    for project in projects:
        ledger = build_resource_ledger(getattr(project, "stages", None) or [], settings)
        breakdown.append(
            {
                "project_id": project.id,
                "name": project.name,
                "devops": ledger.utilized_devops,
                "engineers": ledger.utilized_engineers,
                "devops_share": ledger.devops_utilization,
                "engineers_share": ledger.engineers_utilization,
                "stages_needing_resources": len(ledger.stages_needing_resources),
            }
        )
    return breakdown


def get_resource_settings() -> ResourceSettings:
    """Return the settings singleton, creating the row on first use."""
    settings = ResourceSettings.query.order_by(ResourceSettings.id).first()
    if settings is None:
        settings = ResourceSettings(total_devops=0, total_engineers=0)
        db.session.add(settings)
        db.session.flush()
    return settings


def _coerce_headcount(value, field_name: str) -> int:
    if value is None or value == "":
        return 0
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationFailure(
            f"{field_name} must be a whole number.",
            errors={field_name: ["Must be a whole number."]},
        )
    if number < 0:
        raise ValidationFailure(
            f"{field_name} cannot be negative.",
            errors={field_name: ["Cannot be negative."]},
        )
    return number


def update_resource_settings(total_devops, total_engineers) -> ResourceSettings:
    """Replace both pool totals; missing values reset to 0."""
    settings = get_resource_settings()
    settings.total_devops = _coerce_headcount(total_devops, "totalDevops")
    settings.total_engineers = _coerce_headcount(total_engineers, "totalEngineers")
    return settings


__all__ = [
    "ResourceLedger",
    "build_resource_ledger",
    "get_resource_settings",
    "project_resource_breakdown",
    "update_resource_settings",
    "utilization_percent",
]
