"""Stage progress model.

Overall project progress is the percentage-weighted sum of stage progress,
and the project schedule is split into consecutive per-stage date ranges
proportional to each stage's percentage.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional, Sequence

from services.errors import ValidationFailure
from utils.dates import as_date, days_between, resolve_today

AT_RISK_WINDOW_DAYS = 3
AT_RISK_PROGRESS_THRESHOLD = 80


def ordered_stages(project) -> list:
    """Return the project's stages sorted by ``order_index``."""
    stages = getattr(project, "stages", None) or []
    return sorted(stages, key=lambda stage: stage.order_index or 0)


def stage_contribution(stage) -> float:
    """Share of overall project progress contributed by one stage."""
    return (stage.percentage or 0) * (stage.progress or 0) / 100


def calculate_overall_progress(project) -> float:
    """Percentage-weighted completion of a project (0 when it has no stages).

    No rounding is applied; callers format the value for display.
    """
    stages = getattr(project, "stages", None) or []
    if not stages:
        return 0
    return sum(stage_contribution(stage) for stage in stages)


def validate_stage_percentages(stages: Sequence) -> None:
    """Raise ``ValidationFailure`` unless a non-empty stage list totals 100%."""
    if not stages:
        return
    total = sum(_field(stage, "percentage") or 0 for stage in stages)
    if total != 100:
        raise ValidationFailure(
            f"Lifecycle stages must total 100% (currently {total}%).",
            errors={"stages": [f"Stage percentages total {total}%, expected 100%."]},
        )


def _field(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


@dataclass
class StageRange:
    """Derived schedule window for a stage."""

    stage: object
    start_date: date
    end_date: date
    days_until_deadline: int
    is_overdue: bool
    is_at_risk: bool

    @property
    def stage_id(self):
        return getattr(self.stage, "id", None)

    def to_dict(self) -> dict[str, object]:
        return {
            "stage_id": self.stage_id,
            "name": getattr(self.stage, "name", None),
            "percentage": getattr(self.stage, "percentage", 0),
            "progress": getattr(self.stage, "progress", 0),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "days_until_deadline": self.days_until_deadline,
            "is_overdue": self.is_overdue,
            "is_at_risk": self.is_at_risk,
        }


def derive_stage_ranges(
    project,
    stages: Optional[Iterable] = None,
    today: date | None = None,
) -> list[StageRange]:
    """Split the project schedule into consecutive stage windows.

    Each stage spans ``round(percentage / 100 * total_days)`` days in
    ``order_index`` order and starts the day after the previous stage ends.
    Ends never run past the project end date and the last stage always ends
    on it, so rounding drift cannot move the final deadline.
    """
    start = as_date(getattr(project, "start_date", None))
    end = as_date(getattr(project, "end_date", None))
    if start is None or end is None:
        return []

    today = resolve_today(today)
    if stages is None:
        stage_list = ordered_stages(project)
    else:
        stage_list = sorted(stages, key=lambda stage: stage.order_index or 0)
    total_days = days_between(start, end)

    ranges: list[StageRange] = []
    cumulative_days = 0
    for index, stage in enumerate(stage_list):
        # a stage rounded down to zero days still occupies its start day
        stage_days = max(_round_half_up((stage.percentage or 0) / 100 * total_days), 1)
        stage_start = min(start + timedelta(days=cumulative_days), end)
        stage_end = start + timedelta(days=cumulative_days + stage_days - 1)
        cumulative_days += stage_days

        if index == len(stage_list) - 1 or stage_end > end:
            stage_end = end

        ranges.append(_build_range(stage, stage_start, stage_end, today))
    return ranges


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _build_range(stage, stage_start: date, stage_end: date, today: date) -> StageRange:
    progress = stage.progress or 0
    days_until_deadline = days_between(today, stage_end)
    is_overdue = stage_end < today and progress < 100
    is_at_risk = (
        0 <= days_until_deadline <= AT_RISK_WINDOW_DAYS
        and progress < AT_RISK_PROGRESS_THRESHOLD
    )
    return StageRange(
        stage=stage,
        start_date=stage_start,
        end_date=stage_end,
        days_until_deadline=days_until_deadline,
        is_overdue=is_overdue,
        is_at_risk=is_at_risk,
    )


def stage_week_range(start_percent: float, percentage: float) -> tuple[int, int]:
    """Planned week span of a stage on a ten-week percentage scale."""
    start_week = math.floor(start_percent / 10)
    end_week = math.ceil((start_percent + percentage) / 10)
    return start_week, end_week


def stage_positions(project) -> list[dict[str, object]]:
    """Cumulative start/end percentages per stage, as drawn on the Gantt chart."""
    positions = []
    cumulative = 0
    for stage in ordered_stages(project):
        start_percent = cumulative
        cumulative += stage.percentage or 0
        start_week, end_week = stage_week_range(start_percent, stage.percentage or 0)
        positions.append(
            {
                "stage_id": stage.id,
                "name": stage.name,
                "start_percent": start_percent,
                "end_percent": cumulative,
                "contribution": stage_contribution(stage),
                "week_range": f"Week {start_week} - {end_week}",
            }
        )
    return positions


@dataclass
class StageStatusSummary:
    total: int
    completed: int
    in_progress: int
    not_started: int
    needing_resources: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "completed": self.completed,
            "in_progress": self.in_progress,
            "not_started": self.not_started,
            "needing_resources": self.needing_resources,
        }


def stage_needs_resources(stage) -> bool:
    return not (stage.devops or 0) and not (stage.engineers or 0)


def summarize_stage_statuses(stages: Iterable) -> StageStatusSummary:
    stage_list = list(stages)
    completed = in_progress = not_started = needing = 0
    for stage in stage_list:
        progress = stage.progress or 0
        if progress >= 100:
            completed += 1
        elif progress > 0:
            in_progress += 1
        else:
            not_started += 1
        if stage_needs_resources(stage):
            needing += 1
    return StageStatusSummary(
        total=len(stage_list),
        completed=completed,
        in_progress=in_progress,
        not_started=not_started,
        needing_resources=needing,
    )


__all__ = [
    "StageRange",
    "StageStatusSummary",
    "calculate_overall_progress",
    "derive_stage_ranges",
    "ordered_stages",
    "stage_contribution",
    "stage_needs_resources",
    "stage_positions",
    "stage_week_range",
    "summarize_stage_statuses",
    "validate_stage_percentages",
]
