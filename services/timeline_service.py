"""Project timeline model: expected vs. actual progress and schedule status."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Iterable, Optional

from services.progress_service import calculate_overall_progress
from utils.dates import as_date, days_between, resolve_today

AT_RISK_VARIANCE = -10


class TimelineStatus(StrEnum):
    """Schedule health of a project with a start and end date."""

    ON_TRACK = "on-track"
    AT_RISK = "at-risk"
    BEHIND = "behind"


def classify_variance(variance: float) -> TimelineStatus:
    """Map actual-minus-expected progress to a status.

    ``-10`` exactly is still at risk; only a larger shortfall is behind.
    """
    if variance >= 0:
        return TimelineStatus.ON_TRACK
    if variance >= AT_RISK_VARIANCE:
        return TimelineStatus.AT_RISK
    return TimelineStatus.BEHIND


def weeks_remaining(days_remaining: int) -> int:
    """Whole weeks left, rounded away from zero so an overdue project goes negative."""
    if days_remaining < 0:
        return -math.ceil(-days_remaining / 7)
    return math.ceil(days_remaining / 7)


def expected_progress(start: date, end: date, today: date) -> float:
    """Share of the schedule already elapsed, clamped to 0..100."""
    total_days = days_between(start, end)
    elapsed_days = max(0, days_between(start, today))
    if total_days <= 0:
        return 100.0 if today >= start else 0.0
    return min(100.0, max(0.0, elapsed_days / total_days * 100))


@dataclass
class ProjectTimeline:
    project: object
    start_date: date
    end_date: date
    total_days: int
    elapsed_days: int
    expected_progress: float
    actual_progress: float
    variance: float
    days_remaining: int
    weeks_remaining: int
    status: TimelineStatus
    is_overdue: bool

    @property
    def project_id(self):
        return getattr(self.project, "id", None)

    @property
    def status_label(self) -> str:
        """Status as printed in the report, e.g. ``BEHIND - OVERDUE``."""
        label = self.status.value.upper()
        if self.is_overdue:
            label = f"{label} - OVERDUE"
        return label

    def to_dict(self) -> dict[str, object]:
        return {
            "project_id": self.project_id,
            "name": getattr(self.project, "name", None),
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "total_days": self.total_days,
            "elapsed_days": self.elapsed_days,
            "expected_progress": self.expected_progress,
            "actual_progress": self.actual_progress,
            "variance": self.variance,
            "days_remaining": self.days_remaining,
            "weeks_remaining": self.weeks_remaining,
            "status": self.status.value,
            "is_overdue": self.is_overdue,
        }


def build_project_timeline(project, today: date | None = None) -> Optional[ProjectTimeline]:
    """Return the timeline for a scheduled project, ``None`` while planning."""
    start = as_date(getattr(project, "start_date", None))
    end = as_date(getattr(project, "end_date", None))
    if start is None or end is None:
        return None

    today = resolve_today(today)
    total_days = days_between(start, end)
    elapsed_days = max(0, days_between(start, today))
    expected = expected_progress(start, end, today)
    actual = calculate_overall_progress(project)
    variance = actual - expected
    days_remaining = days_between(today, end)

    return ProjectTimeline(
        project=project,
        start_date=start,
        end_date=end,
        total_days=total_days,
        elapsed_days=elapsed_days,
        expected_progress=expected,
        actual_progress=actual,
        variance=variance,
        days_remaining=days_remaining,
        weeks_remaining=weeks_remaining(days_remaining),
        status=classify_variance(variance),
        is_overdue=days_remaining < 0 and actual < 100,
    )


def partition_projects(
    projects: Iterable, today: date | None = None
) -> tuple[list[ProjectTimeline], list]:
    """Split projects into scheduled timelines and the planning list."""
    today = resolve_today(today)
    timelines: list[ProjectTimeline] = []
    planning: list = []
    for project in projects:
        timeline = build_project_timeline(project, today)
        if timeline is None:
            planning.append(project)
        else:
            timelines.append(timeline)
    return timelines, planning


@dataclass
class ProjectHealth:
    on_track: int
    at_risk: int
    behind: int
    overdue: int

    def to_dict(self) -> dict[str, int]:
        return {
            "on_track": self.on_track,
            "at_risk": self.at_risk,
            "behind": self.behind,
            "overdue": self.overdue,
        }


def summarize_project_health(timelines: Iterable[ProjectTimeline]) -> ProjectHealth:
    timeline_list = list(timelines)
    return ProjectHealth(
        on_track=sum(1 for t in timeline_list if t.status == TimelineStatus.ON_TRACK),
        at_risk=sum(1 for t in timeline_list if t.status == TimelineStatus.AT_RISK),
        behind=sum(1 for t in timeline_list if t.status == TimelineStatus.BEHIND),
        overdue=sum(1 for t in timeline_list if t.is_overdue),
    )


@dataclass
class ProgressSummary:
    total: int
    active: int
    completed: int
    not_started: int
    average_progress: float

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "active": self.active,
            "completed": self.completed,
            "not_started": self.not_started,
            "average_progress": self.average_progress,
        }


def summarize_project_progress(projects: Iterable) -> ProgressSummary:
    progress_values = [calculate_overall_progress(project) for project in projects]
    total = len(progress_values)
    return ProgressSummary(
        total=total,
        active=sum(1 for value in progress_values if 0 < value < 100),
        completed=sum(1 for value in progress_values if value >= 100),
        not_started=sum(1 for value in progress_values if value == 0),
        average_progress=sum(progress_values) / total if total else 0,
    )


__all__ = [
    "ProgressSummary",
    "ProjectHealth",
    "ProjectTimeline",
    "TimelineStatus",
    "build_project_timeline",
    "classify_variance",
    "expected_progress",
    "partition_projects",
    "summarize_project_health",
    "summarize_project_progress",
]
