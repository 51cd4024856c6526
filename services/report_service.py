"""Weekly status report.

Combines the project timelines, the resource ledger, stage and task
aggregates into a risk list, recommendations and a plain-text export used
for both download and print.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import StrEnum
from typing import Optional

from services.progress_service import StageStatusSummary, summarize_stage_statuses
from services.resource_service import NEAR_CAPACITY_PERCENT, ResourceLedger, build_resource_ledger
from services.snapshot import TrackerSnapshot
from services.task_service import TaskSummary, summarize_tasks
from services.timeline_service import (
    ProgressSummary,
    ProjectHealth,
    ProjectTimeline,
    partition_projects,
    summarize_project_health,
    summarize_project_progress,
)
from utils.dates import as_date, resolve_today

REPORT_WIDTH = 80
LABEL_WIDTH = 20
FREE_CAPACITY_THRESHOLD = 3


class RiskLevel(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"


@dataclass
class Risk:
    level: RiskLevel
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"level": self.level.value, "message": self.message}


def week_window(selected: date | datetime | None = None) -> tuple[date, date]:
    """Monday and Sunday of the ISO week containing ``selected``."""
    selected = resolve_today(selected)
    week_start = selected - timedelta(days=selected.weekday())
    return week_start, week_start + timedelta(days=6)


def assess_risks(
    health: ProjectHealth,
    ledger: ResourceLedger,
    stages: StageStatusSummary,
    tasks: TaskSummary,
) -> list[Risk]:
    """Evaluate every trigger independently, in a fixed order."""
    risks: list[Risk] = []
    if health.overdue > 0:
        risks.append(Risk(RiskLevel.HIGH, f"{health.overdue} project(s) are overdue"))
    if health.behind > 0:
        risks.append(
            Risk(RiskLevel.HIGH, f"{health.behind} project(s) significantly behind schedule")
        )
    if health.at_risk > 0:
        risks.append(Risk(RiskLevel.MEDIUM, f"{health.at_risk} project(s) at risk of delay"))
    if stages.needing_resources > 0:
        risks.append(
            Risk(
                RiskLevel.MEDIUM,
                f"{stages.needing_resources} stage(s) have no resources assigned",
            )
        )
    if tasks.overdue:
        risks.append(Risk(RiskLevel.MEDIUM, f"{len(tasks.overdue)} task(s) are overdue"))
    if ledger.devops_utilization > NEAR_CAPACITY_PERCENT:
        risks.append(Risk(RiskLevel.MEDIUM, "DevOps resources near capacity (>90%)"))
    if ledger.engineers_utilization > NEAR_CAPACITY_PERCENT:
        risks.append(Risk(RiskLevel.MEDIUM, "Engineering resources near capacity (>90%)"))
    if ledger.free_devops == 0 or ledger.free_engineers == 0:
        risks.append(Risk(RiskLevel.HIGH, "No available resources for new work"))
    return risks


def build_recommendations(
    progress: ProgressSummary,
    health: ProjectHealth,
    ledger: ResourceLedger,
    stages: StageStatusSummary,
    tasks: TaskSummary,
) -> list[str]:
    recommendations: list[str] = []
    if stages.needing_resources > 0:
        recommendations.append(
            f"Assign resources to {stages.needing_resources} unassigned stage(s) "
            "to begin tracking progress"
        )
    if health.behind > 0:
        recommendations.append(
            f"Review and reallocate resources for {health.behind} behind-schedule project(s)"
        )
    if ledger.free_devops > FREE_CAPACITY_THRESHOLD or ledger.free_engineers > FREE_CAPACITY_THRESHOLD:
        recommendations.append(
            f"Consider taking on new projects - {ledger.free_devops} DevOps "
            f"and {ledger.free_engineers} Engineers available"
        )
    if tasks.overdue:
        recommendations.append(f"Address {len(tasks.overdue)} overdue task(s) as priority")
    if progress.not_started > 0:
        recommendations.append(
            f"{progress.not_started} project(s) have not started - review kickoff schedules"
        )
    return recommendations


@dataclass
class WeeklyReport:
    week_start: date
    week_end: date
    today: date
    generated_at: datetime
    progress: ProgressSummary
    health: ProjectHealth
    ledger: ResourceLedger
    stages: StageStatusSummary
    tasks: TaskSummary
    timelines: list[ProjectTimeline] = field(default_factory=list)
    planning_projects: list = field(default_factory=list)
    tasks_due_this_week: list = field(default_factory=list)
    risks: list[Risk] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def high_risk_count(self) -> int:
        return sum(1 for risk in self.risks if risk.level == RiskLevel.HIGH)

    def to_dict(self) -> dict[str, object]:
        return {
            "week_start": self.week_start.isoformat(),
            "week_end": self.week_end.isoformat(),
            "generated_at": self.generated_at.isoformat(),
            "executive_summary": self.progress.to_dict(),
            "project_health": self.health.to_dict(),
            "resources": self.ledger.to_dict(),
            "stages": self.stages.to_dict(),
            "tasks": self.tasks.to_dict(),
            "projects": [_timeline_details(timeline) for timeline in self.timelines],
            "planning_projects": [
                {
                    "id": project.id,
                    "name": project.name,
                    "stages": len(project.stages or []),
                }
                for project in self.planning_projects
            ],
            "tasks_due_this_week": [getattr(task, "id", None) for task in self.tasks_due_this_week],
            "risks": [risk.to_dict() for risk in self.risks],
            "high_risk_count": self.high_risk_count,
            "recommendations": list(self.recommendations),
        }


def _timeline_details(timeline: ProjectTimeline) -> dict[str, object]:
    payload = timeline.to_dict()
    project_tasks = getattr(timeline.project, "tasks", None) or []
    payload["stages"] = len(getattr(timeline.project, "stages", None) or [])
    payload["tasks_total"] = len(project_tasks)
    payload["tasks_done"] = sum(1 for task in project_tasks if task.status == "done")
    return payload


def build_weekly_report(
    snapshot: TrackerSnapshot,
    selected: date | None = None,
    today: date | None = None,
    generated_at: datetime | None = None,
) -> WeeklyReport:
    """Aggregate the snapshot into the report for the week containing ``selected``.

    Metrics are evaluated as of ``today``; the week only frames the header,
    the export filename and the tasks due within it.
    """
    today = resolve_today(today)
    week_start, week_end = week_window(selected or today)
    generated_at = generated_at or datetime.now()

    progress = summarize_project_progress(snapshot.projects)
    timelines, planning = partition_projects(snapshot.projects, today)
    health = summarize_project_health(timelines)
    ledger = build_resource_ledger(snapshot.stages, snapshot.settings)
    stages = summarize_stage_statuses(snapshot.stages)
    tasks = summarize_tasks(snapshot.tasks, today)
    due_this_week = [
        task
        for task in snapshot.tasks
        if as_date(task.due_date) is not None and week_start <= as_date(task.due_date) <= week_end
    ]

    return WeeklyReport(
        week_start=week_start,
        week_end=week_end,
        today=today,
        generated_at=generated_at,
        progress=progress,
        health=health,
        ledger=ledger,
        stages=stages,
        tasks=tasks,
        timelines=timelines,
        planning_projects=planning,
        tasks_due_this_week=due_this_week,
        risks=assess_risks(health, ledger, stages, tasks),
        recommendations=build_recommendations(progress, health, ledger, stages, tasks),
    )


def _row(label: str, value: object) -> str:
    return f"{label:<{LABEL_WIDTH}}{value}"


def _fixed(value: float, digits: int = 0) -> str:
    """Fixed-point text with halves rounded away from zero (12.5 -> "13")."""
    scale = 10 ** digits
    rounded = math.floor(abs(value) * scale + 0.5) / scale
    sign = "-" if value < 0 else ""
    return f"{sign}{rounded:.{digits}f}"


def _section(title: str, lines: list[str]) -> list[str]:
    return [title, "-" * len(title), *lines, ""]


def _project_block(timeline: ProjectTimeline) -> str:
    project = timeline.project
    project_tasks = getattr(project, "tasks", None) or []
    done = sum(1 for task in project_tasks if task.status == "done")
    sign = "+" if timeline.variance >= 0 else ""
    lines = [
        "",
        project.name,
        _row(
            "  Progress:",
            f"{_fixed(timeline.actual_progress, 1)}% "
            f"(Expected: {_fixed(timeline.expected_progress, 1)}%)",
        ),
        _row("  Variance:", f"{sign}{_fixed(timeline.variance, 1)}%"),
        _row("  Status:", timeline.status_label),
        _row("  Days Remaining:", timeline.days_remaining),
        _row(
            "  Timeline:",
            f"{timeline.start_date:%b %d, %Y} - {timeline.end_date:%b %d, %Y}",
        ),
        _row("  Stages:", len(getattr(project, "stages", None) or [])),
        _row("  Tasks:", f"{done}/{len(project_tasks)} completed"),
        "",
    ]
    return "\n".join(lines)


def render_weekly_report(report: WeeklyReport) -> str:
    """Render the fixed-layout text export of ``report``."""
    heavy_rule = "=" * REPORT_WIDTH
    ledger = report.ledger
    risk_lines = [f"[{risk.level.value.upper()}] {risk.message}" for risk in report.risks]
    recommendation_lines = [
        f"{index}. {text}" for index, text in enumerate(report.recommendations, start=1)
    ]

    lines = [
        "",
        heavy_rule,
        " " * 24 + "WEEKLY STATUS REPORT",
        " " * 16 + f"{report.week_start:%B %d} - {report.week_end:%B %d, %Y}",
        heavy_rule,
        "",
    ]
    lines += _section(
        "EXECUTIVE SUMMARY",
        [
            _row("Total Projects:", report.progress.total),
            _row("  - Active:", report.progress.active),
            _row("  - Completed:", report.progress.completed),
            _row("  - Not Started:", report.progress.not_started),
            _row("Average Progress:", f"{_fixed(report.progress.average_progress, 1)}%"),
        ],
    )
    lines += _section(
        "PROJECT HEALTH",
        [
            _row("On Track:", f"{report.health.on_track} project(s)"),
            _row("At Risk:", f"{report.health.at_risk} project(s)"),
            _row("Behind Schedule:", f"{report.health.behind} project(s)"),
            _row("Overdue:", f"{report.health.overdue} project(s)"),
        ],
    )
    lines += _section(
        "RESOURCE UTILIZATION",
        [
            _row(
                "DevOps Engineers:",
                f"{ledger.utilized_devops} / {ledger.total_devops} "
                f"({_fixed(ledger.devops_utilization)}% utilized)",
            ),
            _row(
                "Software Engineers:",
                f"{ledger.utilized_engineers} / {ledger.total_engineers} "
                f"({_fixed(ledger.engineers_utilization)}% utilized)",
            ),
            _row("Available:", f"{ledger.free_devops} DevOps, {ledger.free_engineers} Engineers"),
        ],
    )
    lines += _section(
        "STAGE PROGRESS",
        [
            _row("Total Stages:", report.stages.total),
            _row("  - Completed:", report.stages.completed),
            _row("  - In Progress:", report.stages.in_progress),
            _row("  - Not Started:", report.stages.not_started),
            _row("  - Need Resources:", report.stages.needing_resources),
        ],
    )
    lines += _section(
        "TASK STATUS",
        [
            _row("Total Tasks:", report.tasks.total),
            _row("  - Completed:", f"{report.tasks.done} ({_fixed(report.tasks.completion_rate)}%)"),
            _row("  - In Progress:", report.tasks.in_progress),
            _row("  - To Do:", report.tasks.todo),
            _row("  - Overdue:", len(report.tasks.overdue)),
        ],
    )
    lines += _section(
        "PROJECT DETAILS",
        ["".join(_project_block(timeline) for timeline in report.timelines)],
    )
    lines += _section(
        "RISKS & ISSUES",
        ["\n".join(risk_lines) if risk_lines else "No significant risks identified"],
    )
    lines += _section(
        "RECOMMENDATIONS",
        [
            "\n".join(recommendation_lines)
            if recommendation_lines
            else "No immediate actions required"
        ],
    )
    lines += [
        "-" * REPORT_WIDTH,
        f"Generated: {report.generated_at:%B %d, %Y %H:%M}",
        heavy_rule,
        "",
    ]
    return "\n".join(lines)


def report_filename(report: WeeklyReport) -> str:
    return f"weekly-report-{report.week_start.isoformat()}.txt"


__all__ = [
    "Risk",
    "RiskLevel",
    "WeeklyReport",
    "assess_risks",
    "build_recommendations",
    "build_weekly_report",
    "render_weekly_report",
    "report_filename",
    "week_window",
]
