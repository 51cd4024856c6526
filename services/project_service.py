"""Project, stage and task persistence helpers used by the API blueprints."""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable

from database import db
from forms import (
    ProjectForm,
    StageAllocationForm,
    StageForm,
    TaskForm,
    payload_text,
    validate_payload,
)
from models.project import Project
from models.stage import Stage
from models.task import Task, TaskStatus
from services.errors import NotFound, ValidationFailure
from services.progress_service import (
    calculate_overall_progress,
    derive_stage_ranges,
    ordered_stages,
    stage_positions,
    validate_stage_percentages,
)
from services.resource_service import build_resource_ledger, project_resource_breakdown
from services.snapshot import TrackerSnapshot
from services.task_service import (
    days_overdue,
    group_by_status,
    overdue_tasks,
    stage_task_stats,
    upcoming_tasks,
)
from services.timeline_service import (
    build_project_timeline,
    partition_projects,
    summarize_project_health,
    summarize_project_progress,
)
from utils.dates import format_iso, parse_iso_date, resolve_today

DEFAULT_PLANNED_WEEKS = 10
UPCOMING_TASK_LIMIT = 5
NEEDS_RESOURCES_LIMIT = 5


def _parse_date_field(payload: dict[str, Any], key: str) -> date | None:
    try:
        return parse_iso_date(payload.get(key))
    except ValueError:
        raise ValidationFailure(
            f"{key} must be an ISO date (YYYY-MM-DD).",
            errors={key: ["Not a valid date."]},
        )


def _validate_schedule(start_date: date | None, end_date: date | None) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValidationFailure(
            "The end date cannot be before the start date.",
            errors={"end_date": ["Must be on or after the start date."]},
        )


def get_project_or_404(project_id: int) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFound("Project not found")
    return project


def get_stage_or_404(stage_id: int) -> Stage:
    stage = db.session.get(Stage, stage_id)
    if stage is None:
        raise NotFound("Stage not found")
    return stage


def get_task_or_404(task_id: int) -> Task:
    task = db.session.get(Task, task_id)
    if task is None:
        raise NotFound("Task not found")
    return task


# Serialization
# ------------------------------


def serialize_project(project: Project) -> dict[str, Any]:
    """Project with nested stages (by order_index) and tasks."""
    return {
        "id": project.id,
        "name": project.name,
        "description": project.description or "",
        "notes": project.notes or "",
        "planned_weeks": project.planned_weeks,
        "start_date": format_iso(project.start_date),
        "end_date": format_iso(project.end_date),
        "created_at": project.created_at.isoformat() if project.created_at else None,
        "overall_progress": calculate_overall_progress(project),
        "stages": [stage.to_dict() for stage in ordered_stages(project)],
        "tasks": [task.to_dict() for task in project.tasks],
    }


def serialize_project_timeline(project: Project, today: date | None = None) -> dict[str, Any]:
    today = resolve_today(today)
    timeline = build_project_timeline(project, today)
    stage_ranges = derive_stage_ranges(project, today=today)
    stages = []
    for position in stage_positions(project):
        position.update(stage_task_stats(project.tasks, position["stage_id"]))
        stages.append(position)
    return {
        "project_id": project.id,
        "planning": timeline is None,
        "timeline": timeline.to_dict() if timeline else None,
        "stage_ranges": [stage_range.to_dict() for stage_range in stage_ranges],
        "stages": stages,
        "tasks": group_by_status(project.tasks),
        "overdue_tasks": [
            {**task.to_dict(), "days_overdue": days_overdue(task, today)}
            for task in overdue_tasks(project.tasks, today)
        ],
    }


# Stages
# ------------------------------


def _normalize_stage_payload(raw: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": payload_text(raw.get("name")),
        "description": payload_text(raw.get("description"), strip=False),
        "percentage": raw.get("percentage") if raw.get("percentage") is not None else 0,
        "progress": raw.get("progress") if raw.get("progress") is not None else 0,
        "color": payload_text(raw.get("color")),
    }


def _validated_stage_payloads(payloads: Iterable[dict[str, Any]] | None) -> list[dict[str, Any]]:
    if payloads is None:
        return []
    if not isinstance(payloads, list):
        raise ValidationFailure("Stages must be provided as a list.")
    validated = []
    for index, raw in enumerate(payloads):
        if not isinstance(raw, dict):
            raise ValidationFailure(f"Stage {index + 1} must be an object.")
        form = validate_payload(
            StageForm,
            _normalize_stage_payload(raw),
            message=f"Stage {index + 1} is invalid.",
        )
        validated.append(
            {
                "id": raw.get("id"),
                "name": form.name.data,
                "description": form.description.data or "",
                "percentage": form.percentage.data,
                "progress": form.progress.data,
                "color": form.color.data or None,
            }
        )
    validate_stage_percentages(validated)
    return validated


def reconcile_stages(project: Project, payloads: list[dict[str, Any]]) -> list[Stage]:
    """Replace the project's stages with ``payloads``.

    Incoming stages are matched to existing ones by id; a matched stage keeps
    its progress, devops and engineers, an unmatched one starts from the
    provided progress (or 0) with no resources. Order follows the payload.
    Stages missing from the payload are deleted and their tasks detached.
    """
    existing = {stage.id: stage for stage in project.stages}
    reconciled: list[Stage] = []

    for index, payload in enumerate(payloads):
        stage = existing.pop(payload.get("id"), None)
        if stage is None:
            stage = Stage(progress=payload.get("progress") or 0, devops=0, engineers=0)
        stage.name = payload["name"]
        stage.description = payload.get("description") or ""
        stage.percentage = payload["percentage"]
        stage.color = payload.get("color")
        stage.order_index = index
        reconciled.append(stage)

    removed_ids = set(existing)
    for task in project.tasks:
        if task.stage_id in removed_ids:
            task.stage_id = None

    # delete-orphan removes the stages left out of the new collection
    project.stages = reconciled
    return reconciled


def update_stage(stage: Stage, payload: dict[str, Any]) -> Stage:
    """Apply the optional progress/devops/engineers fields of ``payload``."""
    merged = {
        "progress": payload.get("progress", stage.progress),
        "devops": payload.get("devops", stage.devops),
        "engineers": payload.get("engineers", stage.engineers),
    }
    merged = {key: (0 if value is None else value) for key, value in merged.items()}
    form = validate_payload(StageAllocationForm, merged, message="Stage update is invalid.")
    stage.progress = form.progress.data
    stage.devops = form.devops.data
    stage.engineers = form.engineers.data
    return stage


# Projects
# ------------------------------


def _project_form_data(payload: dict[str, Any], project: Project | None = None) -> dict[str, Any]:
    def pick(key, default):
        if key in payload:
            return payload.get(key)
        return getattr(project, key) if project is not None else default

    planned_weeks = pick("planned_weeks", DEFAULT_PLANNED_WEEKS)
    if planned_weeks in (None, "", 0):
        planned_weeks = (project.planned_weeks if project is not None else None) or DEFAULT_PLANNED_WEEKS
    return {
        "name": payload_text(pick("name", "")),
        "description": payload_text(pick("description", ""), strip=False),
        "notes": payload_text(pick("notes", ""), strip=False),
        "planned_weeks": planned_weeks,
    }


def create_project(payload: dict[str, Any]) -> Project:
    form = validate_payload(ProjectForm, _project_form_data(payload))
    start_date = _parse_date_field(payload, "start_date")
    end_date = _parse_date_field(payload, "end_date")
    _validate_schedule(start_date, end_date)
    stage_payloads = _validated_stage_payloads(payload.get("stages"))

    project = Project(
        name=form.name.data,
        description=form.description.data or "",
        notes=form.notes.data or "",
        planned_weeks=form.planned_weeks.data,
        start_date=start_date,
        end_date=end_date,
    )
    db.session.add(project)
    for index, stage_payload in enumerate(stage_payloads):
        db.session.add(
            Stage(
                project=project,
                name=stage_payload["name"],
                description=stage_payload["description"],
                percentage=stage_payload["percentage"],
                progress=0,
                color=stage_payload["color"],
                order_index=index,
                devops=0,
                engineers=0,
            )
        )
    return project


def update_project(project: Project, payload: dict[str, Any]) -> Project:
    """Apply partial project fields and, when given, a full stage replacement."""
    form = validate_payload(ProjectForm, _project_form_data(payload, project))
    start_date = (
        _parse_date_field(payload, "start_date") if "start_date" in payload else project.start_date
    )
    end_date = _parse_date_field(payload, "end_date") if "end_date" in payload else project.end_date
    _validate_schedule(start_date, end_date)

    stage_payloads = None
    if payload.get("stages") is not None:
        stage_payloads = _validated_stage_payloads(payload.get("stages"))

    project.name = form.name.data
    project.description = form.description.data or ""
    project.notes = form.notes.data or ""
    project.planned_weeks = form.planned_weeks.data
    project.start_date = start_date
    project.end_date = end_date
    if stage_payloads is not None:
        reconcile_stages(project, stage_payloads)
    return project


def delete_project(project: Project) -> None:
    """Delete the project; stages and tasks go with it."""
    db.session.delete(project)


# Tasks
# ------------------------------


def _task_form_data(payload: dict[str, Any], task: Task | None = None) -> dict[str, Any]:
    def pick(key, default):
        if key in payload:
            return payload.get(key)
        return getattr(task, key) if task is not None else default

    return {
        "project_id": pick("project_id", None),
        "title": payload_text(pick("title", "")),
        "description": payload_text(pick("description", ""), strip=False),
        "status": pick("status", TaskStatus.TODO.value) or TaskStatus.TODO.value,
    }


def _resolve_stage_id(project_id: int, stage_id) -> int | None:
    if stage_id in (None, ""):
        return None
    try:
        stage_id = int(stage_id)
    except (TypeError, ValueError):
        raise ValidationFailure("stage_id must be a stage id.", errors={"stage_id": ["Invalid stage."]})
    stage = db.session.get(Stage, stage_id)
    if stage is None or stage.project_id != project_id:
        raise ValidationFailure(
            "The stage does not belong to this project.",
            errors={"stage_id": ["Unknown stage for this project."]},
        )
    return stage_id


def create_task(payload: dict[str, Any]) -> Task:
    form = validate_payload(TaskForm, _task_form_data(payload))
    project = get_project_or_404(form.project_id.data)
    task = Task(
        project=project,
        stage_id=_resolve_stage_id(project.id, payload.get("stage_id")),
        title=form.title.data,
        description=form.description.data or "",
        status=form.status.data,
        due_date=_parse_date_field(payload, "due_date"),
    )
    db.session.add(task)
    return task


def update_task(task: Task, payload: dict[str, Any]) -> Task:
    """Apply the fields present in ``payload``; the project never changes."""
    data = _task_form_data(payload, task)
    data["project_id"] = task.project_id
    form = validate_payload(TaskForm, data)
    task.title = form.title.data
    task.description = form.description.data or ""
    task.status = form.status.data
    if "stage_id" in payload:
        task.stage_id = _resolve_stage_id(task.project_id, payload.get("stage_id"))
    if "due_date" in payload:
        task.due_date = _parse_date_field(payload, "due_date")
    return task


def delete_task(task: Task) -> None:
    db.session.delete(task)


# Dashboard
# ------------------------------


def build_dashboard(snapshot: TrackerSnapshot, today: date | None = None) -> dict[str, Any]:
    """Aggregate the figures shown on the dashboard and calendar views."""
    today = resolve_today(today)
    timelines, planning = partition_projects(snapshot.projects, today)
    ledger = build_resource_ledger(snapshot.stages, snapshot.settings)
    stage_owner = {
        stage.id: project for project in snapshot.projects for stage in (project.stages or [])
    }

    stage_alerts = []
    for project in snapshot.projects:
        for stage_range in derive_stage_ranges(project, today=today):
            if stage_range.is_overdue or stage_range.is_at_risk:
                alert = stage_range.to_dict()
                alert["project_id"] = project.id
                alert["project_name"] = project.name
                stage_alerts.append(alert)

    return {
        "projects": summarize_project_progress(snapshot.projects).to_dict(),
        "health": summarize_project_health(timelines).to_dict(),
        "timelines": [timeline.to_dict() for timeline in timelines],
        "planning_projects": [
            {"id": project.id, "name": project.name, "planned_weeks": project.planned_weeks}
            for project in planning
        ],
        "resources": ledger.to_dict(),
        "resource_breakdown": project_resource_breakdown(snapshot.projects, snapshot.settings),
        "stages_needing_resources": [
            {
                "stage_id": stage.id,
                "name": stage.name,
                "project_id": stage_owner[stage.id].id if stage.id in stage_owner else None,
                "project_name": stage_owner[stage.id].name if stage.id in stage_owner else None,
            }
            for stage in ledger.stages_needing_resources[:NEEDS_RESOURCES_LIMIT]
        ],
        "stage_alerts": stage_alerts,
        "tasks": group_by_status(snapshot.tasks),
        "upcoming_tasks": [
            task.to_dict() for task in upcoming_tasks(snapshot.tasks, today, UPCOMING_TASK_LIMIT)
        ],
    }


__all__ = [
    "build_dashboard",
    "create_project",
    "create_task",
    "delete_project",
    "delete_task",
    "get_project_or_404",
    "get_stage_or_404",
    "get_task_or_404",
    "reconcile_stages",
    "serialize_project",
    "serialize_project_timeline",
    "update_project",
    "update_stage",
    "update_task",
]
