"""Task aggregation helpers used by the dashboard, kanban and report views."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from models.task import TaskStatus
from utils.dates import as_date, days_between, resolve_today


def _status(task) -> str:
    return getattr(task, "status", None) or TaskStatus.TODO.value


def _is_done(task) -> bool:
    return _status(task) == TaskStatus.DONE.value


def group_by_status(tasks: Iterable) -> dict[str, int]:
    counts = {status.value: 0 for status in TaskStatus}
    for task in tasks:
        status = _status(task)
        counts[status] = counts.get(status, 0) + 1
    return counts


def group_by_stage(tasks: Iterable) -> dict[Optional[int], list]:
    grouped: dict[Optional[int], list] = defaultdict(list)
    for task in tasks:
        grouped[getattr(task, "stage_id", None)].append(task)
    return dict(grouped)


def is_task_overdue(task, today: date | None = None) -> bool:
    """Due before today and not done; completing the task clears the flag."""
    due_date = as_date(getattr(task, "due_date", None))
    if due_date is None or _is_done(task):
        return False
    return due_date < resolve_today(today)


def overdue_tasks(tasks: Iterable, today: date | None = None) -> list:
    today = resolve_today(today)
    return [task for task in tasks if is_task_overdue(task, today)]


def days_overdue(task, today: date | None = None) -> int:
    due_date = as_date(getattr(task, "due_date", None))
    if due_date is None:
        return 0
    return max(0, days_between(due_date, resolve_today(today)))


def upcoming_tasks(tasks: Iterable, today: date | None = None, limit: int | None = None) -> list:
    """Open tasks due today or later, soonest first."""
    today = resolve_today(today)
    upcoming = [
        task
        for task in tasks
        if not _is_done(task)
        and as_date(getattr(task, "due_date", None)) is not None
        and as_date(task.due_date) >= today
    ]
    upcoming.sort(key=lambda task: as_date(task.due_date))
    if limit is not None:
        return upcoming[:limit]
    return upcoming


def completion_rate(tasks: Iterable) -> float:
    task_list = list(tasks)
    if not task_list:
        return 0.0
    completed = sum(1 for task in task_list if _is_done(task))
    return completed / len(task_list) * 100


def stage_task_stats(tasks: Iterable, stage_id) -> dict[str, int]:
    stage_tasks = [task for task in tasks if getattr(task, "stage_id", None) == stage_id]
    return {
        "total": len(stage_tasks),
        "done": sum(1 for task in stage_tasks if _is_done(task)),
        "in_progress": sum(
            1 for task in stage_tasks if _status(task) == TaskStatus.IN_PROGRESS.value
        ),
    }


@dataclass
class TaskSummary:
    total: int
    todo: int
    in_progress: int
    done: int
    completion_rate: float
    overdue: list

    def to_dict(self) -> dict[str, object]:
        return {
            "total": self.total,
            "todo": self.todo,
            "in_progress": self.in_progress,
            "done": self.done,
            "completion_rate": self.completion_rate,
            "overdue": [getattr(task, "id", None) for task in self.overdue],
        }


def summarize_tasks(tasks: Iterable, today: date | None = None) -> TaskSummary:
    task_list = list(tasks)
    counts = group_by_status(task_list)
    return TaskSummary(
        total=len(task_list),
        todo=counts.get(TaskStatus.TODO.value, 0),
        in_progress=counts.get(TaskStatus.IN_PROGRESS.value, 0),
        done=counts.get(TaskStatus.DONE.value, 0),
        completion_rate=completion_rate(task_list),
        overdue=overdue_tasks(task_list, today),
    )


__all__ = [
    "TaskSummary",
    "completion_rate",
    "days_overdue",
    "group_by_stage",
    "group_by_status",
    "is_task_overdue",
    "overdue_tasks",
    "stage_task_stats",
    "summarize_tasks",
    "upcoming_tasks",
]
