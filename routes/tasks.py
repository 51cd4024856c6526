"""Task endpoints (kanban and table views)."""
from __future__ import annotations

from flask import Blueprint, jsonify

from routes import commit_or_error, json_payload
from services.project_service import create_task, delete_task, get_task_or_404, update_task

tasks_bp = Blueprint("tasks", __name__, url_prefix="/api/tasks")


@tasks_bp.route("", methods=["POST"])
def add_task():
    task = create_task(json_payload())
    error = commit_or_error("Unable to create the task. Please try again.")
    if error:
        return error
    return jsonify({"id": task.id, "task": task.to_dict()}), 201


@tasks_bp.route("/<int:task_id>", methods=["PUT"])
def edit_task(task_id: int):
    task = get_task_or_404(task_id)
    update_task(task, json_payload())
    error = commit_or_error("Unable to update the task. Please try again.")
    if error:
        return error
    return jsonify({"message": "Task updated", "task": task.to_dict()})


@tasks_bp.route("/<int:task_id>", methods=["DELETE"])
def remove_task(task_id: int):
    task = get_task_or_404(task_id)
    delete_task(task)
    error = commit_or_error("Unable to delete the task. Please try again.")
    if error:
        return error
    return jsonify({"message": "Task deleted"})
