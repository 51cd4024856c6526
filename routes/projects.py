"""Project and stage endpoints."""
from __future__ import annotations

from flask import Blueprint, jsonify

from models.project import Project
from routes import commit_or_error, json_payload, requested_date
from services.project_service import (
    create_project,
    delete_project,
    get_project_or_404,
    get_stage_or_404,
    serialize_project,
    serialize_project_timeline,
    update_project,
    update_stage,
)

projects_bp = Blueprint("projects", __name__, url_prefix="/api")


@projects_bp.route("/projects", methods=["GET"])
def list_projects():
    projects = Project.query.order_by(Project.id).all()
    return jsonify([serialize_project(project) for project in projects])


@projects_bp.route("/projects/<int:project_id>", methods=["GET"])
def get_project(project_id: int):
    return jsonify(serialize_project(get_project_or_404(project_id)))


@projects_bp.route("/projects", methods=["POST"])
def add_project():
    """Create a project together with its lifecycle stages."""

    project = create_project(json_payload())
    error = commit_or_error("Unable to create the project. Please try again.")
    if error:
        return error
    return jsonify({"id": project.id, "message": "Project created"}), 201


@projects_bp.route("/projects/<int:project_id>", methods=["PUT"])
def edit_project(project_id: int):
    """Update project fields and, when ``stages`` is sent, replace the stages."""

    project = get_project_or_404(project_id)
    update_project(project, json_payload())
    error = commit_or_error("Unable to update the project. Please try again.")
    if error:
        return error
    return jsonify({"message": "Project updated", "project": serialize_project(project)})


@projects_bp.route("/projects/<int:project_id>", methods=["DELETE"])
def remove_project(project_id: int):
    project = get_project_or_404(project_id)
    delete_project(project)
    error = commit_or_error("Unable to delete the project. Please try again.")
    if error:
        return error
    return jsonify({"message": "Project deleted"})


@projects_bp.route("/projects/<int:project_id>/timeline", methods=["GET"])
def project_timeline(project_id: int):
    """Expected vs. actual progress and per-stage date ranges."""

    project = get_project_or_404(project_id)
    return jsonify(serialize_project_timeline(project, requested_date()))


@projects_bp.route("/stages/<int:stage_id>", methods=["PUT"])
def edit_stage(stage_id: int):
    """Update a stage's progress and resource allocation."""

    stage = get_stage_or_404(stage_id)
    update_stage(stage, json_payload())
    error = commit_or_error("Unable to update the stage. Please try again.")
    if error:
        return error
    return jsonify({"message": "Stage updated", "stage": stage.to_dict()})
