"""Login and user management endpoints.

Roles are enforced by the client only; these endpoints do not check who
is calling.
"""
from __future__ import annotations

from flask import Blueprint, jsonify

from routes import commit_or_error, json_payload
from services.user_service import (
    authenticate,
    create_user,
    delete_user,
    get_user_or_404,
    list_users,
    update_user,
)

users_bp = Blueprint("users", __name__, url_prefix="/api")


@users_bp.route("/login", methods=["POST"])
def login():
    payload = json_payload()
    user = authenticate(payload.get("username"), payload.get("password"))
    return jsonify(user.to_dict())


@users_bp.route("/users", methods=["GET"])
def get_users():
    return jsonify([user.to_dict() for user in list_users()])


@users_bp.route("/users", methods=["POST"])
def add_user():
    user = create_user(json_payload())
    error = commit_or_error("Unable to create the user. Please try again.")
    if error:
        return error
    return jsonify(user.to_dict()), 201


@users_bp.route("/users/<int:user_id>", methods=["PUT"])
def edit_user(user_id: int):
    user = get_user_or_404(user_id)
    update_user(user, json_payload())
    error = commit_or_error("Unable to update the user. Please try again.")
    if error:
        return error
    return jsonify(user.to_dict())


@users_bp.route("/users/<int:user_id>", methods=["DELETE"])
def remove_user(user_id: int):
    user = get_user_or_404(user_id)
    delete_user(user)
    error = commit_or_error("Unable to delete the user. Please try again.")
    if error:
        return error
    return jsonify({"message": "User deleted"})
