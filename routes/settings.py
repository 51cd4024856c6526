"""Resource pool settings endpoints."""
from __future__ import annotations

from flask import Blueprint, jsonify

from routes import commit_or_error, json_payload
from services.resource_service import get_resource_settings, update_resource_settings

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.route("", methods=["GET"])
def get_settings():
    return jsonify(get_resource_settings().to_dict())


@settings_bp.route("", methods=["PUT"])
def put_settings():
    payload = json_payload()
    settings = update_resource_settings(payload.get("totalDevops"), payload.get("totalEngineers"))
    error = commit_or_error("Unable to update settings. Please try again.")
    if error:
        return error
    return jsonify({"message": "Settings updated", "settings": settings.to_dict()})
