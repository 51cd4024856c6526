"""Shared helpers for the API blueprints."""

from __future__ import annotations

import logging
from datetime import date

from flask import jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from database import db
from services.errors import TrackerError, ValidationFailure
from utils.dates import parse_iso_date

__all__ = ["commit_or_error", "handle_tracker_error", "json_error", "json_payload", "requested_date"]


def json_error(message: str, *, status: int = 400, errors: dict | None = None):
    """Return the ``{error}`` body used by every failing API call."""
    body: dict[str, object] = {"error": message}
    if errors:
        body["errors"] = errors
    return jsonify(body), status


def handle_tracker_error(error: TrackerError):
    """Map service errors to their HTTP status and JSON body."""
    db.session.rollback()
    return jsonify(error.to_dict()), error.status_code


def json_payload() -> dict:
    """Return the JSON object body of the request (empty when absent)."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationFailure("The request body must be a JSON object.")
    return payload


def requested_date(name: str = "today") -> date | None:
    """Read an optional ``YYYY-MM-DD`` query argument."""
    try:
        return parse_iso_date(request.args.get(name))
    except ValueError:
        raise ValidationFailure(
            f"{name} must be an ISO date (YYYY-MM-DD).", errors={name: ["Not a valid date."]}
        )


def commit_or_error(failure_message: str):
    """Commit the session; on failure roll back and return a 500 response."""
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logging.exception("Database error: %s", failure_message)
        return json_error(failure_message, status=500)
    return None
