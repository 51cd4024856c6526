"""Errors raised by the tracker services and mapped to JSON responses."""

from __future__ import annotations

from typing import Optional


class TrackerError(RuntimeError):
    """Base class for errors that carry an HTTP status code."""

    status_code = 500

    def __init__(self, message: str, errors: Optional[dict[str, list[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"error": self.message}
        if self.errors:
            payload["errors"] = self.errors
        return payload


class NotFound(TrackerError):
    """Raised when a project, stage, task or user id does not exist."""

    status_code = 404


class ValidationFailure(TrackerError):
    """Raised when a payload is missing fields or breaks an invariant."""

    status_code = 400


class Unauthorized(TrackerError):
    """Raised when login credentials do not match a user."""

    status_code = 401


class Conflict(TrackerError):
    """Raised when a username is already taken."""

    status_code = 400


__all__ = ["Conflict", "NotFound", "TrackerError", "Unauthorized", "ValidationFailure"]
