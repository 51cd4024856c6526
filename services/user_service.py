"""User accounts and login."""

from __future__ import annotations

from typing import Any

from database import db
from forms import UserForm, payload_text, validate_payload
from models.user import User
from services.errors import Conflict, NotFound, Unauthorized, ValidationFailure

DEFAULT_USERS = (
    {"username": "admin", "password": "admin123", "role": User.ADMIN, "name": "Administrator"},
    {"username": "viewer", "password": "viewer123", "role": User.VIEWER, "name": "View User"},
)


def authenticate(username: str | None, password: str | None) -> User:
    """Return the user matching both credentials or raise ``Unauthorized``."""
    user = User.query.filter_by(username=payload_text(username)).first()
    if user is None or not user.check_password(payload_text(password, strip=False)):
        raise Unauthorized("Invalid credentials")
    return user


def list_users() -> list[User]:
    return User.query.order_by(User.id).all()


def get_user_or_404(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def _ensure_username_available(username: str, user: User | None = None) -> None:
    existing = User.query.filter_by(username=username).first()
    if existing and (user is None or existing.id != user.id):
        raise Conflict("Username already exists", errors={"username": ["This username is already in use."]})


def create_user(payload: dict[str, Any]) -> User:
    username = payload_text(payload.get("username"))
    password = payload_text(payload.get("password"), strip=False)
    form = validate_payload(
        UserForm,
        {
            "username": username,
            "name": payload_text(payload.get("name")) or username,
            "role": payload.get("role") or User.VIEWER,
        },
    )
    if not password:
        raise ValidationFailure("Password is required.", errors={"password": ["Password is required."]})
    _ensure_username_available(form.username.data)

    user = User(username=form.username.data, name=form.name.data, role=form.role.data)
    user.set_password(password)
    db.session.add(user)
    return user


def update_user(user: User, payload: dict[str, Any]) -> User:
    """Apply non-blank fields; a blank password leaves the current one."""
    form = validate_payload(
        UserForm,
        {
            "username": payload_text(payload.get("username")) or user.username,
            "name": payload_text(payload.get("name")) or user.name,
            "role": payload.get("role") or user.role,
        },
    )
    _ensure_username_available(form.username.data, user)
    user.username = form.username.data
    user.name = form.name.data
    user.role = form.role.data
    password = payload_text(payload.get("password"), strip=False)
    if password:
        user.set_password(password)
    return user


def delete_user(user: User) -> None:
    db.session.delete(user)


def seed_default_users() -> list[User]:
    """Create the stock admin and viewer accounts when no user exists yet."""
    if User.query.first() is not None:
        return []
    created = []
    for entry in DEFAULT_USERS:
        user = User(username=entry["username"], role=entry["role"], name=entry["name"])
        user.set_password(entry["password"])
        db.session.add(user)
        created.append(user)
    return created


__all__ = [
    "authenticate",
    "create_user",
    "delete_user",
    "get_user_or_404",
    "list_users",
    "seed_default_users",
    "update_user",
]
