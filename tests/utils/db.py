"""SQLite test database helpers."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Tuple


def provision_test_database(prefix: str = "stagetracker_test") -> Tuple[str, str]:
    """Create an empty SQLite file for a test run.

    Returns a tuple of (database_path, database_uri).
    """
    handle, path = tempfile.mkstemp(prefix=f"{prefix}_", suffix=".db")
    os.close(handle)
    return path, f"sqlite:///{path}"


def cleanup_test_database(database_path: str | None) -> None:
    """Remove a database file created by ``provision_test_database``."""
    if not database_path:
        return
    path = Path(database_path)
    if path.exists():
        path.unlink()


def reset_schema(app, db) -> None:
    """Drop and recreate every table of the application's database."""
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.create_all()


def drop_schema(app, db) -> None:
    with app.app_context():
        db.session.remove()
        db.drop_all()


__all__ = [
    "cleanup_test_database",
    "drop_schema",
    "provision_test_database",
    "reset_schema",
]
