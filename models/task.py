"""A task represents a unit of work inside a Project stage

A Task belongs to one Project and, usually, one of its Stages
A Task moves through todo -> in_progress -> done (kanban columns)
A Task with a due date in the past that is not done is overdue
Task changes never alter Stage progress or percentages

"""
from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from database import db


class TaskStatus(StrEnum):
    """Kanban column of a task."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class Task(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("project.id"), nullable=False, index=True)
    stage_id = db.Column(
        db.Integer,
        db.ForeignKey("stage.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    title = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    status = db.Column(db.String(20), nullable=False, default=TaskStatus.TODO.value)
    due_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    project = db.relationship("Project", back_populates="tasks")

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "stage_id": self.stage_id,
            "title": self.title,
            "description": self.description or "",
            "status": self.status,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Task {self.title}>"
