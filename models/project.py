"""A Project is a piece of work tracked across weighted lifecycle stages.

A Project owns an ordered list of Stages (by order_index)
A Project owns its Tasks; deleting the Project deletes both
A Project without start and end dates is still in planning
The percentages of a Project's Stages always total 100

"""
from datetime import datetime

from database import db


class Project(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    notes = db.Column(db.Text, nullable=False, default="")
    planned_weeks = db.Column(db.Integer, nullable=False, default=10)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    stages = db.relationship(
        "Stage",
        back_populates="project",
        lazy="selectin",
        order_by="Stage.order_index",
        cascade="all, delete-orphan",
    )
    tasks = db.relationship(
        "Task",
        back_populates="project",
        lazy="selectin",
        order_by="Task.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Project {self.name}>"
