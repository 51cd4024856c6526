"""A Stage is a weighted phase of a Project's lifecycle.

The percentage is the Stage's share of the Project (its weight)
The progress (0-100) is tracked independently of the weight
DevOps and engineers are headcount drawn from the shared resource pool
A Stage with no DevOps and no engineers still needs resources

"""
from database import db


class Stage(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(db.Integer, db.ForeignKey("project.id"), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    percentage = db.Column(db.Integer, nullable=False, default=0)
    progress = db.Column(db.Integer, nullable=False, default=0)
    color = db.Column(db.String(20), nullable=True)
    order_index = db.Column(db.Integer, nullable=False, default=0)
    devops = db.Column(db.Integer, nullable=False, default=0)
    engineers = db.Column(db.Integer, nullable=False, default=0)

    project = db.relationship("Project", back_populates="stages")

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "description": self.description or "",
            "percentage": self.percentage,
            "progress": self.progress,
            "color": self.color,
            "order_index": self.order_index,
            "devops": self.devops or 0,
            "engineers": self.engineers or 0,
        }

    def __repr__(self):
        return f"<Stage {self.name} ({self.percentage}%)>"
