"""Company-wide headcount pool shared by every stage of every project."""
from database import db


class ResourceSettings(db.Model):
    __tablename__ = "resource_settings"

    id = db.Column(db.Integer, primary_key=True)
    total_devops = db.Column(db.Integer, nullable=False, default=0)
    total_engineers = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self):
        return {
            "totalDevops": self.total_devops or 0,
            "totalEngineers": self.total_engineers or 0,
        }

    def __repr__(self):
        return f"<ResourceSettings devops={self.total_devops} engineers={self.total_engineers}>"
