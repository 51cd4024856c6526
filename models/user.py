""" Represents a user of the tracker.

Users log in with a username and password.
An admin can create, edit and delete other Users.
A viewer can browse projects, dashboards and reports.
Roles are only checked by the client; the API does not enforce them.

"""

from werkzeug.security import generate_password_hash, check_password_hash
from database import db


class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password_hash = db.Column(db.Text)
    role = db.Column(db.String(20), nullable=False, default='viewer')
    name = db.Column(db.String(80), nullable=False)

    ADMIN = 'admin'
    VIEWER = 'viewer'

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash or password is None:
            return False
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        """Public representation, never includes the password."""

        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "name": self.name,
        }

    def __repr__(self):
        return f"<User {self.id}>"
