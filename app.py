import logging
import os

import click
from dotenv import load_dotenv
from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate

from database import db

load_dotenv()

# Initialize Flask app
app = Flask(__name__)
app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get(
    "DATABASE_URL", "sqlite:///stagetracker.db"
)
app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "stagetracker-dev-secret")

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

db.init_app(app)

# Models import should be after initializing db
from models.project import Project
from models.stage import Stage
from models.task import Task
from models.user import User
from models.resource_settings import ResourceSettings

from routes import handle_tracker_error
from routes.projects import projects_bp
from routes.reports import reports_bp
from routes.settings import settings_bp
from routes.tasks import tasks_bp
from routes.users import users_bp
from services.errors import TrackerError
from services.resource_service import get_resource_settings
from services.user_service import seed_default_users

# Create flask command lines to update the db based on the model
# Useage:
# Create a migration script in ./migrations/versions
# > flask db migrate -m "Update comments"
# Run the update
# > flask db upgrade
migrate = Migrate(app, db)
# The dashboard client is served from another origin
CORS(app, resources={r"/api/*": {"origins": "*"}})
app.register_blueprint(projects_bp)
app.register_blueprint(tasks_bp)
app.register_blueprint(settings_bp)
app.register_blueprint(users_bp)
app.register_blueprint(reports_bp)
app.register_error_handler(TrackerError, handle_tracker_error)


@app.errorhandler(404)
def not_found(_error):
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(405)
def method_not_allowed(_error):
    return jsonify({"error": "Method not allowed"}), 405


# Database setup
# ------------------------------
@app.cli.command("init-db")
def init_db_command():
    """Create the tables, the settings row and the default accounts."""
    db.create_all()
    get_resource_settings()
    created = seed_default_users()
    db.session.commit()
    click.echo(f"Database ready ({len(created)} default user(s) created).")


# Application Execution
# ------------------------------
if __name__ == "__main__":
    app.run(debug=True, port=int(os.environ.get("PORT", 5001)))
