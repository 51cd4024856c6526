"""WTForms definitions used to validate JSON API payloads.

The API is JSON only, so forms are processed from normalized dictionaries
(``formdata=None``) with CSRF disabled rather than bound to request.form.
"""
from flask_wtf import FlaskForm
from wtforms import IntegerField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, NumberRange, ValidationError

from services.errors import ValidationFailure

TASK_STATUS_CHOICES = [("todo", "To Do"), ("in_progress", "In Progress"), ("done", "Done")]
ROLE_CHOICES = [("admin", "Admin"), ("viewer", "Viewer")]


class JsonForm(FlaskForm):
    class Meta:
        csrf = False


class ProjectForm(JsonForm):
    name = StringField(
        "Name",
        validators=[
            DataRequired(message="Project name is required."),
            Length(max=200, message="Project name must be 200 characters or fewer."),
        ],
    )
    description = TextAreaField("Description")
    notes = TextAreaField("Notes")
    planned_weeks = IntegerField(
        "Planned weeks",
        validators=[NumberRange(min=1, message="Planned weeks must be at least 1.")],
    )


class StageForm(JsonForm):
    name = StringField(
        "Stage name",
        validators=[
            DataRequired(message="Stage name is required."),
            Length(max=200, message="Stage name must be 200 characters or fewer."),
        ],
    )
    description = TextAreaField("Description")
    percentage = IntegerField(
        "Percentage",
        validators=[NumberRange(min=0, max=100, message="Percentage must be between 0 and 100.")],
    )
    progress = IntegerField(
        "Progress",
        validators=[NumberRange(min=0, max=100, message="Progress must be between 0 and 100.")],
    )
    color = StringField("Color", validators=[Length(max=20)])


class StageAllocationForm(JsonForm):
    progress = IntegerField(
        "Progress",
        validators=[NumberRange(min=0, max=100, message="Progress must be between 0 and 100.")],
    )
    devops = IntegerField(
        "DevOps", validators=[NumberRange(min=0, message="DevOps cannot be negative.")]
    )
    engineers = IntegerField(
        "Engineers", validators=[NumberRange(min=0, message="Engineers cannot be negative.")]
    )


class TaskForm(JsonForm):
    project_id = IntegerField(
        "Project", validators=[NumberRange(min=1, message="A project is required.")]
    )
    title = StringField("Title", validators=[DataRequired(message="Task title is required.")])
    description = TextAreaField("Description")
    status = SelectField("Status", choices=TASK_STATUS_CHOICES, validate_choice=False)

    def validate_status(self, field):
        if field.data not in dict(TASK_STATUS_CHOICES):
            raise ValidationError("Status must be one of todo, in_progress or done.")


class UserForm(JsonForm):
    username = StringField(
        "Username",
        validators=[
            DataRequired(message="Username is required."),
            Length(max=80, message="Username must be 80 characters or fewer."),
        ],
    )
    name = StringField("Name", validators=[Length(max=80)])
    role = SelectField("Role", choices=ROLE_CHOICES, validate_choice=False)

    def validate_role(self, field):
        if field.data not in dict(ROLE_CHOICES):
            raise ValidationError("Role must be admin or viewer.")


def payload_text(value, strip: bool = True) -> str:
    """Return a JSON scalar as text; ``None`` becomes an empty string."""
    if value is None:
        return ""
    text = str(value)
    return text.strip() if strip else text


def validate_payload(form_class, data: dict, message: str = "Please correct the highlighted fields."):
    """Process ``data`` through ``form_class`` and return the form when valid.

    Raises ``ValidationFailure`` carrying the form's field errors otherwise.
    """
    form = form_class(formdata=None, data=data)
    if not form.validate():
        raise ValidationFailure(message, errors=dict(form.errors))
    return form
