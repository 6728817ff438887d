"""Forms for the user blueprint."""

from flask_wtf import FlaskForm
from wtforms import StringField, TextAreaField
from wtforms.validators import Length, Optional


class ProfileForm(FlaskForm):
    """Form for updating the caller's profile."""

    username = StringField("Username", validators=[Optional(), Length(min=3, max=30)])
    name = StringField("Name", validators=[Optional(), Length(max=80)])
    bio = TextAreaField("Bio", validators=[Optional(), Length(max=500)])
