"""Forms for the tournament blueprint."""

from flask_wtf import FlaskForm
from wtforms import DateTimeField, IntegerField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, Optional

from leaguelink.core.constants import (
    MIN_PARTICIPANTS,
    MIN_TOURNAMENT_NAME_LENGTH,
    TOURNAMENT_FORMATS,
)

FORMAT_CHOICES = [(f, f.replace("_", " ").title()) for f in TOURNAMENT_FORMATS]

# ISO 8601 timestamps as sent by browsers, or a bare date.
START_DATE_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d",
]


class TournamentForm(FlaskForm):
    """Form for creating a tournament."""

    name = StringField(
        "Tournament Name",
        validators=[DataRequired(), Length(min=MIN_TOURNAMENT_NAME_LENGTH)],
    )
    description = TextAreaField("Description", validators=[Optional()])
    channel_id = StringField("Channel", name="channelId", validators=[DataRequired()])
    format = SelectField(
        "Tournament Format", choices=FORMAT_CHOICES, validators=[DataRequired()]
    )
    start_date = DateTimeField(
        "Start Date",
        name="startDate",
        format=START_DATE_FORMATS,
        validators=[InputRequired()],
    )
    max_participants = IntegerField(
        "Max Participants",
        name="maxParticipants",
        validators=[DataRequired(), NumberRange(min=MIN_PARTICIPANTS)],
    )
    rules = TextAreaField("Rules", validators=[Optional()])
    prizes = StringField("Prizes", validators=[Optional()])


class EditTournamentForm(FlaskForm):
    """Form for editing a tournament; every field is optional."""

    name = StringField(
        "Tournament Name",
        validators=[Optional(), Length(min=MIN_TOURNAMENT_NAME_LENGTH)],
    )
    description = TextAreaField("Description", validators=[Optional()])
    format = SelectField(
        "Tournament Format",
        choices=FORMAT_CHOICES,
        validate_choice=False,
        validators=[Optional()],
    )
    start_date = DateTimeField(
        "Start Date",
        name="startDate",
        format=START_DATE_FORMATS,
        validators=[Optional()],
    )
    max_participants = IntegerField(
        "Max Participants",
        name="maxParticipants",
        validators=[Optional(), NumberRange(min=MIN_PARTICIPANTS)],
    )
    rules = TextAreaField("Rules", validators=[Optional()])
    prizes = StringField("Prizes", validators=[Optional()])


class GuestForm(FlaskForm):
    """Form for adding a guest participant."""

    username = StringField("Guest Name", validators=[DataRequired(), Length(max=50)])


class CompleteTournamentForm(FlaskForm):
    """Form for completing a tournament."""

    winner_id = StringField("Winner", name="winnerId", validators=[DataRequired()])
