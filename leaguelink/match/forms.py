"""Forms for the match blueprint."""

from flask_wtf import FlaskForm
from wtforms import IntegerField, SelectField
from wtforms.validators import InputRequired, NumberRange


class GameResultForm(FlaskForm):
    """Form for recording the winner of a single game."""

    game_number = IntegerField(
        "Game Number",
        name="gameNumber",
        validators=[InputRequired(), NumberRange(min=1)],
    )
    winner_team = SelectField(
        "Winner Team",
        name="winnerTeam",
        choices=[("team1", "Team 1"), ("team2", "Team 2")],
        validators=[InputRequired()],
    )
