"""Forms for the channel blueprint."""

from flask_wtf import FlaskForm
from wtforms import BooleanField, StringField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from leaguelink.core.constants import (
    MIN_CHANNEL_NAME_LENGTH,
    MIN_DESCRIPTION_LENGTH,
    MIN_PASSCODE_LENGTH,
)


class ChannelForm(FlaskForm):
    """Form for creating a channel."""

    name = StringField(
        "Channel Name",
        validators=[DataRequired(), Length(min=MIN_CHANNEL_NAME_LENGTH)],
    )
    description = TextAreaField(
        "Description",
        validators=[DataRequired(), Length(min=MIN_DESCRIPTION_LENGTH)],
    )
    sport = StringField("Sport", validators=[Optional()])
    is_private = BooleanField("Private", name="isPrivate")
    passcode = StringField(
        "Passcode", validators=[Optional(), Length(min=MIN_PASSCODE_LENGTH)]
    )
    image = StringField("Image URL", validators=[Optional()])

    def validate(self, extra_validators=None):
        """Private channels must carry a passcode."""
        if not super().validate(extra_validators=extra_validators):
            return False
        if self.is_private.data and not self.passcode.data:
            self.passcode.errors.append("A passcode is required for private channels.")
            return False
        return True


class JoinChannelForm(FlaskForm):
    """Form for joining a channel."""

    passcode = StringField("Passcode", validators=[Optional()])


class AddAdminForm(FlaskForm):
    """Form for promoting a member to admin."""

    user_id = StringField("User", name="userId", validators=[DataRequired()])
