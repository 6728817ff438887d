"""Routes for the channel blueprint."""

from __future__ import annotations

from typing import Any

from flask import g, request

from leaguelink.auth.decorators import login_required
from leaguelink.auth.permissions import is_channel_member, require
from leaguelink.utils import api_response, validate_form

from . import bp
from .forms import AddAdminForm, ChannelForm, JoinChannelForm
from .services import ChannelService


@bp.route("", methods=["POST"])
@login_required
def create_channel() -> Any:
    """Create a new channel."""
    form = validate_form(ChannelForm())
    channel = ChannelService.create_channel(form.data, g.user["uid"])
    return api_response(channel.to_dict(), 201)


@bp.route("/mine", methods=["GET"])
@login_required
def my_channels() -> Any:
    """List the caller's channels."""
    channels = ChannelService.list_user_channels(g.user["uid"])
    return api_response([c.to_dict() for c in channels])


@bp.route("/<string:channel_id>", methods=["GET"])
@login_required
def view_channel(channel_id: str) -> Any:
    """Return channel details. Private channels are visible to members only."""
    channel = ChannelService.get_channel(channel_id)
    if channel.is_private:
        require(is_channel_member(g.user["uid"], channel))
    return api_response(channel.to_dict())


@bp.route("/<string:channel_id>/join", methods=["POST"])
@login_required
def join_channel(channel_id: str) -> Any:
    """Join a channel, presenting the passcode for private channels."""
    form = validate_form(JoinChannelForm())
    channel = ChannelService.join_channel(channel_id, g.user["uid"], form.passcode.data)
    return api_response(channel.to_dict())


@bp.route("/<string:channel_id>/leave", methods=["POST"])
@login_required
def leave_channel(channel_id: str) -> Any:
    """Leave a channel."""
    ChannelService.leave_channel(channel_id, g.user["uid"])
    return api_response({})


@bp.route("/<string:channel_id>/admins", methods=["POST"])
@login_required
def add_admin(channel_id: str) -> Any:
    """Promote a member to admin."""
    form = validate_form(AddAdminForm())
    channel = ChannelService.add_admin(channel_id, g.user["uid"], form.user_id.data)
    return api_response(channel.to_dict())


@bp.route("/<string:channel_id>/picture", methods=["POST"])
@login_required
def upload_picture(channel_id: str) -> Any:
    """Upload a new channel picture."""
    channel = ChannelService.upload_channel_image(
        channel_id, g.user["uid"], request.files.get("file")
    )
    return api_response(channel.to_dict(), 201)
