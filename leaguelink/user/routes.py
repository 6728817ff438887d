"""Routes for the user blueprint."""

from __future__ import annotations

from typing import Any

from flask import g, request

from leaguelink.auth.decorators import login_required
from leaguelink.utils import api_response, submitted_fields, validate_form

from . import bp
from .forms import ProfileForm
from .services import UserService


@bp.route("/me", methods=["GET"])
@login_required
def get_profile() -> Any:
    """Return the caller's profile."""
    return api_response(g.user)


@bp.route("/me", methods=["PUT"])
@login_required
def update_profile() -> Any:
    """Update the caller's profile."""
    form = validate_form(ProfileForm())
    user = UserService.update_profile(g.user["uid"], submitted_fields(form))
    return api_response(user)


@bp.route("/me/picture", methods=["POST"])
@login_required
def upload_picture() -> Any:
    """Upload a new profile picture."""
    url = UserService.upload_profile_picture(g.user["uid"], request.files.get("file"))
    return api_response({"profilePictureUrl": url}, 201)


@bp.route("/me/picture", methods=["DELETE"])
@login_required
def delete_picture() -> Any:
    """Remove the caller's profile picture."""
    user = UserService.delete_profile_picture(g.user["uid"])
    return api_response({"profilePictureUrl": user.get("profilePictureUrl", "")})


@bp.route("/profile/<string:username>", methods=["GET"])
@login_required
def public_profile(username: str) -> Any:
    """Return another player's public profile."""
    return api_response(UserService.get_public_profile(username))
