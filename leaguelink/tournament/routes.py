"""Routes for the tournament blueprint."""

from __future__ import annotations

from typing import Any

from flask import g

from leaguelink.auth.decorators import login_required
from leaguelink.utils import api_response, submitted_fields, validate_form

from . import bp
from .forms import CompleteTournamentForm, EditTournamentForm, GuestForm, TournamentForm
from .services import TournamentService


@bp.route("", methods=["POST"])
@login_required
def create_tournament() -> Any:
    """Create a new tournament in a channel."""
    form = validate_form(TournamentForm())
    tournament = TournamentService.create_tournament(form.data, g.user["uid"])
    return api_response(tournament.to_dict(), 201)


@bp.route("/<string:tournament_id>", methods=["GET"])
@login_required
def view_tournament(tournament_id: str) -> Any:
    """Return a single tournament."""
    return api_response(TournamentService.get_tournament(tournament_id).to_dict())


@bp.route("/<string:tournament_id>", methods=["PUT"])
@login_required
def edit_tournament(tournament_id: str) -> Any:
    """Update tournament details."""
    form = validate_form(EditTournamentForm())
    tournament = TournamentService.update_tournament(
        tournament_id, g.user["uid"], submitted_fields(form)
    )
    return api_response(tournament.to_dict())


@bp.route("/<string:tournament_id>", methods=["DELETE"])
@login_required
def delete_tournament(tournament_id: str) -> Any:
    """Delete a tournament and its matches."""
    TournamentService.delete_tournament(tournament_id, g.user["uid"])
    return api_response({})


@bp.route("/channel/<string:channel_id>", methods=["GET"])
@login_required
def list_channel_tournaments(channel_id: str) -> Any:
    """List the tournaments of a channel."""
    tournaments = TournamentService.list_channel_tournaments(channel_id)
    return api_response([t.to_dict() for t in tournaments])


@bp.route("/stats/channel/<string:channel_id>", methods=["GET"])
@login_required
def channel_stats(channel_id: str) -> Any:
    """Return per-player tournament stats for a channel."""
    return api_response(TournamentService.compute_channel_user_stats(channel_id))


@bp.route("/<string:tournament_id>/join", methods=["POST"])
@login_required
def join_tournament(tournament_id: str) -> Any:
    """Join a tournament as the calling user."""
    tournament = TournamentService.join_tournament(tournament_id, g.user)
    return api_response(tournament.to_dict())


@bp.route("/<string:tournament_id>/guests", methods=["POST"])
@login_required
def add_guest(tournament_id: str) -> Any:
    """Add a guest participant."""
    form = validate_form(GuestForm())
    tournament = TournamentService.add_guest(
        tournament_id, form.username.data, g.user["uid"]
    )
    return api_response(tournament.to_dict(), 201)


@bp.route("/<string:tournament_id>/start", methods=["POST"])
@login_required
def start_tournament(tournament_id: str) -> Any:
    """Start a pending tournament."""
    tournament = TournamentService.start_tournament(tournament_id, g.user["uid"])
    return api_response(tournament.to_dict())


@bp.route("/<string:tournament_id>/complete", methods=["POST"])
@login_required
def complete_tournament(tournament_id: str) -> Any:
    """Complete a tournament with its winner."""
    form = validate_form(CompleteTournamentForm())
    tournament = TournamentService.complete_tournament(
        tournament_id, g.user["uid"], form.winner_id.data
    )
    return api_response(tournament.to_dict())
