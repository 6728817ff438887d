"""Routes for the match blueprint."""

from __future__ import annotations

from typing import Any

from flask import g, request

from leaguelink.auth.decorators import login_required
from leaguelink.errors import ValidationError
from leaguelink.utils import api_response, validate_form

from . import bp
from .forms import GameResultForm
from .models import MatchSubmission
from .services import MatchService


def _json_body() -> Any:
    payload = request.get_json(silent=True)
    if payload is None:
        raise ValidationError("Request body must be JSON.")
    return payload


@bp.route("/matches", methods=["POST"])
@login_required
def create_match() -> Any:
    """Create a match in a tournament."""
    payload = _json_body()
    if not isinstance(payload, dict) or not payload.get("tournamentId"):
        raise ValidationError("Missing required field: tournamentId")
    submission = MatchSubmission.from_payload(payload)
    match = MatchService.create_match(
        payload["tournamentId"], submission, g.user["uid"]
    )
    return api_response(match.to_dict(), 201)


@bp.route("/matches/<string:match_id>", methods=["GET"])
@login_required
def view_match(match_id: str) -> Any:
    """Return a single match."""
    return api_response(MatchService.get_match(match_id).to_dict())


@bp.route("/matches/<string:match_id>", methods=["PUT"])
@login_required
def edit_match(match_id: str) -> Any:
    """Change the teams or bestOf of a pending match."""
    match = MatchService.update_match(match_id, _json_body(), g.user["uid"])
    return api_response(match.to_dict())


@bp.route("/matches/<string:match_id>/status", methods=["PATCH"])
@login_required
def record_game(match_id: str) -> Any:
    """Record the winner of one game and return the updated match."""
    form = validate_form(GameResultForm())
    match = MatchService.record_game_result(
        match_id, form.game_number.data, form.winner_team.data, g.user["uid"]
    )
    return api_response(match.to_dict())


@bp.route("/matches/<string:match_id>/stats", methods=["GET"])
@login_required
def view_match_stats(match_id: str) -> Any:
    """Return a match's free-form stats."""
    return api_response(MatchService.get_match(match_id).stats)


@bp.route("/matches/<string:match_id>/stats", methods=["PATCH"])
@login_required
def update_match_stats(match_id: str) -> Any:
    """Merge free-form stats into a match."""
    stats = MatchService.update_stats(match_id, _json_body(), g.user["uid"])
    return api_response(stats)


@bp.route("/matches/<string:match_id>", methods=["DELETE"])
@login_required
def delete_match(match_id: str) -> Any:
    """Delete a match and unlink it from the bracket."""
    MatchService.delete_match(match_id, g.user["uid"])
    return api_response({})


@bp.route("/tournaments/<string:tournament_id>/matches", methods=["GET"])
@login_required
def list_tournament_matches(tournament_id: str) -> Any:
    """List a tournament's matches in bracket order."""
    matches = MatchService.list_tournament_matches(tournament_id)
    return api_response([m.to_dict() for m in matches])


@bp.route("/tournaments/<string:tournament_id>/bulk", methods=["POST"])
@login_required
def bulk_create_matches(tournament_id: str) -> Any:
    """Create a bracket of matches, resolving temporary nextMatchId links."""
    payload = _json_body()
    entries = payload.get("matches") if isinstance(payload, dict) else payload
    matches = MatchService.bulk_create_matches(tournament_id, entries, g.user["uid"])
    return api_response([m.to_dict() for m in matches], 201)
