"""Authorization policy: (actor, resource) -> permitted."""

from __future__ import annotations

from typing import TYPE_CHECKING

from leaguelink.errors import PermissionDeniedError

if TYPE_CHECKING:
    from leaguelink.channel.models import Channel
    from leaguelink.match.models import Match
    from leaguelink.tournament.models import Tournament


def is_channel_admin(user_id: str, channel: Channel | None) -> bool:
    """Return True if the user is listed among the channel admins."""
    if channel is None:
        return False
    return user_id in channel.admin_ids


def is_channel_member(user_id: str, channel: Channel | None) -> bool:
    """Return True if the user belongs to the channel."""
    if channel is None:
        return False
    return user_id in channel.member_ids or user_id in channel.admin_ids


def is_tournament_organizer(user_id: str, tournament: Tournament) -> bool:
    """Return True if the user organizes the tournament."""
    return tournament.organizer_id == user_id


def can_manage_tournament(
    user_id: str, tournament: Tournament, channel: Channel | None
) -> bool:
    """Organizers and admins of the owning channel may mutate a tournament."""
    return is_tournament_organizer(user_id, tournament) or is_channel_admin(
        user_id, channel
    )


def require(permitted: bool, message: str | None = None) -> None:
    """Raise PermissionDeniedError unless ``permitted``."""
    if not permitted:
        if message:
            raise PermissionDeniedError(message)
        raise PermissionDeniedError()


def can_record_result(
    user_id: str, match: Match, tournament: Tournament, channel: Channel | None
) -> bool:
    """Managers and the players in the match may report game results."""
    if can_manage_tournament(user_id, tournament, channel):
        return True
    return user_id in match.team1.player_ids + match.team2.player_ids
