"""Service layer for tournament business logic."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from firebase_admin import firestore
from flask import current_app

from leaguelink.auth.permissions import (
    can_manage_tournament,
    is_channel_admin,
    is_channel_member,
    require,
)
from leaguelink.channel.services import ChannelService
from leaguelink.core.constants import (
    CHANNELS_COLLECTION,
    MATCHES_COLLECTION,
    TOURNAMENT_ACTIVE,
    TOURNAMENT_COMPLETED,
    TOURNAMENT_PENDING,
    TOURNAMENTS_COLLECTION,
    USERS_COLLECTION,
)
from leaguelink.errors import ValidationError
from leaguelink.utils import EmailError, commit_in_batches, send_email

from .models import ChannelUserStats, Participant, Tournament
from .utils import fetch_tournament, fetch_tournament_channel

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from leaguelink.user.models import User

EDITABLE_FIELDS = (
    "name",
    "description",
    "format",
    "start_date",
    "max_participants",
    "rules",
    "prizes",
)


class TournamentService:
    """Handles business logic and data access for tournaments."""

    @staticmethod
    def _require_manager(db: Client, tournament: Tournament, user_uid: str) -> None:
        channel = fetch_tournament_channel(db, tournament)
        require(
            can_manage_tournament(user_uid, tournament, channel),
            "Only the tournament organizer or a channel admin can do that.",
        )

    @staticmethod
    def _save_participants(db: Client, tournament: Tournament) -> None:
        db.collection(TOURNAMENTS_COLLECTION).document(tournament.id).update(
            {
                "participants": [p.to_dict() for p in tournament.participants],
                "participantIds": tournament.participant_ids,
            }
        )

    @staticmethod
    def get_tournament(tournament_id: str, db: Client | None = None) -> Tournament:
        """Fetch a tournament or raise NotFoundError."""
        if db is None:
            db = firestore.client()
        return fetch_tournament(db, tournament_id)

    @staticmethod
    def list_channel_tournaments(
        channel_id: str, db: Client | None = None
    ) -> list[Tournament]:
        """Fetch a channel's tournaments, most recent start date first."""
        if db is None:
            db = firestore.client()
        docs = (
            db.collection(TOURNAMENTS_COLLECTION)
            .where(filter=firestore.FieldFilter("channelId", "==", channel_id))
            .stream()
        )
        tournaments = [Tournament.from_snapshot(doc) for doc in docs if doc.exists]
        tournaments.sort(key=lambda t: str(t.start_date or ""), reverse=True)
        return tournaments

    @staticmethod
    def create_tournament(
        data: dict[str, Any], user_uid: str, db: Client | None = None
    ) -> Tournament:
        """Create a tournament in a channel the user administers."""
        if db is None:
            db = firestore.client()
        channel = ChannelService.get_channel(data.get("channel_id", ""), db=db)
        require(
            is_channel_admin(user_uid, channel),
            "Only channel admins can create tournaments.",
        )

        tournament = Tournament(
            name=data.get("name") or "",
            description=data.get("description") or "",
            channel_id=channel.id,
            organizer_id=user_uid,
            format=data.get("format") or "",
            start_date=data.get("start_date"),
            max_participants=data.get("max_participants") or 0,
            rules=data.get("rules") or "",
            prizes=data.get("prizes") or "",
        )
        ref = db.collection(TOURNAMENTS_COLLECTION).document()
        ref.set({**tournament.to_document(), "createdAt": firestore.SERVER_TIMESTAMP})
        db.collection(CHANNELS_COLLECTION).document(channel.id).update(
            {"tournamentIds": firestore.ArrayUnion([ref.id])}
        )
        current_app.logger.info(
            f"Tournament {ref.id} created in channel {channel.id}"
        )
        return fetch_tournament(db, ref.id)

    @staticmethod
    def update_tournament(
        tournament_id: str,
        user_uid: str,
        update_data: dict[str, Any],
        db: Client | None = None,
    ) -> Tournament:
        """Update whitelisted tournament details."""
        if db is None:
            db = firestore.client()
        tournament = fetch_tournament(db, tournament_id)
        TournamentService._require_manager(db, tournament, user_uid)

        for key in EDITABLE_FIELDS:
            value = update_data.get(key)
            if value is not None:
                setattr(tournament, key, value)
        if len(tournament.participants) > tournament.max_participants:
            raise ValidationError(
                "Max participants cannot be lower than the current participant count."
            )
        tournament.validate()

        document = tournament.to_document()
        db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).update(
            {
                "name": document["name"],
                "description": document["description"],
                "format": document["format"],
                "startDate": document["startDate"],
                "maxParticipants": document["maxParticipants"],
                "rules": document["rules"],
                "prizes": document["prizes"],
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
        )
        return fetch_tournament(db, tournament_id)

    @staticmethod
    def delete_tournament(
        tournament_id: str, user_uid: str, db: Client | None = None
    ) -> None:
        """Delete a tournament with its matches and unlink it from its channel."""
        if db is None:
            db = firestore.client()
        tournament = fetch_tournament(db, tournament_id)
        channel = fetch_tournament_channel(db, tournament)
        require(
            can_manage_tournament(user_uid, tournament, channel),
            "Only the tournament organizer or a channel admin can do that.",
        )

        match_docs = (
            db.collection(MATCHES_COLLECTION)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .stream()
        )
        operations: list[tuple[str, Any, Any]] = [
            ("delete", db.collection(MATCHES_COLLECTION).document(doc.id), None)
            for doc in match_docs
            if doc.exists
        ]
        if channel is not None:
            operations.append(
                (
                    "update",
                    db.collection(CHANNELS_COLLECTION).document(channel.id),
                    {"tournamentIds": firestore.ArrayRemove([tournament_id])},
                )
            )
        operations.append(
            ("delete", db.collection(TOURNAMENTS_COLLECTION).document(tournament_id), None)
        )
        commit_in_batches(db, operations)
        current_app.logger.info(f"Tournament {tournament_id} deleted by {user_uid}")

    @staticmethod
    def join_tournament(
        tournament_id: str, user: User, db: Client | None = None
    ) -> Tournament:
        """Register ``user`` as a participant."""
        if db is None:
            db = firestore.client()
        tournament = fetch_tournament(db, tournament_id)
        user_uid = user["uid"]

        if tournament.status == TOURNAMENT_COMPLETED:
            raise ValidationError("This tournament has already finished.")
        if tournament.has_participant(user_uid):
            raise ValidationError("You are already a participant.")
        if tournament.is_full:
            raise ValidationError("This tournament is full.")
        channel = fetch_tournament_channel(db, tournament)
        if channel is not None and channel.is_private:
            require(
                is_channel_member(user_uid, channel),
                "Join the channel before joining its tournaments.",
            )

        tournament.participants.append(
            Participant(user_id=user_uid, username=user.get("username") or user_uid)
        )
        TournamentService._save_participants(db, tournament)
        return tournament

    @staticmethod
    def add_guest(
        tournament_id: str, username: str, user_uid: str, db: Client | None = None
    ) -> Tournament:
        """Add a guest (no account) participant."""
        if db is None:
            db = firestore.client()
        tournament = fetch_tournament(db, tournament_id)
        TournamentService._require_manager(db, tournament, user_uid)

        guest = Participant(username=username.strip(), is_guest=True)
        if tournament.has_participant(guest.key):
            raise ValidationError("A guest with that name already participates.")
        if tournament.is_full:
            raise ValidationError("This tournament is full.")

        tournament.participants.append(guest)
        TournamentService._save_participants(db, tournament)
        return tournament

    @staticmethod
    def start_tournament(
        tournament_id: str, user_uid: str, db: Client | None = None
    ) -> Tournament:
        """Move a pending tournament to active."""
        if db is None:
            db = firestore.client()
        tournament = fetch_tournament(db, tournament_id)
        TournamentService._require_manager(db, tournament, user_uid)
        if tournament.status != TOURNAMENT_PENDING:
            raise ValidationError("Only pending tournaments can be started.")

        db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).update(
            {"status": TOURNAMENT_ACTIVE}
        )
        tournament.status = TOURNAMENT_ACTIVE
        return tournament

    @staticmethod
    def complete_tournament(
        tournament_id: str, user_uid: str, winner_id: str, db: Client | None = None
    ) -> Tournament:
        """Finalize the tournament with a winner and e-mail the results."""
        if db is None:
            db = firestore.client()
        tournament = fetch_tournament(db, tournament_id)
        TournamentService._require_manager(db, tournament, user_uid)
        if tournament.status == TOURNAMENT_COMPLETED:
            raise ValidationError("This tournament is already completed.")
        winner = tournament.find_participant(winner_id)
        if winner is None:
            raise ValidationError("The winner must be a tournament participant.")

        db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).update(
            {"status": TOURNAMENT_COMPLETED, "winnerId": winner.key}
        )
        tournament.status = TOURNAMENT_COMPLETED
        tournament.winner_id = winner.key
        TournamentService._notify_participants(db, tournament, winner.username)
        return tournament

    @staticmethod
    def _notify_participants(
        db: Client, tournament: Tournament, winner_name: str
    ) -> None:
        """Internal helper to send result emails."""
        for user_id in tournament.participant_ids:
            try:
                u_data = db.collection(USERS_COLLECTION).document(user_id).get().to_dict()
                if u_data and u_data.get("email"):
                    send_email(
                        to=u_data["email"],
                        subject=f"Results: {tournament.name}",
                        template="email/tournament_results.html",
                        user=u_data,
                        tournament=tournament.to_dict(),
                        winner_name=winner_name,
                    )
            except EmailError as e:
                current_app.logger.error(f"Email failed: {e}")

    @staticmethod
    def compute_channel_user_stats(
        channel_id: str, db: Client | None = None
    ) -> list[ChannelUserStats]:
        """Aggregate tournament wins/losses for everyone who played in a channel.

        A participant wins a tournament when it names them as ``winnerId``;
        every other tournament they entered counts as a loss.
        """
        if db is None:
            db = firestore.client()
        ChannelService.get_channel(channel_id, db=db)

        stats: dict[str, ChannelUserStats] = {}
        for tournament in TournamentService.list_channel_tournaments(channel_id, db=db):
            for participant in tournament.participants:
                entry = stats.setdefault(
                    participant.key,
                    {
                        "userId": participant.key,
                        "username": participant.username,
                        "isGuest": participant.is_guest,
                        "totalTournaments": 0,
                        "wins": 0,
                        "losses": 0,
                        "winRate": 0.0,
                    },
                )
                entry["totalTournaments"] += 1
                if tournament.winner_id == participant.key:
                    entry["wins"] += 1

        for entry in stats.values():
            entry["losses"] = entry["totalTournaments"] - entry["wins"]
            entry["winRate"] = (
                entry["wins"] / entry["totalTournaments"]
                if entry["totalTournaments"]
                else 0.0
            )

        return sorted(
            stats.values(),
            key=lambda e: (-e["wins"], -e["winRate"], e["username"].lower()),
        )
