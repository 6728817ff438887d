"""Service layer for the match lifecycle and bracket linkage."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app

from leaguelink.auth.permissions import (
    can_manage_tournament,
    can_record_result,
    require,
)
from leaguelink.core.constants import (
    MATCH_COMPLETED,
    MATCH_PENDING,
    MATCHES_COLLECTION,
    TEAM_KEYS,
    TOURNAMENTS_COLLECTION,
)
from leaguelink.errors import NotFoundError, ValidationError
from leaguelink.tournament.utils import fetch_tournament, fetch_tournament_channel
from leaguelink.utils import commit_in_batches

from .models import Match, MatchSubmission, Team, validate_best_of

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client

    from leaguelink.tournament.models import Tournament

RESERVED_STATS_KEYS = ("games",)


class MatchService:
    """Create, score, advance and delete matches while keeping the bracket linked."""

    @staticmethod
    def _require_manager(db: Client, tournament: Tournament, user_uid: str) -> None:
        channel = fetch_tournament_channel(db, tournament)
        require(
            can_manage_tournament(user_uid, tournament, channel),
            "Only the tournament organizer or a channel admin can do that.",
        )

    @staticmethod
    def _feeders(db: Client, match_id: str) -> list[Match]:
        """Matches whose winner advances into ``match_id``, in bracket order."""
        docs = (
            db.collection(MATCHES_COLLECTION)
            .where(filter=firestore.FieldFilter("nextMatchId", "==", match_id))
            .stream()
        )
        feeders = [Match.from_snapshot(doc) for doc in docs if doc.exists]
        feeders.sort(key=lambda m: (m.round, m.match_number, m.id))
        return feeders

    @staticmethod
    def get_match(match_id: str, db: Client | None = None) -> Match:
        """Fetch a match or raise NotFoundError."""
        if db is None:
            db = firestore.client()
        doc = cast(Any, db.collection(MATCHES_COLLECTION).document(match_id).get())
        if not doc.exists:
            raise NotFoundError("Match not found.")
        return Match.from_snapshot(doc)

    @staticmethod
    def list_tournament_matches(
        tournament_id: str, db: Client | None = None
    ) -> list[Match]:
        """Fetch a tournament's matches ordered by round, then match number."""
        if db is None:
            db = firestore.client()
        fetch_tournament(db, tournament_id)
        docs = (
            db.collection(MATCHES_COLLECTION)
            .where(filter=firestore.FieldFilter("tournamentId", "==", tournament_id))
            .stream()
        )
        matches = [Match.from_snapshot(doc) for doc in docs if doc.exists]
        matches.sort(key=lambda m: (m.round, m.match_number))
        return matches

    @staticmethod
    def create_match(
        tournament_id: str,
        submission: MatchSubmission,
        user_uid: str,
        db: Client | None = None,
    ) -> Match:
        """Create a match and append it to the tournament's match list."""
        if db is None:
            db = firestore.client()
        tournament = fetch_tournament(db, tournament_id)
        MatchService._require_manager(db, tournament, user_uid)

        match = submission.build(tournament_id)
        if submission.next_match_id:
            try:
                next_match = MatchService.get_match(submission.next_match_id, db=db)
            except NotFoundError as e:
                raise ValidationError(
                    f"Unknown nextMatchId: {submission.next_match_id}"
                ) from e
            if next_match.tournament_id != tournament_id:
                raise ValidationError("The next match belongs to another tournament.")
            match.next_match_id = next_match.id

        ref = db.collection(MATCHES_COLLECTION).document()
        ref.set({**match.to_document(), "createdAt": firestore.SERVER_TIMESTAMP})
        db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).update(
            {"matchIds": firestore.ArrayUnion([ref.id])}
        )
        current_app.logger.info(
            f"Match {ref.id} created in tournament {tournament_id}"
        )
        return MatchService.get_match(ref.id, db=db)

    @staticmethod
    def bulk_create_matches(
        tournament_id: str,
        payloads: list[dict[str, Any]],
        user_uid: str,
        db: Client | None = None,
    ) -> list[Match]:
        """Create a whole bracket in two passes.

        Every entry is validated before anything is written, so a bad entry
        rejects the batch. Pass 1 creates the matches and maps each caller
        supplied temporary id to the new document id; pass 2 resolves
        ``nextMatchId`` through that map and persists the links. Pass 2 is
        not rolled back if it fails part way.
        """
        if db is None:
            db = firestore.client()
        tournament = fetch_tournament(db, tournament_id)
        MatchService._require_manager(db, tournament, user_uid)

        if not isinstance(payloads, list) or not payloads:
            raise ValidationError("Provide a non-empty list of matches.")

        submissions = [
            MatchSubmission.from_payload(p, require_position=True) for p in payloads
        ]
        matches = [s.build(tournament_id) for s in submissions]

        temp_ids = [s.temp_id for s in submissions if s.temp_id]
        if len(temp_ids) != len(set(temp_ids)):
            raise ValidationError("Temporary match ids must be unique.")
        existing_ids = set(tournament.match_ids)
        for s in submissions:
            if not s.next_match_id:
                continue
            if s.temp_id and s.next_match_id == s.temp_id:
                raise ValidationError("A match cannot advance into itself.")
            if s.next_match_id not in temp_ids and s.next_match_id not in existing_ids:
                raise ValidationError(f"Unknown nextMatchId: {s.next_match_id}")

        # Pass 1: create every match and remember temp id -> real id.
        id_map: dict[str, str] = {}
        refs = []
        for s, match in zip(submissions, matches):
            ref = db.collection(MATCHES_COLLECTION).document()
            ref.set({**match.to_document(), "createdAt": firestore.SERVER_TIMESTAMP})
            refs.append(ref)
            if s.temp_id:
                id_map[s.temp_id] = ref.id
        db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).update(
            {"matchIds": firestore.ArrayUnion([ref.id for ref in refs])}
        )

        # Pass 2: resolve and persist bracket links.
        links = []
        for s, ref in zip(submissions, refs):
            if s.next_match_id:
                real_id = id_map.get(s.next_match_id, s.next_match_id)
                links.append(("update", ref, {"nextMatchId": real_id}))
        if links:
            commit_in_batches(db, links)

        current_app.logger.info(
            f"Bulk created {len(refs)} matches ({len(links)} links) "
            f"in tournament {tournament_id}"
        )
        return [MatchService.get_match(ref.id, db=db) for ref in refs]

    @staticmethod
    def record_game_result(
        match_id: str,
        game_number: Any,
        winner_team: str,
        user_uid: str,
        db: Client | None = None,
    ) -> Match:
        """Credit one game to ``winner_team`` and re-derive the match status."""
        if db is None:
            db = firestore.client()
        match = MatchService.get_match(match_id, db=db)
        tournament = fetch_tournament(db, match.tournament_id)
        channel = fetch_tournament_channel(db, tournament)
        require(
            can_record_result(user_uid, match, tournament, channel),
            "Only players in this match, the organizer or a channel admin can record results.",
        )

        if winner_team not in TEAM_KEYS:
            raise ValidationError("winnerTeam must be 'team1' or 'team2'.")
        if match.status == MATCH_COMPLETED:
            raise ValidationError("This match is already completed.")
        if (
            isinstance(game_number, bool)
            or not isinstance(game_number, int)
            or not 1 <= game_number <= match.best_of
        ):
            raise ValidationError(f"gameNumber must be between 1 and {match.best_of}.")
        if any(game.get("gameNumber") == game_number for game in match.games):
            raise ValidationError(f"Game {game_number} has already been recorded.")

        match.team(winner_team).score += 1
        match.stats["games"] = match.games + [
            {"gameNumber": game_number, "winner": winner_team}
        ]
        match.validate()

        db.collection(MATCHES_COLLECTION).document(match_id).update(
            {
                "team1": match.team1.to_dict(),
                "team2": match.team2.to_dict(),
                "stats": match.stats,
                "status": match.status,
                "winner": match.winner,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
        )

        if match.status == MATCH_COMPLETED:
            current_app.logger.info(
                f"Match {match_id} completed, winner {match.winner}"
            )
            MatchService.advance_winner(match, db=db)
        return MatchService.get_match(match_id, db=db)

    @staticmethod
    def advance_winner(match: Match, db: Client | None = None) -> str | None:
        """Copy the winners of a completed match into its next match.

        The first feeder (by round and match number) fills ``team1`` of the
        next match, any later feeder fills ``team2``. Returns the slot filled,
        or None when there is nothing to advance into.
        """
        if db is None:
            db = firestore.client()
        if match.winner is None or not match.next_match_id:
            return None

        try:
            next_match = MatchService.get_match(match.next_match_id, db=db)
        except NotFoundError:
            current_app.logger.warning(
                f"Match {match.id} points at missing next match {match.next_match_id}"
            )
            return None
        if next_match.status != MATCH_PENDING:
            current_app.logger.warning(
                f"Next match {next_match.id} already started; not advancing {match.id}"
            )
            return None

        feeders = MatchService._feeders(db, next_match.id)
        is_first = not feeders or feeders[0].id == match.id
        slot = "team1" if is_first else "team2"

        winners = match.team(match.winner)
        db.collection(MATCHES_COLLECTION).document(next_match.id).update(
            {
                slot: {
                    "players": [dict(p) for p in winners.players],
                    "isGuest": winners.is_guest,
                    "score": 0,
                }
            }
        )
        current_app.logger.info(
            f"Advanced {match.winner} of {match.id} into {next_match.id}.{slot}"
        )
        return slot

    @staticmethod
    def update_match(
        match_id: str,
        data: dict[str, Any],
        user_uid: str,
        db: Client | None = None,
    ) -> Match:
        """Change the teams or bestOf of a match that has not started."""
        if db is None:
            db = firestore.client()
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object.")
        match = MatchService.get_match(match_id, db=db)
        tournament = fetch_tournament(db, match.tournament_id)
        MatchService._require_manager(db, tournament, user_uid)
        if match.status != MATCH_PENDING:
            raise ValidationError("Only pending matches can be edited.")

        if "bestOf" in data:
            match.best_of = validate_best_of(data["bestOf"])
        for key in TEAM_KEYS:
            if key not in data:
                continue
            if not isinstance(data[key], dict):
                raise ValidationError(f"{key} must be an object.")
            team = Team.from_dict(data[key])
            team.score = 0
            setattr(match, key, team)
        match.validate()

        db.collection(MATCHES_COLLECTION).document(match_id).update(
            {
                "bestOf": match.best_of,
                "team1": match.team1.to_dict(),
                "team2": match.team2.to_dict(),
                "participants": match.team1.player_ids + match.team2.player_ids,
                "status": match.status,
                "winner": match.winner,
                "updatedAt": firestore.SERVER_TIMESTAMP,
            }
        )
        current_app.logger.info(f"Match {match_id} edited by {user_uid}")
        return MatchService.get_match(match_id, db=db)

    @staticmethod
    def update_stats(
        match_id: str,
        stats: dict[str, Any],
        user_uid: str,
        db: Client | None = None,
    ) -> dict[str, Any]:
        """Shallow-merge free-form stats into the match and return the result."""
        if db is None:
            db = firestore.client()
        if not isinstance(stats, dict):
            raise ValidationError("Stats must be a JSON object.")
        match = MatchService.get_match(match_id, db=db)
        tournament = fetch_tournament(db, match.tournament_id)
        MatchService._require_manager(db, tournament, user_uid)

        merged = {
            **match.stats,
            **{k: v for k, v in stats.items() if k not in RESERVED_STATS_KEYS},
        }
        db.collection(MATCHES_COLLECTION).document(match_id).update({"stats": merged})
        return merged

    @staticmethod
    def delete_match(match_id: str, user_uid: str, db: Client | None = None) -> None:
        """Delete a match, unlinking its feeders and pulling it from the tournament."""
        if db is None:
            db = firestore.client()
        match = MatchService.get_match(match_id, db=db)
        tournament = fetch_tournament(db, match.tournament_id)
        MatchService._require_manager(db, tournament, user_uid)

        operations: list[tuple[str, Any, Any]] = [
            (
                "update",
                db.collection(MATCHES_COLLECTION).document(feeder.id),
                {"nextMatchId": None},
            )
            for feeder in MatchService._feeders(db, match_id)
        ]
        operations.append(
            (
                "update",
                db.collection(TOURNAMENTS_COLLECTION).document(tournament.id),
                {"matchIds": firestore.ArrayRemove([match_id])},
            )
        )
        operations.append(
            ("delete", db.collection(MATCHES_COLLECTION).document(match_id), None)
        )
        commit_in_batches(db, operations)
        current_app.logger.info(
            f"Match {match_id} deleted; {len(operations) - 2} feeder link(s) cleared"
        )
