"""Shared fixtures for service and API tests."""

from __future__ import annotations

import datetime
import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from mockfirestore import MockFirestore
from werkzeug.security import generate_password_hash

from leaguelink import create_app
from tests.conftest import (
    FIRESTORE_MODULES,
    MockBatch,
    mock_firestore_module,
    patch_mockfirestore,
)

OWNER_ID = "owner1"
ADMIN_ID = "admin1"
MEMBER_ID = "member1"
OUTSIDER_ID = "outsider1"
CHANNEL_ID = "channel1"
TOURNAMENT_ID = "tournament1"


def player(user_id: str) -> dict[str, str]:
    return {"userId": user_id, "username": f"{user_id}-name"}


def team(*user_ids: str, score: int = 0) -> dict[str, Any]:
    return {"players": [player(uid) for uid in user_ids], "isGuest": False, "score": score}


class FirestoreTestCase(unittest.TestCase):
    """Base case wiring every service module to an in-memory Firestore."""

    def setUp(self) -> None:
        patch_mockfirestore()
        self.db = MockFirestore()
        self.db.batch = MagicMock(side_effect=lambda: MockBatch(self.db))
        self.mock_firestore = mock_firestore_module(self.db)

        for module in FIRESTORE_MODULES:
            patcher = patch(f"{module}.firestore", new=self.mock_firestore)
            patcher.start()
            self.addCleanup(patcher.stop)

        self.app = create_app({"TESTING": True, "SERVER_NAME": "localhost"})
        self.app_context = self.app.app_context()
        self.app_context.push()
        self.addCleanup(self.app_context.pop)

    def seed_users(self, *user_ids: str) -> None:
        for uid in user_ids:
            self.db.collection("users").document(uid).set(
                {"username": f"{uid}-name", "email": f"{uid}@example.com"}
            )

    def seed_channel(
        self,
        channel_id: str = CHANNEL_ID,
        is_private: bool = False,
        passcode: str | None = None,
        members: tuple[str, ...] = (OWNER_ID, ADMIN_ID, MEMBER_ID),
    ) -> None:
        self.db.collection("channels").document(channel_id).set(
            {
                "name": "Sunday Padel",
                "description": "Weekly padel games in the park.",
                "ownerId": OWNER_ID,
                "sport": "padel",
                "isPrivate": is_private,
                "passcodeHash": generate_password_hash(passcode) if passcode else None,
                "image": "",
                "adminIds": [OWNER_ID, ADMIN_ID],
                "memberIds": list(members),
                "tournamentIds": [],
            }
        )

    def seed_tournament(
        self,
        tournament_id: str = TOURNAMENT_ID,
        channel_id: str = CHANNEL_ID,
        participants: list[dict[str, Any]] | None = None,
        max_participants: int = 8,
        status: str = "pending",
        winner_id: str | None = None,
        start_date: datetime.datetime | None = None,
    ) -> None:
        participants = participants or []
        self.db.collection("tournaments").document(tournament_id).set(
            {
                "name": "Spring Cup",
                "description": "Season opener.",
                "channelId": channel_id,
                "organizerId": OWNER_ID,
                "format": "single_elimination",
                "startDate": start_date or datetime.datetime(2024, 4, 1),
                "maxParticipants": max_participants,
                "rules": "",
                "prizes": "",
                "participants": participants,
                "participantIds": [
                    p["userId"] for p in participants if not p.get("isGuest")
                ],
                "matchIds": [],
                "status": status,
                "winnerId": winner_id,
            }
        )
        channel_ref = self.db.collection("channels").document(channel_id)
        if channel_ref.get().exists:
            ids = channel_ref.get().to_dict().get("tournamentIds", [])
            channel_ref.update({"tournamentIds": ids + [tournament_id]})

    def seed_match(
        self,
        match_id: str,
        tournament_id: str = TOURNAMENT_ID,
        round: int = 1,
        match_number: int = 1,
        best_of: int = 3,
        team1: dict[str, Any] | None = None,
        team2: dict[str, Any] | None = None,
        next_match_id: str | None = None,
    ) -> None:
        self.db.collection("matches").document(match_id).set(
            {
                "tournamentId": tournament_id,
                "round": round,
                "matchNumber": match_number,
                "position": {"x": 0, "y": 0},
                "bestOf": best_of,
                "team1": team1 or team("p1"),
                "team2": team2 or team("p2"),
                "nextMatchId": next_match_id,
                "stats": {},
                "status": "pending",
                "winner": None,
            }
        )
        t_ref = self.db.collection("tournaments").document(tournament_id)
        if t_ref.get().exists:
            ids = t_ref.get().to_dict().get("matchIds", [])
            t_ref.update({"matchIds": ids + [match_id]})

    def doc(self, collection: str, doc_id: str) -> dict[str, Any]:
        return self.db.collection(collection).document(doc_id).get().to_dict()


class ApiTestCase(FirestoreTestCase):
    """Base case for API tests with a test client and bearer-token auth."""

    def setUp(self) -> None:
        super().setUp()
        patchers = {
            "verify_id_token": patch("firebase_admin.auth.verify_id_token"),
        }
        self.mocks = {name: p.start() for name, p in patchers.items()}
        for p in patchers.values():
            self.addCleanup(p.stop)

        self.client = self.app.test_client()

    def login_as(self, uid: str) -> dict[str, str]:
        """Make the mock token verify as ``uid`` and return the auth headers."""
        self.mocks["verify_id_token"].return_value = {
            "uid": uid,
            "email": f"{uid}@example.com",
        }
        return {"Authorization": "Bearer mock-token"}
