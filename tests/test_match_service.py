"""Tests for the match service."""

from __future__ import annotations

import unittest

from leaguelink.errors import NotFoundError, PermissionDeniedError, ValidationError
from leaguelink.match.models import MatchSubmission
from leaguelink.match.services import MatchService
from tests.helpers import (
    ADMIN_ID,
    MEMBER_ID,
    OUTSIDER_ID,
    OWNER_ID,
    TOURNAMENT_ID,
    FirestoreTestCase,
    team,
)


def match_payload(**overrides):
    data = {
        "round": 1,
        "matchNumber": 1,
        "bestOf": 3,
        "position": {"x": 0, "y": 0},
        "team1": team("p1"),
        "team2": team("p2"),
    }
    data.update(overrides)
    return data


class MatchServiceTestCase(FirestoreTestCase):
    """Test case for creating and scoring matches."""

    def setUp(self) -> None:
        super().setUp()
        self.seed_users(OWNER_ID, ADMIN_ID, MEMBER_ID, OUTSIDER_ID, "p1", "p2")
        self.seed_channel()
        self.seed_tournament()

    def stored_match_ids(self) -> list[str]:
        return [d.id for d in self.db.collection("matches").stream() if d.exists]

    def test_create_match(self) -> None:
        """A created match is stored and appended to the tournament."""
        submission = MatchSubmission.from_payload(match_payload())
        match = MatchService.create_match(TOURNAMENT_ID, submission, OWNER_ID)

        self.assertEqual(match.status, "pending")
        self.assertEqual(self.stored_match_ids(), [match.id])
        self.assertIn(match.id, self.doc("tournaments", TOURNAMENT_ID)["matchIds"])

    def test_create_match_by_channel_admin(self) -> None:
        submission = MatchSubmission.from_payload(match_payload())
        match = MatchService.create_match(TOURNAMENT_ID, submission, ADMIN_ID)
        self.assertEqual(match.tournament_id, TOURNAMENT_ID)

    def test_create_match_even_best_of(self) -> None:
        """An even bestOf is rejected and nothing is written."""
        submission = MatchSubmission.from_payload(match_payload(bestOf=4))
        with self.assertRaises(ValidationError):
            MatchService.create_match(TOURNAMENT_ID, submission, OWNER_ID)
        self.assertEqual(self.stored_match_ids(), [])
        self.assertEqual(self.doc("tournaments", TOURNAMENT_ID)["matchIds"], [])

    def test_create_match_requires_manager(self) -> None:
        submission = MatchSubmission.from_payload(match_payload())
        with self.assertRaises(PermissionDeniedError):
            MatchService.create_match(TOURNAMENT_ID, submission, MEMBER_ID)

    def test_create_match_unknown_tournament(self) -> None:
        submission = MatchSubmission.from_payload(match_payload())
        with self.assertRaises(NotFoundError):
            MatchService.create_match("missing", submission, OWNER_ID)

    def test_create_match_unknown_next_match(self) -> None:
        submission = MatchSubmission.from_payload(match_payload(nextMatchId="nope"))
        with self.assertRaises(ValidationError):
            MatchService.create_match(TOURNAMENT_ID, submission, OWNER_ID)

    def test_create_match_next_match_in_other_tournament(self) -> None:
        self.seed_tournament("other")
        self.seed_match("foreign", tournament_id="other")
        submission = MatchSubmission.from_payload(match_payload(nextMatchId="foreign"))
        with self.assertRaises(ValidationError):
            MatchService.create_match(TOURNAMENT_ID, submission, OWNER_ID)

    def test_two_nil_completes_best_of_three(self) -> None:
        """Two games to team1 in a best of three complete the match."""
        self.seed_match("m1")

        match = MatchService.record_game_result("m1", 1, "team1", OWNER_ID)
        self.assertEqual(match.status, "in_progress")
        self.assertEqual(match.team1.score, 1)

        match = MatchService.record_game_result("m1", 2, "team1", OWNER_ID)
        self.assertEqual(match.status, "completed")
        self.assertEqual(match.winner, "team1")
        self.assertEqual(match.team1.score, 2)
        self.assertEqual(match.team2.score, 0)
        self.assertEqual(
            match.games,
            [
                {"gameNumber": 1, "winner": "team1"},
                {"gameNumber": 2, "winner": "team1"},
            ],
        )
        stored = self.doc("matches", "m1")
        self.assertEqual(stored["status"], "completed")
        self.assertEqual(stored["winner"], "team1")

    def test_record_on_completed_match(self) -> None:
        self.seed_match("m1", team1=team("p1", score=2))
        with self.assertRaises(ValidationError):
            MatchService.record_game_result("m1", 3, "team2", OWNER_ID)

    def test_record_duplicate_game(self) -> None:
        self.seed_match("m1")
        MatchService.record_game_result("m1", 1, "team1", OWNER_ID)
        with self.assertRaises(ValidationError):
            MatchService.record_game_result("m1", 1, "team2", OWNER_ID)
        self.assertEqual(self.doc("matches", "m1")["team2"]["score"], 0)

    def test_record_game_number_out_of_range(self) -> None:
        self.seed_match("m1")
        with self.assertRaises(ValidationError):
            MatchService.record_game_result("m1", 4, "team1", OWNER_ID)

    def test_record_unknown_team(self) -> None:
        self.seed_match("m1")
        with self.assertRaises(ValidationError):
            MatchService.record_game_result("m1", 1, "team3", OWNER_ID)

    def test_player_can_record_result(self) -> None:
        self.seed_match("m1")
        match = MatchService.record_game_result("m1", 1, "team2", "p2")
        self.assertEqual(match.team2.score, 1)

    def test_outsider_cannot_record_result(self) -> None:
        self.seed_match("m1")
        with self.assertRaises(PermissionDeniedError):
            MatchService.record_game_result("m1", 1, "team1", OUTSIDER_ID)

    def test_record_missing_match(self) -> None:
        with self.assertRaises(NotFoundError):
            MatchService.record_game_result("nope", 1, "team1", OWNER_ID)

    def test_update_stats_merges(self) -> None:
        self.seed_match("m1")
        MatchService.record_game_result("m1", 1, "team1", OWNER_ID)

        stats = MatchService.update_stats(
            "m1", {"aces": 4, "games": []}, OWNER_ID
        )
        self.assertEqual(stats["aces"], 4)
        self.assertEqual(len(stats["games"]), 1)

        stats = MatchService.update_stats("m1", {"faults": 2}, ADMIN_ID)
        self.assertEqual(stats["aces"], 4)
        self.assertEqual(stats["faults"], 2)

    def test_update_stats_requires_manager(self) -> None:
        self.seed_match("m1")
        with self.assertRaises(PermissionDeniedError):
            MatchService.update_stats("m1", {"aces": 1}, "p1")

    def test_update_match_teams_and_best_of(self) -> None:
        """A pending match can get new teams and a longer format."""
        self.seed_match("m1")
        match = MatchService.update_match(
            "m1",
            {"bestOf": 5, "team2": team("p2", MEMBER_ID, score=3)},
            ADMIN_ID,
        )

        self.assertEqual(match.best_of, 5)
        self.assertEqual(match.team2.player_ids, ["p2", MEMBER_ID])
        self.assertEqual(match.team2.score, 0)
        self.assertEqual(match.team1.player_ids, ["p1"])
        stored = self.doc("matches", "m1")
        self.assertEqual(stored["bestOf"], 5)
        self.assertEqual(stored["participants"], ["p1", "p2", MEMBER_ID])

    def test_update_match_even_best_of(self) -> None:
        self.seed_match("m1")
        with self.assertRaises(ValidationError):
            MatchService.update_match("m1", {"bestOf": 4}, OWNER_ID)
        self.assertEqual(self.doc("matches", "m1")["bestOf"], 3)

    def test_update_match_empty_team(self) -> None:
        self.seed_match("m1")
        with self.assertRaises(ValidationError):
            MatchService.update_match("m1", {"team1": {"players": []}}, OWNER_ID)

    def test_update_started_match(self) -> None:
        """Once a game is recorded the match can no longer be edited."""
        self.seed_match("m1")
        MatchService.record_game_result("m1", 1, "team1", OWNER_ID)
        with self.assertRaises(ValidationError):
            MatchService.update_match("m1", {"bestOf": 5}, OWNER_ID)
        self.assertEqual(self.doc("matches", "m1")["bestOf"], 3)

    def test_update_match_requires_manager(self) -> None:
        self.seed_match("m1")
        with self.assertRaises(PermissionDeniedError):
            MatchService.update_match("m1", {"bestOf": 5}, "p1")

    def test_list_tournament_matches_ordered(self) -> None:
        self.seed_match("final", round=2, match_number=1)
        self.seed_match("semi2", round=1, match_number=2)
        self.seed_match("semi1", round=1, match_number=1)

        matches = MatchService.list_tournament_matches(TOURNAMENT_ID)
        self.assertEqual([m.id for m in matches], ["semi1", "semi2", "final"])


class BracketTestCase(FirestoreTestCase):
    """Test case for winner advancement and bracket links."""

    def setUp(self) -> None:
        super().setUp()
        self.seed_users(OWNER_ID, "p1", "p2", "p3", "p4")
        self.seed_channel()
        self.seed_tournament()
        self.seed_match("final", round=2, match_number=1)
        self.seed_match(
            "semi1", match_number=1, team1=team("p1"), team2=team("p2"),
            next_match_id="final",
        )
        self.seed_match(
            "semi2", match_number=2, team1=team("p3"), team2=team("p4"),
            next_match_id="final",
        )

    def test_winners_fill_slots_in_bracket_order(self) -> None:
        """The first feeder fills team1, the second fills team2."""
        MatchService.record_game_result("semi2", 1, "team2", OWNER_ID)
        MatchService.record_game_result("semi2", 2, "team2", OWNER_ID)
        final = MatchService.get_match("final")
        self.assertEqual(final.team2.player_ids, ["p4"])
        self.assertEqual(final.team2.score, 0)

        MatchService.record_game_result("semi1", 1, "team1", OWNER_ID)
        MatchService.record_game_result("semi1", 2, "team1", OWNER_ID)
        final = MatchService.get_match("final")
        self.assertEqual(final.team1.player_ids, ["p1"])
        self.assertEqual(final.team2.player_ids, ["p4"])
        self.assertEqual(final.status, "pending")

    def test_no_advance_into_started_match(self) -> None:
        self.db.collection("matches").document("final").update(
            {"team1": team("p9", score=1)}
        )
        semi1 = MatchService.get_match("semi1")
        semi1.team1.score = 2
        self.assertIsNone(MatchService.advance_winner(semi1))
        self.assertEqual(self.doc("matches", "final")["team1"]["score"], 1)

    def test_no_advance_without_winner(self) -> None:
        self.assertIsNone(MatchService.advance_winner(MatchService.get_match("semi1")))

    def test_delete_match_clears_feeder_links(self) -> None:
        """Deleting a match unlinks its feeders and drops it from the tournament."""
        MatchService.delete_match("final", OWNER_ID)

        self.assertIsNone(self.doc("matches", "semi1")["nextMatchId"])
        self.assertIsNone(self.doc("matches", "semi2")["nextMatchId"])
        self.assertFalse(self.db.collection("matches").document("final").get().exists)
        self.assertEqual(
            sorted(self.doc("tournaments", TOURNAMENT_ID)["matchIds"]),
            ["semi1", "semi2"],
        )

    def test_delete_match_requires_manager(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            MatchService.delete_match("final", "p1")


class BulkCreateTestCase(FirestoreTestCase):
    """Test case for two-pass bracket creation."""

    def setUp(self) -> None:
        super().setUp()
        self.seed_users(OWNER_ID, MEMBER_ID)
        self.seed_channel()
        self.seed_tournament()

    def bracket(self):
        return [
            match_payload(id="a", matchNumber=1, nextMatchId="c"),
            match_payload(id="b", matchNumber=2, nextMatchId="c",
                          team1=team("p3"), team2=team("p4")),
            match_payload(id="c", round=2, matchNumber=1, position={"x": 200, "y": 50}),
        ]

    def stored_match_ids(self) -> list[str]:
        return [d.id for d in self.db.collection("matches").stream() if d.exists]

    def test_temp_ids_resolved(self) -> None:
        """Temporary nextMatchId values are replaced by the new document ids."""
        matches = MatchService.bulk_create_matches(TOURNAMENT_ID, self.bracket(), OWNER_ID)

        self.assertEqual(len(matches), 3)
        a, b, c = matches
        self.assertEqual(a.next_match_id, c.id)
        self.assertEqual(b.next_match_id, c.id)
        self.assertIsNone(c.next_match_id)
        self.assertNotIn(c.id, ("a", "b", "c"))
        self.assertEqual(c.position, {"x": 200, "y": 50})
        self.assertEqual(
            sorted(self.doc("tournaments", TOURNAMENT_ID)["matchIds"]),
            sorted(m.id for m in matches),
        )

    def test_link_to_existing_match(self) -> None:
        self.seed_match("existing", round=3)
        matches = MatchService.bulk_create_matches(
            TOURNAMENT_ID, [match_payload(nextMatchId="existing")], OWNER_ID
        )
        self.assertEqual(matches[0].next_match_id, "existing")

    def test_unknown_link_rejects_batch(self) -> None:
        """A bad entry rejects the whole batch before anything is written."""
        payloads = self.bracket()
        payloads[1]["nextMatchId"] = "zzz"
        with self.assertRaises(ValidationError):
            MatchService.bulk_create_matches(TOURNAMENT_ID, payloads, OWNER_ID)
        self.assertEqual(self.stored_match_ids(), [])
        self.assertEqual(self.doc("tournaments", TOURNAMENT_ID)["matchIds"], [])

    def test_invalid_entry_rejects_batch(self) -> None:
        payloads = self.bracket()
        payloads[2]["bestOf"] = 2
        with self.assertRaises(ValidationError):
            MatchService.bulk_create_matches(TOURNAMENT_ID, payloads, OWNER_ID)
        self.assertEqual(self.stored_match_ids(), [])

    def test_missing_position_rejected(self) -> None:
        payloads = self.bracket()
        del payloads[0]["position"]
        with self.assertRaises(ValidationError) as cm:
            MatchService.bulk_create_matches(TOURNAMENT_ID, payloads, OWNER_ID)
        self.assertEqual(cm.exception.message, "Missing required field: position")

    def test_duplicate_temp_ids_rejected(self) -> None:
        payloads = self.bracket()
        payloads[1]["id"] = "a"
        with self.assertRaises(ValidationError):
            MatchService.bulk_create_matches(TOURNAMENT_ID, payloads, OWNER_ID)

    def test_self_link_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            MatchService.bulk_create_matches(
                TOURNAMENT_ID, [match_payload(id="a", nextMatchId="a")], OWNER_ID
            )

    def test_empty_list_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            MatchService.bulk_create_matches(TOURNAMENT_ID, [], OWNER_ID)

    def test_requires_manager(self) -> None:
        with self.assertRaises(PermissionDeniedError):
            MatchService.bulk_create_matches(TOURNAMENT_ID, self.bracket(), MEMBER_ID)
        self.assertEqual(self.stored_match_ids(), [])


if __name__ == "__main__":
    unittest.main()
