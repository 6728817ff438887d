"""Data models for the match blueprint."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from leaguelink.core.constants import (
    MATCH_COMPLETED,
    MATCH_IN_PROGRESS,
    MATCH_PENDING,
    TEAM_KEYS,
)
from leaguelink.errors import ValidationError

if TYPE_CHECKING:
    from leaguelink.user.models import PlayerRef


def wins_needed(best_of: int) -> int:
    """Games a team must win to take a best-of-``best_of`` match."""
    return math.ceil(best_of / 2)


def validate_best_of(best_of: Any) -> int:
    """Return ``best_of`` if it is an odd integer >= 1, else raise ValidationError."""
    if isinstance(best_of, bool) or not isinstance(best_of, int):
        raise ValidationError("bestOf must be an integer.")
    if best_of < 1 or best_of % 2 != 1:
        raise ValidationError(
            f"{best_of} is not a valid bestOf value. "
            "Must be an odd number greater than or equal to 1."
        )
    return best_of


@dataclass
class Team:
    """One side of a match."""

    players: list[PlayerRef] = field(default_factory=list)
    is_guest: bool = False
    score: int = 0

    def validate(self, label: str) -> None:
        if not self.players:
            raise ValidationError(f"{label} must have at least one player.")
        for player in self.players:
            if not isinstance(player, dict) or not player.get("username"):
                raise ValidationError(f"Every {label} player needs a username.")
            if not self.is_guest and not player.get("userId"):
                raise ValidationError(f"Every {label} player needs a userId.")
        if isinstance(self.score, bool) or not isinstance(self.score, int):
            raise ValidationError(f"{label} score must be an integer.")
        if self.score < 0:
            raise ValidationError("Scores cannot be negative.")

    @property
    def player_ids(self) -> list[str]:
        return [p["userId"] for p in self.players if p.get("userId")]

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Team:
        data = data or {}
        return cls(
            players=[
                {"userId": p.get("userId", ""), "username": p.get("username", "")}
                for p in data.get("players", [])
                if isinstance(p, dict)
            ],
            is_guest=bool(data.get("isGuest", False)),
            score=data.get("score", 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "players": [dict(p) for p in self.players],
            "isGuest": self.is_guest,
            "score": self.score,
        }


@dataclass
class Match:
    """A single bracket match. Status and winner are derived from the scores."""

    tournament_id: str
    round: int
    match_number: int
    best_of: int
    team1: Team
    team2: Team
    position: dict[str, float] = field(default_factory=lambda: {"x": 0, "y": 0})
    next_match_id: Optional[str] = None
    stats: dict[str, Any] = field(default_factory=dict)
    id: str = ""
    created_at: Any = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check the document-level invariants."""
        if not self.tournament_id:
            raise ValidationError("Match tournament is required.")
        for name, value in (("round", self.round), ("matchNumber", self.match_number)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ValidationError(f"{name} must be a positive integer.")
        validate_best_of(self.best_of)
        self.team1.validate("Team 1")
        self.team2.validate("Team 2")

        target = wins_needed(self.best_of)
        if self.team1.score > target or self.team2.score > target:
            raise ValidationError(f"A team cannot win more than {target} games.")
        if self.team1.score == target and self.team2.score == target:
            raise ValidationError("Both teams cannot win the match.")
        if self.team1.score + self.team2.score > self.best_of:
            raise ValidationError(f"At most {self.best_of} games can be played.")
        if self.next_match_id and self.next_match_id == self.id:
            raise ValidationError("A match cannot advance into itself.")

    def team(self, key: str) -> Team:
        if key not in TEAM_KEYS:
            raise ValidationError(f"Unknown team: {key}.")
        return self.team1 if key == "team1" else self.team2

    @property
    def winner(self) -> Optional[str]:
        """``team1``/``team2`` once a side reaches ``ceil(bestOf/2)``, else None."""
        target = wins_needed(self.best_of)
        if self.team1.score >= target:
            return "team1"
        if self.team2.score >= target:
            return "team2"
        return None

    @property
    def status(self) -> str:
        if self.winner is not None:
            return MATCH_COMPLETED
        if self.team1.score or self.team2.score:
            return MATCH_IN_PROGRESS
        return MATCH_PENDING

    @property
    def games(self) -> list[dict[str, Any]]:
        return list(self.stats.get("games", []))

    @classmethod
    def from_snapshot(cls, doc: Any) -> Match:
        """Build a Match from a Firestore snapshot."""
        data = doc.to_dict() or {}
        return cls(
            id=doc.id,
            tournament_id=data.get("tournamentId", ""),
            round=data.get("round", 0),
            match_number=data.get("matchNumber", 0),
            best_of=data.get("bestOf", 0),
            team1=Team.from_dict(data.get("team1")),
            team2=Team.from_dict(data.get("team2")),
            position=dict(data.get("position") or {"x": 0, "y": 0}),
            next_match_id=data.get("nextMatchId"),
            stats=dict(data.get("stats") or {}),
            created_at=data.get("createdAt"),
        )

    def to_document(self) -> dict[str, Any]:
        """Return the Firestore representation (without id)."""
        return {
            "tournamentId": self.tournament_id,
            "round": self.round,
            "matchNumber": self.match_number,
            "position": dict(self.position),
            "bestOf": self.best_of,
            "team1": self.team1.to_dict(),
            "team2": self.team2.to_dict(),
            "participants": self.team1.player_ids + self.team2.player_ids,
            "nextMatchId": self.next_match_id,
            "stats": dict(self.stats),
            "status": self.status,
            "winner": self.winner,
        }

    def to_dict(self) -> dict[str, Any]:
        """Return the public JSON representation."""
        data = self.to_document()
        data["id"] = self.id
        data["createdAt"] = self.created_at
        return data


@dataclass
class MatchSubmission:
    """A request to create a match, as sent by clients (standalone or in bulk)."""

    round: Any
    match_number: Any
    best_of: Any
    team1: Any
    team2: Any
    position: Any = None
    next_match_id: Optional[str] = None
    temp_id: Optional[str] = None

    REQUIRED_FIELDS = ("round", "matchNumber", "position", "bestOf")

    @classmethod
    def from_payload(
        cls, payload: dict[str, Any], require_position: bool = False
    ) -> MatchSubmission:
        """Parse a camelCase JSON payload, checking required fields are present."""
        if not isinstance(payload, dict):
            raise ValidationError("Each match must be a JSON object.")
        required = cls.REQUIRED_FIELDS if require_position else ("round", "matchNumber", "bestOf")
        for name in required + ("team1", "team2"):
            if payload.get(name) is None:
                raise ValidationError(f"Missing required field: {name}")
        return cls(
            round=payload["round"],
            match_number=payload["matchNumber"],
            best_of=payload["bestOf"],
            team1=payload["team1"],
            team2=payload["team2"],
            position=payload.get("position"),
            next_match_id=payload.get("nextMatchId"),
            temp_id=payload.get("id") or payload.get("tempId"),
        )

    def build(self, tournament_id: str) -> Match:
        """Validate and build the Match entity (without bracket link)."""
        if not isinstance(self.team1, dict) or not isinstance(self.team2, dict):
            raise ValidationError("team1 and team2 must be objects.")
        position = self.position if isinstance(self.position, dict) else {"x": 0, "y": 0}
        return Match(
            tournament_id=tournament_id,
            round=self.round,
            match_number=self.match_number,
            best_of=self.best_of,
            team1=Team.from_dict(self.team1),
            team2=Team.from_dict(self.team2),
            position={"x": position.get("x", 0), "y": position.get("y", 0)},
        )
