"""Data models for the tournament blueprint."""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any, Optional, TypedDict

from leaguelink.core.constants import (
    GUEST_KEY_PREFIX,
    MIN_PARTICIPANTS,
    MIN_TOURNAMENT_NAME_LENGTH,
    PARTICIPANT_ACCEPTED,
    TOURNAMENT_FORMATS,
    TOURNAMENT_PENDING,
    TOURNAMENT_STATUSES,
)
from leaguelink.errors import ValidationError


class ChannelUserStats(TypedDict):
    """Per-participant aggregate across a channel's tournaments."""

    userId: str
    username: str
    isGuest: bool
    totalTournaments: int
    wins: int
    losses: int
    winRate: float


@dataclass
class Participant:
    """An entry in a tournament's participant list."""

    username: str
    user_id: Optional[str] = None
    is_guest: bool = False
    status: str = PARTICIPANT_ACCEPTED

    @property
    def key(self) -> str:
        """Stable identity: the user id, or ``guest:<username>`` for guests."""
        if self.is_guest or not self.user_id:
            return f"{GUEST_KEY_PREFIX}{self.username}"
        return self.user_id

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Participant:
        return cls(
            username=data.get("username", ""),
            user_id=data.get("userId"),
            is_guest=bool(data.get("isGuest", False)),
            status=data.get("status", PARTICIPANT_ACCEPTED),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "username": self.username,
            "isGuest": self.is_guest,
            "status": self.status,
        }


@dataclass
class Tournament:
    """A tournament hosted in a channel."""

    name: str
    channel_id: str
    organizer_id: str
    format: str
    start_date: Any
    max_participants: int
    description: str = ""
    rules: str = ""
    prizes: str = ""
    participants: list[Participant] = field(default_factory=list)
    match_ids: list[str] = field(default_factory=list)
    status: str = TOURNAMENT_PENDING
    winner_id: Optional[str] = None
    id: str = ""
    created_at: Any = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check the document-level invariants."""
        if len((self.name or "").strip()) < MIN_TOURNAMENT_NAME_LENGTH:
            raise ValidationError(
                f"Tournament name must be at least {MIN_TOURNAMENT_NAME_LENGTH} characters long."
            )
        if not self.channel_id:
            raise ValidationError("Tournament channel is required.")
        if not self.organizer_id:
            raise ValidationError("Tournament organizer is required.")
        if self.format not in TOURNAMENT_FORMATS:
            raise ValidationError(f"Invalid tournament format: {self.format}.")
        if self.status not in TOURNAMENT_STATUSES:
            raise ValidationError(f"Invalid tournament status: {self.status}.")
        if self.start_date is None:
            raise ValidationError("Start date is required.")
        if not isinstance(self.start_date, datetime.datetime):
            raise ValidationError("Start date must be a date and time.")
        if (
            isinstance(self.max_participants, bool)
            or not isinstance(self.max_participants, int)
            or self.max_participants < MIN_PARTICIPANTS
        ):
            raise ValidationError(
                f"Max participants must be at least {MIN_PARTICIPANTS}."
            )
        if len(self.participants) > self.max_participants:
            raise ValidationError("Tournament has more participants than allowed.")

    @property
    def participant_ids(self) -> list[str]:
        """Ids of the registered (non-guest) participants."""
        return [p.user_id for p in self.participants if p.user_id and not p.is_guest]

    @property
    def is_full(self) -> bool:
        return len(self.participants) >= self.max_participants

    def has_participant(self, key: str) -> bool:
        return any(p.key == key for p in self.participants)

    def find_participant(self, key: str) -> Optional[Participant]:
        return next((p for p in self.participants if p.key == key), None)

    @classmethod
    def from_snapshot(cls, doc: Any) -> Tournament:
        """Build a Tournament from a Firestore snapshot."""
        data = doc.to_dict() or {}
        return cls(
            id=doc.id,
            name=data.get("name", ""),
            description=data.get("description", ""),
            channel_id=data.get("channelId", ""),
            organizer_id=data.get("organizerId", ""),
            format=data.get("format", ""),
            start_date=data.get("startDate"),
            max_participants=data.get("maxParticipants", 0),
            rules=data.get("rules", ""),
            prizes=data.get("prizes", ""),
            participants=[
                Participant.from_dict(p) for p in data.get("participants", []) if p
            ],
            match_ids=list(data.get("matchIds", [])),
            status=data.get("status", TOURNAMENT_PENDING),
            winner_id=data.get("winnerId"),
            created_at=data.get("createdAt"),
        )

    def to_document(self) -> dict[str, Any]:
        """Return the Firestore representation (without id)."""
        return {
            "name": self.name.strip(),
            "description": self.description,
            "channelId": self.channel_id,
            "organizerId": self.organizer_id,
            "format": self.format,
            "startDate": self.start_date,
            "maxParticipants": self.max_participants,
            "rules": self.rules,
            "prizes": self.prizes,
            "participants": [p.to_dict() for p in self.participants],
            "participantIds": self.participant_ids,
            "matchIds": list(self.match_ids),
            "status": self.status,
            "winnerId": self.winner_id,
        }

    def to_dict(self) -> dict[str, Any]:
        """Return the public JSON representation."""
        data = self.to_document()
        data["id"] = self.id
        data["createdAt"] = self.created_at
        return data
