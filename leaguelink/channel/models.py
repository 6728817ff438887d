"""Data models for the channel blueprint."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from leaguelink.core.constants import MIN_CHANNEL_NAME_LENGTH, MIN_DESCRIPTION_LENGTH
from leaguelink.errors import ValidationError


@dataclass
class Channel:
    """A community channel grouping members and their tournaments."""

    name: str
    description: str
    owner_id: str
    sport: str = ""
    is_private: bool = False
    passcode_hash: str | None = None
    image: str = ""
    admin_ids: list[str] = field(default_factory=list)
    member_ids: list[str] = field(default_factory=list)
    tournament_ids: list[str] = field(default_factory=list)
    id: str = ""
    created_at: Any = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Check the document-level invariants."""
        if len((self.name or "").strip()) < MIN_CHANNEL_NAME_LENGTH:
            raise ValidationError(
                f"Channel name must be at least {MIN_CHANNEL_NAME_LENGTH} characters long."
            )
        if len((self.description or "").strip()) < MIN_DESCRIPTION_LENGTH:
            raise ValidationError(
                f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters long."
            )
        if not self.owner_id:
            raise ValidationError("Channel owner is required.")
        if self.is_private and not self.passcode_hash:
            raise ValidationError("Private channels require a passcode.")

    @classmethod
    def from_snapshot(cls, doc: Any) -> Channel:
        """Build a Channel from a Firestore snapshot."""
        data = doc.to_dict() or {}
        return cls(
            id=doc.id,
            name=data.get("name", ""),
            description=data.get("description", ""),
            owner_id=data.get("ownerId", ""),
            sport=data.get("sport", ""),
            is_private=bool(data.get("isPrivate", False)),
            passcode_hash=data.get("passcodeHash"),
            image=data.get("image", ""),
            admin_ids=list(data.get("adminIds", [])),
            member_ids=list(data.get("memberIds", [])),
            tournament_ids=list(data.get("tournamentIds", [])),
            created_at=data.get("createdAt"),
        )

    def to_document(self) -> dict[str, Any]:
        """Return the Firestore representation (without id)."""
        return {
            "name": self.name.strip(),
            "description": self.description.strip(),
            "ownerId": self.owner_id,
            "sport": self.sport,
            "isPrivate": self.is_private,
            "passcodeHash": self.passcode_hash,
            "image": self.image,
            "adminIds": list(self.admin_ids),
            "memberIds": list(self.member_ids),
            "tournamentIds": list(self.tournament_ids),
        }

    def to_dict(self) -> dict[str, Any]:
        """Return the public JSON representation."""
        data = self.to_document()
        del data["passcodeHash"]
        data["id"] = self.id
        data["createdAt"] = self.created_at
        return data
