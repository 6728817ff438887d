"""Data models for the user blueprint."""

from __future__ import annotations

from typing import TypedDict

from leaguelink.core.types import FirestoreDocument


class User(FirestoreDocument, total=False):
    """A user document in Firestore."""

    uid: str
    email: str
    username: str
    name: str
    bio: str
    profilePictureUrl: str


class PlayerRef(TypedDict):
    """The denormalized player snapshot stored on matches and tournaments."""

    userId: str
    username: str
