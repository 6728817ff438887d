"""Utility functions for tournament lookups shared across services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from leaguelink.channel.models import Channel
from leaguelink.core.constants import CHANNELS_COLLECTION, TOURNAMENTS_COLLECTION
from leaguelink.errors import NotFoundError

from .models import Tournament

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


def fetch_tournament(db: Client, tournament_id: str) -> Tournament:
    """Fetch a tournament or raise NotFoundError."""
    if not tournament_id:
        raise NotFoundError("Tournament not found.")
    doc = cast(Any, db.collection(TOURNAMENTS_COLLECTION).document(tournament_id).get())
    if not doc.exists:
        raise NotFoundError("Tournament not found.")
    return Tournament.from_snapshot(doc)


def fetch_tournament_channel(db: Client, tournament: Tournament) -> Channel | None:
    """Fetch the channel hosting a tournament, or None if it no longer exists."""
    doc = cast(Any, db.collection(CHANNELS_COLLECTION).document(tournament.channel_id).get())
    if not doc.exists:
        return None
    return Channel.from_snapshot(doc)
