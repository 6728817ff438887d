"""Service layer for channel membership and administration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore
from flask import current_app
from werkzeug.security import check_password_hash, generate_password_hash

from leaguelink.auth.permissions import is_channel_admin, is_channel_member, require
from leaguelink.core.constants import CHANNELS_COLLECTION
from leaguelink.errors import DuplicateResourceError, NotFoundError, ValidationError
from leaguelink.utils import upload_file

from .models import Channel

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from werkzeug.datastructures import FileStorage


class ChannelService:
    """Handles business logic and data access for channels."""

    @staticmethod
    def get_channel(channel_id: str, db: Client | None = None) -> Channel:
        """Fetch a channel or raise NotFoundError."""
        if db is None:
            db = firestore.client()
        doc = cast(Any, db.collection(CHANNELS_COLLECTION).document(channel_id).get())
        if not doc.exists:
            raise NotFoundError("Channel not found.")
        return Channel.from_snapshot(doc)

    @staticmethod
    def create_channel(
        data: dict[str, Any], user_uid: str, db: Client | None = None
    ) -> Channel:
        """Create a channel owned (and administered) by ``user_uid``."""
        if db is None:
            db = firestore.client()
        name = (data.get("name") or "").strip()
        existing = (
            db.collection(CHANNELS_COLLECTION)
            .where(filter=firestore.FieldFilter("name", "==", name))
            .stream()
        )
        if any(doc.exists for doc in existing):
            raise DuplicateResourceError("A channel with that name already exists.")

        passcode = data.get("passcode")
        channel = Channel(
            name=name,
            description=data.get("description") or "",
            owner_id=user_uid,
            sport=data.get("sport") or "",
            is_private=bool(data.get("is_private")),
            passcode_hash=generate_password_hash(passcode) if passcode else None,
            image=data.get("image") or "",
            admin_ids=[user_uid],
            member_ids=[user_uid],
        )
        ref = db.collection(CHANNELS_COLLECTION).document()
        ref.set({**channel.to_document(), "createdAt": firestore.SERVER_TIMESTAMP})
        current_app.logger.info(f"Channel {ref.id} created by {user_uid}")
        return ChannelService.get_channel(ref.id, db=db)

    @staticmethod
    def list_user_channels(user_uid: str, db: Client | None = None) -> list[Channel]:
        """Fetch all channels the user belongs to."""
        if db is None:
            db = firestore.client()
        docs = (
            db.collection(CHANNELS_COLLECTION)
            .where(filter=firestore.FieldFilter("memberIds", "array_contains", user_uid))
            .stream()
        )
        channels = [Channel.from_snapshot(doc) for doc in docs if doc.exists]
        channels.sort(key=lambda c: c.name.lower())
        return channels

    @staticmethod
    def join_channel(
        channel_id: str,
        user_uid: str,
        passcode: str | None = None,
        db: Client | None = None,
    ) -> Channel:
        """Add the user to the channel's members."""
        if db is None:
            db = firestore.client()
        channel = ChannelService.get_channel(channel_id, db=db)

        if channel.is_private:
            require(
                bool(passcode)
                and check_password_hash(cast(str, channel.passcode_hash), passcode),
                "Invalid passcode.",
            )
        if user_uid in channel.member_ids:
            raise ValidationError("You are already a member of this channel.")

        db.collection(CHANNELS_COLLECTION).document(channel_id).update(
            {"memberIds": firestore.ArrayUnion([user_uid])}
        )
        return ChannelService.get_channel(channel_id, db=db)

    @staticmethod
    def leave_channel(channel_id: str, user_uid: str, db: Client | None = None) -> None:
        """Remove the user from the channel's members and admins."""
        if db is None:
            db = firestore.client()
        channel = ChannelService.get_channel(channel_id, db=db)
        if channel.owner_id == user_uid:
            raise ValidationError("The channel owner cannot leave the channel.")
        if not is_channel_member(user_uid, channel):
            raise ValidationError("You are not a member of this channel.")

        db.collection(CHANNELS_COLLECTION).document(channel_id).update(
            {
                "memberIds": firestore.ArrayRemove([user_uid]),
                "adminIds": firestore.ArrayRemove([user_uid]),
            }
        )

    @staticmethod
    def add_admin(
        channel_id: str, actor_uid: str, target_uid: str, db: Client | None = None
    ) -> Channel:
        """Promote a member to channel admin. Only admins may do this."""
        if db is None:
            db = firestore.client()
        channel = ChannelService.get_channel(channel_id, db=db)
        require(
            is_channel_admin(actor_uid, channel),
            "Only channel admins can add admins.",
        )
        if target_uid not in channel.member_ids:
            raise ValidationError("Only channel members can become admins.")
        if target_uid in channel.admin_ids:
            return channel

        db.collection(CHANNELS_COLLECTION).document(channel_id).update(
            {"adminIds": firestore.ArrayUnion([target_uid])}
        )
        return ChannelService.get_channel(channel_id, db=db)

    @staticmethod
    def upload_channel_image(
        channel_id: str,
        actor_uid: str,
        file_storage: FileStorage | None,
        db: Client | None = None,
    ) -> Channel:
        """Upload a channel picture and store its public URL. Admins only."""
        if db is None:
            db = firestore.client()
        channel = ChannelService.get_channel(channel_id, db=db)
        require(
            is_channel_admin(actor_uid, channel),
            "Only channel admins can change the channel picture.",
        )
        url = upload_file(file_storage, f"channel_images/{channel_id}")
        db.collection(CHANNELS_COLLECTION).document(channel_id).update({"image": url})
        current_app.logger.info(f"Channel {channel_id} picture updated by {actor_uid}")
        return ChannelService.get_channel(channel_id, db=db)
